"""
LP Fee Tracker CLI

Usage:
    lp-fees fees 1031465 1029195          # 계산 결과 출력
    lp-fees fees 1031465 --json
    lp-fees refresh                       # 저장소의 모든 포지션 재계산
    lp-fees refresh 1031465 --store cached-data.json
    lp-fees day 1752170400                # 프로토콜 데이
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import settings
from .data.factory import build_source
from .exceptions import FeeTrackerError, ValidationError
from .protocol_day import get_protocol_day, current_protocol_day, protocol_day_start
from .store.position_store import JsonPositionStore
from .tracker import FeeTracker


def _build_tracker(args: argparse.Namespace, with_store: bool) -> FeeTracker:
    store = JsonPositionStore(args.store) if with_store else None
    return FeeTracker(
        build_source(settings, args.source),
        store=store,
        max_workers=args.workers,
        sanity_ceiling=2 ** args.ceiling_bits,
    )


def cmd_fees(args: argparse.Namespace) -> int:
    tracker = _build_tracker(args, with_store=False)
    report = tracker.refresh(args.token_ids)

    if args.json:
        print(json.dumps({
            "positions": [fees.summary() for fees in report.updated],
            "failed": report.failed,
        }, indent=2))
    else:
        for fees in report.updated:
            summary = fees.summary()
            print(f"\nPosition {summary['token_id']} ({summary['range_status']})")
            print(f"  Amounts:     {summary['amount_0']} / {summary['amount_1']} (price {summary['price']})")
            print(f"  Uncollected: {summary['uncollected_0']} / {summary['uncollected_1']}")
            print(f"  Claimable:   {summary['claimable_0']} / {summary['claimable_1']}")
            if fees.clamped:
                print("  ⚠️  fee delta exceeded sanity ceiling; uncollected reported as 0")
        for token_id, error in report.failed.items():
            print(f"\n❌ Position {token_id}: {error}")

    return 1 if report.failed else 0


def cmd_refresh(args: argparse.Namespace) -> int:
    tracker = _build_tracker(args, with_store=True)
    report = tracker.refresh(args.token_ids) if args.token_ids else tracker.refresh_stored()
    print(f"✅ Updated {len(report.updated)} positions in {args.store}")
    for token_id, error in report.failed.items():
        print(f"❌ {token_id}: {error}")
    return 1 if report.failed else 0


def cmd_day(args: argparse.Namespace) -> int:
    if args.timestamp is None:
        day = current_protocol_day()
    else:
        day = get_protocol_day(args.timestamp)
    start = protocol_day_start(day)
    print(f"Protocol day {day} (started {start.isoformat()})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lp-fees", description="Uniswap V3 LP uncollected fee tracker")
    parser.add_argument("--source", choices=["rpc", "graph"], default=settings.SNAPSHOT_SOURCE,
                        help="snapshot source (default: %(default)s)")
    parser.add_argument("--workers", type=int, default=settings.MAX_WORKERS,
                        help="parallel snapshot fetches")
    parser.add_argument("--ceiling-bits", type=int, default=settings.FEE_SANITY_CEILING_BITS,
                        help="fee growth delta sanity ceiling as a power of two")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL)

    subparsers = parser.add_subparsers(dest="command", required=True)

    fees = subparsers.add_parser("fees", help="compute uncollected fees for positions")
    fees.add_argument("token_ids", nargs="+")
    fees.add_argument("--json", action="store_true", help="print JSON instead of text")
    fees.set_defaults(func=cmd_fees)

    refresh = subparsers.add_parser("refresh", help="recompute positions and write the store")
    refresh.add_argument("token_ids", nargs="*", help="positions to refresh (default: all stored)")
    refresh.add_argument("--store", default=settings.POSITION_STORE_PATH)
    refresh.set_defaults(func=cmd_refresh)

    day = subparsers.add_parser("day", help="protocol day for a unix timestamp (default: now)")
    day.add_argument("timestamp", nargs="?", type=int)
    day.set_defaults(func=cmd_day)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except ValidationError as e:
        print(f"❌ Invalid input: {e}", file=sys.stderr)
        return 2
    except FeeTrackerError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
