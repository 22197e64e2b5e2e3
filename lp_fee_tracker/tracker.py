"""
Fee Tracker - 스냅샷 조회 → 수수료 계산 → 저장

포지션마다 계산이 완전히 독립적이므로 스냅샷 조회를 스레드 풀로 병렬 실행한다.
재시도/타임아웃 정책은 스냅샷 소스(GraphClient, RpcSnapshotReader)가 담당.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import MAX_REASONABLE_DELTA
from .exceptions import FeeTrackerError, ValidationError
from .data.source import SnapshotSource
from .data.types import PoolSnapshot, PositionSnapshot, parse_token_id
from .math.fee_math import (
    FeeCalculationResult,
    RangeStatus,
    calculate_uncollected_fees_both_tokens,
    total_claimable,
    format_token_amount,
)
from .math.liquidity_math import position_token_amounts
from .math.sqrt_price_math import sqrt_price_x96_to_price
from .math.tick_math import get_sqrt_ratio_at_tick
from .store.position_store import PositionRecord, PositionStore

logger = logging.getLogger(__name__)


@dataclass
class PositionFees:
    """포지션 1건의 수수료 계산 결과

    amount_0 / amount_1은 지금 유동성을 전부 제거하면 받는 원금 (수수료 제외).
    """
    position: PositionSnapshot
    pool: PoolSnapshot
    result: FeeCalculationResult
    claimable_0: int
    claimable_1: int
    amount_0: int = 0
    amount_1: int = 0
    block_number: Optional[int] = None

    @property
    def token_id(self) -> str:
        return self.position.token_id

    @property
    def in_range(self) -> bool:
        return self.result.range_status == RangeStatus.IN_RANGE

    @property
    def clamped(self) -> bool:
        return self.result.clamped_0 or self.result.clamped_1

    def decimals(self) -> Tuple[int, int]:
        return (
            self.pool.token0.decimals if self.pool.token0 else 18,
            self.pool.token1.decimals if self.pool.token1 else 18,
        )

    @property
    def price(self) -> Decimal:
        """token0 1개당 token1 (소수점 보정)"""
        decimals0, decimals1 = self.decimals()
        return sqrt_price_x96_to_price(pool_sqrt_price(self.pool), decimals0, decimals1)

    def summary(self) -> Dict[str, str]:
        """표시용 요약 (토큰 단위 Decimal 문자열)"""
        decimals0, decimals1 = self.decimals()
        return {
            "token_id": self.token_id,
            "range_status": self.result.range_status.value,
            "amount_0": str(format_token_amount(self.amount_0, decimals0)),
            "amount_1": str(format_token_amount(self.amount_1, decimals1)),
            "price": format(self.price, "f"),
            "uncollected_0": str(format_token_amount(self.result.uncollected_fees_0, decimals0)),
            "uncollected_1": str(format_token_amount(self.result.uncollected_fees_1, decimals1)),
            "claimable_0": str(format_token_amount(self.claimable_0, decimals0)),
            "claimable_1": str(format_token_amount(self.claimable_1, decimals1)),
        }

    def to_record(self) -> PositionRecord:
        return PositionRecord(
            token_id=self.position.token_id,
            owner=self.position.owner,
            pool_id=self.position.pool_id,
            tick_lower=self.position.tick_lower,
            tick_upper=self.position.tick_upper,
            liquidity=self.position.liquidity,
            in_range=self.in_range,
            amount_0=self.amount_0,
            amount_1=self.amount_1,
            price=format(self.price, "f"),
            uncollected_0=self.result.uncollected_fees_0,
            uncollected_1=self.result.uncollected_fees_1,
            claimable_0=self.claimable_0,
            claimable_1=self.claimable_1,
            clamped=self.clamped,
            block_number=self.block_number,
        )


def pool_sqrt_price(pool: PoolSnapshot) -> int:
    """풀의 sqrtPriceX96. 소스가 주지 않았으면(0) 현재 틱의 하한 가격으로 대신한다."""
    return pool.sqrt_price_x96 or get_sqrt_ratio_at_tick(pool.tick)


@dataclass
class RefreshReport:
    """refresh 결과: 성공한 계산과 실패한 token_id → 오류 메시지"""
    updated: List[PositionFees] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class FeeTracker:
    """포지션 수수료 추적기

    사용법:
        tracker = FeeTracker(RpcSnapshotReader(), JsonPositionStore("cached-data.json"))
        fees = tracker.compute("1031465")
        report = tracker.refresh(["1031465", "1029195"])
    """

    def __init__(
        self,
        source: SnapshotSource,
        store: Optional[PositionStore] = None,
        max_workers: int = 4,
        sanity_ceiling: int = MAX_REASONABLE_DELTA
    ):
        self.source = source
        self.store = store
        self.max_workers = max(1, max_workers)
        self.sanity_ceiling = sanity_ceiling

    def compute(self, token_id: str) -> PositionFees:
        """포지션 1건의 미수령 / 청구 가능 수수료 계산 (저장하지 않음)

        position / pool / tick 조회는 모두 같은 블록에서 읽는다.

        Raises:
            InvalidTokenIdError: 숫자가 아닌 token ID
        """
        token_id = parse_token_id(token_id)
        block = self.source.latest_block()
        position = self.source.get_position_snapshot(token_id, block=block)
        pool = self.source.get_pool_snapshot(position.pool_id, block=block)
        lower, upper = self.source.get_tick_snapshots(
            position.pool_id, [position.tick_lower, position.tick_upper], block=block
        )

        result = calculate_uncollected_fees_both_tokens(
            pool, lower, upper, position, self.sanity_ceiling
        )
        claimable_0, claimable_1 = total_claimable(result, position)
        amount_0, amount_1 = position_token_amounts(
            pool_sqrt_price(pool), position.tick_lower, position.tick_upper, position.liquidity
        )

        if result.clamped_0 or result.clamped_1:
            logger.warning("position %s: fee delta clamped by sanity ceiling (token0=%s, token1=%s)",
                           token_id, result.clamped_0, result.clamped_1)

        return PositionFees(
            position=position,
            pool=pool,
            result=result,
            claimable_0=claimable_0,
            claimable_1=claimable_1,
            amount_0=amount_0,
            amount_1=amount_1,
            block_number=block,
        )

    def refresh(self, token_ids: Iterable[str]) -> RefreshReport:
        """여러 포지션을 병렬로 계산하고 저장소에 기록

        스냅샷 조회 실패나 잘못된 포지션 데이터는 해당 포지션만 실패로 기록하고
        나머지는 계속 진행한다.
        """
        token_ids = list(dict.fromkeys(str(t) for t in token_ids))
        report = RefreshReport()
        if not token_ids:
            return report

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(token_ids))) as executor:
            futures = {token_id: executor.submit(self.compute, token_id) for token_id in token_ids}
            for token_id, future in futures.items():
                try:
                    report.updated.append(future.result())
                except ValidationError as e:
                    logger.error("position %s has invalid data: %s", token_id, e)
                    report.failed[token_id] = str(e)
                except FeeTrackerError as e:
                    logger.warning("position %s could not be refreshed: %s", token_id, e)
                    report.failed[token_id] = str(e)

        if self.store is not None and report.updated:
            self.store.put_many(fees.to_record() for fees in report.updated)

        logger.info("refreshed %d positions (%d failed)", len(report.updated), len(report.failed))
        return report

    def refresh_stored(self) -> RefreshReport:
        """저장소에 있는 모든 포지션 재계산"""
        if self.store is None:
            raise FeeTrackerError("refresh_stored requires a position store")
        return self.refresh(record.token_id for record in self.store.all())
