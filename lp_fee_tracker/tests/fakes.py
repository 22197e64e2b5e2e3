"""
테스트용 가짜 스냅샷 소스
"""

from typing import Dict, Iterable, List, Optional, Sequence

from ..constants import Q128
from ..data.types import Token, PoolSnapshot, TickSnapshot, PositionSnapshot
from ..exceptions import PositionNotFoundError, RpcClientError

POOL_ID = "0x7ff1f30f6e7eec2ff3f0d1b60739115bdf88190f"


def make_pool(tick: int = 105000, global_0: int = 1000 * Q128, global_1: int = 1000 * Q128) -> PoolSnapshot:
    return PoolSnapshot(
        pool_id=POOL_ID,
        tick=tick,
        fee_growth_global_0_x128=global_0,
        fee_growth_global_1_x128=global_1,
        token0=Token(id="0x" + "4" * 40, symbol="TORUS", decimals=18),
        token1=Token(id="0x" + "5" * 40, symbol="TITANX", decimals=18),
    )


def make_position(
    token_id: str = "1031465",
    tick_lower: int = 100000,
    tick_upper: int = 110000,
    liquidity: int = 10 ** 18,
    last_0: int = 400 * Q128,
    last_1: int = 400 * Q128,
    owed_0: int = 0,
    owed_1: int = 0,
) -> PositionSnapshot:
    return PositionSnapshot(
        token_id=token_id,
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        liquidity=liquidity,
        fee_growth_inside_0_last_x128=last_0,
        fee_growth_inside_1_last_x128=last_1,
        tokens_owed_0=owed_0,
        tokens_owed_1=owed_1,
        pool_id=POOL_ID,
        owner="0x" + "9" * 40,
    )


class FakeSource:
    """SnapshotSource 구현. 틱은 기본적으로 초기화되지 않은 상태(0)."""

    def __init__(
        self,
        pool: PoolSnapshot,
        positions: Iterable[PositionSnapshot] = (),
        ticks: Optional[Dict[int, TickSnapshot]] = None,
        failing: Sequence[str] = (),
        block: Optional[int] = 19000000
    ):
        self.pool = pool
        self.positions = {p.token_id: p for p in positions}
        self.ticks = ticks or {}
        self.failing = set(failing)
        self.block = block
        self.calls: List[str] = []
        self.blocks: List[Optional[int]] = []

    def latest_block(self) -> Optional[int]:
        self.calls.append("block")
        return self.block

    def get_pool_snapshot(self, pool_id: str, block: Optional[int] = None) -> PoolSnapshot:
        self.calls.append(f"pool:{pool_id}")
        self.blocks.append(block)
        return self.pool

    def get_tick_snapshots(
        self, pool_id: str, tick_idxs: Sequence[int], block: Optional[int] = None
    ) -> List[TickSnapshot]:
        self.calls.append(f"ticks:{list(tick_idxs)}")
        self.blocks.append(block)
        return [self.ticks.get(idx) or TickSnapshot.empty(idx) for idx in tick_idxs]

    def get_position_snapshot(self, token_id: str, block: Optional[int] = None) -> PositionSnapshot:
        self.calls.append(f"position:{token_id}")
        self.blocks.append(block)
        if token_id in self.failing:
            raise RpcClientError(f"position {token_id} failed on all RPC endpoints")
        if token_id not in self.positions:
            raise PositionNotFoundError(token_id)
        return self.positions[token_id]
