"""
스냅샷 소스 인터페이스

GraphClient, RpcSnapshotReader 모두 이 프로토콜을 따른다.
block을 지정하면 해당 블록 시점의 상태를 읽는다. FeeTracker는 포지션 1건의
position / pool / tick 조회를 latest_block()으로 얻은 같은 블록에 고정한다.
"""

from typing import List, Optional, Protocol, Sequence

from .types import PoolSnapshot, TickSnapshot, PositionSnapshot


class SnapshotSource(Protocol):
    def latest_block(self) -> Optional[int]:
        ...

    def get_pool_snapshot(self, pool_id: str, block: Optional[int] = None) -> PoolSnapshot:
        ...

    def get_tick_snapshots(
        self, pool_id: str, tick_idxs: Sequence[int], block: Optional[int] = None
    ) -> List[TickSnapshot]:
        ...

    def get_position_snapshot(self, token_id: str, block: Optional[int] = None) -> PositionSnapshot:
        ...
