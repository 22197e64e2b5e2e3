"""
설정으로부터 스냅샷 소스 생성
"""

from ..config import Settings
from ..exceptions import FeeTrackerError
from .graph_client import GraphClient, GraphClientConfig
from .source import SnapshotSource


def build_source(settings: Settings, name: str = "") -> SnapshotSource:
    """name("rpc" | "graph")에 해당하는 스냅샷 소스. 비어 있으면 settings.SNAPSHOT_SOURCE"""
    name = (name or settings.SNAPSHOT_SOURCE).lower()

    if name == "graph":
        return GraphClient(GraphClientConfig(api_key=settings.GRAPH_API_KEY or None, chain=settings.CHAIN))

    if name == "rpc":
        # web3 import는 무겁기 때문에 rpc 소스를 쓸 때만 로드
        from .rpc_client import RpcSnapshotReader, RpcConfig
        return RpcSnapshotReader(RpcConfig(
            rpc_urls=settings.RPC_URLS,
            position_manager=settings.POSITION_MANAGER_ADDRESS,
            pool_address=settings.POOL_ADDRESS or None,
            timeout=settings.RPC_TIMEOUT,
            max_retries=settings.RPC_MAX_RETRIES,
        ))

    raise FeeTrackerError(f"unknown snapshot source: {name} (expected 'rpc' or 'graph')")
