"""
Data layer for LP Fee Tracker

스냅샷 타입 정의 및 스냅샷 소스(The Graph, JSON-RPC)
"""

from .types import Token, PoolSnapshot, TickSnapshot, PositionSnapshot, parse_token_id
from .source import SnapshotSource
from .graph_client import GraphClient, GraphClientConfig
