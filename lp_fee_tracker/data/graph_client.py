"""
The Graph API 클라이언트

Uniswap V3 Subgraph에서 수수료 계산용 Pool / Tick / Position 스냅샷을 조회.
다중 체인 지원 (Ethereum, Polygon, Optimism, Arbitrum, Celo)

서브그래프는 tokensOwed를 인덱싱하지 않으므로 Position 스냅샷의 tokens_owed는 0이다.
정확한 청구 가능 금액이 필요하면 RpcSnapshotReader를 사용.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, List, Dict, Any

import requests

from ..constants import SUBGRAPH_IDS
from ..exceptions import GraphClientError, PositionNotFoundError
from .types import PoolSnapshot, TickSnapshot, PositionSnapshot, parse_token_id
from . import queries

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


@dataclass
class GraphClientConfig:
    """Graph API 클라이언트 설정"""
    api_key: Optional[str] = None
    chain: str = "ethereum"
    timeout: int = 30
    max_retries: int = 3
    retry_delay: float = 1.0


class GraphClient:
    """The Graph API 클라이언트

    사용법:
        client = GraphClient(GraphClientConfig(api_key="your_api_key"))
        pool = client.get_pool_snapshot("0x...")
        lower, upper = client.get_tick_snapshots("0x...", [tick_lower, tick_upper])
    """

    def __init__(
        self,
        config: Optional[GraphClientConfig] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            config: 클라이언트 설정. api_key가 None이면 GRAPH_API_KEY 환경변수에서 로드
            session: 재사용할 HTTP 세션 (테스트에서 주입)
        """
        self.config = config or GraphClientConfig()

        self.api_key = self.config.api_key or os.getenv("GRAPH_API_KEY")
        if not self.api_key:
            raise GraphClientError(
                "API 키가 필요합니다. GRAPH_API_KEY 환경변수를 설정하거나 "
                "GraphClientConfig.api_key로 전달하세요. "
                "API 키는 https://thegraph.com/studio/ 에서 발급받을 수 있습니다."
            )

        chain_lower = self.config.chain.lower()
        if chain_lower not in SUBGRAPH_IDS:
            raise GraphClientError(
                f"지원하지 않는 체인: {self.config.chain}. "
                f"지원 체인: {', '.join(SUBGRAPH_IDS.keys())}"
            )

        self.subgraph_id = SUBGRAPH_IDS[chain_lower]
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        """GraphQL 엔드포인트 URL"""
        return f"https://gateway.thegraph.com/api/{self.api_key}/subgraphs/id/{self.subgraph_id}"

    def _execute_query(
        self,
        query: str,
        variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """GraphQL 쿼리 실행

        네트워크 오류와 타임아웃만 재시도한다. GraphQL 오류 응답은 재시도해도
        같은 결과이므로 즉시 GraphClientError로 올린다.

        Raises:
            GraphClientError: API 오류 발생 시
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        max_retries = max(1, self.config.max_retries)
        last_error: Optional[GraphClientError] = None
        for attempt in range(max_retries):
            try:
                response = self._session.post(
                    self.endpoint,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=self.config.timeout
                )
                response.raise_for_status()
                data = response.json()
            except requests.exceptions.Timeout:
                last_error = GraphClientError(f"요청 타임아웃 ({self.config.timeout}초)")
            except requests.exceptions.RequestException as e:
                last_error = GraphClientError(f"네트워크 오류: {e}")
            except ValueError as e:
                last_error = GraphClientError(f"JSON 파싱 오류: {e}")
            else:
                if "errors" in data:
                    error_messages = [e.get("message", str(e)) for e in data["errors"]]
                    raise GraphClientError(f"GraphQL 오류: {'; '.join(error_messages)}")
                if "data" not in data:
                    raise GraphClientError("응답에 'data' 필드가 없습니다")
                return data["data"]

            logger.warning("subgraph query failed (attempt %d/%d): %s", attempt + 1, max_retries, last_error)
            if attempt < max_retries - 1:
                time.sleep(self.config.retry_delay * (attempt + 1))

        raise last_error

    @staticmethod
    def _with_block(variables: Dict[str, Any], block: Optional[int]) -> Dict[str, Any]:
        if block is not None:
            variables["block"] = {"number": int(block)}
        return variables

    def latest_block(self) -> Optional[int]:
        """서브그래프가 인덱싱한 최신 블록 번호"""
        data = self._execute_query(queries.META_QUERY)
        try:
            return int(data["_meta"]["block"]["number"])
        except (KeyError, TypeError, ValueError):
            raise GraphClientError(f"_meta 응답에 블록 번호가 없습니다: {data}") from None

    def get_pool_snapshot(self, pool_id: str, block: Optional[int] = None) -> PoolSnapshot:
        """Pool Global State 조회

        Raises:
            GraphClientError: Pool이 존재하지 않거나 API 오류
        """
        data = self._execute_query(
            queries.POOL_QUERY, self._with_block({"id": pool_id.lower()}, block)
        )
        pool_data = data.get("pool")
        if not pool_data:
            raise GraphClientError(f"Pool을 찾을 수 없습니다: {pool_id}")
        return PoolSnapshot.from_dict(pool_data)

    def get_tick_snapshots(
        self,
        pool_id: str,
        tick_idxs: List[int],
        block: Optional[int] = None
    ) -> List[TickSnapshot]:
        """특정 틱들의 fee growth outside 조회

        응답에 없는 틱(초기화되지 않은 틱)은 TickSnapshot.empty로 채운다.
        반환 순서는 tick_idxs 순서와 같다.
        """
        variables = {"pool": pool_id.lower(), "tickIdxs": [str(idx) for idx in tick_idxs]}
        data = self._execute_query(queries.TICKS_BY_IDX_QUERY, self._with_block(variables, block))
        ticks_by_idx = {t.tick_idx: t for t in (TickSnapshot.from_dict(d) for d in data.get("ticks", []))}
        return [ticks_by_idx.get(idx) or TickSnapshot.empty(idx) for idx in tick_idxs]

    def get_position_snapshot(self, token_id: str, block: Optional[int] = None) -> PositionSnapshot:
        """NFT 포지션 조회

        Raises:
            InvalidTokenIdError: 숫자가 아닌 token ID
            PositionNotFoundError: 서브그래프에 포지션이 없음
        """
        token_id = parse_token_id(token_id)
        data = self._execute_query(queries.POSITION_QUERY, self._with_block({"id": token_id}, block))
        position_data = data.get("position")
        if not position_data:
            raise PositionNotFoundError(token_id)
        return PositionSnapshot.from_dict(position_data)

    def get_positions_by_owner(self, owner: str) -> List[PositionSnapshot]:
        """소유자의 모든 포지션 조회 (자동 페이지네이션)"""
        positions: List[PositionSnapshot] = []
        skip = 0
        while True:
            data = self._execute_query(
                queries.POSITIONS_BY_OWNER_QUERY,
                {"owner": owner.lower(), "skip": skip, "first": PAGE_SIZE}
            )
            batch = data.get("positions", [])
            positions.extend(PositionSnapshot.from_dict(p) for p in batch)
            if len(batch) < PAGE_SIZE:
                return positions
            skip += PAGE_SIZE
