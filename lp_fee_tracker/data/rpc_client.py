"""
JSON-RPC 스냅샷 리더

NonfungiblePositionManager / UniswapV3Pool 컨트랙트를 직접 읽어 스냅샷을 만든다.
RPC 엔드포인트 목록을 순서대로 시도하며, 각 엔드포인트마다 재시도 후 다음으로 넘어간다.

서브그래프와 달리 tokensOwed까지 정확하게 조회된다.
block을 넘기면 모든 컨트랙트 호출이 같은 블록을 읽으므로 fallback으로
엔드포인트가 바뀌어도 블록 높이가 섞이지 않는다.
"""

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

import requests
from web3 import Web3
from web3.exceptions import ContractLogicError, Web3Exception

from ..constants import DEFAULT_RPC_URLS, NONFUNGIBLE_POSITION_MANAGER, UNISWAP_V3_FACTORY
from ..exceptions import RpcClientError, PositionNotFoundError, PoolMismatchError
from .abis import UNISWAP_V3_POOL_ABI, POSITION_MANAGER_ABI, UNISWAP_V3_FACTORY_ABI, ERC20_ABI
from .types import Token, PoolSnapshot, TickSnapshot, PositionSnapshot, parse_token_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 재시도 대상 오류 (revert는 제외)
RETRYABLE_ERRORS = (Web3Exception, requests.exceptions.RequestException, ValueError, OSError)


@dataclass
class RpcConfig:
    """RPC 리더 설정"""
    rpc_urls: List[str] = field(default_factory=lambda: list(DEFAULT_RPC_URLS))
    position_manager: str = NONFUNGIBLE_POSITION_MANAGER
    factory: str = UNISWAP_V3_FACTORY
    pool_address: Optional[str] = None  # 고정 풀. 설정하면 다른 풀의 포지션은 PoolMismatchError
    timeout: int = 10
    max_retries: int = 2
    retry_delay: float = 0.5


def _default_web3_factory(url: str, timeout: int) -> Web3:
    return Web3(Web3.HTTPProvider(url, request_kwargs={"timeout": timeout}))


def _block_identifier(block: Optional[int]):
    return "latest" if block is None else int(block)


class RpcSnapshotReader:
    """web3 기반 스냅샷 리더

    사용법:
        reader = RpcSnapshotReader(RpcConfig(rpc_urls=["https://..."]))
        position = reader.get_position_snapshot("1031465")
        pool = reader.get_pool_snapshot(position.pool_id)
    """

    def __init__(
        self,
        config: Optional[RpcConfig] = None,
        web3_factory: Callable[[str, int], Web3] = _default_web3_factory
    ):
        self.config = config or RpcConfig()
        if not self.config.rpc_urls:
            raise RpcClientError("RPC URL이 하나 이상 필요합니다")
        self._web3_factory = web3_factory
        self._clients: Dict[str, Web3] = {}
        self._token_cache: Dict[str, Token] = {}
        self._pool_identity_cache: Dict[str, Tuple[str, str, int]] = {}

    def _client(self, url: str) -> Web3:
        if url not in self._clients:
            self._clients[url] = self._web3_factory(url, self.config.timeout)
        return self._clients[url]

    def _call(self, description: str, fn: Callable[[Web3], T]) -> T:
        """fn(w3)를 엔드포인트 목록 순서대로 실행

        각 엔드포인트에서 max_retries번 시도한 뒤 다음 엔드포인트로 넘어간다.
        컨트랙트 revert(ContractLogicError)는 재시도하지 않고 그대로 올린다.

        Raises:
            RpcClientError: 모든 엔드포인트 실패
        """
        max_retries = max(1, self.config.max_retries)
        errors: List[str] = []
        for url in self.config.rpc_urls:
            for attempt in range(max_retries):
                try:
                    return fn(self._client(url))
                except ContractLogicError:
                    raise
                except RETRYABLE_ERRORS as e:
                    logger.debug("%s failed on %s (attempt %d/%d): %s",
                                 description, url, attempt + 1, max_retries, e)
                    if attempt == max_retries - 1:
                        errors.append(f"{url}: {e}")
                    else:
                        time.sleep(self.config.retry_delay * (attempt + 1))
            logger.warning("%s: falling back from %s", description, url)
        raise RpcClientError(f"{description} failed on all RPC endpoints: {'; '.join(errors)}")

    @staticmethod
    def _pool(w3: Web3, pool_id: str):
        return w3.eth.contract(address=Web3.to_checksum_address(pool_id), abi=UNISWAP_V3_POOL_ABI)

    def _position_manager(self, w3: Web3):
        return w3.eth.contract(
            address=Web3.to_checksum_address(self.config.position_manager),
            abi=POSITION_MANAGER_ABI
        )

    def _token(self, address: str) -> Token:
        address = address.lower()
        if address not in self._token_cache:
            def read(w3: Web3) -> Token:
                erc20 = w3.eth.contract(address=Web3.to_checksum_address(address), abi=ERC20_ABI)
                return Token(
                    id=address,
                    symbol=erc20.functions.symbol().call(),
                    decimals=int(erc20.functions.decimals().call()),
                )
            self._token_cache[address] = self._call(f"token {address}", read)
        return self._token_cache[address]

    def _pool_identity(self, pool_id: str) -> Tuple[str, str, int]:
        """(token0, token1, fee). 풀 생성 후 바뀌지 않으므로 캐시"""
        pool_id = pool_id.lower()
        if pool_id not in self._pool_identity_cache:
            def read(w3: Web3) -> Tuple[str, str, int]:
                functions = self._pool(w3, pool_id).functions
                return (
                    functions.token0().call().lower(),
                    functions.token1().call().lower(),
                    int(functions.fee().call()),
                )
            self._pool_identity_cache[pool_id] = self._call(f"pool identity {pool_id}", read)
        return self._pool_identity_cache[pool_id]

    def latest_block(self) -> Optional[int]:
        """현재 블록 번호. 포지션 1건의 조회를 모두 이 블록에 고정한다."""
        return int(self._call("block number", lambda w3: w3.eth.block_number))

    def get_pool_snapshot(
        self,
        pool_id: str,
        block: Optional[int] = None,
        with_tokens: bool = True
    ) -> PoolSnapshot:
        """slot0 + feeGrowthGlobal{0,1}X128 (+ 토큰 정보)"""
        at = _block_identifier(block)

        def read(w3: Web3) -> PoolSnapshot:
            functions = self._pool(w3, pool_id).functions
            slot0 = functions.slot0().call(block_identifier=at)
            return PoolSnapshot(
                pool_id=pool_id.lower(),
                tick=int(slot0[1]),
                sqrt_price_x96=int(slot0[0]),
                fee_growth_global_0_x128=int(functions.feeGrowthGlobal0X128().call(block_identifier=at)),
                fee_growth_global_1_x128=int(functions.feeGrowthGlobal1X128().call(block_identifier=at)),
            )

        snapshot = self._call(f"pool {pool_id}", read)
        if not with_tokens:
            return snapshot

        token0_addr, token1_addr, _ = self._pool_identity(pool_id)
        return replace(snapshot, token0=self._token(token0_addr), token1=self._token(token1_addr))

    def get_tick_snapshots(
        self,
        pool_id: str,
        tick_idxs: Sequence[int],
        block: Optional[int] = None
    ) -> List[TickSnapshot]:
        """ticks(i) 조회. 초기화되지 않은 틱은 컨트랙트가 0을 반환한다."""
        at = _block_identifier(block)
        return [
            self._call(
                f"tick {idx} of {pool_id}",
                lambda w3, idx=idx: TickSnapshot.from_contract(
                    idx, self._pool(w3, pool_id).functions.ticks(idx).call(block_identifier=at)
                )
            )
            for idx in tick_idxs
        ]

    def get_position_snapshot(self, token_id: str, block: Optional[int] = None) -> PositionSnapshot:
        """positions(tokenId) + ownerOf(tokenId)

        풀 주소는 factory.getPool(token0, token1, fee)로 찾는다.
        고정 풀(pool_address)이 설정돼 있으면 포지션의 (token0, token1, fee)가
        그 풀과 같은지 확인한다.

        Raises:
            InvalidTokenIdError: 숫자가 아닌 token ID
            PositionNotFoundError: 존재하지 않거나 소각된 토큰 (컨트랙트 revert)
            PoolMismatchError: 포지션이 고정 풀에 속하지 않음
        """
        token_id = parse_token_id(token_id)
        token_int = int(token_id)
        at = _block_identifier(block)
        try:
            result = self._call(
                f"position {token_id}",
                lambda w3: self._position_manager(w3).functions.positions(token_int).call(block_identifier=at)
            )
            owner = self._call(
                f"owner of {token_id}",
                lambda w3: self._position_manager(w3).functions.ownerOf(token_int).call(block_identifier=at)
            )
        except ContractLogicError:
            raise PositionNotFoundError(token_id) from None

        position_key = (str(result[2]).lower(), str(result[3]).lower(), int(result[4]))
        if self.config.pool_address:
            pool_id = self.config.pool_address
            if self._pool_identity(pool_id) != position_key:
                raise PoolMismatchError(token_id, pool_id.lower())
        else:
            pool_id = self._call(
                f"pool lookup for {token_id}",
                lambda w3: w3.eth.contract(
                    address=Web3.to_checksum_address(self.config.factory), abi=UNISWAP_V3_FACTORY_ABI
                ).functions.getPool(result[2], result[3], result[4]).call()
            )
        return PositionSnapshot.from_contract(token_id, result, pool_id=pool_id, owner=owner)
