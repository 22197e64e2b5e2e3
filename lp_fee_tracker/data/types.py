"""
스냅샷 데이터 타입 정의

Pool / Tick / Position 상태를 수수료 계산에 필요한 필드만 담아 dataclass로 정의.
모든 숫자 필드는 온체인 정밀도를 위해 int 타입 사용.

- from_dict: The Graph 서브그래프 응답(JSON 문자열 숫자)에서 생성
- from_contract: web3 컨트랙트 호출 결과 튜플에서 생성
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from ..exceptions import InvalidTokenIdError
from ..math.uint256 import parse_uint256, parse_uint128


def parse_token_id(token_id) -> str:
    """포지션 token ID를 정규화된 10진 문자열로 변환

    >>> parse_token_id(" 001031465 ")
    '1031465'

    Raises:
        InvalidTokenIdError: 10진 숫자가 아니거나 uint256 범위를 벗어남
    """
    if isinstance(token_id, int) and not isinstance(token_id, bool):
        value = token_id
    elif isinstance(token_id, str) and token_id.strip().isascii() and token_id.strip().isdigit():
        value = int(token_id.strip())
    else:
        raise InvalidTokenIdError(token_id)
    try:
        return str(parse_uint256(value))
    except ValueError:
        raise InvalidTokenIdError(token_id) from None


@dataclass(frozen=True)
class Token:
    """ERC20 토큰 정보"""
    id: str  # 컨트랙트 주소
    symbol: str
    decimals: int

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        return cls(
            id=data["id"],
            symbol=data.get("symbol", ""),
            decimals=int(data.get("decimals", 18)),
        )


@dataclass(frozen=True)
class PoolSnapshot:
    """Pool Global State (백서 Section 6.2, Table 1)

    - tick: 현재 틱 인덱스 (i_c)
    - sqrt_price_x96: 현재 √가격 (Q96 인코딩)
    - fee_growth_global_0_x128: token0 단위유동성당 누적수수료 (f_g,0)
    - fee_growth_global_1_x128: token1 단위유동성당 누적수수료 (f_g,1)
    """
    pool_id: str
    tick: int
    fee_growth_global_0_x128: int
    fee_growth_global_1_x128: int
    sqrt_price_x96: int = 0
    token0: Optional[Token] = None
    token1: Optional[Token] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PoolSnapshot":
        return cls(
            pool_id=data["id"].lower(),
            tick=int(data["tick"]),
            fee_growth_global_0_x128=parse_uint256(data.get("feeGrowthGlobal0X128", 0)),
            fee_growth_global_1_x128=parse_uint256(data.get("feeGrowthGlobal1X128", 0)),
            sqrt_price_x96=parse_uint256(data.get("sqrtPrice", 0)),
            token0=Token.from_dict(data["token0"]) if data.get("token0") else None,
            token1=Token.from_dict(data["token1"]) if data.get("token1") else None,
        )


@dataclass(frozen=True)
class TickSnapshot:
    """Tick-Indexed State (백서 Section 6.3, Table 2)

    - fee_growth_outside_0_x128: 틱 외부 누적수수료 token0 (f_o,0)
    - fee_growth_outside_1_x128: 틱 외부 누적수수료 token1 (f_o,1)

    초기화되지 않은 틱은 컨트랙트 storage와 동일하게 모든 값이 0.
    """
    tick_idx: int
    fee_growth_outside_0_x128: int
    fee_growth_outside_1_x128: int
    liquidity_gross: int = 0
    liquidity_net: int = 0
    initialized: bool = True

    @classmethod
    def empty(cls, tick_idx: int) -> "TickSnapshot":
        return cls(
            tick_idx=tick_idx,
            fee_growth_outside_0_x128=0,
            fee_growth_outside_1_x128=0,
            initialized=False,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "TickSnapshot":
        return cls(
            tick_idx=int(data["tickIdx"]),
            fee_growth_outside_0_x128=parse_uint256(data.get("feeGrowthOutside0X128", 0)),
            fee_growth_outside_1_x128=parse_uint256(data.get("feeGrowthOutside1X128", 0)),
            liquidity_gross=int(data.get("liquidityGross", 0)),
            liquidity_net=int(data.get("liquidityNet", 0)),
        )

    @classmethod
    def from_contract(cls, tick_idx: int, result: Sequence) -> "TickSnapshot":
        """UniswapV3Pool.ticks(i) 반환값

        (liquidityGross, liquidityNet, feeGrowthOutside0X128, feeGrowthOutside1X128,
         tickCumulativeOutside, secondsPerLiquidityOutsideX128, secondsOutside, initialized)
        """
        return cls(
            tick_idx=tick_idx,
            fee_growth_outside_0_x128=parse_uint256(result[2]),
            fee_growth_outside_1_x128=parse_uint256(result[3]),
            liquidity_gross=int(result[0]),
            liquidity_net=int(result[1]),
            initialized=bool(result[7]),
        )


@dataclass(frozen=True)
class PositionSnapshot:
    """Position-Indexed State (백서 Section 6.4, Table 3)

    - liquidity: 포지션의 유동성 (l)
    - fee_growth_inside_{0,1}_last_x128: 마지막 mint/burn/collect 시점의 f_r(t_0)
    - tokens_owed_{0,1}: 이미 적립됐지만 아직 인출하지 않은 수수료
    """
    token_id: str
    tick_lower: int  # i_l
    tick_upper: int  # i_u
    liquidity: int  # l
    fee_growth_inside_0_last_x128: int = 0  # f_r,0(t_0)
    fee_growth_inside_1_last_x128: int = 0  # f_r,1(t_0)
    tokens_owed_0: int = 0
    tokens_owed_1: int = 0
    pool_id: str = ""
    owner: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "PositionSnapshot":
        """서브그래프 Position 엔티티

        tickLower / tickUpper는 Tick 엔티티 참조({"tickIdx": ...}) 또는 정수 모두 허용.
        """
        def _tick(value) -> int:
            return int(value["tickIdx"]) if isinstance(value, dict) else int(value)

        pool = data.get("pool")
        return cls(
            token_id=str(data["id"]),
            tick_lower=_tick(data["tickLower"]),
            tick_upper=_tick(data["tickUpper"]),
            liquidity=parse_uint128(data["liquidity"]),
            fee_growth_inside_0_last_x128=parse_uint256(data.get("feeGrowthInside0LastX128", 0)),
            fee_growth_inside_1_last_x128=parse_uint256(data.get("feeGrowthInside1LastX128", 0)),
            tokens_owed_0=parse_uint128(data.get("tokensOwed0", 0)),
            tokens_owed_1=parse_uint128(data.get("tokensOwed1", 0)),
            pool_id=(pool.get("id", "") if isinstance(pool, dict) else (pool or "")).lower(),
            owner=(data.get("owner") or "").lower(),
        )

    @classmethod
    def from_contract(
        cls,
        token_id: str,
        result: Sequence,
        pool_id: str = "",
        owner: str = ""
    ) -> "PositionSnapshot":
        """NonfungiblePositionManager.positions(tokenId) 반환값

        (nonce, operator, token0, token1, fee, tickLower, tickUpper, liquidity,
         feeGrowthInside0LastX128, feeGrowthInside1LastX128, tokensOwed0, tokensOwed1)
        """
        return cls(
            token_id=str(token_id),
            tick_lower=int(result[5]),
            tick_upper=int(result[6]),
            liquidity=parse_uint128(result[7]),
            fee_growth_inside_0_last_x128=parse_uint256(result[8]),
            fee_growth_inside_1_last_x128=parse_uint256(result[9]),
            tokens_owed_0=parse_uint128(result[10]),
            tokens_owed_1=parse_uint128(result[11]),
            pool_id=pool_id.lower(),
            owner=owner.lower(),
        )
