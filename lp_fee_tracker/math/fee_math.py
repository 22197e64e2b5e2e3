"""
Fee Math - 백서 기반 수수료 계산

Uniswap V3 백서 Section 6.3, 6.4의 공식을 uint256 랩어라운드 의미 그대로 구현.
모든 fee growth 뺄셈은 wrapping_sub(2^256 모듈러)를 사용합니다.

핵심 공식:
    f_b(i) = f_o(i)        if i_c >= i else f_g - f_o(i)  # 틱 i 아래 수수료
    f_a(i) = f_o(i)        if i_c < i  else f_g - f_o(i)  # 틱 i 위 수수료
    f_r = f_g - f_b(i_l) - f_a(i_u)                       # 범위 내 수수료
    f_u = floor(l × (f_r(t_1) - f_r(t_0)) / 2^128)        # 미수령 수수료

sanity ceiling:
    아직 동기화 중인 노드나 서브그래프에서 읽은 틱 스냅샷은 가끔 2^256에 가까운
    delta를 만든다. 이런 delta는 실제 수수료가 아니므로 0으로 처리하고 경고를 남긴다.
"""

import logging
from decimal import Decimal, localcontext
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Tuple

from ..constants import Q128, MAX_REASONABLE_DELTA, MIN_TICK, MAX_TICK, UINT128_MOD
from ..exceptions import InvalidTickRangeError, NegativeLiquidityError, InvalidUint256Error
from .uint256 import wrapping_sub, mul_div, require_uint256

if TYPE_CHECKING:
    from ..data.types import PoolSnapshot, TickSnapshot, PositionSnapshot

logger = logging.getLogger(__name__)


class RangeStatus(str, Enum):
    """현재 틱 기준 포지션 위치"""
    BELOW = "below"
    IN_RANGE = "in_range"
    ABOVE = "above"


class FeeGrowthInside(NamedTuple):
    """두 토큰의 범위 내 fee growth (Q128)"""
    fee_growth_inside_0: int
    fee_growth_inside_1: int


class UncollectedAmount(NamedTuple):
    """단일 토큰 미수령 수수료 계산 결과"""
    amount: int  # 토큰 최소 단위
    delta: int  # f_r(t_1) - f_r(t_0), 랩어라운드 적용
    clamped: bool  # sanity ceiling에 걸려 0으로 처리됐는지 여부


class FeeCalculationResult(NamedTuple):
    """수수료 계산 결과"""
    uncollected_fees_0: int  # token0 미수령 수수료 (최소 단위)
    uncollected_fees_1: int  # token1 미수령 수수료 (최소 단위)
    fee_growth_inside_0: int  # 현재 범위 내 fee growth token0
    fee_growth_inside_1: int  # 현재 범위 내 fee growth token1
    clamped_0: bool
    clamped_1: bool
    range_status: RangeStatus


def validate_tick_range(tick_lower: int, tick_upper: int) -> None:
    """포지션 틱 범위 검증

    Raises:
        InvalidTickRangeError: tick_lower >= tick_upper 이거나 [MIN_TICK, MAX_TICK] 밖
    """
    if tick_lower >= tick_upper:
        raise InvalidTickRangeError(tick_lower, tick_upper)
    if tick_lower < MIN_TICK:
        raise InvalidTickRangeError(
            tick_lower, tick_upper, f"tick_lower({tick_lower}) is below MIN_TICK({MIN_TICK})"
        )
    if tick_upper > MAX_TICK:
        raise InvalidTickRangeError(
            tick_lower, tick_upper, f"tick_upper({tick_upper}) is above MAX_TICK({MAX_TICK})"
        )


def range_status(current_tick: int, tick_lower: int, tick_upper: int) -> RangeStatus:
    """포지션이 현재 가격 아래/범위 내/위 중 어디에 있는지

    범위 내 조건은 컨트랙트와 동일하게 tick_lower <= i_c < tick_upper.
    """
    if current_tick < tick_lower:
        return RangeStatus.BELOW
    if current_tick < tick_upper:
        return RangeStatus.IN_RANGE
    return RangeStatus.ABOVE


def fee_growth_below(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 아래에서 발생한 수수료 성장률 (f_b)

    백서 Section 6.3 공식:
        f_b(i) = f_o(i)        if i_c >= i
        f_b(i) = f_g - f_o(i)  if i_c < i
    """
    require_uint256(fee_growth_global, "fee_growth_global")
    require_uint256(fee_growth_outside, "fee_growth_outside")
    if current_tick >= tick_idx:
        return fee_growth_outside
    return wrapping_sub(fee_growth_global, fee_growth_outside)


def fee_growth_above(
    tick_idx: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside: int
) -> int:
    """틱 위에서 발생한 수수료 성장률 (f_a)

    백서 Section 6.3 공식:
        f_a(i) = f_o(i)        if i_c < i
        f_a(i) = f_g - f_o(i)  if i_c >= i
    """
    require_uint256(fee_growth_global, "fee_growth_global")
    require_uint256(fee_growth_outside, "fee_growth_outside")
    if current_tick < tick_idx:
        return fee_growth_outside
    return wrapping_sub(fee_growth_global, fee_growth_outside)


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global: int,
    fee_growth_outside_lower: int,
    fee_growth_outside_upper: int
) -> int:
    """범위 내 fee growth 계산 (f_r)

    백서 Section 6.3 공식:
        f_r = f_g - f_b(i_l) - f_a(i_u)

    각 뺄셈은 왼쪽부터 독립적으로 랩어라운드된다.

    Args:
        tick_lower: 하한 틱 (i_l)
        tick_upper: 상한 틱 (i_u)
        current_tick: 현재 틱 (i_c)
        fee_growth_global: 전역 fee growth (f_g)
        fee_growth_outside_lower: 하한 틱의 fee growth outside (f_o(i_l))
        fee_growth_outside_upper: 상한 틱의 fee growth outside (f_o(i_u))

    Returns:
        범위 내 fee growth (f_r), 0 <= f_r < 2^256

    Raises:
        InvalidTickRangeError: tick_lower >= tick_upper
        InvalidUint256Error: fee growth 입력이 uint256 범위 밖
    """
    validate_tick_range(tick_lower, tick_upper)

    f_b = fee_growth_below(tick_lower, current_tick, fee_growth_global, fee_growth_outside_lower)
    f_a = fee_growth_above(tick_upper, current_tick, fee_growth_global, fee_growth_outside_upper)

    return wrapping_sub(wrapping_sub(fee_growth_global, f_b), f_a)


def fee_growth_inside_both_tokens(
    pool: "PoolSnapshot",
    lower: "TickSnapshot",
    upper: "TickSnapshot",
) -> FeeGrowthInside:
    """Pool / 경계 틱 스냅샷으로부터 token0, token1의 f_r 계산"""
    return FeeGrowthInside(
        fee_growth_inside_0=fee_growth_inside(
            lower.tick_idx, upper.tick_idx, pool.tick,
            pool.fee_growth_global_0_x128,
            lower.fee_growth_outside_0_x128,
            upper.fee_growth_outside_0_x128,
        ),
        fee_growth_inside_1=fee_growth_inside(
            lower.tick_idx, upper.tick_idx, pool.tick,
            pool.fee_growth_global_1_x128,
            lower.fee_growth_outside_1_x128,
            upper.fee_growth_outside_1_x128,
        ),
    )


def calculate_uncollected_fees(
    liquidity: int,
    fee_growth_inside_current: int,
    fee_growth_inside_last: int,
    sanity_ceiling: int = MAX_REASONABLE_DELTA
) -> UncollectedAmount:
    """미수령 수수료 계산 (f_u)

    백서 Section 6.4.1 공식:
        f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128

    Args:
        liquidity: 포지션 유동성 (l, uint128)
        fee_growth_inside_current: 현재 범위 내 fee growth (f_r(t_1))
        fee_growth_inside_last: 마지막 업데이트 시 fee growth (f_r(t_0))
        sanity_ceiling: 이 값 이상의 delta는 가짜 랩어라운드로 보고 0 처리

    Returns:
        UncollectedAmount (토큰 최소 단위)

    Raises:
        NegativeLiquidityError: liquidity < 0
        InvalidUint256Error: liquidity >= 2^128 또는 fee growth가 uint256 범위 밖
    """
    if liquidity < 0:
        raise NegativeLiquidityError(liquidity)
    if liquidity >= UINT128_MOD:
        raise InvalidUint256Error(f"liquidity exceeds uint128: {liquidity}")
    require_uint256(fee_growth_inside_current, "fee_growth_inside_current")
    require_uint256(fee_growth_inside_last, "fee_growth_inside_last")

    delta = wrapping_sub(fee_growth_inside_current, fee_growth_inside_last)

    if liquidity == 0:
        return UncollectedAmount(amount=0, delta=delta, clamped=False)

    if delta >= sanity_ceiling:
        logger.warning(
            "fee growth delta %d exceeds sanity ceiling 2^%d; treating as spurious wraparound",
            delta, sanity_ceiling.bit_length() - 1,
        )
        return UncollectedAmount(amount=0, delta=delta, clamped=True)

    return UncollectedAmount(amount=mul_div(liquidity, delta, Q128), delta=delta, clamped=False)


def calculate_uncollected_fees_both_tokens(
    pool: "PoolSnapshot",
    lower: "TickSnapshot",
    upper: "TickSnapshot",
    position: "PositionSnapshot",
    sanity_ceiling: int = MAX_REASONABLE_DELTA
) -> FeeCalculationResult:
    """두 토큰의 미수령 수수료 계산

    필수 데이터:
    - Global: f_g,0, f_g,1, i_c (PoolSnapshot)
    - Lower/Upper tick: f_o,0, f_o,1 (TickSnapshot × 2)
    - Position: l, f_r,0(t_0), f_r,1(t_0) (PositionSnapshot)

    tokensOwed는 더하지 않는다. 표시용 합계는 total_claimable을 사용.
    """
    if (lower.tick_idx, upper.tick_idx) != (position.tick_lower, position.tick_upper):
        raise InvalidTickRangeError(
            position.tick_lower, position.tick_upper,
            f"tick snapshots ({lower.tick_idx}, {upper.tick_idx}) do not match position range "
            f"({position.tick_lower}, {position.tick_upper})"
        )

    # Step 1: 현재 범위 내 fee growth 계산 (f_r(t_1))
    inside = fee_growth_inside_both_tokens(pool, lower, upper)

    # Step 2: 미수령 수수료 계산 (f_u)
    fees_0 = calculate_uncollected_fees(
        position.liquidity,
        inside.fee_growth_inside_0,
        position.fee_growth_inside_0_last_x128,
        sanity_ceiling,
    )
    fees_1 = calculate_uncollected_fees(
        position.liquidity,
        inside.fee_growth_inside_1,
        position.fee_growth_inside_1_last_x128,
        sanity_ceiling,
    )

    return FeeCalculationResult(
        uncollected_fees_0=fees_0.amount,
        uncollected_fees_1=fees_1.amount,
        fee_growth_inside_0=inside.fee_growth_inside_0,
        fee_growth_inside_1=inside.fee_growth_inside_1,
        clamped_0=fees_0.clamped,
        clamped_1=fees_1.clamped,
        range_status=range_status(pool.tick, position.tick_lower, position.tick_upper),
    )


def total_claimable(result: FeeCalculationResult, position: "PositionSnapshot") -> Tuple[int, int]:
    """표시용 청구 가능 합계 = 미수령 수수료 + tokensOwed"""
    return (
        result.uncollected_fees_0 + position.tokens_owed_0,
        result.uncollected_fees_1 + position.tokens_owed_1,
    )


def format_token_amount(amount: int, decimals: int = 18) -> Decimal:
    """토큰 최소 단위 정수를 Decimal 토큰 수량으로 변환 (정밀도 손실 없음)"""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(amount).scaleb(-decimals)
