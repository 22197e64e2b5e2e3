"""
Liquidity Math - 유동성 → 보유 토큰 수량

Uniswap V3 Periphery LiquidityAmounts.getAmountsForLiquidity와 같은 계산.
백서 Section 6.2.1:

    Δx = L × (√P_b - √P_a) / (√P_a × √P_b)   # token0
    Δy = L × (√P_b - √P_a)                   # token1

모든 결과는 내림(floor). 포지션을 전부 제거했을 때 받는 양과 같다.
"""

from typing import Tuple

from ..constants import Q96
from .tick_math import get_sqrt_ratio_at_tick


def get_amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """두 sqrt 가격 사이에서 liquidity가 보유하는 token0"""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 == 0:
        raise ZeroDivisionError("sqrt price must be positive")

    numerator = (liquidity << 96) * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96)
    return numerator // sqrt_ratio_b_x96 // sqrt_ratio_a_x96


def get_amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """두 sqrt 가격 사이에서 liquidity가 보유하는 token1"""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return liquidity * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96) // Q96


def get_amounts_for_liquidity(
    sqrt_ratio_x96: int,
    sqrt_ratio_a_x96: int,
    sqrt_ratio_b_x96: int,
    liquidity: int
) -> Tuple[int, int]:
    """현재 가격 기준 포지션이 보유한 (amount0, amount1)

    - 가격이 범위 아래: token0만
    - 범위 안: 양쪽
    - 범위 위: token1만
    """
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96

    if sqrt_ratio_x96 <= sqrt_ratio_a_x96:
        return get_amount0_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity), 0
    if sqrt_ratio_x96 < sqrt_ratio_b_x96:
        return (
            get_amount0_delta(sqrt_ratio_x96, sqrt_ratio_b_x96, liquidity),
            get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_x96, liquidity),
        )
    return 0, get_amount1_delta(sqrt_ratio_a_x96, sqrt_ratio_b_x96, liquidity)


def position_token_amounts(
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
    liquidity: int
) -> Tuple[int, int]:
    """포지션 경계 틱과 풀의 현재 sqrtPriceX96으로 보유 토큰 수량 계산"""
    return get_amounts_for_liquidity(
        sqrt_price_x96,
        get_sqrt_ratio_at_tick(tick_lower),
        get_sqrt_ratio_at_tick(tick_upper),
        liquidity,
    )
