"""
Math layer for LP Fee Tracker

온체인 수준 정밀도의 수학 함수들:
- uint256: 256비트 랩어라운드 연산 및 파싱
- fee_math: 백서 기반 fee growth inside / 미수령 수수료 계산
- tick_math, liquidity_math, sqrt_price_math: 포지션 보유 수량과 가격
"""

from .uint256 import (
    wrapping_sub,
    parse_uint256,
    parse_uint128,
    mul_div,
    require_uint256,
)
from .fee_math import (
    RangeStatus,
    FeeGrowthInside,
    UncollectedAmount,
    FeeCalculationResult,
    range_status,
    fee_growth_inside,
    fee_growth_inside_both_tokens,
    calculate_uncollected_fees,
    calculate_uncollected_fees_both_tokens,
    total_claimable,
)
from .tick_math import get_sqrt_ratio_at_tick, MIN_SQRT_RATIO, MAX_SQRT_RATIO
from .liquidity_math import get_amounts_for_liquidity, position_token_amounts
from .sqrt_price_math import sqrt_price_x96_to_price
