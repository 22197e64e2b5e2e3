"""
Liquidity Math / Sqrt Price Math 테스트

백서 Section 6.2.1 보유 토큰 수량 계산과 sqrtPriceX96 → 가격 변환을 테스트합니다.
"""

from decimal import Decimal

import pytest

from ..math.liquidity_math import (
    get_amount0_delta,
    get_amount1_delta,
    get_amounts_for_liquidity,
    position_token_amounts,
)
from ..math.sqrt_price_math import sqrt_price_x96_to_price
from ..math.tick_math import get_sqrt_ratio_at_tick
from ..constants import Q96

L = 10 ** 18


class TestAmountDeltas:
    """get_amount0_delta / get_amount1_delta 테스트"""

    def test_amount0(self):
        """Δx = L × (√P_b - √P_a) / (√P_a × √P_b) = L × (2 - 1) / 2"""
        assert get_amount0_delta(Q96, 2 * Q96, L) == L // 2

    def test_amount1(self):
        """Δy = L × (√P_b - √P_a)"""
        assert get_amount1_delta(Q96, 3 * Q96, L) == 2 * L

    def test_bounds_order_does_not_matter(self):
        assert get_amount0_delta(2 * Q96, Q96, L) == get_amount0_delta(Q96, 2 * Q96, L)
        assert get_amount1_delta(3 * Q96, Q96, L) == get_amount1_delta(Q96, 3 * Q96, L)

    def test_rounds_down(self):
        """1 / 3 → 0"""
        assert get_amount0_delta(Q96, 3 * Q96, 1) == 0

    def test_zero_sqrt_price(self):
        with pytest.raises(ZeroDivisionError):
            get_amount0_delta(0, Q96, L)


class TestGetAmountsForLiquidity:
    """get_amounts_for_liquidity 테스트 (범위 [Q96, 4 × Q96])"""

    def test_in_range(self):
        """√P = 2: amount0 = L × (4 - 2) / 8, amount1 = L × (2 - 1)"""
        amounts = get_amounts_for_liquidity(2 * Q96, Q96, 4 * Q96, L)
        assert amounts == (250000000000000000, L)

    def test_below_range_only_token0(self):
        amount0, amount1 = get_amounts_for_liquidity(Q96 // 2, Q96, 4 * Q96, L)
        assert amount0 == 3 * L // 4
        assert amount1 == 0

    def test_at_lower_bound_only_token0(self):
        assert get_amounts_for_liquidity(Q96, Q96, 4 * Q96, L)[1] == 0

    def test_above_range_only_token1(self):
        assert get_amounts_for_liquidity(8 * Q96, Q96, 4 * Q96, L) == (0, 3 * L)

    def test_at_upper_bound_only_token1(self):
        assert get_amounts_for_liquidity(4 * Q96, Q96, 4 * Q96, L) == (0, 3 * L)

    def test_zero_liquidity(self):
        assert get_amounts_for_liquidity(2 * Q96, Q96, 4 * Q96, 0) == (0, 0)


class TestPositionTokenAmounts:
    """틱 경계로 계산하는 포지션 보유 수량"""

    def test_symmetric_range_at_price_one(self):
        """가격 1, 범위 [-10, 10]: 양쪽 수량이 거의 같다"""
        amount0, amount1 = position_token_amounts(Q96, -10, 10, L)
        assert amount0 > 0 and amount1 > 0
        assert amount0 == pytest.approx(amount1, rel=1e-6)

    def test_uses_tick_bounds(self):
        expected = get_amounts_for_liquidity(
            get_sqrt_ratio_at_tick(105000),
            get_sqrt_ratio_at_tick(100000),
            get_sqrt_ratio_at_tick(110000),
            L,
        )
        assert position_token_amounts(get_sqrt_ratio_at_tick(105000), 100000, 110000, L) == expected


class TestSqrtPriceToPrice:
    """sqrt_price_x96_to_price 테스트"""

    def test_price_one(self):
        assert sqrt_price_x96_to_price(Q96) == Decimal("1")

    def test_price_four(self):
        assert sqrt_price_x96_to_price(2 * Q96) == Decimal("4")

    def test_decimals_adjustment(self):
        """token0 18자리, token1 6자리 → 10^12배"""
        price = sqrt_price_x96_to_price(2 * Q96, 18, 6)
        assert price == Decimal("4E+12")
        assert format(price, "f") == "4000000000000"

    def test_fractional_price(self):
        assert sqrt_price_x96_to_price(Q96 // 2) == Decimal("0.25")

    def test_price_from_tick(self):
        """1.0001^105000 ≈ 36296"""
        price = sqrt_price_x96_to_price(get_sqrt_ratio_at_tick(105000))
        assert Decimal("36290") < price < Decimal("36300")
