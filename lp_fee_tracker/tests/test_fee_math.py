"""
Fee Math 테스트

백서 Section 6.3, 6.4 기반 수수료 계산 함수들을 테스트합니다.
"""

import logging
from decimal import Decimal

import pytest

from ..math.fee_math import (
    RangeStatus,
    fee_growth_above,
    fee_growth_below,
    fee_growth_inside,
    fee_growth_inside_both_tokens,
    range_status,
    calculate_uncollected_fees,
    calculate_uncollected_fees_both_tokens,
    total_claimable,
    format_token_amount,
)
from ..math.uint256 import wrapping_sub
from ..data.types import TickSnapshot
from ..constants import Q128, UINT256_MOD, MAX_REASONABLE_DELTA
from ..exceptions import InvalidTickRangeError, NegativeLiquidityError, InvalidUint256Error
from .fakes import make_pool, make_position


class TestFeeGrowthAbove:
    """fee_growth_above 테스트 (f_a)"""

    def test_current_tick_above_target(self):
        """현재 틱이 타겟 틱 위에 있을 때: f_a = f_g - f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=150,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700

    def test_current_tick_at_target(self):
        """현재 틱이 타겟 틱과 같을 때: f_a = f_g - f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=100,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700

    def test_current_tick_below_target(self):
        """현재 틱이 타겟 틱 아래에 있을 때: f_a = f_o"""
        result = fee_growth_above(tick_idx=100, current_tick=50,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 300

    def test_wraps_when_outside_exceeds_global(self):
        result = fee_growth_above(tick_idx=100, current_tick=150,
                                  fee_growth_global=5, fee_growth_outside=UINT256_MOD - 3)
        assert result == 8


class TestFeeGrowthBelow:
    """fee_growth_below 테스트 (f_b)"""

    def test_current_tick_above_target(self):
        """현재 틱이 타겟 틱 위에 있을 때: f_b = f_o"""
        result = fee_growth_below(tick_idx=100, current_tick=150,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 300

    def test_current_tick_at_target(self):
        """현재 틱이 타겟 틱과 같을 때: f_b = f_o"""
        result = fee_growth_below(tick_idx=100, current_tick=100,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 300

    def test_current_tick_below_target(self):
        """현재 틱이 타겟 틱 아래에 있을 때: f_b = f_g - f_o"""
        result = fee_growth_below(tick_idx=100, current_tick=50,
                                  fee_growth_global=1000, fee_growth_outside=300)
        assert result == 700

    def test_wraps_when_outside_exceeds_global(self):
        """f_g = 5, f_o = 2^256 - 3 이면 f_b = 8 (음수나 예외가 아님)"""
        result = fee_growth_below(tick_idx=100, current_tick=50,
                                  fee_growth_global=5, fee_growth_outside=UINT256_MOD - 3)
        assert result == 8


class TestFeeGrowthInside:
    """fee_growth_inside 테스트 (f_r)

    f_r = f_g - f_b(i_l) - f_a(i_u)
    """

    def test_current_tick_in_range(self):
        """현재 틱이 범위 내에 있을 때"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=150,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        # f_b = 100, f_a = 200, f_r = 1000 - 100 - 200
        assert result == 700

    def test_current_tick_below_range(self):
        """현재 틱이 범위 아래에 있을 때: f_r = f_o(i_l) - f_o(i_u)"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=50,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        # f_b(100) = 1000 - 100 = 900, f_a(200) = 200
        # f_r = 1000 - 900 - 200 = -100 → 2^256 - 100
        assert result == UINT256_MOD - 100
        assert result == wrapping_sub(100, 200)

    def test_current_tick_above_range(self):
        """현재 틱이 범위 위에 있을 때"""
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=250,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        # f_b(100) = 100, f_a(200) = 1000 - 200 = 800
        assert result == 100

    def test_current_tick_at_upper_is_above_range(self):
        result = fee_growth_inside(
            tick_lower=100, tick_upper=200, current_tick=200,
            fee_growth_global=1000,
            fee_growth_outside_lower=100,
            fee_growth_outside_upper=200
        )
        assert result == 100

    def test_result_stays_within_uint256(self):
        result = fee_growth_inside(
            tick_lower=-10, tick_upper=10, current_tick=-20,
            fee_growth_global=10,
            fee_growth_outside_lower=20,
            fee_growth_outside_upper=5
        )
        assert 0 <= result < UINT256_MOD

    def test_below_range_uses_global_minus_outside_lower(self):
        """i_c = 90000 < i_l = 100000: f_b = f_g - f_o(i_l)"""
        f_g = 5000 * Q128
        f_o_lower = 1200 * Q128
        f_o_upper = 300 * Q128

        assert range_status(90000, 100000, 110000) == RangeStatus.BELOW
        assert fee_growth_below(100000, 90000, f_g, f_o_lower) == f_g - f_o_lower
        assert fee_growth_above(110000, 90000, f_g, f_o_upper) == f_o_upper

        result = fee_growth_inside(100000, 110000, 90000, f_g, f_o_lower, f_o_upper)
        assert result == 900 * Q128

    @pytest.mark.parametrize("tick_lower,tick_upper", [(100, 100), (200, 100)])
    def test_rejects_empty_or_inverted_range(self, tick_lower, tick_upper):
        with pytest.raises(InvalidTickRangeError) as exc_info:
            fee_growth_inside(tick_lower, tick_upper, 150, 1000, 0, 0)
        assert exc_info.value.tick_lower == tick_lower
        assert "must be less than" in str(exc_info.value)

    def test_rejects_ticks_outside_bounds(self):
        with pytest.raises(InvalidTickRangeError, match="MIN_TICK"):
            fee_growth_inside(-900000, 0, 0, 1000, 0, 0)
        with pytest.raises(InvalidTickRangeError, match="MAX_TICK"):
            fee_growth_inside(0, 900000, 0, 1000, 0, 0)

    def test_invalid_range_is_a_value_error(self):
        with pytest.raises(ValueError):
            fee_growth_inside(10, 10, 0, 0, 0, 0)


class TestRangeStatus:

    def test_statuses(self):
        assert range_status(99, 100, 200) == RangeStatus.BELOW
        assert range_status(100, 100, 200) == RangeStatus.IN_RANGE
        assert range_status(199, 100, 200) == RangeStatus.IN_RANGE
        assert range_status(200, 100, 200) == RangeStatus.ABOVE


class TestCalculateUncollectedFees:
    """calculate_uncollected_fees 테스트 (f_u)

    f_u = l × (f_r(t_1) - f_r(t_0)) / 2^128
    """

    def test_basic_calculation(self):
        """liquidity = 10^18, delta = 600 × Q128 → 600 × 10^18"""
        result = calculate_uncollected_fees(10 ** 18, 1000 * Q128, 400 * Q128)
        assert result.amount == 600 * 10 ** 18
        assert result.delta == 600 * Q128
        assert result.clamped is False

    def test_floor_division(self):
        # 3 × (Q128 / 2) / Q128 = 1.5 → 1
        result = calculate_uncollected_fees(3, Q128 // 2, 0)
        assert result.amount == 1

    def test_zero_delta(self):
        """수수료 변화 없음"""
        result = calculate_uncollected_fees(1000000, 100 * Q128, 100 * Q128)
        assert result.amount == 0

    def test_zero_liquidity_short_circuits(self):
        """유동성이 0이면 delta와 무관하게 0 (sanity ceiling 경고도 없음)"""
        result = calculate_uncollected_fees(0, 2 ** 250, 0)
        assert result.amount == 0
        assert result.clamped is False

    def test_wraparound_delta(self):
        """f_r(t_1)이 랩어라운드로 f_r(t_0)보다 작아진 경우"""
        result = calculate_uncollected_fees(2 ** 127, 5, UINT256_MOD - 3)
        assert result.delta == 8
        assert result.amount == 4

    def test_sanity_ceiling_clamps_to_zero(self, caplog):
        """delta = 2^250 이면 천문학적 금액 대신 0 + 경고"""
        with caplog.at_level(logging.WARNING, logger="lp_fee_tracker.math.fee_math"):
            result = calculate_uncollected_fees(10 ** 18, 2 ** 250, 0)
        assert result.amount == 0
        assert result.clamped is True
        assert "sanity ceiling" in caplog.text

    def test_spurious_underflow_is_clamped(self):
        """last > current (가짜 언더플로우)면 delta ≈ 2^256 → 0"""
        result = calculate_uncollected_fees(1000000, 100 * Q128, 200 * Q128)
        assert result.clamped is True
        assert result.amount == 0

    def test_ceiling_boundary(self):
        assert calculate_uncollected_fees(1, MAX_REASONABLE_DELTA, 0).clamped is True
        result = calculate_uncollected_fees(1, MAX_REASONABLE_DELTA - 1, 0)
        assert result.clamped is False
        assert result.amount == 2 ** 72 - 1

    def test_custom_ceiling(self):
        result = calculate_uncollected_fees(1, 2 ** 150, 0, sanity_ceiling=2 ** 140)
        assert result.clamped is True

    def test_negative_liquidity_rejected(self):
        with pytest.raises(NegativeLiquidityError):
            calculate_uncollected_fees(-1, 1000, 0)

    def test_liquidity_above_uint128_rejected(self):
        with pytest.raises(InvalidUint256Error):
            calculate_uncollected_fees(2 ** 128, 1000, 0)


class TestCalculateUncollectedFeesBothTokens:
    """스냅샷 기반 전체 파이프라인"""

    def test_end_to_end_in_range(self):
        pool = make_pool(tick=105000)
        position = make_position(tick_lower=100000, tick_upper=110000)
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        result = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)

        assert result.fee_growth_inside_0 == 1000 * Q128
        assert result.uncollected_fees_0 == 600 * 10 ** 18
        assert result.uncollected_fees_1 == 600 * 10 ** 18
        assert result.range_status == RangeStatus.IN_RANGE
        assert not result.clamped_0 and not result.clamped_1

    def test_idempotent(self):
        pool = make_pool()
        position = make_position()
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        first = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        second = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        assert first == second

    def test_zero_liquidity_position(self):
        pool = make_pool(global_0=2 ** 255, global_1=2 ** 254)
        position = make_position(liquidity=0, last_0=0, last_1=0)
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        result = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        assert (result.uncollected_fees_0, result.uncollected_fees_1) == (0, 0)

    def test_tokens_independent(self):
        pool = make_pool(global_0=1000 * Q128, global_1=500 * Q128)
        position = make_position(last_0=400 * Q128, last_1=450 * Q128)
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        result = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        assert result.uncollected_fees_0 == 600 * 10 ** 18
        assert result.uncollected_fees_1 == 50 * 10 ** 18

    def test_one_token_clamped(self):
        pool = make_pool(global_0=1000 * Q128, global_1=100 * Q128)
        position = make_position(last_0=400 * Q128, last_1=400 * Q128)
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        result = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        assert result.uncollected_fees_0 == 600 * 10 ** 18
        assert result.uncollected_fees_1 == 0
        assert result.clamped_1 is True

    def test_mismatched_tick_snapshots_rejected(self):
        with pytest.raises(InvalidTickRangeError, match="do not match"):
            calculate_uncollected_fees_both_tokens(
                make_pool(), TickSnapshot.empty(0), TickSnapshot.empty(10), make_position()
            )

    def test_fee_growth_inside_both_tokens(self):
        pool = make_pool(tick=105000, global_0=1000, global_1=2000)
        lower = TickSnapshot(tick_idx=100000, fee_growth_outside_0_x128=100, fee_growth_outside_1_x128=200)
        upper = TickSnapshot(tick_idx=110000, fee_growth_outside_0_x128=300, fee_growth_outside_1_x128=400)

        inside = fee_growth_inside_both_tokens(pool, lower, upper)
        assert inside.fee_growth_inside_0 == 600
        assert inside.fee_growth_inside_1 == 1400


class TestTotalClaimable:

    def test_adds_tokens_owed(self):
        pool = make_pool()
        position = make_position(owed_0=10 ** 18, owed_1=5)
        lower, upper = TickSnapshot.empty(100000), TickSnapshot.empty(110000)

        result = calculate_uncollected_fees_both_tokens(pool, lower, upper, position)
        assert total_claimable(result, position) == (601 * 10 ** 18, 600 * 10 ** 18 + 5)
        # 코어 결과에는 tokensOwed가 포함되지 않는다
        assert result.uncollected_fees_0 == 600 * 10 ** 18


class TestFeeGrowthInputRange:
    """fee growth 입력은 uint256 범위여야 한다 (mod 2^256으로 줄이지 않음)"""

    @pytest.mark.parametrize("value", [-1, UINT256_MOD, UINT256_MOD + 5])
    def test_below_and_above_reject_out_of_range(self, value):
        with pytest.raises(InvalidUint256Error):
            fee_growth_below(0, 10, value, 0)
        with pytest.raises(InvalidUint256Error):
            fee_growth_above(0, 10, 0, value)

    def test_inside_rejects_negative_outside(self):
        with pytest.raises(InvalidUint256Error, match="fee_growth_outside"):
            fee_growth_inside(-10, 10, 0, 1000, -3, 0)

    def test_uncollected_rejects_out_of_range(self):
        with pytest.raises(InvalidUint256Error, match="fee_growth_inside_current"):
            calculate_uncollected_fees(1, UINT256_MOD, 0)
        with pytest.raises(InvalidUint256Error, match="fee_growth_inside_last"):
            calculate_uncollected_fees(1, 0, -1)

    def test_rejects_non_int(self):
        with pytest.raises(InvalidUint256Error):
            fee_growth_below(0, 10, "1000", 0)

    def test_max_value_accepted(self):
        assert fee_growth_below(0, -1, UINT256_MOD - 1, 0) == UINT256_MOD - 1


class TestFormatTokenAmount:
    """format_token_amount 테스트"""

    def test_format_token_amount_is_exact(self):
        assert format_token_amount(600 * 10 ** 18, 18) == Decimal("600")
        assert format_token_amount(1, 18) == Decimal("1E-18")
        huge = 2 ** 255 + 1
        assert format_token_amount(huge, 0) == Decimal(huge)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
