"""
Tick Math - 틱 → sqrtPriceX96

Solidity TickMath.getSqrtRatioAtTick()과 같은 정수 연산.
포지션 경계 틱의 sqrt 가격을 구해 보유 토큰 수량 계산에 사용한다.

    sqrtPriceX96 = sqrt(1.0001^tick) × 2^96
"""

from ..constants import MIN_TICK, MAX_TICK
from ..exceptions import InvalidTickRangeError

MIN_SQRT_RATIO: int = 4295128739
MAX_SQRT_RATIO: int = 1461446703485210103287273052203988822378723970342

# |tick|의 비트 i가 켜져 있으면 ratio에 곱하는 Q128 상수 (bit 0 제외)
_BIT_MULTIPLIERS = (
    (0x2, 0xfff97272373d413259a46990580e213a),
    (0x4, 0xfff2e50f5f656932ef12357cf3c7fdcc),
    (0x8, 0xffe5caca7e10e4e61c3624eaa0941cd0),
    (0x10, 0xffcb9843d60f6159c9db58835c926644),
    (0x20, 0xff973b41fa98c081472e6896dfb254c0),
    (0x40, 0xff2ea16466c96a3843ec78b326b52861),
    (0x80, 0xfe5dee046a99a2a811c461f1969c3053),
    (0x100, 0xfcbe86c7900a88aedcffc83b479aa3a4),
    (0x200, 0xf987a7253ac413176f2b074cf7815e54),
    (0x400, 0xf3392b0822b70005940c7a398e4b70f3),
    (0x800, 0xe7159475a2c29b7443b29c7fa6e889d9),
    (0x1000, 0xd097f3bdfd2022b8845ad8f792aa5825),
    (0x2000, 0xa9f746462d870fdf8a65dc1f90e061e5),
    (0x4000, 0x70d869a156d2a1b890bb3df62baf32f7),
    (0x8000, 0x31be135f97d08fd981231505542fcfa6),
    (0x10000, 0x9aa508b5b7a84e1c677de54f3e99bc9),
    (0x20000, 0x5d6af8dedb81196699c329225ee604),
    (0x40000, 0x2216e584f5fa1ea926041bedfe98),
    (0x80000, 0x48a170391f7dc42444e8fa2),
)


def get_sqrt_ratio_at_tick(tick: int) -> int:
    """틱에서 sqrtPriceX96 계산 (Q64.96)

    Raises:
        InvalidTickRangeError: 틱이 [MIN_TICK, MAX_TICK] 밖
    """
    if not MIN_TICK <= tick <= MAX_TICK:
        raise InvalidTickRangeError(
            tick, tick, f"tick {tick} outside [{MIN_TICK}, {MAX_TICK}]"
        )

    abs_tick = abs(tick)
    ratio = 0xfffcb933bd6fad37aa2d162d1a594001 if abs_tick & 0x1 else 1 << 128
    for bit, multiplier in _BIT_MULTIPLIERS:
        if abs_tick & bit:
            ratio = (ratio * multiplier) >> 128

    if tick > 0:
        ratio = ((1 << 256) - 1) // ratio

    # Q128.128 → Q64.96, 올림
    return (ratio >> 32) + (1 if ratio & 0xFFFFFFFF else 0)
