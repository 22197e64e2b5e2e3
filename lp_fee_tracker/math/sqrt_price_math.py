"""
Sqrt Price Math - sqrtPriceX96 → 가격

    price = (sqrtPriceX96 / 2^96)^2 × 10^(decimals0 - decimals1)

결과는 token0 1개당 token1 수량. float 대신 Decimal을 사용해
TORUS/TITANX처럼 가격 차이가 큰 풀에서도 자릿수를 잃지 않는다.
"""

from decimal import Decimal, localcontext

from ..constants import Q96


def sqrt_price_x96_to_price(sqrt_price_x96: int, decimals0: int = 18, decimals1: int = 18) -> Decimal:
    """sqrtPriceX96을 human-readable 가격(token1 / token0)으로 변환

    >>> sqrt_price_x96_to_price(2 * 2 ** 96)
    Decimal('4')
    """
    with localcontext() as ctx:
        ctx.prec = 60
        raw = Decimal(sqrt_price_x96 * sqrt_price_x96) / Decimal(Q96 * Q96)
        return (raw.scaleb(decimals0 - decimals1)).normalize()
