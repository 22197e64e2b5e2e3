"""
uint256 산술 헬퍼

Solidity의 unchecked 블록처럼 2^256 모듈러 연산을 흉내냅니다.
fee growth 값끼리의 뺄셈은 모두 wrapping_sub를 거쳐야 합니다.
"""

from decimal import Decimal
from typing import Union

from ..constants import UINT256_MOD, UINT128_MOD
from ..exceptions import InvalidUint256Error

UintLike = Union[int, str, Decimal]


def wrapping_sub(a: int, b: int) -> int:
    """(a - b) mod 2^256

    >>> wrapping_sub(5, 2 ** 256 - 3)
    8
    """
    return (a - b) % UINT256_MOD


def _parse_unsigned(value: UintLike, modulus: int, type_name: str) -> int:
    if value is None:
        raise InvalidUint256Error(f"missing {type_name} value")
    # bool은 int의 하위 클래스이므로 먼저 거른다
    if isinstance(value, bool):
        raise InvalidUint256Error(f"{type_name} value must not be a bool")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise InvalidUint256Error(f"empty {type_name} string")
        try:
            parsed = int(raw, 16) if raw.lower().startswith("0x") else int(raw)
        except ValueError:
            raise InvalidUint256Error(f"cannot parse {type_name} from {value!r}") from None
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidUint256Error(f"{type_name} decimal must be integral, got {value}")
        parsed = int(value)
    else:
        raise InvalidUint256Error(f"unsupported {type_name} type: {type(value).__name__}")

    if parsed < 0:
        raise InvalidUint256Error(f"{type_name} must be non-negative, got {parsed}")
    if parsed >= modulus:
        raise InvalidUint256Error(f"{type_name} overflow: {parsed}")
    return parsed


def parse_uint256(value: UintLike) -> int:
    """int / 10진 문자열 / 0x 16진 문자열 / 정수 Decimal을 uint256으로 변환

    Raises:
        InvalidUint256Error: None, 빈 문자열, 음수, 2^256 이상, 소수 Decimal
    """
    return _parse_unsigned(value, UINT256_MOD, "uint256")


def parse_uint128(value: UintLike) -> int:
    """유동성, tokensOwed 같은 uint128 필드 파싱"""
    return _parse_unsigned(value, UINT128_MOD, "uint128")


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a × b / denominator)

    Python int는 임의 정밀도이므로 중간 곱에서 오버플로우가 없다.
    """
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    return (a * b) // denominator


def require_uint256(value: int, name: str = "value") -> int:
    """이미 정수인 fee growth 입력이 uint256 범위인지 확인

    parse_uint256과 달리 문자열을 받지 않는다. 범위 밖의 값을 mod 2^256으로
    조용히 줄이지 않고 InvalidUint256Error를 올린다.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidUint256Error(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value < UINT256_MOD:
        raise InvalidUint256Error(f"{name} out of uint256 range: {value}")
    return value
