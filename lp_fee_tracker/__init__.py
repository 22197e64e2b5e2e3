"""
LP Fee Tracker

Uniswap V3 포지션의 미수령(uncollected) 수수료를 온체인 정밀도로 계산하는 라이브러리.
fee growth 누적값(global / outside / inside)으로부터 포지션별 수수료를 도출합니다.
"""

__version__ = "0.2.0"
__author__ = "Zekiya"

from .constants import Q128, UINT256_MAX, MAX_REASONABLE_DELTA
from .exceptions import (
    FeeTrackerError,
    ValidationError,
    InvalidTickRangeError,
    NegativeLiquidityError,
    InvalidUint256Error,
)
