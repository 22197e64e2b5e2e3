"""
Protocol Day 계산

프로토콜 데이는 컨트랙트 시작 시각(UTC 18:00)부터 24시간 단위로 증가하는 리포팅용 카운터.
AMM 수수료 계산과는 무관하다.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

from .constants import CONTRACT_START_DATE, SECONDS_PER_DAY

Timestamp = Union[int, float, datetime]


def _to_datetime(timestamp: Timestamp) -> datetime:
    if isinstance(timestamp, datetime):
        # naive datetime은 UTC로 간주
        return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def get_protocol_day(timestamp: Timestamp, start: datetime = CONTRACT_START_DATE) -> int:
    """Unix timestamp(초) 또는 datetime이 속한 프로토콜 데이 (1부터 시작)

    시작 시각 이전은 모두 1일로 취급한다.
    """
    elapsed = (_to_datetime(timestamp) - start).total_seconds()
    return max(1, int(elapsed // SECONDS_PER_DAY) + 1)


def protocol_day_start(day: int, start: datetime = CONTRACT_START_DATE) -> datetime:
    """프로토콜 데이가 시작되는 UTC 시각"""
    if day < 1:
        raise ValueError(f"protocol day must be >= 1, got {day}")
    return start + timedelta(days=day - 1)


def current_protocol_day(now: Optional[datetime] = None) -> int:
    return get_protocol_day(now or datetime.now(timezone.utc))
