from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Annotated

from pydantic.functional_serializers import PlainSerializer


def serialize_datetime_to_utc_iso8601(value: datetime) -> str:
    """모든 datetime을 UTC 기준 ISO8601(+타임존) 문자열로 직렬화한다."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


UtcDateTime = Annotated[
    datetime,
    PlainSerializer(
        serialize_datetime_to_utc_iso8601,
        return_type=str,
        when_used="json",
    ),
]


def one_month_before(now: datetime) -> datetime:
    """now 의 월(month) 값에서 1을 뺀 날짜의 UTC 자정을 반환한다.

    일(day)이 해당 월의 범위를 넘으면 다음 달로 넘긴다.
    예: 3월 31일 -> "2월 31일" -> 3월 3일(평년)
    """

    year, month = now.year, now.month - 1
    if month == 0:
        year -= 1
        month = 12
    return datetime(year, month, 1, tzinfo=timezone.utc) + timedelta(days=now.day - 1)
