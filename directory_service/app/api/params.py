from __future__ import annotations

from typing import Optional

from zkbug_common.models.post import SortOrder


def parse_int_param(value: Optional[str], default: int) -> int:
    """쿼리 문자열 정수 파싱. 비어 있거나 숫자가 아니면 default."""

    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def parse_order_param(value: Optional[str]) -> SortOrder:
    return SortOrder.ASC if value == "asc" else SortOrder.DESC
