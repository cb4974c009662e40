from __future__ import annotations

from pymongo.errors import DuplicateKeyError


def describe_duplicate_key(exc: DuplicateKeyError) -> str:
    """DuplicateKeyError 에서 충돌한 필드 이름을 뽑아 사람이 읽을 수 있는 메시지로 만든다.

    예: ``duplicate key: title``
    """

    details = exc.details or {}
    key_value = details.get("keyValue") or details.get("keyPattern") or {}
    if isinstance(key_value, dict) and key_value:
        fields = ", ".join(str(k) for k in key_value.keys())
        return f"duplicate key: {fields}"
    return "duplicate key"
