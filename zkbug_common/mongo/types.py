from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.functional_validators import BeforeValidator


def _as_utc(value: datetime) -> datetime:
    # naive 값은 UTC 로 간주한다.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_object_id(value: Any) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if value is None:
        raise TypeError("ObjectId cannot be None")
    return ObjectId(str(value))


def try_object_id(value: Any) -> ObjectId | None:
    """경로/쿼리로 들어온 id 를 ObjectId 로 바꾼다. 형식이 틀리면 None.

    호출 측은 None 을 '없는 도큐먼트'로 취급한다 (빈 목록, NotFound).
    """

    try:
        return _as_object_id(value)
    except (InvalidId, TypeError):
        return None


def from_object_id(value: Optional[ObjectId]) -> Optional[str]:
    return None if value is None else str(value)


PyObjectId = Annotated[ObjectId, BeforeValidator(_as_object_id)]
MongoDateTime = Annotated[datetime, BeforeValidator(_as_utc)]


class BaseDocument(BaseModel):
    """users/posts/comments/bookmarks 도큐먼트의 공통 필드 (_id, 타임스탬프)."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")
    created_at: MongoDateTime
    updated_at: MongoDateTime

    def to_mongo_record(self) -> dict[str, Any]:
        # _id 가 None 이면 빼서 Mongo 가 생성하게 한다. 다른 null 필드는 그대로 저장한다.
        record = self.model_dump(by_alias=True)
        if record.get("_id") is None:
            record.pop("_id", None)
        return record
