from __future__ import annotations

from pydantic import Field

from zkbug_common.types.datetime import UtcDateTime

from ...models.bookmark import Bookmark
from .common import ApiModel


class BookmarkAddRequest(ApiModel):
    post_id: str | None = Field(default=None, alias="postId")


class BookmarkResponse(ApiModel):
    id: str | None = Field(alias="_id")
    user_id: str = Field(alias="userId")
    post_id: str = Field(alias="postId")
    created_at: UtcDateTime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, bookmark: Bookmark) -> "BookmarkResponse":
        return cls.model_validate(bookmark.model_dump())


class BookmarkAddedResponse(ApiModel):
    message: str
    bookmark: BookmarkResponse


class BookmarkStatusResponse(ApiModel):
    is_bookmarked: bool = Field(alias="isBookmarked")
