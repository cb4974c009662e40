from __future__ import annotations

from zkbug_common.mongo.types import BaseDocument, from_object_id
from ...models.bookmark import Bookmark


class BookmarkDocument(BaseDocument):
    """MongoDB bookmarks 컬렉션 도큐먼트 모델."""

    user_id: str
    post_id: str

    @classmethod
    def from_domain(cls, bookmark: Bookmark) -> "BookmarkDocument":
        data = {
            "user_id": bookmark.user_id,
            "post_id": bookmark.post_id,
            "created_at": bookmark.created_at,
            "updated_at": bookmark.created_at,
        }
        return cls.model_validate(data)

    def to_domain(self) -> Bookmark:
        return Bookmark(
            id=from_object_id(self.id),
            user_id=self.user_id,
            post_id=self.post_id,
            created_at=self.created_at,
        )
