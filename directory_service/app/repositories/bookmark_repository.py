from __future__ import annotations

from datetime import datetime, timezone

from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from zkbug_common.mongo.errors import describe_duplicate_key

from ..exceptions import ConflictError
from .documents.bookmark_document import BookmarkDocument
from .interfaces import BookmarkRepositoryInterface
from ..models.bookmark import Bookmark


class BookmarkRepository(BookmarkRepositoryInterface):
    """bookmarks 컬렉션에 대한 MongoDB 접근 레이어.

    (user_id, post_id) 유니크 인덱스가 중복 북마크를 막는다.
    """

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["bookmarks"]

    def create(self, user_id: str, post_id: str) -> Bookmark:
        now = datetime.now(timezone.utc)
        doc = BookmarkDocument.from_domain(
            Bookmark(user_id=user_id, post_id=post_id, created_at=now)
        )
        payload = doc.to_mongo_record()
        try:
            result = self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ConflictError(describe_duplicate_key(exc)) from exc

        payload["_id"] = result.inserted_id
        return BookmarkDocument.model_validate(payload).to_domain()

    def delete(self, user_id: str, post_id: str) -> bool:
        result = self._col.delete_one({"user_id": user_id, "post_id": post_id})
        return result.deleted_count > 0

    def exists(self, user_id: str, post_id: str) -> bool:
        found = self._col.find_one(
            {"user_id": user_id, "post_id": post_id}, {"_id": 1}
        )
        return found is not None

    def list_by_user(self, user_id: str) -> list[Bookmark]:
        cursor = self._col.find(
            {"user_id": user_id},
            sort=[("created_at", 1), ("_id", 1)],
        )

        items: list[Bookmark] = []
        for raw in cursor:
            items.append(BookmarkDocument.model_validate(raw).to_domain())
        return items

    def delete_all_by_user(self, user_id: str) -> int:
        result = self._col.delete_many({"user_id": user_id})
        return result.deleted_count

    def delete_all_by_post(self, post_id: str) -> int:
        result = self._col.delete_many({"post_id": post_id})
        return result.deleted_count
