from __future__ import annotations

from datetime import datetime, timezone

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database

from zkbug_common.models.post import SortOrder
from zkbug_common.mongo.types import try_object_id

from .documents.comment_document import CommentDocument
from .interfaces import CommentRepositoryInterface
from ..models.comment import Comment


class CommentRepository(CommentRepositoryInterface):
    """comments 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["comments"]

    @staticmethod
    def _from_document(doc: dict) -> Comment:
        return CommentDocument.model_validate(doc).to_domain()

    def insert(self, comment: Comment) -> Comment:
        now = datetime.now(timezone.utc)
        comment.created_at = now
        comment.updated_at = now

        payload = CommentDocument.from_domain(comment).to_mongo_record()
        result = self._col.insert_one(payload)
        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def find_by_id(self, id_value: str) -> Comment | None:
        oid = try_object_id(id_value)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        if not doc:
            return None
        return self._from_document(doc)

    def toggle_like(self, id_value: str, user_id: str) -> Comment | None:
        """좋아요를 토글한다.

        likes 와 number_of_likes 를 한 번의 조건부 update 로 함께 갱신하므로
        동시 요청에서도 number_of_likes == len(likes) 가 유지된다.
        조건이 어긋나면(다른 요청이 먼저 토글) 반대 방향으로 한 번 더 시도한다.
        """

        oid = try_object_id(id_value)
        if oid is None:
            return None

        for _ in range(2):
            now = datetime.now(timezone.utc)
            doc = self._col.find_one_and_update(
                {"_id": oid, "likes": {"$ne": user_id}},
                {
                    "$push": {"likes": user_id},
                    "$inc": {"number_of_likes": 1},
                    "$set": {"updated_at": now},
                },
                return_document=ReturnDocument.AFTER,
            )
            if doc:
                return self._from_document(doc)

            doc = self._col.find_one_and_update(
                {"_id": oid, "likes": user_id},
                {
                    "$pull": {"likes": user_id},
                    "$inc": {"number_of_likes": -1},
                    "$set": {"updated_at": now},
                },
                return_document=ReturnDocument.AFTER,
            )
            if doc:
                return self._from_document(doc)

            if self._col.count_documents({"_id": oid}, limit=1) == 0:
                return None
        return self.find_by_id(id_value)

    def update_content(self, id_value: str, content: str) -> Comment | None:
        oid = try_object_id(id_value)
        if oid is None:
            return None
        doc = self._col.find_one_and_update(
            {"_id": oid},
            {"$set": {"content": content, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        return self._from_document(doc)

    def delete_by_id(self, id_value: str) -> bool:
        oid = try_object_id(id_value)
        if oid is None:
            return False
        result = self._col.delete_one({"_id": oid})
        return result.deleted_count > 0

    def list_by_post(self, post_id: str) -> list[Comment]:
        cursor = self._col.find(
            {"post_id": post_id},
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
        )
        return [self._from_document(doc) for doc in cursor]

    def list(self, start_index: int, limit: int, order: SortOrder) -> list[Comment]:
        direction = ASCENDING if order == SortOrder.ASC else DESCENDING
        cursor = self._col.find(
            {},
            sort=[("created_at", direction), ("_id", direction)],
            skip=start_index,
            limit=limit,
        )
        return [self._from_document(doc) for doc in cursor]

    def count_all(self) -> int:
        return self._col.count_documents({})

    def count_created_since(self, since: datetime) -> int:
        return self._col.count_documents({"created_at": {"$gte": since}})

    def delete_all_by_user(self, user_id: str) -> int:
        result = self._col.delete_many({"user_id": user_id})
        return result.deleted_count

    def delete_all_by_post(self, post_id: str) -> int:
        result = self._col.delete_many({"post_id": post_id})
        return result.deleted_count
