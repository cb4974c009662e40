from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from zkbug_common.models.post import SortOrder
from zkbug_common.models.user import User
from zkbug_common.mongo.errors import describe_duplicate_key
from zkbug_common.mongo.types import try_object_id

from ..exceptions import ConflictError
from .documents.user_document import UserDocument
from .interfaces import UserRepositoryInterface


class UserRepository(UserRepositoryInterface):
    """users 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["users"]

    @staticmethod
    def _from_document(doc: dict) -> User:
        document = UserDocument.model_validate(doc)
        return document.to_domain()

    def insert(self, user: User) -> User:
        now = datetime.now(timezone.utc)
        user.created_at = now
        user.updated_at = now

        document = UserDocument.from_domain(user)
        payload = document.to_mongo_record()
        try:
            result = self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ConflictError(describe_duplicate_key(exc)) from exc

        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def find_by_id(self, id_value: str) -> User | None:
        oid = try_object_id(id_value)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_email(self, email: str) -> User | None:
        doc = self._col.find_one({"email": email})
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_valid_reset_token(self, token: str, now: datetime) -> User | None:
        doc = self._col.find_one(
            {
                "reset_password_token": token,
                "reset_password_expires_at": {"$gt": now},
            }
        )
        if not doc:
            return None
        return self._from_document(doc)

    def update_fields(self, id_value: str, updates: dict[str, Any]) -> User | None:
        oid = try_object_id(id_value)
        if oid is None:
            return None

        set_doc: dict[str, Any] = {"updated_at": datetime.now(timezone.utc)}
        set_doc.update(updates)
        try:
            doc = self._col.find_one_and_update(
                {"_id": oid},
                {"$set": set_doc},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as exc:
            raise ConflictError(describe_duplicate_key(exc)) from exc

        if not doc:
            return None
        return self._from_document(doc)

    def delete_by_id(self, id_value: str) -> bool:
        """id 기준으로 유저 도큐먼트를 삭제한다.

        - 삭제된 도큐먼트가 있으면 True, 없으면 False 를 반환한다.
        """

        oid = try_object_id(id_value)
        if oid is None:
            return False
        result = self._col.delete_one({"_id": oid})
        return result.deleted_count > 0

    def list(self, start_index: int, limit: int, order: SortOrder) -> list[User]:
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
