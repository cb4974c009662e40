from __future__ import annotations

import copy
from typing import Any

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from directory_service.app.exceptions import ConflictError
from directory_service.app.models.comment import Comment
from directory_service.app.repositories.bookmark_repository import BookmarkRepository
from directory_service.app.repositories.comment_repository import CommentRepository


def _field_matches(actual: Any, expected: Any) -> bool:
    if isinstance(expected, dict) and "$ne" in expected:
        if isinstance(actual, list):
            return expected["$ne"] not in actual
        return actual != expected["$ne"]
    if isinstance(actual, list) and not isinstance(expected, list):
        return expected in actual
    return actual == expected


class RecordingCollection:
    """pymongo Collection 중 저장소가 쓰는 메서드만 흉내 내고 호출을 기록한다."""

    def __init__(self, unique_keys: tuple[tuple[str, ...], ...] = ()) -> None:
        self.docs: list[dict[str, Any]] = []
        self.calls: list[tuple[str, dict[str, Any], dict[str, Any] | None]] = []
        self._unique_keys = unique_keys

    def _matches(self, doc: dict[str, Any], flt: dict[str, Any]) -> bool:
        return all(_field_matches(doc.get(k), v) for k, v in flt.items())

    def insert_one(self, payload: dict[str, Any]):
        self.calls.append(("insert_one", payload, None))
        for keys in self._unique_keys:
            for doc in self.docs:
                if all(doc.get(k) == payload.get(k) for k in keys):
                    raise DuplicateKeyError(
                        "E11000 duplicate key error",
                        code=11000,
                        details={"keyValue": {k: payload.get(k) for k in keys}},
                    )
        doc = copy.deepcopy(payload)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)

        class _Result:
            inserted_id = doc["_id"]

        return _Result()

    def find_one(self, flt: dict[str, Any], projection: Any = None):
        self.calls.append(("find_one", flt, None))
        found = next((d for d in self.docs if self._matches(d, flt)), None)
        return copy.deepcopy(found)

    def find_one_and_update(
        self,
        flt: dict[str, Any],
        update: dict[str, Any],
        return_document: Any = ReturnDocument.BEFORE,
    ):
        self.calls.append(("find_one_and_update", flt, update))
        doc = next((d for d in self.docs if self._matches(d, flt)), None)
        if doc is None:
            return None
        for key, value in update.get("$push", {}).items():
            doc.setdefault(key, []).append(value)
        for key, value in update.get("$pull", {}).items():
            doc[key] = [v for v in doc.get(key, []) if v != value]
        for key, value in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + value
        for key, value in update.get("$set", {}).items():
            doc[key] = value
        return copy.deepcopy(doc)

    def count_documents(self, flt: dict[str, Any], limit: int = 0) -> int:
        return sum(1 for d in self.docs if self._matches(d, flt))


class FakeDatabase(dict):
    pass


# --- comments ----------------------------------------------------------------


@pytest.fixture
def comments() -> RecordingCollection:
    return RecordingCollection()


@pytest.fixture
def comment_store(comments) -> CommentRepository:
    return CommentRepository(FakeDatabase(comments=comments))


def test_toggle_like_sends_conditional_updates(comment_store, comments) -> None:
    comment = comment_store.insert(Comment(content="hi", post_id="p1", user_id="u1"))
    comments.calls.clear()

    liked = comment_store.toggle_like(comment.id, "u2")

    oid = ObjectId(comment.id)
    name, flt, update = comments.calls[0]
    assert name == "find_one_and_update"
    assert flt == {"_id": oid, "likes": {"$ne": "u2"}}
    assert update["$push"] == {"likes": "u2"}
    assert update["$inc"] == {"number_of_likes": 1}
    assert liked.likes == ["u2"] and liked.number_of_likes == 1

    comments.calls.clear()
    unliked = comment_store.toggle_like(comment.id, "u2")

    add_call, remove_call = comments.calls[:2]
    assert add_call[1] == {"_id": oid, "likes": {"$ne": "u2"}}
    assert remove_call[1] == {"_id": oid, "likes": "u2"}
    assert remove_call[2]["$pull"] == {"likes": "u2"}
    assert remove_call[2]["$inc"] == {"number_of_likes": -1}
    assert unliked.likes == [] and unliked.number_of_likes == 0


def test_toggle_sequence_keeps_count_equal_to_likes(comment_store) -> None:
    comment = comment_store.insert(Comment(content="hi", post_id="p1", user_id="u1"))

    for user_id in ("a", "b", "a", "c", "b", "b"):
        comment = comment_store.toggle_like(comment.id, user_id)
        assert comment.number_of_likes == len(comment.likes)
        assert len(set(comment.likes)) == len(comment.likes)

    assert sorted(comment.likes) == ["b", "c"]


class RacingCollection(RecordingCollection):
    """첫 조건부 update 직전에 같은 유저의 다른 요청이 먼저 좋아요를 누른 상황."""

    def __init__(self, user_id: str) -> None:
        super().__init__()
        self._racer = user_id
        self._raced = False

    def find_one_and_update(self, flt, update, return_document=ReturnDocument.BEFORE):
        if not self._raced and "$push" in update:
            self._raced = True
            for doc in self.docs:
                doc["likes"].append(self._racer)
                doc["number_of_likes"] += 1
        return super().find_one_and_update(flt, update, return_document)


def test_toggle_like_falls_back_when_another_request_wins() -> None:
    racing = RacingCollection("u2")
    store = CommentRepository(FakeDatabase(comments=racing))
    comment = store.insert(Comment(content="hi", post_id="p1", user_id="u1"))

    result = store.toggle_like(comment.id, "u2")

    assert result.likes == []
    assert result.number_of_likes == 0


def test_toggle_like_on_missing_or_invalid_comment(comment_store) -> None:
    assert comment_store.toggle_like(str(ObjectId()), "u1") is None
    assert comment_store.toggle_like("not-an-object-id", "u1") is None


# --- bookmarks ---------------------------------------------------------------


@pytest.fixture
def bookmarks() -> RecordingCollection:
    return RecordingCollection(unique_keys=(("user_id", "post_id"),))


@pytest.fixture
def bookmark_store(bookmarks) -> BookmarkRepository:
    return BookmarkRepository(FakeDatabase(bookmarks=bookmarks))


def test_bookmark_duplicate_key_becomes_conflict(bookmark_store, bookmarks) -> None:
    created = bookmark_store.create("u1", "p1")

    with pytest.raises(ConflictError) as exc_info:
        bookmark_store.create("u1", "p1")

    assert exc_info.value.status_code == 409
    assert "user_id" in exc_info.value.message and "post_id" in exc_info.value.message
    assert len(bookmarks.docs) == 1
    assert created.id == str(bookmarks.docs[0]["_id"])
    assert bookmarks.calls[0][1]["user_id"] == "u1"
    assert bookmarks.calls[0][1]["post_id"] == "p1"


def test_bookmark_exists_uses_pair_filter(bookmark_store, bookmarks) -> None:
    bookmark_store.create("u1", "p1")

    assert bookmark_store.exists("u1", "p1") is True
    assert bookmark_store.exists("u2", "p1") is False
    assert bookmarks.calls[-1] == ("find_one", {"user_id": "u2", "post_id": "p1"}, None)
