from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from zkbug_common.models.post import (
    ListPostsFilter,
    Post,
    PostStats,
    Severity,
    SeverityCounts,
    SortOrder,
)
from zkbug_common.mongo.errors import describe_duplicate_key
from zkbug_common.mongo.types import try_object_id

from ..exceptions import ConflictError
from .documents.post_document import PostDocument
from .interfaces import PostRepositoryInterface


DEFAULT_PAGE_LIMIT = 9


def _contains_ignore_case(value: str) -> dict[str, Any]:
    """부분 문자열 검색용 정규식 조건. 사용자 입력은 리터럴로 취급한다."""

    return {"$regex": re.escape(value), "$options": "i"}


def _split_csv(values: list[str]) -> list[str]:
    result: list[str] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part:
                result.append(part)
    return result


def build_posts_filter(flt: ListPostsFilter) -> dict[str, Any] | None:
    """ListPostsFilter 를 Mongo 필터 도큐먼트로 변환한다.

    post_id 가 ObjectId 형식이 아니면 어떤 도큐먼트와도 일치할 수 없으므로 None 을 반환한다.
    """

    filter_doc: dict[str, Any] = {}

    if flt.user_id:
        filter_doc["user_id"] = flt.user_id
    if flt.category:
        filter_doc["category"] = flt.category
    if flt.slug:
        filter_doc["slug"] = flt.slug
    if flt.post_id:
        oid = try_object_id(flt.post_id)
        if oid is None:
            return None
        filter_doc["_id"] = oid

    if flt.audit_firm:
        filter_doc["audit_firm"] = flt.audit_firm
    if flt.report_source:
        filter_doc["report_source.name"] = flt.report_source
    if flt.protocol:
        filter_doc["protocol.name"] = flt.protocol
    if flt.protocol_type:
        filter_doc["protocol.type"] = flt.protocol_type.upper()
    if flt.severity:
        filter_doc["severity"] = flt.severity.lower()
    if flt.difficulty:
        filter_doc["difficulty"] = flt.difficulty.lower()

    tags = _split_csv(flt.tags)
    if tags:
        filter_doc["tags"] = {"$in": tags}
    frameworks = _split_csv(flt.frameworks)
    if frameworks:
        filter_doc["frameworks"] = {"$in": frameworks}

    if flt.search_term:
        pattern = _contains_ignore_case(flt.search_term)
        filter_doc["$or"] = [{"title": pattern}, {"content": pattern}]

    return filter_doc


def build_posts_sort(order: SortOrder) -> list[tuple[str, int]]:
    # updated_at 이 같으면 _id 로 정렬해 페이지 경계가 흔들리지 않게 한다.
    direction = ASCENDING if order == SortOrder.ASC else DESCENDING
    return [("updated_at", direction), ("_id", direction)]


def normalize_page(start_index: int, limit: int) -> tuple[int, int]:
    if start_index < 0:
        start_index = 0
    if limit <= 0:
        limit = DEFAULT_PAGE_LIMIT
    return start_index, limit


class PostRepository(PostRepositoryInterface):
    """posts 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._db = database
        self._col = database["posts"]

    # --- helpers -----------------------------------------------------------------
    @staticmethod
    def _from_document(doc: dict) -> Post:
        return PostDocument.model_validate(doc).to_domain()

    # --- commands ----------------------------------------------------------------
    def insert(self, post: Post) -> Post:
        """새 포스트를 삽입하고 id/타임스탬프가 채워진 포스트를 반환한다."""

        now = datetime.now(timezone.utc)
        payload = PostDocument.from_domain(post, now).to_mongo_record()
        try:
            result = self._col.insert_one(payload)
        except DuplicateKeyError as exc:
            raise ConflictError(describe_duplicate_key(exc)) from exc

        payload["_id"] = result.inserted_id
        return self._from_document(payload)

    def update_fields(self, id_value: str, updates: dict[str, Any]) -> Post | None:
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
        oid = try_object_id(id_value)
        if oid is None:
            return False
        result = self._col.delete_one({"_id": oid})
        return result.deleted_count > 0

    def delete_owned(self, ids: list[str], user_id: str) -> list[str]:
        oids = [oid for oid in (try_object_id(v) for v in ids) if oid is not None]
        if not oids:
            return []

        query = {"_id": {"$in": oids}, "user_id": user_id}
        owned = [str(doc["_id"]) for doc in self._col.find(query, {"_id": 1})]
        if owned:
            self._col.delete_many(query)
        return owned

    # --- queries -----------------------------------------------------------------
    def find_by_id(self, id_value: str) -> Post | None:
        oid = try_object_id(id_value)
        if oid is None:
            return None
        doc = self._col.find_one({"_id": oid})
        if not doc:
            return None
        return self._from_document(doc)

    def find_by_slug(self, slug: str) -> Post | None:
        doc = self._col.find_one({"slug": slug})
        if not doc:
            return None
        return self._from_document(doc)

    def list(self, flt: ListPostsFilter) -> list[Post]:
        """필터/정렬/페이지네이션 기준으로 포스트 목록을 반환한다."""

        filter_doc = build_posts_filter(flt)
        if filter_doc is None:
            return []

        skip, limit = normalize_page(flt.start_index, flt.limit)
        cursor = self._col.find(
            filter_doc,
            sort=build_posts_sort(flt.order),
            skip=skip,
            limit=limit,
        )
        return [self._from_document(doc) for doc in cursor]

    def list_by_ids(self, ids: list[str]) -> list[Post]:
        oids = [oid for oid in (try_object_id(v) for v in ids) if oid is not None]
        if not oids:
            return []
        cursor = self._col.find({"_id": {"$in": oids}})
        return [self._from_document(doc) for doc in cursor]

    def count_all(self) -> int:
        return self._col.count_documents({})

    def count_created_since(self, since: datetime) -> int:
        return self._col.count_documents({"created_at": {"$gte": since}})

    def find_related(self, post: Post, limit: int) -> list[Post]:
        """같은 프로토콜이거나 태그가 겹치는 다른 포스트를 최대 limit 개 반환한다."""

        oid = try_object_id(post.id)
        conditions: list[dict[str, Any]] = []
        if post.protocol.name:
            conditions.append({"protocol.name": post.protocol.name})
        if post.tags:
            conditions.append({"tags": {"$in": post.tags}})
        if not conditions:
            return []

        query: dict[str, Any] = {"$or": conditions}
        if oid is not None:
            query["_id"] = {"$ne": oid}

        cursor = self._col.find(query, sort=[("created_at", DESCENDING)], limit=limit)
        return [self._from_document(doc) for doc in cursor]

    def list_by_protocol(
        self, protocol_name: str, skip: int, limit: int
    ) -> tuple[list[Post], int]:
        query = {"protocol.name": _contains_ignore_case(protocol_name)}
        total = self._col.count_documents(query)
        cursor = self._col.find(
            query,
            sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
            skip=skip,
            limit=limit,
        )
        return [self._from_document(doc) for doc in cursor], total

    def get_stats(self) -> PostStats:
        total = self._col.count_documents({})
        if total == 0:
            return PostStats()

        counts = {severity.value: 0 for severity in Severity}
        for row in self._col.aggregate(
            [{"$group": {"_id": "$severity", "count": {"$sum": 1}}}]
        ):
            key = row.get("_id")
            if key in counts:
                counts[key] = int(row.get("count", 0))

        return PostStats(
            total_posts=total,
            protocols=sorted(v for v in self._col.distinct("protocol.name") if v),
            protocol_types=sorted(v for v in self._col.distinct("protocol.type") if v),
            severity_counts=SeverityCounts(**counts),
            severities=sorted(v for v in self._col.distinct("severity") if v),
            tags=sorted(v for v in self._col.distinct("tags") if v),
        )

    def distinct_code_languages(self) -> list[str]:
        values = self._col.distinct("code_language")
        return sorted(v for v in values if isinstance(v, str) and v.strip())
