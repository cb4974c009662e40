from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fastapi import Depends
from pymongo.database import Database

from zkbug_common.models.post import (
    DEFAULT_AUDIT_FIRM,
    DEFAULT_CATEGORY,
    DEFAULT_POST_IMAGE,
    Difficulty,
    ListPostsFilter,
    Post,
    PostPage,
    PostStats,
    Protocol,
    ProtocolType,
    ReportSource,
    Severity,
)
from zkbug_common.mongo.client import get_database
from zkbug_common.types.datetime import one_month_before, utc_now

from ..exceptions import ForbiddenError, NotFoundError, ValidationError
from ..importer.normalizer import (
    coerce_protocol_type,
    parse_difficulty,
    parse_severity,
    title_to_slug,
)
from ..models.post_input import PostInput
from ..repositories.bookmark_repository import BookmarkRepository
from ..repositories.comment_repository import CommentRepository
from ..repositories.interfaces import (
    BookmarkRepositoryInterface,
    CommentRepositoryInterface,
    PostRepositoryInterface,
)
from ..repositories.post_repository import PostRepository
from ..security import CurrentUser

logger = logging.getLogger(__name__)

RELATED_POSTS_LIMIT = 3
DEFAULT_PROTOCOL_PAGE_SIZE = 10


@dataclass(slots=True)
class ProtocolPostsPage:
    posts: list[Post]
    current_page: int
    total_pages: int
    total: int


@dataclass(slots=True)
class SearchParams:
    severities: list[str]
    difficulties: list[str]
    protocol_types: list[str]


class PostsService:
    """포스트 조회/검색 및 관리(CRUD) 비즈니스 로직.

    - Repository 인터페이스에만 의존하고, Mongo 세부 구현은 알지 않는다.
    - 생성/수정/삭제는 관리자만 가능하다.
    """

    def __init__(
        self,
        post_repo: PostRepositoryInterface,
        bookmark_repo: BookmarkRepositoryInterface,
        comment_repo: CommentRepositoryInterface,
    ) -> None:
        self._post_repo = post_repo
        self._bookmark_repo = bookmark_repo
        self._comment_repo = comment_repo

    # --- queries -----------------------------------------------------------------
    def list_posts(
        self, filter_: ListPostsFilter, now: datetime | None = None
    ) -> PostPage:
        """필터/정렬/페이지 조건으로 포스트를 조회한다.

        total_posts 와 last_month_posts 는 필터와 무관하게 전체 컬렉션 기준이다.
        """

        posts = self._post_repo.list(filter_)
        since = one_month_before(now or utc_now())
        return PostPage(
            posts=posts,
            total_posts=self._post_repo.count_all(),
            last_month_posts=self._post_repo.count_created_since(since),
        )

    def get_post(self, post_id: str) -> Post:
        post = self._post_repo.find_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def get_post_by_slug(self, slug: str) -> tuple[Post, list[Post]]:
        """슬러그로 포스트를 찾고, 같은 프로토콜/태그를 공유하는 관련 포스트를 함께 반환한다."""

        post = self._post_repo.find_by_slug(slug)
        if post is None:
            raise NotFoundError("Post not found")
        related = self._post_repo.find_related(post, RELATED_POSTS_LIMIT)
        return post, related

    def list_posts_by_protocol(
        self, protocol_name: str, page: int, limit: int
    ) -> ProtocolPostsPage:
        if page <= 0:
            page = 1
        if limit <= 0:
            limit = DEFAULT_PROTOCOL_PAGE_SIZE

        posts, total = self._post_repo.list_by_protocol(
            protocol_name, skip=(page - 1) * limit, limit=limit
        )
        return ProtocolPostsPage(
            posts=posts,
            current_page=page,
            total_pages=math.ceil(total / limit),
            total=total,
        )

    def get_post_stats(self) -> PostStats:
        return self._post_repo.get_stats()

    def list_code_languages(self) -> list[str]:
        return self._post_repo.distinct_code_languages()

    @staticmethod
    def search_params() -> SearchParams:
        return SearchParams(
            severities=[s.value for s in Severity],
            difficulties=[d.value for d in Difficulty],
            protocol_types=[t.value for t in ProtocolType],
        )

    # --- commands ----------------------------------------------------------------
    def create_post(self, caller: CurrentUser, payload: PostInput) -> Post:
        if not caller.is_admin:
            raise ForbiddenError("You are not allowed to create a post")

        if not payload.title or not payload.content:
            raise ValidationError("Please provide all required fields")

        slug = title_to_slug(payload.title)
        if not slug:
            raise ValidationError("title must contain at least one letter or digit")

        post = Post(
            user_id=caller.id,
            title=payload.title,
            slug=slug,
            content=payload.content,
            image=payload.image or DEFAULT_POST_IMAGE,
            category=payload.category or DEFAULT_CATEGORY,
            publish_date=payload.publish_date or utc_now(),
            report_source=payload.report_source or ReportSource(),
            audit_firm=payload.audit_firm or DEFAULT_AUDIT_FIRM,
            protocol=Protocol(
                name=payload.protocol_name or "",
                type=coerce_protocol_type(payload.protocol_type),
            ),
            source=payload.source or "",
            severity=parse_severity(payload.severity),
            difficulty=parse_difficulty(payload.difficulty),
            tags=payload.tags,
            frameworks=payload.frameworks,
            reported_by=payload.reported_by,
            scope=payload.scope,
            finding_id=payload.finding_id or "",
            target_file=payload.target_file or "",
            impact=payload.impact or "",
            recommendation=payload.recommendation or "",
        )

        created = self._post_repo.insert(post)
        logger.info("post created id=%s slug=%s", created.id, created.slug)
        return created

    def update_post(
        self, post_id: str, owner_id: str, caller: CurrentUser, payload: PostInput
    ) -> Post:
        self._ensure_owner_admin(caller, owner_id, "update")

        updates: dict[str, Any] = {
            "image": payload.image or DEFAULT_POST_IMAGE,
            "publish_date": payload.publish_date or utc_now(),
            "report_source": (payload.report_source or ReportSource()).model_dump(),
            "audit_firm": payload.audit_firm or DEFAULT_AUDIT_FIRM,
            "protocol": {
                "name": payload.protocol_name or "",
                "type": coerce_protocol_type(payload.protocol_type).value,
            },
            "severity": parse_severity(payload.severity).value,
            "difficulty": parse_difficulty(payload.difficulty).value,
            "tags": payload.tags,
            "frameworks": payload.frameworks,
            "reported_by": payload.reported_by,
            "scope": [item.model_dump() for item in payload.scope],
            "finding_id": payload.finding_id or "",
            "target_file": payload.target_file or "",
            "impact": payload.impact or "",
            "recommendation": payload.recommendation or "",
        }
        # 보내지 않은 title/content/category 는 기존 값을 유지한다.
        if payload.title:
            updates["title"] = payload.title
        if payload.content:
            updates["content"] = payload.content
        if payload.category:
            updates["category"] = payload.category

        updated = self._post_repo.update_fields(post_id, updates)
        if updated is None:
            raise NotFoundError("Post not found")
        return updated

    def delete_post(self, post_id: str, owner_id: str, caller: CurrentUser) -> None:
        """포스트와 해당 포스트의 북마크/댓글을 삭제한다."""

        self._ensure_owner_admin(caller, owner_id, "delete")

        if not self._post_repo.delete_by_id(post_id):
            raise NotFoundError("Post not found")
        self._delete_dependents(post_id)
        logger.info("post deleted id=%s by=%s", post_id, caller.id)

    def bulk_delete_posts(self, caller: CurrentUser, post_ids: list[str]) -> int:
        """호출자(관리자)가 소유한 포스트 중 post_ids 에 해당하는 것을 삭제한다."""

        if not caller.is_admin:
            raise ForbiddenError("You are not allowed to delete posts")
        if not post_ids:
            raise ValidationError("postIds must be a non-empty list")

        deleted = self._post_repo.delete_owned(post_ids, caller.id)
        for post_id in deleted:
            self._delete_dependents(post_id)

        logger.info(
            "bulk delete requested=%d deleted=%d by=%s",
            len(post_ids),
            len(deleted),
            caller.id,
        )
        return len(deleted)

    # --- helpers -----------------------------------------------------------------
    @staticmethod
    def _ensure_owner_admin(caller: CurrentUser, owner_id: str, action: str) -> None:
        if not caller.is_admin or caller.id != owner_id:
            raise ForbiddenError(f"You are not allowed to {action} this post")

    def _delete_dependents(self, post_id: str) -> None:
        self._bookmark_repo.delete_all_by_post(post_id)
        self._comment_repo.delete_all_by_post(post_id)


def get_post_repository(
    db: Database = Depends(get_database),
) -> PostRepositoryInterface:
    """FastAPI DI용 PostRepository 팩토리."""

    return PostRepository(db)


def get_bookmark_repository(
    db: Database = Depends(get_database),
) -> BookmarkRepositoryInterface:
    """FastAPI DI용 BookmarkRepository 팩토리."""

    return BookmarkRepository(db)


def get_comment_repository(
    db: Database = Depends(get_database),
) -> CommentRepositoryInterface:
    """FastAPI DI용 CommentRepository 팩토리."""

    return CommentRepository(db)


def get_posts_service(
    post_repo: PostRepositoryInterface = Depends(get_post_repository),
    bookmark_repo: BookmarkRepositoryInterface = Depends(get_bookmark_repository),
    comment_repo: CommentRepositoryInterface = Depends(get_comment_repository),
) -> PostsService:
    """FastAPI DI용 PostsService 팩토리."""

    return PostsService(post_repo, bookmark_repo, comment_repo)
