from __future__ import annotations

import logging
from datetime import datetime

from fastapi import Depends

from zkbug_common.models.post import SortOrder
from zkbug_common.types.datetime import one_month_before, utc_now

from ..exceptions import ForbiddenError, NotFoundError, ValidationError
from ..models.comment import MAX_COMMENT_LENGTH, Comment, CommentPage
from ..repositories.interfaces import (
    CommentRepositoryInterface,
    PostRepositoryInterface,
)
from ..repositories.post_repository import normalize_page
from ..security import CurrentUser
from .posts_service import get_comment_repository, get_post_repository

logger = logging.getLogger(__name__)


class CommentsService:
    """포스트 댓글 CRUD 와 좋아요 토글."""

    def __init__(
        self,
        comment_repo: CommentRepositoryInterface,
        post_repo: PostRepositoryInterface,
    ) -> None:
        self._repo = comment_repo
        self._post_repo = post_repo

    @staticmethod
    def _validate_content(content: str | None) -> str:
        if content is None or not content.strip():
            raise ValidationError("Comment content is required")
        if len(content) > MAX_COMMENT_LENGTH:
            raise ValidationError(
                f"Comment must be at most {MAX_COMMENT_LENGTH} characters"
            )
        return content

    def _get_owned(self, comment_id: str, caller: CurrentUser, action: str) -> Comment:
        comment = self._repo.find_by_id(comment_id)
        if comment is None:
            raise NotFoundError("Comment not found")
        if comment.user_id != caller.id and not caller.is_admin:
            raise ForbiddenError(f"You are not allowed to {action} this comment")
        return comment

    def create_comment(
        self,
        content: str | None,
        post_id: str,
        caller: CurrentUser,
        user_id: str | None = None,
    ) -> Comment:
        # 본문에 userId 가 있으면 호출자 본인이어야 한다.
        if user_id is not None and user_id != caller.id:
            raise ForbiddenError("You are not allowed to create this comment")

        content = self._validate_content(content)
        if self._post_repo.find_by_id(post_id) is None:
            raise NotFoundError("Post not found")

        comment = Comment(content=content, post_id=post_id, user_id=caller.id)
        return self._repo.insert(comment)

    def toggle_like(self, comment_id: str, caller: CurrentUser) -> Comment:
        comment = self._repo.toggle_like(comment_id, caller.id)
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    def edit_comment(
        self, comment_id: str, content: str | None, caller: CurrentUser
    ) -> Comment:
        self._get_owned(comment_id, caller, "edit")
        content = self._validate_content(content)

        updated = self._repo.update_content(comment_id, content)
        if updated is None:
            raise NotFoundError("Comment not found")
        return updated

    def delete_comment(self, comment_id: str, caller: CurrentUser) -> None:
        self._get_owned(comment_id, caller, "delete")
        if not self._repo.delete_by_id(comment_id):
            raise NotFoundError("Comment not found")
        logger.info("comment deleted id=%s by=%s", comment_id, caller.id)

    def list_comments_for_post(self, post_id: str) -> list[Comment]:
        return self._repo.list_by_post(post_id)

    def list_all_comments(
        self,
        caller: CurrentUser,
        start_index: int,
        limit: int,
        order: SortOrder,
        now: datetime | None = None,
    ) -> CommentPage:
        if not caller.is_admin:
            raise ForbiddenError("You are not allowed to get all comments")

        start_index, limit = normalize_page(start_index, limit)
        comments = self._repo.list(start_index, limit, order)
        since = one_month_before(now or utc_now())
        return CommentPage(
            comments=comments,
            total_comments=self._repo.count_all(),
            last_month_comments=self._repo.count_created_since(since),
        )


def get_comments_service(
    comment_repo: CommentRepositoryInterface = Depends(get_comment_repository),
    post_repo: PostRepositoryInterface = Depends(get_post_repository),
) -> CommentsService:
    """FastAPI DI용 CommentsService 팩토리."""

    return CommentsService(comment_repo, post_repo)
