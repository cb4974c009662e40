from __future__ import annotations

import logging

from fastapi import Depends

from zkbug_common.models.post import Post

from ..exceptions import NotFoundError
from ..models.bookmark import Bookmark
from ..repositories.interfaces import (
    BookmarkRepositoryInterface,
    PostRepositoryInterface,
)
from .posts_service import get_bookmark_repository, get_post_repository

logger = logging.getLogger(__name__)


class BookmarksService:
    """유저 북마크 관리 비즈니스 로직.

    - 북마크는 bookmarks 조인 컬렉션에만 저장한다.
    - 중복 북마크는 저장소의 유니크 인덱스가 ConflictError 로 막는다.
    """

    def __init__(
        self,
        bookmark_repo: BookmarkRepositoryInterface,
        post_repo: PostRepositoryInterface,
    ) -> None:
        self._repo = bookmark_repo
        self._post_repo = post_repo

    def add_bookmark(self, user_id: str, post_id: str) -> Bookmark:
        """user_id + post_id 조합으로 북마크를 생성한다.

        포스트가 없으면 NotFoundError, 이미 북마크했다면 ConflictError.
        """

        if self._post_repo.find_by_id(post_id) is None:
            raise NotFoundError("Post not found")

        bookmark = self._repo.create(user_id=user_id, post_id=post_id)
        logger.info("bookmark added user_id=%s post_id=%s", user_id, post_id)
        return bookmark

    def remove_bookmark(self, user_id: str, post_id: str) -> None:
        if not self._repo.delete(user_id=user_id, post_id=post_id):
            raise NotFoundError("Bookmark not found")
        logger.info("bookmark removed user_id=%s post_id=%s", user_id, post_id)

    def list_bookmarked_posts(self, user_id: str) -> list[Post]:
        """북마크한 순서대로 포스트를 반환한다. 이미 삭제된 포스트는 건너뛴다."""

        bookmarks = self._repo.list_by_user(user_id)
        if not bookmarks:
            return []

        posts = self._post_repo.list_by_ids([b.post_id for b in bookmarks])
        by_id = {post.id: post for post in posts}
        return [by_id[b.post_id] for b in bookmarks if b.post_id in by_id]

    def is_bookmarked(self, user_id: str | None, post_id: str) -> bool:
        # 익명 호출자는 항상 False
        if not user_id:
            return False
        return self._repo.exists(user_id=user_id, post_id=post_id)


def get_bookmarks_service(
    bookmark_repo: BookmarkRepositoryInterface = Depends(get_bookmark_repository),
    post_repo: PostRepositoryInterface = Depends(get_post_repository),
) -> BookmarksService:
    """FastAPI DI용 BookmarksService 팩토리."""

    return BookmarksService(bookmark_repo, post_repo)
