from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from zkbug_common.models.post import ListPostsFilter, Post, PostStats, SortOrder
from zkbug_common.models.user import User

from ..models.bookmark import Bookmark
from ..models.comment import Comment


class PostRepositoryInterface(Protocol):
    """PostRepository가 따라야 할 최소한의 계약.

    Service 레이어는 이 인터페이스에만 의존하고, 구체 구현(Mongo 등)은 몰라도 된다.
    title/slug 중복 시 insert/update_fields 는 ConflictError 를 발생시킨다.
    """

    def insert(self, post: Post) -> Post:  # pragma: no cover - Protocol
        ...

    def find_by_id(self, id_value: str) -> Post | None:  # pragma: no cover - Protocol
        ...

    def find_by_slug(self, slug: str) -> Post | None:  # pragma: no cover - Protocol
        ...

    def list(self, flt: ListPostsFilter) -> list[Post]:  # pragma: no cover - Protocol
        ...

    def list_by_ids(self, ids: list[str]) -> list[Post]:  # pragma: no cover - Protocol
        ...

    def count_all(self) -> int:  # pragma: no cover - Protocol
        ...

    def count_created_since(
        self, since: datetime
    ) -> int:  # pragma: no cover - Protocol
        ...

    def update_fields(
        self, id_value: str, updates: dict[str, Any]
    ) -> Post | None:  # pragma: no cover - Protocol
        ...

    def delete_by_id(self, id_value: str) -> bool:  # pragma: no cover - Protocol
        ...

    def delete_owned(
        self, ids: list[str], user_id: str
    ) -> list[str]:  # pragma: no cover - Protocol
        """user_id 소유 포스트 중 ids 에 해당하는 것만 삭제하고 삭제된 id 목록을 반환한다."""
        ...

    def find_related(
        self, post: Post, limit: int
    ) -> list[Post]:  # pragma: no cover - Protocol
        ...

    def list_by_protocol(
        self, protocol_name: str, skip: int, limit: int
    ) -> tuple[list[Post], int]:  # pragma: no cover - Protocol
        ...

    def get_stats(self) -> PostStats:  # pragma: no cover - Protocol
        ...

    def distinct_code_languages(self) -> list[str]:  # pragma: no cover - Protocol
        ...


class BookmarkRepositoryInterface(Protocol):
    """BookmarkRepository가 따라야 할 최소한의 계약.

    - user_id + post_id 조합으로 유니크하게 북마크를 관리한다.
    - 이미 존재하는 조합으로 create 하면 ConflictError 를 발생시킨다.
    """

    def create(
        self, user_id: str, post_id: str
    ) -> Bookmark:  # pragma: no cover - Protocol
        ...

    def delete(self, user_id: str, post_id: str) -> bool:  # pragma: no cover - Protocol
        ...

    def exists(self, user_id: str, post_id: str) -> bool:  # pragma: no cover - Protocol
        ...

    def list_by_user(
        self, user_id: str
    ) -> list[Bookmark]:  # pragma: no cover - Protocol
        """북마크 생성 순서(오래된 것부터)로 반환한다."""
        ...

    def delete_all_by_user(self, user_id: str) -> int:  # pragma: no cover - Protocol
        ...

    def delete_all_by_post(self, post_id: str) -> int:  # pragma: no cover - Protocol
        ...


class CommentRepositoryInterface(Protocol):
    """CommentRepository가 따라야 할 최소한의 계약."""

    def insert(self, comment: Comment) -> Comment:  # pragma: no cover - Protocol
        ...

    def find_by_id(
        self, id_value: str
    ) -> Comment | None:  # pragma: no cover - Protocol
        ...

    def toggle_like(
        self, id_value: str, user_id: str
    ) -> Comment | None:  # pragma: no cover - Protocol
        """user_id 가 likes 에 있으면 제거, 없으면 추가하고 갱신된 댓글을 반환한다."""
        ...

    def update_content(
        self, id_value: str, content: str
    ) -> Comment | None:  # pragma: no cover - Protocol
        ...

    def delete_by_id(self, id_value: str) -> bool:  # pragma: no cover - Protocol
        ...

    def list_by_post(
        self, post_id: str
    ) -> list[Comment]:  # pragma: no cover - Protocol
        ...

    def list(
        self, start_index: int, limit: int, order: SortOrder
    ) -> list[Comment]:  # pragma: no cover - Protocol
        ...

    def count_all(self) -> int:  # pragma: no cover - Protocol
        ...

    def count_created_since(
        self, since: datetime
    ) -> int:  # pragma: no cover - Protocol
        ...

    def delete_all_by_user(self, user_id: str) -> int:  # pragma: no cover - Protocol
        ...

    def delete_all_by_post(self, post_id: str) -> int:  # pragma: no cover - Protocol
        ...


class UserRepositoryInterface(Protocol):
    """UserRepository가 따라야 할 최소한의 계약.

    username/email 중복 시 insert/update_fields 는 ConflictError 를 발생시킨다.
    """

    def insert(self, user: User) -> User:  # pragma: no cover - Protocol
        ...

    def find_by_id(self, id_value: str) -> User | None:  # pragma: no cover - Protocol
        ...

    def find_by_email(self, email: str) -> User | None:  # pragma: no cover - Protocol
        ...

    def find_by_valid_reset_token(
        self, token: str, now: datetime
    ) -> User | None:  # pragma: no cover - Protocol
        ...

    def update_fields(
        self, id_value: str, updates: dict[str, Any]
    ) -> User | None:  # pragma: no cover - Protocol
        ...

    def delete_by_id(self, id_value: str) -> bool:  # pragma: no cover - Protocol
        ...

    def list(
        self, start_index: int, limit: int, order: SortOrder
    ) -> list[User]:  # pragma: no cover - Protocol
        ...

    def count_all(self) -> int:  # pragma: no cover - Protocol
        ...

    def count_created_since(
        self, since: datetime
    ) -> int:  # pragma: no cover - Protocol
        ...
