from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from bson import ObjectId

from zkbug_common.models.post import (
    ListPostsFilter,
    Post,
    PostStats,
    Severity,
    SeverityCounts,
    SortOrder,
)
from zkbug_common.models.user import User

from directory_service.app.config import AppConfig, AuthConfig, MailConfig
from directory_service.app.exceptions import ConflictError
from directory_service.app.models.bookmark import Bookmark
from directory_service.app.models.comment import Comment
from directory_service.app.repositories.post_repository import normalize_page
from directory_service.app.security import CurrentUser


BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def new_id() -> str:
    return str(ObjectId())


def build_post(
    title: str,
    *,
    user_id: str = "admin-1",
    updated_at: datetime | None = None,
    created_at: datetime | None = None,
    **fields: Any,
) -> Post:
    slug = fields.pop("slug", re.sub(r"[^a-z0-9-]", "", title.lower().replace(" ", "-")))
    return Post(
        user_id=user_id,
        title=title,
        slug=slug,
        content=fields.pop("content", f"<p>{title}</p>"),
        publish_date=BASE_TIME,
        created_at=created_at,
        updated_at=updated_at,
        **fields,
    )


class FakePostRepository:
    """posts 컬렉션을 흉내 내는 인메모리 저장소 (title/slug 유니크)."""

    def __init__(self) -> None:
        self.items: dict[str, Post] = {}

    def insert(self, post: Post) -> Post:
        for existing in self.items.values():
            if existing.title == post.title:
                raise ConflictError("duplicate key: title")
            if existing.slug == post.slug:
                raise ConflictError("duplicate key: slug")

        now = datetime.now(timezone.utc)
        saved = post.model_copy(
            update={
                "id": new_id(),
                "created_at": post.created_at or now,
                "updated_at": post.updated_at or now,
            }
        )
        self.items[saved.id] = saved
        return saved

    def find_by_id(self, id_value: str) -> Post | None:
        return self.items.get(id_value)

    def find_by_slug(self, slug: str) -> Post | None:
        return next((p for p in self.items.values() if p.slug == slug), None)

    def list(self, flt: ListPostsFilter) -> list[Post]:
        posts = list(self.items.values())
        if flt.post_id is not None:
            if not ObjectId.is_valid(flt.post_id):
                return []
            posts = [p for p in posts if p.id == flt.post_id]
        if flt.user_id:
            posts = [p for p in posts if p.user_id == flt.user_id]
        if flt.category:
            posts = [p for p in posts if p.category == flt.category]
        if flt.slug:
            posts = [p for p in posts if p.slug == flt.slug]
        if flt.severity:
            posts = [p for p in posts if p.severity.value == flt.severity.lower()]
        if flt.tags:
            posts = [p for p in posts if set(p.tags) & set(flt.tags)]
        if flt.search_term:
            term = flt.search_term.lower()
            posts = [
                p
                for p in posts
                if term in p.title.lower() or term in p.content.lower()
            ]

        posts.sort(
            key=lambda p: (p.updated_at, p.id),
            reverse=flt.order == SortOrder.DESC,
        )
        skip, limit = normalize_page(flt.start_index, flt.limit)
        return posts[skip : skip + limit]

    def list_by_ids(self, ids: list[str]) -> list[Post]:
        return [self.items[i] for i in ids if i in self.items]

    def count_all(self) -> int:
        return len(self.items)

    def count_created_since(self, since: datetime) -> int:
        return sum(1 for p in self.items.values() if p.created_at >= since)

    def update_fields(self, id_value: str, updates: dict[str, Any]) -> Post | None:
        post = self.items.get(id_value)
        if post is None:
            return None
        if "title" in updates:
            for other in self.items.values():
                if other.id != id_value and other.title == updates["title"]:
                    raise ConflictError("duplicate key: title")

        data = post.model_dump()
        data.update(updates)
        data["updated_at"] = datetime.now(timezone.utc)
        updated = Post.model_validate(data)
        self.items[id_value] = updated
        return updated

    def delete_by_id(self, id_value: str) -> bool:
        return self.items.pop(id_value, None) is not None

    def delete_owned(self, ids: list[str], user_id: str) -> list[str]:
        owned = [
            i for i in ids if i in self.items and self.items[i].user_id == user_id
        ]
        for i in owned:
            del self.items[i]
        return owned

    def find_related(self, post: Post, limit: int) -> list[Post]:
        related = [
            p
            for p in self.items.values()
            if p.id != post.id
            and (
                (post.protocol.name and p.protocol.name == post.protocol.name)
                or set(p.tags) & set(post.tags)
            )
        ]
        return related[:limit]

    def list_by_protocol(
        self, protocol_name: str, skip: int, limit: int
    ) -> tuple[list[Post], int]:
        matched = [
            p
            for p in self.items.values()
            if protocol_name.lower() in p.protocol.name.lower()
        ]
        matched.sort(key=lambda p: (p.created_at, p.id), reverse=True)
        return matched[skip : skip + limit], len(matched)

    def get_stats(self) -> PostStats:
        if not self.items:
            return PostStats()
        posts = list(self.items.values())
        counts = {s.value: 0 for s in Severity}
        for p in posts:
            counts[p.severity.value] += 1
        return PostStats(
            total_posts=len(posts),
            protocols=sorted({p.protocol.name for p in posts if p.protocol.name}),
            protocol_types=sorted({p.protocol.type.value for p in posts}),
            severity_counts=SeverityCounts(**counts),
            severities=sorted({p.severity.value for p in posts}),
            tags=sorted({t for p in posts for t in p.tags}),
        )

    def distinct_code_languages(self) -> list[str]:
        return sorted({p.code_language for p in self.items.values() if p.code_language})


class FakeBookmarkRepository:
    """(user_id, post_id) 유니크 제약을 지키는 인메모리 bookmarks 저장소."""

    def __init__(self) -> None:
        self.items: list[Bookmark] = []
        self._tick = 0

    def create(self, user_id: str, post_id: str) -> Bookmark:
        if self.exists(user_id, post_id):
            raise ConflictError("duplicate key: user_id, post_id")
        # 생성 순서를 분명히 하기 위해 1초씩 증가시킨다.
        self._tick += 1
        bookmark = Bookmark(
            id=new_id(),
            user_id=user_id,
            post_id=post_id,
            created_at=BASE_TIME + timedelta(seconds=self._tick),
        )
        self.items.append(bookmark)
        return bookmark

    def delete(self, user_id: str, post_id: str) -> bool:
        before = len(self.items)
        self.items = [
            b for b in self.items if not (b.user_id == user_id and b.post_id == post_id)
        ]
        return len(self.items) < before

    def exists(self, user_id: str, post_id: str) -> bool:
        return any(b.user_id == user_id and b.post_id == post_id for b in self.items)

    def list_by_user(self, user_id: str) -> list[Bookmark]:
        return sorted(
            (b for b in self.items if b.user_id == user_id), key=lambda b: b.created_at
        )

    def delete_all_by_user(self, user_id: str) -> int:
        before = len(self.items)
        self.items = [b for b in self.items if b.user_id != user_id]
        return before - len(self.items)

    def delete_all_by_post(self, post_id: str) -> int:
        before = len(self.items)
        self.items = [b for b in self.items if b.post_id != post_id]
        return before - len(self.items)


class FakeCommentRepository:
    def __init__(self) -> None:
        self.items: dict[str, Comment] = {}

    def insert(self, comment: Comment) -> Comment:
        now = datetime.now(timezone.utc)
        saved = comment.model_copy(
            update={
                "id": new_id(),
                "created_at": comment.created_at or now,
                "updated_at": comment.updated_at or now,
                "number_of_likes": len(comment.likes),
            }
        )
        self.items[saved.id] = saved
        return saved

    def find_by_id(self, id_value: str) -> Comment | None:
        return self.items.get(id_value)

    def toggle_like(self, id_value: str, user_id: str) -> Comment | None:
        comment = self.items.get(id_value)
        if comment is None:
            return None
        likes = list(comment.likes)
        if user_id in likes:
            likes.remove(user_id)
        else:
            likes.append(user_id)
        updated = comment.model_copy(
            update={"likes": likes, "number_of_likes": len(likes)}
        )
        self.items[id_value] = updated
        return updated

    def update_content(self, id_value: str, content: str) -> Comment | None:
        comment = self.items.get(id_value)
        if comment is None:
            return None
        updated = comment.model_copy(update={"content": content})
        self.items[id_value] = updated
        return updated

    def delete_by_id(self, id_value: str) -> bool:
        return self.items.pop(id_value, None) is not None

    def list_by_post(self, post_id: str) -> list[Comment]:
        return sorted(
            (c for c in self.items.values() if c.post_id == post_id),
            key=lambda c: c.created_at,
            reverse=True,
        )

    def list(self, start_index: int, limit: int, order: SortOrder) -> list[Comment]:
        comments = sorted(
            self.items.values(),
            key=lambda c: c.created_at,
            reverse=order == SortOrder.DESC,
        )
        return comments[start_index : start_index + limit]

    def count_all(self) -> int:
        return len(self.items)

    def count_created_since(self, since: datetime) -> int:
        return sum(1 for c in self.items.values() if c.created_at >= since)

    def delete_all_by_user(self, user_id: str) -> int:
        ids = [i for i, c in self.items.items() if c.user_id == user_id]
        for i in ids:
            del self.items[i]
        return len(ids)

    def delete_all_by_post(self, post_id: str) -> int:
        ids = [i for i, c in self.items.items() if c.post_id == post_id]
        for i in ids:
            del self.items[i]
        return len(ids)


class FakeUserRepository:
    """username/email 유니크 제약을 지키는 인메모리 users 저장소."""

    def __init__(self) -> None:
        self.items: dict[str, User] = {}

    def _check_unique(self, user_id: str | None, data: dict[str, Any]) -> None:
        for other in self.items.values():
            if other.id == user_id:
                continue
            if "username" in data and other.username == data["username"]:
                raise ConflictError("duplicate key: username")
            if "email" in data and other.email == data["email"]:
                raise ConflictError("duplicate key: email")

    def insert(self, user: User) -> User:
        self._check_unique(None, {"username": user.username, "email": user.email})
        now = datetime.now(timezone.utc)
        saved = user.model_copy(
            update={
                "id": new_id(),
                "created_at": user.created_at or now,
                "updated_at": user.updated_at or now,
            }
        )
        self.items[saved.id] = saved
        return saved

    def find_by_id(self, id_value: str) -> User | None:
        return self.items.get(id_value)

    def find_by_email(self, email: str) -> User | None:
        return next((u for u in self.items.values() if u.email == email), None)

    def find_by_valid_reset_token(self, token: str, now: datetime) -> User | None:
        return next(
            (
                u
                for u in self.items.values()
                if u.reset_password_token == token
                and u.reset_password_expires_at is not None
                and u.reset_password_expires_at > now
            ),
            None,
        )

    def update_fields(self, id_value: str, updates: dict[str, Any]) -> User | None:
        user = self.items.get(id_value)
        if user is None:
            return None
        self._check_unique(id_value, updates)
        updated = user.model_copy(
            update={**updates, "updated_at": datetime.now(timezone.utc)}
        )
        self.items[id_value] = updated
        return updated

    def delete_by_id(self, id_value: str) -> bool:
        return self.items.pop(id_value, None) is not None

    def list(self, start_index: int, limit: int, order: SortOrder) -> list[User]:
        users = sorted(
            self.items.values(),
            key=lambda u: u.created_at,
            reverse=order == SortOrder.DESC,
        )
        return users[start_index : start_index + limit]

    def count_all(self) -> int:
        return len(self.items)

    def count_created_since(self, since: datetime) -> int:
        return sum(1 for u in self.items.values() if u.created_at >= since)


class FakeMailer:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send_html(self, to: str, subject: str, html: str) -> None:
        if self.fail:
            raise OSError("smtp unavailable")
        self.sent.append((to, subject, html))


# --- fixtures ------------------------------------------------------------------


@pytest.fixture
def post_repo() -> FakePostRepository:
    return FakePostRepository()


@pytest.fixture
def bookmark_repo() -> FakeBookmarkRepository:
    return FakeBookmarkRepository()


@pytest.fixture
def comment_repo() -> FakeCommentRepository:
    return FakeCommentRepository()


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(
        # bcrypt 최소 라운드로 테스트 속도를 맞춘다.
        auth=AuthConfig(jwt_secret="test-secret", bcrypt_rounds=4),
        mail=MailConfig(client_url="http://client.test"),
    )


@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(id="admin-1", is_admin=True)


@pytest.fixture
def alice() -> CurrentUser:
    return CurrentUser(id="alice-1", is_admin=False)


@pytest.fixture
def bob() -> CurrentUser:
    return CurrentUser(id="bob-1", is_admin=False)
