from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from fastapi import Depends
from pymongo.database import Database

from zkbug_common.models.post import SortOrder
from zkbug_common.models.user import User, UserPage, UserProfile
from zkbug_common.mongo.client import get_database
from zkbug_common.types.datetime import one_month_before, utc_now

from ..config import AppConfig, AuthConfig, MailConfig, get_config
from ..exceptions import DirectoryError, ForbiddenError, NotFoundError, ValidationError
from ..mailer import MailerInterface, get_mailer, render_reset_password_email
from ..repositories.interfaces import (
    BookmarkRepositoryInterface,
    CommentRepositoryInterface,
    UserRepositoryInterface,
)
from ..repositories.post_repository import normalize_page
from ..repositories.user_repository import UserRepository
from ..security import (
    CurrentUser,
    create_access_token,
    hash_password,
    verify_password,
)
from .posts_service import get_bookmark_repository, get_comment_repository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt 는 72 바이트를 넘는 비밀번호를 받지 않는다.
MAX_PASSWORD_BYTES = 72
MIN_USERNAME_LENGTH = 7
MAX_USERNAME_LENGTH = 20
_USERNAME_RE = re.compile(r"^[a-z0-9]+$")


@dataclass(slots=True)
class SignedInUser:
    """로그인 결과: 공개 프로필과 세션 쿠키에 담을 토큰."""

    profile: UserProfile
    token: str


def _check_password_max(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes"
        )


def _check_password(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    _check_password_max(password)


class UsersService:
    """회원가입/로그인/비밀번호 재설정 및 프로필 관리 비즈니스 로직."""

    def __init__(
        self,
        user_repo: UserRepositoryInterface,
        bookmark_repo: BookmarkRepositoryInterface,
        comment_repo: CommentRepositoryInterface,
        mailer: MailerInterface,
        auth_config: AuthConfig,
        mail_config: MailConfig,
    ) -> None:
        self._user_repo = user_repo
        self._bookmark_repo = bookmark_repo
        self._comment_repo = comment_repo
        self._mailer = mailer
        self._auth = auth_config
        self._mail = mail_config

    # --- auth --------------------------------------------------------------------
    def signup(
        self, username: str | None, email: str | None, password: str | None
    ) -> UserProfile:
        if not username or not email or not password:
            raise ValidationError("All fields are required")
        _check_password_max(password)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password, self._auth.bcrypt_rounds),
        )
        created = self._user_repo.insert(user)
        logger.info("user signed up id=%s", created.id)
        return UserProfile.from_user(created)

    def signin(self, email: str | None, password: str | None) -> SignedInUser:
        if not email or not password:
            raise ValidationError("All fields are required")

        user = self._user_repo.find_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if not verify_password(password, user.password_hash):
            raise ValidationError("Invalid password")

        return self._issue(user)

    def google(
        self, email: str | None, name: str | None, photo_url: str | None
    ) -> SignedInUser:
        """이메일로 유저를 찾고, 없으면 임의 비밀번호로 새로 만든다.

        외부 OAuth 검증은 하지 않으며 전달받은 신원을 그대로 신뢰한다.
        """

        if not email or not name:
            raise ValidationError("email and name are required")

        user = self._user_repo.find_by_email(email)
        if user is None:
            username = "".join(name.lower().split()) + f"{secrets.randbelow(10000):04d}"
            user = User(
                username=username,
                email=email,
                password_hash=hash_password(
                    secrets.token_hex(8), self._auth.bcrypt_rounds
                ),
            )
            if photo_url:
                user.profile_picture = photo_url
            user = self._user_repo.insert(user)
            logger.info("user created from google sign-in id=%s", user.id)

        return self._issue(user)

    def _issue(self, user: User) -> SignedInUser:
        if user.id is None:
            raise DirectoryError("user has no id")
        token = create_access_token(user.id, user.is_admin, self._auth)
        return SignedInUser(profile=UserProfile.from_user(user), token=token)

    # --- password reset ----------------------------------------------------------
    def forgot_password(self, email: str | None) -> None:
        if not email:
            raise ValidationError("Email is required")

        user = self._user_repo.find_by_email(email)
        if user is None or user.id is None:
            raise NotFoundError("User not found with this email")

        token = secrets.token_hex(32)
        expires_at = utc_now() + timedelta(seconds=self._auth.reset_token_ttl_seconds)
        self._user_repo.update_fields(
            user.id,
            {"reset_password_token": token, "reset_password_expires_at": expires_at},
        )

        reset_url = f"{self._mail.client_url}/reset-password/{token}"
        try:
            self._mailer.send_html(
                user.email,
                "Password Reset Request - ZK Bug Directory",
                render_reset_password_email(user.username, reset_url),
            )
        except Exception as exc:
            logger.exception("failed to send reset mail user_id=%s", user.id)
            raise DirectoryError("Error sending email. Please try again.") from exc

    def reset_password(
        self, token: str, password: str | None, now: datetime | None = None
    ) -> None:
        if not password:
            raise ValidationError("Password is required")
        _check_password(password)

        user = self._user_repo.find_by_valid_reset_token(token, now or utc_now())
        if user is None or user.id is None:
            raise ValidationError("Invalid or expired reset token")

        self._user_repo.update_fields(
            user.id,
            {
                "password_hash": hash_password(password, self._auth.bcrypt_rounds),
                "reset_password_token": None,
                "reset_password_expires_at": None,
            },
        )
        logger.info("password reset user_id=%s", user.id)

    def verify_reset_token(self, token: str, now: datetime | None = None) -> str:
        user = self._user_repo.find_by_valid_reset_token(token, now or utc_now())
        if user is None:
            raise ValidationError("Invalid or expired reset token")
        return user.email

    # --- profile -----------------------------------------------------------------
    def get_user(self, user_id: str) -> UserProfile:
        user = self._user_repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfile.from_user(user)

    def update_user(
        self,
        user_id: str,
        caller: CurrentUser,
        username: str | None = None,
        email: str | None = None,
        password: str | None = None,
        profile_picture: str | None = None,
    ) -> UserProfile:
        if caller.id != user_id:
            raise ForbiddenError("You are not allowed to update this user")

        updates: dict[str, object] = {}
        if password:
            _check_password(password)
            updates["password_hash"] = hash_password(password, self._auth.bcrypt_rounds)
        if username:
            if not MIN_USERNAME_LENGTH <= len(username) <= MAX_USERNAME_LENGTH:
                raise ValidationError(
                    f"Username must be between {MIN_USERNAME_LENGTH} "
                    f"and {MAX_USERNAME_LENGTH} characters"
                )
            if not _USERNAME_RE.match(username):
                raise ValidationError(
                    "Username can only contain lowercase letters and numbers"
                )
            updates["username"] = username
        if email:
            updates["email"] = email
        if profile_picture:
            updates["profile_picture"] = profile_picture

        updated = self._user_repo.update_fields(user_id, updates)
        if updated is None:
            raise NotFoundError("User not found")
        return UserProfile.from_user(updated)

    def delete_user(self, user_id: str, caller: CurrentUser) -> None:
        """유저와 해당 유저의 북마크/댓글을 삭제한다. 작성한 포스트는 남긴다."""

        if not caller.is_admin and caller.id != user_id:
            raise ForbiddenError("You are not allowed to delete this user")

        if self._user_repo.find_by_id(user_id) is None:
            raise NotFoundError("User not found")

        self._bookmark_repo.delete_all_by_user(user_id)
        self._comment_repo.delete_all_by_user(user_id)
        self._user_repo.delete_by_id(user_id)
        logger.info("user deleted id=%s by=%s", user_id, caller.id)

    def list_users(
        self,
        caller: CurrentUser,
        start_index: int,
        limit: int,
        order: SortOrder,
        now: datetime | None = None,
    ) -> UserPage:
        if not caller.is_admin:
            raise ForbiddenError("You are not allowed to see all users")

        start_index, limit = normalize_page(start_index, limit)
        users = self._user_repo.list(start_index, limit, order)
        since = one_month_before(now or utc_now())
        return UserPage(
            users=[UserProfile.from_user(u) for u in users],
            total_users=self._user_repo.count_all(),
            last_month_users=self._user_repo.count_created_since(since),
        )


def get_user_repository(
    db: Database = Depends(get_database),
) -> UserRepositoryInterface:
    """FastAPI DI용 UserRepository 팩토리."""

    return UserRepository(db)


def get_users_service(
    user_repo: UserRepositoryInterface = Depends(get_user_repository),
    bookmark_repo: BookmarkRepositoryInterface = Depends(get_bookmark_repository),
    comment_repo: CommentRepositoryInterface = Depends(get_comment_repository),
    mailer: MailerInterface = Depends(get_mailer),
    config: AppConfig = Depends(get_config),
) -> UsersService:
    """FastAPI DI용 UsersService 팩토리."""

    return UsersService(
        user_repo=user_repo,
        bookmark_repo=bookmark_repo,
        comment_repo=comment_repo,
        mailer=mailer,
        auth_config=config.auth,
        mail_config=config.mail,
    )
