from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


DEFAULT_PROFILE_PICTURE = (
    "https://cdn.pixabay.com/photo/2015/10/05/22/37/blank-profile-picture-973460_1280.png"
)


class User(BaseModel):
    """유저 도메인 모델.

    - Mongo users 컬렉션과 1:1로 매핑되는 공용 모델이다.
    - password_hash 는 API 응답으로 절대 노출하지 않는다 (UserProfile 사용).
    """

    id: str | None = Field(default=None, alias="id")
    username: str
    email: str
    password_hash: str
    is_admin: bool = False
    profile_picture: str = DEFAULT_PROFILE_PICTURE
    reset_password_token: str | None = None
    reset_password_expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserProfile(BaseModel):
    """비밀번호/리셋 토큰을 제외한 유저 공개 모델."""

    id: str
    username: str
    email: str
    is_admin: bool
    profile_picture: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        # 저장 전 User (id/타임스탬프 없음) 는 pydantic 검증에서 거절된다.
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            is_admin=user.is_admin,
            profile_picture=user.profile_picture,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserPage(BaseModel):
    users: list[UserProfile]
    total_users: int
    last_month_users: int
