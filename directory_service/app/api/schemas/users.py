from __future__ import annotations

from pydantic import Field

from zkbug_common.models.user import UserPage, UserProfile
from zkbug_common.types.datetime import UtcDateTime

from .common import ApiModel


class SignupRequest(ApiModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class SigninRequest(ApiModel):
    email: str | None = None
    password: str | None = None


class GoogleSigninRequest(ApiModel):
    email: str | None = None
    name: str | None = None
    google_photo_url: str | None = Field(default=None, alias="googlePhotoUrl")


class ForgotPasswordRequest(ApiModel):
    email: str | None = None


class ResetPasswordRequest(ApiModel):
    password: str | None = None


class VerifyResetTokenResponse(ApiModel):
    success: bool = True
    message: str = "Token is valid"
    email: str


class UserUpdateRequest(ApiModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None
    profile_picture: str | None = Field(default=None, alias="profilePicture")


class UserResponse(ApiModel):
    """비밀번호 해시/리셋 토큰을 제외한 유저 응답 DTO."""

    id: str = Field(alias="_id")
    username: str
    email: str
    is_admin: bool = Field(alias="isAdmin")
    profile_picture: str = Field(alias="profilePicture")
    created_at: UtcDateTime = Field(alias="createdAt")
    updated_at: UtcDateTime = Field(alias="updatedAt")

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "UserResponse":
        return cls.model_validate(profile.model_dump())


class ListUsersResponse(ApiModel):
    users: list[UserResponse]
    total_users: int = Field(alias="totalUsers")
    last_month_users: int = Field(alias="lastMonthUsers")

    @classmethod
    def from_domain(cls, page: UserPage) -> "ListUsersResponse":
        return cls(
            users=[UserResponse.from_domain(u) for u in page.users],
            total_users=page.total_users,
            last_month_users=page.last_month_users,
        )
