from __future__ import annotations

from zkbug_common.models.user import DEFAULT_PROFILE_PICTURE, User
from zkbug_common.mongo.types import BaseDocument, MongoDateTime, from_object_id


class UserDocument(BaseDocument):
    """MongoDB users 컬렉션 도큐먼트 모델."""

    username: str
    email: str
    password_hash: str
    is_admin: bool = False
    profile_picture: str = DEFAULT_PROFILE_PICTURE
    reset_password_token: str | None = None
    reset_password_expires_at: MongoDateTime | None = None

    @classmethod
    def from_domain(cls, user: User) -> "UserDocument":
        data = user.model_dump(exclude={"id"})
        return cls.model_validate(data)

    def to_domain(self) -> User:
        return User(
            id=from_object_id(self.id),
            username=self.username,
            email=self.email,
            password_hash=self.password_hash,
            is_admin=self.is_admin,
            profile_picture=self.profile_picture,
            reset_password_token=self.reset_password_token,
            reset_password_expires_at=self.reset_password_expires_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
