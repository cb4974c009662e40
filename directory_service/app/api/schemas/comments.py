from __future__ import annotations

from pydantic import Field

from zkbug_common.types.datetime import UtcDateTime

from ...models.comment import Comment, CommentPage
from .common import ApiModel


class CommentCreateRequest(ApiModel):
    content: str | None = None
    post_id: str = Field(alias="postId")
    user_id: str | None = Field(default=None, alias="userId")


class CommentEditRequest(ApiModel):
    content: str | None = None


class CommentResponse(ApiModel):
    id: str | None = Field(alias="_id")
    content: str
    post_id: str = Field(alias="postId")
    user_id: str = Field(alias="userId")
    likes: list[str]
    number_of_likes: int = Field(alias="numberOfLikes")
    created_at: UtcDateTime = Field(alias="createdAt")
    updated_at: UtcDateTime = Field(alias="updatedAt")

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentResponse":
        return cls.model_validate(comment.model_dump())


class ListCommentsResponse(ApiModel):
    comments: list[CommentResponse]
    total_comments: int = Field(alias="totalComments")
    last_month_comments: int = Field(alias="lastMonthComments")

    @classmethod
    def from_domain(cls, page: CommentPage) -> "ListCommentsResponse":
        return cls(
            comments=[CommentResponse.from_domain(c) for c in page.comments],
            total_comments=page.total_comments,
            last_month_comments=page.last_month_comments,
        )
