from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


MAX_COMMENT_LENGTH = 200


class Comment(BaseModel):
    """포스트 댓글 도메인 모델.

    number_of_likes 는 항상 len(likes) 와 같아야 한다. 저장소가 모든 변경 시 함께 갱신한다.
    """

    id: str | None = None
    content: str
    post_id: str
    user_id: str
    likes: list[str] = Field(default_factory=list)
    number_of_likes: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CommentPage(BaseModel):
    comments: list[Comment]
    total_comments: int
    last_month_comments: int
