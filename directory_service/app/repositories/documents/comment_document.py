from __future__ import annotations

from zkbug_common.mongo.types import BaseDocument, from_object_id
from ...models.comment import Comment


class CommentDocument(BaseDocument):
    """MongoDB comments 컬렉션 도큐먼트 모델."""

    content: str
    post_id: str
    user_id: str
    likes: list[str] = []
    number_of_likes: int = 0

    @classmethod
    def from_domain(cls, comment: Comment) -> "CommentDocument":
        data = comment.model_dump(exclude={"id"})
        data["number_of_likes"] = len(comment.likes)
        return cls.model_validate(data)

    def to_domain(self) -> Comment:
        return Comment(
            id=from_object_id(self.id),
            content=self.content,
            post_id=self.post_id,
            user_id=self.user_id,
            likes=list(self.likes),
            number_of_likes=self.number_of_likes,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
