from __future__ import annotations

from datetime import datetime

from zkbug_common.models.post import (
    DEFAULT_AUDIT_FIRM,
    DEFAULT_CATEGORY,
    DEFAULT_POST_IMAGE,
    Difficulty,
    Post,
    Protocol,
    ReportSource,
    ScopeItem,
    Severity,
)
from zkbug_common.mongo.types import BaseDocument, MongoDateTime, from_object_id


class PostDocument(BaseDocument):
    """MongoDB posts 컬렉션 도큐먼트 모델."""

    user_id: str
    title: str
    slug: str
    content: str
    image: str = DEFAULT_POST_IMAGE
    category: str = DEFAULT_CATEGORY
    publish_date: MongoDateTime
    report_source: ReportSource = ReportSource()
    audit_firm: str = DEFAULT_AUDIT_FIRM
    protocol: Protocol = Protocol()
    # 도큐먼트 레벨에서는 과거 레코드에 필드가 누락될 수 있으므로 기본값을 둔다.
    source: str | None = ""
    severity: Severity = Severity.MEDIUM
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = []
    frameworks: list[str] = []
    reported_by: list[str] = []
    scope: list[ScopeItem] = []
    finding_id: str | None = ""
    target_file: str | None = ""
    impact: str | None = ""
    recommendation: str | None = ""
    code_language: str | None = ""

    @classmethod
    def from_domain(cls, post: Post, now: datetime) -> "PostDocument":
        data = post.model_dump(exclude={"id"})
        data["created_at"] = post.created_at or now
        data["updated_at"] = now
        return cls.model_validate(data)

    def to_mongo_record(self) -> dict:
        # enum 은 문자열 값으로 저장한다.
        record = self.model_dump(by_alias=True, mode="python")
        record["severity"] = self.severity.value
        record["difficulty"] = self.difficulty.value
        record["protocol"] = {
            "name": self.protocol.name,
            "type": self.protocol.type.value,
        }
        if record.get("_id") is None:
            record.pop("_id", None)
        return record

    def to_domain(self) -> Post:
        return Post(
            id=from_object_id(self.id),
            created_at=self.created_at,
            updated_at=self.updated_at,
            user_id=self.user_id,
            title=self.title,
            slug=self.slug,
            content=self.content,
            image=self.image,
            category=self.category,
            publish_date=self.publish_date,
            report_source=self.report_source,
            audit_firm=self.audit_firm,
            protocol=self.protocol,
            source=self.source or "",
            severity=self.severity,
            difficulty=self.difficulty,
            tags=self.tags,
            frameworks=self.frameworks,
            reported_by=self.reported_by,
            scope=self.scope,
            finding_id=self.finding_id or "",
            target_file=self.target_file or "",
            impact=self.impact or "",
            recommendation=self.recommendation or "",
            code_language=self.code_language or "",
        )
