from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from zkbug_common.models.post import ReportSource, ScopeItem


class PostInput(BaseModel):
    """포스트 생성/수정 입력.

    severity/difficulty/protocol_type 은 아직 검증 전의 원본 문자열이다.
    """

    title: str | None = None
    content: str | None = None
    image: str | None = None
    category: str | None = None
    publish_date: datetime | None = None
    report_source: ReportSource | None = None
    audit_firm: str | None = None
    protocol_name: str | None = None
    protocol_type: str | None = None
    source: str | None = None
    severity: str | None = None
    difficulty: str | None = None
    tags: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    reported_by: list[str] = Field(default_factory=list)
    scope: list[ScopeItem] = Field(default_factory=list)
    finding_id: str | None = None
    target_file: str | None = None
    impact: str | None = None
    recommendation: str | None = None
