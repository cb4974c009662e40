from __future__ import annotations

from typing import Any

from pydantic import Field

from zkbug_common.models.post import (
    Difficulty,
    Post,
    PostStats,
    Protocol,
    ReportSource,
    ScopeItem,
    Severity,
    SeverityCounts,
)
from zkbug_common.types.datetime import UtcDateTime

from ...models.post_input import PostInput
from .common import ApiModel


class PostResponse(ApiModel):
    """포스트 응답 DTO.

    도메인 모델(Post)을 그대로 노출하지 않고, 클라이언트 필드명(_id, userId, ...)으로 내보낸다.
    """

    id: str | None = Field(alias="_id")
    created_at: UtcDateTime = Field(alias="createdAt")
    updated_at: UtcDateTime = Field(alias="updatedAt")
    user_id: str = Field(alias="userId")
    title: str
    slug: str
    content: str
    image: str
    category: str
    publish_date: UtcDateTime = Field(alias="publishDate")
    report_source: ReportSource = Field(alias="reportSource")
    audit_firm: str = Field(alias="auditFirm")
    protocol: Protocol
    source: str
    severity: Severity
    difficulty: Difficulty
    tags: list[str]
    frameworks: list[str]
    reported_by: list[str]
    scope: list[ScopeItem]
    finding_id: str
    target_file: str
    impact: str
    recommendation: str
    code_language: str = Field(alias="codeLanguage")

    @classmethod
    def from_domain(cls, post: Post) -> "PostResponse":
        """도메인 Post 모델을 응답 DTO 로 변환한다."""

        return cls.model_validate(post.model_dump())


class ListPostsResponse(ApiModel):
    posts: list[PostResponse]
    total_posts: int = Field(alias="totalPosts")
    last_month_posts: int = Field(alias="lastMonthPosts")


class ProtocolRequest(ApiModel):
    name: str | None = None
    type: str | None = None


class PostWriteRequest(ApiModel):
    """포스트 생성/수정 요청 DTO."""

    title: str | None = None
    content: str | None = None
    image: str | None = None
    category: str | None = None
    publish_date: UtcDateTime | None = Field(default=None, alias="publishDate")
    report_source: ReportSource | None = Field(default=None, alias="reportSource")
    audit_firm: str | None = Field(default=None, alias="auditFirm")
    protocol: ProtocolRequest | None = None
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

    def to_input(self) -> PostInput:
        data = self.model_dump(exclude={"protocol"})
        protocol = self.protocol or ProtocolRequest()
        return PostInput(
            **data, protocol_name=protocol.name, protocol_type=protocol.type
        )


class PostBySlugResponse(ApiModel):
    post: PostResponse
    related_posts: list[PostResponse] = Field(alias="relatedPosts")


class ProtocolPostsResponse(ApiModel):
    posts: list[PostResponse]
    current_page: int = Field(alias="currentPage")
    total_pages: int = Field(alias="totalPages")
    total: int


class PostStatsResponse(ApiModel):
    total_posts: int = Field(alias="totalPosts")
    protocols: list[str]
    protocol_types: list[str] = Field(alias="protocolTypes")
    severity_counts: SeverityCounts = Field(alias="severityCounts")
    severities: list[str]
    tags: list[str]

    @classmethod
    def from_domain(cls, stats: PostStats) -> "PostStatsResponse":
        return cls.model_validate(stats.model_dump())


class LanguagesResponse(ApiModel):
    languages: list[str]


class SearchParamsResponse(ApiModel):
    protocol_types: list[str] = Field(alias="protocolTypes")
    severity_levels: list[str] = Field(alias="severityLevels")
    difficulty_levels: list[str] = Field(alias="difficultyLevels")


class BulkDeleteRequest(ApiModel):
    post_ids: list[str] = Field(alias="postIds")


class BulkDeleteResponse(ApiModel):
    success: bool = True
    deleted: int


class ImportRequest(ApiModel):
    data: Any = None
    user_id: str | None = Field(default=None, alias="userId")


class ImportErrorItem(ApiModel):
    title: str | None
    error: str


class ImportResponse(ApiModel):
    success: bool = True
    imported: int
    partial: bool
    errors: list[ImportErrorItem]
    data: list[PostResponse]
