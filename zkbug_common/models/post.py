from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


DEFAULT_POST_IMAGE = "https://i.postimg.cc/rsrr3rH1/zk-logo.png"
DEFAULT_CATEGORY = "uncategorized"
DEFAULT_AUDIT_FIRM = "Independent Researcher"


class Severity(str, Enum):
    """취약점 심각도 (닫힌 열거형)."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Difficulty(str, Enum):
    """취약점 재현/악용 난이도."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProtocolType(str, Enum):
    ZKEVM = "ZKEVM"
    ZK_ROLLUP = "ZK-ROLLUP"
    OTHER = "OTHER"


class ReportSource(BaseModel):
    name: str = ""
    url: str = ""


class Protocol(BaseModel):
    name: str = ""
    type: ProtocolType = ProtocolType.OTHER


class ScopeItem(BaseModel):
    """Finding 이 영향을 주는 저장소/커밋 정보."""

    name: str = ""
    repository: str = ""
    commit_hash: str = ""
    description: str = ""


class Post(BaseModel):
    """버그 리포트(Finding) 도메인 모델 (API/저장소/임포트에서 공통 사용)"""

    id: str | None = Field(default=None, alias="id")
    created_at: datetime | None = None
    updated_at: datetime | None = None
    user_id: str
    title: str
    slug: str
    content: str
    image: str = DEFAULT_POST_IMAGE
    category: str = DEFAULT_CATEGORY
    publish_date: datetime
    report_source: ReportSource = Field(default_factory=ReportSource)
    audit_firm: str = DEFAULT_AUDIT_FIRM
    protocol: Protocol = Field(default_factory=Protocol)
    source: str = ""
    severity: Severity = Severity.MEDIUM
    difficulty: Difficulty = Difficulty.MEDIUM
    tags: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    reported_by: list[str] = Field(default_factory=list)
    scope: list[ScopeItem] = Field(default_factory=list)
    finding_id: str = ""
    target_file: str = ""
    impact: str = ""
    recommendation: str = ""
    code_language: str = ""


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class ListPostsFilter(BaseModel):
    """포스트 리스트 조회 옵션"""

    start_index: int = 0
    limit: int = 9
    order: SortOrder = SortOrder.DESC

    user_id: str | None = None
    category: str | None = None
    slug: str | None = None
    post_id: str | None = None
    search_term: str | None = None

    audit_firm: str | None = None
    report_source: str | None = None
    protocol: str | None = None
    protocol_type: str | None = None
    severity: str | None = None
    difficulty: str | None = None
    tags: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)


class PostPage(BaseModel):
    """getposts 응답에 대응하는 조회 결과."""

    posts: list[Post]
    total_posts: int
    last_month_posts: int


class SeverityCounts(BaseModel):
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class PostStats(BaseModel):
    total_posts: int = 0
    protocols: list[str] = Field(default_factory=list)
    protocol_types: list[str] = Field(default_factory=list)
    severity_counts: SeverityCounts = Field(default_factory=SeverityCounts)
    severities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
