from __future__ import annotations

import html
import re
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, TypeVar

from zkbug_common.models.post import (
    DEFAULT_AUDIT_FIRM,
    Difficulty,
    Post,
    Protocol,
    ProtocolType,
    ReportSource,
    ScopeItem,
    Severity,
)

from ..exceptions import ValidationError


E = TypeVar("E", bound=Enum)

_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s_-]")
_SLUG_COLLAPSE_RE = re.compile(r"[\s_-]+")
_TITLE_SLUG_STRIP_RE = re.compile(r"[^a-zA-Z0-9-]")


# --- slug ----------------------------------------------------------------------


def generate_slug(title: str) -> str:
    """임포트용 슬러그.

    >>> generate_slug("Hello, World! --foo_bar")
    'hello-world-foo-bar'
    """

    slug = title.lower().strip()
    slug = _SLUG_STRIP_RE.sub("", slug)
    slug = _SLUG_COLLAPSE_RE.sub("-", slug)
    return slug.strip("-")


def title_to_slug(title: str) -> str:
    """포스트 생성 API 의 슬러그: 공백을 하이픈으로 바꾸고 [a-zA-Z0-9-] 외 문자는 버린다."""

    return _TITLE_SLUG_STRIP_RE.sub("", "-".join(title.split(" ")).lower())


# --- closed enums --------------------------------------------------------------


def parse_enum(
    enum_cls: type[E],
    value: Any,
    field_name: str,
    default: E,
    *,
    case: str = "lower",
) -> E:
    """문자열을 닫힌 열거형으로 변환한다.

    - None/공백이면 default
    - 대소문자를 맞춘 뒤 허용 값이 아니면 ValidationError
    """

    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value

    raw = str(value).strip()
    if not raw:
        return default
    raw = raw.upper() if case == "upper" else raw.lower()

    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(str(member.value) for member in enum_cls)
        raise ValidationError(
            f"invalid {field_name} {value!r}, expected one of: {allowed}"
        ) from exc


def parse_severity(value: Any) -> Severity:
    return parse_enum(Severity, value, "severity", Severity.MEDIUM)


def parse_difficulty(value: Any) -> Difficulty:
    return parse_enum(Difficulty, value, "difficulty", Difficulty.MEDIUM)


def parse_protocol_type(value: Any) -> ProtocolType:
    return parse_enum(
        ProtocolType, value, "protocol type", ProtocolType.OTHER, case="upper"
    )


def coerce_protocol_type(value: Any) -> ProtocolType:
    """허용되지 않는 값은 OTHER 로 바꾼다 (포스트 생성/수정 API)."""

    try:
        return parse_protocol_type(value)
    except ValidationError:
        return ProtocolType.OTHER


# --- content -------------------------------------------------------------------


@dataclass(slots=True)
class RenderedContent:
    html: str
    primary_language: str = ""


def _render_text_block(block: dict[str, Any]) -> str:
    text = html.escape(str(block.get("text") or ""), quote=False)
    return f"<p>{text.replace(chr(10), '<br><br>')}</p>"


def _render_code_block(block: dict[str, Any]) -> str:
    language = str(block.get("language") or "")
    code = html.escape(str(block.get("code") or ""), quote=False)
    rendered = f'<pre><code class="language-{language}">{code}</code></pre>'

    description = block.get("description")
    if description:
        rendered += f"<p><em>{html.escape(str(description), quote=False)}</em></p>"
    return rendered


def render_content_blocks(blocks: Iterable[Any]) -> RenderedContent:
    """text/code 블록 리스트를 HTML 로 렌더링하고 가장 많이 쓰인 코드 언어를 고른다.

    알 수 없는 블록 타입은 건너뛴다.
    """

    parts: list[str] = []
    languages: Counter[str] = Counter()

    for block in blocks:
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "text":
            parts.append(_render_text_block(block))
        elif block_type == "code":
            if block.get("language"):
                languages[str(block["language"])] += 1
            parts.append(_render_code_block(block))

    primary = languages.most_common(1)[0][0] if languages else ""
    return RenderedContent(html="\n\n".join(parts), primary_language=primary)


def normalize_content(value: Any) -> RenderedContent:
    if value is None:
        return RenderedContent(html="")
    if isinstance(value, str):
        return RenderedContent(html=value)
    if isinstance(value, list):
        return render_content_blocks(value)
    raise ValidationError(f"unsupported content type: {type(value).__name__}")


# --- record --------------------------------------------------------------------


def _parse_publish_date(value: Any, now: datetime) -> datetime:
    if value is None or value == "":
        return now
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip())
        except ValueError as exc:
            raise ValidationError(f"invalid publish date: {value!r}") from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _str_list(value: Any, field_name: str) -> list[str]:
    if value is None or value == "" or value == []:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ValidationError(
        f"{field_name} must be a string or a list, got {type(value).__name__}"
    )


def _parse_protocol(item: dict[str, Any]) -> Protocol:
    raw = item.get("protocol")
    if isinstance(raw, dict):
        name = raw.get("name") or ""
        type_value = raw.get("type") or item.get("protocol_type")
    else:
        name = raw or ""
        type_value = item.get("protocol_type")
    return Protocol(name=str(name), type=parse_protocol_type(type_value))


def _parse_scope(value: Any) -> list[ScopeItem]:
    if not isinstance(value, list):
        return []
    return [
        ScopeItem(
            name=str(s.get("name") or ""),
            repository=str(s.get("repository") or ""),
            commit_hash=str(s.get("commit_hash") or ""),
            description=str(s.get("description") or ""),
        )
        for s in value
        if isinstance(s, dict)
    ]


def normalize_record(
    item: dict[str, Any],
    owner_user_id: str,
    default_category: str,
    now: datetime | None = None,
) -> Post:
    """임포트 레코드 하나를 Post 로 정규화한다. 형식 오류는 ValidationError."""

    now = now or datetime.now(timezone.utc)

    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title is required")

    slug = generate_slug(title)
    if not slug:
        raise ValidationError("title must contain at least one letter or digit")

    content = normalize_content(item.get("content"))
    audit_firm = item.get("auditFirm") or item.get("source") or DEFAULT_AUDIT_FIRM

    report = item.get("reportSource")
    if isinstance(report, dict):
        report_source = ReportSource(
            name=str(report.get("name") or ""), url=str(report.get("url") or "")
        )
    else:
        report_source = ReportSource(
            name=str(audit_firm), url=str(item.get("report_url") or "")
        )

    return Post(
        user_id=owner_user_id,
        title=title,
        slug=slug,
        content=content.html,
        category=item.get("category") or default_category,
        publish_date=_parse_publish_date(
            item.get("publishDate") or item.get("date"), now
        ),
        report_source=report_source,
        audit_firm=str(audit_firm),
        protocol=_parse_protocol(item),
        source=str(item.get("source") or ""),
        severity=parse_severity(item.get("severity")),
        difficulty=parse_difficulty(item.get("difficulty")),
        tags=_str_list(item.get("tags"), "tags"),
        frameworks=_str_list(item.get("frameworks"), "frameworks"),
        reported_by=_str_list(item.get("reported_by"), "reported_by"),
        scope=_parse_scope(item.get("scope")),
        finding_id=str(item.get("finding_id") or ""),
        target_file=str(item.get("target_file") or ""),
        impact=str(item.get("impact") or ""),
        recommendation=str(item.get("recommendation") or ""),
        code_language=content.primary_language or str(item.get("codeLanguage") or ""),
    )
