from __future__ import annotations

from datetime import datetime, timezone

import pytest

from zkbug_common.models.post import Difficulty, ProtocolType, Severity

from directory_service.app.exceptions import ValidationError
from directory_service.app.importer.normalizer import (
    coerce_protocol_type,
    generate_slug,
    normalize_record,
    parse_difficulty,
    parse_protocol_type,
    parse_severity,
    render_content_blocks,
    title_to_slug,
)


NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def test_generate_slug_collapses_separators_and_strips_punctuation() -> None:
    assert generate_slug("Hello, World! --foo_bar") == "hello-world-foo-bar"
    assert generate_slug("  --Leading and trailing--  ") == "leading-and-trailing"


def test_title_to_slug_keeps_only_alnum_and_hyphen() -> None:
    assert title_to_slug("Missing Range Check in Circuit!") == "missing-range-check-in-circuit"
    assert title_to_slug("a  b") == "a--b"


def test_render_content_escapes_text_and_code() -> None:
    rendered = render_content_blocks(
        [
            {"type": "text", "text": "A & B"},
            {"type": "code", "language": "js", "code": "a<b"},
        ]
    )

    assert "<p>A &amp; B</p>" in rendered.html
    assert '<pre><code class="language-js">a&lt;b</code></pre>' in rendered.html
    assert rendered.html.count("\n\n") == 1
    assert rendered.primary_language == "js"


def test_render_content_newlines_description_and_unknown_blocks() -> None:
    rendered = render_content_blocks(
        [
            {"type": "text", "text": "line1\nline2"},
            {"type": "image", "url": "x.png"},
            {
                "type": "code",
                "language": "rust",
                "code": "fn main() {}",
                "description": "entry point",
            },
        ]
    )

    assert rendered.html == (
        "<p>line1<br><br>line2</p>\n\n"
        '<pre><code class="language-rust">fn main() {}</code></pre>'
        "<p><em>entry point</em></p>"
    )


def test_primary_language_is_most_frequent() -> None:
    rendered = render_content_blocks(
        [
            {"type": "code", "language": "circom", "code": "x"},
            {"type": "code", "language": "rust", "code": "y"},
            {"type": "code", "language": "rust", "code": "z"},
        ]
    )
    assert rendered.primary_language == "rust"


def test_parse_enums() -> None:
    assert parse_severity("HIGH") is Severity.HIGH
    assert parse_severity(None) is Severity.MEDIUM
    assert parse_severity("  ") is Severity.MEDIUM
    assert parse_difficulty("Low") is Difficulty.LOW
    assert parse_protocol_type("zk-rollup") is ProtocolType.ZK_ROLLUP

    with pytest.raises(ValidationError):
        parse_severity("catastrophic")
    with pytest.raises(ValidationError):
        parse_protocol_type("plonk")


def test_coerce_protocol_type_falls_back_to_other() -> None:
    assert coerce_protocol_type("ZKEVM") is ProtocolType.ZKEVM
    assert coerce_protocol_type("unknown") is ProtocolType.OTHER


def test_normalize_record_uses_flat_protocol_and_source_defaults() -> None:
    post = normalize_record(
        {
            "title": "Under-constrained signal",
            "content": [{"type": "code", "language": "circom", "code": "a <== b;"}],
            "protocol": "Scroll",
            "protocol_type": "zkevm",
            "source": "Trail of Bits",
            "report_url": "https://example.com/report",
            "severity": "Critical",
            "date": "2023-02-10T00:00:00Z",
            "tags": ["circom"],
        },
        owner_user_id="admin-1",
        default_category="vulnerabilities",
        now=NOW,
    )

    assert post.user_id == "admin-1"
    assert post.slug == "under-constrained-signal"
    assert post.category == "vulnerabilities"
    assert post.protocol.name == "Scroll"
    assert post.protocol.type is ProtocolType.ZKEVM
    assert post.audit_firm == "Trail of Bits"
    assert post.report_source.name == "Trail of Bits"
    assert post.report_source.url == "https://example.com/report"
    assert post.severity is Severity.CRITICAL
    assert post.difficulty is Difficulty.MEDIUM
    assert post.publish_date == datetime(2023, 2, 10, tzinfo=timezone.utc)
    assert post.code_language == "circom"
    assert "a &lt;== b;" in post.content


def test_normalize_record_nested_protocol_and_independent_default() -> None:
    post = normalize_record(
        {
            "title": "Nested",
            "content": "<p>already html</p>",
            "protocol": {"name": "Polygon zkEVM", "type": "ZK-ROLLUP"},
        },
        owner_user_id="admin-1",
        default_category="vulnerabilities",
        now=NOW,
    )

    assert post.content == "<p>already html</p>"
    assert post.protocol.type is ProtocolType.ZK_ROLLUP
    assert post.audit_firm == "Independent Researcher"
    assert post.publish_date == NOW


def test_normalize_record_rejects_unknown_severity_and_missing_title() -> None:
    with pytest.raises(ValidationError):
        normalize_record(
            {"title": "Bad", "severity": "urgent"}, "admin-1", "vulnerabilities", NOW
        )
    with pytest.raises(ValidationError):
        normalize_record({"content": "x"}, "admin-1", "vulnerabilities", NOW)
