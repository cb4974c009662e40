from __future__ import annotations

import json

import pytest

from directory_service.app.exceptions import ForbiddenError, ValidationError
from directory_service.app.services.import_service import ImportService, load_records

from conftest import build_post


@pytest.fixture
def service(post_repo) -> ImportService:
    return ImportService(post_repo, default_category="vulnerabilities")


def test_colliding_title_is_recorded_and_others_imported(service, post_repo) -> None:
    post_repo.insert(build_post("Second finding", slug="existing-slug"))
    records = [
        {"title": "First finding", "severity": "high"},
        {"title": "Second finding"},
        {"title": "Third finding", "content": [{"type": "text", "text": "x"}]},
    ]

    result = service.import_records(records, owner_user_id="admin-1")

    assert result.imported == 2
    assert result.partial is True
    assert [e.title for e in result.errors] == ["Second finding"]
    assert [p.title for p in result.data] == ["First finding", "Third finding"]
    assert all(p.user_id == "admin-1" for p in result.data)


def test_invalid_enum_and_non_object_records_fail_individually(service) -> None:
    records = [
        {"title": "Bad severity", "severity": "apocalyptic"},
        "not a record",
        {"title": "Good one", "difficulty": "HIGH"},
    ]

    result = service.import_records(records, owner_user_id="admin-1")

    assert result.imported == 1
    assert len(result.errors) == 2
    assert result.errors[0].title == "Bad severity"
    assert "severity" in result.errors[0].error
    assert result.errors[1].title is None


def test_full_import_is_not_partial(service) -> None:
    result = service.import_records([{"title": "Only"}], owner_user_id="admin-1")

    assert result.imported == 1
    assert result.partial is False
    assert result.data[0].category == "vulnerabilities"


def test_owner_is_required(service) -> None:
    with pytest.raises(ValidationError):
        service.import_records([{"title": "x"}], owner_user_id="")


def test_import_for_admin(service, admin, alice) -> None:
    with pytest.raises(ForbiddenError):
        service.import_for_admin(alice, [{"title": "x"}])
    with pytest.raises(ValidationError):
        service.import_for_admin(admin, {"title": "x"})

    result = service.import_for_admin(admin, [{"title": "x"}])
    assert result.data[0].user_id == admin.id


def test_load_records(tmp_path) -> None:
    data_file = tmp_path / "zk-bugs.json"
    data_file.write_text(json.dumps([{"title": "a"}]), encoding="utf-8")

    assert load_records(data_file) == [{"title": "a"}]

    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.json")

    data_file.write_text(json.dumps({"title": "a"}), encoding="utf-8")
    with pytest.raises(ValidationError):
        load_records(data_file)


def test_malformed_list_field_fails_only_that_record(service) -> None:
    records = [
        {"title": "First"},
        {"title": "Second", "tags": 5},
        {"title": "Third", "frameworks": True},
        {"title": "Fourth"},
    ]

    result = service.import_records(records, owner_user_id="admin-1")

    assert result.imported == 2
    assert [p.title for p in result.data] == ["First", "Fourth"]
    assert [e.title for e in result.errors] == ["Second", "Third"]
    assert "tags" in result.errors[0].error
    assert "frameworks" in result.errors[1].error


def test_non_string_title_is_reported_as_text(service, admin) -> None:
    result = service.import_for_admin(admin, [{"title": 5}, {"title": "ok"}])

    assert result.imported == 1
    assert result.errors[0].title == "5"


def test_punctuation_only_title_is_rejected(service, post_repo) -> None:
    result = service.import_records(
        [{"title": "!!!"}, {"title": "???"}], owner_user_id="admin-1"
    )

    assert result.imported == 0
    assert [e.title for e in result.errors] == ["!!!", "???"]
    assert all("letter or digit" in e.error for e in result.errors)
    assert post_repo.items == {}
