from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from directory_service.app.config import get_config
from directory_service.app.main import create_app
from directory_service.app.mailer import get_mailer
from directory_service.app.models.comment import Comment
from directory_service.app.security import create_access_token
from directory_service.app.services.posts_service import (
    get_bookmark_repository,
    get_comment_repository,
    get_post_repository,
)
from directory_service.app.services.users_service import get_user_repository

from conftest import build_post


@pytest.fixture
def client(
    app_config, post_repo, bookmark_repo, comment_repo, user_repo, mailer
) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_config] = lambda: app_config
    app.dependency_overrides[get_post_repository] = lambda: post_repo
    app.dependency_overrides[get_bookmark_repository] = lambda: bookmark_repo
    app.dependency_overrides[get_comment_repository] = lambda: comment_repo
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_mailer] = lambda: mailer
    return TestClient(app)


def login_as(client: TestClient, app_config, user_id: str, is_admin: bool = False) -> None:
    token = create_access_token(user_id, is_admin, app_config.auth)
    client.cookies.set("access_token", token)


def test_health(client) -> None:
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "directory-service"}


def test_bookmark_status_for_anonymous_is_false(client, post_repo) -> None:
    post = post_repo.insert(build_post("Public"))

    resp = client.get(f"/api/bookmark/status/{post.id}")

    assert resp.status_code == 200
    assert resp.json() == {"isBookmarked": False}


def test_protected_route_without_cookie_returns_error_body(client) -> None:
    resp = client.get("/api/bookmark/posts")

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "statusCode": 401, "message": "Unauthorized"}


def test_signup_then_signin_sets_session_cookie(client) -> None:
    resp = client.post(
        "/api/auth/signup",
        json={"username": "alice123", "email": "alice@example.com", "password": "secret1"},
    )
    assert resp.status_code == 200
    assert resp.json() == "Signup successful"

    resp = client.post(
        "/api/auth/signin", json={"email": "alice@example.com", "password": "secret1"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "alice@example.com"
    assert "password" not in body and "password_hash" not in body
    assert "access_token" in resp.cookies

    status = client.get("/api/bookmark/posts")
    assert status.status_code == 200
    assert status.json() == []


def test_signin_with_wrong_password_is_bad_request(client) -> None:
    client.post(
        "/api/auth/signup",
        json={"username": "alice123", "email": "alice@example.com", "password": "secret1"},
    )

    resp = client.post(
        "/api/auth/signin", json={"email": "alice@example.com", "password": "nope123"}
    )

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_getposts_uses_default_limit_and_client_field_names(client, post_repo) -> None:
    for i in range(12):
        post_repo.insert(build_post(f"Finding {i}"))

    resp = client.get("/api/post/getposts", params={"limit": "abc", "order": "asc"})

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["posts"]) == 9
    assert body["totalPosts"] == 12
    assert body["lastMonthPosts"] == 12
    first = body["posts"][0]
    assert {"_id", "userId", "createdAt", "updatedAt", "reportSource"} <= set(first)


def test_bookmark_add_twice_conflicts(client, app_config, post_repo) -> None:
    post = post_repo.insert(build_post("Keep me"))
    login_as(client, app_config, "alice-1")

    first = client.post("/api/bookmark/add", json={"postId": post.id})
    second = client.post("/api/bookmark/add", json={"postId": post.id})

    assert first.status_code == 201
    assert first.json()["bookmark"]["postId"] == post.id
    assert second.status_code == 409
    assert client.get(f"/api/bookmark/status/{post.id}").json() == {"isBookmarked": True}


def test_editing_someone_elses_comment_is_forbidden(
    client, app_config, comment_repo, post_repo
) -> None:
    post = post_repo.insert(build_post("Discussed"))
    comment = comment_repo.insert(
        Comment(content="original", post_id=post.id, user_id="alice-1")
    )
    login_as(client, app_config, "bob-1")

    resp = client.put(
        f"/api/comment/editComment/{comment.id}", json={"content": "hacked"}
    )

    assert resp.status_code == 403
    assert resp.json()["statusCode"] == 403
    assert comment_repo.find_by_id(comment.id).content == "original"


def test_create_post_requires_admin(client, app_config) -> None:
    login_as(client, app_config, "alice-1")
    resp = client.post("/api/post/create", json={"title": "T", "content": "C"})
    assert resp.status_code == 403

    login_as(client, app_config, "admin-1", is_admin=True)
    resp = client.post(
        "/api/post/create",
        json={"title": "New Finding", "content": "<p>x</p>", "severity": "high"},
    )
    assert resp.status_code == 201
    assert resp.json()["slug"] == "new-finding"
    assert resp.json()["severity"] == "high"


def test_import_reports_bad_records_without_failing_the_batch(client, app_config) -> None:
    login_as(client, app_config, "admin-1", is_admin=True)

    resp = client.post(
        "/api/post/import",
        json={"data": [{"title": 5}, {"title": "Good", "tags": 5}, {"title": "Fine"}]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["imported"] == 1
    assert body["partial"] is True
    assert [e["title"] for e in body["errors"]] == ["5", "Good"]
