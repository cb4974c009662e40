from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import MongoSettings


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 싱글톤을 반환한다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - ping 으로 연결을 검증한다.
    - URI 에 기본 데이터베이스가 포함되어 있지 않으면 에러를 발생시킨다.
    - users/posts/comments/bookmarks 컬렉션에 필요한 인덱스를 한 번만 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        settings = MongoSettings.from_env()
        client = MongoClient(settings.uri, tz_aware=True)

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        # MONGO_DB_NAME 우선, 없으면 URI 의 기본 DB 사용
        try:
            if settings.db_name:
                db = client[settings.db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        _client = client
        _db = db

        try:
            ensure_indexes(_db)
        except Exception as exc:  # noqa: BLE001
            # 유니크 인덱스가 없으면 중복 북마크/제목을 막을 수 없으므로 치명적 오류로 본다.
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            raise

        safe_db = cast(Database, _db)
        logger.info("MongoDB connected and indexes ensured (db=%s)", safe_db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    global _db

    if _db is None:
        get_client()
    assert (
        _db is not None
    )  # get_client 에서 _db 를 초기화하지 못했다면 예외가 이미 발생했어야 한다.
    return _db


def close_client() -> None:
    """애플리케이션 종료 시 전역 클라이언트를 정리한다."""

    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None


def ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다.

    중복 생성해도 MongoDB 가 처리하므로 idempotent 하다.
    """

    users = db["users"]
    users.create_index([("username", ASCENDING)], name="uniq_username", unique=True)
    users.create_index([("email", ASCENDING)], name="uniq_email", unique=True)
    users.create_index(
        [("reset_password_token", ASCENDING)],
        name="idx_reset_password_token",
        sparse=True,
    )

    posts = db["posts"]
    posts.create_index([("title", ASCENDING)], name="uniq_title", unique=True)
    posts.create_index([("slug", ASCENDING)], name="uniq_slug", unique=True)

    # getposts 기본 정렬: updated_at desc + _id desc
    posts.create_index(
        [("updated_at", DESCENDING), ("_id", DESCENDING)],
        name="idx_updated_at_id_desc",
    )
    posts.create_index([("created_at", DESCENDING)], name="idx_created_at_desc")
    posts.create_index([("user_id", ASCENDING)], name="idx_user_id")
    posts.create_index([("category", ASCENDING)], name="idx_category")
    posts.create_index([("protocol.name", ASCENDING)], name="idx_protocol_name")
    posts.create_index([("tags", ASCENDING)], name="idx_tags")

    comments = db["comments"]
    comments.create_index(
        [("post_id", ASCENDING), ("created_at", DESCENDING)],
        name="idx_post_id_created_at",
    )
    comments.create_index([("user_id", ASCENDING)], name="idx_user_id")

    bookmarks = db["bookmarks"]
    bookmarks.create_index(
        [("user_id", ASCENDING), ("post_id", ASCENDING)],
        name="uniq_user_id_post_id",
        unique=True,
    )
    bookmarks.create_index(
        [("user_id", ASCENDING), ("created_at", ASCENDING), ("_id", ASCENDING)],
        name="idx_user_id_created_at",
    )
    bookmarks.create_index([("post_id", ASCENDING)], name="idx_post_id")
