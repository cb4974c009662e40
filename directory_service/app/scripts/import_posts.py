"""
JSON 버그 리포트 임포트 스크립트 (`import_posts.py`).

data 파일(레코드 배열)을 읽어 각 레코드를 정규화한 뒤 posts 컬렉션에 저장합니다.
레코드 단위로 실패를 기록하며, 일부 실패가 있어도 나머지는 계속 저장합니다.

사용법:
    zkbugs-import [--file ./data/zk-bugs.json] [--admin-user-id <id>]
    python -m directory_service.app.scripts.import_posts

필수 환경 변수 (.env 파일 또는 쉘에 설정):
    MONGO_URI
    ADMIN_USER_ID (--admin-user-id 로 대신 지정 가능)
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from typing import Sequence

from dotenv import load_dotenv

from zkbug_common.logger import setup_logger
from zkbug_common.mongo.client import close_client, get_database

from ..config import load_import_config
from ..exceptions import ValidationError
from ..repositories.post_repository import PostRepository
from ..services.import_service import ImportService, load_records


logger = logging.getLogger(__name__)

ADMIN_USER_ID_ENV = "ADMIN_USER_ID"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zkbugs-import",
        description="Import ZK bug reports from a JSON file into the posts collection.",
    )
    parser.add_argument(
        "--file",
        dest="file",
        default=None,
        help="JSON data file (default: importer.data_path in config.yaml)",
    )
    parser.add_argument(
        "--admin-user-id",
        dest="admin_user_id",
        default=None,
        help=f"owner of the imported posts (default: ${ADMIN_USER_ID_ENV})",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv()
    setup_logger(name="zkbugs-import")

    import_cfg = load_import_config()
    data_path = args.file or import_cfg.data_path
    admin_user_id = args.admin_user_id or os.getenv(ADMIN_USER_ID_ENV)
    if not admin_user_id:
        logger.error(
            "admin user id is required (--admin-user-id or %s)", ADMIN_USER_ID_ENV
        )
        return 2

    try:
        records = load_records(data_path)
    except FileNotFoundError:
        logger.error(
            "data file not found path=%s (create a data folder and add the JSON file)",
            data_path,
        )
        return 1
    except json.JSONDecodeError as exc:
        logger.error("data file is not valid JSON path=%s error=%s", data_path, exc)
        return 1
    except ValidationError as exc:
        logger.error("invalid data file path=%s error=%s", data_path, exc.message)
        return 1
    logger.info("loaded %d records from %s", len(records), data_path)

    try:
        service = ImportService(
            PostRepository(get_database()), import_cfg.default_category
        )
        result = service.import_records(records, admin_user_id)
    finally:
        close_client()

    logger.info("import completed: %d items imported", result.imported)
    for index, err in enumerate(result.errors, start=1):
        logger.warning("  %d. %s: %s", index, err.title, err.error)

    return 1 if result.partial else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
