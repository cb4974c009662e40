from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from fastapi import Depends
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import PyMongoError

from zkbug_common.models.post import Post

from ..config import AppConfig, get_config
from ..exceptions import DirectoryError, ForbiddenError, ValidationError
from ..importer.normalizer import normalize_record
from ..repositories.interfaces import PostRepositoryInterface
from ..security import CurrentUser
from .posts_service import get_post_repository

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ImportFailure:
    title: str | None
    error: str


@dataclass(slots=True)
class ImportResult:
    imported: int = 0
    errors: list[ImportFailure] = field(default_factory=list)
    data: list[Post] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.errors)


def load_records(path: str | Path) -> list[dict[str, Any]]:
    """임포트용 JSON 파일(레코드 배열)을 읽는다."""

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"import data file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValidationError("Invalid data format. Expected array of posts.")
    return data


class ImportService:
    """JSON 버그 리포트 레코드를 정규화해 포스트로 저장한다.

    레코드 하나의 실패가 나머지 레코드에 영향을 주지 않는다.
    """

    def __init__(
        self, post_repo: PostRepositoryInterface, default_category: str
    ) -> None:
        self._post_repo = post_repo
        self._default_category = default_category

    def import_records(
        self, records: list[Any], owner_user_id: str
    ) -> ImportResult:
        if not owner_user_id:
            raise ValidationError("owner user id is required for import")

        result = ImportResult()
        for index, item in enumerate(records):
            raw_title = item.get("title") if isinstance(item, dict) else None
            title = None if raw_title is None else str(raw_title)
            try:
                if not isinstance(item, dict):
                    raise ValidationError(f"record #{index} is not an object")
                post = normalize_record(item, owner_user_id, self._default_category)
                saved = self._post_repo.insert(post)
            except DirectoryError as exc:
                message = exc.message
            except (PydanticValidationError, PyMongoError) as exc:
                message = str(exc)
            except Exception as exc:  # noqa: BLE001
                # 예상하지 못한 레코드 형태도 해당 레코드만 실패로 기록한다.
                logger.exception("unexpected import error record=%d", index)
                message = str(exc) or type(exc).__name__
            else:
                message = None

            if message is not None:
                logger.warning("import failed title=%r error=%s", title, message)
                result.errors.append(ImportFailure(title=title, error=message))
                continue

            if saved.code_language:
                logger.debug(
                    "imported title=%r primary_language=%s", title, saved.code_language
                )
            result.data.append(saved)
            result.imported += 1

        logger.info(
            "import finished imported=%d errors=%d", result.imported, len(result.errors)
        )
        return result

    def import_for_admin(
        self, caller: CurrentUser, records: Any, owner_user_id: str | None = None
    ) -> ImportResult:
        """관리자 전용 API 임포트. owner 를 지정하지 않으면 호출자가 소유자가 된다."""

        if not caller.is_admin:
            raise ForbiddenError("You are not allowed to import posts")
        if not isinstance(records, list):
            raise ValidationError("Invalid data format. Expected array of posts.")
        return self.import_records(records, owner_user_id or caller.id)


def get_import_service(
    post_repo: PostRepositoryInterface = Depends(get_post_repository),
    config: AppConfig = Depends(get_config),
) -> ImportService:
    """FastAPI DI용 ImportService 팩토리."""

    return ImportService(post_repo, config.importer.default_category)
