from __future__ import annotations

import os
from dataclasses import dataclass


MONGO_URI_ENV = "MONGO_URI"
MONGO_DB_NAME_ENV = "MONGO_DB_NAME"


@dataclass(slots=True, frozen=True)
class MongoSettings:
    """디렉터리 DB 접속 설정.

    db_name 이 None 이면 URI 에 포함된 기본 DB(mongodb://host/zk_bug_directory)를 쓴다.
    """

    uri: str
    db_name: str | None = None

    @classmethod
    def from_env(cls) -> "MongoSettings":
        uri = os.getenv(MONGO_URI_ENV)
        if not uri:
            raise RuntimeError(
                f"{MONGO_URI_ENV} environment variable is required for the directory database",
            )
        db_name = os.getenv(MONGO_DB_NAME_ENV, "").strip() or None
        return cls(uri=uri, db_name=db_name)
