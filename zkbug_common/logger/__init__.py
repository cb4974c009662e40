import json
import logging
import os
import sys


DEFAULT_LOGGER_NAME = "zk-bug-directory"

# RequestTraceMiddleware 와 예외 핸들러가 extra 로 싣는 필드.
TRACE_FIELDS: tuple[str, ...] = (
    "request_id",
    "span_id",
    "method",
    "path",
    "query_params",
    "body",
    "user_id",
    "status",
    "duration",
)


class JsonFormatter(logging.Formatter):
    """한 줄짜리 JSON 로그 포맷터.

    기본 필드(datetime, level, logger, message)에 요청 추적 필드와 service_name,
    예외가 있으면 exc_info 문자열을 덧붙인다.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")
        self._service_name = service_name

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry: dict[str, object] = {
            "datetime": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service_name": getattr(record, "service_name", self._service_name),
        }
        entry.update(
            (key, getattr(record, key)) for key in TRACE_FIELDS if hasattr(record, key)
        )
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME, level: str | None = None
) -> logging.Logger:
    """프로세스 로거를 JSON 포맷으로 설정한다.

    API 서버는 "directory-service", 임포트 CLI 는 "zkbugs-import" 로 부른다.
    SERVICE_NAME 이 있으면 name 보다 우선하고, level 이 없으면 LOG_LEVEL(기본 INFO)을 쓴다.
    """

    service_name = os.getenv("SERVICE_NAME") or name
    log_level = getattr(logging, (level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JsonFormatter(service_name))

    logger = logging.getLogger(service_name)
    logger.setLevel(log_level)
    logger.handlers.clear()
    logger.addHandler(handler)

    # directory_service.* / zkbug_common.* 모듈 로거는 루트를 통해 같은 포맷으로 나간다.
    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(handler)
        root.setLevel(log_level)

    return logger
