import logging
import time
import uuid
from dataclasses import dataclass

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"
SPAN_ID_HEADER = "X-Span-Id"

SILENT_PATHS: frozenset[str] = frozenset({"/health"})

# 비밀번호/리셋 토큰이 실리는 경로는 바디 대신 표식만 남긴다.
REDACTED_BODY_PREFIXES: tuple[str, ...] = ("/api/auth/", "/api/user/update/")
REDACTED_BODY = "[redacted]"

BODY_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
MAX_BODY_LOG_LENGTH = 1024


@dataclass(slots=True, frozen=True)
class TraceIds:
    request_id: str
    span_id: str

    @classmethod
    def from_request(cls, request: Request) -> "TraceIds":
        return cls(
            request_id=request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex,
            span_id=request.headers.get(SPAN_ID_HEADER) or "0",
        )


async def read_body_for_log(request: Request) -> str | None:
    """로그에 남길 요청 바디 일부를 돌려준다. 인증 경로는 가린다."""

    if request.method not in BODY_METHODS:
        return None
    if request.url.path.startswith(REDACTED_BODY_PREFIXES):
        return REDACTED_BODY

    raw = await request.body()
    if not raw:
        return None
    return raw.decode("utf-8", errors="replace")[:MAX_BODY_LOG_LENGTH]


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """요청마다 X-Request-Id / X-Span-Id 를 부여하고 한 줄 요약 로그를 남긴다.

    헤더에 id 가 없으면 request_id 를 새로 만들고 span_id 는 "0" 으로 둔다.
    같은 값을 request.state 와 응답 헤더에 싣는다.
    """

    def __init__(self, app, logger: logging.Logger | None = None) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        ids = TraceIds.from_request(request)
        request.state.request_id = ids.request_id
        request.state.span_id = ids.span_id
        body = await read_body_for_log(request)

        silent = request.url.path in SILENT_PATHS
        started = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            if not silent:
                self._logger.exception(
                    "request failed",
                    extra=self._extra(request, ids, body, started),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, ids.request_id)
        response.headers.setdefault(SPAN_ID_HEADER, ids.span_id)

        if not silent:
            self._logger.info(
                "completed request",
                extra=self._extra(
                    request, ids, body, started, status=response.status_code
                ),
            )
        return response

    @staticmethod
    def _extra(
        request: Request,
        ids: TraceIds,
        body: str | None,
        started: float,
        status: int | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": ids.request_id,
            "span_id": ids.span_id,
            "method": request.method,
            "path": request.url.path,
            "duration": f"{(time.monotonic() - started) * 1000:.3f}ms",
        }
        if request.query_params:
            extra["query_params"] = dict(request.query_params)
        if body:
            extra["body"] = body
        # get_current_user 가 통과했을 때만 채워진다.
        user_id = getattr(request.state, "user_id", None)
        if user_id:
            extra["user_id"] = user_id
        if status is not None:
            extra["status"] = status
        return extra
