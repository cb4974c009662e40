from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from zkbug_common.logger import setup_logger
from zkbug_common.middleware.request_trace import RequestTraceMiddleware
from zkbug_common.mongo.client import close_client

from .api.errors import register_exception_handlers
from .api.health import router as health_router
from .api.v1 import api_router


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    """MongoClient 는 첫 요청에서 지연 생성되고, 종료 시 정리한다."""

    try:
        yield
    finally:
        close_client()


def create_app() -> FastAPI:
    setup_logger(name="directory-service")
    app = FastAPI(
        title="ZK Bug Directory Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # 공통 Request/Span ID 로그 미들웨어
    app.add_middleware(RequestTraceMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    port = int(os.getenv("DIRECTORY_SERVICE_PORT", "3000"))
    uvicorn.run(
        "directory_service.app.main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
