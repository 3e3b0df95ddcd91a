"""FastAPI application entry point.

启动:
    cd backend && uvicorn app.main:app --reload
    # 或安装后
    voice-notes-api
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.routes.v1.router import api_router
from app.core.config import settings
from app.core.events import create_start_handler, create_stop_handler
from app.core.exceptions import register_exception_handlers
from domains.core.logging_config import (
    LogConfig,
    LogFormat,
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)

configure_logging(
    LogConfig(
        level=settings.LOG_LEVEL,
        format=LogFormat(settings.LOG_FORMAT),
        log_file=settings.LOG_FILE,
    )
)
logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    请求日志中间件

    为每个 API 请求分配 request_id（或沿用客户端传入的），
    绑定到日志上下文并写回响应头。
    """

    SKIP_PATHS = ("/health", "/docs", "/redoc", "/favicon.ico")

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(self.SKIP_PATHS) or path.endswith("/openapi.json"):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        bind_request_context(request_id)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "http_request_error",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                error_type=type(e).__name__,
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.info(
                "http_request",
                method=request.method,
                path=path,
                query=str(request.query_params),
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return response
        finally:
            clear_request_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # 存储层初始化失败时直接中止启动
    await create_start_handler()()
    yield
    await create_stop_handler()()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="语音笔记 REST API：保存转写结果、搜索、收藏、标签、分享",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router, prefix=settings.API_V1_STR)
    register_exception_handlers(app)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.VERSION}

    return app


app = create_application()


def run(
    host: Optional[str] = None,
    port: Optional[int] = None,
    log_level: str = "info",
    reload: bool = False,
):
    """
    运行 API 服务器

    Args:
        host: 监听地址，默认使用配置值
        port: 监听端口，默认使用配置值
        log_level: uvicorn 日志级别
        reload: 是否启用热重载
    """
    import uvicorn

    host = host or settings.HOST
    port = port or settings.PORT

    logger.info("api_server_starting", host=host, port=port, docs=f"http://{host}:{port}/docs")

    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        log_level=log_level,
        reload=reload,
    )


if __name__ == "__main__":
    run()
