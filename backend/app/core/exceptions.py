"""Exception handlers for the notes API.

所有错误统一返回 ErrorResponse 结构：
    {"success": false, "error": "...", "code": "...", "details": {...}}

- ApplicationError 及其子类：按 category 映射状态码
- HTTPException（例如笔记不存在的 404）：code 为 HTTP_<status>
- 请求参数校验失败：422，details 中附带字段错误
- 其他未处理异常：500
"""

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas.common import ErrorResponse
from domains.core import ApplicationError, ErrorCategory
from domains.core.logging_config import get_logger

logger = get_logger(__name__)


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def register_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器，在 create_application() 中调用"""

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request: Request, exc: ApplicationError) -> JSONResponse:
        log = logger.error if exc.category == ErrorCategory.INTERNAL else logger.warning
        log("application_error", path=request.url.path, **exc.to_dict())
        return _error_response(exc.http_status_code, ErrorResponse.from_application_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(
            exc.status_code,
            ErrorResponse(error=str(exc.detail), code=f"HTTP_{exc.status_code}"),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.info("request_validation_failed", path=request.url.path, errors=len(errors))
        return _error_response(
            422,
            ErrorResponse(
                error="请求参数校验失败",
                code="REQUEST_VALIDATION_ERROR",
                details={"errors": errors},
            ),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        return _error_response(
            500,
            ErrorResponse(
                error=f"Internal server error: {type(exc).__name__}",
                code="INTERNAL_ERROR",
            ),
        )


__all__ = [
    "register_exception_handlers",
]
