"""异常 -> HTTP 响应映射

所有错误响应形如 {"message": ..., "code": ...}。
5xx 响应只返回通用描述，完整异常信息仅记录在服务端日志中。
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from taskboard.core.exceptions import (
    InvalidIdError,
    NotFoundError,
    StoreError,
    TaskboardError,
    ValidationError,
)

log = structlog.get_logger()

_STATUS_BY_TYPE: list[tuple[type[TaskboardError], int]] = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (StoreError, 500),
]

_SANITIZED_MESSAGES: dict[type[TaskboardError], str] = {
    InvalidIdError: "Invalid task identifier",
    StoreError: "Task store error",
}


def error_response(status_code: int, message: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"message": message, "code": code},
    )


def status_for(exc: TaskboardError) -> int:
    """按异常类型查找 HTTP 状态码"""
    for exc_type, status_code in _STATUS_BY_TYPE:
        if isinstance(exc, exc_type):
            return status_code
    return 500


def _public_message(exc: TaskboardError) -> str:
    for exc_type, message in _SANITIZED_MESSAGES.items():
        if isinstance(exc, exc_type):
            return message
    return exc.message


async def taskboard_error_handler(request: Request, exc: TaskboardError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        original = getattr(exc, "original_error", None)
        log.error(
            "store_error",
            code=exc.code,
            error=exc.message,
            original_error=repr(original) if original else None,
            exc_info=exc,
        )
        return error_response(status_code, _public_message(exc), exc.code)

    log.info("request_rejected", code=exc.code, error=exc.message)
    return error_response(status_code, exc.message, exc.code)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """FastAPI 请求体/参数校验失败统一返回 400"""
    details = [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    log.info("request_rejected", code=ValidationError.code, errors=details)
    return error_response(
        400,
        "Invalid request: " + "; ".join(details),
        ValidationError.code,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("unhandled_error", error_type=type(exc).__name__, exc_info=exc)
    return error_response(500, "Internal server error", "INTERNAL_ERROR")


def register_exception_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(TaskboardError, taskboard_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
