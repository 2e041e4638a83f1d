"""LoggingMiddleware

每个请求分配 request_id（ULID），连同 method / path / user_id 绑定到
structlog contextvars，并写入 X-Request-ID 响应头。

未被异常处理器接住的错误也在这里兜底：记录 request_failed，
返回 500 INTERNAL_ERROR，响应同样带 X-Request-ID。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

from ..errors import error_response

REQUEST_ID_HEADER = "X-Request-ID"


def _request_context(request: Request, request_id: str) -> dict[str, str]:
    context = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    }
    # 列表类接口通过 query 传 userId；请求体中的 userId 由 TaskService 记录
    if user_id := request.query_params.get("userId"):
        context["user_id"] = user_id
    return context


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**_request_context(request, request_id))

        log = structlog.get_logger()
        started = time.perf_counter()
        await log.ainfo("request_started")

        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                exc_info=e,
            )
            response = error_response(500, "Internal server error", "INTERNAL_ERROR")
        else:
            await log.ainfo(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
