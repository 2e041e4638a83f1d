"""TraceMiddleware

为单任务操作绑定 trace_id，贯穿该任务相关日志。
trace_id 由路径中的 task_id 生成：/tasks/{task_id}[/status]。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ULID 长度
_TASK_ID_LENGTH = 26


def extract_task_id(path: str) -> str | None:
    """从请求路径中提取 task_id，非单任务路径返回 None"""
    parts = [part for part in path.split("/") if part]
    if len(parts) >= 2 and parts[0] == "tasks":
        candidate = parts[1]
        # 排除 /tasks/reorder、/tasks/category/... 等集合路由
        if len(candidate) == _TASK_ID_LENGTH:
            return candidate
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件 -- 为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(trace_id=f"trace-{task_id}")

        return await call_next(request)
