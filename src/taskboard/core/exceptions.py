"""Taskboard 异常体系

每个异常携带稳定的 code，网关据此映射 HTTP 状态码：
- ValidationError -> 400
- NotFoundError / NoChangesError -> 404
- StoreError / InvalidIdError -> 500
"""


class TaskboardError(Exception):
    """Taskboard 基础异常"""

    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        """
        Args:
            message: 错误描述（可直接返回给调用方）
            code: 覆盖默认错误码
        """
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(TaskboardError):
    """必填字段缺失或格式错误"""

    code = "VALIDATION_ERROR"


class NotFoundError(TaskboardError):
    """目标任务不存在"""

    code = "TASK_NOT_FOUND"


class NoChangesError(NotFoundError):
    """任务存在，但更新请求未改变任何字段

    继承 NotFoundError 以保持 404 语义，通过 code 与"不存在"区分。
    """

    code = "TASK_UNCHANGED"


class StoreError(TaskboardError):
    """底层存储失败（连接、SQL 执行等）"""

    code = "STORE_ERROR"

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        code: str | None = None,
    ) -> None:
        """
        Args:
            message: 错误描述（仅用于日志，不直接返回给调用方）
            original_error: 原始驱动异常
        """
        super().__init__(message, code)
        self.original_error = original_error


class InvalidIdError(StoreError):
    """任务 ID 无法转换为存储原生格式（ULID）"""

    code = "INVALID_TASK_ID"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Invalid task identifier: {task_id!r}")
        self.task_id = task_id
