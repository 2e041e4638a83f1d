"""TaskService -- 任务创建/查询/更新/重排/删除业务逻辑

路由层只负责 HTTP 字段提取与响应序列化；
必填校验、存在性检查与 order 语义都在此处完成。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from taskboard.core.config import TASK_TITLE_MAX_LENGTH
from taskboard.core.exceptions import NoChangesError, NotFoundError, ValidationError
from taskboard.core.models import Task, TaskChanges, TaskDraft
from taskboard.core.store import StoreGroup, TaskStore, reorder_tasks
from ulid import ULID

log = structlog.get_logger()


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group
        self._tasks: TaskStore = store_group.task_store

    async def create_task(
        self,
        title: str | None,
        status: str | None,
        user_id: str | None,
        description: str | None = None,
    ) -> Task:
        """创建任务，order 为分区内 MAX(order)+1（空分区为 1）

        Raises:
            ValidationError: title / status / user_id 缺失或为空
        """
        if _is_blank(title) or _is_blank(status) or _is_blank(user_id):
            raise ValidationError("Title, Status, and User ID are required")
        self._check_title_length(title)

        draft = TaskDraft(
            title=title,
            description=description or None,
            status=status,
            user_id=user_id,
        )
        task = await self._tasks.create_task(draft, str(ULID()), datetime.now(UTC))

        log.info(
            "task_created",
            task_id=task.task_id,
            user_id=task.user_id,
            status=task.status,
            order=task.order,
        )
        return task

    async def list_tasks(self, user_id: str | None) -> list[Task]:
        """查询用户全部任务，按 order 升序"""
        if _is_blank(user_id):
            raise ValidationError("User ID is required")
        return await self._tasks.list_tasks(user_id)

    async def list_tasks_by_category(
        self,
        user_id: str | None,
        category: str,
    ) -> list[Task]:
        """查询用户指定分类（status）下的任务，无匹配时返回空列表"""
        if _is_blank(user_id):
            raise ValidationError("User ID is required")
        return await self._tasks.list_tasks(user_id, status=category)

    async def get_task(self, task_id: str) -> Task:
        """查询单个任务

        Raises:
            NotFoundError: 任务不存在
        """
        task = await self._tasks.get_task(task_id)
        if task is None:
            raise NotFoundError(f"Task with id {task_id} does not exist")
        return task

    async def update_task(self, task_id: str, changes: TaskChanges) -> Task:
        """部分更新任务

        只应用调用方显式传入的字段。先检查存在性，再比较字段值：
        - 任务不存在 -> NotFoundError
        - 未传入字段或所有字段与当前值相同 -> NoChangesError

        Returns:
            更新后的任务
        """
        fields = changes.present_fields()
        for name in ("title", "status"):
            if name in fields and _is_blank(fields[name]):
                raise ValidationError(f"{name.capitalize()} cannot be empty")
        if "title" in fields:
            self._check_title_length(fields["title"])
        if "order" in fields and fields["order"] is None:
            raise ValidationError("Order must be an integer")
        if "description" in fields and not fields["description"]:
            # 显式传入 "" 或 null 表示清空描述
            changes = changes.model_copy(update={"description": None})

        task = await self.get_task(task_id)
        diff = changes.diff(task)
        if not diff:
            raise NoChangesError(f"No changes made to task {task_id}")

        return await self._apply(task, diff)

    async def update_task_status(self, task_id: str, status: str | None) -> Task:
        """仅更新任务 status（在分类之间移动任务）

        Raises:
            ValidationError: status 缺失或为空
        """
        if _is_blank(status):
            raise ValidationError("Status is required")

        task = await self.get_task(task_id)
        if task.status == status:
            raise NoChangesError(f"Task {task_id} already has status {status}")

        return await self._apply(task, {"status": status})

    async def reorder_tasks(
        self,
        task_ids: list[str],
        user_id: str | None = None,
    ) -> int:
        """按给定顺序重排任务：第 index 个任务的 order = index

        单事务写入；任一 ID 不存在或不属于 user_id 时不修改任何任务。
        """
        if not isinstance(task_ids, list):
            raise ValidationError("Invalid task order data")
        if any(_is_blank(task_id) for task_id in task_ids):
            raise ValidationError("Every task entry requires an id")

        count = await reorder_tasks(
            self._stores.conn,
            self._stores.task_store,
            task_ids,
            user_id=user_id or None,
        )
        log.info("tasks_reordered", count=count, user_id=user_id)
        return count

    async def delete_task(self, task_id: str) -> None:
        """永久删除任务

        Raises:
            NotFoundError: 任务不存在
        """
        deleted = await self._tasks.delete_task(task_id)
        if not deleted:
            raise NotFoundError(f"Task with id {task_id} does not exist")
        log.info("task_deleted", task_id=task_id)

    async def _apply(self, task: Task, fields: dict[str, Any]) -> Task:
        """写入字段变更并返回更新后的任务"""
        now = datetime.now(UTC)
        updated = await self._tasks.update_task(task.task_id, fields, now)
        if not updated:
            # 检查与写入之间任务被并发删除
            raise NotFoundError(f"Task with id {task.task_id} does not exist")

        log.info("task_updated", task_id=task.task_id, fields=sorted(fields))
        return task.model_copy(update={**fields, "updated_at": now})

    @staticmethod
    def _check_title_length(title: str) -> None:
        if len(title) > TASK_TITLE_MAX_LENGTH:
            raise ValidationError(
                f"Title must be at most {TASK_TITLE_MAX_LENGTH} characters"
            )
