"""Store Protocol 接口定义

定义 TaskStore 的抽象接口，使用 Python Protocol 实现结构化子类型（duck typing），
便于在服务层测试中替换为测试替身。
"""

import asyncio
from datetime import datetime
from typing import Any, Protocol

from ..models.task import Task, TaskDraft


class TaskStore(Protocol):
    """Task 存储接口"""

    write_lock: asyncio.Lock

    async def create_task(self, draft: TaskDraft, task_id: str, now: datetime) -> Task:
        """创建任务记录，分配分区内的 order"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def get_tasks(self, task_ids: list[str]) -> dict[str, Task]:
        """批量查询任务"""
        ...

    async def list_tasks(self, user_id: str, status: str | None = None) -> list[Task]:
        """查询用户任务列表，按 order 升序"""
        ...

    async def update_task(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        """更新指定字段"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        ...

    async def set_orders(
        self,
        orders: list[tuple[str, int]],
        updated_at: datetime,
    ) -> None:
        """批量写入 order（事务内，不提交）"""
        ...
