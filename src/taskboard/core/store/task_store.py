"""TaskStore SQLite 实现

所有查询都以 user_id 为分区键；order 只在 (user_id, status) 分区内比较。
驱动异常统一转换为 StoreError，写操作失败时回滚。
"""

import asyncio
from datetime import datetime
from typing import Any

import aiosqlite
from ulid import ULID

from ..config import FIRST_ORDER
from ..exceptions import InvalidIdError, StoreError
from ..models.task import Task, TaskDraft

_COLUMNS = (
    "task_id, user_id, status, title, description, order_index, created_at, updated_at"
)

# 可更新字段 -> 列名
_UPDATABLE_COLUMNS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "order": "order_index",
}

# 绑定参数时驱动抛出的非 aiosqlite 异常（整数越界、文本无法编码）同样视为存储失败
DRIVER_ERRORS: tuple[type[Exception], ...] = (
    aiosqlite.Error,
    OverflowError,
    UnicodeEncodeError,
)

# 批量查询每批 ID 数（低于 SQLite 绑定变量上限）
_LOOKUP_CHUNK_SIZE = 500


def ensure_task_id(task_id: str) -> str:
    """校验 task_id 是否为合法 ULID，非法时抛出 InvalidIdError"""
    try:
        ULID.from_str(task_id)
    except (ValueError, TypeError) as e:
        raise InvalidIdError(task_id) from e
    return task_id


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        # 共享连接上的多语句写事务串行化，避免不同协程的 commit/rollback 交错
        self.write_lock = asyncio.Lock()

    @property
    def conn(self) -> aiosqlite.Connection:
        return self._conn

    async def create_task(self, draft: TaskDraft, task_id: str, now: datetime) -> Task:
        """创建任务记录

        order 在同一条 INSERT ... SELECT 内计算为分区 MAX(order)+1，
        空分区时为 FIRST_ORDER。
        """
        async with self.write_lock:
            try:
                await self._conn.execute(
                    f"""
                    INSERT INTO tasks ({_COLUMNS})
                    SELECT ?, ?, ?, ?, ?, COALESCE(MAX(order_index) + 1, ?), ?, ?
                    FROM tasks
                    WHERE user_id = ? AND status = ?
                    """,
                    (
                        task_id,
                        draft.user_id,
                        draft.status,
                        draft.title,
                        draft.description,
                        FIRST_ORDER,
                        now.isoformat(),
                        now.isoformat(),
                        draft.user_id,
                        draft.status,
                    ),
                )
                await self._conn.commit()
            except DRIVER_ERRORS as e:
                await self._conn.rollback()
                raise StoreError("Failed to insert task", e) from e

        task = await self.get_task(task_id)
        if task is None:
            raise StoreError(f"Inserted task {task_id} could not be read back")
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ensure_task_id(task_id)
        try:
            cursor = await self._conn.execute(
                f"SELECT {_COLUMNS} FROM tasks WHERE task_id = ?",
                (task_id,),
            )
            row = await cursor.fetchone()
        except DRIVER_ERRORS as e:
            raise StoreError("Failed to read task", e) from e
        if row is None:
            return None
        return self._row_to_task(row)

    async def get_tasks(self, task_ids: list[str]) -> dict[str, Task]:
        """批量查询任务，返回 task_id -> Task（不存在的 ID 不出现在结果中）"""
        for task_id in task_ids:
            ensure_task_id(task_id)
        if not task_ids:
            return {}

        found: dict[str, Task] = {}
        for start in range(0, len(task_ids), _LOOKUP_CHUNK_SIZE):
            chunk = task_ids[start : start + _LOOKUP_CHUNK_SIZE]
            placeholders = ", ".join("?" for _ in chunk)
            try:
                cursor = await self._conn.execute(
                    f"SELECT {_COLUMNS} FROM tasks WHERE task_id IN ({placeholders})",
                    tuple(chunk),
                )
                rows = await cursor.fetchall()
            except DRIVER_ERRORS as e:
                raise StoreError("Failed to read tasks", e) from e
            found.update((row[0], self._row_to_task(row)) for row in rows)
        return found

    async def list_tasks(self, user_id: str, status: str | None = None) -> list[Task]:
        """查询用户任务列表，可按 status 筛选，按 order 升序"""
        # order 相同时按创建时间、ID 排序，保证结果稳定
        if status is not None:
            sql = (
                f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? AND status = ? "
                "ORDER BY order_index ASC, created_at ASC, task_id ASC"
            )
            params: tuple[Any, ...] = (user_id, status)
        else:
            sql = (
                f"SELECT {_COLUMNS} FROM tasks WHERE user_id = ? "
                "ORDER BY order_index ASC, created_at ASC, task_id ASC"
            )
            params = (user_id,)

        try:
            cursor = await self._conn.execute(sql, params)
            rows = await cursor.fetchall()
        except DRIVER_ERRORS as e:
            raise StoreError("Failed to list tasks", e) from e
        return [self._row_to_task(row) for row in rows]

    async def update_task(
        self,
        task_id: str,
        fields: dict[str, Any],
        updated_at: datetime,
    ) -> bool:
        """更新指定字段，返回是否有记录被修改

        fields 的键必须是 title / description / status / order 之一。
        """
        ensure_task_id(task_id)
        unknown = set(fields) - set(_UPDATABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown task fields: {sorted(unknown)}")
        if not fields:
            return False

        assignments = ", ".join(f"{_UPDATABLE_COLUMNS[name]} = ?" for name in fields)
        params = (*fields.values(), updated_at.isoformat(), task_id)

        async with self.write_lock:
            try:
                cursor = await self._conn.execute(
                    f"UPDATE tasks SET {assignments}, updated_at = ? WHERE task_id = ?",
                    params,
                )
                await self._conn.commit()
            except DRIVER_ERRORS as e:
                await self._conn.rollback()
                raise StoreError("Failed to update task", e) from e
        return cursor.rowcount > 0

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否删除了记录"""
        ensure_task_id(task_id)
        async with self.write_lock:
            try:
                cursor = await self._conn.execute(
                    "DELETE FROM tasks WHERE task_id = ?",
                    (task_id,),
                )
                await self._conn.commit()
            except DRIVER_ERRORS as e:
                await self._conn.rollback()
                raise StoreError("Failed to delete task", e) from e
        return cursor.rowcount > 0

    async def set_orders(
        self,
        orders: list[tuple[str, int]],
        updated_at: datetime,
    ) -> None:
        """批量写入 order（不提交，由调用方在事务内提交）"""
        await self._conn.executemany(
            "UPDATE tasks SET order_index = ?, updated_at = ? WHERE task_id = ?",
            [(order, updated_at.isoformat(), task_id) for task_id, order in orders],
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        return Task(
            task_id=row[0],
            user_id=row[1],
            status=row[2],
            title=row[3],
            description=row[4],
            order=row[5],
            created_at=datetime.fromisoformat(row[6]),
            updated_at=datetime.fromisoformat(row[7]),
        )
