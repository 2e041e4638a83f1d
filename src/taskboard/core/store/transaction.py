"""批量 order 写入的原子事务封装

重排和分区压缩都会改写多条任务的 order，
在同一 SQLite 事务内提交：要么全部生效，要么全部回滚。
"""

from collections import defaultdict
from datetime import UTC, datetime

import aiosqlite

from ..config import FIRST_ORDER
from ..exceptions import NotFoundError, StoreError, ValidationError
from .task_store import DRIVER_ERRORS, SqliteTaskStore


async def reorder_tasks(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    task_ids: list[str],
    user_id: str | None = None,
) -> int:
    """按给定顺序重写任务 order（第 index 个任务的 order = index）

    写入前先校验：所有 ID 必须存在；如果给定 user_id，所有任务必须属于该用户。
    任一校验失败时不修改任何任务。

    Args:
        conn: 数据库连接（需在同一连接上操作以保证事务性）
        task_store: TaskStore 实例
        task_ids: 期望的最终顺序
        user_id: 可选的所属用户校验

    Returns:
        被重排的任务数量

    Raises:
        ValidationError: ID 重复或任务不属于 user_id
        NotFoundError: 存在未知 ID
        StoreError: 事务提交失败（已回滚）
    """
    if len(set(task_ids)) != len(task_ids):
        raise ValidationError("Task ids in a reorder request must be unique")
    if not task_ids:
        return 0

    async with task_store.write_lock:
        existing = await task_store.get_tasks(task_ids)

        missing = [task_id for task_id in task_ids if task_id not in existing]
        if missing:
            raise NotFoundError(f"Tasks not found: {', '.join(missing)}")

        if user_id is not None:
            foreign = [
                task_id
                for task_id in task_ids
                if existing[task_id].user_id != user_id
            ]
            if foreign:
                raise ValidationError(
                    f"Tasks do not belong to user {user_id}: {', '.join(foreign)}"
                )

        now = datetime.now(UTC)
        try:
            await task_store.set_orders(
                [(task_id, index) for index, task_id in enumerate(task_ids)],
                now,
            )
            # 原子提交
            await conn.commit()
        except DRIVER_ERRORS as e:
            await conn.rollback()
            raise StoreError("Failed to reorder tasks", e) from e

    return len(task_ids)


async def renumber_orders(
    conn: aiosqlite.Connection,
    task_store: SqliteTaskStore,
    user_id: str | None = None,
) -> int:
    """将每个 (user_id, status) 分区的 order 压缩为 FIRST_ORDER..n

    保持分区内现有相对顺序（order 相同时按 created_at、task_id）。

    Args:
        conn: 数据库连接
        task_store: TaskStore 实例
        user_id: 仅处理该用户；None 表示全部用户

    Returns:
        order 实际发生变化的任务数量
    """
    sql = "SELECT task_id, user_id, status, order_index FROM tasks"
    params: tuple[str, ...] = ()
    if user_id is not None:
        sql += " WHERE user_id = ?"
        params = (user_id,)
    sql += " ORDER BY user_id, status, order_index, created_at, task_id"

    async with task_store.write_lock:
        try:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()

            partitions: dict[tuple[str, str], list[tuple[str, int]]] = defaultdict(list)
            for task_id, owner, status, order in rows:
                partitions[(owner, status)].append((task_id, order))

            changes: list[tuple[str, int]] = []
            for members in partitions.values():
                for offset, (task_id, order) in enumerate(members):
                    new_order = FIRST_ORDER + offset
                    if order != new_order:
                        changes.append((task_id, new_order))

            if changes:
                await task_store.set_orders(changes, datetime.now(UTC))
            await conn.commit()
        except DRIVER_ERRORS as e:
            await conn.rollback()
            raise StoreError("Failed to renumber task orders", e) from e

    return len(changes)
