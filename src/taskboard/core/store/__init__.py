"""Taskboard Core Store -- SQLite 持久化实现

提供工厂函数创建持有数据库连接的 StoreGroup，
在应用启动时创建一次，通过依赖注入传给路由。
"""

from pathlib import Path

import aiosqlite

from .protocols import TaskStore
from .sqlite_init import init_db, verify_wal_mode
from .task_store import SqliteTaskStore, ensure_task_id
from .transaction import renumber_orders, reorder_tasks


class StoreGroup:
    """Store 实例组 -- 持有数据库连接与 TaskStore"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)

    async def close(self) -> None:
        """关闭数据库连接"""
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "TaskStore",
    "SqliteTaskStore",
    "ensure_task_id",
    "init_db",
    "verify_wal_mode",
    "reorder_tasks",
    "renumber_orders",
]
