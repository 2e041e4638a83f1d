"""CLI 入口模块 -- python -m taskboard.core <command>

支持的命令：
  init-db                   创建数据库表与索引
  renumber-orders [userId]  将每个分区的 order 压缩为 1..n
"""

import asyncio
import sys

from .config import get_db_path

_USAGE = """用法: python -m taskboard.core <command>
命令:
  init-db                   创建数据库表与索引
  renumber-orders [userId]  将每个 (userId, status) 分区的 order 压缩为 1..n"""


def main(argv: list[str] | None = None) -> None:
    """CLI 主入口"""
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print(_USAGE)
        sys.exit(1)

    command = args[0]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "renumber-orders":
        user_id = args[1] if len(args) > 1 else None
        asyncio.run(renumber(user_id))
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, renumber-orders")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库 schema"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.close()
    print("初始化完成")


async def renumber(user_id: str | None = None) -> int:
    """执行分区 order 压缩"""
    from .store import create_store_group, renumber_orders

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")
    print(f"用户范围: {user_id or '全部'}")

    store_group = await create_store_group(db_path)

    try:
        changed = await renumber_orders(
            store_group.conn,
            store_group.task_store,
            user_id,
        )
        print(f"压缩完成，更新 {changed} 个任务")
    finally:
        await store_group.close()
    return changed


if __name__ == "__main__":
    main()
