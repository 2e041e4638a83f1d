"""重排 / 分区压缩事务测试

测试内容：
1. reorder 按输入位置写入 order（0-based），与原位置、status 无关
2. 未知 ID / 他人任务 / 重复 ID 时不修改任何任务
3. 写入中途失败时整体回滚
4. renumber_orders 将每个分区压缩为 1..n
"""

from datetime import UTC, datetime

import aiosqlite
import pytest
import pytest_asyncio
from taskboard.core.exceptions import NotFoundError, StoreError, ValidationError
from taskboard.core.models import TaskDraft
from taskboard.core.store import SqliteTaskStore, renumber_orders, reorder_tasks
from ulid import ULID


@pytest_asyncio.fixture
async def stores(db_conn: aiosqlite.Connection):
    return SqliteTaskStore(db_conn), db_conn


async def _create(store, title, status="todo", user_id="u1"):
    draft = TaskDraft(title=title, status=status, user_id=user_id)
    return await store.create_task(draft, str(ULID()), datetime.now(UTC))


async def _orders(store, task_ids):
    found = await store.get_tasks(task_ids)
    return [found[task_id].order for task_id in task_ids]


class TestReorder:
    """reorder_tasks 测试"""

    async def test_positions_follow_input_order(self, stores):
        task_store, conn = stores
        a = await _create(task_store, "A")
        b = await _create(task_store, "B", status="doing")
        c = await _create(task_store, "C")

        count = await reorder_tasks(conn, task_store, [c.task_id, a.task_id, b.task_id])

        assert count == 3
        assert await _orders(task_store, [c.task_id, a.task_id, b.task_id]) == [0, 1, 2]

    async def test_status_is_not_changed(self, stores):
        task_store, conn = stores
        a = await _create(task_store, "A", status="doing")
        await reorder_tasks(conn, task_store, [a.task_id])
        assert (await task_store.get_task(a.task_id)).status == "doing"

    async def test_empty_list_is_noop(self, stores):
        task_store, conn = stores
        assert await reorder_tasks(conn, task_store, []) == 0

    async def test_unknown_id_modifies_nothing(self, stores):
        task_store, conn = stores
        a = await _create(task_store, "A")
        b = await _create(task_store, "B")
        missing = str(ULID())

        with pytest.raises(NotFoundError) as exc_info:
            await reorder_tasks(conn, task_store, [b.task_id, missing, a.task_id])

        assert missing in exc_info.value.message
        assert await _orders(task_store, [a.task_id, b.task_id]) == [1, 2]

    async def test_foreign_task_rejected_when_user_given(self, stores):
        task_store, conn = stores
        mine = await _create(task_store, "mine")
        theirs = await _create(task_store, "theirs", user_id="u2")

        with pytest.raises(ValidationError):
            await reorder_tasks(
                conn, task_store, [theirs.task_id, mine.task_id], user_id="u1"
            )
        assert await _orders(task_store, [mine.task_id, theirs.task_id]) == [1, 1]

    async def test_duplicate_ids_rejected(self, stores):
        task_store, conn = stores
        a = await _create(task_store, "A")
        with pytest.raises(ValidationError):
            await reorder_tasks(conn, task_store, [a.task_id, a.task_id])

    async def test_write_failure_rolls_back_all(self, stores, monkeypatch):
        """批量写入中途失败时，已执行的更新全部回滚"""
        task_store, conn = stores
        a = await _create(task_store, "A")
        b = await _create(task_store, "B")

        async def failing_set_orders(orders, updated_at):
            task_id, order = orders[0]
            await conn.execute(
                "UPDATE tasks SET order_index = ? WHERE task_id = ?", (order, task_id)
            )
            raise aiosqlite.OperationalError("disk I/O error")

        monkeypatch.setattr(task_store, "set_orders", failing_set_orders)

        with pytest.raises(StoreError):
            await reorder_tasks(conn, task_store, [b.task_id, a.task_id])

        assert await _orders(task_store, [a.task_id, b.task_id]) == [1, 2]


class TestRenumber:
    """renumber_orders 测试"""

    async def test_compacts_each_partition(self, stores):
        task_store, conn = stores
        a = await _create(task_store, "A")
        b = await _create(task_store, "B")
        c = await _create(task_store, "C")
        d = await _create(task_store, "D", status="done")
        await reorder_tasks(conn, task_store, [c.task_id, a.task_id])
        # c=0, a=1, b=2 (todo); d=1 (done)
        await task_store.delete_task(a.task_id)

        changed = await renumber_orders(conn, task_store)

        assert await _orders(task_store, [c.task_id, b.task_id, d.task_id]) == [1, 2, 1]
        assert changed == 1

    async def test_only_given_user(self, stores):
        task_store, conn = stores
        mine = await _create(task_store, "mine")
        theirs = await _create(task_store, "theirs", user_id="u2")
        await reorder_tasks(conn, task_store, [mine.task_id, theirs.task_id])
        # mine=0, theirs=1

        changed = await renumber_orders(conn, task_store, user_id="u1")

        assert changed == 1
        assert await _orders(task_store, [mine.task_id, theirs.task_id]) == [1, 1]

    async def test_already_compact_changes_nothing(self, stores):
        task_store, conn = stores
        await _create(task_store, "A")
        await _create(task_store, "B")
        assert await renumber_orders(conn, task_store) == 0
