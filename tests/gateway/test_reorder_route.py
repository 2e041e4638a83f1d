"""PUT /tasks/reorder 测试

测试内容：
1. 按请求顺序写入 0-based order
2. 请求体校验（缺失 / 非数组 / 缺少 id）
3. 未知 ID 时整体失败且不修改其它任务
4. userId 归属校验
"""

from httpx import AsyncClient
from ulid import ULID


async def _orders(client: AsyncClient, user_id: str = "u1") -> dict[str, int]:
    resp = await client.get("/tasks", params={"userId": user_id})
    return {t["id"]: t["order"] for t in resp.json()}


class TestReorderRoute:
    async def test_reorder_sets_positions(self, client: AsyncClient, make_task):
        a = await make_task(title="A")
        b = await make_task(title="B", status="doing")
        c = await make_task(title="C")

        resp = await client.put(
            "/tasks/reorder",
            json={"tasks": [{"id": a}, {"id": b}, {"id": c}]},
        )
        assert resp.status_code == 200
        assert resp.json() == {"message": "Task order updated", "count": 3}
        assert await _orders(client) == {a: 0, b: 1, c: 2}

    async def test_reorder_reverses_list_order(self, client: AsyncClient, make_task):
        ids = [await make_task(title=f"t{i}") for i in range(3)]
        await client.put(
            "/tasks/reorder",
            json={"tasks": [{"id": task_id} for task_id in reversed(ids)]},
        )
        listed = (await client.get("/tasks", params={"userId": "u1"})).json()
        assert [t["id"] for t in listed] == list(reversed(ids))

    async def test_accepts_underscore_id_key(self, client: AsyncClient, make_task):
        a = await make_task(title="A")
        resp = await client.put("/tasks/reorder", json={"tasks": [{"_id": a}]})
        assert resp.status_code == 200
        assert await _orders(client) == {a: 0}

    async def test_empty_list_is_ok(self, client: AsyncClient):
        resp = await client.put("/tasks/reorder", json={"tasks": []})
        assert resp.status_code == 200
        assert resp.json()["count"] == 0

    async def test_missing_tasks_returns_400(self, client: AsyncClient):
        resp = await client.put("/tasks/reorder", json={})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid task order data"

    async def test_non_list_tasks_returns_400(self, client: AsyncClient):
        resp = await client.put("/tasks/reorder", json={"tasks": "abc"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    async def test_item_without_id_returns_400(self, client: AsyncClient):
        resp = await client.put("/tasks/reorder", json={"tasks": [{"title": "x"}]})
        assert resp.status_code == 400

    async def test_unknown_id_leaves_valid_entries_untouched(
        self, client: AsyncClient, make_task
    ):
        a = await make_task(title="A")
        b = await make_task(title="B")
        before = await _orders(client)

        resp = await client.put(
            "/tasks/reorder",
            json={"tasks": [{"id": b}, {"id": str(ULID())}, {"id": a}]},
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == "TASK_NOT_FOUND"
        assert await _orders(client) == before

    async def test_malformed_id_fails_without_writes(
        self, client: AsyncClient, make_task
    ):
        a = await make_task(title="A")
        before = await _orders(client)

        resp = await client.put(
            "/tasks/reorder",
            json={"tasks": [{"id": a}, {"id": "not-an-id"}]},
        )
        assert resp.status_code == 500
        assert resp.json()["code"] == "INVALID_TASK_ID"
        assert await _orders(client) == before

    async def test_foreign_tasks_rejected_with_user_id(
        self, client: AsyncClient, make_task
    ):
        mine = await make_task(user_id="u1")
        theirs = await make_task(user_id="u2")

        resp = await client.put(
            "/tasks/reorder",
            json={"userId": "u1", "tasks": [{"id": theirs}, {"id": mine}]},
        )
        assert resp.status_code == 400
        assert await _orders(client, "u2") == {theirs: 1}

    async def test_duplicate_ids_rejected(self, client: AsyncClient, make_task):
        a = await make_task()
        resp = await client.put(
            "/tasks/reorder", json={"tasks": [{"id": a}, {"id": a}]}
        )
        assert resp.status_code == 400

    async def test_create_after_reorder_appends(self, client: AsyncClient, make_task):
        """重排为 0..n-1 后，新任务 order 仍为分区 MAX+1"""
        a = await make_task(title="A")
        b = await make_task(title="B")
        await client.put("/tasks/reorder", json={"tasks": [{"id": b}, {"id": a}]})

        c = await make_task(title="C")
        assert (await _orders(client))[c] == 2
