"""gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskboard.core.store import create_store_group


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, monkeypatch):
    """创建测试用 FastAPI app，手动初始化 lifespan 状态"""
    monkeypatch.setenv("TASKBOARD_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")

    from taskboard.gateway.main import create_app

    app = create_app()

    # 手动初始化 Store（模拟 lifespan）
    store_group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    app.state.store_group = store_group

    yield app

    await store_group.close()


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def make_task(client: AsyncClient):
    """返回通过 API 创建任务的辅助函数（返回 taskId）"""

    async def _make(
        title: str = "task",
        status: str = "todo",
        user_id: str = "u1",
        **extra,
    ) -> str:
        resp = await client.post(
            "/tasks",
            json={"title": title, "status": status, "userId": user_id, **extra},
        )
        assert resp.status_code == 201, resp.text
        return resp.json()["taskId"]

    return _make
