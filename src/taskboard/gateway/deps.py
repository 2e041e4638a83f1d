"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例

StoreGroup 通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Depends, Request
from taskboard.core.store import StoreGroup

from .services.task_service import TaskService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_task_service(store_group: StoreGroup = Depends(get_store_group)) -> TaskService:
    """基于当前 StoreGroup 构建 TaskService"""
    return TaskService(store_group)
