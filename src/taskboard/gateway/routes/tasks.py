"""任务路由

POST   /tasks                       创建任务
GET    /tasks?userId=               用户任务列表（按 order 升序）
GET    /tasks/category/{category}   按分类（status）筛选
GET    /tasks/{task_id}             任务详情
PUT    /tasks/reorder               按给定顺序重排（单事务）
PUT    /tasks/{task_id}             部分更新
PUT    /tasks/{task_id}/status      仅更新 status
DELETE /tasks/{task_id}             删除任务

/tasks/reorder 必须先于 /tasks/{task_id} 注册，否则 "reorder" 会被当作 task_id。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from starlette.responses import JSONResponse
from taskboard.core.exceptions import ValidationError
from taskboard.core.models import Task, TaskChanges, ensure_storable_text

from ..deps import get_task_service
from ..services.task_service import TaskService

router = APIRouter()


class CreateTaskRequest(BaseModel):
    """创建任务请求体（必填校验在 TaskService 中完成，缺失返回 400）"""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    description: str | None = None
    status: str | None = None
    user_id: str | None = Field(default=None, alias="userId")

    @field_validator("title", "description", "status", "user_id")
    @classmethod
    def check_storable_text(cls, value: str | None) -> str | None:
        return ensure_storable_text(value)


class CreateTaskResponse(BaseModel):
    """创建任务响应"""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    task_id: str = Field(alias="taskId")


class StatusUpdateRequest(BaseModel):
    """仅更新 status 的请求体"""

    status: str | None = None

    @field_validator("status")
    @classmethod
    def check_storable_text(cls, value: str | None) -> str | None:
        return ensure_storable_text(value)


class ReorderItem(BaseModel):
    """重排项，兼容 {"id": ...} 与 {"_id": ...}"""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))


class ReorderRequest(BaseModel):
    """重排请求体：tasks 为期望的最终顺序"""

    model_config = ConfigDict(populate_by_name=True)

    tasks: list[ReorderItem] | None = None
    user_id: str | None = Field(default=None, alias="userId")

    @field_validator("user_id")
    @classmethod
    def check_storable_text(cls, value: str | None) -> str | None:
        return ensure_storable_text(value)


class MessageResponse(BaseModel):
    """通用消息响应"""

    message: str


class ReorderResponse(MessageResponse):
    """重排响应"""

    count: int


@router.post("/tasks", status_code=201, response_model=CreateTaskResponse)
async def create_task(
    body: CreateTaskRequest,
    service: TaskService = Depends(get_task_service),
):
    """创建任务，返回 201 + taskId"""
    task = await service.create_task(
        title=body.title,
        status=body.status,
        user_id=body.user_id,
        description=body.description,
    )
    return JSONResponse(
        status_code=201,
        content=CreateTaskResponse(
            message="Task added successfully",
            task_id=task.task_id,
        ).model_dump(by_alias=True),
    )


@router.get("/tasks", response_model=list[Task])
async def list_tasks(
    user_id: str | None = Query(default=None, alias="userId", description="所属用户"),
    service: TaskService = Depends(get_task_service),
):
    """查询用户全部任务，按 order 升序"""
    return await service.list_tasks(user_id)


@router.get("/tasks/category/{category}", response_model=list[Task])
async def list_tasks_by_category(
    category: str,
    user_id: str | None = Query(default=None, alias="userId", description="所属用户"),
    service: TaskService = Depends(get_task_service),
):
    """查询用户指定分类下的任务，无匹配时返回空数组"""
    return await service.list_tasks_by_category(user_id, category)


@router.put("/tasks/reorder", response_model=ReorderResponse)
async def reorder_tasks(
    body: ReorderRequest,
    service: TaskService = Depends(get_task_service),
):
    """按请求顺序重写 order：第 index 个任务的 order = index

    - 任一 ID 不存在返回 404，任一任务不属于 userId 返回 400
    - 校验失败或写入失败时不修改任何任务
    """
    if body.tasks is None:
        raise ValidationError("Invalid task order data")

    count = await service.reorder_tasks(
        [item.id for item in body.tasks],
        user_id=body.user_id,
    )
    return ReorderResponse(message="Task order updated", count=count)


@router.get("/tasks/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """查询任务详情"""
    return await service.get_task(task_id)


@router.put("/tasks/{task_id}", response_model=MessageResponse)
async def update_task(
    task_id: str,
    body: TaskChanges,
    service: TaskService = Depends(get_task_service),
):
    """部分更新任务：只应用请求体中出现的字段

    - 任务不存在：404 TASK_NOT_FOUND
    - 无字段或字段值均未变化：404 TASK_UNCHANGED
    """
    await service.update_task(task_id, body)
    return MessageResponse(message="Task updated successfully")


@router.put("/tasks/{task_id}/status", response_model=MessageResponse)
async def update_task_status(
    task_id: str,
    body: StatusUpdateRequest,
    service: TaskService = Depends(get_task_service),
):
    """仅更新任务 status（在分类之间移动）"""
    await service.update_task_status(task_id, body.status)
    return MessageResponse(message="Task status updated")


@router.delete("/tasks/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """永久删除任务"""
    await service.delete_task(task_id)
    return MessageResponse(message="Task deleted successfully")
