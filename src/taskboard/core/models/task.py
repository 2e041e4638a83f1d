"""Task Domain Model

Task 是唯一实体。order 仅在同一 (user_id, status) 分区内有意义。
JSON 序列化使用 camelCase 字段名（id / userId / createdAt ...）。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..config import SQLITE_INT_MAX, SQLITE_INT_MIN


def ensure_storable_text(value: str | None) -> str | None:
    """文本必须能编码为 UTF-8（拒绝 JSON 中的孤立代理字符，如 "\\ud800"）"""
    if value is not None:
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValueError("must be valid UTF-8 text") from e
    return value


class Task(BaseModel):
    """Task 数据模型"""

    model_config = ConfigDict(populate_by_name=True)

    task_id: str = Field(alias="id", description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str | None = Field(default=None, description="任务描述")
    status: str = Field(description="分类/看板列名称，自由文本")
    user_id: str = Field(alias="userId", description="所属用户标识")
    order: int = Field(description="在 (userId, status) 分区内的位置")
    created_at: datetime = Field(alias="createdAt", description="创建时间")
    updated_at: datetime = Field(alias="updatedAt", description="最后修改时间")


class TaskDraft(BaseModel):
    """新建任务输入（order / id / 时间戳由存储层分配）"""

    title: str
    description: str | None = None
    status: str
    user_id: str


class TaskChanges(BaseModel):
    """部分更新输入

    字段是否"出现"以 model_fields_set 为准，而不是真值判断：
    显式传入的 "" / 0 / None 与未传入是不同的。
    """

    title: str | None = None
    description: str | None = None
    status: str | None = None
    order: int | None = Field(default=None, ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)

    @field_validator("title", "description", "status")
    @classmethod
    def check_storable_text(cls, value: str | None) -> str | None:
        return ensure_storable_text(value)

    def present_fields(self) -> dict[str, Any]:
        """返回调用方显式传入的字段"""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def diff(self, task: Task) -> dict[str, Any]:
        """返回与当前任务值不同的字段（即真正需要写入的字段）"""
        return {
            name: value
            for name, value in self.present_fields().items()
            if getattr(task, name) != value
        }
