"""Taskboard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .task import Task, TaskChanges, TaskDraft, ensure_storable_text

__all__ = [
    "Task",
    "TaskDraft",
    "TaskChanges",
    "ensure_storable_text",
]
