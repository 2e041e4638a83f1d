"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、任务标题长度限制等可配置常量。
非法的数值配置记录警告并回退为默认值，不阻塞启动。
"""

import os
from pathlib import Path

import structlog

log = structlog.get_logger()

_DEFAULT_TITLE_MAX_LENGTH = 200


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKBOARD_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKBOARD_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskboard.db"),
    )


def get_task_title_max_length() -> int:
    """读取任务标题最大长度，非正整数时回退为默认值"""
    val = os.environ.get("TASKBOARD_TASK_TITLE_MAX_LENGTH")
    if not val:
        return _DEFAULT_TITLE_MAX_LENGTH
    try:
        length = int(val)
        if length < 1:
            raise ValueError(val)
    except ValueError:
        log.warning(
            "invalid_title_length_config",
            env_var="TASKBOARD_TASK_TITLE_MAX_LENGTH",
            value=val,
            fallback=_DEFAULT_TITLE_MAX_LENGTH,
        )
        return _DEFAULT_TITLE_MAX_LENGTH
    return length


# 任务标题最大长度（字符数）
TASK_TITLE_MAX_LENGTH: int = get_task_title_max_length()

# 新分区内第一个任务的 order 值
FIRST_ORDER: int = 1

# SQLite INTEGER 取值范围（有符号 64 位）
SQLITE_INT_MIN: int = -(2**63)
SQLITE_INT_MAX: int = 2**63 - 1
