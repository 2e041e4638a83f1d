"""日志配置 -- structlog + 标准库 logging

TASKBOARD_LOG_FORMAT: dev（控制台）/ json（结构化输出）
TASKBOARD_LOG_LEVEL: 根 logger 级别
LOGFIRE_SEND_TO_LOGFIRE: 为 true 时启用 Logfire（需安装 logfire extra）

非法配置值记录警告并回退为默认值。
"""

import logging
import os
from typing import Literal

import structlog
from fastapi import FastAPI
from pydantic import BaseModel, Field

# 任务文本写入日志前的最大长度
_MAX_LOGGED_TEXT = 80
_TASK_TEXT_KEYS = ("title", "description")

# 由本应用自己记录请求日志，这些 logger 只保留警告以上
_QUIET_LOGGERS = ("aiosqlite", "uvicorn.access")


class LogSettings(BaseModel):
    """日志设置"""

    log_format: Literal["dev", "json"] = Field(default="dev", description="渲染模式")
    log_level: str = Field(default="INFO", description="根 logger 级别")

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


def load_log_settings() -> tuple[LogSettings, list[dict[str, str]]]:
    """从环境变量读取日志设置

    Returns:
        (LogSettings, 被忽略的非法配置列表)
        structlog 尚未配置，警告由调用方在 configure 之后输出。
    """
    kwargs: dict = {}
    rejected: list[dict[str, str]] = []

    log_format = os.environ.get("TASKBOARD_LOG_FORMAT", "dev").lower()
    if log_format in ("dev", "json"):
        kwargs["log_format"] = log_format
    else:
        rejected.append({"env_var": "TASKBOARD_LOG_FORMAT", "value": log_format})

    log_level = os.environ.get("TASKBOARD_LOG_LEVEL", "INFO").upper()
    if log_level in logging.getLevelNamesMapping():
        kwargs["log_level"] = log_level
    else:
        rejected.append({"env_var": "TASKBOARD_LOG_LEVEL", "value": log_level})

    return LogSettings(**kwargs), rejected


def shorten_task_text(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """截断事件中过长的任务标题/描述"""
    for key in _TASK_TEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > _MAX_LOGGED_TEXT:
            event_dict[key] = value[:_MAX_LOGGED_TEXT] + "..."
    return event_dict


def setup_logging() -> LogSettings:
    """初始化 structlog，并让标准库 logging（含 uvicorn）共用同一渲染器"""
    settings, rejected = load_log_settings()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        shorten_task_text,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(settings.level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    log = structlog.get_logger()
    for item in rejected:
        log.warning("invalid_log_config", **item, fallback="default")

    return settings


def setup_logfire(app: FastAPI) -> bool:
    """按 LOGFIRE_SEND_TO_LOGFIRE 启用 Logfire，返回是否已启用"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return False
    try:
        import logfire

        logfire.configure(service_name="taskboard-gateway")
        logfire.instrument_fastapi(app, excluded_urls="/health,/ready")
    except Exception as e:
        # Logfire 不可用时仅保留本地日志
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
        )
        return False
    return True
