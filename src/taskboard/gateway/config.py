"""GatewayConfig -- 网关配置加载

从环境变量加载监听地址、端口与 CORS 配置。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

_DEFAULT_PORT = 5000


class GatewayConfig(BaseModel):
    """网关配置 -- 从环境变量加载

    环境变量:
        TASKBOARD_HOST: 监听地址（默认 0.0.0.0）
        PORT / TASKBOARD_PORT: 监听端口（默认 5000，PORT 优先）
        TASKBOARD_CORS_ORIGINS: 逗号分隔的允许来源（默认 *）
    """

    host: str = Field(default="0.0.0.0", description="监听地址")
    port: int = Field(default=_DEFAULT_PORT, ge=1, le=65535, description="监听端口")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="CORS 允许来源",
    )


def load_gateway_config() -> GatewayConfig:
    """从环境变量加载网关配置

    非法端口值记录警告并回退为默认值，不阻塞启动。

    Returns:
        GatewayConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKBOARD_HOST"):
        kwargs["host"] = val

    port_env = "PORT" if os.environ.get("PORT") else "TASKBOARD_PORT"
    if val := os.environ.get(port_env):
        try:
            port = int(val)
            if not 1 <= port <= 65535:
                raise ValueError(val)
            kwargs["port"] = port
        except ValueError:
            log.warning(
                "invalid_port_config",
                env_var=port_env,
                value=val,
                fallback=_DEFAULT_PORT,
            )

    if val := os.environ.get("TASKBOARD_CORS_ORIGINS"):
        origins = [origin.strip() for origin in val.split(",") if origin.strip()]
        if origins:
            kwargs["cors_origins"] = origins

    return GatewayConfig(**kwargs)
