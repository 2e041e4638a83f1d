"""服务入口 -- python -m taskboard.gateway

先加载配置，再由 uvicorn 启动应用；数据库连接在 lifespan 中建立，
建立完成后才开始接受请求。
"""

import uvicorn

from .config import load_gateway_config


def main() -> None:
    """启动 HTTP 服务"""
    config = load_gateway_config()
    uvicorn.run(
        "taskboard.gateway.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
