"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性与 WAL 模式。
"""

import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
from taskboard.core.store import verify_wal_mode

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证任务存储可用

    检查项：
    1. sqlite: 数据库连通性（对 tasks 表执行一次查询）
    2. wal_mode: WAL 日志模式是否生效
    """
    checks = {}
    all_ok = True

    store_group = getattr(request.app.state, "store_group", None)
    if store_group is None:
        checks["sqlite"] = "error: store not initialized"
        all_ok = False
    else:
        try:
            cursor = await store_group.conn.execute("SELECT 1 FROM tasks LIMIT 1")
            await cursor.fetchone()
            checks["sqlite"] = "ok"
        except Exception as e:
            log.warning("readiness_check_failed", check="sqlite", error=str(e))
            checks["sqlite"] = "error"
            all_ok = False

        if all_ok:
            wal_enabled = await verify_wal_mode(store_group.conn)
            # 内存数据库不支持 WAL，不视为不可用
            checks["wal_mode"] = "ok" if wal_enabled else "disabled"

    status_code = 200 if all_ok else 503
    status_text = "ready" if all_ok else "not_ready"

    return JSONResponse(
        status_code=status_code,
        content={
            "status": status_text,
            "checks": checks,
        },
    )
