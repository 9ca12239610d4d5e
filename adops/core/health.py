from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from adops.core.settings import settings
from adops.db.session import engine
from adops.utils.redis_client import get_redis_client

APP_VERSION = "0.1.0"


async def _check_db() -> dict[str, str]:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ok"}
    except (SQLAlchemyError, OSError) as exc:
        return {"status": "error", "error": str(exc)}


async def _check_redis() -> dict[str, str]:
    try:
        await get_redis_client().ping()
        return {"status": "ok"}
    except (RedisError, OSError) as exc:
        return {"status": "error", "error": str(exc)}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def live_payload() -> dict[str, str]:
    return {"status": "ok", "timestamp": _now()}


async def ready_payload() -> dict[str, Any]:
    checks = {
        "api": {"status": "ok", "version": APP_VERSION},
        "database": await _check_db(),
        "redis": await _check_redis(),
    }
    ready = all(check.get("status") == "ok" for check in checks.values())
    return {
        "status": "ok" if ready else "degraded",
        "ready": ready,
        "environment": settings.environment,
        "timestamp": _now(),
        "checks": checks,
    }
