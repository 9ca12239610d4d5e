"""Redis-backed background jobs.

Ready jobs sit on a list (``<queue>``); delayed and retrying jobs wait in a
sorted set (``<queue>:delayed``) scored by due time; exhausted jobs land on
``<queue>:failed``.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable
from uuid import uuid4

from redis.asyncio import Redis

from adops.core.settings import settings
from adops.services import mailer
from adops.utils.redis_client import get_redis_client

logger = logging.getLogger(__name__)


class JobType(str, Enum):
    SEND_WELCOME_EMAIL = "send_welcome_email"
    SEND_PASSWORD_RESET_EMAIL = "send_password_reset_email"
    SEND_NOTIFICATION_EMAIL = "send_notification_email"


def _keys(queue: str) -> tuple[str, str, str]:
    return queue, f"{queue}:delayed", f"{queue}:failed"


async def enqueue(
    job_type: JobType | str,
    payload: dict[str, Any],
    *,
    delay_seconds: float = 0,
    attempt: int = 0,
    redis: Redis | None = None,
    queue: str | None = None,
) -> str:
    redis = redis or get_redis_client()
    ready_key, delayed_key, _ = _keys(queue or settings.job_queue_name)
    job = {
        "id": uuid4().hex,
        "type": getattr(job_type, "value", job_type),
        "payload": payload,
        "attempt": attempt,
        "enqueued_at": time.time(),
    }
    encoded = json.dumps(job, default=str)
    if delay_seconds > 0:
        await redis.zadd(delayed_key, {encoded: time.time() + delay_seconds})
    else:
        await redis.rpush(ready_key, encoded)
    logger.info("Job enqueued", extra={"job_id": job["id"], "job_type": job["type"], "delay": delay_seconds})
    return job["id"]


async def schedule_welcome_email(user: dict[str, Any], account: dict[str, Any]) -> str | None:
    """Queue a welcome email; scheduling failures are logged and never raised."""
    try:
        return await enqueue(JobType.SEND_WELCOME_EMAIL, {"user": user, "account": account})
    except Exception:
        logger.exception("Failed to schedule welcome email")
        return None


async def queue_stats(*, redis: Redis | None = None, queue: str | None = None) -> dict[str, int]:
    redis = redis or get_redis_client()
    ready_key, delayed_key, failed_key = _keys(queue or settings.job_queue_name)
    return {
        "waiting": await redis.llen(ready_key),
        "delayed": await redis.zcard(delayed_key),
        "failed": await redis.llen(failed_key),
    }


async def _send_welcome(payload: dict[str, Any]) -> None:
    user = payload.get("user") or {}
    account = payload.get("account") or {}
    await mailer.send(
        user["email"],
        "welcome",
        {
            "name": user.get("name") or user["email"],
            "email": user["email"],
            "account_name": account.get("name", ""),
            "login_url": settings.app_login_url,
        },
    )


async def _send_password_reset(payload: dict[str, Any]) -> None:
    user = payload.get("user") or {}
    await mailer.send(
        user["email"],
        "password_reset",
        {"name": user.get("name") or user["email"], "reset_url": payload.get("reset_url")},
    )


async def _send_notification(payload: dict[str, Any]) -> None:
    user = payload.get("user") or {}
    await mailer.send(user["email"], payload.get("template") or "notification", payload.get("data") or {})


HANDLERS: dict[str, Callable[[dict[str, Any]], Awaitable[None]]] = {
    JobType.SEND_WELCOME_EMAIL.value: _send_welcome,
    JobType.SEND_PASSWORD_RESET_EMAIL.value: _send_password_reset,
    JobType.SEND_NOTIFICATION_EMAIL.value: _send_notification,
}


async def promote_due_jobs(redis: Redis, queue: str, now: float | None = None) -> int:
    ready_key, delayed_key, _ = _keys(queue)
    due = await redis.zrangebyscore(delayed_key, 0, now or time.time())
    moved = 0
    for encoded in due:
        if await redis.zrem(delayed_key, encoded):
            await redis.rpush(ready_key, encoded)
            moved += 1
    return moved


async def process_job(encoded: str, *, redis: Redis, queue: str) -> bool:
    """Run one job; on failure retry with exponential backoff until attempts run out."""
    job = json.loads(encoded)
    handler = HANDLERS.get(job.get("type"))
    if handler is None:
        logger.error("Dropping job with unknown type", extra={"job_type": job.get("type")})
        return False
    try:
        await handler(job.get("payload") or {})
    except Exception:
        attempt = int(job.get("attempt", 0)) + 1
        if attempt >= settings.job_max_attempts:
            logger.exception("Job failed permanently", extra={"job_id": job.get("id"), "attempt": attempt})
            await redis.rpush(_keys(queue)[2], json.dumps({**job, "attempt": attempt}))
            return False
        delay = settings.job_backoff_seconds * (2 ** (attempt - 1))
        logger.warning("Job failed; retrying", extra={"job_id": job.get("id"), "attempt": attempt, "delay": delay})
        await enqueue(job["type"], job.get("payload") or {}, delay_seconds=delay, attempt=attempt, redis=redis, queue=queue)
        return False
    logger.info("Job completed", extra={"job_id": job.get("id"), "job_type": job.get("type")})
    return True


async def run_worker(*, poll_timeout: int = 5, queue: str | None = None) -> None:
    redis = get_redis_client()
    queue = queue or settings.job_queue_name
    logger.info("Job worker started", extra={"queue": queue})
    while True:
        await promote_due_jobs(redis, queue)
        item = await redis.blpop([queue], timeout=poll_timeout)
        if item is None:
            continue
        _, encoded = item
        await process_job(encoded, redis=redis, queue=queue)


def main() -> None:
    from adops.core.logging import configure_logging

    configure_logging()
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
