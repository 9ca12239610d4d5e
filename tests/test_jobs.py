import json

import pytest

from adops.services import jobs, mailer
from adops.services.jobs import JobType


class FakeRedis:
    def __init__(self) -> None:
        self.lists: dict[str, list[str]] = {}
        self.zsets: dict[str, dict[str, float]] = {}

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)
        return len(self.lists[key])

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zrangebyscore(self, key, low, high):
        members = self.zsets.get(key, {})
        return [member for member, score in sorted(members.items(), key=lambda item: item[1]) if low <= score <= high]

    async def zrem(self, key, member):
        return 1 if self.zsets.get(key, {}).pop(member, None) is not None else 0

    async def llen(self, key):
        return len(self.lists.get(key, []))

    async def zcard(self, key):
        return len(self.zsets.get(key, {}))


@pytest.fixture
def redis():
    return FakeRedis()


@pytest.mark.asyncio
async def test_enqueue_ready_and_delayed(redis) -> None:
    job_id = await jobs.enqueue(JobType.SEND_WELCOME_EMAIL, {"user": {"email": "a@example.com"}}, redis=redis, queue="q")
    await jobs.enqueue("send_notification_email", {}, delay_seconds=30, redis=redis, queue="q")

    ready = json.loads(redis.lists["q"][0])
    assert ready["id"] == job_id
    assert ready["type"] == "send_welcome_email"
    assert ready["attempt"] == 0
    assert await jobs.queue_stats(redis=redis, queue="q") == {"waiting": 1, "delayed": 1, "failed": 0}


@pytest.mark.asyncio
async def test_promote_due_jobs(redis) -> None:
    await jobs.enqueue("send_notification_email", {}, delay_seconds=5, redis=redis, queue="q")
    score = next(iter(redis.zsets["q:delayed"].values()))

    assert await jobs.promote_due_jobs(redis, "q", now=score - 1) == 0
    assert await jobs.promote_due_jobs(redis, "q", now=score + 1) == 1
    assert len(redis.lists["q"]) == 1
    assert redis.zsets["q:delayed"] == {}


@pytest.mark.asyncio
async def test_process_welcome_job_sends_email(redis, monkeypatch) -> None:
    sent = []

    async def _send(to, template, data):
        sent.append((to, template, data))

    monkeypatch.setattr(mailer, "send", _send)
    encoded = json.dumps(
        {
            "id": "j1",
            "type": "send_welcome_email",
            "payload": {"user": {"email": "a@example.com", "name": "Ann"}, "account": {"name": "Acme"}},
            "attempt": 0,
        }
    )

    assert await jobs.process_job(encoded, redis=redis, queue="q") is True
    to, template, data = sent[0]
    assert (to, template) == ("a@example.com", "welcome")
    assert data["account_name"] == "Acme"
    assert data["name"] == "Ann"


@pytest.mark.asyncio
async def test_failed_job_is_retried_with_backoff(redis, monkeypatch) -> None:
    async def _fail(*_args, **_kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(mailer, "send", _fail)
    monkeypatch.setattr(jobs.settings, "job_max_attempts", 3)
    monkeypatch.setattr(jobs.settings, "job_backoff_seconds", 2)
    encoded = json.dumps({"id": "j1", "type": "send_notification_email", "payload": {"user": {"email": "a@x.io"}}})

    assert await jobs.process_job(encoded, redis=redis, queue="q") is False
    retried = json.loads(next(iter(redis.zsets["q:delayed"])))
    assert retried["attempt"] == 1


@pytest.mark.asyncio
async def test_exhausted_job_lands_on_failed_list(redis, monkeypatch) -> None:
    async def _fail(*_args, **_kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(mailer, "send", _fail)
    monkeypatch.setattr(jobs.settings, "job_max_attempts", 2)
    encoded = json.dumps(
        {"id": "j1", "type": "send_notification_email", "payload": {"user": {"email": "a@x.io"}}, "attempt": 1}
    )

    assert await jobs.process_job(encoded, redis=redis, queue="q") is False
    assert json.loads(redis.lists["q:failed"][0])["attempt"] == 2
    assert "q:delayed" not in redis.zsets


@pytest.mark.asyncio
async def test_unknown_job_type_is_dropped(redis) -> None:
    assert await jobs.process_job(json.dumps({"type": "mystery"}), redis=redis, queue="q") is False
    assert redis.lists == {}


@pytest.mark.asyncio
async def test_schedule_welcome_email_swallows_queue_errors(monkeypatch) -> None:
    async def _broken(*_args, **_kwargs):
        raise ConnectionError("redis unavailable")

    monkeypatch.setattr(jobs, "enqueue", _broken)

    assert await jobs.schedule_welcome_email({"email": "a@example.com"}, {"name": "Acme"}) is None


def test_main_configures_logging_and_runs_worker(monkeypatch) -> None:
    calls = []

    async def _worker():
        calls.append("worker")

    monkeypatch.setattr("adops.core.logging.configure_logging", lambda: calls.append("logging"))
    monkeypatch.setattr(jobs, "run_worker", _worker)

    jobs.main()

    assert calls == ["logging", "worker"]
