from __future__ import annotations

import time

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from holybond import redis_bus
from holybond.config import get_settings


class _UnreachableRedis:
    attempts = 0

    @classmethod
    def from_url(cls, *_args, **_kwargs) -> "_UnreachableRedis":
        cls.attempts += 1
        return cls()

    async def ping(self) -> bool:
        raise RedisConnectionError("connection refused")


@pytest.fixture
def unreachable_redis(monkeypatch: pytest.MonkeyPatch) -> type[_UnreachableRedis]:
    monkeypatch.setenv("REDIS_URL", "redis://redis.invalid:6379/0")
    monkeypatch.setenv("REDIS_PUBSUB_ENABLED", "true")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    monkeypatch.setattr(redis_bus, "Redis", _UnreachableRedis)
    monkeypatch.setattr(redis_bus, "_client", None)
    monkeypatch.setattr(redis_bus, "_retry_at", 0.0)
    _UnreachableRedis.attempts = 0
    return _UnreachableRedis


@pytest.mark.asyncio
async def test_failed_connect_is_not_retried_during_cooldown(unreachable_redis, monkeypatch) -> None:
    await redis_bus.publish("profiles", {"type": "profile.updated"})
    await redis_bus.publish("chat", {"type": "chat.message"})
    assert unreachable_redis.attempts == 1

    assert redis_bus._retry_at > time.monotonic()

    # Cooldown elapsed
    monkeypatch.setattr(redis_bus, "_retry_at", 0.0)
    await redis_bus.publish("profiles", {"type": "profile.updated"})
    assert unreachable_redis.attempts == 2


@pytest.mark.asyncio
async def test_publish_is_noop_when_disabled(unreachable_redis, monkeypatch) -> None:
    monkeypatch.setenv("REDIS_PUBSUB_ENABLED", "false")
    get_settings.cache_clear()  # type: ignore[attr-defined]

    await redis_bus.publish("interests", {"type": "interest.sent"})
    assert unreachable_redis.attempts == 0
