"""Domain event fan-out over Redis pub/sub.

Other connected clients (or workers) subscribe to ``<prefix>.profiles``,
``<prefix>.interests`` and ``<prefix>.chat`` to refresh their views. Publishing
is best-effort and a no-op when pub/sub is disabled.
"""

import json
import logging
import time
from typing import Any, Dict, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import get_settings

LOGGER = logging.getLogger("uvicorn.error")

_client: Optional[Redis] = None
# monotonic time before which no reconnect is attempted
_retry_at: float = 0.0

RECONNECT_COOLDOWN_S = 30.0


def _channel(topic: str) -> str:
    prefix = (get_settings().redis_pubsub_prefix or "").strip()
    return f"{prefix}.{topic}" if prefix else topic


async def _ensure_client() -> Optional[Redis]:
    global _client, _retry_at
    if _client is not None:
        return _client
    settings = get_settings()
    if not settings.redis_url:
        return None
    if time.monotonic() < _retry_at:
        return None
    try:
        client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=False,
        )
        await client.ping()
        _client = client
    except (RedisError, OSError) as exc:
        LOGGER.warning(
            "Redis unavailable, events will not be published for %ds: %s",
            int(RECONNECT_COOLDOWN_S),
            exc,
        )
        _client = None
        _retry_at = time.monotonic() + RECONNECT_COOLDOWN_S
    return _client


async def publish(topic: str, event: Dict[str, Any]) -> None:
    if not get_settings().redis_pubsub_enabled:
        return
    client = await _ensure_client()
    if not client:
        return
    try:
        payload = json.dumps(event, separators=(",", ":")).encode("utf-8")
        await client.publish(_channel(topic), payload)
    except (RedisError, OSError) as exc:
        LOGGER.warning("Failed to publish %s event: %s", topic, exc)


async def stop() -> None:
    global _client, _retry_at
    _retry_at = 0.0
    if _client is not None:
        try:
            await _client.aclose()
        except (RedisError, OSError):
            pass
        _client = None


__all__ = ["publish", "stop"]
