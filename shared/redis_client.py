"""
redis_client.py – singleton Redis connection + helpers
======================================================

• Lazy: the first attribute access connects, trying
  `REDIS_CONNECT_ATTEMPTS` times `REDIS_RETRY_DELAY` s apart. When every
  attempt fails the last `redis.RedisError` reaches the caller and the
  next access starts over, so a store call inside a tick fails instead
  of blocking it.
• `heartbeat(service)` once per loop so supervisors can see us alive.
• `trading_paused()` lets the agent honour the global kill-switch.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import redis

from .config import env
from .constants import KEY_HEARTBEAT, KEY_PAUSE_FLAG
from .logging import get_logger

DEFAULT_REDIS_URL = "redis://redis:6379/0"
log = get_logger("shared.redis")


# ───── LAZY SINGLETON ─────────────────────────────────────────────────
class _LazyRedis:
    """Proxy object that connects on first attribute access."""

    def __init__(self) -> None:
        self._client: Optional[redis.Redis] = None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        if self._client is None:
            self._client = self._connect()
        return getattr(self._client, name)

    def _connect(self) -> redis.Redis:
        url = env("REDIS_URL", DEFAULT_REDIS_URL)
        attempts = max(1, env("REDIS_CONNECT_ATTEMPTS", 3, int))
        delay = env("REDIS_RETRY_DELAY", 2.0, float)
        for attempt in range(1, attempts + 1):
            client = redis.Redis.from_url(url, decode_responses=True,
                                          socket_timeout=2, socket_connect_timeout=2)
            try:
                client.ping()
            except redis.RedisError as exc:
                log.warning("Redis at %s unavailable (%d/%d) – %s",
                            url, attempt, attempts, exc)
                if attempt == attempts:
                    raise
                time.sleep(delay)
            else:
                log.info("Connected to Redis at %s", url)
                return client
        raise AssertionError("unreachable")


# Exposed singleton used by all services
rds: redis.Redis = _LazyRedis()  # type: ignore[assignment]


# ───── HELPER FUNCTIONS ───────────────────────────────────────────────
def heartbeat(service: str) -> None:
    """Store current epoch-seconds in `heartbeat:<service>`."""
    try:
        rds.set(KEY_HEARTBEAT.format(service), time.time())
    except redis.RedisError as exc:
        log.error("heartbeat failed – %s", exc)


def trading_paused() -> bool:
    """True if an operator set the global pause flag, or Redis is down."""
    try:
        return rds.get(KEY_PAUSE_FLAG) == "1"
    except redis.RedisError:
        return True
