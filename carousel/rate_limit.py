"""Per-client request admission.

Each client identifier gets a counter that expires a fixed window after
its first request. Requests are admitted while the counter is below the
limit; admission increments it. The counter table lives behind a small
store interface so the in-process table can be swapped for Redis when
several workers must share limits.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Mapping, Optional, Protocol, Tuple

from . import config
from .errors import RateLimitExceededError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


class CounterStore(Protocol):
    def get(self, key: str) -> int:
        ...

    def increment(self, key: str, ttl: float) -> int:
        ...


class InMemoryCounterStore:
    """Expiring counters held in a dict for the life of the process.

    Entries are only touched from the event loop thread, so a get
    followed by an increment for the same key cannot interleave.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[int, float]] = {}

    def _live(self, key: str) -> Optional[Tuple[int, float]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry[1] <= self._clock():
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> int:
        entry = self._live(key)
        return entry[0] if entry else 0

    def increment(self, key: str, ttl: float) -> int:
        entry = self._live(key)
        if entry is None:
            entry = (0, self._clock() + ttl)
        count = entry[0] + 1
        self._entries[key] = (count, entry[1])
        return count


class RedisCounterStore:
    """Counters kept in Redis so limits hold across processes."""

    def __init__(self, redis, prefix: str = "carousel:ratelimit:"):
        self.redis = redis
        self.prefix = prefix

    def get(self, key: str) -> int:
        value = self.redis.get(self.prefix + key)
        return int(value) if value is not None else 0

    def increment(self, key: str, ttl: float) -> int:
        name = self.prefix + key
        # SET NX creates the key with its expiry only on the first hit; INCR keeps the TTL.
        pipe = self.redis.pipeline(transaction=True)
        pipe.set(name, 0, ex=max(1, int(ttl)), nx=True)
        pipe.incr(name)
        _, count = pipe.execute()
        return int(count)


class RateLimiter:
    def __init__(
        self,
        store: Optional[CounterStore] = None,
        *,
        limit: int = config.RATE_LIMIT,
        window: float = config.RATE_LIMIT_WINDOW_SEC,
    ):
        self.store = store if store is not None else InMemoryCounterStore()
        self.limit = limit
        self.window = window

    def allow(self, client_id: str) -> bool:
        return self.store.get(client_id) < self.limit

    def record(self, client_id: str) -> int:
        return self.store.increment(client_id, self.window)

    def check(self, client_id: str) -> None:
        """Admit one request from ``client_id`` or raise ``RateLimitExceededError``."""
        if not self.allow(client_id):
            logger.warning("Rate limit exceeded for client %s", client_id)
            raise RateLimitExceededError(client_id, self.limit)
        self.record(client_id)


def client_id_from_headers(headers: Mapping[str, str]) -> str:
    """Identify the caller from proxy headers, falling back to a shared bucket."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return headers.get("client-ip") or UNKNOWN_CLIENT


def create_store() -> CounterStore:
    """Build the counter store selected by ``RATE_LIMIT_BACKEND``."""
    if config.RATE_LIMIT_BACKEND == "redis":
        from redis import Redis

        logger.info("[startup] Rate limiting backed by Redis at %s:%s", config.REDIS_HOST, config.REDIS_PORT)
        return RedisCounterStore(Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, db=config.REDIS_DB))
    logger.info("[startup] Rate limiting backed by in-process counters")
    return InMemoryCounterStore()
