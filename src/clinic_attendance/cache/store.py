"""Key-value cache used for tolerance resolutions and day-scoped admin overrides.

Values must be JSON-compatible (dicts, lists, str, int, float, bool, None) so the same
callers work against the in-memory store in tests and Redis in production.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable, Optional, Protocol

import redis

from ..core.exceptions import CacheUnavailableError


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        raise NotImplementedError

    def forget(self, key: str) -> None:
        raise NotImplementedError

    def clear(self, prefix: str = "") -> None:
        raise NotImplementedError


class InMemoryCacheStore(CacheStore):
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._items: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        item = self._items.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._clock() >= expires_at:
            del self._items[key]
            return None
        return value

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            self._items.pop(key, None)
            return
        self._items[key] = (self._clock() + ttl_seconds, value)

    def forget(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self, prefix: str = "") -> None:
        for key in [k for k in self._items if k.startswith(prefix)]:
            del self._items[key]


class RedisCacheStore(CacheStore):
    def __init__(self, client: redis.Redis, *, namespace: str = "clinic_attendance:"):
        self._client = client
        self._namespace = namespace

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> "RedisCacheStore":
        return cls(redis.Redis.from_url(url, decode_responses=True), **kwargs)

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._client.get(self._key(key))
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e
        return json.loads(raw) if raw is not None else None

    def put(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            if ttl_seconds <= 0:
                self._client.delete(self._key(key))
                return
            self._client.set(self._key(key), json.dumps(value, default=str), ex=int(ttl_seconds))
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e

    def forget(self, key: str) -> None:
        try:
            self._client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e

    def clear(self, prefix: str = "") -> None:
        try:
            keys = list(self._client.scan_iter(match=f"{self._key(prefix)}*"))
            if keys:
                self._client.delete(*keys)
        except redis.RedisError as e:
            raise CacheUnavailableError(str(e)) from e


def build_cache_store(url: str = "") -> CacheStore:
    """Redis when a URL is configured, otherwise a process-local store."""
    if url:
        return RedisCacheStore.from_url(url)
    return InMemoryCacheStore()
