"""Caches for serialised label catalogues."""

from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Protocol

from redis import Redis

from ..config import Settings

logger = logging.getLogger(__name__)


class LabelCache(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def flush(self) -> None: ...


class InMemoryLabelCache:
    """Process-local cache with per-entry expiry."""

    def __init__(self, ttl_seconds: int) -> None:
        self._ttl = ttl_seconds
        self._entries: dict[str, tuple[float, str]] = {}
        self._lock = Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at < time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = (time.monotonic() + self._ttl, value)

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisLabelCache:
    """Label cache shared by all workers through Redis string keys."""

    def __init__(self, client: Redis, *, ttl_seconds: int, key_prefix: str = "labels") -> None:
        self._client = client
        self._ttl = ttl_seconds
        self._key_prefix = key_prefix

    def get(self, key: str) -> str | None:
        value = self._client.get(f"{self._key_prefix}:{key}")
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def set(self, key: str, value: str) -> None:
        self._client.setex(f"{self._key_prefix}:{key}", self._ttl, value)

    def flush(self) -> None:
        keys = list(self._client.scan_iter(match=f"{self._key_prefix}:*"))
        if keys:
            self._client.delete(*keys)


def build_label_cache(settings: Settings) -> LabelCache:
    """Instantiate the configured label cache backend, preferring Redis when available."""
    if settings.redis_url:
        logger.info("label cache configured for redis backend at %s", settings.redis_url)
        return RedisLabelCache(
            Redis.from_url(settings.redis_url), ttl_seconds=settings.label_cache_ttl_seconds
        )

    logger.info("label cache using in-memory backend")
    return InMemoryLabelCache(ttl_seconds=settings.label_cache_ttl_seconds)
