"""Flash messages: one-time, severity-tagged notices surfaced after a redirect."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from enum import Enum
from threading import Lock
from typing import Any, Iterator, Protocol

from redis import Redis

from ..config import Settings

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    notice = "notice"
    ok = "ok"
    warning = "warning"
    error = "error"


@dataclass(slots=True)
class FlashMessage:
    message: str
    title: str = ""
    severity: Severity = Severity.ok
    arguments: list[Any] = field(default_factory=list)
    code: int | None = None

    @property
    def rendered(self) -> str:
        """The message with its ``%s`` placeholders replaced by the arguments."""
        if not self.arguments:
            return self.message
        return self.message % tuple(self.arguments)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlashMessage":
        return cls(
            message=data["message"],
            title=data.get("title", ""),
            severity=Severity(data.get("severity", Severity.ok.value)),
            arguments=list(data.get("arguments") or []),
            code=data.get("code"),
        )


class FlashMessageContainer:
    """Messages collected while handling a single request."""

    def __init__(self) -> None:
        self._messages: list[FlashMessage] = []

    def add(self, message: FlashMessage) -> None:
        self._messages.append(message)

    @property
    def messages(self) -> list[FlashMessage]:
        return list(self._messages)

    def __iter__(self) -> Iterator[FlashMessage]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)


class FlashMessageStore(Protocol):
    def push(self, session_key: str, messages: list[FlashMessage]) -> None: ...

    def pop(self, session_key: str) -> list[FlashMessage]: ...


class InMemoryFlashMessageStore:
    """Thread-safe, process-local flash message queues keyed by session.

    Like the Redis lists, a queue expires ``ttl_seconds`` after its last push.
    """

    def __init__(self, ttl_seconds: int = 300) -> None:
        self._ttl_seconds = ttl_seconds
        self._queues: dict[str, tuple[float, list[FlashMessage]]] = {}
        self._lock = Lock()

    def push(self, session_key: str, messages: list[FlashMessage]) -> None:
        if not messages:
            return
        with self._lock:
            queued = self._live_queue(session_key)
            self._queues[session_key] = (time.monotonic() + self._ttl_seconds, queued + list(messages))

    def pop(self, session_key: str) -> list[FlashMessage]:
        with self._lock:
            queued = self._live_queue(session_key)
            self._queues.pop(session_key, None)
            return queued

    def _live_queue(self, session_key: str) -> list[FlashMessage]:
        entry = self._queues.get(session_key)
        if entry is None:
            return []
        expires_at, messages = entry
        if expires_at < time.monotonic():
            del self._queues[session_key]
            return []
        return messages

    def __len__(self) -> int:
        return len(self._queues)


class RedisFlashMessageStore:
    """Flash message queues stored as Redis lists so they survive across workers."""

    def __init__(self, client: Redis, *, ttl_seconds: int, key_prefix: str = "flash") -> None:
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def push(self, session_key: str, messages: list[FlashMessage]) -> None:
        if not messages:
            return
        key = f"{self._key_prefix}:{session_key}"
        pipeline = self._client.pipeline()
        pipeline.rpush(key, *(json.dumps(message.to_dict()) for message in messages))
        pipeline.expire(key, self._ttl_seconds)
        pipeline.execute()

    def pop(self, session_key: str) -> list[FlashMessage]:
        key = f"{self._key_prefix}:{session_key}"
        pipeline = self._client.pipeline()
        pipeline.lrange(key, 0, -1)
        pipeline.delete(key)
        raw_messages, _ = pipeline.execute()
        return [FlashMessage.from_dict(json.loads(raw)) for raw in raw_messages]


def build_flash_store(settings: Settings) -> FlashMessageStore:
    """Instantiate the configured flash message store, preferring Redis when available."""
    if settings.redis_url:
        client = Redis.from_url(settings.redis_url)
        logger.info("flash messages stored in redis at %s", settings.redis_url)
        return RedisFlashMessageStore(client, ttl_seconds=settings.flash_ttl_seconds)

    logger.info("flash messages stored in memory")
    return InMemoryFlashMessageStore(ttl_seconds=settings.flash_ttl_seconds)
