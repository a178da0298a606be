"""Time-bounded caching for reference data such as the food catalog."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Cache(Protocol):
    """Key-value store whose entries expire after a TTL."""

    def get(self, key: str) -> object | None:
        """Return the stored value, or None when missing or expired."""

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        """Store a value for ttl_seconds."""

    def invalidate(self, key: str) -> None:
        """Drop a value so the next read reloads it."""


@dataclass(frozen=True)
class _Entry:
    value: object
    expires_at: datetime


@dataclass
class InMemoryCache(Cache):
    """Process-local cache; each worker keeps its own copy."""

    _entries: dict[str, _Entry] = field(default_factory=dict)

    def get(self, key: str) -> object | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if _now() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: object, ttl_seconds: int) -> None:
        self._entries[key] = _Entry(
            value=value, expires_at=_now() + timedelta(seconds=ttl_seconds)
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)


def _now() -> datetime:
    return datetime.now(tz=UTC)
