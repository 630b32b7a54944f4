# glint/cache.py
from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum, StrEnum
from typing import Any, Callable, Dict, Protocol


class TTL(IntEnum):
    """Expiry presets in seconds."""

    SHORT = 60
    MEDIUM = 300
    LONG = 86400


class CachePrefix(StrEnum):
    AR_MODEL = "ar:model:"


class CacheService(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: float) -> None: ...

    def delete(self, key: str) -> None: ...


@dataclass(slots=True)
class _CacheItem:
    value: Any
    expires_at: float


class TTLCache:
    """
    In-memory key/value store with a per-key time to live.

    Expired items are dropped lazily on access and by `purge_expired`.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._items: Dict[str, _CacheItem] = {}

    def get(self, key: str) -> Any | None:
        item = self._items.get(key)
        if item is None:
            return None

        if item.expires_at <= self._clock():
            del self._items[key]
            return None

        return item.value

    def set(self, key: str, value: Any, ttl: float = TTL.MEDIUM) -> None:
        if ttl <= 0:
            raise ValueError(f"TTL must be positive, got {ttl}")
        self._items[key] = _CacheItem(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired item. Returns how many were removed."""
        now = self._clock()
        expired = [k for k, item in self._items.items() if item.expires_at <= now]
        for key in expired:
            del self._items[key]
        return len(expired)

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self._items)
