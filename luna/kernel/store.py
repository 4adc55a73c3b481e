"""
Key/value storage used by the user directory, the dream store and the rate limiter.

Only the in-memory implementation ships; anything offering the same
get/set/delete/scan surface (e.g. a Redis adapter) can be injected instead.
"""

import time
from abc import ABC, abstractmethod
from threading import RLock
from typing import Any, Callable, Dict, Iterator, Optional, Tuple


class KeyValueStore(ABC):
    """Minimal storage interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value for key, or None if missing or expired."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Store value under key, optionally expiring after ttl seconds."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove key. Returns True if something was removed."""

    @abstractmethod
    def scan(self, prefix: str) -> Iterator[Tuple[str, Any]]:
        """Iterate over (key, value) pairs whose key starts with prefix."""


class InMemoryStore(KeyValueStore):
    """
    Process-local store. Key -> (value, expires_at).

    Expired entries are dropped lazily on access. Contents are lost on restart.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._data: Dict[str, Tuple[Any, Optional[float]]] = {}
        self._lock = RLock()
        self._clock = clock

    def _expired(self, expires_at: Optional[float]) -> bool:
        return expires_at is not None and self._clock() >= expires_at

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._expired(expires_at):
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            expires_at = self._clock() + ttl if ttl is not None else None
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def scan(self, prefix: str) -> Iterator[Tuple[str, Any]]:
        with self._lock:
            items = [
                (k, v)
                for k, (v, expires_at) in self._data.items()
                if k.startswith(prefix) and not self._expired(expires_at)
            ]
        return iter(items)

    def cleanup_expired(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        with self._lock:
            stale = [k for k, (_, exp) in self._data.items() if self._expired(exp)]
            for k in stale:
                del self._data[k]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
