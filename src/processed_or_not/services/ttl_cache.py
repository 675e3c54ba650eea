from __future__ import annotations

import time
from typing import Generic, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    Einfacher TTL-basierter In-Memory Cache.
    Ein Eintrag läuft `ttl_seconds` nach dem letzten `set` ab; abgelaufene
    Einträge werden beim Lesen oder per `purge_expired` entfernt.
    """

    def __init__(self, ttl_seconds: float) -> None:
        self._ttl = ttl_seconds
        # Key -> (Value, Zeitstempel des letzten Schreibzugriffs)
        self._storage: dict[str, tuple[V, float]] = {}

    def get(self, key: str) -> V | None:
        """Holt einen Wert aus dem Cache, sofern vorhanden und nicht abgelaufen."""
        if key not in self._storage:
            return None

        value, timestamp = self._storage[key]
        if self._expired(timestamp, time.time()):
            del self._storage[key]
            return None

        return value

    def set(self, key: str, value: V) -> None:
        """Speichert einen Wert mit aktuellem Zeitstempel."""
        self._storage[key] = (value, time.time())

    def purge_expired(self) -> int:
        now = time.time()
        expired = [k for k, (_, ts) in self._storage.items() if self._expired(ts, now)]
        for key in expired:
            del self._storage[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._storage)

    def _expired(self, timestamp: float, now: float) -> bool:
        return (now - timestamp) >= self._ttl
