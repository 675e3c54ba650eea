from __future__ import annotations

import itertools
import logging
import time
from typing import Any

from processed_or_not.domain.models import ProgressEntry, ProgressEvent, ProgressEventKind
from processed_or_not.domain.ports import ProgressListener, ProgressStorePort
from processed_or_not.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 5 * 60


def event_kind(entry: ProgressEntry) -> ProgressEventKind:
    if not entry.is_complete:
        return "progress"
    return "error" if entry.error else "complete"


class InMemoryProgressStore(ProgressStorePort):
    """
    Prozesslokaler Progress Store auf Basis des TTLCache.

    Jeder `reset` startet einen neuen Lauf mit eigener run_id. Updates mit
    veralteter run_id (abgelöster Lauf) werden verworfen. Innerhalb eines Laufs
    schrumpft `completed_sources` nie und `is_complete` fällt nie auf False zurück.
    Alle Zugriffe erfolgen aus dem Event-Loop, daher kein Locking.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS) -> None:
        self._entries: TTLCache[ProgressEntry] = TTLCache(ttl_seconds)
        self._run_ids = itertools.count(1)
        self._listeners: list[ProgressListener] = []

    def reset(self, key: str, total_sources: int = 0) -> int:
        entry = ProgressEntry(
            key=key,
            total_sources=total_sources,
            timestamp=time.time(),
            run_id=next(self._run_ids),
        )
        self._entries.set(key, entry)
        self._notify(entry)
        return entry.run_id

    def update(
        self, key: str, *, run_id: int | None = None, **fields: Any
    ) -> ProgressEntry | None:
        existing = self._entries.get(key)
        if run_id is not None and (existing is None or existing.run_id != run_id):
            logger.debug("Dropping stale progress update for '%s' (run %s)", key, run_id)
            return None
        if existing is None:
            existing = ProgressEntry(key=key, run_id=next(self._run_ids))

        merged = {**existing.model_dump(), **fields, "key": key, "timestamp": time.time()}
        if len(tuple(merged["completed_sources"])) < len(existing.completed_sources):
            merged["completed_sources"] = existing.completed_sources
        if existing.is_complete:
            merged["is_complete"] = True
        merged["total_sources"] = max(merged["total_sources"], len(merged["completed_sources"]))

        entry = ProgressEntry.model_validate(merged)
        self._entries.set(key, entry)
        self._notify(entry)
        return entry

    def get(self, key: str) -> ProgressEntry | None:
        return self._entries.get(key)

    def complete(
        self,
        key: str,
        found: bool,
        source_name: str | None = None,
        *,
        error: str | None = None,
        run_id: int | None = None,
    ) -> ProgressEntry | None:
        existing = self._entries.get(key)
        completed = existing.completed_sources if existing else ()
        if found and source_name and source_name not in completed:
            completed = (*completed, source_name)
        return self.update(
            key,
            run_id=run_id,
            is_complete=True,
            found=found,
            current_source="",
            completed_sources=completed,
            error=error,
        )

    def is_current(self, key: str, run_id: int) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.run_id == run_id

    def purge_expired(self) -> int:
        purged = self._entries.purge_expired()
        if purged:
            logger.debug("Purged %d expired progress entries", purged)
        return purged

    def add_listener(self, listener: ProgressListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ProgressListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def __len__(self) -> int:
        return len(self._entries)

    def _notify(self, entry: ProgressEntry) -> None:
        event = ProgressEvent(kind=event_kind(entry), entry=entry)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener failed for '%s'", entry.key)
