from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from .errors import MultipleMatches
from .log import get_logger
from .models import DiaryEntry, Entity, EntityKind, TodoItem
from .settings import Settings, get_settings

logger = get_logger(__name__)

ENTITY_KINDS: Tuple[EntityKind, ...] = (DiaryEntry, TodoItem)


@dataclass(frozen=True)
class SortSpec:
    """
    Ordering applied to query results.

    ``keys`` is a sequence of (field name, ascending) pairs, most significant first.
    """
    keys: Tuple[Tuple[str, bool], ...] = ()

    def apply(self, items: Iterable[Entity]) -> List[Entity]:
        ordered = list(items)
        # Stable sorts from least to most significant key
        for name, ascending in reversed(self.keys):
            ordered.sort(key=lambda e: getattr(e, name), reverse=not ascending)
        return ordered


# Uncompleted first, then oldest-created first within each group
TODO_ORDER = SortSpec((("is_completed", True), ("created_at", True)))


# PUBLIC_INTERFACE
class RecordStore(ABC):
    """
    Abstract contract for the local record store holding diary entries and todo items.

    Mutations are staged until ``persist()`` commits them; reads see staged changes.
    """

    @abstractmethod
    def upsert(self, entity: Entity) -> None:
        """Insert the entity, or overwrite every field of the record with the same id."""

    @abstractmethod
    def find_one_by_day_key(self, kind: EntityKind, day_key: str) -> Optional[Entity]:
        """
        Return the single record of ``kind`` for ``day_key`` or None.
        Raises MultipleMatches if more than one record matches.
        """

    @abstractmethod
    def find_all_by_day_key(self, kind: EntityKind, day_key: str, sort: SortSpec = TODO_ORDER) -> List[Entity]:
        """Return all records of ``kind`` for ``day_key`` ordered by ``sort``."""

    @abstractmethod
    def delete(self, entity: Entity) -> None:
        """Remove the record with the entity's id. Missing records are ignored."""

    def delete_many(self, entities: Iterable[Entity]) -> None:
        for entity in entities:
            self.delete(entity)

    @abstractmethod
    def persist(self) -> None:
        """Durably commit staged changes. Raises PersistenceError on failure."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard every change staged since the last persist."""

    def close(self) -> None:
        """Release any resources held by the store."""


class InMemoryRecordStore(RecordStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._committed: Dict[EntityKind, Dict[UUID, Entity]] = {k: {} for k in ENTITY_KINDS}
        self._staged: Dict[EntityKind, Dict[UUID, Entity]] = {k: {} for k in ENTITY_KINDS}

    def _table(self, kind: EntityKind) -> Dict[UUID, Entity]:
        try:
            return self._staged[kind]
        except KeyError:
            raise TypeError(f"Unsupported entity kind: {kind!r}") from None

    def upsert(self, entity: Entity) -> None:
        with self._lock:
            self._table(type(entity))[entity.id] = entity.copy()

    def find_one_by_day_key(self, kind: EntityKind, day_key: str) -> Optional[Entity]:
        with self._lock:
            matches = [e for e in self._table(kind).values() if e.day_key == day_key]
            if len(matches) > 1:
                raise MultipleMatches(kind.__name__, day_key, len(matches))
            # Return copies to avoid external mutation
            return matches[0].copy() if matches else None

    def find_all_by_day_key(self, kind: EntityKind, day_key: str, sort: SortSpec = TODO_ORDER) -> List[Entity]:
        with self._lock:
            matches = [e.copy() for e in self._table(kind).values() if e.day_key == day_key]
        return sort.apply(matches)

    def delete(self, entity: Entity) -> None:
        with self._lock:
            self._table(type(entity)).pop(entity.id, None)

    def persist(self) -> None:
        with self._lock:
            self._committed = {k: {i: e.copy() for i, e in t.items()} for k, t in self._staged.items()}

    def rollback(self) -> None:
        """Discard every change staged since the last persist."""
        with self._lock:
            self._staged = {k: {i: e.copy() for i, e in t.items()} for k, t in self._committed.items()}


# PUBLIC_INTERFACE
def get_record_store(settings: Optional[Settings] = None) -> RecordStore:
    """
    Factory to return the configured record store based on settings.
    - memory: InMemoryRecordStore
    - sqlite: SQLiteRecordStore at settings.sqlite_db_path
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRecordStore

        logger.info("record_store_opened", backend="sqlite", path=settings.sqlite_db_path)
        return SQLiteRecordStore(settings.sqlite_db_path)
    logger.info("record_store_opened", backend="memory")
    return InMemoryRecordStore()
