from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from threading import RLock
from typing import Iterable, List, Optional

from .models import TodoEntity, TodoStatus
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListQuery:
    """
    Predicates for listing todos. Unset fields do not filter.
    """
    status: Optional[TodoStatus] = None
    due_before: Optional[datetime] = None  # strict: due_datetime < due_before


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def get(self, todo_id: str) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def list(self, query: Optional[ListQuery] = None) -> List[TodoEntity]:
        """
        Return TodoEntities matching the query, oldest first.
        - Filter by status equality
        - Filter by due_datetime strictly before an instant
        """

    @abstractmethod
    def save(self, entity: TodoEntity) -> TodoEntity:
        """Insert or replace a TodoEntity keyed by its id and return the stored copy."""

    @abstractmethod
    def save_many(self, entities: Iterable[TodoEntity]) -> List[TodoEntity]:
        """Insert or replace several TodoEntities in a single write."""

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the backing store is reachable."""


def _matches(entity: TodoEntity, q: ListQuery) -> bool:
    if q.status is not None and entity["status"] != q.status:
        return False
    if q.due_before is not None and not entity["due_datetime"] < q.due_before:
        return False
    return True


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[str, TodoEntity] = {}

    def get(self, todo_id: str) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def list(self, query: Optional[ListQuery] = None) -> List[TodoEntity]:
        q = query or ListQuery()
        with self._lock:
            items = [t for t in self._items.values() if _matches(t, q)]
            items.sort(key=lambda t: t["creation_datetime"])
            # Return copies to avoid external mutation
            return [t.copy() for t in items]

    def save(self, entity: TodoEntity) -> TodoEntity:
        with self._lock:
            self._items[entity["id"]] = entity.copy()
            return entity.copy()

    def save_many(self, entities: Iterable[TodoEntity]) -> List[TodoEntity]:
        with self._lock:
            saved = []
            for entity in entities:
                self._items[entity["id"]] = entity.copy()
                saved.append(entity.copy())
            return saved

    def ping(self) -> bool:
        return True


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory to return the configured repository based on settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by SQLITE_DB_PATH
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        logger.info("Using SQLite repository at %s", settings.sqlite_db_path)
        return SQLiteRepository(settings.sqlite_db_path)
    logger.info("Using in-memory repository")
    return InMemoryRepository()
