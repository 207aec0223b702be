from __future__ import annotations

from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Iterable, List, Optional

from .errors import DuplicateId, NotFound
from .logging import get_logger
from .models import DEFAULT_TASKS, TaskRecord, make_task
from .schemas import TaskUpdate
from .settings import Settings, get_settings

logger = get_logger(__name__)


# PUBLIC_INTERFACE
class TaskStore(ABC):
    """Abstract contract for durable task storage backends."""

    @abstractmethod
    def insert(self, record: TaskRecord) -> TaskRecord:
        """Store a new record. Raise DuplicateId if its id is already present."""

    @abstractmethod
    def get(self, task_id: str) -> TaskRecord:
        """Return a copy of the record with this id. Raise NotFound if absent."""

    @abstractmethod
    def update(self, task_id: str, mutation: TaskUpdate) -> TaskRecord:
        """Apply the explicitly set fields of ``mutation``. Raise NotFound if absent."""

    @abstractmethod
    def delete(self, task_id: str) -> None:
        """Remove the record with this id. Raise NotFound if absent."""

    @abstractmethod
    def query_all(self) -> List[TaskRecord]:
        """Return copies of every stored record in insertion order."""

    @abstractmethod
    def count(self) -> int:
        """Return the number of stored records."""

    @abstractmethod
    def is_seeded(self) -> bool:
        """Return the durable seed-once flag."""

    @abstractmethod
    def seed(self, records: Iterable[TaskRecord]) -> None:
        """Insert ``records`` and set the seed-once flag as a single atomic unit."""

    def close(self) -> None:
        """Release backend resources."""
        return None


class InMemoryTaskStore(TaskStore):
    """
    Thread-safe in-memory store suitable for testing and ephemeral runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskRecord] = {}
        self._seeded = False

    def _insert_locked(self, record: TaskRecord) -> TaskRecord:
        if record["id"] in self._items:
            raise DuplicateId(record["id"])
        stored: TaskRecord = {
            "id": record["id"],
            "title": record["title"],
            "description": record.get("description") or "",
            "is_completed": bool(record.get("is_completed", False)),
        }
        self._items[stored["id"]] = stored
        return stored.copy()  # type: ignore[return-value]

    def insert(self, record: TaskRecord) -> TaskRecord:
        with self._lock:
            return self._insert_locked(record)

    def get(self, task_id: str) -> TaskRecord:
        with self._lock:
            item = self._items.get(task_id)
            if item is None:
                raise NotFound(task_id)
            return item.copy()  # type: ignore[return-value]

    def update(self, task_id: str, mutation: TaskUpdate) -> TaskRecord:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                raise NotFound(task_id)

            updated = existing.copy()
            updated.update(mutation.changes())  # type: ignore[typeddict-item]
            self._items[task_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete(self, task_id: str) -> None:
        with self._lock:
            if self._items.pop(task_id, None) is None:
                raise NotFound(task_id)

    def query_all(self) -> List[TaskRecord]:
        with self._lock:
            return [t.copy() for t in self._items.values()]  # type: ignore[misc]

    def count(self) -> int:
        with self._lock:
            return len(self._items)

    def is_seeded(self) -> bool:
        with self._lock:
            return self._seeded

    def seed(self, records: Iterable[TaskRecord]) -> None:
        with self._lock:
            staged = list(records)
            seen = set(self._items)
            for record in staged:
                if record["id"] in seen:
                    raise DuplicateId(record["id"])
                seen.add(record["id"])
            for record in staged:
                self._insert_locked(record)
            self._seeded = True


# PUBLIC_INTERFACE
def seed_defaults(store: TaskStore) -> bool:
    """
    Insert the default tasks the first time a store is opened.

    Gated on the store's durable seed-once flag, not on emptiness, so a user
    who deletes every task never gets the defaults back.

    Returns:
        True if the defaults were inserted by this call.
    """
    if store.is_seeded():
        return False
    records = [make_task(title, description) for title, description in DEFAULT_TASKS]
    store.seed(records)
    logger.info("task_store_seeded", count=len(records))
    return True


# PUBLIC_INTERFACE
def get_task_store(settings: Optional[Settings] = None) -> TaskStore:
    """
    Factory to return the configured task store based on settings.
    - memory: InMemoryTaskStore
    - sqlite: SQLiteTaskStore backed by settings.sqlite_db_path
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteTaskStore

        return SQLiteTaskStore(settings.sqlite_db_path)
    return InMemoryTaskStore()
