"""
Task list controller.

Owns the state the list screen renders from (visible tasks, the task being
edited, the search text) and the completion workflow: a task toggled to
completed is removed automatically after a delay unless it is toggled back or
deleted first.

The controller is not thread-safe. Every call, including the deletion
callbacks, must run on one thread; in the service that is the asyncio event
loop thread, and the scheduler is the running loop itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol

from .errors import NotFound
from .logging import get_logger
from .models import TaskRecord, default_title, make_task
from .repositories import TaskStore
from .schemas import TaskUpdate
from .settings import DEFAULT_COMPLETION_DELETE_DELAY
from .utils import visible_projection

logger = get_logger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback later on the caller's thread (e.g. an asyncio loop)."""

    def call_later(self, delay: float, callback: Callable[..., object], *args: object) -> Cancellable: ...


@dataclass(frozen=True)
class ListSnapshot:
    """Immutable view of the controller state at one point in time."""

    items: List[TaskRecord]
    editing_id: Optional[str]
    search_text: str
    version: int
    pending_deletions: List[str] = field(default_factory=list)


Listener = Callable[[ListSnapshot], None]


# PUBLIC_INTERFACE
class TaskListController:
    """Mediates between the task store and what the list screen shows."""

    def __init__(
        self,
        store: TaskStore,
        scheduler: Scheduler,
        *,
        completion_delay: float = DEFAULT_COMPLETION_DELETE_DELAY,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._completion_delay = completion_delay
        self._pending: Dict[str, Cancellable] = {}
        self._listeners: List[Listener] = []
        self.editing_id: Optional[str] = None
        self.search_text: str = ""
        self.version: int = 0

    # -------------------- read side --------------------

    def visible_records(self) -> List[TaskRecord]:
        """Open tasks before completed ones, in store order, filtered by the search text."""
        return visible_projection(self._store.query_all(), self.search_text)

    def get(self, task_id: str) -> TaskRecord:
        return self._store.get(task_id)

    def pending_deletions(self) -> List[str]:
        return list(self._pending)

    def snapshot(self) -> ListSnapshot:
        return ListSnapshot(
            items=self.visible_records(),
            editing_id=self.editing_id,
            search_text=self.search_text,
            version=self.version,
            pending_deletions=self.pending_deletions(),
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register ``listener`` to receive a snapshot after every change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.version += 1
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # -------------------- intents --------------------

    def add(self) -> TaskRecord:
        """Append a task titled "new task N", N being the total task count plus one."""
        record = self._store.insert(make_task(default_title(self._store.count() + 1)))
        logger.info("task_added", task_id=record["id"], title=record["title"])
        self._changed()
        return record

    def set_title(self, task_id: str, title: str) -> TaskRecord:
        record = self._store.update(task_id, TaskUpdate(title=title))
        self.editing_id = None
        self._changed()
        return record

    def begin_editing(self, task_id: str) -> None:
        """Make ``task_id`` the only task being edited."""
        self._store.get(task_id)
        self.editing_id = task_id
        self._changed()

    def end_editing(self) -> None:
        self.editing_id = None
        self._changed()

    def set_search_text(self, text: str) -> None:
        self.search_text = text
        self._changed()

    def toggle_completion(self, task_id: str) -> TaskRecord:
        """
        Flip the completion flag of a task.

        Completing a task schedules its deletion after the completion delay,
        replacing any deletion already pending for it. Reopening it cancels
        the pending deletion.
        """
        current = self._store.get(task_id)
        record = self._store.update(task_id, TaskUpdate(is_completed=not current["is_completed"]))
        self._cancel_pending(task_id)
        if record["is_completed"]:
            self._pending[task_id] = self._scheduler.call_later(
                self._completion_delay, self._delete_completed, task_id
            )
            logger.debug("deletion_scheduled", task_id=task_id, delay=self._completion_delay)
        self._changed()
        return record

    def delete(self, task_id: str) -> None:
        self._cancel_pending(task_id)
        self._store.delete(task_id)
        if self.editing_id == task_id:
            self.editing_id = None
        logger.info("task_deleted", task_id=task_id)
        self._changed()

    def delete_at(self, index: int) -> TaskRecord:
        """
        Delete the task shown at ``index`` of the visible list.

        Raises:
            NotFound: if no task is visible at that position.
        """
        visible = self.visible_records()
        if index < 0 or index >= len(visible):
            raise NotFound(str(index), "No task at that position")
        record = visible[index]
        self.delete(record["id"])
        return record

    def shutdown(self) -> None:
        """Cancel every pending deletion."""
        for task_id in list(self._pending):
            self._cancel_pending(task_id)

    # -------------------- timers --------------------

    def _cancel_pending(self, task_id: str) -> None:
        handle = self._pending.pop(task_id, None)
        if handle is not None:
            handle.cancel()
            logger.debug("deletion_cancelled", task_id=task_id)

    def _delete_completed(self, task_id: str) -> None:
        self._pending.pop(task_id, None)
        try:
            self._store.delete(task_id)
        except NotFound:
            logger.debug("deletion_skipped", task_id=task_id, reason="not_found")
            return
        if self.editing_id == task_id:
            self.editing_id = None
        logger.info("completed_task_removed", task_id=task_id)
        self._changed()
