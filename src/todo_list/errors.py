from __future__ import annotations


class TaskStoreError(Exception):
    """Base class for task store failures."""

    def __init__(self, task_id: str, message: str) -> None:
        super().__init__(message)
        self.task_id = task_id


# PUBLIC_INTERFACE
class NotFound(TaskStoreError):
    """Raised when a task id (or visible position) does not resolve to a record."""

    def __init__(self, task_id: str, message: str = "Task not found") -> None:
        super().__init__(task_id, message)


# PUBLIC_INTERFACE
class DuplicateId(TaskStoreError):
    """Raised when inserting a record whose id is already stored."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id, f"Task id already exists: {task_id}")
