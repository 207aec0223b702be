from __future__ import annotations

import uuid
from typing import List, Tuple, TypedDict


# PUBLIC_INTERFACE
class TaskRecord(TypedDict):
    """
    A single to-do entry as held by a task store.

    Fields:
    - id: Unique uuid4 hex identifier, generated at creation and never reused
    - title: Display title (may be empty while the user is editing it)
    - description: Free text, empty by default
    - is_completed: Completion flag
    """

    id: str
    title: str
    description: str
    is_completed: bool


# Records inserted on the very first run of a store.
DEFAULT_TASKS: List[Tuple[str, str]] = [
    ("Build the to-do project", "Finish implementing the features"),
    ("Prepare the to-do presentation", "Starts at 4 PM"),
    ("Tap a task to rename it", "Completed tasks disappear after a few seconds"),
]


def new_task_id() -> str:
    return uuid.uuid4().hex


# PUBLIC_INTERFACE
def make_task(title: str, description: str = "", is_completed: bool = False) -> TaskRecord:
    """Build a new TaskRecord with a freshly generated id."""
    return {
        "id": new_task_id(),
        "title": title,
        "description": description,
        "is_completed": is_completed,
    }


def default_title(n: int) -> str:
    """Title given to a task created through the add intent."""
    return f"new task {n}"
