from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Field mutation applied to a stored task.
    All fields are optional; only explicitly provided fields are written.
    """

    title: Optional[str] = Field(default=None, description="New display title (may be empty while editing)")
    description: Optional[str] = Field(default=None, description="New free-text description")
    is_completed: Optional[bool] = Field(default=None, description="New completion flag")

    def changes(self) -> dict:
        """Return only the fields that were explicitly set and are not null."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if getattr(self, name) is not None
        }


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "3f1c0a6b9d2e4f5a8b7c6d5e4f3a2b1c",
                "title": "Buy milk",
                "description": "",
                "is_completed": False,
            }
        }
    )

    id: str = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Display title of the task")
    description: str = Field(default="", description="Free-text description")
    is_completed: bool = Field(..., description="Completion status flag")


# PUBLIC_INTERFACE
class TitleIn(BaseModel):
    """Body of a title edit. Empty titles are accepted; editing commits on every keystroke."""

    model_config = ConfigDict(json_schema_extra={"example": {"title": "Buy milk"}})

    title: str = Field(..., max_length=200, description="New display title")


# PUBLIC_INTERFACE
class SearchIn(BaseModel):
    """Body of a search text change."""

    model_config = ConfigDict(json_schema_extra={"example": {"text": "milk"}})

    text: str = Field(default="", max_length=200, description="Case-insensitive title filter")


# PUBLIC_INTERFACE
class EditingIn(BaseModel):
    """Body selecting which task is being edited."""

    task_id: str = Field(..., min_length=1, description="Id of the task to edit")

    @field_validator("task_id")
    @classmethod
    def strip_task_id(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("task_id must not be blank")
        return s


# PUBLIC_INTERFACE
class ListState(BaseModel):
    """
    Snapshot of what the list screen shows.

    Clients may poll this resource and re-render only when ``version`` changes.
    """

    items: List[TaskOut] = Field(..., description="Visible tasks: open first, then completed, filtered by search")
    editing_id: Optional[str] = Field(default=None, description="Id of the task being edited, if any")
    search_text: str = Field(default="", description="Current search text")
    version: int = Field(..., description="Monotonic counter bumped on every change")
    pending_deletions: List[str] = Field(
        default_factory=list, description="Ids of completed tasks scheduled for removal"
    )
