from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Request bodies accept missing text fields; emptiness is enforced by the
# service so every failure uses the same ValidationError envelope.


# PUBLIC_INTERFACE
class ListCreate(BaseModel):
    """
    Schema for creating a new list.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Groceries"}})

    name: Optional[str] = Field(default=None, description="Name of the list (required, non-empty)")


# PUBLIC_INTERFACE
class ListRename(BaseModel):
    """
    Schema for renaming a list. A missing name leaves the list name unchanged.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Weekly groceries"}})

    name: Optional[str] = Field(default=None, description="New name of the list")


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for adding a task to a list.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Milk"}})

    text: Optional[str] = Field(default=None, description="Task text (required, non-empty)")


# PUBLIC_INTERFACE
class TaskRename(BaseModel):
    """
    Schema for renaming a task.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"text": "Oat milk"}})

    text: Optional[str] = Field(
        default=None, description="New task text; surrounding whitespace is trimmed"
    )


# PUBLIC_INTERFACE
class ReorderRequest(BaseModel):
    """
    Schema for reordering the tasks of a list.

    The wire name is `taskIds`; `task_ids` is accepted as well. Tasks of the
    list whose id is not included are removed from the list.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"taskIds": ["3f2a...", "9c1b..."]}},
    )

    task_ids: List[str] = Field(..., alias="taskIds", description="Task ids in their new order")


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "9c1b5e0d4f7a4d0a8a4b8f2e1c3d5a7b",
                "text": "Milk",
                "completed": False,
                "order": 0,
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-25T10:15:30.123456",
            }
        }
    )

    id: str = Field(..., description="Identifier of the task, unique within its list")
    text: str = Field(..., description="Task text")
    completed: bool = Field(..., description="Completion status flag")
    order: int = Field(..., description="Explicit order value")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class ListOut(BaseModel):
    """
    Schema returned by the API for a list with its embedded tasks.
    """

    id: str = Field(..., description="Unique identifier of the list")
    name: str = Field(..., description="Name of the list")
    tasks: List[TaskOut] = Field(default_factory=list, description="Tasks in list sequence order")
    version: int = Field(..., description="Concurrency token, incremented on every change")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class MessageOut(BaseModel):
    """
    Confirmation returned by delete endpoints.
    """

    message: str = Field(..., description="Confirmation message")


class ErrorOut(BaseModel):
    """
    Error envelope used by every failing response.
    """

    error: str = Field(..., description="Error kind, e.g. ValidationError or NotFoundError")
    message: str = Field(..., description="Human readable message")
    detail: Optional[List[Any]] = Field(default=None, description="Request validation details, if any")
