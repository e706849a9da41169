from __future__ import annotations

from datetime import datetime
from typing import List, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A single to-do item. Tasks have no lifecycle of their own; they live
    inside the tasks sequence of exactly one ListEntity.

    Fields:
    - id: Opaque identifier, unique within the owning list
    - text: Non-empty task text
    - completed: Completion flag (default False)
    - order: Explicit order value (default 0); equals the task's position
      right after a reorder
    - created_at: Creation timestamp (datetime)
    - updated_at: Last update timestamp (datetime)
    """

    id: str
    text: str
    completed: bool
    order: int
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class ListEntity(TypedDict):
    """
    The List aggregate: a named list together with its full task sequence.
    Read and written as one unit by every store backend.

    Fields:
    - id: Opaque store-assigned identifier
    - name: List name
    - tasks: Ordered task sequence; the order of this sequence is persisted
      as-is and is independent from each task's `order` field
    - version: Optimistic concurrency token, incremented on every save
    - created_at / updated_at: Timestamps (datetime)
    """

    id: str
    name: str
    tasks: List[TaskEntity]
    version: int
    created_at: datetime
    updated_at: datetime
