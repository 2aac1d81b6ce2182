from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from typing import List, Optional, TypedDict


# PUBLIC_INTERFACE
class Priority(IntEnum):
    """Todo priority; higher value ranks first."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3


# PUBLIC_INTERFACE
class Status(IntEnum):
    """Todo lifecycle status. COMPLETED is the only status carrying a completion timestamp."""

    PENDING = 0
    IN_PROGRESS = 1
    COMPLETED = 2
    CANCELLED = 3


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight domain model representing a Todo item for non-ORM storage
    backends.

    Fields:
    - id: Unique integer identifier
    - title: Short title (1..200 chars, trimmed on input via schemas)
    - description: Optional detailed description
    - priority: Priority value (1..3)
    - status: Status value (0..3)
    - tags: Tag names in selection order; the first one is the primary sort key
    - image_paths: Stored image file names
    - completed_at: Completion timestamp, set only while status is COMPLETED
    - created_at: creation timestamp (datetime)
    - updated_at: last update timestamp (datetime)
    """

    id: int
    title: str
    description: Optional[str]
    priority: int
    status: int
    tags: List[str]
    image_paths: List[str]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TagEntity(TypedDict):
    """
    A named, colored label. Todos refer to tags by name, not by id, so removing
    or renaming a tag leaves existing todo references untouched.
    """

    id: int
    name: str
    color: str
    created_at: datetime


DEFAULT_TAG_COLOR = "#722ed1"
