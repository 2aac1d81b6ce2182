from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import DEFAULT_TAG_COLOR, Priority, Status

# Shared type for incoming timestamps which can be a date, datetime, or string
TimestampInput = Union[date, datetime, str]

_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


# PUBLIC_INTERFACE
def parse_timestamp(value: Optional[TimestampInput]) -> Optional[datetime]:
    """
    Normalize a timestamp into a naive-or-aware datetime.
    - None or a blank string yields None.
    - A datetime is returned as-is; a date is promoted to midnight.
    - Strings are tried as 'YYYY-MM-DD HH:MM:SS', then ISO8601 date-time (a trailing
      'Z' is dropped), then ISO8601 date (midnight).

    Raises:
        ValueError: the value cannot be interpreted as a timestamp.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1]
        try:
            return datetime.strptime(s, _TIMESTAMP_FORMAT)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
                return datetime(d.year, d.month, d.day, 0, 0, 0)
            except ValueError as e:
                raise ValueError(
                    "Invalid timestamp format. Use 'YYYY-MM-DD HH:MM:SS' or an ISO8601 date or datetime "
                    "(e.g., '2025-01-31' or '2025-01-31T13:45:00')."
                ) from e

    raise ValueError("Invalid type for timestamp; expected date, datetime, or string.")


def _clean_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    return [v.strip() for v in values if v and v.strip()]


def _clean_title(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    s = v.strip()
    if not (1 <= len(s) <= 200):
        raise ValueError("title length must be between 1 and 200 characters")
    return s


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    Priority defaults to LOW and status to PENDING.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": 2,
                "status": 0,
                "tags": ["Home"],
                "image_paths": [],
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(default=Priority.LOW, description="1: low, 2: medium, 3: high")
    status: Status = Field(
        default=Status.PENDING, description="0: pending, 1: in progress, 2: completed, 3: cancelled"
    )
    tags: List[str] = Field(default_factory=list, description="Tag names; the first one is used for sorting")
    image_paths: List[str] = Field(default_factory=list, description="Names of uploaded images")
    completed_at: Optional[datetime] = Field(
        default=None,
        description="Completion time; only kept when status is completed, defaults to now",
    )

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        if v is None:
            raise ValueError("title is required")
        return _clean_title(v)  # type: ignore[return-value]

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return _clean_tags(v) or []

    @field_validator("completed_at", mode="before")
    @classmethod
    def parse_completed_at(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Schema for updating an existing Todo item.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "priority": 3,
                "status": 2,
                "completed_at": "2025-02-02 09:30:00",
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item", min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Optional[Priority] = Field(default=None, description="1: low, 2: medium, 3: high")
    status: Optional[Status] = Field(
        default=None, description="0: pending, 1: in progress, 2: completed, 3: cancelled"
    )
    tags: Optional[List[str]] = Field(default=None, description="Replacement tag list")
    image_paths: Optional[List[str]] = Field(default=None, description="Replacement image list")
    completed_at: Optional[datetime] = Field(default=None, description="Completion time")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        """
        If title is provided, strip whitespace and enforce 1..200 length.
        """
        return _clean_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(v)

    @field_validator("completed_at", mode="before")
    @classmethod
    def parse_completed_at(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class StatusChange(BaseModel):
    """Body of a status transition request."""

    status: Status = Field(..., description="New status value")
    completed_at: Optional[datetime] = Field(
        default=None, description="Explicit completion time; only used when status is completed"
    )

    @field_validator("completed_at", mode="before")
    @classmethod
    def parse_completed_at(cls, v: Optional[TimestampInput]) -> Optional[datetime]:
        return parse_timestamp(v)


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "priority": 2,
                "status": 2,
                "tags": ["Home"],
                "image_paths": [],
                "completed_at": "2025-01-26T18:00:00",
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-26T18:00:00",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    priority: Priority = Field(..., description="1: low, 2: medium, 3: high")
    status: Status = Field(..., description="0: pending, 1: in progress, 2: completed, 3: cancelled")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    image_paths: List[str] = Field(default_factory=list, description="Names of uploaded images")
    completed_at: Optional[datetime] = Field(default=None, description="Completion timestamp")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class TodoStats(BaseModel):
    """Dashboard counters over the whole collection."""

    total: int
    pending: int
    in_progress: int
    completed: int
    cancelled: int
    high_priority: int
    medium_priority: int
    low_priority: int
    completion_rate: int = Field(..., description="Completed share of all todos, rounded percent")


# PUBLIC_INTERFACE
class TagCreate(BaseModel):
    """
    Schema for creating a tag. Names are trimmed; creating an existing name returns the existing tag.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"name": "Work", "color": "#1890ff"}})

    name: str = Field(..., description="Unique tag name", min_length=1, max_length=50)
    color: str = Field(default=DEFAULT_TAG_COLOR, description="Display color")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        s = v.strip()
        if not s:
            raise ValueError("name must not be blank")
        return s


# PUBLIC_INTERFACE
class TagUpdate(BaseModel):
    """Schema for updating a tag; omitted fields are kept."""

    name: Optional[str] = Field(default=None, description="New tag name", min_length=1, max_length=50)
    color: Optional[str] = Field(default=None, description="New display color")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        s = v.strip()
        if not s:
            raise ValueError("name must not be blank")
        return s


# PUBLIC_INTERFACE
class TagOut(BaseModel):
    """Schema returned by the API for a tag."""

    id: int
    name: str
    color: str
    created_at: datetime


# PUBLIC_INTERFACE
class ImportRequest(BaseModel):
    """Markdown task lines to import, one task per line."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"lines": ["- [x] Ship release #work ⏫ ➕ 2025-08-29 ✅ 2025-08-30 ;; notes"]}
        }
    )

    lines: List[str] = Field(..., description="Task lines in Obsidian Tasks format")


# PUBLIC_INTERFACE
class ImportResult(BaseModel):
    """Outcome of a markdown import."""

    imported: int
    skipped: int
    items: List[TodoOut] = Field(default_factory=list)


# PUBLIC_INTERFACE
class UploadResult(BaseModel):
    """Stored names and URLs of uploaded files."""

    files: List[str]
    urls: List[str]
