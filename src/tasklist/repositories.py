from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import List, Optional

from .models import Status, TagEntity, TodoEntity
from .query import StatusPatch, apply_status_change
from .schemas import TagCreate, TagUpdate, TodoCreate, TodoUpdate
from .settings import get_settings

logger = logging.getLogger(__name__)


class TagNameConflictError(ValueError):
    """Raised when a tag would be renamed onto another tag's name."""


def initial_status_fields(data: TodoCreate, now: datetime) -> StatusPatch:
    """Status/completion pair for a new todo."""
    return apply_status_change(None, data.status, data.completed_at, now=now)


def resolve_status_fields(existing: TodoEntity, data: TodoUpdate) -> Optional[StatusPatch]:
    """
    Status/completion pair for an update, or None when the update leaves both alone.

    A status in the update always goes through apply_status_change. Re-saving a
    completed todo as completed without a timestamp keeps its completion time.
    A bare completed_at is only honored while the todo is completed.
    """
    fields = data.model_fields_set
    if "status" in fields and data.status is not None:
        explicit = data.completed_at if "completed_at" in fields else None
        if explicit is None and data.status == Status.COMPLETED and existing["status"] == Status.COMPLETED:
            explicit = existing["completed_at"]
        return apply_status_change(existing, data.status, explicit)
    if "completed_at" in fields and data.completed_at is not None and existing["status"] == Status.COMPLETED:
        return {"status": Status.COMPLETED, "completed_at": data.completed_at}
    return None


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, data: TodoCreate, created_at: Optional[datetime] = None) -> TodoEntity:
        """Create and return a new TodoEntity. created_at overrides the creation time (imports)."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        """Update fields of an existing TodoEntity. Return updated entity or None if not found."""

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def all(self) -> List[TodoEntity]:
        """Return every stored TodoEntity in id order. Filtering is left to tasklist.query."""


# PUBLIC_INTERFACE
class TagRepository(ABC):
    """Abstract repository contract for tag storage backends."""

    @abstractmethod
    def create(self, data: TagCreate) -> TagEntity:
        """Create a tag, or return the existing tag with the same name."""

    @abstractmethod
    def get(self, tag_id: int) -> Optional[TagEntity]:
        """Return a tag by id, or None."""

    @abstractmethod
    def get_by_name(self, name: str) -> Optional[TagEntity]:
        """Return a tag by exact (trimmed) name, or None."""

    @abstractmethod
    def update(self, tag_id: int, data: TagUpdate) -> Optional[TagEntity]:
        """Update a tag. Raise TagNameConflictError if the new name is taken by another tag."""

    @abstractmethod
    def delete(self, tag_id: int) -> bool:
        """Delete a tag. Todos referring to it by name are left as they are."""

    @abstractmethod
    def all(self) -> List[TagEntity]:
        """Return every tag in id order."""


def _copy_todo(entity: TodoEntity) -> TodoEntity:
    out = entity.copy()
    out["tags"] = list(entity["tags"])
    out["image_paths"] = list(entity["image_paths"])
    return out


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1

    def _now(self) -> datetime:
        return datetime.now()

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, data: TodoCreate, created_at: Optional[datetime] = None) -> TodoEntity:
        now = self._now()
        created = created_at or now
        status_fields = initial_status_fields(data, created)
        entity: TodoEntity = {
            "id": self._allocate_id(),
            "title": data.title,
            "description": data.description,
            "priority": int(data.priority),
            "status": int(status_fields["status"]),
            "tags": list(data.tags),
            "image_paths": list(data.image_paths),
            "completed_at": status_fields["completed_at"],
            "created_at": created,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        logger.info("Created todo %s", entity["id"])
        return _copy_todo(entity)

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else _copy_todo(item)

    def update(self, todo_id: int, data: TodoUpdate) -> Optional[TodoEntity]:
        with self._lock:
            existing = self._items.get(todo_id)
            if existing is None:
                return None

            # Update only provided fields
            updated = _copy_todo(existing)
            if data.title is not None:
                updated["title"] = data.title
            if "description" in data.model_fields_set:
                updated["description"] = data.description
            if data.priority is not None:
                updated["priority"] = int(data.priority)
            if data.tags is not None:
                updated["tags"] = list(data.tags)
            if data.image_paths is not None:
                updated["image_paths"] = list(data.image_paths)
            patch = resolve_status_fields(existing, data)
            if patch is not None:
                updated["status"] = int(patch["status"])
                updated["completed_at"] = patch["completed_at"]
            updated["updated_at"] = self._now()

            self._items[todo_id] = updated
            logger.info("Updated todo %s", todo_id)
            return _copy_todo(updated)

    def delete(self, todo_id: int) -> bool:
        with self._lock:
            removed = self._items.pop(todo_id, None) is not None
        if removed:
            logger.info("Deleted todo %s", todo_id)
        return removed

    def all(self) -> List[TodoEntity]:
        with self._lock:
            # Return copies to avoid external mutation
            return [_copy_todo(t) for _, t in sorted(self._items.items())]


class InMemoryTagRepository(TagRepository):
    """Thread-safe in-memory tag store."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TagEntity] = {}
        self._next_id = 1

    def _find(self, name: str) -> Optional[TagEntity]:
        for tag in self._items.values():
            if tag["name"] == name:
                return tag
        return None

    def create(self, data: TagCreate) -> TagEntity:
        with self._lock:
            existing = self._find(data.name)
            if existing is not None:
                return existing.copy()
            tag: TagEntity = {
                "id": self._next_id,
                "name": data.name,
                "color": data.color,
                "created_at": datetime.now(),
            }
            self._next_id += 1
            self._items[tag["id"]] = tag
        logger.info("Created tag %r", tag["name"])
        return tag.copy()

    def get(self, tag_id: int) -> Optional[TagEntity]:
        with self._lock:
            tag = self._items.get(tag_id)
            return None if tag is None else tag.copy()

    def get_by_name(self, name: str) -> Optional[TagEntity]:
        with self._lock:
            tag = self._find(name.strip())
            return None if tag is None else tag.copy()

    def update(self, tag_id: int, data: TagUpdate) -> Optional[TagEntity]:
        with self._lock:
            existing = self._items.get(tag_id)
            if existing is None:
                return None
            updated = existing.copy()
            if data.name is not None:
                clash = self._find(data.name)
                if clash is not None and clash["id"] != tag_id:
                    raise TagNameConflictError(f"Tag name already exists: {data.name}")
                updated["name"] = data.name
            if data.color is not None:
                updated["color"] = data.color
            self._items[tag_id] = updated
            return updated.copy()

    def delete(self, tag_id: int) -> bool:
        with self._lock:
            return self._items.pop(tag_id, None) is not None

    def all(self) -> List[TagEntity]:
        with self._lock:
            return [t.copy() for _, t in sorted(self._items.items())]


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide todo repository selected by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_tag_repository() -> TagRepository:
    """Return the process-wide tag repository selected by settings."""
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteTagRepository

        return SQLiteTagRepository(settings.sqlite_db_path)
    return InMemoryTagRepository()
