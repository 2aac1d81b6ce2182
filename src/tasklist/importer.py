"""
Import of Obsidian Tasks style markdown lines.

    - [x] Ship release #work ⏫ ➕ 2025-08-29 ✅ 2025-08-30 ;; release notes

Checkbox gives the status, emoji markers the priority and dates, ``#words``
the tags (in order) and the text after ``;;`` the description.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Iterable, List, Optional, Tuple

from .models import Priority, Status, TodoEntity
from .repositories import Repository, TagRepository
from .schemas import TagCreate, TodoCreate

logger = logging.getLogger(__name__)

_CHECKBOX = re.compile(r"^\s*-\s*\[([xX/ \-])\]\s*")
_TAG = re.compile(r"#(\S+)")
# ⏫ 🔺 🔼 🔽 ⏬ ➕ 📅 ✅ ❌ 🛫, plus the emoji variation selector
_MARKERS = re.compile("[\u23eb\U0001f53a\U0001f53c\U0001f53d\u23ec\u2795\U0001f4c5\u2705\u274c\U0001f6eb\ufe0f]")
_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_CREATED = re.compile("\u2795\ufe0f?\\s*(\\d{4}-\\d{2}-\\d{2})")
_DONE = re.compile("\u2705\ufe0f?\\s*(\\d{4}-\\d{2}-\\d{2})")

_STATUS_BY_MARK = {
    "x": Status.COMPLETED,
    "/": Status.IN_PROGRESS,
    " ": Status.PENDING,
    "-": Status.CANCELLED,
}
_HIGH_MARKERS = ("\u23eb", "\U0001f53a", "\U0001f53c")
_LOW_MARKERS = ("\U0001f53d", "\u23ec")

CREATED_TIME = time(9, 0)
COMPLETED_TIME = time(18, 0)


@dataclass
class ParsedTask:
    """A todo ready for the store, plus the creation time taken from the line."""

    todo: TodoCreate
    created_at: Optional[datetime]


def _split_note(line: str) -> Tuple[str, Optional[str]]:
    body, sep, note = line.partition(";;")
    note = note.strip() if sep else ""
    return body, note or None


def parse_status(line: str) -> Status:
    m = _CHECKBOX.match(line)
    if not m:
        return Status.PENDING
    return _STATUS_BY_MARK[m.group(1).lower()]


def parse_priority(line: str) -> Priority:
    if any(marker in line for marker in _HIGH_MARKERS):
        return Priority.HIGH
    if any(marker in line for marker in _LOW_MARKERS):
        return Priority.LOW
    return Priority.MEDIUM


def parse_tags(line: str) -> List[str]:
    body, _ = _split_note(line)
    return _TAG.findall(body)


def parse_title(line: str) -> str:
    body, _ = _split_note(line)
    cleaned = _CHECKBOX.sub("", body, count=1)
    cleaned = _TAG.sub("", cleaned)
    cleaned = _MARKERS.sub("", cleaned)
    cleaned = _DATE.sub("", cleaned)
    return " ".join(cleaned.split())


def _dated(pattern: re.Pattern, line: str, at: time) -> Optional[datetime]:
    m = pattern.search(line)
    if not m:
        return None
    try:
        return datetime.combine(date.fromisoformat(m.group(1)), at)
    except ValueError:
        logger.warning("Ignoring invalid date %s in %r", m.group(1), line)
        return None


# PUBLIC_INTERFACE
def parse_line(line: str) -> Optional[ParsedTask]:
    """
    Parse one markdown task line. Returns None for blank lines or lines without a title.

    Completed tasks without a ✅ date are considered completed at their creation time.

    Raises:
        ValueError: the extracted fields fail TodoCreate validation.
    """
    if not line or not line.strip():
        return None
    title = parse_title(line)
    if not title:
        return None

    status = parse_status(line)
    created_at = _dated(_CREATED, line, CREATED_TIME)
    completed_at = None
    if status == Status.COMPLETED:
        completed_at = _dated(_DONE, line, COMPLETED_TIME) or created_at

    _, note = _split_note(line)
    todo = TodoCreate(
        title=title,
        description=note,
        priority=parse_priority(line),
        status=status,
        tags=parse_tags(line),
        completed_at=completed_at,
    )
    return ParsedTask(todo=todo, created_at=created_at)


# PUBLIC_INTERFACE
def import_lines(
    lines: Iterable[str], todos: Repository, tags: TagRepository
) -> Tuple[List[TodoEntity], int]:
    """
    Parse and store every line. Tags not yet known are created with the default color.

    Returns:
        The created todos and the number of skipped lines. A line that fails to
        parse is skipped and never aborts the batch.
    """
    created: List[TodoEntity] = []
    skipped = 0
    for line in lines:
        try:
            parsed = parse_line(line)
            new_tags = [TagCreate(name=name) for name in parsed.todo.tags] if parsed else []
        except ValueError as e:
            logger.warning("Skipping unparseable task line %r: %s", line, e)
            skipped += 1
            continue
        if parsed is None:
            skipped += 1
            continue
        # imported tags keep the default color; users recolor them afterwards
        for tag in new_tags:
            if tags.get_by_name(tag.name) is None:
                tags.create(tag)
        created.append(todos.create(parsed.todo, created_at=parsed.created_at))
    logger.info("Imported %d todos, skipped %d lines", len(created), skipped)
    return created, skipped
