"""
Todo query engine: filtering, ranking and the status/completion rule.

Everything here is a pure function of its arguments. Records are read, never
mutated, and no state survives between calls, so overlapping queries cannot
influence each other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import AbstractSet, Any, FrozenSet, Iterable, List, Mapping, Optional, Tuple, TypedDict

from .models import Priority, Status, TodoEntity
from .schemas import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_STATUSES: FrozenSet[Status] = frozenset({Status.PENDING, Status.IN_PROGRESS})


@dataclass(frozen=True)
class QueryCriteria:
    """
    User filter intent. Every field is optional.

    - statuses: None falls back to DEFAULT_STATUSES; an empty set admits nothing.
    - priority: exact priority match.
    - tag: case-insensitive substring matched against each tag name.
    - start_date / end_date: inclusive calendar-day bounds on completed_at.
    """
    statuses: Optional[AbstractSet[Status]] = None
    priority: Optional[Priority] = None
    tag: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class StatusPatch(TypedDict):
    """Fields to persist after a status transition."""

    status: Status
    completed_at: Optional[datetime]


def _as_day(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_timestamp(value)
    return parsed.date() if parsed else None


def completion_day(record: Mapping[str, Any]) -> Optional[date]:
    """
    Calendar day of a record's completed_at, or None when it is missing or
    cannot be parsed.
    """
    try:
        return _as_day(record.get("completed_at"))
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable completed_at on todo %s", record.get("id"))
        return None


# PUBLIC_INTERFACE
def effective_statuses(criteria: QueryCriteria) -> FrozenSet[Status]:
    """
    Status values admitted by a query.

    Unset statuses mean the default pair. A date bound adds COMPLETED, since
    only completed records carry a completion date; no other status is ever
    added implicitly. An explicitly empty set stays empty.
    """
    if criteria.statuses is not None and not criteria.statuses:
        return frozenset()
    statuses = DEFAULT_STATUSES if criteria.statuses is None else frozenset(criteria.statuses)
    if criteria.has_date_range and Status.COMPLETED not in statuses:
        statuses = statuses | {Status.COMPLETED}
    return statuses


def _in_range(day: Optional[date], start: Optional[date], end: Optional[date]) -> bool:
    if day is None:
        return False
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


# PUBLIC_INTERFACE
def filter_todos(collection: Iterable[TodoEntity], criteria: QueryCriteria) -> List[TodoEntity]:
    """
    Return the records satisfying every active criterion, in input order.
    """
    statuses = effective_statuses(criteria)
    needle = (criteria.tag or "").strip().lower()
    start = _as_day(criteria.start_date)
    end = _as_day(criteria.end_date)

    result: List[TodoEntity] = []
    for record in collection:
        if record["status"] not in statuses:
            continue
        if criteria.priority is not None and record["priority"] != criteria.priority:
            continue
        if needle and not any(needle in t.lower() for t in record.get("tags") or []):
            continue
        if criteria.has_date_range and not _in_range(completion_day(record), start, end):
            continue
        result.append(record)
    return result


def _rank_key(record: TodoEntity) -> Tuple[int, bool, str]:
    tags = record.get("tags") or []
    first = tags[0] if tags else ""
    # untagged records go after every real tag name
    return (-int(record["priority"]), not tags, first)


# PUBLIC_INTERFACE
def sort_todos(records: Iterable[TodoEntity]) -> List[TodoEntity]:
    """
    Order records by priority (high first), then first tag name (ordinal,
    ascending, untagged last). Ties keep their input order. Returns a new list.
    """
    return sorted(records, key=_rank_key)


# PUBLIC_INTERFACE
def query(collection: Iterable[TodoEntity], criteria: Optional[QueryCriteria] = None) -> List[TodoEntity]:
    """Filter then rank the collection."""
    c = criteria or QueryCriteria()
    records = list(collection)
    matched = filter_todos(records, c)
    logger.debug("Query %s matched %d of %d todos", c, len(matched), len(records))
    return sort_todos(matched)


# PUBLIC_INTERFACE
def apply_status_change(
    record: Optional[Mapping[str, Any]],
    new_status: Status,
    completed_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> StatusPatch:
    """
    Build the {status, completed_at} patch for a status transition.

    COMPLETED takes the explicit completion time or the current time; any other
    status clears the completion time, whatever the record held before.
    """
    status = Status(new_status)
    if status == Status.COMPLETED:
        stamp = completed_at or now or datetime.now()
    else:
        stamp = None
    if record is not None and record.get("status") != status:
        logger.debug("Todo %s status %s -> %s", record.get("id"), record.get("status"), status.name)
    return {"status": status, "completed_at": stamp}
