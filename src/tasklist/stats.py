from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable

from .models import Priority, Status, TodoEntity


# PUBLIC_INTERFACE
def todo_stats(collection: Iterable[TodoEntity]) -> Dict[str, int]:
    """Dashboard counters by status and priority over the whole, unfiltered collection."""
    records = list(collection)
    by_status = Counter(r["status"] for r in records)
    by_priority = Counter(r["priority"] for r in records)
    total = len(records)
    completed = by_status[Status.COMPLETED]
    return {
        "total": total,
        "pending": by_status[Status.PENDING],
        "in_progress": by_status[Status.IN_PROGRESS],
        "completed": completed,
        "cancelled": by_status[Status.CANCELLED],
        "high_priority": by_priority[Priority.HIGH],
        "medium_priority": by_priority[Priority.MEDIUM],
        "low_priority": by_priority[Priority.LOW],
        # rounds halves up: 1 of 8 is 13
        "completion_rate": (completed * 200 + total) // (2 * total) if total else 0,
    }
