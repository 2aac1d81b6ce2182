from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, TypeVar

T = TypeVar("T")


# PUBLIC_INTERFACE
def paginate(items: Sequence[T], limit: Optional[int], offset: int) -> List[T]:
    """
    Slice an already ordered result. A limit of None returns everything after offset.
    """
    start = max(offset, 0)
    if limit is None:
        return list(items[start:])
    return list(items[start:start + max(limit, 0)])


# PUBLIC_INTERFACE
def pagination_envelope(items: Sequence[Any], total: int, limit: Optional[int], offset: int) -> Dict[str, Any]:
    """
    Build a standard pagination envelope for list endpoints.

    Args:
        items: The items of the current page.
        total: Total number of items that match the query (ignoring pagination).
        limit: The limit used for pagination, or None when unbounded.
        offset: The offset used for pagination.

    Returns:
        Dict with keys: items, total, limit, offset.
    """
    return {
        "items": list(items),
        "total": int(total),
        "limit": None if limit is None else int(max(limit, 0)),
        "offset": int(max(offset, 0)),
    }
