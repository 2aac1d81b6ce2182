from __future__ import annotations

import logging
from datetime import date
from typing import FrozenSet, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from ..models import Priority, Status
from ..query import QueryCriteria, query
from ..repositories import Repository, get_repository
from ..schemas import StatusChange, TodoCreate, TodoOut, TodoStats, TodoUpdate, parse_timestamp
from ..stats import todo_stats
from ..utils import paginate, pagination_envelope

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1/todos",
    tags=["todos"],
)


class PaginationEnvelope(BaseModel):
    """
    Envelope for paginated list responses.
    """
    items: List[TodoOut] = Field(..., description="List of Todo items")
    total: int = Field(..., description="Total number of items matching the query")
    limit: Optional[int] = Field(default=None, description="Limit applied to the query, null when unbounded")
    offset: int = Field(..., description="Offset applied to the query")


def _get_repo(repo: Repository = Depends(get_repository)) -> Repository:
    """
    Dependency wrapper for repository to keep signatures clean.
    """
    return repo


def _parse_statuses(values: Optional[List[str]]) -> Optional[FrozenSet[Status]]:
    """
    None when the parameter is absent. Values may be repeated or comma-separated;
    blank values are dropped, so a bare 'status=' is the explicit empty set.
    """
    if values is None:
        return None
    parsed = set()
    for raw in values:
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                parsed.add(Status(int(part)))
            except ValueError:
                logger.warning("Rejected status filter value %r", part)
                raise HTTPException(status_code=400, detail=f"invalid status value: {part}")
    return frozenset(parsed)


def _parse_day(name: str, value: Optional[str]) -> Optional[date]:
    try:
        parsed = parse_timestamp(value)
    except ValueError:
        logger.warning("Rejected %s %r", name, value)
        raise HTTPException(status_code=400, detail=f"invalid {name}: {value}")
    return parsed.date() if parsed else None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_todo(payload: TodoCreate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Create a new Todo.
    """
    created = repo.create(payload)
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PaginationEnvelope,
    summary="Query Todos",
    description=(
        "Filter and rank todos.\n\n"
        "Query parameters:\n"
        "- status: repeatable or comma-separated status values; absent means pending and in progress, "
        "an empty value means no status at all\n"
        "- priority: exact priority\n"
        "- tag: case-insensitive substring of any tag\n"
        "- start_date / end_date: inclusive completion-day bounds; completed todos are included automatically\n"
        "- limit / offset: paging applied after ranking\n\n"
        "Items are ordered by priority (high first), then first tag name, untagged last."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"description": "Invalid query parameters"},
    },
)
def list_todos(
    status_: Optional[List[str]] = Query(None, alias="status", description="Status values to include"),
    priority: Optional[int] = Query(None, ge=1, le=3, description="Priority to match: 1 low, 2 medium, 3 high"),
    tag: Optional[str] = Query(None, description="Tag substring, case-insensitive"),
    start_date: Optional[str] = Query(None, description="First completion day, inclusive"),
    end_date: Optional[str] = Query(None, description="Last completion day, inclusive"),
    limit: Optional[int] = Query(None, ge=0, le=1000, description="Maximum number of items to return"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
    repo: Repository = Depends(_get_repo),
) -> PaginationEnvelope:
    """
    Run the query engine over the full collection and page the ranked result.
    """
    criteria = QueryCriteria(
        statuses=_parse_statuses(status_),
        priority=Priority(priority) if priority is not None else None,
        tag=tag.strip() if tag else None,
        start_date=_parse_day("start_date", start_date),
        end_date=_parse_day("end_date", end_date),
    )
    ranked = query(repo.all(), criteria)
    envelope = pagination_envelope(
        items=[TodoOut(**it) for it in paginate(ranked, limit, offset)],  # type: ignore[arg-type]
        total=len(ranked),
        limit=limit,
        offset=offset,
    )
    return PaginationEnvelope(**envelope)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=TodoStats,
    summary="Todo Statistics",
    description="Counts by status and priority plus the completion rate, over all todos.",
)
def get_stats(repo: Repository = Depends(_get_repo)) -> TodoStats:
    return TodoStats(**todo_stats(repo.all()))


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = repo.get(todo_id)
    if not item:
        raise _not_found()
    return TodoOut(**item)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Replace an existing Todo item. Any fields omitted will be set to their default/null "
        "equivalent as per the schema."
    ),
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def put_todo(todo_id: int, payload: TodoCreate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Full update (replace) semantics implemented via the partial-update capable repository by
    mapping TodoCreate into TodoUpdate fields.
    """
    update = TodoUpdate(**payload.model_dump())
    updated = repo.update(todo_id, update)
    if not updated:
        raise _not_found()
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Partially update fields of a Todo item.",
    responses={
        200: {"description": "Todo updated"},
        404: {"description": "Todo not found"},
    },
)
def patch_todo(todo_id: int, payload: TodoUpdate, repo: Repository = Depends(_get_repo)) -> TodoOut:
    """
    Partial update of a Todo item.
    """
    updated = repo.update(todo_id, payload)
    if not updated:
        raise _not_found()
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}/status",
    response_model=TodoOut,
    summary="Change Todo Status",
    description=(
        "Move a todo to a new status. Completing sets the completion time (now unless given); "
        "any other status clears it."
    ),
    responses={
        200: {"description": "Status updated"},
        404: {"description": "Todo not found"},
    },
)
def change_status(todo_id: int, payload: StatusChange, repo: Repository = Depends(_get_repo)) -> TodoOut:
    updated = repo.update(todo_id, TodoUpdate(**payload.model_dump(exclude_unset=True)))
    if not updated:
        raise _not_found()
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int, repo: Repository = Depends(_get_repo)) -> None:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    ok = repo.delete(todo_id)
    if not ok:
        raise _not_found()
    return None
