from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..importer import import_lines
from ..repositories import Repository, TagRepository, get_repository, get_tag_repository
from ..schemas import ImportRequest, ImportResult, TodoOut

router = APIRouter(
    prefix="/api/v1/import",
    tags=["import"],
)


# PUBLIC_INTERFACE
@router.post(
    "/todos",
    response_model=ImportResult,
    status_code=status.HTTP_201_CREATED,
    summary="Import Markdown Todos",
    description=(
        "Create todos from Obsidian Tasks style lines such as "
        "'- [x] Ship release #work ⏫ ➕ 2025-08-29 ✅ 2025-08-30 ;; notes'. "
        "Unknown tags are created; unparseable lines are skipped and counted."
    ),
)
def import_todos(
    payload: ImportRequest,
    todos: Repository = Depends(get_repository),
    tags: TagRepository = Depends(get_tag_repository),
) -> ImportResult:
    created, skipped = import_lines(payload.lines, todos, tags)
    return ImportResult(
        imported=len(created),
        skipped=skipped,
        items=[TodoOut(**t) for t in created],  # type: ignore[arg-type]
    )
