from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..repositories import TagNameConflictError, TagRepository, get_tag_repository
from ..schemas import TagCreate, TagOut, TagUpdate

router = APIRouter(
    prefix="/api/v1/tags",
    tags=["tags"],
)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tag not found")


# PUBLIC_INTERFACE
@router.get("/", response_model=List[TagOut], summary="List Tags", description="All tags in creation order.")
def list_tags(repo: TagRepository = Depends(get_tag_repository)) -> List[TagOut]:
    return [TagOut(**t) for t in repo.all()]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TagOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tag",
    description="Create a tag. If a tag with the same trimmed name exists it is returned unchanged.",
)
def create_tag(payload: TagCreate, repo: TagRepository = Depends(get_tag_repository)) -> TagOut:
    return TagOut(**repo.create(payload))  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{tag_id}",
    response_model=TagOut,
    summary="Get Tag",
    responses={404: {"description": "Tag not found"}},
)
def get_tag(tag_id: int, repo: TagRepository = Depends(get_tag_repository)) -> TagOut:
    tag = repo.get(tag_id)
    if not tag:
        raise _not_found()
    return TagOut(**tag)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{tag_id}",
    response_model=TagOut,
    summary="Update Tag",
    description="Rename or recolor a tag. Todos keep the tag names they were saved with.",
    responses={
        404: {"description": "Tag not found"},
        409: {"description": "Another tag already has this name"},
    },
)
def update_tag(tag_id: int, payload: TagUpdate, repo: TagRepository = Depends(get_tag_repository)) -> TagOut:
    try:
        tag = repo.update(tag_id, payload)
    except TagNameConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if not tag:
        raise _not_found()
    return TagOut(**tag)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Tag",
    description="Delete a tag. Todos referring to it by name are not changed.",
    responses={404: {"description": "Tag not found"}},
)
def delete_tag(tag_id: int, repo: TagRepository = Depends(get_tag_repository)) -> None:
    if not repo.delete(tag_id):
        raise _not_found()
    return None
