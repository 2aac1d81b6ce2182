from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from ..schemas import UploadResult
from ..storage import FileStorage, UploadRejectedError, get_file_storage

router = APIRouter(
    prefix="/api/v1/files",
    tags=["files"],
)


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Images",
    description="Store one or more images (jpg, jpeg, png, gif, bmp, webp) and return their generated names.",
    responses={400: {"description": "Empty, oversized or unsupported file"}},
)
def upload_files(
    files: List[UploadFile] = File(..., description="Images to store"),
    storage: FileStorage = Depends(get_file_storage),
) -> UploadResult:
    names: List[str] = []
    try:
        for upload in files:
            names.append(storage.save(upload.filename, upload.file))
    except UploadRejectedError as e:
        # keep the batch all-or-nothing
        for name in names:
            storage.delete(name)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return UploadResult(files=names, urls=[storage.url_for(n) for n in names])


# PUBLIC_INTERFACE
@router.get(
    "/{name}",
    summary="Download Image",
    response_class=FileResponse,
    responses={404: {"description": "File not found"}},
)
def get_file(name: str, storage: FileStorage = Depends(get_file_storage)) -> FileResponse:
    path = storage.path_for(name)
    if path is None or not storage.exists(name):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return FileResponse(path)


# PUBLIC_INTERFACE
@router.delete(
    "/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Image",
    description="Delete a stored image. Deleting a missing file succeeds.",
)
def delete_file(name: str, storage: FileStorage = Depends(get_file_storage)) -> None:
    storage.delete(name)
    return None
