"""
Image storage on the local filesystem.

Only a flat directory is used; stored names are generated here and never
taken from the client, so a name reaching this module from a URL is checked
against path traversal before it touches the disk.
"""
from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime
from functools import lru_cache
from typing import BinaryIO, Optional

from .settings import get_settings

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "bmp", "webp"})


class UploadRejectedError(ValueError):
    """The upload is empty, too large, unnamed or of a disallowed type."""


def file_extension(filename: str) -> str:
    _, dot, ext = filename.rpartition(".")
    return ext.lower() if dot else ""


# PUBLIC_INTERFACE
class FileStorage:
    """Stores uploaded images under a single directory."""

    def __init__(self, root: str, max_bytes: int) -> None:
        self.root = root
        self.max_bytes = max_bytes

    def _unique_name(self, extension: str) -> str:
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{stamp}_{uuid.uuid4().hex[:8]}.{extension}"

    def path_for(self, name: str) -> Optional[str]:
        """Absolute path for a stored name, or None when the name escapes the storage directory."""
        if not name or os.path.basename(name) != name or name in {".", ".."}:
            return None
        return os.path.join(os.path.abspath(self.root), name)

    def save(self, filename: Optional[str], stream: BinaryIO) -> str:
        """
        Validate and store one upload; return the generated file name.

        Raises:
            UploadRejectedError: validation failed; nothing is written.
        """
        if not filename:
            raise UploadRejectedError("file name must not be empty")
        extension = file_extension(filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise UploadRejectedError(
                "unsupported file type, allowed: " + ", ".join(sorted(ALLOWED_EXTENSIONS))
            )
        # read one byte past the limit to detect oversize uploads
        content = stream.read(self.max_bytes + 1)
        if not content:
            raise UploadRejectedError("file must not be empty")
        if len(content) > self.max_bytes:
            raise UploadRejectedError(f"file exceeds {self.max_bytes} bytes")

        os.makedirs(self.root, exist_ok=True)
        name = self._unique_name(extension)
        with open(os.path.join(self.root, name), "wb") as f:
            f.write(content)
        logger.info("Stored upload %r as %s (%d bytes)", filename, name, len(content))
        return name

    def exists(self, name: str) -> bool:
        path = self.path_for(name)
        return path is not None and os.path.isfile(path)

    def delete(self, name: str) -> bool:
        """Remove a stored file. Returns False when there was nothing to remove."""
        path = self.path_for(name)
        if path is None or not os.path.isfile(path):
            return False
        os.remove(path)
        logger.info("Deleted upload %s", name)
        return True

    @staticmethod
    def url_for(name: str) -> str:
        return f"/api/v1/files/{name}"


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_file_storage() -> FileStorage:
    """Return the process-wide storage configured by UPLOAD_DIR and MAX_UPLOAD_BYTES."""
    settings = get_settings()
    return FileStorage(settings.upload_dir, settings.max_upload_bytes)
