"""
Local object storage for uploaded documents and derived study data.
Objects are addressed by ``folder/file_name`` keys rooted under one directory.
"""

import logging
from pathlib import Path, PurePosixPath
from typing import Union

from ..errors import StorageError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "txt": "text/plain",
    "json": "application/json",
    "md": "text/markdown",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "csv": "text/csv",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}


class LocalObjectStorage:
    """Filesystem-backed object store keyed like a bucket."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def upload(self, data: bytes, file_name: str, folder: str = "pdfs") -> str:
        """Store *data* and return its key."""
        key = f"{folder.strip('/')}/{file_name}" if folder else file_name
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_bytes(data)
        except OSError as exc:
            raise StorageError(f"Failed to write {key}: {exc}") from exc

        size_mb = len(data) / (1024 * 1024)
        if size_mb > 100:
            logger.info("Stored large object %s (%.2fMB)", key, size_mb)
        logger.debug("Stored %s as %s", key, self.content_type(file_name))
        return key

    def download(self, key: str) -> bytes:
        path = self._path_for(key)
        if not path.is_file():
            raise StorageError(f"File not found: {key}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {key}: {exc}") from exc

    def exists(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        if path.is_file():
            path.unlink()

    @staticmethod
    def content_type(file_name: str) -> str:
        extension = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
        return CONTENT_TYPES.get(extension, "application/octet-stream")

    def _path_for(self, key: str) -> Path:
        relative = PurePosixPath(key)
        if not key or relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"Invalid storage key: {key!r}")
        path = (self.root / Path(*relative.parts)).resolve()
        if self.root not in path.parents:
            raise StorageError(f"Invalid storage key: {key!r}")
        return path
