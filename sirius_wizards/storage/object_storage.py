"""
Object storage for uploaded and generated files.

Contract:
    Blobs are addressed by a relative, slash-separated path.
    download() raises ObjectNotFoundError for unknown paths.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from sirius_kernel.exceptions import ObjectNotFoundError, StorageError
from sirius_kernel.logging_config import get_logger

logger = get_logger("wizards.object_storage")


@runtime_checkable
class ObjectStorage(Protocol):
    def upload(self, path: str, content: bytes, mime_type: str | None = None) -> None:
        ...

    def download(self, path: str) -> bytes:
        ...

    def delete(self, path: str) -> bool:
        ...


class FilesystemObjectStorage:
    """Stores blobs as files under a root directory."""

    def __init__(self, root: Path | str):
        self._root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError(f"Invalid storage path: {path}")
        return self._root.joinpath(*relative.parts)

    def upload(self, path: str, content: bytes, mime_type: str | None = None) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.debug("object_uploaded", extra={"path": path, "size": len(content)})

    def download(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise ObjectNotFoundError(path)
        return target.read_bytes()

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        return True
