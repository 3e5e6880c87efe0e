"""
File Storage

Narrow interface over the file store used for document uploads, service
photos and PDF reports. Services depend only on ``FileStore``; the local
filesystem implementation is used in development and single-node deploys.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Protocol
from uuid import uuid4

from fastapi import UploadFile

from iskolar.core.config import settings
from iskolar.core.exceptions import StorageFailureError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedFile:
    """An incoming file, already read into memory by the HTTP layer."""

    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename).suffix.lower().lstrip(".")

    @property
    def size(self) -> int:
        return len(self.content)


class FileStore(Protocol):
    def store(self, data: bytes, path: str) -> str: ...

    def delete(self, ref: str) -> bool: ...

    def exists(self, ref: str) -> bool: ...

    def read(self, ref: str) -> bytes: ...


class LocalFileStore:
    """Stores files below a root directory; refs are root-relative POSIX paths."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _resolve(self, ref: str) -> Path:
        path = (self.root / ref).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageFailureError(f"Refusing to access path outside storage root: {ref}")
        return path

    def store(self, data: bytes, path: str) -> str:
        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            logger.error(f"Failed to store file {path}: {e}")
            raise StorageFailureError() from e
        return path

    def delete(self, ref: str) -> bool:
        try:
            self._resolve(ref).unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to delete file {ref}: {e}")
            raise StorageFailureError() from e
        return True

    def exists(self, ref: str) -> bool:
        return self._resolve(ref).is_file()

    def read(self, ref: str) -> bytes:
        try:
            return self._resolve(ref).read_bytes()
        except OSError as e:
            logger.error(f"Failed to read file {ref}: {e}")
            raise StorageFailureError() from e


def unique_path(directory: str, upload: UploadedFile) -> str:
    """Build a collision-free storage path keeping the original extension."""
    suffix = f".{upload.extension}" if upload.extension else ""
    return f"{directory}/{int(time.time())}_{uuid4().hex}{suffix}"


def validate_upload(
    upload: UploadedFile,
    allowed_extensions: set[str],
    max_bytes: int,
    label: str = "file",
) -> None:
    """
    Check extension and size of an incoming file.

    Raises:
        ValidationError: If the file is empty, too large or of the wrong type
    """
    if upload.size == 0:
        raise ValidationError(f"The {label} is empty.")
    if upload.extension not in allowed_extensions:
        raise ValidationError(
            f"The {label} must be a file of type: {', '.join(sorted(allowed_extensions))}."
        )
    if upload.size > max_bytes:
        raise ValidationError(
            f"The {label} may not be greater than {max_bytes // 1024} kilobytes."
        )


def get_file_store() -> FileStore:
    """FastAPI dependency returning the configured file store."""
    return LocalFileStore(settings.storage_root)


UPLOAD_CHUNK_SIZE = 64 * 1024


async def read_upload(file: UploadFile, max_bytes: int) -> UploadedFile:
    """
    Read a multipart upload into memory, stopping one byte past ``max_bytes``.

    An oversized file is returned truncated to ``max_bytes + 1`` bytes so
    ``validate_upload`` still rejects it without buffering the whole body.
    """
    chunks: list[bytes] = []
    received = 0
    while received <= max_bytes:
        chunk = await file.read(min(UPLOAD_CHUNK_SIZE, max_bytes + 1 - received))
        if not chunk:
            break
        chunks.append(chunk)
        received += len(chunk)
    content = b"".join(chunks)
    return UploadedFile(
        filename=file.filename or "",
        content=content,
        content_type=file.content_type,
    )
