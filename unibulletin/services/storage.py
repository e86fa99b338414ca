"""
Disk storage for announcement attachments.
"""

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath

from unibulletin.config import settings as default_settings
from unibulletin.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass
class IncomingFile:
    """An uploaded file, already read from the request."""

    file_name: str
    content: bytes
    content_type: str = DEFAULT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class StoredFile:
    file_name: str
    file_url: str
    file_size: int
    file_type: str


class AttachmentStorage:
    """
    Stores files under ``base_dir`` with random names and serves them
    from ``url_prefix``. Original file names are kept only as metadata.
    """

    def __init__(self, base_dir: str, url_prefix: str = "/uploads", max_bytes: int = 10 * 1024 * 1024):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")
        self.max_bytes = max_bytes

    def check(self, file: IncomingFile) -> None:
        """Raise ValidationError if the file cannot be stored."""
        if not file.file_name or not file.file_name.strip():
            raise ValidationError("Uploaded file has no name")
        if file.size > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise ValidationError(f"{file.file_name} exceeds the {limit_mb:g} MB limit")

    def save(self, file: IncomingFile) -> StoredFile:
        self.check(file)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        suffix = PurePosixPath(file.file_name).suffix.lower()
        stored_name = f"{uuid.uuid4().hex}{suffix if suffix.isascii() else ''}"
        (self.base_dir / stored_name).write_bytes(file.content)
        logger.info(f"Stored attachment {file.file_name!r} as {stored_name} ({file.size} bytes)")

        return StoredFile(
            file_name=file.file_name,
            file_url=f"{self.url_prefix}/{stored_name}",
            file_size=file.size,
            file_type=file.content_type or DEFAULT_CONTENT_TYPE,
        )

    def path_for(self, file_url: str) -> Path:
        # Only the last URL segment is trusted, so stored URLs cannot escape base_dir
        return self.base_dir / PurePosixPath(file_url).name

    def remove(self, file_url: str) -> None:
        """Delete the backing file. Raises OSError if it cannot be removed."""
        self.path_for(file_url).unlink()


@lru_cache
def get_attachment_storage() -> AttachmentStorage:
    """Shared storage built from application settings."""
    return AttachmentStorage(
        default_settings.upload_dir,
        default_settings.uploads_url_prefix,
        default_settings.max_attachment_bytes,
    )
