"""Local filesystem storage for comment media.

Uploaded images and videos are written under ``settings.upload_dir`` with a
random file name and served by the app at ``settings.upload_public_mount``.
Documents store the storage-relative path; clients receive the public URL.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from uuid import uuid4

import structlog

from adboard.config.settings import Settings


logger = structlog.get_logger(__name__)


@dataclass
class MediaFile:
    """An uploaded file as received from the client."""

    content: bytes
    filename: str | None
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.content)


class StorageError(Exception):
    """Base error for storage operations."""

    def __init__(self, message: str, code: str = "storage_error") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


class StorageUploadError(StorageError):
    """Error while writing a file."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "upload_error")


class StorageValidationError(StorageError):
    """File was rejected before anything was written."""

    def __init__(self, message: str, code: str = "validation_error") -> None:
        super().__init__(message, code)


class FileTooLargeError(StorageValidationError):
    """Error when file exceeds size limit."""

    def __init__(self, size: int, max_size: int) -> None:
        message = (
            f"File size ({size / 1024 / 1024:.2f} MB) exceeds "
            f"maximum allowed ({max_size / 1024 / 1024:.2f} MB)"
        )
        super().__init__(message, "file_too_large")


class LocalMediaStorage:
    """Media storage backed by a local directory.

    Layout: ``<root>/<subdir>/<uuid hex><ext>``. The relative path
    ``<subdir>/<uuid hex><ext>`` is what gets persisted.
    """

    DEFAULT_SUBDIR = "comments"

    def __init__(self, settings: Settings) -> None:
        self.root = Path(settings.upload_dir)
        self.public_mount = settings.upload_public_mount.rstrip("/")
        self.max_file_size = settings.upload_max_file_size

    def _build_relative_path(self, original_name: str | None, subdir: str) -> str:
        """Generate a collision-free relative path keeping the original extension."""
        suffix = PurePosixPath(original_name or "").suffix.lower()
        return f"{subdir}/{uuid4().hex}{suffix}"

    def _resolve(self, relative_path: str) -> Path:
        """Resolve a relative path inside the storage root.

        Raises:
            StorageValidationError: If the path escapes the root directory.
        """
        root = self.root.resolve()
        target = (root / relative_path).resolve()
        if not target.is_relative_to(root):
            raise StorageValidationError(
                f"Path escapes storage root: {relative_path}", "invalid_path"
            )
        return target

    async def save(
        self,
        media: MediaFile,
        subdir: str = DEFAULT_SUBDIR,
    ) -> str:
        """Write a file and return its storage-relative path.

        Args:
            media: Uploaded file. Its name is used only for the extension.
            subdir: Sub-directory under the storage root.

        Returns:
            Relative path such as ``comments/3f2a...e1.png``.

        Raises:
            FileTooLargeError: If the file exceeds the configured size limit.
            StorageUploadError: If the file could not be written.
        """
        if media.size > self.max_file_size:
            raise FileTooLargeError(media.size, self.max_file_size)

        relative_path = self._build_relative_path(media.filename, subdir)
        target = self._resolve(relative_path)

        try:
            await asyncio.to_thread(_write_file, target, media.content)
        except OSError as e:
            logger.exception(
                "media_save_failed", relative_path=relative_path, error=str(e)
            )
            raise StorageUploadError(f"Failed to save file: {e}") from e

        logger.info(
            "media_saved",
            relative_path=relative_path,
            size=media.size,
            content_type=media.content_type,
        )
        return relative_path

    async def delete(self, relative_path: str) -> bool:
        """Delete a stored file.

        Missing files are tolerated so the call is idempotent.

        Returns:
            True if a file was removed, False if it did not exist.
        """
        target = self._resolve(relative_path)
        try:
            await asyncio.to_thread(target.unlink)
        except FileNotFoundError:
            logger.warning("media_delete_missing", relative_path=relative_path)
            return False
        except OSError as e:
            logger.exception(
                "media_delete_failed", relative_path=relative_path, error=str(e)
            )
            raise StorageUploadError(f"Failed to delete file: {e}") from e

        logger.info("media_deleted", relative_path=relative_path)
        return True

    def to_public_url(self, relative_path: str) -> str:
        """Render the URL a client uses to fetch a stored file."""
        return f"{self.public_mount}/{relative_path.lstrip('/')}"

    def is_public_url(self, value: str) -> bool:
        return value.startswith(f"{self.public_mount}/")

    def normalize_url(self, value: str | None) -> str | None:
        """Return a public URL for a stored value, leaving public or absolute URLs as is."""
        if not value:
            return value
        if self.is_public_url(value) or value.startswith(("http://", "https://")):
            return value
        return self.to_public_url(value)


def _write_file(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
