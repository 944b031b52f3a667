"""Storage module for comment media uploads."""

from adboard.storage.service import (
    FileTooLargeError,
    LocalMediaStorage,
    MediaFile,
    StorageError,
    StorageUploadError,
    StorageValidationError,
)


__all__ = [
    "FileTooLargeError",
    "LocalMediaStorage",
    "MediaFile",
    "StorageError",
    "StorageUploadError",
    "StorageValidationError",
]
