from __future__ import annotations


class AttachmentError(Exception):
    """Base exception for attachment operations."""


class ThumbnailCreationError(AttachmentError):
    def __init__(self, message: str, *, exit_status: int | None = None) -> None:
        super().__init__(message)
        self.exit_status = exit_status


class ThumbnailDeletionError(AttachmentError):
    def __init__(self, missing_paths: list[str]) -> None:
        joined = ", ".join(missing_paths)
        super().__init__(f"Attachment file(s) missing on delete: {joined}")
        self.missing_paths = missing_paths


class InvalidGeometryError(AttachmentError, ValueError):
    pass
