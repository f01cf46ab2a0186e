from __future__ import annotations

import inspect
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

_UNSAFE_FILENAME_CHARS_RE = re.compile(r"[^A-Za-z0-9._]")
_UPLOAD_MEMBERS = ("size", "content_type", "original_filename", "read")
_MISSING = object()


class UploadedFile(Protocol):
    """Minimal capability set an assignable file must expose."""

    @property
    def size(self) -> int: ...

    @property
    def content_type(self) -> str | None: ...

    @property
    def original_filename(self) -> str: ...

    def read(self) -> bytes: ...


def is_uploaded_file(value: object) -> bool:
    if value is None:
        return False
    # Static lookup so properties such as LocalFile.size are not evaluated here.
    for member in _UPLOAD_MEMBERS:
        if inspect.getattr_static(value, member, _MISSING) is _MISSING:
            return False
    return callable(getattr(value, "read", None))


def sanitize_filename(filename: str) -> str:
    """Drop directory components, then replace anything outside ``[A-Za-z0-9._]``."""
    basename = filename.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_FILENAME_CHARS_RE.sub("_", basename)
    # "." and ".." would resolve to a directory, not a file.
    if not cleaned.strip("."):
        return "upload"
    return cleaned


def read_upload(upload: UploadedFile) -> bytes:
    seek = getattr(upload, "seek", None)
    if callable(seek):
        seek(0)
    data = upload.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data or b"")


def content_type_for_filename(filename: str) -> str:
    guessed, _ = mimetypes.guess_type(filename)
    return (guessed or "application/octet-stream").lower()


@dataclass(frozen=True)
class InMemoryUpload:
    original_filename: str
    payload: bytes
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.payload)

    def read(self) -> bytes:
        return self.payload


class LocalFile:
    """Adapts a file on disk to the uploaded-file capability set."""

    def __init__(self, path: str | Path, *, content_type: str | None = None) -> None:
        self.path = Path(path)
        self._content_type = content_type

    @property
    def original_filename(self) -> str:
        return str(self.path)

    @property
    def content_type(self) -> str:
        return self._content_type or content_type_for_filename(self.path.name)

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read(self) -> bytes:
        return self.path.read_bytes()


__all__ = [
    "InMemoryUpload",
    "LocalFile",
    "UploadedFile",
    "content_type_for_filename",
    "is_uploaded_file",
    "read_upload",
    "sanitize_filename",
]
