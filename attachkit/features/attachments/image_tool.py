from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol

from attachkit.core.config import AttachmentOptions

from .errors import ThumbnailCreationError

logger = logging.getLogger(__name__)

_STDERR_TAIL_LIMIT = 2_000


@dataclass(frozen=True)
class ToolResult:
    returncode: int
    output: bytes
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class ImageTool(Protocol):
    def identify(self, data: bytes) -> str: ...

    def convert(self, data: bytes, *, scale_geometry: str, crop_geometry: str | None = None) -> ToolResult: ...


def _trim_tail(value: str, *, limit: int = _STDERR_TAIL_LIMIT) -> str:
    if len(value) <= limit:
        return value
    return f"...{value[-limit:]}"


class ImageMagickTool:
    """Pipes image bytes through ImageMagick's ``convert`` and ``identify``."""

    def __init__(self, options: AttachmentOptions) -> None:
        self.options = options

    def convert_command(self, *, scale_geometry: str, crop_geometry: str | None = None) -> list[str]:
        command = [self.options.convert_bin, "-", "-scale", scale_geometry]
        if crop_geometry:
            command.extend(["-crop", crop_geometry])
        command.append("-")
        return command

    def identify_command(self) -> list[str]:
        return [self.options.identify_bin, "-"]

    def _run(self, command: list[str], data: bytes) -> ToolResult:
        logger.debug("Running image tool: %s", " ".join(command))
        try:
            completed = subprocess.run(
                command,
                input=data,
                capture_output=True,
                timeout=self.options.thumbnail_timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ThumbnailCreationError(
                f"'{command[0]}' timed out after {self.options.thumbnail_timeout_seconds}s."
            ) from exc
        except OSError as exc:
            raise ThumbnailCreationError(f"Could not run '{command[0]}': {exc}") from exc

        return ToolResult(
            returncode=completed.returncode,
            output=completed.stdout or b"",
            stderr=_trim_tail((completed.stderr or b"").decode("utf-8", errors="replace")),
        )

    def identify(self, data: bytes) -> str:
        result = self._run(self.identify_command(), data)
        if not result.succeeded:
            raise ThumbnailCreationError(
                f"identify returned with result code {result.returncode}. {result.stderr}".strip(),
                exit_status=result.returncode,
            )
        return result.output.decode("utf-8", errors="replace")

    def convert(self, data: bytes, *, scale_geometry: str, crop_geometry: str | None = None) -> ToolResult:
        return self._run(self.convert_command(scale_geometry=scale_geometry, crop_geometry=crop_geometry), data)


__all__ = ["ImageMagickTool", "ImageTool", "ToolResult"]
