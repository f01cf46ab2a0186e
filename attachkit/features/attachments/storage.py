from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class FileStorage(Protocol):
    def write(self, path: str, data: bytes) -> None: ...

    def delete(self, path: str) -> bool: ...

    def size(self, path: str) -> int | None: ...


class LocalFileStorage:
    def write(self, path: str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.debug("Wrote %d byte(s) to %s.", len(data), target)

    def delete(self, path: str) -> bool:
        """Remove ``path``; returns False when there was nothing to remove."""
        try:
            Path(path).unlink()
        except FileNotFoundError:
            return False
        logger.debug("Deleted %s.", path)
        return True

    def size(self, path: str) -> int | None:
        target = Path(path)
        if not target.is_file():
            return None
        return target.stat().st_size


__all__ = ["FileStorage", "LocalFileStorage"]
