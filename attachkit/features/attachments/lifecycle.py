from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from attachkit.core.config import AttachmentOptions

from .errors import ThumbnailDeletionError
from .image_tool import ImageMagickTool, ImageTool
from .paths import PathResolver, template_needs_record_id
from .schemas import AssignmentResult, AttachmentSpec, AttachmentStatus, RecordContext
from .state import AttachmentState
from .storage import FileStorage, LocalFileStorage
from .thumbnails import ThumbnailGenerator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttachmentRuntime:
    """Collaborators shared by every attachment handle of a record type."""

    options: AttachmentOptions
    generator: ThumbnailGenerator
    storage: FileStorage = field(default_factory=LocalFileStorage)
    resolver: PathResolver | None = None

    @classmethod
    def build(
        cls,
        options: AttachmentOptions | None = None,
        *,
        tool: ImageTool | None = None,
        storage: FileStorage | None = None,
    ) -> AttachmentRuntime:
        options = options or AttachmentOptions.from_settings()
        return cls(
            options=options,
            generator=ThumbnailGenerator(tool or ImageMagickTool(options), options),
            storage=storage or LocalFileStorage(),
            resolver=PathResolver(options.app_root),
        )

    @property
    def path_resolver(self) -> PathResolver:
        return self.resolver or PathResolver(self.options.app_root)


@lru_cache
def default_runtime() -> AttachmentRuntime:
    return AttachmentRuntime.build()


class AttachmentLifecycle:
    """One attachment slot on one record: assign, commit, resolve, validate, destroy.

    The host calls :meth:`on_after_save` once its own row is persisted and
    :meth:`on_before_destroy` before removing the row. Transactional hosts can
    split the commit instead: :meth:`write_pending` once the row is written,
    then :meth:`finish_commit` when the transaction commits or
    :meth:`revert_writes` when it rolls back.

    The record's ``<name>_file_name`` and ``<name>_content_type`` fields are the
    source of truth. When they change behind the handle's back (a rollback, a
    refresh) the handle re-seeds itself from them on next use.
    """

    def __init__(self, record: Any, spec: AttachmentSpec, runtime: AttachmentRuntime | None = None) -> None:
        self.record = record
        self.spec = spec
        self.runtime = runtime or default_runtime()
        self.resolver = self.runtime.path_resolver
        self.state = AttachmentState.from_fields(*self._read_fields())
        # Paths written for the pending assignment but not yet committed.
        self.written_paths: set[str] = set()

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def status(self) -> AttachmentStatus:
        state = self._sync()
        if state.dirty:
            return "dirty"
        if state.stored_filename:
            return "clean"
        return "empty"

    @property
    def present(self) -> bool:
        return bool(self._sync().stored_filename)

    def get(self) -> str | None:
        return self._sync().stored_filename

    def _read_fields(self) -> tuple[str | None, str | None]:
        return (
            getattr(self.record, self.spec.file_name_field, None),
            getattr(self.record, self.spec.content_type_field, None),
        )

    def _sync(self) -> AttachmentState:
        filename, content_type = self._read_fields()
        if filename == self.state.stored_filename and (self.state.dirty or content_type == self.state.content_type):
            return self.state

        if self.state.dirty:
            logger.debug(
                "Discarding pending %s on %s: record fields changed.",
                self.spec.name,
                type(self.record).__name__,
            )
        self.revert_writes()
        self.state = AttachmentState.from_fields(filename, content_type)
        return self.state

    def _record_id(self) -> str | None:
        record_id = getattr(self.record, "id", None)
        return None if record_id is None else str(record_id)

    def _context(self, filename: str | None) -> RecordContext:
        return RecordContext(
            record_id=self._record_id(),
            type_name=type(self.record).__name__,
            filename=filename,
        )

    def _write_fields(self) -> None:
        setattr(self.record, self.spec.file_name_field, self.state.stored_filename)
        setattr(self.record, self.spec.content_type_field, self.state.content_type)

    def _paths_for(self, filename: str | None) -> list[str]:
        if not filename:
            return []
        context = self._context(filename)
        return [self.resolver.path_for(self.spec, context, style) for style in self.spec.all_styles]

    def assign(self, upload: object) -> AssignmentResult:
        result = self._sync().assign(upload, self.spec, self.runtime.generator)
        if result.accepted:
            self._write_fields()
        return result

    def path(self, style: str | None = None) -> str | None:
        filename = self._sync().stored_filename
        if not filename:
            return None
        return self.resolver.path_for(self.spec, self._context(filename), style)

    def url(self, style: str | None = None) -> str | None:
        filename = self._sync().stored_filename
        if not filename:
            return None
        return self.resolver.url_for(self.spec, self._context(filename), style)

    def is_valid(self, style: str | None = None) -> bool:
        styles = [style] if style else self.spec.all_styles
        status = self.status
        if status == "empty":
            return False
        if status == "dirty":
            return all(self.state.pending_variants.get(item) for item in styles)
        for item in styles:
            path = self.path(item)
            if path is None or not self.runtime.storage.size(path):
                return False
        return True

    def _remove_paths(self, paths: list[str]) -> list[str]:
        missing: list[str] = []
        for path in paths:
            if not self.runtime.storage.delete(path):
                missing.append(path)
        return missing

    def write_pending(self) -> bool:
        """Write pending variants to storage, leaving the previous files in place.

        Returns True when something was written. The state stays dirty until
        :meth:`finish_commit`.
        """
        state = self._sync()
        if not state.dirty:
            return False
        if self._record_id() is None and template_needs_record_id(self.spec):
            logger.warning(
                "Deferring commit of %s on %s: record has no id yet.",
                self.spec.name,
                type(self.record).__name__,
            )
            return False

        context = self._context(state.stored_filename)
        written: set[str] = set()
        for style, data in state.pending_variants.items():
            path = self.resolver.path_for(self.spec, context, style)
            self.runtime.storage.write(path, data)
            written.add(path)

        # A second assignment before the commit leaves the first one's files behind.
        superseded = self.written_paths - written - set(self._paths_for(state.committed_filename))
        self._remove_paths(sorted(superseded))
        self.written_paths = written
        logger.debug("Wrote %d file(s) for %s.", len(written), self.spec.name)
        return True

    def finish_commit(self) -> None:
        """Retire the previously committed files and mark the written ones clean."""
        if not self.state.dirty or not self.written_paths:
            return
        stale_filename = self.state.committed_filename
        if stale_filename and stale_filename != self.state.stored_filename:
            stale = [path for path in self._paths_for(stale_filename) if path not in self.written_paths]
            missing = self._remove_paths(stale)
            if missing:
                logger.debug("Stale files already gone for %s: %s", self.spec.name, ", ".join(missing))

        self.state.mark_committed()
        self.written_paths = set()
        logger.debug("Committed %s for %s.", self.state.stored_filename, self.spec.name)

    def revert_writes(self) -> None:
        """Delete files written for an uncommitted assignment.

        Files of the committed filename are kept. Re-uploading under the same
        filename overwrites them in place, so their previous bytes are lost.
        """
        if not self.written_paths:
            return
        committed = set(self._paths_for(self.state.committed_filename))
        overwritten = sorted(self.written_paths & committed)
        if overwritten:
            logger.warning("Cannot restore overwritten file(s) for %s: %s", self.spec.name, ", ".join(overwritten))
        self._remove_paths(sorted(self.written_paths - committed))
        self.written_paths = set()

    def on_after_save(self) -> bool:
        """Write pending variants and commit them. Returns True when something was committed."""
        if not self.write_pending():
            return False
        self.finish_commit()
        return True

    def destroy(self, complain: bool = False) -> None:
        state = self._sync()
        self.revert_writes()
        missing = self._remove_paths(self._paths_for(state.committed_filename))
        state.clear()
        self._write_fields()

        if not missing:
            return
        if self.runtime.options.strict_deletes or complain:
            raise ThumbnailDeletionError(missing)
        logger.debug("Ignoring missing file(s) on delete of %s: %s", self.spec.name, ", ".join(missing))

    def on_before_destroy(self) -> None:
        if not self.spec.delete_on_destroy:
            return
        state = self._sync()
        if state.stored_filename or state.committed_filename:
            self.destroy()


__all__ = ["AttachmentLifecycle", "AttachmentRuntime", "default_runtime"]
