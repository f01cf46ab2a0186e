from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .schemas import ORIGINAL_STYLE, AssignmentResult, AttachmentSpec
from .thumbnails import ThumbnailGenerator
from .uploads import is_uploaded_file, read_upload, sanitize_filename

logger = logging.getLogger(__name__)


@dataclass
class AttachmentState:
    stored_filename: str | None = None
    content_type: str | None = None
    dirty: bool = False
    pending_variants: dict[str, bytes] = field(default_factory=dict)
    # Filename whose files are currently on disk; differs from stored_filename
    # between a re-assignment and the next commit.
    committed_filename: str | None = None

    @classmethod
    def from_fields(cls, filename: str | None, content_type: str | None) -> AttachmentState:
        return cls(stored_filename=filename, content_type=content_type, committed_filename=filename)

    def assign(
        self,
        upload: object,
        spec: AttachmentSpec,
        generator: ThumbnailGenerator,
    ) -> AssignmentResult:
        if not is_uploaded_file(upload):
            logger.debug("Ignoring assignment to %s: value is not an uploaded file.", spec.name)
            return AssignmentResult(
                accepted=False,
                filename=self.stored_filename,
                content_type=self.content_type,
                reason="Value does not expose size, content_type, original_filename and read().",
            )

        original = read_upload(upload)
        # Build every variant before touching state so a failed style leaves the old one intact.
        variants = {ORIGINAL_STYLE: original}
        variants.update(generator.generate_styles(original, spec.generated_styles))

        self.stored_filename = sanitize_filename(str(upload.original_filename))
        self.content_type = upload.content_type
        self.pending_variants = variants
        self.dirty = True
        logger.debug(
            "Assigned %s (%d byte(s), styles=%s) to %s.",
            self.stored_filename,
            len(original),
            sorted(variants),
            spec.name,
        )
        return AssignmentResult(
            accepted=True,
            filename=self.stored_filename,
            content_type=self.content_type,
            styles=list(variants),
        )

    def mark_committed(self) -> None:
        self.committed_filename = self.stored_filename
        self.pending_variants = {}
        self.dirty = False

    def discard(self) -> None:
        self.pending_variants = {}
        self.dirty = False

    def clear(self) -> None:
        self.discard()
        self.stored_filename = None
        self.content_type = None
        self.committed_filename = None


__all__ = ["AttachmentState"]
