from __future__ import annotations

from typing import Any

from .errors import AttachmentError
from .lifecycle import AttachmentLifecycle, AttachmentRuntime
from .schemas import AttachmentSpec

_SPECS_ATTR = "__attachment_specs__"
_RUNTIME_ATTR = "__attachment_runtime__"
_HANDLES_ATTR = "_attachkit_handles"


class AttachedFile:
    """Declares an attachment on a record class.

        class User(Base):
            avatar = AttachedFile(styles={"thumb": "100x100#"})

    ``user.avatar`` returns the :class:`AttachmentLifecycle` handle for that
    record and ``user.avatar = upload`` assigns a new file. The record needs
    ``avatar_file_name`` and ``avatar_content_type`` attributes.
    """

    def __init__(self, **options: Any) -> None:
        self._options = options
        self.name: str | None = None
        self.spec: AttachmentSpec | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name
        self.spec = AttachmentSpec(name=name, **self._options)
        specs = dict(getattr(owner, _SPECS_ATTR, {}))
        specs[name] = self.spec
        setattr(owner, _SPECS_ATTR, specs)

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return attachment_for(instance, self.name)

    def __set__(self, instance: Any, value: object) -> None:
        attachment_for(instance, self.name).assign(value)


def declared_attachments(record_type: type) -> dict[str, AttachmentSpec]:
    return dict(getattr(record_type, _SPECS_ATTR, {}))


def attachment_for(
    record: Any,
    name: str | None,
    runtime: AttachmentRuntime | None = None,
) -> AttachmentLifecycle:
    """Return the handle for attachment ``name`` on ``record``, creating it on first access.

    ``runtime`` only takes effect when the handle is created; asking for a
    different runtime afterwards raises :class:`AttachmentError`.
    """
    handles: dict[str, AttachmentLifecycle] = vars(record).setdefault(_HANDLES_ATTR, {})
    handle = handles.get(name or "")
    if handle is not None:
        if runtime is not None and runtime is not handle.runtime:
            raise AttachmentError(
                f"Attachment '{name}' on {type(record).__name__} is already bound to another runtime."
            )
        return handle

    spec = declared_attachments(type(record)).get(name or "")
    if spec is None:
        raise AttachmentError(f"{type(record).__name__} has no attachment named '{name}'.")

    runtime = runtime or getattr(type(record), _RUNTIME_ATTR, None)
    handle = AttachmentLifecycle(record, spec, runtime)
    handles[spec.name] = handle
    return handle


def attachments_for(record: Any) -> list[AttachmentLifecycle]:
    return [attachment_for(record, name) for name in declared_attachments(type(record))]


__all__ = ["AttachedFile", "attachment_for", "attachments_for", "declared_attachments"]
