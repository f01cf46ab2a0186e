from __future__ import annotations

import re

from attachkit.features.shared.inflection import pluralize, underscore

from .schemas import ORIGINAL_STYLE, AttachmentSpec, PrefixKind, RecordContext

_VARIABLE_RE = re.compile(r":(rails_root|app_root|attachment|class|style|name|id)")


def class_segment(type_name: str) -> str:
    return pluralize(underscore(type_name))


def template_needs_record_id(spec: AttachmentSpec, prefix_kind: PrefixKind = "path") -> bool:
    prefix = spec.path_prefix_template if prefix_kind == "path" else spec.url_prefix_template
    return any(match.group(1) == "id" for match in _VARIABLE_RE.finditer(f"{prefix}/{spec.path_template}"))


class PathResolver:
    """Renders ``:variable`` templates into filesystem paths and public URLs.

    Unknown ``:tokens`` are left in place, as are ``:id`` and ``:name`` when the
    record has no id or no stored filename yet.
    """

    def __init__(self, app_root: str) -> None:
        self.app_root = app_root

    def _render(self, template: str, spec: AttachmentSpec, context: RecordContext, style: str | None) -> str:
        values = {
            "rails_root": self.app_root,
            "app_root": self.app_root,
            "class": class_segment(context.type_name),
            "style": style or ORIGINAL_STYLE,
            "attachment": pluralize(spec.name),
            "name": context.filename,
            "id": context.record_id,
        }

        def _substitute(match: re.Match[str]) -> str:
            value = values.get(match.group(1))
            return match.group(0) if value is None else value

        return _VARIABLE_RE.sub(_substitute, template)

    def interpolate(
        self,
        spec: AttachmentSpec,
        context: RecordContext,
        prefix_kind: PrefixKind,
        style: str | None = None,
    ) -> str:
        prefix = spec.path_prefix_template if prefix_kind == "path" else spec.url_prefix_template
        return self._render(f"{prefix}/{spec.path_template}", spec, context, style)

    def resolve(
        self,
        spec: AttachmentSpec,
        context: RecordContext,
        prefix_kind: PrefixKind,
        style: str | None = None,
    ) -> str:
        rendered = self.interpolate(spec, context, prefix_kind, style)
        if prefix_kind == "url":
            return rendered

        joined = "/".join(segment for segment in rendered.split("/") if segment)
        # Only an absolute prefix keeps its root; an empty prefix yields a relative path.
        if self._render(spec.path_prefix_template, spec, context, style).startswith("/"):
            return f"/{joined}"
        return joined

    def path_for(self, spec: AttachmentSpec, context: RecordContext, style: str | None = None) -> str:
        return self.resolve(spec, context, "path", style)

    def url_for(self, spec: AttachmentSpec, context: RecordContext, style: str | None = None) -> str:
        return self.resolve(spec, context, "url", style)


__all__ = ["PathResolver", "class_segment", "template_needs_record_id"]
