from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .geometry import GeometrySpec, parse_geometry

AttachmentKind = Literal["image", "file"]
AttachmentStatus = Literal["empty", "dirty", "clean"]
PrefixKind = Literal["path", "url"]

ORIGINAL_STYLE = "original"


class AttachmentSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    path_template: str = ":class/:id/:style_:name"
    path_prefix_template: str = ":app_root/public"
    url_prefix_template: str = ""
    kind: AttachmentKind = "image"
    styles: dict[str, GeometrySpec] = Field(default_factory=dict)
    delete_on_destroy: bool = True

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Attachment name must not be empty.")
        return cleaned

    @field_validator("styles", mode="before")
    @classmethod
    def _parse_styles(cls, value: object) -> object:
        if not isinstance(value, dict):
            return value
        parsed: dict[str, GeometrySpec] = {}
        for style, geometry in value.items():
            style_name = str(style).strip()
            if not style_name:
                raise ValueError("Style names must not be empty.")
            if style_name == ORIGINAL_STYLE:
                raise ValueError(f"'{ORIGINAL_STYLE}' is reserved for the uploaded file itself.")
            parsed[style_name] = parse_geometry(geometry) if isinstance(geometry, str) else geometry
        return parsed

    @property
    def is_image(self) -> bool:
        return self.kind == "image"

    @property
    def generated_styles(self) -> dict[str, GeometrySpec]:
        return dict(self.styles) if self.is_image else {}

    @property
    def all_styles(self) -> list[str]:
        return [ORIGINAL_STYLE, *self.generated_styles]

    @property
    def file_name_field(self) -> str:
        return f"{self.name}_file_name"

    @property
    def content_type_field(self) -> str:
        return f"{self.name}_content_type"


class RecordContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    record_id: str | None = None
    type_name: str
    filename: str | None = None


class AssignmentResult(BaseModel):
    accepted: bool
    filename: str | None = None
    content_type: str | None = None
    styles: list[str] = Field(default_factory=list)
    reason: str | None = None
