from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict

from .errors import InvalidGeometryError, ThumbnailCreationError

FILL_MARKER = "#"
# "#" requests fill-and-crop; the other modifiers pass straight through to the image tool.
_GEOMETRY_RE = re.compile(r"^(?P<width>\d*)x(?P<height>\d*)(?P<modifier>[#!<>^]?)$")
_DIMENSIONS_TOKEN_RE = re.compile(r"^(\d+)x(\d+)$")


class GeometrySpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int | None = None
    height: int | None = None
    modifier: str = ""

    @property
    def fill(self) -> bool:
        return self.modifier == FILL_MARKER

    @property
    def scale_geometry(self) -> str:
        """Geometry string handed to the image tool for a plain resize."""
        width = "" if self.width is None else str(self.width)
        height = "" if self.height is None else str(self.height)
        modifier = "" if self.fill else self.modifier
        return f"{width}x{height}{modifier}"

    def __str__(self) -> str:
        width = "" if self.width is None else str(self.width)
        height = "" if self.height is None else str(self.height)
        return f"{width}x{height}{self.modifier}"


class FillGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    scale_geometry: str
    crop_geometry: str
    scale: float


def parse_geometry(value: str) -> GeometrySpec:
    match = _GEOMETRY_RE.match(value.strip())
    if match is None:
        raise InvalidGeometryError(f"Invalid geometry '{value}'. Expected '<width>x<height>' with an optional modifier.")

    width = int(match.group("width")) if match.group("width") else None
    height = int(match.group("height")) if match.group("height") else None
    modifier = match.group("modifier")

    if width is None and height is None:
        raise InvalidGeometryError(f"Geometry '{value}' needs at least one dimension.")
    if modifier == FILL_MARKER and (not width or not height):
        raise InvalidGeometryError(f"Fill geometry '{value}' needs both a non-zero width and height.")

    return GeometrySpec(width=width, height=height, modifier=modifier)


def parse_dimensions(identify_output: str) -> tuple[int, int]:
    """Pull the first ``WxH`` token out of ``identify`` output."""
    for token in identify_output.split():
        match = _DIMENSIONS_TOKEN_RE.match(token)
        if match is not None:
            return int(match.group(1)), int(match.group(2))
    raise ThumbnailCreationError(f"Could not determine image dimensions from identify output: {identify_output!r}")


def compute_fill_geometry(
    source_width: float,
    source_height: float,
    target_width: float,
    target_height: float,
) -> FillGeometry:
    if source_width <= 0 or source_height <= 0:
        raise ThumbnailCreationError(f"Invalid source dimensions {source_width}x{source_height}.")

    src_w, src_h = float(source_width), float(source_height)
    dst_w, dst_h = float(target_width), float(target_height)
    source_is_wide = src_w > src_h
    target_is_wide = dst_w > dst_h

    if dst_w == dst_h:
        pin_width = not source_is_wide
    else:
        pin_width = target_is_wide

    if pin_width:
        scale = src_w / dst_w
        scale_geometry = f"{int(dst_w)}x"
        offset_x = 0.0
        offset_y = (src_h / scale - dst_h) / 2
    else:
        scale = src_h / dst_h
        scale_geometry = f"x{int(dst_h)}"
        offset_x = (src_w / scale - dst_w) / 2
        offset_y = 0.0

    # Offsets go negative when the scaled image is smaller than the box on the free axis.
    crop_geometry = "%dx%d+%d+%d" % (dst_w, dst_h, max(0.0, offset_x), max(0.0, offset_y))
    return FillGeometry(scale_geometry=scale_geometry, crop_geometry=crop_geometry, scale=scale)


__all__ = [
    "FILL_MARKER",
    "FillGeometry",
    "GeometrySpec",
    "compute_fill_geometry",
    "parse_dimensions",
    "parse_geometry",
]
