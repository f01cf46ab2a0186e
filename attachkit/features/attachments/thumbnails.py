from __future__ import annotations

import logging

from attachkit.core.config import AttachmentOptions

from .errors import ThumbnailCreationError
from .geometry import GeometrySpec, compute_fill_geometry, parse_dimensions, parse_geometry
from .image_tool import ImageMagickTool, ImageTool

logger = logging.getLogger(__name__)


class ThumbnailGenerator:
    def __init__(self, tool: ImageTool | None = None, options: AttachmentOptions | None = None) -> None:
        self.options = options or AttachmentOptions.from_settings()
        self.tool = tool or ImageMagickTool(self.options)

    def generate(self, original: bytes, geometry: GeometrySpec | str) -> bytes:
        spec = parse_geometry(geometry) if isinstance(geometry, str) else geometry

        crop_geometry: str | None = None
        if spec.fill:
            source_width, source_height = parse_dimensions(self.tool.identify(original))
            fill = compute_fill_geometry(source_width, source_height, spec.width, spec.height)
            scale_geometry = fill.scale_geometry
            crop_geometry = fill.crop_geometry
        else:
            scale_geometry = spec.scale_geometry

        result = self.tool.convert(original, scale_geometry=scale_geometry, crop_geometry=crop_geometry)
        if not result.succeeded:
            if self.options.strict_thumbnails:
                raise ThumbnailCreationError(
                    f"Convert returned with result code {result.returncode}.",
                    exit_status=result.returncode,
                )
            logger.warning(
                "Thumbnail for geometry %s failed with result code %d; keeping %d byte(s) of output.",
                spec,
                result.returncode,
                len(result.output),
            )
        return result.output

    def generate_styles(self, original: bytes, styles: dict[str, GeometrySpec]) -> dict[str, bytes]:
        return {style: self.generate(original, geometry) for style, geometry in styles.items()}


__all__ = ["ThumbnailGenerator"]
