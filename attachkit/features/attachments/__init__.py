from .declarations import AttachedFile, attachment_for, attachments_for, declared_attachments
from .errors import (
    AttachmentError,
    InvalidGeometryError,
    ThumbnailCreationError,
    ThumbnailDeletionError,
)
from .geometry import FillGeometry, GeometrySpec, compute_fill_geometry, parse_dimensions, parse_geometry
from .image_tool import ImageMagickTool, ImageTool, ToolResult
from .lifecycle import AttachmentLifecycle, AttachmentRuntime, default_runtime
from .paths import PathResolver
from .schemas import (
    ORIGINAL_STYLE,
    AssignmentResult,
    AttachmentKind,
    AttachmentSpec,
    AttachmentStatus,
    RecordContext,
)
from .state import AttachmentState
from .storage import FileStorage, LocalFileStorage
from .thumbnails import ThumbnailGenerator
from .uploads import InMemoryUpload, LocalFile, UploadedFile, is_uploaded_file, sanitize_filename

__all__ = [
    "ORIGINAL_STYLE",
    "AssignmentResult",
    "AttachedFile",
    "AttachmentError",
    "AttachmentKind",
    "AttachmentLifecycle",
    "AttachmentRuntime",
    "AttachmentSpec",
    "AttachmentState",
    "AttachmentStatus",
    "FileStorage",
    "FillGeometry",
    "GeometrySpec",
    "ImageMagickTool",
    "ImageTool",
    "InMemoryUpload",
    "InvalidGeometryError",
    "LocalFile",
    "LocalFileStorage",
    "PathResolver",
    "RecordContext",
    "ThumbnailCreationError",
    "ThumbnailDeletionError",
    "ThumbnailGenerator",
    "ToolResult",
    "UploadedFile",
    "attachment_for",
    "attachments_for",
    "compute_fill_geometry",
    "declared_attachments",
    "default_runtime",
    "is_uploaded_file",
    "parse_dimensions",
    "parse_geometry",
    "sanitize_filename",
]
