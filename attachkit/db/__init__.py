from .base import Base
from .hooks import register_attachment_hooks

__all__ = [
    "Base",
    "register_attachment_hooks",
]
