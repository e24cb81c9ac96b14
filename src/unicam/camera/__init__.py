"""Camera models."""

from .unified import UnifiedCamera

__all__ = ["UnifiedCamera"]
