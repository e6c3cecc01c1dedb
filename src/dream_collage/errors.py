"""
Typed errors raised by the collage pipeline.

Every failure surfaces as one of these exceptions and never as a
half-drawn surface.
"""

from __future__ import annotations


class CollageError(Exception):
    """Base class for all collage composition failures."""


class InvalidGridError(CollageError, ValueError):
    """Image count does not match the grid, or the grid is degenerate."""


class ImageDecodeError(CollageError):
    """A source image could not be decoded; aborts the whole composition."""

    def __init__(self, index: int, reason: str | None = None) -> None:
        self.index = index
        self.reason = reason
        msg = f"Failed to decode image at index {index}"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class RenderSurfaceUnavailableError(CollageError):
    """The drawing surface is missing, busy, or unusable for this grid."""


class ExportError(CollageError):
    """Serializing a composed surface failed."""


class SurfaceNotComposedError(ExportError):
    """Export was requested before any successful composition."""


__all__ = [
    "CollageError",
    "ExportError",
    "ImageDecodeError",
    "InvalidGridError",
    "RenderSurfaceUnavailableError",
    "SurfaceNotComposedError",
]
