"""Public package exports for the Dream Collage compositor."""

from __future__ import annotations

from .collage import Compositor, GridSpec
from .errors import (
    CollageError,
    ExportError,
    ImageDecodeError,
    InvalidGridError,
    RenderSurfaceUnavailableError,
    SurfaceNotComposedError,
)
from .exporter import export_png, save_collage
from .pipeline import CollageArtifact, CollageRequest, compose_collage
from .surface import RenderSurface

__all__ = [
    "CollageArtifact",
    "CollageError",
    "CollageRequest",
    "Compositor",
    "ExportError",
    "GridSpec",
    "ImageDecodeError",
    "InvalidGridError",
    "RenderSurface",
    "RenderSurfaceUnavailableError",
    "SurfaceNotComposedError",
    "compose_collage",
    "export_png",
    "save_collage",
]
