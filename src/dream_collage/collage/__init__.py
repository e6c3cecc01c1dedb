"""
Collage geometry and drawing split into layout, cover-fit and compositor.

The package exposes the most commonly used entry points directly.
"""

from __future__ import annotations

from . import compositor, cover_fit, layout
from .compositor import (
    Compositor,
    DrawPlan,
    build_draw_plan,
    effective_radius,
)
from .cover_fit import CropRect, cover_fit_crop
from .layout import Cell, GridSpec, compute_cells, validate_grid

__all__ = [
    "Cell",
    "Compositor",
    "CropRect",
    "DrawPlan",
    "GridSpec",
    "build_draw_plan",
    "compositor",
    "compute_cells",
    "cover_fit",
    "cover_fit_crop",
    "effective_radius",
    "layout",
    "validate_grid",
]
