"""
Defines shared type aliases for the collage compositor.

Centralizes reusable type hints to improve consistency and readability.
"""
from __future__ import annotations

from enum import Enum

RGB = tuple[int, int, int]
RGBA = tuple[int, int, int, int]
Point = tuple[int, int]
EncodedImage = bytes | bytearray | memoryview | str


class SurfaceState(Enum):
    """Lifecycle of a rendering surface during one composition."""

    IDLE = "idle"
    LOADING = "loading"
    DECODED = "decoded"
    FAILED = "failed"
    COMPOSED = "composed"
