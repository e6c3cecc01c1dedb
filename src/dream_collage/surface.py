"""
The rendering surface a collage is composed onto.

A surface is an explicit handle owned by one composition at a time. It
tracks the composition lifecycle and only accepts pixels as a complete,
finished bitmap, so a failed composition can never leave it partially
drawn.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

import numpy as np
from PIL import Image

from dream_collage.constants import COLOR_MODE_RGBA
from dream_collage.errors import RenderSurfaceUnavailableError
from dream_collage.logging_utils import logger
from dream_collage.type_defs import SurfaceState

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator

_TRANSITIONS: dict[SurfaceState, frozenset[SurfaceState]] = {
    SurfaceState.IDLE: frozenset({SurfaceState.LOADING}),
    SurfaceState.LOADING: frozenset(
        {SurfaceState.DECODED, SurfaceState.FAILED},
    ),
    SurfaceState.DECODED: frozenset(
        {SurfaceState.COMPOSED, SurfaceState.FAILED},
    ),
    SurfaceState.FAILED: frozenset({SurfaceState.LOADING}),
    SurfaceState.COMPOSED: frozenset({SurfaceState.LOADING}),
}


class RenderSurface:
    """Exclusively-owned RGBA drawing target with a composition lifecycle."""

    def __init__(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            msg = f"Surface size must be positive, got {width}x{height}"
            raise RenderSurfaceUnavailableError(msg)
        self._image = Image.new(COLOR_MODE_RGBA, (width, height), (0, 0, 0, 0))
        self._state = SurfaceState.IDLE
        self._resting_state = SurfaceState.IDLE
        self._lock = threading.Lock()
        self._generation = 0
        self.last_error: BaseException | None = None

    @property
    def size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self._image.size

    @property
    def state(self) -> SurfaceState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_composed(self) -> bool:
        """Whether the surface holds a finished composition."""
        return self._state is SurfaceState.COMPOSED

    @property
    def generation(self) -> int:
        """Number of successful compositions committed so far."""
        return self._generation

    @contextmanager
    def acquire(self) -> Iterator[RenderSurface]:
        """
        Hold the surface exclusively for one composition.

        Raises:
            RenderSurfaceUnavailableError: If another composition holds it.

        """
        if not self._lock.acquire(blocking=False):
            msg = "Render surface is in use by another composition"
            raise RenderSurfaceUnavailableError(msg)
        try:
            yield self
        finally:
            self._lock.release()

    def _transition(self, new_state: SurfaceState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            msg = (f"Cannot move surface from {self._state.value} "
                   f"to {new_state.value}")
            raise RenderSurfaceUnavailableError(msg)
        logger.debug("Surface %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def begin_loading(self) -> None:
        """Start a fresh composition cycle."""
        self._transition(SurfaceState.LOADING)
        self.last_error = None

    def mark_decoded(self) -> None:
        """Record that every source image decoded."""
        self._transition(SurfaceState.DECODED)

    def mark_failed(self, error: BaseException) -> None:
        """
        Abort the current cycle without touching the pixels.

        The surface returns to the state it rested in before the cycle, so a
        previous composition stays displayable and exportable.
        """
        self._transition(SurfaceState.FAILED)
        self.last_error = error
        self._state = self._resting_state

    def commit(self, image: Image.Image) -> None:
        """
        Replace the surface pixels with a finished composition.

        Raises:
            RenderSurfaceUnavailableError: If decoding has not completed or
                the bitmap does not match the surface size.

        """
        if image.size != self.size:
            msg = (f"Composed image is {image.width}x{image.height}, "
                   f"surface is {self.size[0]}x{self.size[1]}")
            raise RenderSurfaceUnavailableError(msg)
        pixels = image.convert(COLOR_MODE_RGBA)
        self._transition(SurfaceState.COMPOSED)
        self._image = pixels
        self._resting_state = SurfaceState.COMPOSED
        self._generation += 1

    def snapshot(self) -> Image.Image:
        """Return a copy of the current pixels."""
        return self._image.copy()

    def to_array(self) -> np.ndarray:
        """Return the current pixels as an HxWx4 uint8 array."""
        return np.asarray(self._image, dtype=np.uint8).copy()
