"""
Collaborator-facing entry point: images in, composed collage out.

The pipeline runs one composition cycle on a surface: validate the grid,
decode every image, lay out and draw the collage, and hand back an
artifact that carries a snapshot of the result plus the pass-through
style and prompts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from dream_collage.collage.compositor import Compositor
from dream_collage.collage.layout import GridSpec, validate_grid
from dream_collage.config import CollageConfig
from dream_collage.config_defaults import DEFAULT_EXPORT_FILENAME
from dream_collage.errors import (
    ImageDecodeError,
    RenderSurfaceUnavailableError,
)
from dream_collage.exporter import encode_png, save_collage
from dream_collage.image_loader import load_images
from dream_collage.logging_utils import logger
from dream_collage.surface import RenderSurface

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping, Sequence
    from pathlib import Path

    from PIL import Image

    from dream_collage.type_defs import EncodedImage

_PAYLOAD_IMAGE_KEYS = ("imagesB64", "images_b64", "images")


@dataclass(frozen=True, slots=True)
class CollageRequest:
    """Encoded images, style label and prompts supplied by the caller."""

    images: tuple[EncodedImage, ...]
    style: str
    grid: GridSpec
    prompts: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        grid: GridSpec,
    ) -> CollageRequest:
        """
        Build a request from a generation service result.

        The result carries ``style``, ``prompts`` and base64 images under
        ``imagesB64`` (``images_b64`` and ``images`` are also accepted).
        """
        images: Sequence[EncodedImage] | None = None
        for key in _PAYLOAD_IMAGE_KEYS:
            if key in payload:
                images = payload[key]
                break
        if images is None:
            msg = "Payload has no images"
            raise ValueError(msg)
        return cls(
            images=tuple(images),
            style=str(payload.get("style", "")),
            grid=grid,
            prompts=tuple(str(p) for p in payload.get("prompts", ())),
        )


@dataclass(frozen=True, slots=True)
class CollageArtifact:
    """
    A finished collage and the metadata that travelled with it.

    ``snapshot`` holds the pixels of this composition, so the artifact keeps
    matching its style and prompts after the surface is composed again.
    """

    surface: RenderSurface
    snapshot: Image.Image
    generation: int
    style: str
    prompts: tuple[str, ...]
    grid: GridSpec

    @property
    def image(self) -> Image.Image:
        """Displayable copy of the composed pixels."""
        return self.snapshot.copy()

    @property
    def is_current(self) -> bool:
        """Whether the surface still shows this composition."""
        return self.surface.generation == self.generation

    def to_png(self) -> bytes:
        """Encode this composition as PNG bytes."""
        return encode_png(self.snapshot)

    def save(
        self,
        out_dir: Path | str,
        filename: str = DEFAULT_EXPORT_FILENAME,
    ) -> Path:
        """Save the collage as a PNG file and return its path."""
        return save_collage(self, out_dir, filename)


def _prepare_surface(
    surface: RenderSurface | None,
    grid: GridSpec,
) -> RenderSurface:
    if surface is None:
        return RenderSurface(*grid.canvas_size)
    if surface.size != grid.canvas_size:
        msg = (f"Surface is {surface.size[0]}x{surface.size[1]} but the grid "
               f"needs {grid.canvas_width}x{grid.canvas_height}")
        raise RenderSurfaceUnavailableError(msg)
    return surface


def _run_cycle(
    target: RenderSurface,
    request: CollageRequest,
    cfg: CollageConfig,
    drawer: Compositor,
) -> None:
    """Decode and draw onto an acquired surface, rolling back on failure."""
    target.begin_loading()
    try:
        sources = load_images(
            request.images,
            max_workers=cfg.loader.max_workers,
            bg_color=cfg.appearance.background,
        )
        target.mark_decoded()
        drawer.compose(target, sources, request.grid)
    except Exception as exc:
        target.mark_failed(exc)
        raise


def compose_collage(
    request: CollageRequest,
    *,
    surface: RenderSurface | None = None,
    config: CollageConfig | None = None,
    compositor: Compositor | None = None,
) -> CollageArtifact:
    """
    Decode, lay out and draw a collage onto ``surface``.

    A fresh surface of the grid's canvas size is created when none is
    given. Composition is all-or-nothing: on any error the surface keeps
    its previous pixels and the error is logged once and propagates to
    the caller.

    Raises:
        InvalidGridError: Image count does not match the grid.
        ImageDecodeError: Any image failed to decode.
        RenderSurfaceUnavailableError: Surface busy or of the wrong size.

    """
    cfg = config or CollageConfig.model_validate({})
    grid = request.grid
    try:
        validate_grid(grid, len(request.images))
        target = _prepare_surface(surface, grid)
        drawer = compositor or Compositor(cfg.appearance)
        with target.acquire():
            _run_cycle(target, request, cfg, drawer)
            snapshot = target.snapshot()
            generation = target.generation
    except ImageDecodeError as exc:
        logger.error("Collage aborted, image %d did not decode: %s",
                     exc.index, exc)
        raise
    except Exception as exc:
        logger.error("Collage composition failed: %s", exc)
        raise

    logger.info("Collage ready (style: %s)", request.style or "none")
    return CollageArtifact(
        surface=target,
        snapshot=snapshot,
        generation=generation,
        style=request.style,
        prompts=request.prompts,
        grid=grid,
    )
