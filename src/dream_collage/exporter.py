"""Serialize a composed collage to PNG and save it under a fixed name."""

from __future__ import annotations

import io
from pathlib import Path
from typing import TYPE_CHECKING

from dream_collage.config_defaults import DEFAULT_EXPORT_FILENAME
from dream_collage.constants import (
    COLOR_MODE_RGB,
    EXPORT_FORMAT,
    EXPORT_SUFFIX,
)
from dream_collage.errors import ExportError, SurfaceNotComposedError
from dream_collage.logging_utils import logger
from dream_collage.runtime.output import setup_output_directory
from dream_collage.surface import RenderSurface

if TYPE_CHECKING:  # pragma: no cover
    from PIL import Image

    from dream_collage.pipeline import CollageArtifact


def _ensure_png(name: str) -> str:
    """Return a file name that ends with ``.png`` for output consistency."""
    path = Path(name)
    if path.suffix.lower() == EXPORT_SUFFIX:
        return path.name
    return path.with_suffix(EXPORT_SUFFIX).name


def export_png(surface: RenderSurface) -> bytes:
    """
    Encode the last composition on ``surface`` as PNG bytes.

    Export never composes: a surface that has not been composed is
    rejected, and after a failed composition the previous collage is
    exported.

    Raises:
        SurfaceNotComposedError: If nothing has been composed yet.
        ExportError: If Pillow fails to encode the pixels.

    """
    if surface.generation == 0:
        msg = "Nothing to export: the surface has not been composed"
        raise SurfaceNotComposedError(msg)
    return encode_png(surface.snapshot())


def encode_png(image: Image.Image) -> bytes:
    """
    Encode a composed bitmap as opaque RGB PNG bytes.

    Raises:
        ExportError: If Pillow fails to encode the pixels.

    """
    buffer = io.BytesIO()
    try:
        # Backgrounds are opaque, so dropping alpha loses nothing.
        image.convert(COLOR_MODE_RGB).save(
            buffer, format=EXPORT_FORMAT, optimize=False,
        )
    except (OSError, ValueError) as exc:
        msg = f"Failed to encode collage as {EXPORT_FORMAT}: {exc}"
        raise ExportError(msg) from exc

    data = buffer.getvalue()
    logger.debug("Encoded collage to %d bytes", len(data))
    return data


def save_collage(
    source: RenderSurface | CollageArtifact,
    out_dir: Path | str,
    filename: str = DEFAULT_EXPORT_FILENAME,
) -> Path:
    """
    Write the composed collage to ``out_dir / filename`` and return the path.

    Raises:
        SurfaceNotComposedError: If nothing has been composed yet.
        ExportError: If encoding or writing the file fails.

    """
    if isinstance(source, RenderSurface):
        data = export_png(source)
    else:
        data = source.to_png()
    target_dir = setup_output_directory(str(out_dir))
    out_path = target_dir / _ensure_png(filename)
    try:
        out_path.write_bytes(data)
    except OSError as exc:
        msg = f"Failed to write collage to {out_path}: {exc}"
        raise ExportError(msg) from exc
    logger.info("Collage saved to: %s", out_path)
    return out_path
