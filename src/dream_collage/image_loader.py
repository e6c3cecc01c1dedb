"""
Decode the encoded source images of a collage.

All buffers are decoded in parallel and joined fail-fast: either every
image decodes and an index-aligned list is returned, or the first failure
aborts the load with :class:`ImageDecodeError` and nothing is returned.
"""
from __future__ import annotations

import base64
import binascii
import io
from concurrent.futures import (
    FIRST_EXCEPTION,
    Future,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from dream_collage.config_defaults import (
    DEFAULT_BACKGROUND,
    DEFAULT_MAX_WORKERS,
)
from dream_collage.constants import (
    COLOR_MODE_RGB,
    COLOR_MODE_RGBA,
    DATA_URL_BASE64_MARKER,
    DATA_URL_PREFIX,
    MAX_SOURCE_DIMENSION,
)
from dream_collage.errors import ImageDecodeError
from dream_collage.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from dream_collage.type_defs import RGB, EncodedImage

# Pillow signals corrupt or hostile data through several exception types.
_DECODE_FAILURES = (
    UnidentifiedImageError,
    OSError,
    ValueError,
    SyntaxError,
    Image.DecompressionBombError,
)


@dataclass(frozen=True, slots=True)
class SourceImage:
    """An encoded input together with its decoded RGB bitmap."""

    index: int
    data: bytes
    image: Image.Image

    @property
    def width(self) -> int:
        """Decoded width in pixels."""
        return self.image.width

    @property
    def height(self) -> int:
        """Decoded height in pixels."""
        return self.image.height


def to_rgb(img: Image.Image, *, bg_color: RGB) -> Image.Image:
    """Convert PIL image to RGB, alpha compositing if needed."""
    if img.mode == COLOR_MODE_RGB:
        return img
    if img.mode in ("RGBA", "LA", "PA") or "transparency" in img.info:
        bg = Image.new(COLOR_MODE_RGBA, img.size, (*bg_color, 255))
        comp = Image.alpha_composite(bg, img.convert(COLOR_MODE_RGBA))
        return comp.convert(COLOR_MODE_RGB)
    return img.convert(COLOR_MODE_RGB)


def decode_base64_payload(payload: str, index: int = 0) -> bytes:
    """
    Decode base64 image text, accepting ``data:image/...;base64,`` URLs.

    Whitespace inside the payload is ignored, as in data URLs.

    Raises:
        ImageDecodeError: If the text is not valid base64.

    """
    text = payload.strip()
    if text.startswith(DATA_URL_PREFIX):
        _, sep, text = text.partition(DATA_URL_BASE64_MARKER)
        if not sep:
            raise ImageDecodeError(index, "data URL is not base64 encoded")
    # MIME-wrapped payloads carry line breaks.
    text = "".join(text.split())
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(index, f"invalid base64: {exc}") from exc


def decode_base64_payloads(payloads: Sequence[str]) -> list[bytes]:
    """Decode a list of base64 payloads, keeping their order."""
    return [decode_base64_payload(p, idx) for idx, p in enumerate(payloads)]


def _as_bytes(encoded: EncodedImage, index: int) -> bytes:
    if isinstance(encoded, str):
        return decode_base64_payload(encoded, index)
    return bytes(encoded)


def decode_image(
    encoded: EncodedImage,
    index: int,
    *,
    bg_color: RGB = DEFAULT_BACKGROUND,
) -> SourceImage:
    """
    Decode one encoded image into an RGB bitmap.

    Args:
        encoded: Raw image bytes, or base64 text.
        index: Position of the image in the collage, reported on failure.
        bg_color: Color transparent pixels are flattened onto.

    Returns:
        The decoded, fully loaded SourceImage.

    Raises:
        ImageDecodeError: If the data is empty or Pillow cannot decode it.

    """
    data = _as_bytes(encoded, index)
    if not data:
        raise ImageDecodeError(index, "empty buffer")
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgb = to_rgb(img, bg_color=bg_color)
            # Detach from the file object before the context closes it.
            bitmap = rgb.copy() if rgb is img else rgb
    except _DECODE_FAILURES as exc:
        raise ImageDecodeError(index, str(exc) or type(exc).__name__) from exc

    if bitmap.width > MAX_SOURCE_DIMENSION or \
            bitmap.height > MAX_SOURCE_DIMENSION:
        logger.warning(
            "Image %d is large: %dx%d. This may slow composition.",
            index, bitmap.width, bitmap.height,
        )
    return SourceImage(index=index, data=data, image=bitmap)


def _first_failure(
    futures: dict[Future[SourceImage], int],
    done: set[Future[SourceImage]],
) -> ImageDecodeError | None:
    """Return the decode error with the lowest index among ``done``."""
    failed = sorted(
        (futures[f], f) for f in done
        if not f.cancelled() and f.exception() is not None
    )
    if not failed:
        return None
    index, fut = failed[0]
    exc = fut.exception()
    if isinstance(exc, ImageDecodeError):
        return exc
    error = ImageDecodeError(index, str(exc))
    error.__cause__ = exc
    return error


def load_images(
    buffers: Sequence[EncodedImage],
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    bg_color: RGB = DEFAULT_BACKGROUND,
) -> list[SourceImage]:
    """
    Decode all buffers in parallel with a fail-fast join.

    Every decode is submitted at once. The first failure cancels tasks
    that have not started, discards finished results and raises the
    failing image's :class:`ImageDecodeError` without waiting for
    decodes still running.

    Returns:
        Decoded images, index-aligned with ``buffers``.

    """
    if not buffers:
        return []

    workers = max(1, min(max_workers, len(buffers)))
    executor = ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix="collage-decode",
    )
    try:
        futures = {
            executor.submit(decode_image, buf, idx, bg_color=bg_color): idx
            for idx, buf in enumerate(buffers)
        }
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)
        error = _first_failure(futures, done)
        if error is not None:
            for fut in pending:
                fut.cancel()
            logger.debug("Decode join aborted by image %d", error.index)
            raise error
        results = sorted(
            (f.result() for f in futures), key=lambda s: s.index,
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.debug("Decoded %d images with %d workers", len(results), workers)
    return results
