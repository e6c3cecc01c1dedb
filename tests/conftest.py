"""
Test configuration and shared fixtures for dream_collage.

Provides encoded solid-color test images, grid specs and config
factories used across the test modules.

Note:
    This file is automatically loaded by pytest and should not be
    renamed.

"""
import io
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from dream_collage.collage.layout import GridSpec
from dream_collage.config import CollageConfig
from dream_collage.constants import COLOR_MODE_RGB
from dream_collage.logging_utils import logger

SOLID_COLORS: tuple[tuple[int, int, int], ...] = (
    (220, 40, 40),
    (40, 180, 60),
    (40, 80, 220),
    (230, 200, 30),
)


def encode_png(image: Image.Image) -> bytes:
    """Encode a PIL image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    """Factory for solid-color PNG buffers of any size and mode."""

    def _make(
        color: tuple[int, ...] = SOLID_COLORS[0],
        size: tuple[int, int] = (64, 64),
        mode: str = COLOR_MODE_RGB,
    ) -> bytes:
        return encode_png(Image.new(mode, size, color))

    return _make


@pytest.fixture
def solid_pngs(make_png: Callable[..., bytes]) -> list[bytes]:
    """Four fixed-size solid-color PNG buffers."""
    return [make_png(color) for color in SOLID_COLORS]


@pytest.fixture
def mixed_pngs(make_png: Callable[..., bytes]) -> list[bytes]:
    """Four solid-color PNGs with square, wide and tall shapes."""
    sizes = [(64, 64), (120, 40), (40, 120), (90, 60)]
    return [
        make_png(color, size)
        for color, size in zip(SOLID_COLORS, sizes, strict=True)
    ]


@pytest.fixture
def default_grid() -> GridSpec:
    """The 2x2 collage on a 1024 px canvas with 10 px gaps."""
    return GridSpec.square(1024, rows=2, cols=2, gap=10)


@pytest.fixture
def small_grid() -> GridSpec:
    """A small 2x2 grid that renders quickly."""
    return GridSpec.square(160, rows=2, cols=2, gap=6)


@pytest.fixture
def make_collage_config() -> Callable[..., CollageConfig]:
    """Build CollageConfig instances with optional section overrides."""

    def _build(**sections: dict[str, Any]) -> CollageConfig:
        return CollageConfig.model_validate(
            {name: dict(values) for name, values in sections.items()},
        )

    return _build


@pytest.fixture
def image_files(tmp_path: Path, solid_pngs: list[bytes]) -> list[Path]:
    """Write the solid-color PNGs to disk and return their paths."""
    paths = []
    for idx, data in enumerate(solid_pngs):
        path = tmp_path / f"scene_{idx}.png"
        path.write_bytes(data)
        paths.append(path)
    return paths


@pytest.fixture(autouse=True)
def enable_logger_propagation(monkeypatch: pytest.MonkeyPatch) -> None:
    """Enable propagation for the collage logger to allow caplog to work."""
    monkeypatch.setattr(logger, "propagate", True)
