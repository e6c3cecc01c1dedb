"""Input validation helpers for the collage runtime."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence


def validate_input_paths(paths: Sequence[str | Path]) -> list[Path]:
    """Ensure every provided image path points to a file."""
    resolved = [Path(p) for p in paths]
    for path in resolved:
        if not path.is_file():
            msg = f"Image not found: {path}"
            raise FileNotFoundError(msg)
    return resolved


def validate_prompts(prompts: Sequence[str], image_count: int) -> None:
    """Prompts are optional, but when given there is one per image."""
    if prompts and len(prompts) != image_count:
        msg = (f"Expected {image_count} prompts (one per image), "
               f"got {len(prompts)}")
        raise ValueError(msg)
