"""
Draw a collage as an explicit, ordered plan of draw steps.

The plan always paints the background first, then every cell followed by
its border, and the title label last so no cell can cover it. The plan is
rendered onto a private staging bitmap and only the finished bitmap is
committed to the surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from PIL import Image, ImageDraw, ImageFont

from dream_collage.collage.cover_fit import CropRect, cover_fit_crop
from dream_collage.collage.layout import (
    Cell,
    GridSpec,
    compute_cells,
    validate_grid,
)
from dream_collage.constants import (
    COLOR_MODE_MASK,
    COLOR_MODE_RGBA,
    MASK_CLEAR,
    MASK_OPAQUE,
    TITLE_FONT_FILE,
)
from dream_collage.logging_utils import logger

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Sequence

    from dream_collage.config import AppearanceConfig
    from dream_collage.image_loader import SourceImage
    from dream_collage.surface import RenderSurface
    from dream_collage.type_defs import RGB, RGBA, Point

_TRANSPARENT = (0, 0, 0, 0)

# Background fill and title label
_MIN_PLAN_STEPS = 2


def effective_radius(requested: float, width: float, height: float) -> float:
    """Clamp a corner radius so arcs never exceed half the shorter side."""
    return max(0.0, min(requested, width / 2, height / 2))


def _pixel_size(box: tuple[int, int, int, int]) -> tuple[int, int]:
    return max(1, box[2] - box[0]), max(1, box[3] - box[1])


def _rounded_mask(size: tuple[int, int], radius: float) -> Image.Image:
    """Return an L mask that is opaque inside a rounded rectangle."""
    mask = Image.new(COLOR_MODE_MASK, size, MASK_CLEAR)
    ImageDraw.Draw(mask).rounded_rectangle(
        (0, 0, size[0] - 1, size[1] - 1),
        radius=round(radius),
        fill=MASK_OPAQUE,
    )
    return mask


@lru_cache(maxsize=8)
def _get_font(px: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load the title font at the given pixel size with fallback; cached."""
    try:
        return ImageFont.truetype(TITLE_FONT_FILE, px)
    except OSError:
        return ImageFont.load_default(size=px)


@dataclass(frozen=True, slots=True)
class FillBackground:
    """Clear the whole canvas to an opaque color."""

    color: RGB

    def render(
        self,
        canvas: Image.Image,
        _images: Sequence[Image.Image],
    ) -> None:
        canvas.paste((*self.color, 255), (0, 0, *canvas.size))


@dataclass(frozen=True, slots=True)
class DrawCell:
    """Clip to the rounded cell and fill it with the cover-fit crop."""

    index: int
    cell: Cell
    crop: CropRect
    radius: float

    def render(
        self,
        canvas: Image.Image,
        images: Sequence[Image.Image],
    ) -> None:
        box = self.cell.box()
        size = _pixel_size(box)
        tile = images[self.index].resize(
            size,
            Image.Resampling.LANCZOS,
            box=self.crop.box(),
        ).convert(COLOR_MODE_RGBA)
        # Pasting through the mask is the clip; nothing outside it changes.
        canvas.paste(tile, box[:2], _rounded_mask(size, self.radius))


@dataclass(frozen=True, slots=True)
class StrokeBorder:
    """Stroke a translucent rounded outline over a finished cell."""

    index: int
    cell: Cell
    radius: float
    color: RGBA
    width: int

    def render(
        self,
        canvas: Image.Image,
        _images: Sequence[Image.Image],
    ) -> None:
        if self.width <= 0 or self.color[3] == 0:
            return
        box = self.cell.box()
        size = _pixel_size(box)
        overlay = Image.new(COLOR_MODE_RGBA, size, _TRANSPARENT)
        ImageDraw.Draw(overlay).rounded_rectangle(
            (0, 0, size[0] - 1, size[1] - 1),
            radius=round(self.radius),
            outline=self.color,
            width=self.width,
        )
        canvas.alpha_composite(overlay, dest=box[:2])


@dataclass(frozen=True, slots=True)
class DrawTitle:
    """Render the title label; ``position`` is its left edge and baseline."""

    text: str
    position: Point
    px: int
    color: RGBA

    def render(
        self,
        canvas: Image.Image,
        _images: Sequence[Image.Image],
    ) -> None:
        if not self.text:
            return
        overlay = Image.new(COLOR_MODE_RGBA, canvas.size, _TRANSPARENT)
        draw = ImageDraw.Draw(overlay)
        font = _get_font(self.px)
        x, y = self.position
        if isinstance(font, ImageFont.FreeTypeFont):
            draw.text((x, y), self.text, font=font, fill=self.color,
                      anchor="ls")
        else:
            # Bitmap fonts have no anchors; lift the text by its height.
            bbox = draw.textbbox((0, 0), self.text, font=font)
            draw.text((x, y - bbox[3]), self.text, font=font,
                      fill=self.color)
        canvas.alpha_composite(overlay)


DrawStep = FillBackground | DrawCell | StrokeBorder | DrawTitle


@dataclass(frozen=True, slots=True)
class DrawPlan:
    """Ordered draw steps for one composition."""

    steps: tuple[DrawStep, ...]

    @property
    def cell_count(self) -> int:
        """Number of image cells the plan draws."""
        return sum(isinstance(s, DrawCell) for s in self.steps)

    def validate(self) -> None:
        """
        Check the ordering contract of the plan.

        Background first, then each cell in index order immediately
        followed by its border, then exactly one title as the last step.

        Raises:
            ValueError: If the steps break the ordering contract.

        """
        steps = self.steps
        if len(steps) < _MIN_PLAN_STEPS or \
                not isinstance(steps[0], FillBackground):
            msg = "Draw plan must start with the background fill"
            raise ValueError(msg)
        if not isinstance(steps[-1], DrawTitle):
            msg = "Draw plan must end with the title label"
            raise ValueError(msg)

        body = steps[1:-1]
        if len(body) % 2:
            msg = "Every cell in the draw plan needs exactly one border"
            raise ValueError(msg)
        for expected, pos in enumerate(range(0, len(body), 2)):
            cell_step, border_step = body[pos], body[pos + 1]
            if not isinstance(cell_step, DrawCell) or \
                    cell_step.index != expected:
                msg = f"Expected cell {expected} at draw step {pos + 1}"
                raise ValueError(msg)
            if not isinstance(border_step, StrokeBorder) or \
                    border_step.index != expected:
                msg = f"Expected border of cell {expected} after its image"
                raise ValueError(msg)

    def render(
        self,
        size: tuple[int, int],
        images: Sequence[Image.Image],
    ) -> Image.Image:
        """Run every step in order onto a fresh staging canvas."""
        canvas = Image.new(COLOR_MODE_RGBA, size, _TRANSPARENT)
        for step in self.steps:
            step.render(canvas, images)
        return canvas


def build_draw_plan(
    cells: Sequence[Cell],
    crops: Sequence[CropRect],
    appearance: AppearanceConfig,
) -> DrawPlan:
    """Assemble the ordered draw steps for the given cells and crops."""
    steps: list[DrawStep] = [FillBackground(appearance.background)]
    for cell, crop in zip(cells, crops, strict=True):
        radius = effective_radius(
            appearance.corner_radius, cell.width, cell.height,
        )
        steps.append(DrawCell(cell.index, cell, crop, radius))
        steps.append(StrokeBorder(
            cell.index,
            cell,
            radius,
            appearance.border_color,
            appearance.border_width,
        ))
    steps.append(DrawTitle(
        appearance.title,
        appearance.title_position,
        appearance.title_px,
        appearance.title_color,
    ))
    return DrawPlan(tuple(steps))


class Compositor:
    """Turns decoded images and a grid into a finished collage bitmap."""

    def __init__(self, appearance: AppearanceConfig | None = None) -> None:
        if appearance is None:
            from dream_collage.config import AppearanceConfig  # noqa: PLC0415

            appearance = AppearanceConfig.model_validate({})
        self.appearance = appearance

    def plan(self, images: Sequence[SourceImage], spec: GridSpec) -> DrawPlan:
        """Lay out the grid, cover-fit every image and build the plan."""
        validate_grid(spec, len(images))
        cells = compute_cells(spec)
        crops = [
            cover_fit_crop(src.width, src.height, cell.width, cell.height)
            for src, cell in zip(images, cells, strict=True)
        ]
        return build_draw_plan(cells, crops, self.appearance)

    def render(
        self,
        images: Sequence[SourceImage],
        spec: GridSpec,
    ) -> Image.Image:
        """Render the collage to a new bitmap without touching any surface."""
        plan = self.plan(images, spec)
        plan.validate()
        return plan.render(spec.canvas_size, [src.image for src in images])

    def compose(
        self,
        surface: RenderSurface,
        images: Sequence[SourceImage],
        spec: GridSpec,
    ) -> None:
        """Render the collage and commit it to ``surface`` in one step."""
        image = self.render(images, spec)
        surface.commit(image)
        logger.info(
            "Composed %dx%d collage from %d images",
            spec.canvas_width, spec.canvas_height, len(images),
        )
