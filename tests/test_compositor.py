"""
Tests for the draw plan and rendering in dream_collage.collage.compositor.

The suite checks the ordering contract of the plan independently of how
it is built, then inspects rendered pixels for clipping, borders and the
title label.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import numpy as np
import pytest
from PIL import Image

from dream_collage.collage import compositor as dc_compositor
from dream_collage.collage.layout import GridSpec, compute_cells
from dream_collage.config import AppearanceConfig
from dream_collage.errors import InvalidGridError, RenderSurfaceUnavailableError
from dream_collage.image_loader import SourceImage, load_images
from dream_collage.surface import RenderSurface

if TYPE_CHECKING:
    from pytest_mock import MockerFixture

pytestmark = pytest.mark.visual

RED = (255, 0, 0)
BACKGROUND = (245, 245, 245)


def _solid_sources(
    count: int,
    color: tuple[int, int, int] = RED,
    size: tuple[int, int] = (40, 40),
) -> list[SourceImage]:
    return [
        SourceImage(index=i, data=b"", image=Image.new("RGB", size, color))
        for i in range(count)
    ]


@pytest.fixture
def appearance() -> AppearanceConfig:
    return AppearanceConfig.model_validate({})


@pytest.fixture
def plan(
    small_grid: GridSpec,
    appearance: AppearanceConfig,
) -> dc_compositor.DrawPlan:
    return dc_compositor.Compositor(appearance).plan(
        _solid_sources(4), small_grid,
    )


class TestEffectiveRadius:
    @pytest.mark.parametrize(
        ("requested", "width", "height", "expected"),
        [
            (18, 497, 497, 18),
            (300, 497, 497, 248.5),
            (18, 20, 10, 5),
            (0, 50, 50, 0),
            (-4, 50, 50, 0),
        ],
    )
    def test_clamp(
        self, requested: float, width: float, height: float, expected: float,
    ) -> None:
        assert dc_compositor.effective_radius(requested, width, height) \
            == pytest.approx(expected)

    @pytest.mark.parametrize("size", [1, 7, 36, 100, 497])
    def test_never_exceeds_half_side(self, size: int) -> None:
        radius = dc_compositor.effective_radius(1e6, size, size)
        assert radius <= size / 2

    def test_plan_uses_clamped_radius(self, appearance: AppearanceConfig) -> None:
        huge = appearance.model_copy(update={"corner_radius": 500.0})
        spec = GridSpec.square(100, rows=2, cols=2, gap=10)
        plan = dc_compositor.Compositor(huge).plan(_solid_sources(4), spec)
        cells = [s for s in plan.steps if isinstance(s, dc_compositor.DrawCell)]
        assert all(s.radius == pytest.approx(spec.cell_width / 2)
                   for s in cells)


class TestDrawPlan:
    def test_step_order(self, plan: dc_compositor.DrawPlan) -> None:
        kinds = [type(step).__name__ for step in plan.steps]
        assert kinds == [
            "FillBackground",
            "DrawCell", "StrokeBorder",
            "DrawCell", "StrokeBorder",
            "DrawCell", "StrokeBorder",
            "DrawCell", "StrokeBorder",
            "DrawTitle",
        ]
        assert plan.cell_count == 4
        plan.validate()

    def test_border_shares_cell_geometry(
        self, plan: dc_compositor.DrawPlan,
    ) -> None:
        for cell_step, border in zip(plan.steps[1:-1:2], plan.steps[2:-1:2],
                                     strict=True):
            assert border.cell == cell_step.cell
            assert border.radius == cell_step.radius

    def test_title_must_be_last(self, plan: dc_compositor.DrawPlan) -> None:
        steps = list(plan.steps)
        steps.insert(1, steps.pop())
        with pytest.raises(ValueError, match="end with the title"):
            dc_compositor.DrawPlan(tuple(steps)).validate()

    def test_background_must_be_first(
        self, plan: dc_compositor.DrawPlan,
    ) -> None:
        with pytest.raises(ValueError, match="start with the background"):
            dc_compositor.DrawPlan(plan.steps[1:]).validate()

    def test_border_must_follow_its_cell(
        self, plan: dc_compositor.DrawPlan,
    ) -> None:
        steps = list(plan.steps)
        steps[1], steps[2] = steps[2], steps[1]
        with pytest.raises(ValueError, match="Expected cell 0"):
            dc_compositor.DrawPlan(tuple(steps)).validate()

    def test_missing_border(self, plan: dc_compositor.DrawPlan) -> None:
        steps = list(plan.steps)
        del steps[2]
        with pytest.raises(ValueError, match="exactly one border"):
            dc_compositor.DrawPlan(tuple(steps)).validate()

    def test_cells_in_index_order(self, plan: dc_compositor.DrawPlan) -> None:
        steps = list(plan.steps)
        steps[1:3], steps[3:5] = steps[3:5], steps[1:3]
        with pytest.raises(ValueError, match="Expected cell 0"):
            dc_compositor.DrawPlan(tuple(steps)).validate()

    def test_plan_rejects_image_count_mismatch(
        self, small_grid: GridSpec,
    ) -> None:
        with pytest.raises(InvalidGridError):
            dc_compositor.Compositor().plan(_solid_sources(3), small_grid)


class TestRender:
    def test_canvas_size_matches_grid(self) -> None:
        spec = GridSpec(300, 180, rows=2, cols=3, gap=5)
        image = dc_compositor.Compositor().render(_solid_sources(6), spec)
        assert image.size == (300, 180)

    def test_cells_gaps_and_rounded_corners(
        self, default_grid: GridSpec,
    ) -> None:
        image = dc_compositor.Compositor().render(
            _solid_sources(4), default_grid,
        )
        px = np.asarray(image)
        # gap between cells shows the background
        assert tuple(px[300, 512][:3]) == BACKGROUND
        # cell centers show the image
        for cell in compute_cells(default_grid):
            cx, cy = int(cell.x + cell.width / 2), int(cell.y + cell.height / 2)
            assert tuple(px[cy, cx][:3]) == RED
        # the rounded clip leaves the cell's very corner unpainted
        assert tuple(px[10, 10][:3]) == BACKGROUND

    def test_border_darkens_cell_edge(self, default_grid: GridSpec) -> None:
        image = dc_compositor.Compositor().render(
            _solid_sources(4), default_grid,
        )
        edge = image.getpixel((10, 250))
        inside = image.getpixel((20, 250))
        assert inside[:3] == RED
        assert edge[0] < RED[0]

    def test_no_border_when_width_zero(
        self, default_grid: GridSpec, appearance: AppearanceConfig,
    ) -> None:
        plain = appearance.model_copy(update={"border_width": 0})
        image = dc_compositor.Compositor(plain).render(
            _solid_sources(4), default_grid,
        )
        assert image.getpixel((10, 250))[:3] == RED

    def test_cover_fit_crops_instead_of_letterboxing(
        self, appearance: AppearanceConfig,
    ) -> None:
        # left half green, right half blue: a wide source is cropped to
        # its middle, so both colors touch the cell's vertical center line
        src = Image.new("RGB", (300, 100), (0, 200, 0))
        src.paste((0, 0, 200), (150, 0, 300, 100))
        spec = GridSpec.square(120, rows=1, cols=1, gap=10)
        flat = appearance.model_copy(
            update={"corner_radius": 0.0, "border_width": 0, "title": ""},
        )
        image = dc_compositor.Compositor(flat).render(
            [SourceImage(0, b"", src)], spec,
        )
        top_left = image.getpixel((12, 12))[:3]
        bottom_right = image.getpixel((107, 107))[:3]
        assert top_left == (0, 200, 0)
        assert bottom_right == (0, 0, 200)

    def test_title_is_drawn_over_cells(
        self, appearance: AppearanceConfig,
    ) -> None:
        spec = GridSpec.square(256, rows=2, cols=2, gap=0)
        covering = appearance.model_copy(update={"corner_radius": 0.0})
        untitled = covering.model_copy(update={"title": ""})
        with_title = np.asarray(
            dc_compositor.Compositor(covering).render(
                _solid_sources(4), spec,
            ),
        )
        without_title = np.asarray(
            dc_compositor.Compositor(untitled).render(
                _solid_sources(4), spec,
            ),
        )
        x, y = covering.title_position
        region = (slice(y - covering.title_px, y + 4), slice(x, x + 120))
        assert (with_title[region] != without_title[region]).any()
        # away from the label both renders agree
        np.testing.assert_array_equal(
            with_title[200:, 200:], without_title[200:, 200:],
        )

    def test_render_is_deterministic(self, small_grid: GridSpec) -> None:
        sources = _solid_sources(4)
        first = dc_compositor.Compositor().render(sources, small_grid)
        second = dc_compositor.Compositor().render(sources, small_grid)
        assert first.tobytes() == second.tobytes()


class TestCompose:
    def test_compose_commits_to_decoded_surface(
        self,
        small_grid: GridSpec,
        solid_pngs: list[bytes],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level("INFO")
        surface = RenderSurface(*small_grid.canvas_size)
        surface.begin_loading()
        sources = load_images(solid_pngs)
        surface.mark_decoded()
        dc_compositor.Compositor().compose(surface, sources, small_grid)
        assert surface.is_composed
        assert "Composed 160x160 collage from 4 images" in caplog.text

    def test_compose_requires_decoded_surface(
        self, small_grid: GridSpec,
    ) -> None:
        surface = RenderSurface(*small_grid.canvas_size)
        with pytest.raises(RenderSurfaceUnavailableError):
            dc_compositor.Compositor().compose(
                surface, _solid_sources(4), small_grid,
            )
        assert not surface.to_array().any()

    def test_font_is_cached(self) -> None:
        dc_compositor._get_font.cache_clear()
        font_a = dc_compositor._get_font(22)
        font_b = dc_compositor._get_font(22)
        assert font_a is font_b

    def test_font_falls_back_to_default(self, mocker: MockerFixture) -> None:
        dc_compositor._get_font.cache_clear()
        mocker.patch.object(
            dc_compositor, "TITLE_FONT_FILE", "no-such-font-file.ttf",
        )
        fallback = mocker.patch.object(
            dc_compositor.ImageFont, "load_default",
            wraps=dc_compositor.ImageFont.load_default,
        )
        font = dc_compositor._get_font(13)
        fallback.assert_called_once_with(size=13)
        left, top, right, bottom = font.getbbox("x")
        assert right > left
        assert bottom > top
        dc_compositor._get_font.cache_clear()
