"""Grid geometry for the collage: cell size and per-cell placement."""

from __future__ import annotations

from dataclasses import dataclass

from dream_collage.errors import InvalidGridError
from dream_collage.logging_utils import logger


@dataclass(frozen=True, slots=True)
class GridSpec:
    """Canvas size, grid dimensions and uniform gap in pixels."""

    canvas_width: int
    canvas_height: int
    rows: int
    cols: int
    gap: int = 0

    def __post_init__(self) -> None:
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            msg = (f"Canvas must be positive, got "
                   f"{self.canvas_width}x{self.canvas_height}")
            raise InvalidGridError(msg)
        if self.rows < 1 or self.cols < 1:
            msg = (f"Grid needs at least one row and column, got "
                   f"{self.rows}x{self.cols}")
            raise InvalidGridError(msg)
        if self.gap < 0:
            msg = f"Gap must be non-negative, got {self.gap}"
            raise InvalidGridError(msg)
        if self.cell_width <= 0 or self.cell_height <= 0:
            msg = (f"Gap {self.gap} leaves no room for a "
                   f"{self.rows}x{self.cols} grid on a "
                   f"{self.canvas_width}x{self.canvas_height} canvas")
            raise InvalidGridError(msg)

    @classmethod
    def square(
        cls,
        canvas_size: int,
        rows: int,
        cols: int,
        gap: int = 0,
    ) -> GridSpec:
        """Build a spec for a square canvas."""
        return cls(canvas_size, canvas_size, rows, cols, gap)

    @property
    def cell_count(self) -> int:
        """Number of cells, which must equal the number of images."""
        return self.rows * self.cols

    @property
    def cell_width(self) -> float:
        """Width of one cell after removing cols + 1 gaps."""
        return (self.canvas_width - self.gap * (self.cols + 1)) / self.cols

    @property
    def cell_height(self) -> float:
        """Height of one cell after removing rows + 1 gaps."""
        return (self.canvas_height - self.gap * (self.rows + 1)) / self.rows

    @property
    def canvas_size(self) -> tuple[int, int]:
        """Return (width, height)."""
        return self.canvas_width, self.canvas_height


@dataclass(frozen=True, slots=True)
class Cell:
    """One grid slot: top-left corner and extent in canvas pixels."""

    index: int
    x: float
    y: float
    width: float
    height: float

    @property
    def size(self) -> float:
        """Side length of a square cell (the shorter side otherwise)."""
        return min(self.width, self.height)

    @property
    def right(self) -> float:
        """Right edge."""
        return self.x + self.width

    @property
    def bottom(self) -> float:
        """Bottom edge."""
        return self.y + self.height

    def box(self) -> tuple[int, int, int, int]:
        """Return the pixel-snapped (x0, y0, x1, y1) box of the cell."""
        return (round(self.x), round(self.y),
                round(self.right), round(self.bottom))


def validate_grid(spec: GridSpec, image_count: int) -> None:
    """Ensure the grid has exactly one cell per supplied image."""
    if spec.cell_count != image_count:
        msg = (f"Grid {spec.rows}x{spec.cols} has {spec.cell_count} cells "
               f"but {image_count} images were supplied")
        raise InvalidGridError(msg)


def compute_cells(spec: GridSpec) -> list[Cell]:
    """
    Return the cells of ``spec`` in row-major order.

    Gaps are uniform on all sides and between cells, so the last cell
    ends exactly ``gap`` pixels before the right and bottom canvas edges.
    """
    w = spec.cell_width
    h = spec.cell_height
    cells = [
        Cell(
            index=row * spec.cols + col,
            x=spec.gap * (col + 1) + w * col,
            y=spec.gap * (row + 1) + h * row,
            width=w,
            height=h,
        )
        for row in range(spec.rows)
        for col in range(spec.cols)
    ]
    logger.debug(
        "Laid out %d cells of %.2fx%.2f on %dx%d canvas",
        len(cells), w, h, spec.canvas_width, spec.canvas_height,
    )
    return cells
