"""
Cover-fit sampling: pick the centered source region that fills a cell.

The crop is always "cover", never "contain": the region is scaled so the
cell is completely filled and whatever overflows is discarded, so no
letterboxing or aspect distortion appears in the collage.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CropRect:
    """Source-image region in source pixel coordinates."""

    x: float
    y: float
    width: float
    height: float

    def box(self) -> tuple[float, float, float, float]:
        """Return the (x0, y0, x1, y1) box Pillow expects for ``resize``."""
        return self.x, self.y, self.x + self.width, self.y + self.height

    def scale_to(self, cell_width: float) -> float:
        """Factor that maps this crop onto a cell of ``cell_width``."""
        return cell_width / self.width


def cover_fit_crop(
    src_width: float,
    src_height: float,
    cell_width: float,
    cell_height: float | None = None,
) -> CropRect:
    """
    Return the centered crop of a source that exactly covers the cell.

    ``cell_height`` defaults to ``cell_width`` for square cells. The crop
    keeps the cell's aspect ratio, lies fully inside the source and scales
    by ``max(cell_w / src_w, cell_h / src_h)`` to fill the cell.
    """
    cell_h = cell_width if cell_height is None else cell_height
    if min(src_width, src_height, cell_width, cell_h) <= 0:
        msg = (f"Dimensions must be positive, got source "
               f"{src_width}x{src_height} and cell {cell_width}x{cell_h}")
        raise ValueError(msg)

    scale = max(cell_width / src_width, cell_h / src_height)
    # Clamp away floating drift so the crop never leaves the source.
    crop_w = min(src_width, cell_width / scale)
    crop_h = min(src_height, cell_h / scale)
    crop_x = max(0.0, (src_width - crop_w) / 2)
    crop_y = max(0.0, (src_height - crop_h) / 2)
    return CropRect(crop_x, crop_y, crop_w, crop_h)
