"""Geometry primitives shared by every template resolver.

All functions are pure: rectangle/point math, percentage mapping and the row
distribution used by photo grids. Coordinates are logical canvas units with the
origin at the top-left corner and y growing downwards.
"""

import math
from dataclasses import dataclass
from typing import List

from deckcanvas.config import CANVAS_HEIGHT, CANVAS_WIDTH
from deckcanvas.exceptions import CanvasContractError


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> Point:
        return Point(self.x + self.w / 2, self.y + self.h / 2)

    def offset(self, dx: float, dy: float) -> "Rect":
        """Return the same rectangle moved by (dx, dy)."""
        return Rect(self.x + dx, self.y + dy, self.w, self.h)


@dataclass(frozen=True)
class Canvas:
    """Fixed logical drawing surface.

    Raises:
        CanvasContractError: If either dimension is not a positive finite number
    """

    width: float = CANVAS_WIDTH
    height: float = CANVAS_HEIGHT

    def __post_init__(self):
        for value in (self.width, self.height):
            if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
                raise CanvasContractError(self.width, self.height)

    def contains(self, rect: Rect) -> bool:
        """Check whether a rectangle lies fully on the canvas."""
        return rect.x >= 0 and rect.y >= 0 and rect.right <= self.width and rect.bottom <= self.height


def edge_intersection(center: Point, half_width: float, half_height: float, toward: Point) -> Point:
    """Point where a ray from a rectangle's center exits the rectangle.

    The rectangle is axis-aligned with the given half extents and centered on
    ``center``. The result is exact: connectors drawn to it touch the border.

    Args:
        center: Rectangle center, also the ray origin
        half_width: Half of the rectangle width
        half_height: Half of the rectangle height
        toward: Any point on the ray

    Returns:
        Exit point, or ``center`` itself when ``toward`` coincides with it
    """
    dx = toward.x - center.x
    dy = toward.y - center.y
    if dx == 0 and dy == 0:
        return center

    abs_dx = abs(dx)
    abs_dy = abs(dy)
    if abs_dy == 0 or (abs_dx != 0 and abs_dx * half_height > abs_dy * half_width):
        # exits through the left or right edge
        t = half_width / abs_dx
    else:
        t = half_height / abs_dy
    return Point(center.x + dx * t, center.y + dy * t)


def circle_edge_point(center: Point, radius: float, toward: Point) -> Point:
    """Point where a ray from a circle's center toward ``toward`` crosses the circle."""
    dx = toward.x - center.x
    dy = toward.y - center.y
    distance = math.hypot(dx, dy)
    if distance == 0:
        return center
    return Point(center.x + dx / distance * radius, center.y + dy / distance * radius)


def distribute_into_rows(count: int, max_rows: int = 4, items_per_row_cap: int = 4) -> List[int]:
    """Split ``count`` items into balanced rows.

    Items beyond ``max_rows * items_per_row_cap`` are dropped. The remainder of an
    uneven split goes to the earliest rows, one item each, so row sizes never
    increase from top to bottom.

    Args:
        count: Number of items (negative counts are treated as zero)
        max_rows: Upper bound on the number of rows
        items_per_row_cap: Items a row holds before another row is opened

    Returns:
        Row sizes in allocation order; empty when there is nothing to place
    """
    if count <= 0 or max_rows <= 0 or items_per_row_cap <= 0:
        return []

    clamped = min(count, max_rows * items_per_row_cap)
    rows = min(math.ceil(clamped / items_per_row_cap), max_rows)
    base, remainder = divmod(clamped, rows)
    return [base + 1 if i < remainder else base for i in range(rows)]


def cell_rect(
    row_index: int,
    col_index: int,
    row_sizes: List[int],
    grid_width: float,
    grid_height: float,
    gap: float,
) -> Rect:
    """Rectangle of one grid cell, relative to the grid's top-left corner.

    Every row splits the full grid width between its own cells, so rows with
    fewer items get wider cells. No rounding correction is applied.
    """
    rows = len(row_sizes)
    cols_in_row = row_sizes[row_index]
    col_width = (grid_width - gap * (cols_in_row - 1)) / cols_in_row
    row_height = (grid_height - gap * (rows - 1)) / rows
    return Rect(
        x=col_index * (col_width + gap),
        y=row_index * (row_height + gap),
        w=col_width,
        h=row_height,
    )


def grid_cells(row_sizes: List[int], area: Rect, gap: float) -> List[Rect]:
    """Absolute rectangles for every cell of a row distribution, in reading order."""
    cells = []
    for row_index, cols in enumerate(row_sizes):
        for col_index in range(cols):
            cells.append(cell_rect(row_index, col_index, row_sizes, area.w, area.h, gap).offset(area.x, area.y))
    return cells


def percent_to_pixel(percent: float, extent: float) -> float:
    """Map a percentage of ``extent`` to units. Values outside 0-100 are kept."""
    return percent / 100 * extent
