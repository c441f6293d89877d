"""Unit tests for the geometry primitives."""

import math

import pytest

from deckcanvas.exceptions import CanvasContractError
from deckcanvas.services.geometry import (
    Canvas,
    Point,
    Rect,
    cell_rect,
    circle_edge_point,
    distribute_into_rows,
    edge_intersection,
    grid_cells,
    percent_to_pixel,
)


class TestEdgeIntersection:
    """Test rectangle boundary intersection of a ray from the center."""

    def test_target_to_the_right_hits_right_edge(self):
        """Test that a target level with the center exits through the right edge."""
        point = edge_intersection(Point(100, 100), 60, 30, Point(300, 100))
        assert point == Point(160, 100)

    def test_target_to_the_left_hits_left_edge(self):
        """Test that a target level with the center on the left exits on the left edge."""
        point = edge_intersection(Point(100, 100), 60, 30, Point(-50, 100))
        assert point == Point(40, 100)

    def test_target_below_hits_bottom_edge(self):
        """Test that a target straight below exits through the bottom edge."""
        point = edge_intersection(Point(100, 100), 60, 30, Point(100, 300))
        assert point == Point(100, 130)

    def test_diagonal_target_on_boundary(self):
        """Test that a diagonal exit point lies on the rectangle border."""
        center = Point(0, 0)
        point = edge_intersection(center, 50, 20, Point(100, 100))
        # steep relative to the 50x20 half extents: exits on the bottom edge
        assert point.y == pytest.approx(20)
        assert point.x == pytest.approx(20)

    def test_coincident_target_returns_center(self):
        """Test that a target equal to the center returns the center unchanged."""
        center = Point(10, 20)
        assert edge_intersection(center, 5, 5, Point(10, 20)) == center


class TestCircleEdgePoint:
    """Test circle boundary intersection."""

    def test_point_on_circle(self):
        """Test that the returned point is one radius away along the ray."""
        point = circle_edge_point(Point(0, 0), 10, Point(30, 40))
        assert point.x == pytest.approx(6)
        assert point.y == pytest.approx(8)

    def test_coincident_target_returns_center(self):
        """Test the degenerate zero-length ray."""
        assert circle_edge_point(Point(1, 1), 10, Point(1, 1)) == Point(1, 1)


class TestDistributeIntoRows:
    """Test balanced row distribution for photo grids."""

    @pytest.mark.parametrize("count", range(1, 17))
    def test_rows_non_increasing_and_sum_preserved(self, count):
        """Test that rows never grow downwards and hold every photo."""
        rows = distribute_into_rows(count)
        assert sum(rows) == count
        assert all(earlier >= later for earlier, later in zip(rows, rows[1:]))
        assert len(rows) <= 4
        assert max(rows) <= 4

    @pytest.mark.parametrize("count", [17, 20, 100])
    def test_overflow_is_dropped(self, count):
        """Test that counts above 16 are clamped to 16 cells."""
        rows = distribute_into_rows(count)
        assert rows == [4, 4, 4, 4]
        assert sum(rows) == 16

    def test_eleven_photos(self):
        """Test that 11 photos give the remainder to the first two rows."""
        assert distribute_into_rows(11) == [4, 4, 3]

    def test_five_photos(self):
        """Test that 5 photos split into two rows with the extra first."""
        assert distribute_into_rows(5) == [3, 2]

    @pytest.mark.parametrize("count", [0, -3])
    def test_empty_or_negative(self, count):
        """Test that nothing to place yields no rows."""
        assert distribute_into_rows(count) == []

    def test_custom_caps(self):
        """Test custom row and per-row caps."""
        assert distribute_into_rows(7, max_rows=2, items_per_row_cap=3) == [3, 3]


class TestCellRect:
    """Test grid cell rectangles."""

    def test_single_cell_fills_grid(self):
        """Test that one cell takes the whole grid."""
        assert cell_rect(0, 0, [1], 900, 460, 3) == Rect(0, 0, 900, 460)

    def test_row_with_fewer_items_gets_wider_cells(self):
        """Test that each row divides the full width among its own cells."""
        rows = [3, 2]
        first = cell_rect(0, 0, rows, 900, 460, 3)
        second = cell_rect(1, 1, rows, 900, 460, 3)
        assert first.w == pytest.approx((900 - 6) / 3)
        assert second.w == pytest.approx((900 - 3) / 2)
        assert second.x == pytest.approx(second.w + 3)
        assert second.y == pytest.approx((460 - 3) / 2 + 3)

    def test_grid_cells_offsets_area(self):
        """Test that grid cells are placed inside the grid area in reading order."""
        area = Rect(30, 62, 900, 460)
        cells = grid_cells([2, 1], area, 4)
        assert len(cells) == 3
        assert cells[0].x == 30 and cells[0].y == 62
        assert cells[2].w == pytest.approx(900)
        assert all(cell.right <= area.right + 1e-9 for cell in cells)
        assert all(cell.bottom <= area.bottom + 1e-9 for cell in cells)


class TestPercentToPixel:
    """Test percentage mapping."""

    def test_linear(self):
        assert percent_to_pixel(50, 690) == pytest.approx(345)

    def test_out_of_range_not_clamped(self):
        """Test that values outside 0-100 are kept."""
        assert percent_to_pixel(-10, 200) == pytest.approx(-20)
        assert percent_to_pixel(150, 200) == pytest.approx(300)


class TestCanvas:
    """Test the canvas contract."""

    def test_default_dimensions(self):
        canvas = Canvas()
        assert (canvas.width, canvas.height) == (960, 540)

    @pytest.mark.parametrize("width,height", [(0, 540), (960, -1), (math.inf, 540), (960, math.nan)])
    def test_invalid_dimensions_raise(self, width, height):
        """Test that invalid dimensions signal a contract violation."""
        with pytest.raises(CanvasContractError):
            Canvas(width, height)

    def test_contract_error_is_value_error(self):
        """Test that the contract error can be caught as ValueError."""
        with pytest.raises(ValueError, match="got 0x0"):
            Canvas(0, 0)

    def test_contains(self):
        canvas = Canvas()
        assert canvas.contains(Rect(0, 0, 960, 540))
        assert not canvas.contains(Rect(900, 0, 100, 10))
