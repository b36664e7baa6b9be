"""
Tests for the drawing engine.
"""

import pytest

from prizm.matrix import drawing
from prizm.matrix.frame import COLS, LED_COUNT, OFF, ROWS, create_blank, get_pixel, set_pixel

RED = '#ff0000'
GREEN = '#00ff00'


def painted(frame, color=RED):
    """Set of (row, col) cells holding color."""
    return {(r, c) for r in range(ROWS) for c in range(COLS) if get_pixel(frame, r, c) == color}


def test_brush_size_one_paints_single_cell():
    frame = create_blank()
    drawing.draw_brush(frame, 4, 4, RED, 1)
    assert painted(frame) == {(4, 4)}


def test_brush_size_three_paints_square():
    frame = create_blank()
    drawing.draw_brush(frame, 4, 4, RED, 3)
    assert painted(frame) == {(r, c) for r in range(3, 6) for c in range(3, 6)}


def test_brush_size_two_has_radius_one():
    frame = create_blank()
    drawing.draw_brush(frame, 4, 4, RED, 2)
    assert len(painted(frame)) == 9


def test_brush_is_clipped_at_corner():
    frame = create_blank()
    drawing.draw_brush(frame, 0, 0, RED, 3)
    assert painted(frame) == {(0, 0), (0, 1), (1, 0), (1, 1)}


def test_erase_writes_off():
    frame = create_blank(RED)
    drawing.erase(frame, 5, 5, 1)
    assert get_pixel(frame, 5, 5) == OFF
    assert len(painted(frame)) == LED_COUNT - 1


def test_flood_fill_blank_frame_fills_everything():
    frame = create_blank()
    changed = drawing.flood_fill(frame, 5, 10, GREEN)
    assert changed == LED_COUNT
    assert all(color == GREEN for color in frame)


def test_flood_fill_stops_at_border():
    frame = create_blank()
    # Vertical wall at column 5
    for r in range(ROWS):
        set_pixel(frame, r, 5, RED)
    changed = drawing.flood_fill(frame, 0, 0, GREEN)
    assert changed == ROWS * 5
    assert painted(frame, GREEN) == {(r, c) for r in range(ROWS) for c in range(5)}
    assert len(painted(frame, RED)) == ROWS


def test_flood_fill_is_not_diagonal():
    frame = create_blank(RED)
    set_pixel(frame, 0, 0, OFF)
    set_pixel(frame, 1, 1, OFF)
    drawing.flood_fill(frame, 0, 0, GREEN)
    assert get_pixel(frame, 0, 0) == GREEN
    assert get_pixel(frame, 1, 1) == OFF


def test_flood_fill_same_colour_is_noop():
    frame = create_blank(GREEN)
    assert drawing.flood_fill(frame, 3, 3, GREEN) == 0
    assert all(color == GREEN for color in frame)


def test_flood_fill_out_of_bounds():
    frame = create_blank()
    assert drawing.flood_fill(frame, ROWS, 0, GREEN) == 0


def test_line_includes_endpoints():
    points = drawing.line_points((0, 0), (3, 7))
    assert points[0] == (0, 0)
    assert points[-1] == (3, 7)
    assert len(points) == 8


def test_line_horizontal_and_vertical():
    assert drawing.line_points((2, 1), (2, 4)) == [(2, 1), (2, 2), (2, 3), (2, 4)]
    assert drawing.line_points((1, 2), (4, 2)) == [(1, 2), (2, 2), (3, 2), (4, 2)]


def test_line_covers_same_cells_both_directions():
    cells = [(r, c) for r in range(ROWS) for c in range(COLS)]
    for start in cells:
        for end in cells:
            forward = drawing.line_points(start, end)
            backward = drawing.line_points(end, start)
            assert set(forward) == set(backward), (start, end)
            assert forward[0] == start and forward[-1] == end


def test_line_steps_are_adjacent():
    points = drawing.line_points((0, 0), (9, 20))
    for (r0, c0), (r1, c1) in zip(points, points[1:]):
        assert max(abs(r1 - r0), abs(c1 - c0)) == 1


def test_draw_line_clips():
    frame = create_blank()
    drawing.draw_line(frame, (-2, 0), (2, 0), RED)
    assert painted(frame) == {(0, 0), (1, 0), (2, 0)}


def test_rectangle_outline():
    frame = create_blank()
    drawing.draw_rectangle(frame, (1, 1), (3, 4), RED, 1)
    cells = painted(frame)
    assert (2, 2) not in cells
    assert (1, 1) in cells and (3, 4) in cells
    assert len(cells) == 2 * 4 + 2 * 1


def test_rectangle_filled_with_larger_brush():
    frame = create_blank()
    drawing.draw_rectangle(frame, (3, 4), (1, 1), RED, 2)
    assert painted(frame) == {(r, c) for r in range(1, 4) for c in range(1, 5)}


def test_circle_radius():
    assert drawing.circle_radius((5, 5), (5, 8)) == 3
    assert drawing.circle_radius((0, 0), (3, 4)) == 5
    assert drawing.circle_radius((0, 0), (1, 1)) == 1


def test_circle_points_are_symmetric():
    center = (5, 10)
    points = set(drawing.circle_points(center, 4))
    for r, c in points:
        dr, dc = r - center[0], c - center[1]
        assert (center[0] - dr, center[1] + dc) in points
        assert (center[0] + dr, center[1] - dc) in points
        assert (center[0] + dc, center[1] + dr) in points
    assert (5, 14) in points and (1, 10) in points


def test_circle_radius_zero_is_centre():
    assert set(drawing.circle_points((2, 2), 0)) == {(2, 2)}


def test_draw_circle_clips():
    frame = create_blank()
    drawing.draw_circle(frame, (0, 0), 3, RED)
    cells = painted(frame)
    assert (0, 3) in cells and (3, 0) in cells
    assert all(r >= 0 and c >= 0 for r, c in cells)


def test_draw_shape_dispatch():
    frame = create_blank()
    drawing.draw_shape(frame, drawing.TOOL_LINE, (0, 0), (0, 2), RED)
    assert painted(frame) == {(0, 0), (0, 1), (0, 2)}
    with pytest.raises(ValueError):
        drawing.draw_shape(frame, drawing.TOOL_PEN, (0, 0), (1, 1), RED)
