"""
Drawing Engine Module.

Brush, eraser, flood fill and shape primitives that operate on a frame passed
in by the caller. Coordinates are logical (row, col); everything is clipped to
the matrix before it reaches the frame store.
"""

import math
from collections import deque
from typing import List, Tuple

from .frame import Frame, OFF, in_bounds, get_pixel, set_pixel

Point = Tuple[int, int]

TOOL_PEN = 'pen'
TOOL_ERASER = 'eraser'
TOOL_FILL = 'fill'
TOOL_LINE = 'line'
TOOL_RECTANGLE = 'rectangle'
TOOL_CIRCLE = 'circle'

SHAPE_TOOLS = (TOOL_LINE, TOOL_RECTANGLE, TOOL_CIRCLE)
TOOLS = (TOOL_PEN, TOOL_ERASER, TOOL_FILL) + SHAPE_TOOLS


def _plot(frame: Frame, row: int, col: int, color: str) -> None:
    if in_bounds(row, col):
        set_pixel(frame, row, col, color)


def draw_brush(frame: Frame, row: int, col: int, color: str, brush_size: int = 1) -> None:
    """
    Paint a square of side 2*(brush_size // 2) + 1 centred on (row, col).

    Covered pixels are overwritten unconditionally; the square is clipped to
    the grid.
    """
    radius = max(1, int(brush_size)) // 2
    for r in range(row - radius, row + radius + 1):
        for c in range(col - radius, col + radius + 1):
            _plot(frame, r, c, color)


def erase(frame: Frame, row: int, col: int, brush_size: int = 1) -> None:
    draw_brush(frame, row, col, OFF, brush_size)


def flood_fill(frame: Frame, row: int, col: int, color: str) -> int:
    """
    4-connected breadth-first fill from a seed pixel.

    Replaces every pixel reachable from the seed through pixels that share the
    seed's original colour.

    Args:
        frame: Frame to modify in place
        row: Seed row
        col: Seed column
        color: Replacement colour

    Returns:
        Number of pixels changed (0 when the seed already has the colour)
    """
    if not in_bounds(row, col):
        return 0
    target = get_pixel(frame, row, col)
    if target == color:
        return 0

    changed = 0
    queue = deque([(row, col)])
    while queue:
        r, c = queue.popleft()
        if not in_bounds(r, c) or get_pixel(frame, r, c) != target:
            continue
        # Overwriting marks the pixel as visited
        set_pixel(frame, r, c, color)
        changed += 1
        queue.extend(((r + 1, c), (r - 1, c), (r, c + 1), (r, c - 1)))
    return changed


def line_points(start: Point, end: Point) -> List[Point]:
    """
    Integer Bresenham line from start to end, both endpoints included.

    The cells are always walked from the smaller endpoint, so a line and its
    reverse cover the same cells. The returned list still runs start to end.
    """
    start, end = tuple(start), tuple(end)
    swapped = end < start
    if swapped:
        start, end = end, start
    r0, c0 = start
    r1, c1 = end
    dr = abs(r1 - r0)
    dc = abs(c1 - c0)
    sr = 1 if r0 < r1 else -1
    sc = 1 if c0 < c1 else -1
    err = dr - dc

    points = []
    while True:
        points.append((r0, c0))
        if r0 == r1 and c0 == c1:
            break
        e2 = 2 * err
        if e2 > -dc:
            err -= dc
            r0 += sr
        if e2 < dr:
            err += dr
            c0 += sc
    if swapped:
        points.reverse()
    return points


def draw_line(frame: Frame, start: Point, end: Point, color: str) -> None:
    for r, c in line_points(start, end):
        _plot(frame, r, c, color)


def draw_rectangle(frame: Frame, start: Point, end: Point, color: str, brush_size: int = 1) -> None:
    """
    Draw the rectangle spanned by two corners.

    With a brush size of 1 only the border is written; larger brushes fill
    the interior as well.
    """
    top, bottom = sorted((start[0], end[0]))
    left, right = sorted((start[1], end[1]))
    filled = brush_size > 1
    for r in range(top, bottom + 1):
        for c in range(left, right + 1):
            if filled or r in (top, bottom) or c in (left, right):
                _plot(frame, r, c, color)


def circle_radius(center: Point, edge: Point) -> int:
    return int(round(math.hypot(edge[0] - center[0], edge[1] - center[1])))


def circle_points(center: Point, radius: int) -> List[Point]:
    """
    Midpoint circle algorithm.

    Returns the unclipped outline; each step contributes its eight symmetric
    reflections, so points may repeat.
    """
    cr, cc = center
    x = radius
    y = 0
    decision = 1 - x
    points = []
    while y <= x:
        points.extend([
            (cr + y, cc + x),
            (cr + x, cc + y),
            (cr - y, cc + x),
            (cr - x, cc + y),
            (cr - y, cc - x),
            (cr - x, cc - y),
            (cr + y, cc - x),
            (cr + x, cc - y),
        ])
        y += 1
        if decision <= 0:
            decision += 2 * y + 1
        else:
            x -= 1
            decision += 2 * (y - x) + 1
    return points


def draw_circle(frame: Frame, center: Point, radius: int, color: str) -> None:
    for r, c in circle_points(center, radius):
        _plot(frame, r, c, color)


def draw_shape(frame: Frame, tool: str, start: Point, end: Point, color: str, brush_size: int = 1) -> None:
    """Render a line, rectangle or circle dragged from start to end."""
    if tool == TOOL_LINE:
        draw_line(frame, start, end, color)
    elif tool == TOOL_RECTANGLE:
        draw_rectangle(frame, start, end, color, brush_size)
    elif tool == TOOL_CIRCLE:
        draw_circle(frame, start, circle_radius(start, end), color)
    else:
        raise ValueError(f"Not a shape tool: {tool}")
