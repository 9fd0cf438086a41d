"""
Geometry primitives for the wiring engine.

This module contains no Qt dependencies. Points live on an integer grid
and are stored as hashable named tuples so they can key dicts and sets
directly (coincidence is plain tuple equality).
"""

import math
from typing import NamedTuple, Optional

# Default grid pitch in scene units
GRID_SIZE = 20


class Point(NamedTuple):
    """An (x, y) position on the integer grid."""

    x: int
    y: int

    def __repr__(self) -> str:
        return f"({self.x},{self.y})"


class Rect(NamedTuple):
    """Axis-aligned rectangle as (x, y, width, height)."""

    x: float
    y: float
    width: float
    height: float

    def intersects(self, other: "Rect") -> bool:
        """Strict overlap test; rectangles that only share an edge do not intersect."""
        return (
            self.x < other.x + other.width
            and self.x + self.width > other.x
            and self.y < other.y + other.height
            and self.y + self.height > other.y
        )


def snap_to_grid(value: float, grid_size: int = GRID_SIZE) -> int:
    """Snap a scalar to the nearest multiple of grid_size (halves round up)."""
    return int(math.floor(value / grid_size + 0.5)) * grid_size


def snap_point(x: float, y: float, grid_size: int = GRID_SIZE) -> Point:
    """Snap raw coordinates to a canonical grid Point."""
    return Point(snap_to_grid(x, grid_size), snap_to_grid(y, grid_size))


def to_point(value) -> Point:
    """
    Coerce a Point, (x, y) tuple or {"x": .., "y": ..} dict to a Point.

    Values are rounded to integers but not snapped to the grid.
    """
    if isinstance(value, Point):
        return value
    if isinstance(value, dict):
        return Point(int(round(value["x"])), int(round(value["y"])))
    x, y = value
    return Point(int(round(x)), int(round(y)))


def is_axis_aligned(p1: Point, p2: Point) -> bool:
    """True if the segment p1-p2 is horizontal or vertical (or zero-length)."""
    return p1.x == p2.x or p1.y == p2.y


def is_horizontal(p1: Point, p2: Point) -> bool:
    return p1.y == p2.y and p1.x != p2.x


def is_vertical(p1: Point, p2: Point) -> bool:
    return p1.x == p2.x and p1.y != p2.y


def is_collinear(prev: Point, curr: Point, nxt: Point) -> bool:
    """True if the three points share a vertical or a horizontal line."""
    return (prev.x == curr.x == nxt.x) or (prev.y == curr.y == nxt.y)


def point_on_segment(p: Point, a: Point, b: Point) -> bool:
    """True if p lies on the closed axis-aligned segment a-b."""
    if a.y == b.y and p.y == a.y:
        return min(a.x, b.x) <= p.x <= max(a.x, b.x)
    if a.x == b.x and p.x == a.x:
        return min(a.y, b.y) <= p.y <= max(a.y, b.y)
    return False


def point_strictly_inside_segment(p: Point, a: Point, b: Point) -> bool:
    """True if p lies on segment a-b but is neither of its endpoints."""
    return p != a and p != b and point_on_segment(p, a, b)


def segment_intersection(a1: Point, a2: Point, b1: Point, b2: Point) -> Optional[Point]:
    """
    Find the single point where a horizontal and a vertical segment meet.

    Only perpendicular pairs are considered; parallel, collinear and
    zero-length segments return None.

    Returns:
        The crossing/touching Point, or None if the segments do not meet.
    """
    if is_horizontal(a1, a2) and is_vertical(b1, b2):
        h1, h2, v1, v2 = a1, a2, b1, b2
    elif is_vertical(a1, a2) and is_horizontal(b1, b2):
        h1, h2, v1, v2 = b1, b2, a1, a2
    else:
        return None

    if min(h1.x, h2.x) <= v1.x <= max(h1.x, h2.x) and min(v1.y, v2.y) <= h1.y <= max(v1.y, v2.y):
        return Point(v1.x, h1.y)
    return None


def distance_to_segment(px: float, py: float, a: Point, b: Point) -> tuple[float, tuple[float, float]]:
    """
    Perpendicular distance from (px, py) to segment a-b.

    Returns:
        (distance, (proj_x, proj_y)) where proj is the closest point on the segment.
    """
    dx = b.x - a.x
    dy = b.y - a.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        proj_x, proj_y = float(a.x), float(a.y)
    else:
        t = ((px - a.x) * dx + (py - a.y) * dy) / length_sq
        t = max(0.0, min(1.0, t))
        proj_x = a.x + t * dx
        proj_y = a.y + t * dy
    dist = ((px - proj_x) ** 2 + (py - proj_y) ** 2) ** 0.5
    return dist, (proj_x, proj_y)


def segment_bounding_rect(a: Point, b: Point, padding: float = 0) -> Rect:
    """Bounding rectangle of a segment, inflated by padding on every side."""
    return Rect(
        min(a.x, b.x) - padding,
        min(a.y, b.y) - padding,
        abs(a.x - b.x) + padding * 2,
        abs(a.y - b.y) + padding * 2,
    )


def rotate_offset(dx: int, dy: int, rotation: int) -> tuple[int, int]:
    """
    Rotate a local offset by a multiple of 90 degrees.

    Uses exact integer arithmetic so rotated offsets stay on the grid
    (the y axis points down, matching scene coordinates).
    """
    rotation %= 360
    if rotation == 0:
        return dx, dy
    if rotation == 90:
        return -dy, dx
    if rotation == 180:
        return -dx, -dy
    if rotation == 270:
        return dy, -dx
    raise ValueError(f"Rotation must be a multiple of 90 degrees, got {rotation}")
