"""
path_finding.py

Two-segment orthogonal routing for grid-aligned wires.

A diagonal request is turned into an L-shaped path: either horizontal
then vertical, or vertical then horizontal. The bend is chosen from the
drag direction, component collisions and segment lengths.
"""

import logging
import math
from enum import Enum
from typing import Iterable, Optional

from models.component import ComponentData
from models.geometry import GRID_SIZE, Point, segment_bounding_rect, to_point

logger = logging.getLogger(__name__)

# Padding added around each wire segment for collision tests
ROUTE_PADDING = 5

# Drag-direction tracking thresholds
AXIS_LOCK_THRESHOLD = 10
AXIS_RESET_RADIUS_FACTOR = 1.5


class Axis(Enum):
    """Axis traversed first by a routed wire."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    NONE = "none"


def is_path_colliding(path: list[Point], obstacles: Iterable[ComponentData], ignore_ids=(),
                      grid_size: int = GRID_SIZE, padding: float = ROUTE_PADDING) -> bool:
    """
    Check whether any segment of a path overlaps a component footprint.

    Args:
        path: Ordered path points.
        obstacles: Components whose footprints block the path.
        ignore_ids: Component ids to skip (e.g. the components being connected).
        grid_size: Grid pitch used to size footprints.
        padding: Inflation applied to every segment's bounding box.
    """
    footprints = [c.footprint(grid_size) for c in obstacles if c.component_id not in ignore_ids]
    for a, b in zip(path, path[1:]):
        segment_rect = segment_bounding_rect(a, b, padding)
        for rect in footprints:
            if segment_rect.intersects(rect):
                return True
    return False


def route(start, end, preferred_axis: Axis = Axis.NONE, obstacles: Iterable[ComponentData] = (),
          ignore_ids=(), grid_size: int = GRID_SIZE) -> list[Point]:
    """
    Route an orthogonal path from start to end.

    Args:
        start: Path start (already on the grid).
        end: Path end (already on the grid).
        preferred_axis: Axis to traverse first if that path is clear.
        obstacles: Components to avoid.
        ignore_ids: Component ids excluded from collision tests.
        grid_size: Grid pitch used to size footprints.

    Returns:
        [start, end] when already aligned, otherwise [start, bend, end].
    """
    start = to_point(start)
    end = to_point(end)
    if start.x == end.x or start.y == end.y:
        return [start, end]

    obstacles = list(obstacles)
    horizontal_first = [start, Point(end.x, start.y), end]
    vertical_first = [start, Point(start.x, end.y), end]
    h_blocked = is_path_colliding(horizontal_first, obstacles, ignore_ids, grid_size)
    v_blocked = is_path_colliding(vertical_first, obstacles, ignore_ids, grid_size)

    if preferred_axis == Axis.HORIZONTAL:
        if not h_blocked:
            return horizontal_first
        if not v_blocked:
            return vertical_first
    elif preferred_axis == Axis.VERTICAL:
        if not v_blocked:
            return vertical_first
        if not h_blocked:
            return horizontal_first
    elif h_blocked != v_blocked:
        return vertical_first if h_blocked else horizontal_first

    if h_blocked and v_blocked:
        logger.debug("Both bends from %s to %s collide; using the shorter-axis-first path", start, end)

    # Traverse the shorter displacement first; ties go vertical-first
    if abs(end.x - start.x) < abs(end.y - start.y):
        return horizontal_first
    return vertical_first


class AxisTracker:
    """
    Derives the preferred routing axis from a pointer drag.

    The axis stays undetermined while the pointer is within the reset
    radius of the anchor, locks to the dominant displacement axis once
    the pointer moves past the lock threshold, and unlocks again when the
    pointer returns inside the reset radius.
    """

    def __init__(self, grid_size: int = GRID_SIZE, lock_threshold: float = AXIS_LOCK_THRESHOLD):
        self.reset_radius = grid_size * AXIS_RESET_RADIUS_FACTOR
        self.lock_threshold = lock_threshold
        self.anchor: Optional[Point] = None
        self.axis = Axis.NONE

    def start(self, anchor) -> None:
        """Begin tracking from a new anchor (e.g. the last point of the wire)."""
        self.anchor = to_point(anchor)
        self.axis = Axis.NONE

    def update(self, x: float, y: float) -> Axis:
        """Feed the current pointer position; returns the current axis."""
        if self.anchor is None:
            return self.axis
        dx = abs(x - self.anchor.x)
        dy = abs(y - self.anchor.y)
        dist = math.hypot(dx, dy)
        if dist < self.reset_radius:
            self.axis = Axis.NONE
        elif self.axis == Axis.NONE and dist > self.lock_threshold:
            self.axis = Axis.HORIZONTAL if dx > dy else Axis.VERTICAL
        return self.axis

    def reset(self) -> None:
        self.anchor = None
        self.axis = Axis.NONE
