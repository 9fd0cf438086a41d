"""
snapping.py

Snap queries for the interactive wire editor.

Given a raw pointer position, pick the most meaningful nearby target:
a terminal, then an existing junction, then a wire segment, and finally
the plain grid.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from models.circuit import CircuitModel
from models.geometry import Point, distance_to_segment, snap_point
from models.wire import TerminalRef

from .junctions import find_junction_dots

# Pointer distance (scene units) within which a target captures the pointer
DEFAULT_SNAP_RADIUS = 10


class SnapKind(Enum):
    TERMINAL = "terminal"
    JUNCTION = "junction"
    WIRE_SEGMENT = "wireSegment"
    GRID = "grid"


@dataclass
class SnapCandidate:
    """Where a pointer position snaps to, and what it snapped onto."""

    point: Point
    kind: SnapKind
    terminal_ref: Optional[TerminalRef] = None
    wire_id: Optional[str] = None
    segment_index: Optional[int] = None

    @property
    def snapped(self) -> bool:
        return self.kind != SnapKind.GRID


def find_nearest_terminal(model: CircuitModel, x: float, y: float, radius: float):
    """Nearest terminal strictly within radius, as (TerminalRef, Point) or None."""
    nearest = None
    best_sq = radius * radius
    for ref, position in model.iter_terminals():
        dist_sq = (x - position.x) ** 2 + (y - position.y) ** 2
        if dist_sq < best_sq:
            best_sq = dist_sq
            nearest = (ref, position)
    return nearest


def find_nearest_junction(model: CircuitModel, x: float, y: float, radius: float) -> Optional[Point]:
    """Nearest junction dot strictly within radius."""
    nearest = None
    best_sq = radius * radius
    for position in find_junction_dots(model):
        dist_sq = (x - position.x) ** 2 + (y - position.y) ** 2
        if dist_sq < best_sq:
            best_sq = dist_sq
            nearest = position
    return nearest


def get_snap_candidate(model: CircuitModel, x: float, y: float,
                       radius: float = DEFAULT_SNAP_RADIUS) -> SnapCandidate:
    """
    Resolve a raw pointer position to a snap target.

    Args:
        model: Circuit to query.
        x, y: Raw pointer coordinates.
        radius: Capture radius for terminals, junctions and wires.

    Returns:
        SnapCandidate; kind GRID when nothing is within radius.
    """
    terminal = find_nearest_terminal(model, x, y, radius)
    if terminal is not None:
        ref, position = terminal
        return SnapCandidate(position, SnapKind.TERMINAL, terminal_ref=ref)

    junction = find_nearest_junction(model, x, y, radius)
    if junction is not None:
        return SnapCandidate(junction, SnapKind.JUNCTION)

    hit = model.find_point_on_any_wire((x, y), radius)
    if hit is not None:
        wire_id, segment_index = hit
        positions = model.wire_positions(wire_id)
        _, (proj_x, proj_y) = distance_to_segment(x, y, positions[segment_index], positions[segment_index + 1])
        point = snap_point(proj_x, proj_y, model.grid_size)
        return SnapCandidate(point, SnapKind.WIRE_SEGMENT, wire_id=wire_id, segment_index=segment_index)

    return SnapCandidate(snap_point(x, y, model.grid_size), SnapKind.GRID)
