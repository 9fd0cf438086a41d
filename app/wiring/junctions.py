"""
junctions.py

Normalization pass run before every redraw or export.

The pass re-snaps pinned points, inserts points where terminals or other
wires cross a segment, drops redundant collinear points and reports the
coordinates that need a junction dot. Running it twice gives the same
model as running it once.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from models.circuit import CircuitModel
from models.geometry import Point, is_collinear, point_strictly_inside_segment, segment_intersection
from models.wire import TerminalRef

logger = logging.getLogger(__name__)


@dataclass
class NormalizationResult:
    """Summary of one normalization pass."""

    junction_dots: list[Point] = field(default_factory=list)
    reattached_points: int = 0
    inserted_terminal_points: int = 0
    inserted_junctions: int = 0
    removed_points: int = 0

    @property
    def changed(self) -> bool:
        return bool(
            self.reattached_points or self.inserted_terminal_points or self.inserted_junctions or self.removed_points
        )


def normalize(model: CircuitModel) -> NormalizationResult:
    """
    Normalize every wire of the model in place.

    Args:
        model: The circuit to normalize.

    Returns:
        NormalizationResult with the junction dots and change counts.
    """
    result = NormalizationResult()
    result.reattached_points = model.reattach_pinned_points()
    _log_dangling_pins(model)
    result.inserted_terminal_points = _insert_pass_through_terminals(model)
    result.inserted_junctions = _insert_intersections(model)
    result.removed_points = _simplify(model)
    result.junction_dots = find_junction_dots(model)

    logger.debug(
        "Normalized %d wires: %d re-snapped, %d terminal points, %d junctions inserted, %d points removed",
        len(model.wires),
        result.reattached_points,
        result.inserted_terminal_points,
        result.inserted_junctions,
        result.removed_points,
    )
    return result


def _log_dangling_pins(model: CircuitModel) -> None:
    for wire in model.wires.values():
        for point in model.wire_points(wire):
            ref = point.terminal_ref
            if ref is not None and ref.component_id not in model.components:
                logger.warning(
                    "Wire %s point %s is pinned to missing component %s",
                    wire.wire_id,
                    point.position,
                    ref.component_id,
                )


def _insert_on_wire(model: CircuitModel, wire_id: str, position: Point, terminal_ref=None,
                    is_junction: bool = False) -> bool:
    """Insert a point into whichever segment of the wire strictly contains it."""
    positions = model.wire_positions(wire_id)
    for i, (a, b) in enumerate(zip(positions, positions[1:])):
        if point_strictly_inside_segment(position, a, b):
            model.insert_point(wire_id, i + 1, position, terminal_ref, is_junction)
            return True
    return False


def _insert_pass_through_terminals(model: CircuitModel) -> int:
    """Pin a new point wherever a terminal sits strictly inside a wire segment."""
    terminals = list(model.iter_terminals())
    pending: dict[tuple[str, Point], TerminalRef] = {}
    for wire_id, wire in model.wires.items():
        positions = model.wire_positions(wire)
        on_wire = set(positions)
        for ref, position in terminals:
            if position in on_wire or (wire_id, position) in pending:
                continue
            for a, b in zip(positions, positions[1:]):
                if point_strictly_inside_segment(position, a, b):
                    pending[(wire_id, position)] = ref
                    break

    inserted = 0
    for (wire_id, position), ref in pending.items():
        if _insert_on_wire(model, wire_id, position, terminal_ref=ref):
            inserted += 1
    return inserted


def _insert_intersections(model: CircuitModel) -> int:
    """Join perpendicular segments of different wires where they cross or touch."""
    snapshot = {wire_id: model.wire_positions(wire) for wire_id, wire in model.wires.items()}
    wire_ids = list(snapshot)
    crossings: set[tuple[str, Point]] = set()

    for i, first_id in enumerate(wire_ids):
        first = snapshot[first_id]
        for second_id in wire_ids[i + 1:]:
            second = snapshot[second_id]
            for a1, a2 in zip(first, first[1:]):
                for b1, b2 in zip(second, second[1:]):
                    hit = segment_intersection(a1, a2, b1, b2)
                    if hit is not None:
                        crossings.add((first_id, hit))
                        crossings.add((second_id, hit))

    inserted = 0
    # Sorted so the insertion order never depends on set iteration
    for wire_id, position in sorted(crossings):
        if position in snapshot[wire_id]:
            for point in model.wire_points(wire_id):
                if point.position == position:
                    model.mark_junction(point.point_id)
        elif _insert_on_wire(model, wire_id, position, is_junction=True):
            inserted += 1
    return inserted


def _coordinate_usage(model: CircuitModel) -> dict[Point, set[str]]:
    usage: dict[Point, set[str]] = defaultdict(set)
    for wire_id, wire in model.wires.items():
        for position in model.wire_positions(wire):
            usage[position].add(wire_id)
    return usage


def protected_coordinates(model: CircuitModel) -> set[Point]:
    """Coordinates touched by two or more wires, or terminals touched by any wire."""
    usage = _coordinate_usage(model)
    protected = {position for position, wires in usage.items() if len(wires) >= 2}
    protected.update(position for _, position in model.iter_terminals() if usage.get(position))
    return protected


def _simplify(model: CircuitModel) -> int:
    """
    Drop interior points that carry no meaning.

    A point goes when it repeats the previous kept point or sits on a straight
    line between its kept neighbours. The walk re-checks the last kept point
    after every drop, so backtracks collapse in one pass.
    """
    protected = protected_coordinates(model)

    def removable(point) -> bool:
        return not (point.is_pinned or point.is_junction or point.position in protected)

    removed = 0
    for wire in model.wires.values():
        points = model.wire_points(wire)
        if len(points) <= 2:
            continue
        kept = [points[0]]
        for point in points[1:]:
            while len(kept) >= 2 and removable(kept[-1]) and (
                    kept[-1].position == point.position
                    or is_collinear(kept[-2].position, kept[-1].position, point.position)):
                kept.pop()
            if point is not points[-1] and removable(point) and point.position == kept[-1].position:
                continue
            kept.append(point)

        if len(kept) == len(points):
            continue
        kept_ids = {p.point_id for p in kept}
        for index in reversed(range(len(points))):
            if points[index].point_id not in kept_ids:
                model.remove_point(wire.wire_id, index)
        removed += len(points) - len(kept)
    return removed


def find_junction_dots(model: CircuitModel) -> list[Point]:
    """
    Coordinates that get a junction dot.

    A dot marks a coordinate touched by two or more distinct wires, or a
    terminal touched by at least one wire.
    """
    usage = _coordinate_usage(model)
    dots = [position for position, wires in usage.items() if len(wires) >= 2]
    seen = set(dots)
    for _, position in model.iter_terminals():
        if position not in seen and usage.get(position):
            dots.append(position)
            seen.add(position)
    return dots
