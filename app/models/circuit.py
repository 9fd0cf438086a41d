"""
CircuitModel - Central data store for circuit state.

This module contains no Qt dependencies. It holds all circuit data
(components, wires and the wire point arena) and implements the wire
mutation operations while keeping the wire invariants:

* every wire has at least two points;
* consecutive points share an x or a y coordinate;
* a pinned point always sits on its terminal's live position.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Sequence

from .component import ComponentData
from .geometry import (
    GRID_SIZE,
    Point,
    distance_to_segment,
    is_axis_aligned,
    point_on_segment,
    snap_point,
    to_point,
)
from .wire import InvalidWireError, TerminalRef, WireData, WirePoint


class MissingComponentError(KeyError):
    """Raised when a component id (or a terminal reference) does not exist."""


class MissingWireError(KeyError):
    """Raised when a wire id does not exist."""


@dataclass
class CircuitModel:
    """
    Central data store holding all circuit state.

    Wires reference their points by id; the points themselves live in
    the `points` arena. `revision` increases on every mutation that
    changes the drawing, so callers can detect edits made while they
    were waiting on something else.
    """

    components: dict[str, ComponentData] = field(default_factory=dict)
    wires: dict[str, WireData] = field(default_factory=dict)
    points: dict[int, WirePoint] = field(default_factory=dict)
    component_counter: dict[str, int] = field(default_factory=dict)
    grid_size: int = GRID_SIZE

    # Analysis configuration
    analysis_type: str = "DC Operating Point"
    analysis_params: dict = field(default_factory=dict)

    revision: int = 0
    _next_point_id: int = field(default=1, repr=False)
    _next_wire_id: int = field(default=1, repr=False)

    def _touch(self) -> None:
        self.revision += 1

    # --- Lookups ---

    def get_component(self, component_id: str) -> Optional[ComponentData]:
        return self.components.get(component_id)

    def require_component(self, component_id: str) -> ComponentData:
        component = self.components.get(component_id)
        if component is None:
            raise MissingComponentError(component_id)
        return component

    def get_wire(self, wire_id: str) -> Optional[WireData]:
        return self.wires.get(wire_id)

    def require_wire(self, wire_id: str) -> WireData:
        wire = self.wires.get(wire_id)
        if wire is None:
            raise MissingWireError(wire_id)
        return wire

    def wire_points(self, wire: WireData | str) -> list[WirePoint]:
        """Return the WirePoint objects of a wire, in order."""
        if isinstance(wire, str):
            wire = self.require_wire(wire)
        return [self.points[pid] for pid in wire.point_ids]

    def wire_positions(self, wire: WireData | str) -> list[Point]:
        """Return the coordinates of a wire's points, in order."""
        return [p.position for p in self.wire_points(wire)]

    def terminal_position(self, ref: TerminalRef) -> Point:
        """
        Live position of a referenced terminal.

        Raises:
            MissingComponentError: If the owning component no longer exists.
            KeyError: If the component has no such terminal.
        """
        component = self.require_component(ref.component_id)
        return component.get_terminal_position(ref.terminal_id, self.grid_size)

    def iter_terminals(self) -> Iterator[tuple[TerminalRef, Point]]:
        """Yield every terminal with its live position (components in insertion order)."""
        for component in self.components.values():
            for terminal_id, position in component.get_terminal_positions(self.grid_size).items():
                yield TerminalRef(component.component_id, terminal_id), position

    def wires_connected_to_terminal(self, ref: TerminalRef) -> list[WireData]:
        """Wires holding at least one point pinned to the given terminal."""
        return [
            wire
            for wire in self.wires.values()
            if any(self.points[pid].terminal_ref == ref for pid in wire.point_ids)
        ]

    # --- Component operations ---

    def add_component(self, component: ComponentData) -> None:
        """Add a component to the circuit."""
        self.components[component.component_id] = component
        self._touch()

    def remove_component(self, component_id: str) -> bool:
        """
        Remove a component.

        Wire points pinned to it are unpinned; the drawn wires stay.
        Returns False if the id is unknown.
        """
        if component_id not in self.components:
            return False
        del self.components[component_id]
        for point in self.points.values():
            if point.terminal_ref is not None and point.terminal_ref.component_id == component_id:
                point.terminal_ref = None
        self._touch()
        return True

    def move_component(self, component_id: str, position) -> bool:
        """Move a component; pinned wire points follow. Returns False if unknown."""
        component = self.components.get(component_id)
        if component is None:
            return False
        target = to_point(position)
        new_position = snap_point(target.x, target.y, self.grid_size)
        if new_position == component.position:
            return True
        component.position = new_position
        self.reattach_pinned_points(component_id)
        self._touch()
        return True

    def rotate_component(self, component_id: str, delta: int = 90) -> bool:
        """
        Rotate a component by a multiple of 90 degrees.

        Returns False if the component is unknown or the delta is not a
        multiple of 90.
        """
        component = self.components.get(component_id)
        if component is None:
            return False
        if delta % 90 != 0:
            return False
        if delta % 360 == 0:
            return True
        component.rotation = (component.rotation + delta) % 360
        self.reattach_pinned_points(component_id)
        self._touch()
        return True

    def set_component_value(self, component_id: str, value: str) -> bool:
        """Change a component's value. Returns False if the id is unknown."""
        component = self.components.get(component_id)
        if component is None:
            return False
        if component.value != value:
            component.value = value
            self._touch()
        return True

    def reattach_pinned_points(self, component_id: Optional[str] = None) -> int:
        """
        Re-snap pinned wire points onto their terminals' live positions.

        When a pinned point moves, each neighbouring segment that is no
        longer axis-aligned gets one elbow point; the elbow keeps the
        neighbour segment on its original axis. Points pinned to a
        component that no longer exists are left where they are.

        Args:
            component_id: Only handle points pinned to this component
                          (all pinned points if None).

        Returns:
            Number of pinned points that moved.
        """
        moved = 0
        for wire in self.wires.values():
            index = 0
            while index < len(wire.point_ids):
                point = self.points[wire.point_ids[index]]
                ref = point.terminal_ref
                if ref is None or (component_id is not None and ref.component_id != component_id):
                    index += 1
                    continue
                component = self.components.get(ref.component_id)
                if component is None or not component.has_terminal(ref.terminal_id):
                    index += 1
                    continue
                target = component.get_terminal_position(ref.terminal_id, self.grid_size)
                if point.position == target:
                    index += 1
                    continue

                old_position = point.position
                point.move_to(target)
                moved += 1

                # Successor side first so the current index stays valid
                if index + 1 < len(wire.point_ids):
                    neighbour = self.points[wire.point_ids[index + 1]].position
                    if not is_axis_aligned(target, neighbour):
                        elbow = _elbow_point(target, neighbour, old_position)
                        wire.point_ids.insert(index + 1, self._new_point(elbow).point_id)
                if index > 0:
                    neighbour = self.points[wire.point_ids[index - 1]].position
                    if not is_axis_aligned(neighbour, target):
                        elbow = _elbow_point(target, neighbour, old_position)
                        wire.point_ids.insert(index, self._new_point(elbow).point_id)
                        index += 1
                index += 1
        if moved:
            self._touch()
        return moved

    # --- Wire operations ---

    def _new_point(self, position: Point, terminal_ref: Optional[TerminalRef] = None,
                   is_junction: bool = False) -> WirePoint:
        point = WirePoint(self._next_point_id, position.x, position.y, terminal_ref, is_junction)
        self.points[point.point_id] = point
        self._next_point_id += 1
        return point

    def _new_wire_id(self) -> str:
        while f"w{self._next_wire_id}" in self.wires:
            self._next_wire_id += 1
        wire_id = f"w{self._next_wire_id}"
        self._next_wire_id += 1
        return wire_id

    def add_wire(self, points: Iterable, terminal_refs: Optional[Sequence[Optional[TerminalRef]]] = None,
                 wire_id: Optional[str] = None) -> WireData:
        """
        Create a wire from a list of points.

        Coordinates are snapped to the grid; pinned points are placed on
        their terminal's live position; consecutive duplicates collapse.

        Args:
            points: Sequence of Point / (x, y) / {"x", "y"} values.
            terminal_refs: Optional per-point TerminalRef (or None), aligned with points.
            wire_id: Explicit id (used when loading); a fresh one is assigned otherwise.

        Raises:
            InvalidWireError: Fewer than two distinct points, or a diagonal segment.
            MissingComponentError: A terminal_ref names an unknown component.
        """
        raw = [to_point(p) for p in points]
        refs = list(terminal_refs) if terminal_refs is not None else [None] * len(raw)
        if len(refs) != len(raw):
            raise InvalidWireError("terminal_refs must align with points")

        resolved: list[tuple[Point, Optional[TerminalRef]]] = []
        for position, ref in zip(raw, refs):
            if ref is not None:
                ref = TerminalRef(*ref)
                position = self.terminal_position(ref)
            else:
                position = snap_point(position.x, position.y, self.grid_size)
            if resolved and resolved[-1][0] == position:
                if resolved[-1][1] is None and ref is not None:
                    resolved[-1] = (position, ref)
                continue
            resolved.append((position, ref))

        if len(resolved) < 2:
            raise InvalidWireError(f"A wire needs at least 2 distinct points, got {len(resolved)}")
        for (a, _), (b, _) in zip(resolved, resolved[1:]):
            if not is_axis_aligned(a, b):
                raise InvalidWireError(f"Segment {a}-{b} is not horizontal or vertical")
        if wire_id is not None and wire_id in self.wires:
            raise InvalidWireError(f"Wire id {wire_id!r} already exists")

        wire = WireData(wire_id or self._new_wire_id())
        for position, ref in resolved:
            wire.point_ids.append(self._new_point(position, ref).point_id)
        self.wires[wire.wire_id] = wire
        self._touch()
        return wire

    def extend_wire(self, wire_id: str, new_point, terminal_ref: Optional[TerminalRef] = None,
                    preferred_axis=None, obstacles: Optional[Iterable[ComponentData]] = None) -> Optional[WireData]:
        """
        Append a point to a wire, inserting one bend if the new segment would be diagonal.

        Args:
            wire_id: Wire to extend.
            new_point: Point to append (snapped to grid, or the terminal position if pinned).
            terminal_ref: Pin the new point to this terminal.
            preferred_axis: Axis to traverse first when a bend is needed.
            obstacles: Components to route around (all components by default).

        Returns:
            The extended wire, or None if the wire does not exist.
        """
        from wiring.path_finding import Axis, route

        wire = self.wires.get(wire_id)
        if wire is None:
            return None

        if terminal_ref is not None:
            terminal_ref = TerminalRef(*terminal_ref)
            end = self.terminal_position(terminal_ref)
        else:
            target = to_point(new_point)
            end = snap_point(target.x, target.y, self.grid_size)

        last = self.points[wire.point_ids[-1]]
        if last.position == end:
            if terminal_ref is not None and last.terminal_ref is None:
                last.terminal_ref = terminal_ref
                self._touch()
            return wire

        ignore_ids = set()
        if last.terminal_ref is not None:
            ignore_ids.add(last.terminal_ref.component_id)
        if terminal_ref is not None:
            ignore_ids.add(terminal_ref.component_id)
        if obstacles is None:
            obstacles = self.components.values()

        path = route(last.position, end, preferred_axis or Axis.NONE, obstacles, ignore_ids, self.grid_size)
        for bend in path[1:-1]:
            wire.point_ids.append(self._new_point(bend).point_id)
        wire.point_ids.append(self._new_point(end, terminal_ref).point_id)
        self._touch()
        return wire

    def split_wire(self, wire_id: str, at_point, segment_index: int) -> Optional[tuple[WireData, WireData]]:
        """
        Cut a wire in two at a point on one of its segments.

        The first half keeps the original id. The split point is present
        in both halves and marked as a junction.

        Returns:
            (first_half, second_half), or None if the wire is unknown, the
            segment index is out of range, the point is not on the segment,
            or the point is the wire's own first or last point.
        """
        wire = self.wires.get(wire_id)
        if wire is None or not (0 <= segment_index < wire.segment_count):
            return None

        target = to_point(at_point)
        at = snap_point(target.x, target.y, self.grid_size)
        a = self.points[wire.point_ids[segment_index]].position
        b = self.points[wire.point_ids[segment_index + 1]].position
        if not point_on_segment(at, a, b):
            return None

        if at == a:
            cut = segment_index
        elif at == b:
            cut = segment_index + 1
        else:
            cut = None
        last_index = len(wire.point_ids) - 1
        if cut in (0, last_index):
            return None

        if cut is None:
            cut = segment_index + 1
            wire.point_ids.insert(cut, self._new_point(at).point_id)

        split = self.points[wire.point_ids[cut]]
        split.is_junction = True
        twin = self._new_point(split.position, split.terminal_ref, is_junction=True)

        second = WireData(self._new_wire_id(), [twin.point_id] + wire.point_ids[cut + 1:])
        wire.point_ids = wire.point_ids[:cut + 1]
        self.wires[second.wire_id] = second
        self._touch()
        return wire, second

    def remove_wire(self, wire_id: str) -> bool:
        """Remove a wire and its points. Returns False if unknown."""
        wire = self.wires.pop(wire_id, None)
        if wire is None:
            return False
        for pid in wire.point_ids:
            self.points.pop(pid, None)
        self._touch()
        return True

    def insert_point(self, wire_id: str, index: int, position: Point,
                     terminal_ref: Optional[TerminalRef] = None, is_junction: bool = False) -> WirePoint:
        """
        Insert a point at `index` in a wire's point list.

        The caller guarantees the point lies on the segment it splits.
        """
        wire = self.require_wire(wire_id)
        point = self._new_point(position, terminal_ref, is_junction)
        wire.point_ids.insert(index, point.point_id)
        self._touch()
        return point

    def remove_point(self, wire_id: str, index: int) -> None:
        """Remove the point at `index` from a wire (the wire must keep 2 points)."""
        wire = self.require_wire(wire_id)
        if len(wire.point_ids) <= 2:
            raise InvalidWireError(f"Cannot remove a point from 2-point wire {wire_id}")
        pid = wire.point_ids.pop(index)
        self.points.pop(pid, None)
        self._touch()

    def mark_junction(self, point_id: int) -> bool:
        """Flag a point as a junction. Returns True if the flag changed."""
        point = self.points[point_id]
        if point.is_junction:
            return False
        point.is_junction = True
        self._touch()
        return True

    def find_point_on_any_wire(self, point, tolerance: float) -> Optional[tuple[str, int]]:
        """
        Find the wire segment nearest to a point.

        Args:
            point: (x, y) query position (not snapped).
            tolerance: Only segments strictly closer than this are considered.

        Returns:
            (wire_id, segment_index) of the nearest segment, or None.
        """
        if isinstance(point, dict):
            px, py = float(point["x"]), float(point["y"])
        else:
            px, py = float(point[0]), float(point[1])

        nearest = None
        best = tolerance
        for wire in self.wires.values():
            positions = self.wire_positions(wire)
            for i, (a, b) in enumerate(zip(positions, positions[1:])):
                # Bounding-box pre-filter
                if (max(a.x, b.x) < px - tolerance or min(a.x, b.x) > px + tolerance
                        or max(a.y, b.y) < py - tolerance or min(a.y, b.y) > py + tolerance):
                    continue
                if a == b:
                    continue
                dist, _ = distance_to_segment(px, py, a, b)
                if dist < best:
                    best = dist
                    nearest = (wire.wire_id, i)
        return nearest

    # --- Circuit operations ---

    def clear(self) -> None:
        """Clear all circuit data."""
        self.components.clear()
        self.wires.clear()
        self.points.clear()
        self.component_counter.clear()
        self.analysis_type = "DC Operating Point"
        self.analysis_params = {}
        self._touch()

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize circuit to a JSON-compatible dictionary."""
        data = {
            "components": [c.to_dict() for c in self.components.values()],
            "wires": [
                {"id": wire.wire_id, "points": [p.to_dict() for p in self.wire_points(wire)]}
                for wire in self.wires.values()
            ],
            "counters": self.component_counter.copy(),
        }
        if self.analysis_type != "DC Operating Point" or self.analysis_params:
            data["analysis_type"] = self.analysis_type
            data["analysis_params"] = self.analysis_params.copy()
        if self.grid_size != GRID_SIZE:
            data["grid_size"] = self.grid_size
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CircuitModel":
        """
        Deserialize circuit from dictionary.

        Wire points are loaded as stored (pinned points are re-snapped by
        the next normalization pass, not here).
        """
        model = cls(grid_size=int(data.get("grid_size", GRID_SIZE)))
        model.component_counter = data.get("counters", {}).copy()
        model.analysis_type = data.get("analysis_type", "DC Operating Point")
        model.analysis_params = data.get("analysis_params", {}).copy()

        for comp_data in data.get("components", []):
            component = ComponentData.from_dict(comp_data)
            model.components[component.component_id] = component

        for wire_data in data.get("wires", []):
            point_dicts = wire_data.get("points", [])
            if len(point_dicts) < 2:
                raise InvalidWireError(f"Wire {wire_data.get('id')!r} has fewer than 2 points")
            wire = WireData(wire_data.get("id") or model._new_wire_id())
            for pd in point_dicts:
                ref = None
                if pd.get("terminal"):
                    ref = TerminalRef(pd["terminal"]["componentId"], pd["terminal"]["terminalId"])
                point = model._new_point(to_point(pd), ref, bool(pd.get("junction", False)))
                wire.point_ids.append(point.point_id)
            positions = model.wire_positions(wire)
            for a, b in zip(positions, positions[1:]):
                if not is_axis_aligned(a, b):
                    raise InvalidWireError(f"Wire {wire.wire_id!r} has a diagonal segment {a}-{b}")
            model.wires[wire.wire_id] = wire

        model.revision = 0
        return model


def _elbow_point(moved: Point, neighbour: Point, old_position: Point) -> Point:
    """
    Elbow between a moved pinned point and its neighbour.

    The neighbour's segment keeps the axis it had before the move
    (horizontal if it was degenerate).
    """
    if old_position.x == neighbour.x and old_position.y != neighbour.y:
        return Point(neighbour.x, moved.y)
    return Point(moved.x, neighbour.y)
