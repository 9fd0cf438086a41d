"""
CircuitController - Orchestrates component and wire operations.

This module contains no Qt dependencies. It manages the CircuitModel
and notifies views of changes through an observer pattern.
"""

import logging
from typing import Any, Callable, Optional

from models.circuit import CircuitModel
from models.component import SPICE_SYMBOLS, ComponentData, create_component
from models.geometry import Point
from models.wire import TerminalRef, WireData
from wiring.junctions import NormalizationResult, normalize
from wiring.path_finding import Axis, route
from wiring.snapping import DEFAULT_SNAP_RADIUS, SnapCandidate, get_snap_candidate

logger = logging.getLogger(__name__)


class CircuitController:
    """
    Controller for circuit component and wire operations.

    Manages the CircuitModel and notifies registered observers when
    the model changes. Views register callbacks to stay in sync.

    Observer events:
        component_added (ComponentData) - A new component was added
        component_removed (str) - A component was removed (by ID)
        component_rotated (ComponentData) - A component was rotated
        component_moved (ComponentData) - A component was moved
        component_value_changed (ComponentData) - A component's value changed
        wire_added (WireData) - A new wire was added
        wire_extended (WireData) - Points were appended to a wire
        wire_split (tuple[WireData, WireData]) - A wire was cut in two
        wire_removed (str) - A wire was removed (by ID)
        wires_normalized (NormalizationResult) - The normalization pass changed wires
        circuit_cleared (None) - The entire circuit was cleared
        nodes_rebuilt (NetlistResult) - Connectivity was resolved
        simulation_started (None) - Simulation began
        simulation_completed (SimulationResult) - Simulation finished
        simulation_discarded (SimulationResult) - A stale simulation result was dropped
    """

    def __init__(self, model: Optional[CircuitModel] = None):
        self.model = model or CircuitModel()
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for model change events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Unregister a previously registered callback."""
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a model change."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError) as e:
                logger.error("Error notifying observer of %s: %s", event, e)

    # --- Component operations ---

    def add_component(self, component_type: str, position, value: Optional[str] = None,
                      rotation: int = 0) -> ComponentData:
        """
        Create and add a new component to the circuit.

        Generates a unique ID using the component counter (R1, R2, V1, etc.).

        Raises:
            ValueError: Unknown component type.

        Returns:
            The newly created ComponentData.
        """
        symbol = SPICE_SYMBOLS.get(component_type, "X")
        count = self.model.component_counter.get(symbol, 0)
        while True:
            count += 1
            component_id = f"{symbol}{count}"
            if component_id not in self.model.components:
                break
        component = create_component(component_type, component_id, position, value, rotation)
        self.model.component_counter[symbol] = count
        self.model.add_component(component)
        self._notify("component_added", component)
        return component

    def remove_component(self, component_id: str) -> bool:
        """Remove a component; wires attached to it stay but are unpinned."""
        if not self.model.remove_component(component_id):
            return False
        self._notify("component_removed", component_id)
        return True

    def rotate_component(self, component_id: str, clockwise: bool = True) -> bool:
        """Rotate a component 90 degrees."""
        if not self.model.rotate_component(component_id, 90 if clockwise else -90):
            return False
        self._notify("component_rotated", self.model.components[component_id])
        return True

    def move_component(self, component_id: str, position) -> bool:
        """Move a component to a new position."""
        if not self.model.move_component(component_id, position):
            return False
        self._notify("component_moved", self.model.components[component_id])
        return True

    def update_component_value(self, component_id: str, value: str) -> bool:
        """Update a component's value."""
        if not self.model.set_component_value(component_id, value):
            return False
        self._notify("component_value_changed", self.model.components[component_id])
        return True

    # --- Wire operations ---

    def add_wire(self, points, terminal_refs=None) -> WireData:
        """
        Create and add a new wire.

        Raises:
            InvalidWireError: Fewer than 2 distinct points or a diagonal segment.
        """
        wire = self.model.add_wire(points, terminal_refs)
        self._notify("wire_added", wire)
        return wire

    def connect_terminals(self, start: TerminalRef, end: TerminalRef,
                          preferred_axis: Axis = Axis.NONE) -> WireData:
        """Draw a routed wire between two terminals."""
        start_position = self.model.terminal_position(start)
        end_position = self.model.terminal_position(end)
        path = self.route(start_position, end_position, preferred_axis, {start.component_id, end.component_id})
        refs = [start] + [None] * (len(path) - 2) + [end]
        return self.add_wire(path, refs)

    def extend_wire(self, wire_id: str, point, terminal_ref: Optional[TerminalRef] = None,
                    preferred_axis: Axis = Axis.NONE) -> Optional[WireData]:
        """Append a point to a wire, routing a bend if needed."""
        wire = self.model.extend_wire(wire_id, point, terminal_ref, preferred_axis)
        if wire is not None:
            self._notify("wire_extended", wire)
        return wire

    def split_wire(self, wire_id: str, at_point, segment_index: int) -> Optional[tuple[WireData, WireData]]:
        """Cut a wire in two at a point on one of its segments."""
        halves = self.model.split_wire(wire_id, at_point, segment_index)
        if halves is not None:
            self._notify("wire_split", halves)
        return halves

    def remove_wire(self, wire_id: str) -> bool:
        """Remove a wire by ID."""
        if not self.model.remove_wire(wire_id):
            return False
        self._notify("wire_removed", wire_id)
        return True

    def clear_circuit(self) -> None:
        """Remove all components and wires."""
        self.model.clear()
        self._notify("circuit_cleared", None)

    # --- Geometry queries ---

    def get_snap_candidate(self, x: float, y: float, radius: float = DEFAULT_SNAP_RADIUS) -> SnapCandidate:
        return get_snap_candidate(self.model, x, y, radius)

    def route(self, start, end, preferred_axis: Axis = Axis.NONE, ignore_ids=()) -> list[Point]:
        """Orthogonal path between two points, avoiding every component not ignored."""
        return route(start, end, preferred_axis, self.model.components.values(), ignore_ids, self.model.grid_size)

    def normalize(self) -> NormalizationResult:
        """Run the junction and simplification pass over every wire."""
        result = normalize(self.model)
        if result.changed:
            self._notify("wires_normalized", result)
        return result

    def resolve(self):
        """Resolve connectivity into nodes and device lines."""
        from simulation import ConnectivityResolver

        result = ConnectivityResolver(self.model).resolve()
        self._notify("nodes_rebuilt", result)
        return result
