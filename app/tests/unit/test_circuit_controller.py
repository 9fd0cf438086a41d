"""Tests for CircuitController: id allocation, wire operations and observer events."""

import pytest
from controllers.circuit_controller import CircuitController
from models.circuit import CircuitModel
from models.geometry import Point
from models.wire import TerminalRef
from tests.conftest import all_wires_orthogonal
from wiring.path_finding import Axis
from wiring.snapping import SnapKind


@pytest.fixture
def controller():
    return CircuitController()


@pytest.fixture
def events(controller):
    """Record every (event, data) pair the controller emits."""
    received = []
    controller.add_observer(lambda event, data: received.append((event, data)))
    return received


def event_names(events):
    return [name for name, _ in events]


class TestObservers:
    def test_duplicate_observer_registered_once(self, controller):
        received = []

        def callback(event, data):
            received.append(event)

        controller.add_observer(callback)
        controller.add_observer(callback)
        controller.clear_circuit()
        assert received == ["circuit_cleared"]

    def test_removed_observer_not_called(self, controller):
        received = []

        def callback(event, data):
            received.append(event)

        controller.add_observer(callback)
        controller.remove_observer(callback)
        controller.clear_circuit()
        assert received == []

    def test_failing_observer_does_not_block_others(self, controller, events):
        def broken(event, data):
            raise RuntimeError("view went away")

        controller._observers.insert(0, broken)
        controller.add_component("Resistor", (40, 0))
        assert event_names(events) == ["component_added"]


class TestComponents:
    def test_ids_follow_symbol_counters(self, controller):
        r1 = controller.add_component("Resistor", (40, 0))
        v1 = controller.add_component("DC Source", (40, 100))
        r2 = controller.add_component("Resistor", (200, 0))
        v2 = controller.add_component("AC Source", (200, 100))
        assert [c.component_id for c in (r1, v1, r2, v2)] == ["R1", "V1", "R2", "V2"]

    def test_existing_id_skipped(self):
        model = CircuitModel()
        controller = CircuitController(model)
        controller.add_component("Resistor", (40, 0))
        model.component_counter["R"] = 0
        assert controller.add_component("Resistor", (200, 0)).component_id == "R2"

    def test_unknown_type(self, controller):
        with pytest.raises(ValueError):
            controller.add_component("Diode", (0, 0))
        assert controller.model.components == {}

    def test_add_event(self, controller, events):
        component = controller.add_component("Capacitor", (40, 0))
        assert events == [("component_added", component)]

    def test_remove(self, controller, events):
        controller.add_component("Resistor", (40, 0))
        assert controller.remove_component("R1")
        assert not controller.remove_component("R1")
        assert event_names(events) == ["component_added", "component_removed"]

    def test_rotate_directions(self, controller):
        controller.add_component("Resistor", (40, 0))
        controller.rotate_component("R1")
        assert controller.model.components["R1"].rotation == 90
        controller.rotate_component("R1", clockwise=False)
        controller.rotate_component("R1", clockwise=False)
        assert controller.model.components["R1"].rotation == 270

    def test_move_event(self, controller, events):
        controller.add_component("Resistor", (40, 0))
        assert controller.move_component("R1", (80, 40))
        assert events[-1][0] == "component_moved"
        assert events[-1][1].position == Point(80, 40)

    def test_unknown_component_emits_nothing(self, controller, events):
        assert not controller.move_component("R9", (0, 0))
        assert not controller.rotate_component("R9")
        assert not controller.update_component_value("R9", "2k")
        assert events == []

    def test_value_change_bumps_revision(self, controller, events):
        controller.add_component("Resistor", (40, 0))
        revision = controller.model.revision
        assert controller.update_component_value("R1", "2k")
        assert controller.model.components["R1"].value == "2k"
        assert controller.model.revision > revision
        assert events[-1][0] == "component_value_changed"


class TestWires:
    def test_connect_terminals_routes_and_pins(self, controller, events):
        controller.add_component("Resistor", (40, 0))
        controller.add_component("Resistor", (200, 100))
        wire = controller.connect_terminals(TerminalRef("R1", "t2"), TerminalRef("R2", "t1"), Axis.HORIZONTAL)

        points = controller.model.wire_points(wire)
        assert points[0].terminal_ref == TerminalRef("R1", "t2")
        assert points[-1].terminal_ref == TerminalRef("R2", "t1")
        assert [p.position for p in points] == [Point(80, 0), Point(160, 0), Point(160, 100)]
        assert all_wires_orthogonal(controller.model)
        assert events[-1] == ("wire_added", wire)

    def test_extend(self, controller, events):
        wire = controller.add_wire([(0, 0), (0, 40)])
        assert controller.extend_wire(wire.wire_id, (40, 80)) is wire
        assert events[-1][0] == "wire_extended"
        assert controller.extend_wire("w9", (0, 0)) is None
        assert events[-1][0] == "wire_extended"

    def test_split(self, controller, events):
        wire = controller.add_wire([(0, 0), (100, 0)])
        halves = controller.split_wire(wire.wire_id, (40, 0), 0)
        assert events[-1] == ("wire_split", halves)
        assert len(controller.model.wires) == 2

    def test_remove(self, controller, events):
        wire = controller.add_wire([(0, 0), (100, 0)])
        assert controller.remove_wire(wire.wire_id)
        assert events[-1] == ("wire_removed", wire.wire_id)
        assert not controller.remove_wire(wire.wire_id)

    def test_clear(self, controller, events):
        controller.add_component("Resistor", (40, 0))
        controller.add_wire([(0, 0), (0, 100)])
        controller.clear_circuit()
        assert events[-1] == ("circuit_cleared", None)
        assert not controller.model.components
        assert not controller.model.wires


class TestQueries:
    def test_snap_candidate(self, controller):
        controller.add_component("Resistor", (40, 0))
        candidate = controller.get_snap_candidate(3, 2)
        assert candidate.kind == SnapKind.TERMINAL
        assert candidate.terminal_ref == TerminalRef("R1", "t1")

    def test_route_avoids_components(self, controller):
        controller.add_component("Resistor", (60, 0))
        path = controller.route(Point(0, 0), Point(100, 60), Axis.HORIZONTAL)
        assert path == [Point(0, 0), Point(0, 60), Point(100, 60)]

    def test_normalize_event_only_on_change(self, controller, events):
        controller.add_wire([(0, 0), (100, 0)])
        controller.add_wire([(40, -40), (40, 40)])
        result = controller.normalize()
        assert result.changed
        assert events[-1] == ("wires_normalized", result)

        count = len(events)
        assert not controller.normalize().changed
        assert len(events) == count

    def test_resolve_event(self, series_circuit):
        controller = CircuitController(series_circuit)
        received = []
        controller.add_observer(lambda event, data: received.append((event, data)))
        result = controller.resolve()
        assert received == [("nodes_rebuilt", result)]
        assert result.ground_node == "0"
