"""Tests for CircuitModel wire mutations, pinned points and serialization."""

import pytest
from models.circuit import CircuitModel, MissingComponentError, MissingWireError
from models.geometry import Point
from models.wire import InvalidWireError, TerminalRef
from tests.conftest import add_pinned_wire, all_wires_orthogonal, make_component, pin


class TestAddWire:
    def test_points_snapped_and_stored(self, model):
        wire = model.add_wire([(1, 2), (3, 38), (41, 41)])
        assert model.wire_positions(wire) == [Point(0, 0), Point(0, 40), Point(40, 40)]
        assert wire.wire_id == "w1"

    def test_consecutive_duplicates_collapse(self, model):
        wire = model.add_wire([(0, 0), (0, 0), (0, 40), (2, 41)])
        assert model.wire_positions(wire) == [Point(0, 0), Point(0, 40)]

    def test_single_point_rejected_model_unchanged(self, model):
        before = model.to_dict()
        revision = model.revision
        with pytest.raises(InvalidWireError):
            model.add_wire([(0, 0)])
        assert model.to_dict() == before
        assert model.revision == revision
        assert model.points == {}

    def test_points_collapsing_to_one_rejected(self, model):
        with pytest.raises(InvalidWireError):
            model.add_wire([(0, 0), (3, 4)])

    def test_diagonal_rejected_all_or_nothing(self, model):
        with pytest.raises(InvalidWireError):
            model.add_wire([(0, 0), (0, 40), (40, 80)])
        assert model.wires == {}
        assert model.points == {}

    def test_pinned_point_placed_on_terminal(self, model):
        model.add_component(make_component("Resistor", "R1", (40, 0)))
        wire = model.add_wire([(0, 0), (0, 60)], [pin("R1", "t1"), None])
        first = model.wire_points(wire)[0]
        assert first.terminal_ref == TerminalRef("R1", "t1")
        assert first.position == Point(0, 0)

    def test_pin_to_unknown_component(self, model):
        with pytest.raises(MissingComponentError):
            model.add_wire([(0, 0), (0, 60)], [pin("R9", "t1"), None])

    def test_misaligned_refs_rejected(self, model):
        with pytest.raises(InvalidWireError):
            model.add_wire([(0, 0), (0, 60)], [None])

    def test_ids_are_unique(self, model):
        first = model.add_wire([(0, 0), (0, 40)])
        second = model.add_wire([(20, 0), (20, 40)])
        assert first.wire_id != second.wire_id


class TestExtendWire:
    def test_aligned_extension(self, model):
        wire = model.add_wire([(0, 0), (0, 40)])
        model.extend_wire(wire.wire_id, (0, 100))
        assert model.wire_positions(wire)[-1] == Point(0, 100)

    def test_diagonal_extension_inserts_bend(self, model):
        wire = model.add_wire([(0, 0), (0, 40)])
        model.extend_wire(wire.wire_id, (40, 80))
        positions = model.wire_positions(wire)
        assert positions[-1] == Point(40, 80)
        assert len(positions) == 4
        assert all_wires_orthogonal(model)

    def test_extension_to_bent_point(self, model):
        wire = model.add_wire([(0, 0), (0, 40)])
        model.extend_wire(wire.wire_id, (40, 40))
        assert model.wire_positions(wire) == [Point(0, 0), Point(0, 40), Point(40, 40)]

    def test_same_point_is_noop(self, model):
        wire = model.add_wire([(0, 0), (0, 40)])
        revision = model.revision
        model.extend_wire(wire.wire_id, (0, 40))
        assert len(wire) == 2
        assert model.revision == revision

    def test_unknown_wire(self, model):
        assert model.extend_wire("w99", (0, 0)) is None

    def test_extend_to_terminal_pins_endpoint(self, model):
        model.add_component(make_component("Resistor", "R1", (200, 0)))
        wire = model.add_wire([(0, 0), (0, 40)])
        model.extend_wire(wire.wire_id, (0, 0), terminal_ref=pin("R1", "t1"))
        last = model.wire_points(wire)[-1]
        assert last.position == Point(160, 0)
        assert last.terminal_ref == TerminalRef("R1", "t1")
        assert all_wires_orthogonal(model)


class TestSplitWire:
    def test_split_at_new_point(self, model):
        wire = model.add_wire([(0, 0), (100, 0)])
        first, second = model.split_wire(wire.wire_id, (40, 0), 0)
        assert first.wire_id == wire.wire_id
        assert model.wire_positions(first) == [Point(0, 0), Point(40, 0)]
        assert model.wire_positions(second) == [Point(40, 0), Point(100, 0)]
        assert model.wire_points(first)[-1].is_junction
        assert model.wire_points(second)[0].is_junction

    def test_split_at_existing_bend(self, model):
        wire = model.add_wire([(0, 0), (0, 40), (40, 40)])
        first, second = model.split_wire(wire.wire_id, (0, 40), 0)
        assert model.wire_positions(first) == [Point(0, 0), Point(0, 40)]
        assert model.wire_positions(second) == [Point(0, 40), Point(40, 40)]

    def test_split_points_are_not_shared(self, model):
        wire = model.add_wire([(0, 0), (100, 0)])
        first, second = model.split_wire(wire.wire_id, (40, 0), 0)
        assert first.point_ids[-1] != second.point_ids[0]

    @pytest.mark.parametrize("at, index", [((0, 0), 0), ((100, 0), 0), ((40, 20), 0), ((40, 0), 3)])
    def test_invalid_splits(self, model, at, index):
        wire = model.add_wire([(0, 0), (100, 0)])
        assert model.split_wire(wire.wire_id, at, index) is None
        assert len(model.wires) == 1
        assert len(wire) == 2

    def test_unknown_wire(self, model):
        assert model.split_wire("w9", (0, 0), 0) is None


class TestRemoval:
    def test_remove_wire_drops_points(self, model):
        wire = model.add_wire([(0, 0), (100, 0)])
        assert model.remove_wire(wire.wire_id)
        assert model.points == {}
        assert not model.remove_wire(wire.wire_id)

    def test_remove_component_unpins(self, series_circuit):
        assert series_circuit.remove_component("R1")
        for point in series_circuit.points.values():
            assert point.terminal_ref is None or point.terminal_ref.component_id != "R1"
        assert len(series_circuit.wires) == 2

    def test_remove_unknown_component(self, model):
        assert not model.remove_component("R1")

    def test_require_lookups(self, model):
        with pytest.raises(MissingComponentError):
            model.require_component("R1")
        with pytest.raises(MissingWireError):
            model.require_wire("w1")


class TestMoveAndRotate:
    def test_pinned_points_follow_move(self, series_circuit):
        assert series_circuit.move_component("R1", (40, 60))
        for wire in series_circuit.wires.values():
            for point in series_circuit.wire_points(wire):
                if point.terminal_ref is not None:
                    assert point.position == series_circuit.terminal_position(point.terminal_ref)
        assert all_wires_orthogonal(series_circuit)

    def test_move_sideways_adds_elbow(self, model):
        model.add_component(make_component("Resistor", "R1", (40, 0)))
        wire = add_pinned_wire(model, [(80, 0), (80, -100)], start=("R1", "t2"))
        model.move_component("R1", (60, 0))
        # The vertical neighbour segment keeps its axis; the elbow joins horizontally
        assert model.wire_positions(wire) == [Point(100, 0), Point(80, 0), Point(80, -100)]

    def test_move_along_segment_axis_needs_no_elbow(self, model):
        model.add_component(make_component("Resistor", "R1", (40, 0)))
        wire = add_pinned_wire(model, [(80, 0), (80, -100)], start=("R1", "t2"))
        model.move_component("R1", (40, 40))
        assert model.wire_positions(wire) == [Point(80, 40), Point(80, -100)]

    def test_three_wires_on_one_terminal_follow(self, model):
        model.add_component(make_component("Resistor", "R1", (40, 0)))
        add_pinned_wire(model, [(80, 0), (80, -100)], start=("R1", "t2"))
        add_pinned_wire(model, [(80, 0), (200, 0)], start=("R1", "t2"))
        add_pinned_wire(model, [(300, 100), (80, 100), (80, 0)], end=("R1", "t2"))
        model.move_component("R1", (100, 60))
        target = model.terminal_position(pin("R1", "t2"))
        for wire in model.wires.values():
            pinned = [p for p in model.wire_points(wire) if p.terminal_ref is not None]
            assert len(pinned) == 1
            assert pinned[0].position == target
        assert all_wires_orthogonal(model)

    def test_rotate_resnaps(self, series_circuit):
        assert series_circuit.rotate_component("R1")
        assert series_circuit.components["R1"].rotation == 90
        assert all_wires_orthogonal(series_circuit)
        for point in series_circuit.points.values():
            if point.terminal_ref is not None:
                assert point.position == series_circuit.terminal_position(point.terminal_ref)

    def test_rotate_rejects_odd_angle(self, series_circuit):
        before = series_circuit.to_dict()
        revision = series_circuit.revision
        assert not series_circuit.rotate_component("R1", 45)
        assert series_circuit.components["R1"].rotation == 0
        assert series_circuit.to_dict() == before
        assert series_circuit.revision == revision

    def test_unknown_component_noop(self, model):
        revision = model.revision
        assert not model.move_component("R1", (0, 0))
        assert not model.rotate_component("R1")
        assert model.revision == revision

    def test_move_snaps_position(self, model):
        model.add_component(make_component("Resistor", "R1", (0, 0)))
        model.move_component("R1", (33, 47))
        assert model.components["R1"].position == Point(40, 40)

    def test_revision_bumps(self, series_circuit):
        revision = series_circuit.revision
        series_circuit.move_component("V1", (40, -140))
        assert series_circuit.revision > revision


class TestQueries:
    def test_find_point_on_any_wire(self, model):
        model.add_wire([(0, 0), (100, 0)])
        wire = model.add_wire([(0, 40), (0, 200)])
        assert model.find_point_on_any_wire((5, 120), 10) == (wire.wire_id, 0)

    def test_find_point_strict_tolerance(self, model):
        model.add_wire([(0, 0), (100, 0)])
        assert model.find_point_on_any_wire((50, 10), 10) is None
        assert model.find_point_on_any_wire((50, 9), 10) is not None

    def test_wires_connected_to_terminal(self, series_circuit):
        wires = series_circuit.wires_connected_to_terminal(pin("R1", "t1"))
        assert [w.wire_id for w in wires] == ["w1"]

    def test_iter_terminals_order(self, series_circuit):
        refs = [ref for ref, _ in series_circuit.iter_terminals()]
        assert refs == [pin("R1", "t1"), pin("R1", "t2"), pin("V1", "t1"), pin("V1", "t2")]


class TestSerialization:
    def test_round_trip(self, series_circuit):
        series_circuit.analysis_type = "Transient"
        series_circuit.analysis_params = {"step": "1u", "duration": "1m"}
        restored = CircuitModel.from_dict(series_circuit.to_dict())
        assert restored.to_dict() == series_circuit.to_dict()
        assert restored.revision == 0

    def test_pins_survive(self, series_circuit):
        restored = CircuitModel.from_dict(series_circuit.to_dict())
        first = restored.wire_points("w1")[0]
        assert first.terminal_ref == TerminalRef("R1", "t1")

    def test_grid_size_survives(self):
        model = CircuitModel(grid_size=25)
        assert model.to_dict()["grid_size"] == 25
        assert CircuitModel.from_dict(model.to_dict()).grid_size == 25
        assert "grid_size" not in CircuitModel().to_dict()

    def test_diagonal_segment_rejected(self):
        data = {"components": [], "wires": [{"id": "w1", "points": [{"x": 0, "y": 0}, {"x": 40, "y": 40}]}]}
        with pytest.raises(InvalidWireError):
            CircuitModel.from_dict(data)

    def test_short_wire_rejected(self):
        with pytest.raises(InvalidWireError):
            CircuitModel.from_dict({"components": [], "wires": [{"id": "w1", "points": [{"x": 0, "y": 0}]}]})

    def test_clear(self, series_circuit):
        series_circuit.clear()
        assert not series_circuit.components
        assert not series_circuit.wires
        assert not series_circuit.points
