"""Tests for SimulationController."""

import asyncio
from unittest.mock import patch

import pytest
from controllers.circuit_controller import CircuitController
from controllers.simulation_controller import SimulationController, SimulationResult
from models.circuit import CircuitModel
from simulation.ngspice_runner import SolverError
from simulation.result_parser import SolverResults
from tests.conftest import make_component, pin


class FakeSolver:
    """Async solver double that records the netlists it was given."""

    def __init__(self, results=None, on_solve=None):
        self.results = results or SolverResults(op={"n2": 12.0})
        self.on_solve = on_solve
        self.netlists = []

    async def __call__(self, netlist):
        self.netlists.append(netlist)
        if self.on_solve is not None:
            self.on_solve()
        return self.results


def _controller(model, solver):
    circuit_ctrl = CircuitController(model)
    events = []
    circuit_ctrl.add_observer(lambda event, data: events.append((event, data)))
    return SimulationController(model, circuit_ctrl, solver=solver), events


class TestAnalysisConfig:
    def test_set_analysis(self):
        ctrl = SimulationController()
        params = {"step": "1u", "duration": "1m"}
        ctrl.set_analysis("Transient", params)
        params["step"] = "2u"
        assert ctrl.model.analysis_type == "Transient"
        assert ctrl.model.analysis_params == {"step": "1u", "duration": "1m"}

    def test_unknown_analysis(self):
        with pytest.raises(ValueError):
            SimulationController().set_analysis("Noise")

    def test_default_solver_is_ngspice(self, tmp_path):
        ctrl = SimulationController(output_dir=str(tmp_path / "out"))
        assert ctrl.solver == ctrl.runner.solve


class TestNetlist:
    def test_generate_netlist(self, series_circuit):
        netlist = SimulationController(series_circuit).generate_netlist()
        assert "R1 0 N2 1000" in netlist
        assert netlist.endswith(".END")

    def test_build_netlist_returns_resolution(self, series_circuit):
        _, resolution = SimulationController(series_circuit).build_netlist()
        assert resolution.ground_node == "0"


class TestRunSimulation:
    def test_success_maps_terminals(self, series_circuit):
        solver = FakeSolver()
        ctrl, events = _controller(series_circuit, solver)
        result = ctrl.run_simulation_sync()

        assert result.success
        assert not result.stale
        assert result.terminal_voltages[pin("R1", "t1")] == 0.0
        assert result.terminal_voltages[pin("R1", "t2")] == pytest.approx(12.0)
        assert result.terminal_voltages[pin("V1", "t2")] == pytest.approx(12.0)
        assert solver.netlists == [result.netlist]
        assert [name for name, _ in events] == ["simulation_started", "simulation_completed"]

    def test_invalid_circuit_never_reaches_solver(self):
        solver = FakeSolver()
        ctrl, events = _controller(CircuitModel(), solver)
        result = asyncio.run(ctrl.run_simulation())
        assert not result.success
        assert result.errors
        assert solver.netlists == []
        assert events[-1] == ("simulation_completed", result)

    def test_stale_result_discarded(self, series_circuit):
        solver = FakeSolver(on_solve=lambda: series_circuit.move_component("V1", (40, -140)))
        ctrl, events = _controller(series_circuit, solver)
        result = ctrl.run_simulation_sync()

        assert result.stale
        assert not result.success
        assert result.terminal_voltages == {}
        assert result.revision < series_circuit.revision
        assert events[-1] == ("simulation_discarded", result)

    def test_solver_error(self, series_circuit):
        async def failing(netlist):
            raise SolverError("ngspice exited", netlist=netlist, stdout="partial output")

        ctrl, events = _controller(series_circuit, failing)
        result = ctrl.run_simulation_sync()
        assert not result.success
        assert result.error == "ngspice exited"
        assert result.raw_output == "partial output"
        assert events[-1][0] == "simulation_completed"

    def test_netlist_failure(self, series_circuit):
        ctrl, _ = _controller(series_circuit, FakeSolver())
        with patch.object(ctrl, "build_netlist", side_effect=KeyError("R7")):
            result = ctrl.run_simulation_sync()
        assert not result.success
        assert result.error.startswith("Netlist generation failed")

    def test_normalizes_before_solving(self, model):
        model.add_component(make_component("DC Source", "V1", (40, 0)))
        model.add_wire([(0, 0), (0, 100)])
        model.add_wire([(-40, 40), (40, 40)])
        ctrl, events = _controller(model, FakeSolver())
        ctrl.run_simulation_sync()
        assert "wires_normalized" in [name for name, _ in events]


class TestTerminalVoltages:
    def test_case_insensitive_lookup(self):
        mapping = {pin("R1", "t1"): "0", pin("R1", "t2"): "N2", pin("R2", "t1"): "N3"}
        voltages = SimulationController.terminal_voltages({"n2": 5.0}, mapping)
        assert voltages == {pin("R1", "t1"): 0.0, pin("R1", "t2"): 5.0}

    def test_result_defaults(self):
        result = SimulationResult(success=True)
        assert result.errors == []
        assert result.terminal_voltages == {}
        assert not result.stale
