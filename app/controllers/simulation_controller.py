"""
SimulationController - Orchestrates the simulation pipeline.

This module contains no Qt dependencies. It coordinates analysis
configuration, wire normalization, circuit validation, netlist
generation, the solver call and mapping results back onto terminals.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from models.circuit import CircuitModel
from models.wire import TerminalRef

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    """Result of a simulation run."""

    success: bool
    analysis_type: str = ""
    data: Any = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    error: str = ""
    netlist: str = ""
    raw_output: str = ""
    terminal_voltages: dict[TerminalRef, float] = field(default_factory=dict)
    revision: int = 0
    stale: bool = False


class SimulationController:
    """
    Controller for the simulation pipeline.

    Coordinates: normalize -> validate -> generate netlist -> solve -> map results

    The solver is any ``async solve(netlist_text) -> SolverResults``; the
    default runs ngspice through NgspiceRunner.
    """

    def __init__(self, model: Optional[CircuitModel] = None, circuit_ctrl=None,
                 solver: Optional[Callable[[str], Awaitable[Any]]] = None,
                 output_dir: str = "simulation_output"):
        self.model = model or CircuitModel()
        self.circuit_ctrl = circuit_ctrl
        self.output_dir = output_dir
        self._solver = solver
        self._runner = None

    @property
    def runner(self):
        """Lazy initialization of NgspiceRunner."""
        if self._runner is None:
            from simulation import NgspiceRunner

            self._runner = NgspiceRunner(output_dir=self.output_dir)
        return self._runner

    @property
    def solver(self) -> Callable[[str], Awaitable[Any]]:
        return self._solver or self.runner.solve

    def _notify(self, event: str, data: Any) -> None:
        if self.circuit_ctrl:
            self.circuit_ctrl._notify(event, data)

    def set_analysis(self, analysis_type: str, params: Optional[dict] = None) -> None:
        """
        Set the analysis type and parameters on the model.

        Raises:
            ValueError: Unknown analysis type.
        """
        from simulation import ANALYSIS_TYPES

        if analysis_type not in ANALYSIS_TYPES:
            raise ValueError(f"Unknown analysis type: {analysis_type}")
        self.model.analysis_type = analysis_type
        self.model.analysis_params = (params or {}).copy()

    def normalize(self):
        """Normalize wires (through the circuit controller when present, so views hear about it)."""
        if self.circuit_ctrl:
            return self.circuit_ctrl.normalize()
        from wiring import normalize

        return normalize(self.model)

    def validate_circuit(self) -> SimulationResult:
        """
        Validate the circuit before simulation.

        Returns a SimulationResult with success=False and errors if invalid.
        """
        from simulation import validate_circuit

        is_valid, errors, warnings = validate_circuit(self.model, self.model.analysis_type)
        return SimulationResult(
            success=is_valid,
            analysis_type=self.model.analysis_type,
            errors=errors,
            warnings=warnings,
            error="; ".join(errors) if errors else "",
        )

    def build_netlist(self):
        """
        Resolve connectivity and render the full netlist.

        Returns:
            (netlist_text, NetlistResult)
        """
        from simulation import NetlistGenerator

        generator = NetlistGenerator(self.model)
        resolution = generator.resolve()
        return generator.generate(resolution), resolution

    def generate_netlist(self) -> str:
        """Generate a SPICE netlist from the current circuit model."""
        return self.build_netlist()[0]

    async def run_simulation(self) -> SimulationResult:
        """
        Run the full simulation pipeline.

        If the model is edited while the solver runs, the result is
        returned with stale=True and success=False and is not applied.
        """
        from simulation import SolverError

        self._notify("simulation_started", None)
        analysis = self.model.analysis_type

        # 1. Normalize and validate
        self.normalize()
        validation = self.validate_circuit()
        if not validation.success:
            self._notify("simulation_completed", validation)
            return validation

        # 2. Generate netlist
        try:
            netlist, resolution = self.build_netlist()
        except (ValueError, KeyError) as e:
            result = SimulationResult(
                success=False,
                analysis_type=analysis,
                error=f"Netlist generation failed: {e}",
                warnings=validation.warnings,
            )
            self._notify("simulation_completed", result)
            return result

        # 3. Solve
        revision = self.model.revision
        terminal_to_node = dict(resolution.terminal_to_node)
        try:
            data = await self.solver(netlist)
        except SolverError as e:
            result = SimulationResult(
                success=False,
                analysis_type=analysis,
                error=str(e),
                netlist=e.netlist or netlist,
                raw_output=e.stdout,
                warnings=validation.warnings,
                revision=revision,
            )
            self._notify("simulation_completed", result)
            return result

        # 4. Discard results computed for an older drawing
        if self.model.revision != revision:
            logger.warning(
                "Discarding stale simulation result (revision %d, model now at %d)",
                revision,
                self.model.revision,
            )
            result = SimulationResult(
                success=False,
                analysis_type=analysis,
                data=data,
                error="Circuit changed during simulation; result discarded.",
                netlist=netlist,
                revision=revision,
                stale=True,
            )
            self._notify("simulation_discarded", result)
            return result

        result = SimulationResult(
            success=True,
            analysis_type=analysis,
            data=data,
            warnings=validation.warnings,
            netlist=netlist,
            terminal_voltages=self.terminal_voltages(getattr(data, "op", {}), terminal_to_node),
            revision=revision,
        )
        self._notify("simulation_completed", result)
        return result

    def run_simulation_sync(self) -> SimulationResult:
        """Blocking wrapper around run_simulation for scripts and the CLI."""
        return asyncio.run(self.run_simulation())

    @staticmethod
    def terminal_voltages(node_voltages: dict[str, float],
                          terminal_to_node: dict[TerminalRef, str]) -> dict[TerminalRef, float]:
        """Project node voltages back onto terminals (ground is 0 V)."""
        from simulation import GROUND_NODE

        voltages = {}
        lowered = {name.lower(): value for name, value in node_voltages.items()}
        for ref, node in terminal_to_node.items():
            if node == GROUND_NODE:
                voltages[ref] = 0.0
            elif node.lower() in lowered:
                voltages[ref] = lowered[node.lower()]
        return voltages
