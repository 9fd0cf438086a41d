"""
Command-line interface for spice-sketch batch operations.

Normalize, validate, export netlists and simulate circuit files
without the editor.

Usage::

    python -m cli netlist circuit.json
    python -m cli netlist circuit.json --analysis "AC Sweep" --output circuit.cir
    python -m cli validate circuit.json
    python -m cli simulate circuit.json --output results.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from controllers.circuit_controller import CircuitController
from controllers.simulation_controller import SimulationController
from models.circuit import CircuitModel

ANALYSIS_CHOICES = ["DC Operating Point", "AC Sweep", "Transient"]


def try_load_circuit(filepath: str) -> tuple[CircuitModel | None, str]:
    """Load a circuit JSON file without exiting.

    Args:
        filepath: Path to the circuit JSON file.

    Returns:
        (model, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        with open(path, "r") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"

    if not isinstance(data, dict):
        return None, "invalid circuit file: top level must be an object"
    try:
        return CircuitModel.from_dict(data), ""
    except (ValueError, KeyError, TypeError) as e:
        return None, f"invalid circuit file: {e}"


def load_circuit(filepath: str) -> CircuitModel:
    """Load a circuit JSON file.

    Raises:
        SystemExit: On file read or format errors.
    """
    model, error = try_load_circuit(filepath)
    if model is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return model


def _write_or_print(text: str, output: str | None, label: str) -> None:
    if output:
        Path(output).write_text(text)
        print(f"{label} written to {output}", file=sys.stderr)
    else:
        print(text)


def cmd_netlist(args: argparse.Namespace) -> int:
    """Normalize the wires and print the netlist."""
    model = load_circuit(args.circuit)
    controller = CircuitController(model)
    sim = SimulationController(model, controller)
    if args.analysis:
        sim.set_analysis(args.analysis)

    controller.normalize()
    try:
        netlist, resolution = sim.build_netlist()
    except (ValueError, KeyError) as e:
        print(f"Error generating netlist: {e}", file=sys.stderr)
        return 1

    for warning in resolution.unconnected_terminals:
        print(f"Warning: {warning}", file=sys.stderr)
    _write_or_print(netlist, args.output, "Netlist")
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate a circuit without simulating."""
    model = load_circuit(args.circuit)
    sim = SimulationController(model)
    sim.normalize()

    result = sim.validate_circuit()

    if result.success:
        print(f"Circuit is valid: {args.circuit}")
        for warning in result.warnings:
            print(f"  Warning: {warning}")
        return 0
    print(f"Circuit has errors: {args.circuit}", file=sys.stderr)
    for err in result.errors:
        print(f"  - {err}", file=sys.stderr)
    return 1


def cmd_simulate(args: argparse.Namespace) -> int:
    """Run simulation and output results."""
    model = load_circuit(args.circuit)
    controller = CircuitController(model)
    sim = SimulationController(model, controller)
    if args.analysis:
        sim.set_analysis(args.analysis)

    result = sim.run_simulation_sync()

    if not result.success:
        print(f"Simulation failed: {result.error}", file=sys.stderr)
        for err in result.errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    _write_or_print(_result_to_json(result), args.output, "Results")
    return 0


def _result_to_json(result) -> str:
    """Format a simulation result as JSON."""
    output = {
        "success": result.success,
        "analysis_type": result.analysis_type,
        "terminal_voltages": {
            f"{ref.component_id}.{ref.terminal_id}": value for ref, value in result.terminal_voltages.items()
        },
    }
    data = result.data
    if data is not None:
        if data.op:
            output["node_voltages"] = data.op
        if data.ac is not None:
            output["ac"] = {
                "frequencies": data.ac.frequencies.tolist(),
                "magnitude": {node: values.tolist() for node, values in data.ac.magnitude.items()},
                "phase": {node: values.tolist() for node, values in data.ac.phase.items()},
            }
        if data.tran is not None:
            output["tran"] = {
                "time": data.tran.time.tolist(),
                "voltages": {node: values.tolist() for node, values in data.tran.voltages.items()},
            }
    if result.warnings:
        output["warnings"] = result.warnings
    if result.netlist:
        output["netlist"] = result.netlist
    return json.dumps(output, indent=2)


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="spice-sketch",
        description="spice-sketch batch operations: turn circuit sketches into netlists and simulate them.",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # netlist
    net_parser = subparsers.add_parser("netlist", help="Normalize wires and print the SPICE netlist")
    net_parser.add_argument("circuit", help="Path to circuit JSON file")
    net_parser.add_argument("--analysis", choices=ANALYSIS_CHOICES, help="Override the analysis type")
    net_parser.add_argument("--output", "-o", help="Write the netlist to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check circuit for errors without simulating")
    val_parser.add_argument("circuit", help="Path to circuit JSON file")

    # simulate
    sim_parser = subparsers.add_parser("simulate", help="Run simulation and output results")
    sim_parser.add_argument("circuit", help="Path to circuit JSON file")
    sim_parser.add_argument("--analysis", choices=ANALYSIS_CHOICES, help="Override the analysis type")
    sim_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {
        "netlist": cmd_netlist,
        "validate": cmd_validate,
        "simulate": cmd_simulate,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
