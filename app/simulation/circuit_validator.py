"""
simulation/circuit_validator.py

Pre-simulation circuit validation with no Qt dependencies.
"""

from collections import defaultdict

from models.circuit import CircuitModel
from models.component import ACSource, DCSource
from models.geometry import is_axis_aligned, segment_intersection

from .netlist_generator import ConnectivityResolver


def validate_circuit(model: CircuitModel, analysis_type=None):
    """
    Validate circuit before simulation.

    Args:
        model: The circuit to check (normalize it first for accurate results).
        analysis_type: str (defaults to model.analysis_type)

    Returns:
        (is_valid, errors, warnings) where:
            is_valid: bool, False if any errors found
            errors: list[str] of problems that block simulation
            warnings: list[str] of non-blocking issues
    """
    errors = []
    warnings = []
    analysis_type = analysis_type or model.analysis_type

    # 1. Circuit must have components
    if not model.components:
        errors.append("Circuit has no components. Add at least one component to simulate.")
        return False, errors, warnings

    # 2. Wire structure
    structurally_sound = True
    for wire in model.wires.values():
        points = model.wire_points(wire)
        if len(points) < 2:
            errors.append(f"Wire {wire.wire_id} has fewer than 2 points.")
            structurally_sound = False
            continue
        for a, b in zip(points, points[1:]):
            if not is_axis_aligned(a.position, b.position):
                errors.append(f"Wire {wire.wire_id} has a diagonal segment {a.position}-{b.position}.")
                structurally_sound = False

    # 3. Pins must reference existing components
    dangling = False
    for wire in model.wires.values():
        for point in model.wire_points(wire):
            ref = point.terminal_ref
            if ref is not None and ref.component_id not in model.components:
                errors.append(
                    f"Wire {wire.wire_id} is attached to missing component {ref.component_id} "
                    f"at {point.position}."
                )
                dangling = True

    # 4. Ground reference
    dc_sources = [c for c in model.components.values() if isinstance(c, DCSource)]
    ac_sources = [c for c in model.components.values() if isinstance(c, ACSource)]
    if not dc_sources:
        errors.append("Circuit has no ground reference. Add a DC source; its negative terminal is node 0.")
    if not dc_sources and not ac_sources:
        warnings.append("Circuit has no sources; all node voltages will be zero.")

    # 5. Unconnected terminals
    if not dangling:
        resolution = ConnectivityResolver(model).resolve()
        if dc_sources and resolution.ground_node is None:
            errors.append(f"{dc_sources[0].component_id} negative terminal is not connected, so there is no ground.")
        unconnected = defaultdict(list)
        for warning in resolution.unconnected_terminals:
            unconnected[warning.component_id].append(warning.terminal_id)
        for comp in model.components.values():
            missing = unconnected.get(comp.component_id)
            if not missing:
                continue
            if len(missing) == len(comp.get_terminal_ids()):
                errors.append(
                    f"{comp.component_id} ({comp.component_type}) has no connections. "
                    f"Connect its terminals to the circuit."
                )
            else:
                warnings.append(
                    f"{comp.component_id} ({comp.component_type}) has unconnected terminal(s): {missing}."
                )

    if structurally_sound:
        warnings.extend(_wiring_warnings(model))

    # 6. Analysis-specific checks
    if analysis_type == "AC Sweep" and not ac_sources:
        warnings.append("AC Sweep without an AC Source: all AC node voltages will be zero.")

    return len(errors) == 0, errors, warnings


def _wiring_warnings(model: CircuitModel):
    warnings = []
    wires = list(model.wires.values())
    positions = {wire.wire_id: model.wire_positions(wire) for wire in wires}

    # Crossings that were never joined
    for i, first in enumerate(wires):
        first_points = positions[first.wire_id]
        for second in wires[i + 1:]:
            second_points = positions[second.wire_id]
            for a1, a2 in zip(first_points, first_points[1:]):
                for b1, b2 in zip(second_points, second_points[1:]):
                    hit = segment_intersection(a1, a2, b1, b2)
                    if hit is not None and (hit not in first_points or hit not in second_points):
                        warnings.append(
                            f"Wires {first.wire_id} and {second.wire_id} cross at {hit} without a junction."
                        )

    # Duplicates, in either direction
    seen = {}
    for wire in wires:
        path = tuple(positions[wire.wire_id])
        key = min(path, path[::-1])
        if key in seen:
            warnings.append(f"Wire {wire.wire_id} duplicates wire {seen[key]}.")
        else:
            seen[key] = wire.wire_id
    return warnings
