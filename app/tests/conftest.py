"""
Shared test fixtures for the spice-sketch test suite.

All fixtures build pure-Python model objects (no Qt dependencies).
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, wiring, simulation, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.circuit import CircuitModel
from models.component import create_component
from models.wire import TerminalRef


def make_component(component_type, component_id, position=(0, 0), value=None, rotation=0):
    """Helper to create a component with minimal boilerplate."""
    return create_component(component_type, component_id, position, value, rotation)


def pin(component_id, terminal_id):
    """Helper to build a TerminalRef."""
    return TerminalRef(component_id, terminal_id)


def add_pinned_wire(model, points, start=None, end=None):
    """Add a wire whose first/last points are pinned to the given terminals."""
    refs = [None] * len(points)
    if start is not None:
        refs[0] = pin(*start)
    if end is not None:
        refs[-1] = pin(*end)
    return model.add_wire(points, refs)


def all_wires_orthogonal(model):
    """True if every segment of every wire is horizontal, vertical or zero-length."""
    for wire in model.wires.values():
        positions = model.wire_positions(wire)
        if len(positions) < 2:
            return False
        for a, b in zip(positions, positions[1:]):
            if a.x != b.x and a.y != b.y:
                return False
    return True


@pytest.fixture
def model():
    return CircuitModel()


@pytest.fixture
def series_circuit():
    """
    R1 and V1 joined at both ends.

    R1 at (40, 0): t1 (0, 0), t2 (80, 0)
    V1 at (40, -100): t1 (0, -100), t2 (80, -100)
    """
    circuit = CircuitModel()
    circuit.add_component(make_component("Resistor", "R1", (40, 0)))
    circuit.add_component(make_component("DC Source", "V1", (40, -100)))
    add_pinned_wire(circuit, [(0, 0), (0, -100)], start=("R1", "t1"), end=("V1", "t1"))
    add_pinned_wire(circuit, [(80, 0), (80, -100)], start=("R1", "t2"), end=("V1", "t2"))
    return circuit


@pytest.fixture
def divider_circuit():
    """
    V1 -- R1 -- R2 -- back to V1

    V1 at (40, 0): t1 (0, 0), t2 (80, 0)
    R1 at (160, -100): t1 (120, -100), t2 (200, -100)
    R2 at (160, 100): t1 (120, 100), t2 (200, 100)
    """
    circuit = CircuitModel()
    circuit.add_component(make_component("DC Source", "V1", (40, 0)))
    circuit.add_component(make_component("Resistor", "R1", (160, -100)))
    circuit.add_component(make_component("Resistor", "R2", (160, 100)))
    add_pinned_wire(circuit, [(80, 0), (80, -100), (120, -100)], start=("V1", "t2"), end=("R1", "t1"))
    add_pinned_wire(circuit, [(200, -100), (200, 100)], start=("R1", "t2"), end=("R2", "t2"))
    add_pinned_wire(circuit, [(120, 100), (0, 100), (0, 0)], start=("R2", "t1"), end=("V1", "t1"))
    return circuit
