"""
Pure Python data models for spice-sketch.

This package contains Qt-free data classes that represent circuit elements:
grid geometry, components with live terminals, and polyline wires whose
points live in the circuit's point arena.
"""

from .circuit import CircuitModel, MissingComponentError, MissingWireError
from .component import (
    COMPONENT_CLASSES,
    COMPONENT_TYPES,
    DEFAULT_VALUES,
    SPICE_SYMBOLS,
    TERMINAL_LAYOUTS,
    ComponentData,
    create_component,
)
from .geometry import GRID_SIZE, Point, Rect, snap_point, snap_to_grid
from .wire import InvalidWireError, TerminalRef, WireData, WirePoint

__all__ = [
    "CircuitModel",
    "MissingComponentError",
    "MissingWireError",
    "ComponentData",
    "COMPONENT_CLASSES",
    "COMPONENT_TYPES",
    "SPICE_SYMBOLS",
    "DEFAULT_VALUES",
    "TERMINAL_LAYOUTS",
    "create_component",
    "GRID_SIZE",
    "Point",
    "Rect",
    "snap_point",
    "snap_to_grid",
    "InvalidWireError",
    "TerminalRef",
    "WireData",
    "WirePoint",
]
