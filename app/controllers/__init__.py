"""
Controllers for spice-sketch.

This package contains Qt-free controller classes that orchestrate
operations between models and views using an observer pattern.
"""

from .circuit_controller import CircuitController
from .simulation_controller import SimulationController, SimulationResult

__all__ = [
    "CircuitController",
    "SimulationController",
    "SimulationResult",
]
