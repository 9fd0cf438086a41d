from .circuit_validator import validate_circuit
from .netlist_generator import (
    ANALYSIS_TYPES,
    GROUND_NODE,
    ConnectivityResolver,
    NetlistGenerator,
    NetlistResult,
    UnconnectedTerminalWarning,
    UnionFind,
    control_cards,
)
from .ngspice_runner import NgspiceRunner, SolverError
from .result_parser import AcResult, ResultParser, SolverResults, TranResult

__all__ = [
    "ANALYSIS_TYPES",
    "GROUND_NODE",
    "AcResult",
    "ConnectivityResolver",
    "NetlistGenerator",
    "NetlistResult",
    "NgspiceRunner",
    "ResultParser",
    "SolverError",
    "SolverResults",
    "TranResult",
    "UnconnectedTerminalWarning",
    "UnionFind",
    "control_cards",
    "validate_circuit",
]
