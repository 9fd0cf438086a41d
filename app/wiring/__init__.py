"""
Wire topology passes for spice-sketch.

Qt-free helpers that operate on a models.CircuitModel: orthogonal
routing, the junction/simplification normalization pass and snap queries
for the interactive editor.
"""

from .junctions import NormalizationResult, find_junction_dots, normalize
from .path_finding import ROUTE_PADDING, AxisTracker, Axis, is_path_colliding, route
from .snapping import DEFAULT_SNAP_RADIUS, SnapCandidate, SnapKind, get_snap_candidate

__all__ = [
    "Axis",
    "AxisTracker",
    "ROUTE_PADDING",
    "route",
    "is_path_colliding",
    "NormalizationResult",
    "normalize",
    "find_junction_dots",
    "DEFAULT_SNAP_RADIUS",
    "SnapCandidate",
    "SnapKind",
    "get_snap_candidate",
]
