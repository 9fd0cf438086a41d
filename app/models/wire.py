"""
WireData - Pure Python data model for circuit wires.

This module contains no Qt dependencies. A wire is an ordered list of
point ids into the circuit's point arena; the WirePoint objects carry the
coordinates and the pin/junction metadata.
"""

from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from .geometry import Point


class InvalidWireError(ValueError):
    """Raised when a wire would violate its structural invariants."""


class TerminalRef(NamedTuple):
    """Identifies one terminal of one component."""

    component_id: str
    terminal_id: str


@dataclass
class WirePoint:
    """
    A vertex of a wire polyline.

    A point with a terminal_ref is pinned: it must always sit on that
    terminal's live position. A point with is_junction set survives
    simplification even when it is geometrically redundant.
    """

    point_id: int
    x: int
    y: int
    terminal_ref: Optional[TerminalRef] = None
    is_junction: bool = False

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def move_to(self, position: Point) -> None:
        self.x, self.y = position

    @property
    def is_pinned(self) -> bool:
        return self.terminal_ref is not None

    def to_dict(self) -> dict:
        data = {"x": self.x, "y": self.y}
        if self.terminal_ref is not None:
            data["terminal"] = {
                "componentId": self.terminal_ref.component_id,
                "terminalId": self.terminal_ref.terminal_id,
            }
        if self.is_junction:
            data["junction"] = True
        return data

    def __repr__(self) -> str:
        flags = ""
        if self.terminal_ref is not None:
            flags += f" pin={self.terminal_ref.component_id}.{self.terminal_ref.terminal_id}"
        if self.is_junction:
            flags += " junction"
        return f"WirePoint#{self.point_id}({self.x},{self.y}{flags})"


@dataclass
class WireData:
    """
    Pure Python data class representing a drawn wire.

    Invariants (enforced by CircuitModel): at least two points, and every
    consecutive pair of points shares an x or a y coordinate.
    """

    wire_id: str
    point_ids: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.point_ids)

    @property
    def segment_count(self) -> int:
        return max(len(self.point_ids) - 1, 0)

    def __repr__(self) -> str:
        return f"WireData({self.wire_id}, points={len(self.point_ids)})"
