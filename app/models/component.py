"""
ComponentData - Pure Python data models for circuit components.

This module contains no Qt dependencies. Positions are grid Points.

Component types use display names as canonical identifiers:
'Resistor', 'Capacitor', 'Inductor', 'DC Source', 'AC Source', 'NMOS', 'PMOS'

Each type is its own class and renders its own SPICE line, so adding a
type means adding a class (and registering it in COMPONENT_CLASSES).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar

from .geometry import GRID_SIZE, Point, Rect, rotate_offset, to_point

# Mapping of component types to SPICE symbols
SPICE_SYMBOLS = {
    "Resistor": "R",
    "Capacitor": "C",
    "Inductor": "L",
    "DC Source": "V",
    "AC Source": "V",
    "NMOS": "M",
    "PMOS": "M",
}

# Default values per component type
DEFAULT_VALUES = {
    "Resistor": "1000",
    "Capacitor": "1e-06",
    "Inductor": "0.001",
    "DC Source": "12",
    "AC Source": "1",
    "NMOS": "NMOS_MODEL",
    "PMOS": "PMOS_MODEL",
}

# Terminal offsets in grid units, relative to the unrotated component origin.
# Order matters: it is the declaration order used for node discovery.
_TWO_TERMINAL = (("t1", (-2, 0)), ("t2", (2, 0)))
_MOSFET = (("gate", (-2, 0)), ("drain", (0, -2)), ("source", (0, 2)))

TERMINAL_LAYOUTS = {
    "Resistor": _TWO_TERMINAL,
    "Capacitor": _TWO_TERMINAL,
    "Inductor": _TWO_TERMINAL,
    "DC Source": _TWO_TERMINAL,
    "AC Source": _TWO_TERMINAL,
    "NMOS": _MOSFET,
    "PMOS": _MOSFET,
}

# Half-extents of the routing footprint, in grid units (unrotated)
FOOTPRINT_HALF_EXTENTS = (2.0, 1.5)


@dataclass
class ComponentData(ABC):
    """
    Base class for a placed circuit component.

    Terminal positions are always derived from position and rotation on
    read, so moving or rotating a component can never leave a stale
    terminal coordinate behind.
    """

    component_id: str
    value: str
    position: Point
    rotation: int = 0  # degrees: 0, 90, 180, 270

    component_type: ClassVar[str] = ""

    def __post_init__(self):
        self.position = to_point(self.position)
        if self.rotation % 90 != 0:
            raise ValueError(f"Rotation must be a multiple of 90 degrees, got {self.rotation}")
        self.rotation %= 360

    # --- Terminals ---

    def get_terminal_ids(self) -> list[str]:
        """Terminal ids in declaration order."""
        return [terminal_id for terminal_id, _ in TERMINAL_LAYOUTS[self.component_type]]

    def get_local_offset(self, terminal_id: str, grid_size: int = GRID_SIZE) -> tuple[int, int]:
        """Unrotated offset of a terminal from the component origin."""
        for tid, (gx, gy) in TERMINAL_LAYOUTS[self.component_type]:
            if tid == terminal_id:
                return gx * grid_size, gy * grid_size
        raise KeyError(f"{self.component_id} has no terminal {terminal_id!r}")

    def get_terminal_position(self, terminal_id: str, grid_size: int = GRID_SIZE) -> Point:
        """Live absolute position of a terminal (origin + rotated offset)."""
        dx, dy = rotate_offset(*self.get_local_offset(terminal_id, grid_size), self.rotation)
        return Point(self.position.x + dx, self.position.y + dy)

    def get_terminal_positions(self, grid_size: int = GRID_SIZE) -> dict[str, Point]:
        """All live terminal positions, keyed by terminal id in declaration order."""
        return {tid: self.get_terminal_position(tid, grid_size) for tid in self.get_terminal_ids()}

    def has_terminal(self, terminal_id: str) -> bool:
        return terminal_id in self.get_terminal_ids()

    def footprint(self, grid_size: int = GRID_SIZE) -> Rect:
        """Collision rectangle used by the router."""
        half_w, half_h = FOOTPRINT_HALF_EXTENTS
        if self.rotation in (90, 270):
            half_w, half_h = half_h, half_w
        half_w *= grid_size
        half_h *= grid_size
        return Rect(self.position.x - half_w, self.position.y - half_h, half_w * 2, half_h * 2)

    # --- SPICE ---

    def get_spice_symbol(self) -> str:
        """Return the SPICE symbol for this component type."""
        return SPICE_SYMBOLS.get(self.component_type, "X")

    @abstractmethod
    def netlist_line(self, nodes: dict[str, str]) -> str:
        """
        Render this component's SPICE device line.

        Args:
            nodes: Mapping of terminal id -> node name.
        """

    def model_cards(self) -> list[str]:
        """Extra .model cards this component needs (none by default)."""
        return []

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize component to dictionary."""
        return {
            "type": self.component_type,
            "id": self.component_id,
            "value": self.value,
            "pos": {"x": self.position.x, "y": self.position.y},
            "rotation": self.rotation,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ComponentData":
        """Deserialize any component type from dictionary."""
        component_cls = COMPONENT_CLASSES.get(data["type"])
        if component_cls is None:
            raise ValueError(f"Unknown component type: {data['type']!r}")
        component = component_cls(
            component_id=data["id"],
            value=str(data.get("value", DEFAULT_VALUES[component_cls.component_type])),
            position=(data["pos"]["x"], data["pos"]["y"]),
            rotation=data.get("rotation", 0),
        )
        component._load_extra(data)
        return component

    def _load_extra(self, data: dict) -> None:
        """Hook for subclasses with extra serialized fields."""

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self.component_id!r}, value={self.value!r}, "
            f"pos={self.position}, rot={self.rotation})"
        )


class TwoTerminalPassive(ComponentData):
    """R, C and L share the same `id n1 n2 value` line."""

    def netlist_line(self, nodes: dict[str, str]) -> str:
        return f"{self.component_id} {nodes['t1']} {nodes['t2']} {self.value}"


@dataclass(repr=False)
class Resistor(TwoTerminalPassive):
    component_type: ClassVar[str] = "Resistor"


@dataclass(repr=False)
class Capacitor(TwoTerminalPassive):
    component_type: ClassVar[str] = "Capacitor"


@dataclass(repr=False)
class Inductor(TwoTerminalPassive):
    component_type: ClassVar[str] = "Inductor"


@dataclass(repr=False)
class DCSource(ComponentData):
    """DC voltage source. t1 is the negative terminal, t2 the positive one."""

    component_type: ClassVar[str] = "DC Source"
    negative_terminal: ClassVar[str] = "t1"

    def netlist_line(self, nodes: dict[str, str]) -> str:
        # SPICE order is (positive, negative), the reverse of declaration order
        return f"{self.component_id} {nodes['t2']} {nodes['t1']} DC {self.value}"


@dataclass(repr=False)
class ACSource(ComponentData):
    """AC voltage source; value is the magnitude, phase is in degrees."""

    phase: str = "0"

    component_type: ClassVar[str] = "AC Source"
    negative_terminal: ClassVar[str] = "t1"

    def netlist_line(self, nodes: dict[str, str]) -> str:
        return f"{self.component_id} {nodes['t2']} {nodes['t1']} AC {self.value} {self.phase}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["phase"] = self.phase
        return data

    def _load_extra(self, data: dict) -> None:
        self.phase = str(data.get("phase", "0"))


@dataclass(repr=False)
class Mosfet(ComponentData):
    """
    Three-terminal MOSFET (gate, drain, source).

    The bulk is tied to the source. value holds the model name.
    """

    width: str = "10u"
    length: str = "1u"

    channel: ClassVar[str] = ""

    def netlist_line(self, nodes: dict[str, str]) -> str:
        drain, gate, source = nodes["drain"], nodes["gate"], nodes["source"]
        return f"{self.component_id} {drain} {gate} {source} {source} {self.value} W={self.width} L={self.length}"

    def model_cards(self) -> list[str]:
        return [f".model {self.value} {self.channel}"]

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["width"] = self.width
        data["length"] = self.length
        return data

    def _load_extra(self, data: dict) -> None:
        self.width = str(data.get("width", self.width))
        self.length = str(data.get("length", self.length))


@dataclass(repr=False)
class NMOS(Mosfet):
    component_type: ClassVar[str] = "NMOS"
    channel: ClassVar[str] = "NMOS"


@dataclass(repr=False)
class PMOS(Mosfet):
    component_type: ClassVar[str] = "PMOS"
    channel: ClassVar[str] = "PMOS"


COMPONENT_CLASSES: dict[str, type[ComponentData]] = {
    cls.component_type: cls for cls in (Resistor, Capacitor, Inductor, DCSource, ACSource, NMOS, PMOS)
}

COMPONENT_TYPES = list(COMPONENT_CLASSES)


def create_component(
    component_type: str,
    component_id: str,
    position,
    value: str | None = None,
    rotation: int = 0,
) -> ComponentData:
    """
    Build a component of the given display type.

    Raises:
        ValueError: If component_type is not a known type.
    """
    component_cls = COMPONENT_CLASSES.get(component_type)
    if component_cls is None:
        raise ValueError(f"Unknown component type: {component_type!r}")
    return component_cls(
        component_id=component_id,
        value=DEFAULT_VALUES[component_type] if value is None else str(value),
        position=position,
        rotation=rotation,
    )
