"""
simulation/netlist_generator.py

Collapses the drawn wires into electrical nodes and renders a SPICE netlist.

Connectivity is purely geometric: every terminal position and every wire
point is a union-find key, consecutive points of a wire are joined, and
each resulting class becomes one node. Nothing here mutates the model.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from models.circuit import CircuitModel
from models.component import DCSource
from models.geometry import Point
from models.wire import TerminalRef

logger = logging.getLogger(__name__)

GROUND_NODE = "0"

ANALYSIS_TYPES = ("DC Operating Point", "AC Sweep", "Transient")

DEFAULT_ANALYSIS_PARAMS = {
    "AC Sweep": {"sweep_type": "dec", "points": 10, "fStart": 1, "fStop": 1e6},
    "Transient": {"step": 1e-5, "duration": 1e-3, "start": 0},
}


@dataclass
class UnconnectedTerminalWarning:
    """A terminal that no wire reaches and no other terminal touches."""

    component_id: str
    terminal_id: str
    position: Point

    @property
    def placeholder(self) -> str:
        """Node name written to the netlist in place of a real node."""
        return f"{self.component_id}_{self.terminal_id}_unconnected"

    def __str__(self) -> str:
        return f"{self.component_id}.{self.terminal_id} at {self.position} is not connected"


@dataclass
class NetlistResult:
    """Output of connectivity resolution."""

    netlist_text: str
    terminal_to_node: dict[TerminalRef, str] = field(default_factory=dict)
    ground_node: Optional[str] = None
    unconnected_terminals: list[UnconnectedTerminalWarning] = field(default_factory=list)
    nodes: list[str] = field(default_factory=list)

    @property
    def device_lines(self) -> list[str]:
        return self.netlist_text.splitlines()


class UnionFind:
    """Disjoint sets over hashable keys, remembering insertion order."""

    def __init__(self):
        self._parent: dict = {}

    def add(self, key) -> None:
        self._parent.setdefault(key, key)

    def find(self, key):
        root = key
        while self._parent[root] != root:
            root = self._parent[root]
        # Path compression
        while self._parent[key] != root:
            self._parent[key], key = root, self._parent[key]
        return root

    def union(self, a, b) -> None:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a != root_b:
            self._parent[root_b] = root_a

    def __contains__(self, key) -> bool:
        return key in self._parent

    def __iter__(self):
        return iter(self._parent)

    def __len__(self) -> int:
        return len(self._parent)


class ConnectivityResolver:
    """Resolves a CircuitModel into named nodes and SPICE device lines."""

    def __init__(self, model: CircuitModel):
        self.model = model

    def resolve(self) -> NetlistResult:
        """
        Build the node map and device lines.

        Raises:
            MissingComponentError: A pinned wire point references a
                component that no longer exists.
        """
        model = self.model
        uf = UnionFind()

        terminals = list(model.iter_terminals())
        for _, position in terminals:
            uf.add(position)

        wire_keys = set()
        for wire in model.wires.values():
            points = model.wire_points(wire)
            for point in points:
                uf.add(point.position)
                wire_keys.add(point.position)
                if point.terminal_ref is not None:
                    # A stale pin still connects to its terminal
                    terminal_position = model.terminal_position(point.terminal_ref)
                    uf.add(terminal_position)
                    uf.union(point.position, terminal_position)
                    wire_keys.add(terminal_position)
            for a, b in zip(points, points[1:]):
                uf.union(a.position, b.position)

        terminal_counts = Counter(uf.find(position) for _, position in terminals)
        wired_roots = {uf.find(key) for key in wire_keys}

        names: dict = {}
        for key in uf:
            root = uf.find(key)
            if root in names:
                continue
            if root not in wired_roots and terminal_counts[root] <= 1:
                continue
            names[root] = f"N{len(names) + 1}"

        ground_node = None
        ground_source = next((c for c in model.components.values() if isinstance(c, DCSource)), None)
        if ground_source is not None:
            negative = ground_source.get_terminal_position(ground_source.negative_terminal, model.grid_size)
            root = uf.find(negative)
            if root in names:
                logger.debug("Grounding node %s at %s (%s)", names[root], negative, ground_source.component_id)
                names[root] = GROUND_NODE
                ground_node = GROUND_NODE

        terminal_to_node: dict[TerminalRef, str] = {}
        unconnected: list[UnconnectedTerminalWarning] = []
        for ref, position in terminals:
            name = names.get(uf.find(position))
            if name is None:
                unconnected.append(UnconnectedTerminalWarning(ref.component_id, ref.terminal_id, position))
            else:
                terminal_to_node[ref] = name

        placeholders = {(w.component_id, w.terminal_id): w.placeholder for w in unconnected}
        lines = []
        model_cards = []
        for component in model.components.values():
            nodes = {}
            for terminal_id in component.get_terminal_ids():
                ref = TerminalRef(component.component_id, terminal_id)
                nodes[terminal_id] = terminal_to_node.get(ref) or placeholders[ref]
            lines.append(component.netlist_line(nodes))
            for card in component.model_cards():
                if card not in model_cards:
                    model_cards.append(card)
        lines.extend(model_cards)

        logger.debug(
            "Resolved %d keys into %d nodes (%d unconnected terminals)",
            len(uf),
            len(names),
            len(unconnected),
        )
        return NetlistResult(
            netlist_text="\n".join(lines),
            terminal_to_node=terminal_to_node,
            ground_node=ground_node,
            unconnected_terminals=unconnected,
            nodes=list(names.values()),
        )


def control_cards(analysis_type: str, analysis_params: Optional[dict], nodes: list[str]) -> list[str]:
    """
    Analysis command and matching print cards.

    Args:
        analysis_type: One of ANALYSIS_TYPES.
        analysis_params: Overrides for DEFAULT_ANALYSIS_PARAMS[analysis_type].
        nodes: Node names to print (ground is skipped).

    Raises:
        ValueError: Unknown analysis type.
    """
    params = dict(DEFAULT_ANALYSIS_PARAMS.get(analysis_type, {}))
    params.update(analysis_params or {})
    printable = [n for n in nodes if n != GROUND_NODE]

    if analysis_type == "DC Operating Point":
        return [".OP"]
    if analysis_type == "AC Sweep":
        cards = [f".AC {str(params['sweep_type']).upper()} {params['points']} {params['fStart']} {params['fStop']}"]
        if printable:
            cards.append(".PRINT AC " + " ".join(f"VM({n}) VP({n})" for n in printable))
        return cards
    if analysis_type == "Transient":
        tran = f".TRAN {params['step']} {params['duration']}"
        if params.get("start"):
            tran += f" {params['start']}"
        cards = [tran]
        if printable:
            cards.append(".PRINT TRAN " + " ".join(f"V({n})" for n in printable))
        return cards
    raise ValueError(f"Unknown analysis type: {analysis_type}")


class NetlistGenerator:
    """Generates a complete SPICE deck from a CircuitModel."""

    def __init__(self, model: CircuitModel, analysis_type: Optional[str] = None,
                 analysis_params: Optional[dict] = None, title: str = "spice-sketch circuit"):
        self.model = model
        self.analysis_type = analysis_type or model.analysis_type
        self.analysis_params = model.analysis_params if analysis_params is None else analysis_params
        self.title = title

    def resolve(self) -> NetlistResult:
        return ConnectivityResolver(self.model).resolve()

    def generate(self, resolution: Optional[NetlistResult] = None) -> str:
        """
        Generate the complete netlist.

        Args:
            resolution: A result from resolve() to reuse; resolved afresh if None.
        """
        if resolution is None:
            resolution = self.resolve()
        lines = [f"* {self.title}"]
        if resolution.netlist_text:
            lines.extend(resolution.device_lines)
        lines.append("")
        lines.extend(control_cards(self.analysis_type, self.analysis_params, resolution.nodes))
        lines.append(".END")
        return "\n".join(lines)
