"""
simulation/result_parser.py

Parses ngspice simulation output to extract results
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

_OP_ASSIGN_RE = re.compile(r"v\((\w+)\)\s*[=:]\s*([-+]?[\d.]+(?:e[-+]?\d+)?)", re.IGNORECASE)
_OP_PRINT_RE = re.compile(r"^\s*V\((\w+)\)\s+([-+]?[\d.]+(?:e[-+]?\d+)?)\s*$", re.IGNORECASE)
_TABLE_HEADER_RE = re.compile(r"^\s*Index\s+(\S.*)$", re.IGNORECASE)
_TABLE_ROW_RE = re.compile(r"^\s*(\d+)\s+(\S.*)$")
_VECTOR_RE = re.compile(r"^(v|vm|vp)\((\w+)\)$", re.IGNORECASE)


@dataclass
class AcResult:
    """AC sweep vectors, keyed by lower-case node name."""

    frequencies: np.ndarray
    magnitude: dict[str, np.ndarray] = field(default_factory=dict)
    phase: dict[str, np.ndarray] = field(default_factory=dict)


@dataclass
class TranResult:
    """Transient vectors, keyed by lower-case node name."""

    time: np.ndarray
    voltages: dict[str, np.ndarray] = field(default_factory=dict)


@dataclass
class SolverResults:
    """Everything parsed from one solver run."""

    op: dict[str, float] = field(default_factory=dict)
    ac: Optional[AcResult] = None
    tran: Optional[TranResult] = None


class ResultParser:
    """Parses ngspice simulation results"""

    @staticmethod
    def parse_op_results(output: str) -> dict[str, float]:
        """Parse operating point output into {node_name: voltage} (names lower-cased)."""
        node_voltages = {}
        lines = output.split("\n")

        for i, line in enumerate(lines):
            # v(node) = voltage
            match = _OP_ASSIGN_RE.search(line)
            if match:
                node_voltages[match.group(1).lower()] = float(match.group(2))
                continue

            # Node / Voltage table printed by .op in batch mode
            if "node" in line.lower() and "voltage" in line.lower():
                for j in range(i + 1, min(i + 50, len(lines))):
                    result_line = lines[j].strip()
                    if not result_line or result_line.startswith("-"):
                        continue
                    if result_line.startswith("*") or result_line.lower().startswith("source"):
                        break
                    parts = result_line.split()
                    if len(parts) >= 2:
                        try:
                            node_name = parts[0].lower().replace("v(", "").replace(")", "")
                            node_voltages[node_name] = float(parts[1])
                        except ValueError:
                            continue

        # print output: "V(5)     1.000000e-06"
        for line in lines:
            match = _OP_PRINT_RE.match(line)
            if match:
                node_voltages[match.group(1).lower()] = float(match.group(2))

        return node_voltages

    @staticmethod
    def parse_print_tables(output: str) -> tuple[list[str], np.ndarray]:
        """
        Collect the ``Index ...`` tables written by .PRINT into one array.

        ngspice repeats the header on every page and splits wide prints
        into several tables; rows are merged on their index column.

        Returns:
            (column_names, data) with one row per index, NaN where a
            column was missing for that index.
        """
        columns: list[str] = []
        rows: dict[int, dict[str, float]] = {}
        current: Optional[list[str]] = None

        for line in output.splitlines():
            header = _TABLE_HEADER_RE.match(line)
            if header:
                current = [name.lower() for name in header.group(1).split()]
                for name in current:
                    if name not in columns:
                        columns.append(name)
                continue
            if current is None:
                continue
            row = _TABLE_ROW_RE.match(line)
            if not row:
                continue
            try:
                values = [float(v.rstrip(",")) for v in row.group(2).split()]
            except ValueError:
                continue
            if len(values) != len(current):
                continue
            rows.setdefault(int(row.group(1)), {}).update(zip(current, values))

        if not rows:
            return columns, np.empty((0, len(columns)))
        data = np.array([[rows[i].get(c, np.nan) for c in columns] for i in sorted(rows)], dtype=float)
        return columns, data

    @staticmethod
    def parse_ac_results(output: str) -> Optional[AcResult]:
        """Parse AC sweep print tables (VM/VP columns)."""
        columns, data = ResultParser.parse_print_tables(output)
        if "frequency" not in columns or data.size == 0:
            return None
        result = AcResult(frequencies=data[:, columns.index("frequency")])
        for index, name in enumerate(columns):
            match = _VECTOR_RE.match(name)
            if not match:
                continue
            kind, node = match.group(1).lower(), match.group(2).lower()
            if kind == "vp":
                result.phase[node] = data[:, index]
            else:
                result.magnitude[node] = data[:, index]
        return result

    @staticmethod
    def parse_transient_results(output: str) -> Optional[TranResult]:
        """Parse transient print tables (V columns)."""
        columns, data = ResultParser.parse_print_tables(output)
        if "time" not in columns or data.size == 0:
            return None
        result = TranResult(time=data[:, columns.index("time")])
        for index, name in enumerate(columns):
            match = _VECTOR_RE.match(name)
            if match and match.group(1).lower() == "v":
                result.voltages[match.group(2).lower()] = data[:, index]
        return result

    @staticmethod
    def parse(output: str, analysis_type: str) -> SolverResults:
        """Parse output according to the analysis that produced it."""
        results = SolverResults()
        if analysis_type == "DC Operating Point":
            results.op = ResultParser.parse_op_results(output)
        elif analysis_type == "AC Sweep":
            results.ac = ResultParser.parse_ac_results(output)
        elif analysis_type == "Transient":
            results.tran = ResultParser.parse_transient_results(output)
        else:
            raise ValueError(f"Unknown analysis type: {analysis_type}")
        if not results.op and results.ac is None and results.tran is None:
            logger.error("No %s results found in simulator output", analysis_type)
        return results


def analysis_type_of(netlist: str) -> str:
    """Infer the analysis type from a netlist's control cards."""
    for line in netlist.splitlines():
        card = line.strip().upper()
        if card.startswith(".AC"):
            return "AC Sweep"
        if card.startswith(".TRAN"):
            return "Transient"
    return "DC Operating Point"
