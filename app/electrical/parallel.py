"""
electrical/parallel.py

Detects resistors wired across the same junctions and combines them with
the reciprocal-sum law.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable

import numpy as np

from models.grid import GridCell, GridSnapshot
from models.wire import Position

from .config import DEFAULT_CONFIG, SolverConfig
from .topology import ConnectionGraph

logger = logging.getLogger(__name__)

RESISTOR_KIND = "resistor"


def calculate_parallel_resistance(resistances: Iterable[float]) -> float:
    """
    R = 1 / sum(1 / Ri).

    An empty set gives 0, a single value is returned as-is, and any zero
    resistance shorts the group to 0.
    """
    values = np.asarray(list(resistances), dtype=float)
    if values.size == 0:
        return 0.0
    if values.size == 1:
        return float(values[0])
    if np.any(values == 0):
        return 0.0
    reciprocal_sum = float(np.sum(1.0 / values))
    return 1.0 / reciprocal_sum if reciprocal_sum > 0 else 0.0


def resistance_of(cell: GridCell, config: SolverConfig = DEFAULT_CONFIG) -> float:
    """Cell override, then pin, then module property, then the default."""
    if cell.resistance is not None:
        return float(cell.resistance)
    pin = cell.pin
    if pin is not None and pin.resistance is not None:
        return float(pin.resistance)
    if cell.module is not None:
        value = cell.module.get_property("resistance")
        if value is not None:
            return float(value)
    return config.default_resistance


@dataclass
class ParallelMember:
    component_id: str
    component_type: str
    position: Position
    resistance: float
    cell: GridCell


@dataclass
class ParallelBranch:
    """Resistors in parallel. ``current``/``voltage`` are filled in by the solver."""

    members: list[ParallelMember] = field(default_factory=list)
    current: float = 0.0
    voltage: float = 0.0

    @property
    def branch_id(self) -> str:
        return "parallel-" + "-".join(m.component_id for m in self.members)

    @property
    def component_ids(self) -> list[str]:
        return [m.component_id for m in self.members]

    @property
    def total_resistance(self) -> float:
        return calculate_parallel_resistance(m.resistance for m in self.members)

    def __contains__(self, component_id) -> bool:
        return component_id in self.component_ids


def _resistor_cells(grid: GridSnapshot) -> dict[str, list[GridCell]]:
    found: dict[str, list[GridCell]] = {}
    for cell in grid.occupied_cells():
        if cell.is_malformed or cell.module.kind != RESISTOR_KIND:
            continue
        found.setdefault(cell.component_id, []).append(cell)
    return found


def find_parallel_resistors(
    grid: GridSnapshot,
    graph: ConnectionGraph,
    config: SolverConfig = DEFAULT_CONFIG,
) -> list[ParallelBranch]:
    """
    Group resistors whose connection sets share two or more positions.

    A resistor's connection set is the union of the graph neighbours of
    all its cells.
    """
    resistors = _resistor_cells(grid)
    ids = list(resistors)
    neighbourhoods = {
        rid: {n for cell in cells for n in graph.neighbors(cell.position)} for rid, cells in resistors.items()
    }
    logger.debug("Found %d resistors in grid", len(ids))

    processed: set[str] = set()
    branches: list[ParallelBranch] = []
    for i, first in enumerate(ids):
        if first in processed:
            continue
        processed.add(first)
        group = [first]
        for second in ids[i + 1 :]:
            if second in processed:
                continue
            shared = neighbourhoods[first] & neighbourhoods[second]
            if len(shared) >= 2:
                group.append(second)
                processed.add(second)
                logger.debug("Parallel resistors %s and %s share %d positions", first, second, len(shared))

        if len(group) > 1:
            members = []
            for rid in group:
                cell = resistors[rid][0]
                members.append(
                    ParallelMember(
                        component_id=rid,
                        component_type=cell.component_type or cell.module.module,
                        position=cell.position,
                        resistance=resistance_of(cell, config),
                        cell=cell,
                    )
                )
            branches.append(ParallelBranch(members))
    return branches
