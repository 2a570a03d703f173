"""
electrical/topology.py

Builds the position-adjacency graph from wire segments and finds
junction nodes.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from models.grid import GridSnapshot
from models.wire import Position, WireData

from .config import DEFAULT_CONFIG, SolverConfig

logger = logging.getLogger(__name__)

# 4-neighbour offsets used by the no-wire fallback
_NEIGHBOUR_OFFSETS = ((1, 0), (0, 1), (-1, 0), (0, -1))


class ConnectionGraph:
    """
    Undirected adjacency between grid positions.

    Positions and their neighbour sets keep insertion order, which makes
    the branch walk deterministic for a given wire list.
    """

    def __init__(self):
        self._adjacency: dict[Position, dict[Position, None]] = {}
        self._endpoint_refs: dict[Position, int] = {}

    def add_edge(self, a: Position, b: Position) -> None:
        self._adjacency.setdefault(a, {})
        self._adjacency.setdefault(b, {})
        self._adjacency[a][b] = None
        self._adjacency[b][a] = None
        self._endpoint_refs[a] = self._endpoint_refs.get(a, 0) + 1
        self._endpoint_refs[b] = self._endpoint_refs.get(b, 0) + 1

    def neighbors(self, pos: Position) -> list[Position]:
        return list(self._adjacency.get(pos, ()))

    def endpoint_refs(self, pos: Position) -> int:
        """How many segment endpoints reference *pos*."""
        return self._endpoint_refs.get(pos, 0)

    def positions(self) -> list[Position]:
        return list(self._adjacency)

    def items(self) -> Iterator[tuple[Position, list[Position]]]:
        for pos, adjacent in self._adjacency.items():
            yield pos, list(adjacent)

    def __contains__(self, pos) -> bool:
        return pos in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def __repr__(self) -> str:
        return f"ConnectionGraph(positions={len(self._adjacency)})"


@dataclass
class CircuitNode:
    """A junction position in the connection graph."""

    position: Position
    connections: list[Position] = field(default_factory=list)
    is_component_junction: bool = False


def build_connection_graph(
    wires: Iterable[WireData],
    grid: GridSnapshot,
    config: SolverConfig = DEFAULT_CONFIG,
    warnings: Optional[list[str]] = None,
) -> ConnectionGraph:
    """
    Connect the two endpoints of every wire segment.

    Segments with an endpoint outside the grid are skipped with a warning.
    With no wires at all, touching occupied cells are connected instead.
    """
    graph = ConnectionGraph()
    wires = list(wires)

    for wire in wires:
        for segment in wire.segments:
            bad = [p for p in segment.endpoints if not grid.in_bounds(*p)]
            if bad:
                msg = f"Wire {wire.wire_id}: segment {segment.start}->{segment.end} is outside the grid, skipped"
                logger.warning(msg)
                if warnings is not None:
                    warnings.append(msg)
                continue
            graph.add_edge(segment.start, segment.end)

    if not wires and config.adjacency_fallback:
        _connect_adjacent_cells(graph, grid)

    logger.debug("Connection graph: %d positions", len(graph))
    return graph


def _connect_adjacent_cells(graph: ConnectionGraph, grid: GridSnapshot) -> None:
    """Touching components are connected: link 4-neighbour occupied cells."""
    for cell in grid.occupied_cells():
        for dx, dy in _NEIGHBOUR_OFFSETS:
            nx, ny = cell.x + dx, cell.y + dy
            if not grid.is_occupied(nx, ny):
                continue
            # pins of one component are not shorted together
            if grid.cell_at(nx, ny).component_id == cell.component_id:
                continue
            # each pair once
            if (nx, ny) in graph.neighbors(cell.position):
                continue
            graph.add_edge(cell.position, (nx, ny))


def find_circuit_nodes(grid: GridSnapshot, graph: ConnectionGraph) -> dict[Position, CircuitNode]:
    """
    Junctions: positions referenced by more than two segment endpoints, or
    occupied positions with two or more connections.
    """
    nodes: dict[Position, CircuitNode] = {}
    for pos, adjacent in graph.items():
        is_junction = graph.endpoint_refs(pos) > 2
        is_component_junction = grid.is_occupied(*pos) and len(adjacent) >= 2
        if is_junction or is_component_junction:
            nodes[pos] = CircuitNode(pos, adjacent, is_component_junction)
    return nodes
