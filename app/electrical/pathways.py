"""
electrical/pathways.py

Enumerates circuit branches by a depth-first walk from a power source,
and checks source-to-ground continuity.

The walk shares one visited set across the whole search, so a position
is expanded at most once per source. It runs on an explicit frame stack
so deep grids cannot exhaust the interpreter's recursion limit.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Iterable, Optional

from models.grid import GridCell, GridSnapshot
from models.wire import Position

from .sources import is_ground_cell
from .topology import ConnectionGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PathwayComponent:
    """A component met on a branch, at the cell where the walk entered it."""

    component_id: str
    component_type: str
    position: Position
    cell: GridCell

    @property
    def kind(self) -> str:
        return self.cell.module.kind

    @property
    def module(self):
        return self.cell.module


@dataclass
class CircuitBranch:
    """Ordered, id-deduplicated components plus the positions the walk visited."""

    components: list[PathwayComponent] = field(default_factory=list)
    positions: list[Position] = field(default_factory=list)

    @property
    def component_ids(self) -> list[str]:
        return [c.component_id for c in self.components]

    def __len__(self) -> int:
        return len(self.components)


# One source's branches
BranchPathway = list[CircuitBranch]


@dataclass
class _Frame:
    position: Position
    own: list[PathwayComponent]
    targets: list[Position]
    next_target: int = 0
    branches: list[CircuitBranch] = field(default_factory=list)

    def own_branch(self) -> CircuitBranch:
        return CircuitBranch(list(self.own), [self.position])

    def merge(self, child: CircuitBranch) -> None:
        """Prefix the child with this frame's component, skipping duplicate ids."""
        components = list(self.own)
        seen = {c.component_id for c in components}
        for comp in child.components:
            if comp.component_id not in seen:
                components.append(comp)
                seen.add(comp.component_id)
        self.branches.append(CircuitBranch(components, [self.position] + child.positions))


class BranchFinder:
    """
    Walks the connection graph of one snapshot.

    At each position the occupying component (if any) joins the branch.
    A neighbour occupied by a component is not entered directly: the walk
    continues from every connection point of that component instead, so
    all exit pins of a multi-pin component are explored.
    """

    def __init__(self, grid: GridSnapshot, graph: ConnectionGraph):
        self.grid = grid
        self.graph = graph
        self._connection_points: dict[str, list[Position]] = {}

    def connection_points(self, component_id: str) -> list[Position]:
        """
        Graph positions touching *component_id*: every key with a neighbour
        cell owned by the component, and that neighbour.
        """
        cached = self._connection_points.get(component_id)
        if cached is not None:
            return cached
        points: dict[Position, None] = {}
        for key, adjacent in self.graph.items():
            for neighbour in adjacent:
                if self._owner(neighbour) == component_id:
                    points[key] = None
                    points[neighbour] = None
        self._connection_points[component_id] = list(points)
        return self._connection_points[component_id]

    def walk(self, start: Position) -> BranchPathway:
        """Raw branch list from *start*, in walk order, before pruning."""
        visited: set[Position] = set()

        root = self._enter(start, visited)
        if not isinstance(root, _Frame):
            return root

        stack: list[_Frame] = [root]
        result: BranchPathway = []
        while stack:
            frame = stack[-1]
            if frame.next_target >= len(frame.targets):
                stack.pop()
                result = frame.branches or [frame.own_branch()]
                if stack:
                    for branch in result:
                        stack[-1].merge(branch)
                continue

            target = frame.targets[frame.next_target]
            frame.next_target += 1
            child = self._enter(target, visited)
            if isinstance(child, _Frame):
                stack.append(child)
            else:
                for branch in child:
                    frame.merge(branch)
        return result

    def find_branches(self, start: Position) -> BranchPathway:
        branches = prune_branches(self.walk(start))
        logger.debug("Walk from %s: %d branch(es)", start, len(branches))
        return branches

    def has_continuity(self, start: Position, through: Optional[Iterable[str]] = None) -> bool:
        """
        True if a conductive path joins *start* to a ground pin.

        The path follows wires and may pass through component bodies,
        never the source's own: a battery does not ground itself. With
        *through* given, only those components' bodies conduct, which
        decides continuity for a single branch.
        """
        source_id = self._owner(start)
        allowed = None if through is None else set(through)
        seen = {start}
        queue = deque([start])
        while queue:
            pos = queue.popleft()
            cell = self.grid.cell_at(*pos)
            if pos != start and cell is not None and is_ground_cell(cell):
                return True
            following = list(self.graph.neighbors(pos))
            owner = self._owner(pos)
            if (
                owner is not None
                and owner != source_id
                and not cell.is_malformed
                and (allowed is None or owner in allowed)
            ):
                following.extend(c.position for c in self.grid.component_cells(owner))
            for nxt in following:
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return False

    def _owner(self, pos: Position):
        cell = self.grid.cell_at(*pos)
        if cell is None or not cell.occupied:
            return None
        return cell.component_id

    def _enter(self, pos: Position, visited: set[Position]):
        """Start visiting *pos*: a finished branch list, or a frame to expand."""
        if pos in visited:
            return []
        visited.add(pos)

        cell = self.grid.cell_at(*pos)
        own: list[PathwayComponent] = []
        if cell is not None and cell.occupied and cell.component_id is not None and cell.pin is not None:
            own.append(
                PathwayComponent(
                    component_id=cell.component_id,
                    component_type=cell.component_type or cell.module.module,
                    position=pos,
                    cell=cell,
                )
            )

        neighbours = self.graph.neighbors(pos)
        if not neighbours:
            return [CircuitBranch(own, [pos])]

        targets: list[Position] = []
        for neighbour in neighbours:
            owner = self._owner(neighbour)
            if owner is not None:
                targets.extend(p for p in self.connection_points(owner) if p != pos)
            else:
                targets.append(neighbour)
        return _Frame(pos, own, targets)


def prune_branches(branches: BranchPathway) -> BranchPathway:
    """
    Drop repeated branches and branches whose components all appear in a
    longer branch. Order of the survivors is kept.
    """
    kept: BranchPathway = []
    seen: set[tuple[str, ...]] = set()
    for branch in branches:
        key = tuple(branch.component_ids)
        if not key or key in seen:
            continue
        seen.add(key)
        kept.append(branch)

    pruned = []
    for branch in kept:
        ids = set(branch.component_ids)
        if any(other is not branch and ids < set(other.component_ids) for other in kept):
            continue
        pruned.append(branch)
    return pruned


def find_circuit_branches(start: Position, grid: GridSnapshot, graph: ConnectionGraph) -> BranchPathway:
    """Branches reachable from *start*; each is an ordered component sequence."""
    return BranchFinder(grid, graph).find_branches(start)
