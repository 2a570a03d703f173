"""
GridSnapshot - Pure Python data model for the component grid.

The grid is stored sparsely: only occupied cells are kept, keyed by
position. Empty in-range positions are synthesized on lookup.
"""

import logging
from dataclasses import dataclass, replace
from typing import Iterator, Optional

from .module import MODULE_LIBRARY, ModuleDefinition, get_module
from .pin import PinDefinition
from .wire import Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridCell:
    """
    One grid position.

    ``cell_index`` selects the pin of ``module`` this position represents.
    ``voltage``/``current``/``is_powered`` are display state written by the
    solver onto new cell objects.
    """

    x: int
    y: int
    occupied: bool = False
    component_id: Optional[str] = None
    component_type: Optional[str] = None
    module: Optional[ModuleDefinition] = None
    cell_index: int = 0
    resistance: Optional[float] = None

    voltage: float = 0.0
    current: float = 0.0
    is_powered: bool = False

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    @property
    def pin(self) -> Optional[PinDefinition]:
        """Pin definition for this cell, or None for empty or malformed cells."""
        if self.module is None:
            return None
        return self.module.cell(self.cell_index)

    @property
    def is_malformed(self) -> bool:
        """Occupied but missing module or pin data."""
        return self.occupied and (self.component_id is None or self.pin is None)

    def with_state(self, voltage: float, current: float, is_powered: bool) -> "GridCell":
        return replace(self, voltage=voltage, current=current, is_powered=is_powered)

    def to_dict(self) -> dict:
        data = {
            "x": self.x,
            "y": self.y,
            "occupied": self.occupied,
            "componentId": self.component_id,
            "componentType": self.component_type,
            "cellIndex": self.cell_index,
            "voltage": self.voltage,
            "current": self.current,
            "isPowered": self.is_powered,
        }
        if self.module is not None:
            data["module"] = _module_ref(self.module)
        if self.resistance is not None:
            data["resistance"] = self.resistance
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "GridCell":
        module = data.get("module")
        resistance = data.get("resistance")
        return cls(
            x=int(data["x"]),
            y=int(data["y"]),
            occupied=bool(data.get("occupied", True)),
            component_id=data.get("componentId"),
            component_type=data.get("componentType"),
            module=_resolve_module(module) if module is not None else None,
            cell_index=int(data.get("cellIndex", 0)),
            resistance=float(resistance) if resistance is not None else None,
            voltage=float(data.get("voltage", 0.0)),
            current=float(data.get("current", 0.0)),
            is_powered=bool(data.get("isPowered", False)),
        )


def _module_ref(module: ModuleDefinition):
    """Library modules serialize by name; custom modules inline."""
    if MODULE_LIBRARY.get(module.module) == module:
        return module.module
    return module.to_dict()


def _resolve_module(ref) -> ModuleDefinition:
    if isinstance(ref, ModuleDefinition):
        return ref
    if isinstance(ref, dict):
        return ModuleDefinition.from_dict(ref)
    return get_module(str(ref))


class GridSnapshot:
    """
    Immutable-by-convention grid input for the solver.

    Built with ``place_component`` (or ``from_dict``). The solver only
    reads it; refreshed grids are returned as new snapshots.
    """

    def __init__(self, width: int, height: int, cells: Optional[dict[Position, GridCell]] = None):
        if width <= 0 or height <= 0:
            raise ValueError(f"Grid dimensions must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self._cells: dict[Position, GridCell] = dict(cells or {})

    # --- Queries ---

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def cell_at(self, x: int, y: int) -> Optional[GridCell]:
        """Cell at (x, y); an empty cell for free positions, None when out of range."""
        if not self.in_bounds(x, y):
            return None
        cell = self._cells.get((x, y))
        if cell is None:
            return GridCell(x, y)
        return cell

    def is_occupied(self, x: int, y: int) -> bool:
        cell = self._cells.get((x, y))
        return cell is not None and cell.occupied

    def occupied_cells(self) -> Iterator[GridCell]:
        """Occupied cells in row-major order."""
        for pos in sorted(self._cells, key=lambda p: (p[1], p[0])):
            cell = self._cells[pos]
            if cell.occupied:
                yield cell

    def component_cells(self, component_id: str) -> list[GridCell]:
        """All cells of one component, ordered by cell index."""
        cells = [c for c in self.occupied_cells() if c.component_id == component_id]
        return sorted(cells, key=lambda c: c.cell_index)

    def component_ids(self) -> list[str]:
        """Component ids in first-seen row-major order."""
        ids: list[str] = []
        for cell in self.occupied_cells():
            if cell.component_id is not None and cell.component_id not in ids:
                ids.append(cell.component_id)
        return ids

    def rows(self) -> list[list[GridCell]]:
        """Dense 2D view, ``rows()[y][x]``."""
        return [[self.cell_at(x, y) for x in range(self.width)] for y in range(self.height)]

    # --- Building ---

    def place_component(
        self,
        component_id: str,
        module: ModuleDefinition,
        x: int,
        y: int,
        component_type: Optional[str] = None,
        resistance: Optional[float] = None,
    ) -> list[GridCell]:
        """
        Place every footprint cell of *module* with its origin at (x, y).

        Raises:
            ValueError: if a cell is out of range, a position is taken, or the
                component id is already placed.
        """
        if any(c.component_id == component_id for c in self._cells.values()):
            raise ValueError(f"Component '{component_id}' is already placed")

        positions = [(x + pin.x, y + pin.y) for pin in module.grid]
        for px, py in positions:
            if not self.in_bounds(px, py):
                raise ValueError(f"Cell ({px}, {py}) of '{component_id}' is outside the {self.width}x{self.height} grid")
            if self.is_occupied(px, py):
                raise ValueError(f"Cell ({px}, {py}) is already occupied by '{self._cells[(px, py)].component_id}'")
        if len(set(positions)) != len(positions):
            raise ValueError(f"Module '{module.module}' has overlapping footprint cells")

        placed = []
        for index, (px, py) in enumerate(positions):
            cell = GridCell(
                x=px,
                y=py,
                occupied=True,
                component_id=component_id,
                component_type=component_type or module.module,
                module=module,
                cell_index=index,
                resistance=resistance,
            )
            self._cells[(px, py)] = cell
            placed.append(cell)
        logger.debug("Placed %s (%s) at (%d, %d)", component_id, module.module, x, y)
        return placed

    def with_cells(self, updates: dict[Position, GridCell]) -> "GridSnapshot":
        """Return a new snapshot with *updates* applied over this one."""
        cells = dict(self._cells)
        cells.update(updates)
        return GridSnapshot(self.width, self.height, cells)

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Compact form: dimensions plus occupied cells only."""
        return {
            "width": self.width,
            "height": self.height,
            "cells": [cell.to_dict() for cell in self.occupied_cells()],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GridSnapshot":
        """
        Rebuild a snapshot from either the ``components`` form (placed by
        origin) or the compact ``cells`` form.
        """
        grid = cls(int(data["width"]), int(data["height"]))
        for comp in data.get("components", []):
            module = _resolve_module(comp["module"])
            resistance = comp.get("resistance")
            grid.place_component(
                component_id=str(comp["componentId"]),
                module=module,
                x=int(comp["x"]),
                y=int(comp["y"]),
                component_type=comp.get("componentType"),
                resistance=float(resistance) if resistance is not None else None,
            )
        for cell_data in data.get("cells", []):
            cell = GridCell.from_dict(cell_data)
            if not grid.in_bounds(cell.x, cell.y):
                logger.warning("Dropping out-of-range cell (%d, %d)", cell.x, cell.y)
                continue
            grid._cells[cell.position] = cell
        return grid

    def __eq__(self, other) -> bool:
        if not isinstance(other, GridSnapshot):
            return NotImplemented
        return self.width == other.width and self.height == other.height and self._cells == other._cells

    def __repr__(self) -> str:
        return f"GridSnapshot({self.width}x{self.height}, components={len(self.component_ids())})"
