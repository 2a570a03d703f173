"""
electrical/sources.py

Locates power sources and ground points on the grid.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.grid import GridCell, GridSnapshot
from models.pin import SUPPLY_ROLES
from models.wire import Position

from .config import DEFAULT_CONFIG, SolverConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PowerSource:
    """A powered supply pin of a dedicated power component."""

    component_id: str
    position: Position
    voltage: float
    max_current: float


def is_power_source_cell(cell: GridCell) -> bool:
    """
    A cell supplies power only if its module is a battery/power supply,
    the pin is VCC/POSITIVE and powerable, and its voltage is positive.
    Microcontroller pins never qualify.
    """
    if not cell.occupied or cell.component_id is None:
        return False
    pin = cell.pin
    if pin is None or not cell.module.is_power_supply:
        return False
    return pin.role in SUPPLY_ROLES and pin.is_powerable and pin.voltage > 0


def is_ground_cell(cell: GridCell) -> bool:
    pin = cell.pin
    return cell.occupied and pin is not None and pin.is_ground


def find_power_sources(
    grid: GridSnapshot,
    config: SolverConfig = DEFAULT_CONFIG,
    warnings: Optional[list[str]] = None,
) -> list[PowerSource]:
    """All source pins in row-major order. Malformed cells are skipped with a warning."""
    sources = []
    for cell in grid.occupied_cells():
        if cell.is_malformed:
            msg = f"Cell ({cell.x}, {cell.y}) is occupied but has no module or pin data; treated as non-conductive"
            logger.warning(msg)
            if warnings is not None:
                warnings.append(msg)
            continue
        if is_power_source_cell(cell):
            pin = cell.pin
            sources.append(
                PowerSource(
                    component_id=cell.component_id,
                    position=cell.position,
                    voltage=pin.voltage,
                    max_current=pin.current or config.default_source_current,
                )
            )
    logger.debug("Found %d power source(s)", len(sources))
    return sources


def find_ground_points(grid: GridSnapshot) -> list[Position]:
    return [cell.position for cell in grid.occupied_cells() if is_ground_cell(cell)]
