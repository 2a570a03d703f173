"""
electrical/wire_state.py

Copies solved component voltages onto wires and grid cells for display.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from models.grid import GridSnapshot
from models.wire import Position, WireData

from .config import DEFAULT_CONFIG, SolverConfig
from .results import ComponentState
from .sources import is_ground_cell, is_power_source_cell

logger = logging.getLogger(__name__)


@dataclass
class _WireEval:
    voltage: float = 0.0
    is_powered: bool = False
    is_grounded: bool = False
    driven_by: Optional[str] = None
    touches_component: bool = False


def _evaluate_wire(
    wire: WireData,
    grid: GridSnapshot,
    states: dict[str, ComponentState],
    walk_rank: dict[str, int],
) -> _WireEval:
    """Wire state from the component pins at its segment endpoints."""
    result = _WireEval()
    source_voltage = None
    best: Optional[tuple[float, int, str, bool]] = None

    for pos in wire.endpoints():
        cell = grid.cell_at(*pos)
        if cell is None or not cell.occupied or cell.is_malformed:
            continue
        # ground pins count whether or not their component has a model
        if is_ground_cell(cell):
            result.touches_component = True
            result.is_grounded = True
            continue
        state = states.get(cell.component_id)
        if state is None:
            continue
        result.touches_component = True

        if is_power_source_cell(cell) and state.is_powered and not state.is_grounded:
            if source_voltage is None:
                source_voltage = cell.pin.voltage
                result.driven_by = cell.component_id
            continue

        rank = walk_rank.get(cell.component_id, len(walk_rank))
        # highest voltage wins; on a tie the component met first in the walk
        candidate = (state.voltage, -rank, cell.component_id, state.is_powered)
        if best is None or candidate[:2] > best[:2]:
            best = candidate

    if source_voltage is not None:
        result.voltage = source_voltage
        result.is_powered = True
    elif best is not None:
        result.voltage = best[0]
        result.driven_by = best[2]
        result.is_powered = best[3] and best[0] > 0

    if result.is_grounded and not result.is_powered:
        result.voltage = 0.0
    return result


def update_wire_states(
    wires: list[WireData],
    grid: GridSnapshot,
    component_states: dict[str, ComponentState],
    circuit_current: float,
    walk_order: Optional[list[str]] = None,
    config: SolverConfig = DEFAULT_CONFIG,
) -> list[WireData]:
    """
    Return new wires annotated with voltage, current, power and flags.

    Wires that touch no solved component take the state of a neighbouring
    wire (sharing an endpoint). That propagation runs at most
    ``config.max_wire_passes`` passes and stops early once stable.
    """
    walk_rank = {cid: i for i, cid in enumerate(walk_order or [])}
    updated: list[WireData] = []
    resolved: list[bool] = []

    for wire in wires:
        ev = _evaluate_wire(wire, grid, component_states, walk_rank)
        current = circuit_current if ev.touches_component else 0.0
        updated.append(
            wire.copy(
                voltage=ev.voltage,
                current=current,
                power=ev.voltage * current,
                is_powered=ev.is_powered,
                is_grounded=ev.is_grounded,
                driven_by=ev.driven_by,
            )
        )
        resolved.append(ev.touches_component)

    endpoint_sets: list[set[Position]] = [set(w.endpoints()) for w in wires]

    for pass_no in range(config.max_wire_passes):
        changes: dict[int, WireData] = {}
        for i, wire in enumerate(updated):
            if resolved[i]:
                continue
            donor = None
            for j, other in enumerate(updated):
                if j == i or not resolved[j] or not (endpoint_sets[i] & endpoint_sets[j]):
                    continue
                if donor is None or other.voltage > donor.voltage:
                    donor = other
            if donor is not None:
                changes[i] = wire.copy(
                    voltage=donor.voltage,
                    current=donor.current,
                    power=donor.voltage * donor.current,
                    is_powered=donor.is_powered,
                    is_grounded=donor.is_grounded,
                    driven_by=donor.driven_by,
                )
        if not changes:
            logger.debug("Wire propagation settled after %d pass(es)", pass_no)
            break
        for i, wire in changes.items():
            updated[i] = wire
            resolved[i] = True
    else:
        if not all(resolved):
            logger.debug("Wire propagation stopped at the %d-pass cap", config.max_wire_passes)

    return updated


def update_grid_cells(grid: GridSnapshot, component_states: dict[str, ComponentState]) -> GridSnapshot:
    """New snapshot with every cell of each solved component refreshed."""
    updates = {}
    for component_id, state in component_states.items():
        for cell in grid.component_cells(component_id):
            updates[cell.position] = cell.with_state(state.voltage, state.current, state.is_powered)
    return grid.with_cells(updates)
