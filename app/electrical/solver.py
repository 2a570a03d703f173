"""
electrical/solver.py

Steady-state solver for grid circuits.

Each power source drives the branches found by walking the connection
graph. Every branch is solved as one series path of LED/motor fixed drops
and resistors, and resistors sharing two junctions are folded into a
parallel group. There is no mesh or nodal analysis.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from models.grid import GridSnapshot
from models.wire import WireData

from .component_models import ComponentProperties, ResistorModel, model_for, normalize_pin_states
from .config import DEFAULT_CONFIG, SolverConfig
from .limits import check_component_limits, check_wire_limits
from .parallel import ParallelBranch, find_parallel_resistors, resistance_of
from .pathways import BranchFinder, CircuitBranch
from .results import STATUS_UNPOWERED, CircuitSummary, ComponentState, SolveResult
from .sources import PowerSource, find_ground_points, find_power_sources
from .topology import build_connection_graph
from .trace import TraceCollector
from .wire_state import update_grid_cells, update_wire_states

logger = logging.getLogger(__name__)


@dataclass
class BranchParameters:
    """Aggregates for one branch before the voltage walk."""

    series_resistance: float = 0.0
    parallel_resistance: float = 0.0
    total_voltage_drop: float = 0.0
    led_current: float = 0.0
    motor_current: float = 0.0
    has_fixed_load: bool = False
    groups: list[ParallelBranch] = field(default_factory=list)

    @property
    def total_resistance(self) -> float:
        return self.series_resistance + self.parallel_resistance


@dataclass
class BranchSolution:
    states: dict[str, ComponentState]
    conducting: bool
    current: float = 0.0
    total_resistance: float = 0.0
    effective_voltage: float = 0.0


def _group_of(component_id: str, groups: Iterable[ParallelBranch]) -> Optional[ParallelBranch]:
    for group in groups:
        if component_id in group:
            return group
    return None


def calculate_circuit_parameters(
    branch: CircuitBranch,
    parallel_groups: list[ParallelBranch],
    config: SolverConfig = DEFAULT_CONFIG,
) -> BranchParameters:
    """
    Series resistance (excluding parallel-group members), the combined
    resistance of groups touching the branch, and fixed load drops.

    Series LEDs are limited by the lowest rated one; the motor requirement
    is the largest running current on the branch.
    """
    params = BranchParameters()
    led_currents = []
    motor_currents = []
    ids = set(branch.component_ids)

    for comp in branch.components:
        kind = comp.kind
        if kind == "resistor":
            if _group_of(comp.component_id, parallel_groups) is None:
                params.series_resistance += resistance_of(comp.cell, config)
        elif kind in ("led", "motor"):
            props = ComponentProperties.from_cell(comp.cell, config)
            if kind == "led":
                params.total_voltage_drop += props.forward_voltage
                led_currents.append(props.rated_current)
            else:
                params.total_voltage_drop += props.nominal_voltage
                motor_currents.append(props.running_current)

    params.groups = [g for g in parallel_groups if ids & set(g.component_ids)]
    params.parallel_resistance = sum(g.total_resistance for g in params.groups)
    params.led_current = min(led_currents) if led_currents else 0.0
    params.motor_current = max(motor_currents) if motor_currents else 0.0
    params.has_fixed_load = bool(led_currents or motor_currents)
    return params


def _unpowered_state(component_id: str, component_type: str) -> ComponentState:
    return ComponentState(component_id, component_type, status=STATUS_UNPOWERED)


def solve_branch(
    branch: CircuitBranch,
    source: PowerSource,
    parallel_groups: list[ParallelBranch],
    continuity: bool = True,
    pin_states: Optional[dict[int, str]] = None,
    config: SolverConfig = DEFAULT_CONFIG,
    trace: Optional[TraceCollector] = None,
) -> BranchSolution:
    """
    Solve one branch fed by *source*.

    Without continuity every component is reported unpowered and no model
    runs. Otherwise the branch current is the smallest of the load
    requirement, the resistor-limited current and the source limit, and
    each model is applied in branch order.
    """
    trace = trace if trace is not None else TraceCollector()
    pin_states = pin_states or {}
    states: dict[str, ComponentState] = {}

    if not continuity:
        for comp in branch.components:
            states[comp.component_id] = _unpowered_state(comp.component_id, comp.component_type)
        for group in parallel_groups:
            if set(group.component_ids) & set(branch.component_ids):
                for member in group.members:
                    states[member.component_id] = _unpowered_state(member.component_id, member.component_type)
        trace.record("no_continuity", source=source.component_id, components=branch.component_ids)
        return BranchSolution(states, conducting=False)

    params = calculate_circuit_parameters(branch, parallel_groups, config)
    total_resistance = params.total_resistance
    effective = max(0.0, source.voltage - params.total_voltage_drop)
    resistor_current = effective / total_resistance if total_resistance > 0 else 0.0
    if params.has_fixed_load:
        load_requirement = params.led_current + params.motor_current
    else:
        load_requirement = resistor_current
    branch_current = min(load_requirement, resistor_current, source.max_current)

    trace.record(
        "branch_analysis",
        source=source.component_id,
        components=branch.component_ids,
        total_resistance=total_resistance,
        total_voltage_drop=params.total_voltage_drop,
        effective_voltage=effective,
        current=branch_current,
    )

    # Series walk; a parallel group counts once, as its equivalent resistance
    voltage, current = source.voltage, branch_current
    walked_groups: set[str] = set()
    for comp in branch.components:
        group = _group_of(comp.component_id, params.groups)
        if group is not None:
            if group.branch_id not in walked_groups:
                walked_groups.add(group.branch_id)
                voltage = max(0.0, voltage - current * group.total_resistance)
            continue

        model = model_for(comp.module)
        if model is None:
            logger.debug("No model for %s (%s); skipped", comp.component_id, comp.component_type)
            continue
        props = ComponentProperties.from_cell(comp.cell, config, pin_states)
        out = model.calculate(props, voltage, current)
        states[comp.component_id] = ComponentState(
            component_id=comp.component_id,
            component_type=comp.component_type,
            voltage=out.output_voltage,
            current=out.output_current,
            power=out.power,
            status=out.status,
            is_powered=out.is_powered,
            is_grounded=out.is_grounded,
            input_voltage=voltage,
            voltage_drop=out.voltage_drop,
            forward_voltage=out.forward_voltage,
            is_on=out.is_on,
        )
        trace.record(
            "component_state",
            component=comp.component_id,
            type=comp.component_type,
            input_voltage=voltage,
            input_current=current,
            status=out.status,
        )
        voltage, current = out.output_voltage, out.output_current

    # Each parallel leg sees the effective voltage independently
    resistor_model = ResistorModel()
    for group in params.groups:
        r_parallel = group.total_resistance
        group.voltage = effective
        group.current = effective / r_parallel if r_parallel > 0 else 0.0
        for member in group.members:
            props = ComponentProperties.from_cell(member.cell, config, pin_states)
            leg_current = effective / member.resistance if member.resistance > 0 else 0.0
            out = resistor_model.calculate(props, effective, leg_current)
            states[member.component_id] = ComponentState(
                component_id=member.component_id,
                component_type=member.component_type,
                voltage=out.output_voltage,
                current=out.output_current,
                power=out.power,
                status=out.status,
                is_powered=out.is_powered,
                input_voltage=effective,
                voltage_drop=out.voltage_drop,
            )
        trace.record(
            "parallel_group",
            group=group.branch_id,
            resistance=r_parallel,
            voltage=group.voltage,
            current=group.current,
        )

    return BranchSolution(
        states,
        conducting=True,
        current=current,
        total_resistance=total_resistance,
        effective_voltage=effective,
    )


class CircuitSolver:
    """
    Runs the whole pipeline for one snapshot.

    Pipeline: connection graph -> sources/grounds -> branch walk ->
    parallel groups -> per-branch solve -> limit checks -> wires and grid.
    """

    def __init__(
        self,
        config: Optional[SolverConfig] = None,
        trace: Optional[TraceCollector] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.trace = trace

    def solve(
        self,
        grid: GridSnapshot,
        wires: Optional[list[WireData]] = None,
        pin_states: Optional[dict] = None,
    ) -> SolveResult:
        config = self.config
        # a solver without an injected collector starts each solve clean
        trace = self.trace if self.trace is not None else TraceCollector()
        wires = list(wires or [])
        summary = CircuitSummary()
        states: dict[str, ComponentState] = {}
        logic_states = normalize_pin_states(pin_states)

        graph = build_connection_graph(wires, grid, config, summary.warnings)
        sources = find_power_sources(grid, config, summary.warnings)
        finder = BranchFinder(grid, graph)
        walk_order: list[str] = []
        current_limited: set[str] = set()
        circuit_current = 0.0

        if not sources:
            summary.errors.append("No power source found")
            logger.debug("No power source found; nothing to solve")
        else:
            if not find_ground_points(grid):
                summary.errors.append("No ground point found")
            summary.total_voltage = sources[0].voltage
            parallel_groups = find_parallel_resistors(grid, graph, config)
            first_conducting = True

            for source in sources:
                branches = finder.find_branches(source.position)
                for branch in branches:
                    ids = branch.component_ids
                    summary.pathways.append(ids)
                    walk_order.extend(cid for cid in ids if cid not in walk_order)
                    trace.record("pathway", source=source.component_id, components=ids, voltage=source.voltage)

                    conductors = self._branch_conductors(branch, parallel_groups)
                    continuity = finder.has_continuity(source.position, through=conductors)
                    if any(comp.kind == "resistor" for comp in branch.components):
                        current_limited.update(ids)

                    solution = solve_branch(
                        branch, source, parallel_groups, continuity, logic_states, config, trace
                    )
                    for cid, state in solution.states.items():
                        # an open branch never overrides a solved state
                        if state.status == STATUS_UNPOWERED and cid in states:
                            continue
                        states[cid] = state

                    if solution.conducting and first_conducting:
                        first_conducting = False
                        circuit_current = solution.current
                        summary.total_current = solution.current
                        summary.total_resistance = solution.total_resistance
                    if not solution.conducting:
                        summary.warnings.append(
                            f"No continuity to ground from {source.component_id}: " + " -> ".join(ids)
                        )

        summary.total_power = sum(
            state.power for cid, state in states.items() if not self._is_source_component(grid, cid)
        )

        updated_wires = update_wire_states(wires, grid, states, circuit_current, walk_order, config)
        updated_grid = update_grid_cells(grid, states)

        if config.check_limits:
            summary.errors.extend(self._limit_findings(grid, states, updated_wires, current_limited))

        logger.debug(
            "Solved %d component(s): %.3fV, %.4fA, %.1f ohm",
            len(states),
            summary.total_voltage,
            summary.total_current,
            summary.total_resistance,
        )
        return SolveResult(states, updated_wires, updated_grid, summary)

    @staticmethod
    def _is_source_component(grid: GridSnapshot, component_id: str) -> bool:
        cells = grid.component_cells(component_id)
        return bool(cells) and cells[0].module is not None and cells[0].module.is_power_supply

    @staticmethod
    def _branch_conductors(branch: CircuitBranch, parallel_groups: list[ParallelBranch]) -> set[str]:
        """Components whose bodies may carry this branch's current to ground."""
        ids = set(branch.component_ids)
        for group in parallel_groups:
            if ids & set(group.component_ids):
                ids.update(group.component_ids)
        return ids

    def _limit_findings(self, grid, states, wires, current_limited) -> list[str]:
        findings = []
        for cid, state in states.items():
            cells = [c for c in grid.component_cells(cid) if not c.is_malformed]
            if not cells:
                continue
            props = ComponentProperties.from_cell(cells[0], self.config)
            findings.extend(
                check_component_limits(state, props, cells[0].module.kind, current_limited=cid in current_limited)
            )
        for wire in wires:
            findings.extend(check_wire_limits(wire))
        return findings


def solve_circuit(
    grid: GridSnapshot,
    wires: Optional[list[WireData]] = None,
    pin_states: Optional[dict] = None,
    config: Optional[SolverConfig] = None,
    trace: Optional[TraceCollector] = None,
) -> SolveResult:
    """
    Solve a grid snapshot.

    Never raises on degenerate circuits; problems are reported in
    ``circuit_info.errors`` and ``circuit_info.warnings``. Neither *grid*
    nor *wires* is modified.
    """
    return CircuitSolver(config, trace).solve(grid, wires, pin_states)
