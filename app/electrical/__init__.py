"""
Grid circuit topology extraction and steady-state solver.

Pure Python; the only third-party dependency is numpy.
"""

from .component_models import ComponentModel, get_model, parse_pin_id, register
from .config import SolverConfig
from .parallel import ParallelBranch, calculate_parallel_resistance, find_parallel_resistors
from .pathways import BranchFinder, CircuitBranch, PathwayComponent, find_circuit_branches
from .results import CircuitSummary, ComponentState, SolveResult
from .solver import CircuitSolver, solve_branch, solve_circuit
from .sources import PowerSource, find_ground_points, find_power_sources
from .topology import ConnectionGraph, build_connection_graph, find_circuit_nodes
from .trace import TraceCollector, TraceEvent
from .wire_state import update_grid_cells, update_wire_states

__all__ = [
    "BranchFinder",
    "CircuitBranch",
    "CircuitSolver",
    "CircuitSummary",
    "ComponentModel",
    "ComponentState",
    "ConnectionGraph",
    "ParallelBranch",
    "PathwayComponent",
    "PowerSource",
    "SolveResult",
    "SolverConfig",
    "TraceCollector",
    "TraceEvent",
    "build_connection_graph",
    "calculate_parallel_resistance",
    "find_circuit_branches",
    "find_circuit_nodes",
    "find_ground_points",
    "find_parallel_resistors",
    "find_power_sources",
    "get_model",
    "parse_pin_id",
    "register",
    "solve_branch",
    "solve_circuit",
    "update_grid_cells",
    "update_wire_states",
]
