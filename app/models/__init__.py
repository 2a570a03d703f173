"""
Pure Python data models for the grid circuit solver.

This package contains the grid snapshot, module/pin definitions and
wires. All models use only Python standard library types.
"""

from .grid import GridCell, GridSnapshot
from .module import MODULE_LIBRARY, ModuleDefinition, get_module, normalize_kind
from .pin import PinDefinition, PinRole
from .wire import WIRE_GAUGES, WireData, WireGauge, WireSegment

__all__ = [
    "GridCell",
    "GridSnapshot",
    "ModuleDefinition",
    "MODULE_LIBRARY",
    "get_module",
    "normalize_kind",
    "PinDefinition",
    "PinRole",
    "WireData",
    "WireSegment",
    "WireGauge",
    "WIRE_GAUGES",
]
