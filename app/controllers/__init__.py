"""
Controllers for the grid circuit solver.

This package contains controller classes that run solves and handle
snapshot files, using an observer pattern for notifications.
"""

from .file_controller import FileController, SnapshotDocument, validate_snapshot_data
from .simulation_controller import ResultDiff, SimulationController, SolveHistory, diff_results

__all__ = [
    "FileController",
    "SnapshotDocument",
    "validate_snapshot_data",
    "SimulationController",
    "SolveHistory",
    "ResultDiff",
    "diff_results",
]
