"""
SimulationController - Runs the circuit solver and keeps recent results.

Callers hand it a snapshot on every edit; it solves, records the result,
reports which components changed since the previous solve and notifies
observers.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from electrical.config import SolverConfig
from electrical.results import ComponentState, SolveResult
from electrical.solver import CircuitSolver
from electrical.trace import TraceCollector
from models.grid import GridSnapshot
from models.wire import WireData

logger = logging.getLogger(__name__)

# Default maximum number of results to keep in history
DEFAULT_MAX_HISTORY = 50

# Values closer than this are treated as unchanged
DIFF_TOLERANCE = 1e-9

_COMPARED_FIELDS = ("voltage", "current", "power", "status", "is_powered", "is_on")


@dataclass
class ResultDiff:
    """Component-level differences between two solves."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: dict[str, dict[str, tuple]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.changed)


def _state_changes(old: ComponentState, new: ComponentState, tolerance: float) -> dict[str, tuple]:
    changes = {}
    for name in _COMPARED_FIELDS:
        a = getattr(old, name)
        b = getattr(new, name)
        if isinstance(a, float) and isinstance(b, float):
            if abs(a - b) > tolerance:
                changes[name] = (a, b)
        elif a != b:
            changes[name] = (a, b)
    return changes


def diff_results(
    old: Optional[SolveResult], new: SolveResult, tolerance: float = DIFF_TOLERANCE
) -> ResultDiff:
    """Compare component states of two results. *old* may be None (first solve)."""
    old_states = old.component_states if old is not None else {}
    new_states = new.component_states
    diff = ResultDiff(
        added=[cid for cid in new_states if cid not in old_states],
        removed=[cid for cid in old_states if cid not in new_states],
    )
    for cid, state in new_states.items():
        if cid in old_states:
            changes = _state_changes(old_states[cid], state, tolerance)
            if changes:
                diff.changed[cid] = changes
    return diff


@dataclass
class HistoryEntry:
    """A single solve in the history."""

    timestamp: datetime
    result: SolveResult
    label: str = ""

    @property
    def summary(self) -> str:
        """One-line summary for history lists."""
        info = self.result.circuit_info
        status = "OK" if self.result.success else f"{len(info.errors)} error(s)"
        ts = self.timestamp.strftime("%Y-%m-%d %H:%M:%S")
        label_part = f" ({self.label})" if self.label else ""
        return f"[{ts}] {info.total_voltage:.2f}V {info.total_current * 1000:.2f}mA {status}{label_part}"


class SolveHistory:
    """
    Bounded list of solve results, newest first.

    When *max_entries* is exceeded the oldest entry is dropped.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_HISTORY):
        self._entries: list[HistoryEntry] = []
        self._max_entries = max(1, max_entries)

    def add(self, result: SolveResult, label: str = "", timestamp: Optional[datetime] = None) -> HistoryEntry:
        entry = HistoryEntry(timestamp=timestamp or datetime.now(), result=result, label=label)
        self._entries.insert(0, entry)
        if len(self._entries) > self._max_entries:
            self._entries.pop()
        return entry

    def clear(self) -> None:
        self._entries.clear()

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[0] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self._entries[index]


class SimulationController:
    """
    Controller for repeated solves.

    Observers are called as ``callback(event, data)`` with events
    ``solve_started`` (data None) and ``solve_completed`` (data is the
    ResultDiff against the previous solve).
    """

    def __init__(self, config: Optional[SolverConfig] = None, max_history: int = DEFAULT_MAX_HISTORY):
        self.config = config or SolverConfig()
        self.history = SolveHistory(max_history)
        self.last_result: Optional[SolveResult] = None
        self.last_trace: Optional[TraceCollector] = None
        self._observers: list[Callable[[str, Any], None]] = []

    def add_observer(self, callback: Callable[[str, Any], None]) -> None:
        """Register a callback for solve events."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Callable[[str, Any], None]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: str, data: Any) -> None:
        """Notify all observers of a solve event."""
        for observer in self._observers:
            try:
                observer(event, data)
            except (TypeError, AttributeError, RuntimeError, ValueError) as e:
                logger.error("Error notifying observer: %s", e)

    def set_config(self, config: SolverConfig) -> None:
        self.config = config

    def run(
        self,
        grid: GridSnapshot,
        wires: Optional[list[WireData]] = None,
        pin_states: Optional[dict] = None,
        label: str = "",
    ) -> SolveResult:
        """Solve, record in history, diff against the last result and notify."""
        self._notify("solve_started", None)
        trace = TraceCollector()
        result = CircuitSolver(self.config, trace).solve(grid, wires, pin_states)

        diff = diff_results(self.last_result, result)
        self.last_result = result
        self.last_trace = trace
        self.history.add(result, label=label)

        for error in result.circuit_info.errors:
            logger.info("Solve: %s", error)
        self._notify("solve_completed", diff)
        return result
