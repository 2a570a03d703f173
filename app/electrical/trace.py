"""
electrical/trace.py

Injected trace collector for solver diagnostics. The solver records
structured events here instead of printing, so callers and tests can
inspect what happened during a solve.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

EVENT_KINDS = frozenset({"pathway", "branch_analysis", "component_state", "parallel_group", "no_continuity"})


@dataclass
class TraceEvent:
    kind: str
    data: dict = field(default_factory=dict)


class TraceCollector:
    """
    Collects trace events and fans them out to observers.

    Observer callbacks receive ``(event)``; exceptions they raise are logged
    and do not interrupt the solve.
    """

    def __init__(self):
        self.events: list[TraceEvent] = []
        self._observers: list[Callable[[TraceEvent], Any]] = []

    def add_observer(self, callback: Callable[[TraceEvent], Any]) -> None:
        self._observers.append(callback)

    def remove_observer(self, callback: Callable[[TraceEvent], Any]) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def record(self, kind: str, **data) -> TraceEvent:
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown trace event kind '{kind}'")
        event = TraceEvent(kind, data)
        self.events.append(event)
        logger.debug("%s: %s", kind, data)
        for callback in self._observers:
            try:
                callback(event)
            except (TypeError, AttributeError, RuntimeError, ValueError) as e:
                logger.error("Error in trace observer: %s", e)
        return event

    def of_kind(self, kind: str) -> list[TraceEvent]:
        return [e for e in self.events if e.kind == kind]

    def clear(self) -> None:
        self.events.clear()

    def __len__(self) -> int:
        return len(self.events)
