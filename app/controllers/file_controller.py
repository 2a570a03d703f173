"""
FileController - Handles snapshot file I/O.

A snapshot file is one JSON object holding the grid (``width``,
``height`` and ``components`` or ``cells``), the ``wires`` list and an
optional ``pinStates`` map.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from models.grid import GridSnapshot
from models.module import MODULE_LIBRARY, normalize_kind
from models.wire import WireData

logger = logging.getLogger(__name__)

_LIBRARY_KINDS = {normalize_kind(name) for name in MODULE_LIBRARY}


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_module_ref(ref, label: str) -> None:
    if isinstance(ref, str):
        if ref not in MODULE_LIBRARY and normalize_kind(ref) not in _LIBRARY_KINDS:
            raise ValueError(f"{label} uses unknown module '{ref}'.")
    elif isinstance(ref, dict):
        if "module" not in ref or not isinstance(ref.get("grid"), list):
            raise ValueError(f"{label} has an inline module without 'module' name and 'grid' list.")
    else:
        raise ValueError(f"{label} has invalid module data.")


def _validate_point(point, label: str) -> None:
    if not isinstance(point, dict) or "x" not in point or "y" not in point:
        raise ValueError(f"{label} has invalid position data.")
    if not _is_int(point["x"]) or not _is_int(point["y"]):
        raise ValueError(f"{label} position values must be integers.")


def validate_snapshot_data(data) -> None:
    """
    Validate snapshot JSON structure before loading.

    Raises ValueError with a descriptive message if anything is wrong.
    Electrical problems (no source, open circuits) are not checked here;
    the solver reports those.
    """
    if not isinstance(data, dict):
        raise ValueError("File does not contain a valid snapshot object.")

    for key in ("width", "height"):
        if key not in data:
            raise ValueError(f"Missing grid '{key}'.")
        if not _is_int(data[key]) or data[key] <= 0:
            raise ValueError(f"Grid '{key}' must be a positive integer.")

    if "components" not in data and "cells" not in data:
        raise ValueError("Missing 'components' or 'cells' list.")
    if "components" in data and not isinstance(data["components"], list):
        raise ValueError("Invalid 'components' list.")
    if "cells" in data and not isinstance(data["cells"], list):
        raise ValueError("Invalid 'cells' list.")

    comp_ids = set()
    for i, comp in enumerate(data.get("components", [])):
        if not isinstance(comp, dict):
            raise ValueError(f"Component #{i + 1} is not an object.")
        for key in ("componentId", "module", "x", "y"):
            if key not in comp:
                raise ValueError(f"Component #{i + 1} is missing required field '{key}'.")
        label = f"Component '{comp['componentId']}'"
        if comp["componentId"] in comp_ids:
            raise ValueError(f"Duplicate component id '{comp['componentId']}'.")
        comp_ids.add(comp["componentId"])
        _validate_point(comp, label)
        _validate_module_ref(comp["module"], label)
        if "resistance" in comp and not isinstance(comp["resistance"], (int, float)):
            raise ValueError(f"{label} resistance must be numeric.")

    for i, cell in enumerate(data.get("cells", [])):
        if not isinstance(cell, dict):
            raise ValueError(f"Cell #{i + 1} is not an object.")
        _validate_point(cell, f"Cell #{i + 1}")
        if cell.get("module") is not None:
            _validate_module_ref(cell["module"], f"Cell #{i + 1}")

    wires = data.get("wires", [])
    if not isinstance(wires, list):
        raise ValueError("Invalid 'wires' list.")
    wire_ids = set()
    for i, wire in enumerate(wires):
        if not isinstance(wire, dict) or "id" not in wire:
            raise ValueError(f"Wire #{i + 1} is missing required field 'id'.")
        if wire["id"] in wire_ids:
            raise ValueError(f"Duplicate wire id '{wire['id']}'.")
        wire_ids.add(wire["id"])
        segments = wire.get("segments")
        if not isinstance(segments, list):
            raise ValueError(f"Wire '{wire['id']}' has no 'segments' list.")
        for j, seg in enumerate(segments):
            if not isinstance(seg, dict) or "from" not in seg or "to" not in seg:
                raise ValueError(f"Wire '{wire['id']}' segment #{j + 1} needs 'from' and 'to'.")
            _validate_point(seg["from"], f"Wire '{wire['id']}' segment #{j + 1}")
            _validate_point(seg["to"], f"Wire '{wire['id']}' segment #{j + 1}")

    pin_states = data.get("pinStates", {})
    if not isinstance(pin_states, dict):
        raise ValueError("Invalid 'pinStates' map.")


@dataclass
class SnapshotDocument:
    """A loaded snapshot file: grid, wires and pin states."""

    grid: GridSnapshot
    wires: list[WireData] = field(default_factory=list)
    pin_states: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = self.grid.to_dict()
        data["wires"] = [
            {"id": w.wire_id, "segments": [s.to_dict() for s in w.segments], "gauge": w.gauge} for w in self.wires
        ]
        if self.pin_states:
            data["pinStates"] = {str(k): v for k, v in self.pin_states.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SnapshotDocument":
        """Validate and build. Raises ValueError on bad structure."""
        validate_snapshot_data(data)
        return cls(
            grid=GridSnapshot.from_dict(data),
            wires=[WireData.from_dict(w) for w in data.get("wires", [])],
            pin_states=dict(data.get("pinStates", {})),
        )


class FileController:
    """
    Loads and saves snapshot documents and solve results as JSON.

    Tracks the current file path for quick re-save.
    """

    def __init__(self):
        self.current_file: Optional[Path] = None

    def load_snapshot(self, filepath) -> SnapshotDocument:
        """
        Load a snapshot from a JSON file.

        Raises:
            json.JSONDecodeError: If file is not valid JSON.
            ValueError: If file structure is invalid.
            OSError: If the file cannot be read.
        """
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            data = json.load(f)
        document = SnapshotDocument.from_dict(data)
        self.current_file = filepath
        logger.info("Loaded snapshot %s (%s)", filepath, document.grid)
        return document

    def save_snapshot(self, filepath, document: SnapshotDocument) -> None:
        """
        Save a snapshot to a JSON file.

        Raises:
            OSError: If the file cannot be written.
        """
        filepath = Path(filepath)
        with open(filepath, "w") as f:
            json.dump(document.to_dict(), f, indent=2)
        self.current_file = filepath

    @staticmethod
    def save_result(filepath, result) -> None:
        """Write a SolveResult as JSON."""
        with open(Path(filepath), "w") as f:
            json.dump(result.to_dict(), f, indent=2)

    @staticmethod
    def load_pin_states(filepath) -> dict:
        """Read a pin-state map (``{pin: {"state": "HIGH"|"LOW"}}``)."""
        with open(Path(filepath), "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("Pin-state file must contain a JSON object.")
        return data

    def has_file(self) -> bool:
        """Return whether a current file path is set (for quick-save)."""
        return self.current_file is not None
