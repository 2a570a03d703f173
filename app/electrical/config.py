"""
electrical/config.py

Tunable constants for the circuit solver, loadable from JSON.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolverConfig:
    """Solver defaults and policy switches."""

    # Cap on wire-voltage propagation passes (not a proven fixed point)
    max_wire_passes: int = 10
    default_led_current: float = 0.02
    default_forward_voltage: float = 2.0
    default_resistance: float = 1000.0
    default_source_current: float = 0.1
    default_resistor_max_power: float = 0.25
    default_led_max_power: float = 0.1
    # Connect touching occupied cells when there are no wires at all
    adjacency_fallback: bool = True
    check_limits: bool = True

    def __post_init__(self):
        if self.max_wire_passes < 0:
            raise ValueError(f"max_wire_passes must be >= 0, got {self.max_wire_passes}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SolverConfig":
        """Build a config from *data*; unknown keys are ignored with a warning."""
        known = {f.name: f for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                logger.warning("Ignoring unknown solver config key '%s'", key)
                continue
            if known[key].type in (bool, "bool"):
                kwargs[key] = bool(value)
            elif known[key].type in (int, "int"):
                kwargs[key] = int(value)
            else:
                kwargs[key] = float(value)
        return cls(**kwargs)

    @classmethod
    def load(cls, path) -> "SolverConfig":
        """Read a JSON config file. Raises OSError/ValueError on bad files."""
        with open(Path(path), "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Solver config must be a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)

    def save(self, path) -> None:
        with open(Path(path), "w") as f:
            json.dump(self.to_dict(), f, indent=2)


DEFAULT_CONFIG = SolverConfig()
