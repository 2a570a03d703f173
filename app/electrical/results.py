"""
electrical/results.py

Result types produced by the circuit solver.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.grid import GridSnapshot
from models.wire import WireData

# Status tags
STATUS_ACTIVE = "active"
STATUS_ON = "on"
STATUS_OFF = "off"
STATUS_UNPOWERED = "unpowered"
STATUS_INACTIVE = "inactive"


@dataclass
class ComponentState:
    """Solved electrical state of one component."""

    component_id: str
    component_type: str
    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0
    status: str = STATUS_UNPOWERED
    is_powered: bool = False
    is_grounded: bool = False
    input_voltage: float = 0.0
    voltage_drop: Optional[float] = None
    forward_voltage: Optional[float] = None
    is_on: Optional[bool] = None

    def to_dict(self) -> dict:
        data = {
            "componentId": self.component_id,
            "componentType": self.component_type,
            "voltage": self.voltage,
            "current": self.current,
            "power": self.power,
            "status": self.status,
            "isPowered": self.is_powered,
            "isGrounded": self.is_grounded,
            "inputVoltage": self.input_voltage,
        }
        if self.voltage_drop is not None:
            data["voltageDrop"] = self.voltage_drop
        if self.forward_voltage is not None:
            data["forwardVoltage"] = self.forward_voltage
        if self.is_on is not None:
            data["isOn"] = self.is_on
        return data


@dataclass
class CircuitSummary:
    """Aggregate diagnostics for one solve."""

    total_voltage: float = 0.0
    total_current: float = 0.0
    total_resistance: float = 0.0
    total_power: float = 0.0
    pathways: list[list[str]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalVoltage": self.total_voltage,
            "totalCurrent": self.total_current,
            "totalResistance": self.total_resistance,
            "totalPower": self.total_power,
            "pathways": [list(p) for p in self.pathways],
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class SolveResult:
    """Everything a solve produces. Inputs are never modified; wires and grid are new objects."""

    component_states: dict[str, ComponentState]
    updated_wires: list[WireData]
    updated_grid: GridSnapshot
    circuit_info: CircuitSummary

    @property
    def success(self) -> bool:
        return not self.circuit_info.errors

    def state(self, component_id: str) -> Optional[ComponentState]:
        return self.component_states.get(component_id)

    def to_dict(self) -> dict:
        return {
            "componentStates": {cid: s.to_dict() for cid, s in self.component_states.items()},
            "updatedWires": [w.to_dict() for w in self.updated_wires],
            "updatedGridData": self.updated_grid.to_dict(),
            "circuitInfo": self.circuit_info.to_dict(),
        }
