"""
PinDefinition - Pure Python data model for a module's pin-role cells.

Every module (battery, resistor, microcontroller, ...) is laid out on the grid
as a small footprint of cells. Each cell carries a pin role that tells the
solver whether it can supply power, accept ground, or is a logic pin.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class PinRole(Enum):
    """Fixed vocabulary of pin roles."""

    VCC = "VCC"
    POSITIVE = "POSITIVE"
    GND = "GND"
    NEGATIVE = "NEGATIVE"
    GPIO = "GPIO"
    ANALOG = "ANALOG"
    DIGITAL = "DIGITAL"
    TERMINAL = "TERMINAL"
    LED_POSITIVE = "LED_POSITIVE"
    LED_NEGATIVE = "LED_NEGATIVE"
    BODY = "BODY"

    @classmethod
    def parse(cls, value) -> "PinRole":
        """Map a role string to a PinRole. Unknown strings become TERMINAL."""
        if isinstance(value, PinRole):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.TERMINAL


SUPPLY_ROLES = frozenset({PinRole.VCC, PinRole.POSITIVE})
GROUND_ROLES = frozenset({PinRole.GND, PinRole.NEGATIVE})
LOGIC_ROLES = frozenset({PinRole.GPIO, PinRole.ANALOG})


@dataclass(frozen=True)
class PinDefinition:
    """
    One cell of a module footprint.

    Offsets are relative to the module origin. A pin may be powerable or
    groundable, never both.
    """

    role: PinRole = PinRole.TERMINAL
    pin: str = ""
    x: int = 0
    y: int = 0
    is_connectable: bool = True
    is_powerable: bool = False
    is_groundable: bool = False
    voltage: float = 0.0
    current: float = 0.0
    resistance: Optional[float] = None
    max_power: Optional[float] = None
    properties: dict = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if self.is_powerable and self.is_groundable:
            raise ValueError(
                f"Pin '{self.pin or self.role.value}' cannot be both powerable and groundable."
            )

    @property
    def is_supply(self) -> bool:
        return self.role in SUPPLY_ROLES

    @property
    def is_ground(self) -> bool:
        """True for GND/NEGATIVE pins and generic groundable pins at 0 V."""
        return (self.role in GROUND_ROLES or self.is_groundable) and self.voltage == 0

    @property
    def is_logic(self) -> bool:
        return self.role in LOGIC_ROLES

    def to_dict(self) -> dict:
        """Serialize pin to dictionary (camelCase keys, as module files use)."""
        data = {
            "type": self.role.value,
            "pin": self.pin,
            "x": self.x,
            "y": self.y,
            "isConnectable": self.is_connectable,
            "isPowerable": self.is_powerable,
            "isGroundable": self.is_groundable,
            "voltage": self.voltage,
            "current": self.current,
        }
        if self.resistance is not None:
            data["resistance"] = self.resistance
        if self.max_power is not None:
            data["maxPower"] = self.max_power
        if self.properties:
            data["properties"] = dict(self.properties)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "PinDefinition":
        """Deserialize pin from dictionary. Missing numeric fields default to 0."""
        return cls(
            role=PinRole.parse(data.get("type", "TERMINAL")),
            pin=str(data.get("pin", "")),
            x=int(data.get("x", 0)),
            y=int(data.get("y", 0)),
            is_connectable=bool(data.get("isConnectable", True)),
            is_powerable=bool(data.get("isPowerable", False)),
            is_groundable=bool(data.get("isGroundable", False)),
            voltage=float(data.get("voltage") or 0.0),
            current=float(data.get("current") or 0.0),
            resistance=_optional_float(data.get("resistance")),
            max_power=_optional_float(data.get("maxPower")),
            properties=dict(data.get("properties") or {}),
        )


def _optional_float(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)
