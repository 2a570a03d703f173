"""
ModuleDefinition - Pure Python data model for placeable modules.

A module definition is the pin-role table for one component type: its
footprint on the grid, the role of each footprint cell and the default
electrical properties (resistance, forward voltage, ratings).

Module names use display names as canonical identifiers:
'Battery', 'PowerSupply', 'Resistor', 'LED', 'Motor', 'Ground',
'Arduino Uno R3', 'ESP32 DevKit'
"""

import re
from dataclasses import dataclass, field
from typing import Optional

from .format_utils import parse_value_or
from .pin import PinDefinition, PinRole

# Normalized kinds of dedicated power components
POWER_SUPPLY_KINDS = frozenset({"battery", "powersupply"})

# Normalized board names recognised as microcontrollers
MICROCONTROLLER_KINDS = frozenset({"arduinounor3", "arduinonano", "esp32devkit", "esp32", "microcontroller"})


def normalize_kind(name: str) -> str:
    """'Power Supply' -> 'powersupply', 'Arduino Uno R3' -> 'arduinounor3'."""
    return re.sub(r"[\s_\-]+", "", (name or "").lower())


@dataclass
class ModuleDefinition:
    """
    Pure Python data class describing a module type.

    ``grid`` holds one PinDefinition per footprint cell; the position of a
    pin in this list is the ``cell_index`` stored on grid cells.
    """

    module: str
    category: str = "general"
    grid: list[PinDefinition] = field(default_factory=list)
    properties: dict = field(default_factory=dict)
    description: str = ""

    @property
    def kind(self) -> str:
        return normalize_kind(self.module)

    @property
    def is_power_supply(self) -> bool:
        if self.is_microcontroller:
            return False
        return self.kind in POWER_SUPPLY_KINDS or self.category.lower() == "power"

    @property
    def is_microcontroller(self) -> bool:
        return self.kind in MICROCONTROLLER_KINDS or self.category.lower() == "microcontrollers"

    @property
    def cell_count(self) -> int:
        return len(self.grid)

    def cell(self, index: Optional[int]) -> Optional[PinDefinition]:
        """Return the pin for *index*, or None when out of range."""
        idx = index or 0
        if 0 <= idx < len(self.grid):
            return self.grid[idx]
        return None

    def get_property(self, name: str, default: Optional[float] = None) -> Optional[float]:
        """
        Numeric module property.

        Accepts both plain values and the ``{"default": value}`` form used by
        module files. Strings with SI prefixes ("1k") are parsed.
        """
        raw = self.properties.get(name)
        if isinstance(raw, dict):
            raw = raw.get("default")
        return parse_value_or(raw, default)

    def to_dict(self) -> dict:
        data = {
            "module": self.module,
            "category": self.category,
            "grid": [pin.to_dict() for pin in self.grid],
        }
        if self.properties:
            data["properties"] = dict(self.properties)
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ModuleDefinition":
        return cls(
            module=data["module"],
            category=data.get("category", "general"),
            grid=[PinDefinition.from_dict(cell) for cell in data.get("grid", [])],
            properties=dict(data.get("properties") or {}),
            description=data.get("description", ""),
        )

    def __repr__(self) -> str:
        return f"ModuleDefinition({self.module}, cells={len(self.grid)})"


# ---------------------------------------------------------------------------
# Built-in module library
# ---------------------------------------------------------------------------


def battery_module(voltage: float = 9.0, max_current: float = 0.5, name: str = "Battery") -> ModuleDefinition:
    """Two-cell battery: positive terminal at offset 0, negative at offset 1."""
    return ModuleDefinition(
        module=name,
        category="power",
        grid=[
            PinDefinition(PinRole.POSITIVE, "+", 0, 0, is_powerable=True, voltage=voltage, current=max_current),
            PinDefinition(PinRole.NEGATIVE, "-", 1, 0, is_groundable=True),
        ],
        properties={"voltage": voltage, "current": max_current},
        description="Battery",
    )


def power_supply_module(voltage: float = 5.0, max_current: float = 1.0) -> ModuleDefinition:
    return ModuleDefinition(
        module="PowerSupply",
        category="power",
        grid=[
            PinDefinition(PinRole.VCC, "5V", 0, 0, is_powerable=True, voltage=voltage, current=max_current),
            PinDefinition(PinRole.GND, "GND", 1, 0, is_groundable=True),
        ],
        properties={"voltage": voltage, "current": max_current},
        description="Bench power supply",
    )


def resistor_module(resistance: float = 1000.0, max_power: float = 0.25) -> ModuleDefinition:
    return ModuleDefinition(
        module="Resistor",
        category="passive",
        grid=[
            PinDefinition(PinRole.TERMINAL, "1", 0, 0),
            PinDefinition(PinRole.TERMINAL, "2", 1, 0),
        ],
        properties={"resistance": resistance, "maxPower": max_power},
        description="Fixed resistor",
    )


def led_module(forward_voltage: float = 2.0, max_current: float = 0.02, max_power: float = 0.1) -> ModuleDefinition:
    return ModuleDefinition(
        module="LED",
        category="output",
        grid=[
            PinDefinition(PinRole.LED_POSITIVE, "anode", 0, 0),
            PinDefinition(PinRole.LED_NEGATIVE, "cathode", 1, 0),
        ],
        properties={"forwardVoltage": forward_voltage, "maxCurrent": max_current, "maxPower": max_power},
        description="Light emitting diode",
    )


def motor_module(nominal_voltage: float = 3.0, running_current: float = 0.1) -> ModuleDefinition:
    return ModuleDefinition(
        module="Motor",
        category="output",
        grid=[
            PinDefinition(PinRole.TERMINAL, "M+", 0, 0),
            PinDefinition(PinRole.TERMINAL, "M-", 1, 0),
        ],
        properties={"nominalVoltage": nominal_voltage, "runningCurrent": running_current},
        description="DC motor",
    )


def ground_module() -> ModuleDefinition:
    return ModuleDefinition(
        module="Ground",
        category="power",
        grid=[PinDefinition(PinRole.GND, "GND", 0, 0, is_groundable=True)],
        description="Ground reference",
    )


def arduino_uno_module() -> ModuleDefinition:
    """Reduced Arduino Uno footprint: power pins, two digital and one analog pin."""
    return ModuleDefinition(
        module="Arduino Uno R3",
        category="microcontrollers",
        grid=[
            PinDefinition(PinRole.VCC, "5V", 0, 0, voltage=5.0, current=0.5),
            PinDefinition(PinRole.GND, "GND", 1, 0, is_groundable=True),
            PinDefinition(PinRole.GPIO, "D2", 2, 0, voltage=5.0, current=0.04),
            PinDefinition(PinRole.GPIO, "D13", 3, 0, voltage=5.0, current=0.04),
            PinDefinition(PinRole.ANALOG, "A0", 4, 0, voltage=5.0, current=0.04),
        ],
        description="Arduino Uno R3",
    )


def esp32_module() -> ModuleDefinition:
    return ModuleDefinition(
        module="ESP32 DevKit",
        category="microcontrollers",
        grid=[
            PinDefinition(PinRole.VCC, "3V3", 0, 0, voltage=3.3, current=0.5),
            PinDefinition(PinRole.GND, "GND", 1, 0, is_groundable=True),
            PinDefinition(PinRole.GPIO, "GPIO2", 2, 0, voltage=3.3, current=0.04),
            PinDefinition(PinRole.GPIO, "GPIO23", 3, 0, voltage=3.3, current=0.04),
        ],
        description="ESP32 development board",
    )


MODULE_LIBRARY: dict[str, ModuleDefinition] = {
    "Battery": battery_module(),
    "PowerSupply": power_supply_module(),
    "Resistor": resistor_module(),
    "LED": led_module(),
    "Motor": motor_module(),
    "Ground": ground_module(),
    "Arduino Uno R3": arduino_uno_module(),
    "ESP32 DevKit": esp32_module(),
}


def get_module(name: str) -> ModuleDefinition:
    """Look up a built-in module by display name or normalized kind.

    Raises ``KeyError`` if no module is registered under that name.
    """
    if name in MODULE_LIBRARY:
        return MODULE_LIBRARY[name]
    kind = normalize_kind(name)
    for definition in MODULE_LIBRARY.values():
        if definition.kind == kind:
            return definition
    raise KeyError(f"No module definition for {name!r}")
