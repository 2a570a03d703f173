"""
electrical/component_models.py

Constitutive models: per-kind rules mapping (properties, input voltage,
input current) to the component's output state.

Models are registered by normalized module kind. Unknown kinds have no
model and produce no state.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from models.grid import GridCell
from models.pin import GROUND_ROLES, LOGIC_ROLES, SUPPLY_ROLES, PinRole

from .config import DEFAULT_CONFIG, SolverConfig
from .parallel import resistance_of
from .results import STATUS_ACTIVE, STATUS_INACTIVE, STATUS_OFF, STATUS_ON

logger = logging.getLogger(__name__)

HIGH = "HIGH"
LOW = "LOW"

# Analog pins are keyed after the digital range
ANALOG_PIN_OFFSET = 100

_PIN_ID_RE = re.compile(r"^(GPIO|D|A)?(\d+)$", re.IGNORECASE)


def parse_pin_id(name: str) -> Optional[int]:
    """
    Numeric pin-state key for a pin name.

    "GPIO23" -> 23, "D13" -> 13, "A0" -> 100, "7" -> 7; anything else -> None.
    """
    match = _PIN_ID_RE.match((name or "").strip())
    if not match:
        return None
    prefix, number = match.groups()
    pin_id = int(number)
    if prefix and prefix.upper() == "A":
        pin_id += ANALOG_PIN_OFFSET
    return pin_id


def normalize_pin_states(pin_states: Optional[dict]) -> dict[int, str]:
    """
    Coerce a pin-state map to ``{int: "HIGH"|"LOW"}``.

    Keys may be ints or numeric strings (JSON); values may be
    ``{"state": "HIGH"}`` or a bare state string. Bad entries are dropped.
    """
    normalized: dict[int, str] = {}
    for key, value in (pin_states or {}).items():
        try:
            pin_id = int(key)
        except (TypeError, ValueError):
            pin_id = parse_pin_id(str(key))
        if pin_id is None:
            logger.warning("Ignoring pin state for unrecognised pin '%s'", key)
            continue
        state = value.get("state") if isinstance(value, dict) else value
        normalized[pin_id] = str(state).upper() if state is not None else LOW
    return normalized


@dataclass
class ComponentProperties:
    """Electrical properties of one component, resolved from its cell."""

    role: PinRole = PinRole.TERMINAL
    pin: str = ""
    voltage: float = 0.0
    current: float = 0.0
    resistance: float = 0.0
    forward_voltage: float = 2.0
    rated_current: float = 0.02
    nominal_voltage: float = 0.0
    running_current: float = 0.0
    max_power: Optional[float] = None
    pin_states: dict[int, str] = field(default_factory=dict)

    @classmethod
    def from_cell(
        cls,
        cell: GridCell,
        config: SolverConfig = DEFAULT_CONFIG,
        pin_states: Optional[dict[int, str]] = None,
    ) -> "ComponentProperties":
        pin = cell.pin
        module = cell.module
        kind = module.kind

        voltage = pin.voltage if pin.voltage > 0 else (module.get_property("voltage", 0.0) or 0.0)
        if kind == "led":
            default_power = config.default_led_max_power
        elif kind == "resistor":
            default_power = config.default_resistor_max_power
        else:
            default_power = None
        max_power = pin.max_power if pin.max_power is not None else module.get_property("maxPower", default_power)

        return cls(
            role=pin.role,
            pin=pin.pin,
            voltage=voltage,
            current=pin.current,
            resistance=resistance_of(cell, config),
            forward_voltage=module.get_property("forwardVoltage", config.default_forward_voltage),
            rated_current=module.get_property("maxCurrent", config.default_led_current),
            nominal_voltage=module.get_property("nominalVoltage", voltage),
            running_current=module.get_property("runningCurrent", pin.current),
            max_power=max_power,
            pin_states=dict(pin_states or {}),
        )


@dataclass
class ModelOutput:
    output_voltage: float
    output_current: float
    power: float
    status: str
    is_powered: bool = False
    is_grounded: bool = False
    voltage_drop: Optional[float] = None
    forward_voltage: Optional[float] = None
    is_on: Optional[bool] = None


class ComponentModel(ABC):
    """Base class for constitutive models."""

    @abstractmethod
    def calculate(self, properties: ComponentProperties, input_voltage: float, input_current: float) -> ModelOutput:
        """Output state for a component fed *input_voltage* at *input_current*."""


class SourceModel(ComponentModel):
    """Ideal voltage source: nominal voltage regardless of input."""

    def calculate(self, properties, input_voltage, input_current):
        v = properties.voltage
        return ModelOutput(
            output_voltage=v,
            output_current=input_current,
            power=v * input_current,
            status=STATUS_ACTIVE,
            is_powered=v > 0,
        )


class ResistorModel(ComponentModel):
    def calculate(self, properties, input_voltage, input_current):
        drop = input_current * properties.resistance
        out = max(0.0, input_voltage - drop)
        return ModelOutput(
            output_voltage=out,
            output_current=input_current,
            power=drop * input_current,
            status=STATUS_ACTIVE,
            is_powered=input_voltage > 0,
            voltage_drop=drop,
        )


class FixedDropModel(ComponentModel):
    """Loads that drop a fixed voltage when on: LEDs (forward voltage) and motors."""

    def drop_of(self, properties: ComponentProperties) -> float:
        return properties.forward_voltage

    def calculate(self, properties, input_voltage, input_current):
        drop = self.drop_of(properties)
        is_on = input_voltage >= drop and input_current > 0
        return ModelOutput(
            output_voltage=max(0.0, input_voltage - drop),
            output_current=input_current,
            power=drop * input_current,
            status=STATUS_ON if is_on else STATUS_OFF,
            is_powered=is_on,
            voltage_drop=drop,
            forward_voltage=drop,
            is_on=is_on,
        )


class LEDModel(FixedDropModel):
    pass


class MotorModel(FixedDropModel):
    def drop_of(self, properties):
        return properties.nominal_voltage

    def calculate(self, properties, input_voltage, input_current):
        output = super().calculate(properties, input_voltage, input_current)
        output.forward_voltage = None
        return output


class MicrocontrollerModel(ComponentModel):
    """
    Logic pins are gated by the pin-state map: HIGH passes the input
    through, LOW or unknown blocks it. Supply and ground pins pass through.
    """

    def calculate(self, properties, input_voltage, input_current):
        if properties.role in LOGIC_ROLES or properties.role == PinRole.DIGITAL:
            pin_id = parse_pin_id(properties.pin)
            state = properties.pin_states.get(pin_id) if pin_id is not None else None
            if state != HIGH:
                return ModelOutput(
                    output_voltage=0.0,
                    output_current=0.0,
                    power=0.0,
                    status=STATUS_INACTIVE,
                )
            return ModelOutput(
                output_voltage=input_voltage,
                output_current=input_current,
                power=0.0,
                status=STATUS_ACTIVE,
                is_powered=True,
            )

        return ModelOutput(
            output_voltage=input_voltage,
            output_current=input_current,
            power=0.0,
            status=STATUS_ACTIVE,
            is_powered=input_voltage > 0 and properties.role in SUPPLY_ROLES,
            is_grounded=properties.role in GROUND_ROLES,
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_registry: dict[str, ComponentModel] = {}


def register(kind: str, model: ComponentModel) -> None:
    """Register *model* for the normalized module *kind*."""
    _registry[kind] = model


def get_model(kind: str) -> ComponentModel:
    """Look up the model for *kind*.

    Raises ``KeyError`` if no model is registered.
    """
    model = _registry.get(kind)
    if model is not None:
        return model
    raise KeyError(f"No component model for {kind!r}")


def model_for(module) -> Optional[ComponentModel]:
    """Model for a module definition, or None for kinds without one."""
    kind = "microcontroller" if module.is_microcontroller else module.kind
    try:
        return get_model(kind)
    except KeyError:
        logger.debug("No component model registered for %r", kind)
        return None


def registered_kinds() -> list[str]:
    return sorted(_registry)


register("battery", SourceModel())
register("powersupply", SourceModel())
register("resistor", ResistorModel())
register("led", LEDModel())
register("motor", MotorModel())
register("microcontroller", MicrocontrollerModel())
