"""
electrical/limits.py

Advisory rating checks run after a solve. Findings are plain strings;
nothing here changes solved values.
"""

import logging

from models.wire import WireData

from .component_models import ComponentProperties
from .results import ComponentState

logger = logging.getLogger(__name__)

# Small tolerance so exact-rating operation is not flagged
_EPSILON = 1e-12


def check_component_limits(
    state: ComponentState,
    properties: ComponentProperties,
    kind: str,
    current_limited: bool = True,
) -> list[str]:
    """
    Rating findings for one solved component.

    *current_limited* is False when no branch through the component
    carries a resistor; a powered LED is then reported as unprotected.
    """
    findings = []
    if properties.max_power is not None and state.power > properties.max_power + _EPSILON:
        findings.append(
            f"{state.component_id}: power {state.power:.3f}W exceeds {properties.max_power:.3f}W rating"
        )
    if kind == "led":
        if state.current > properties.rated_current + _EPSILON:
            findings.append(
                f"{state.component_id}: LED current {state.current * 1000:.1f}mA exceeds "
                f"{properties.rated_current * 1000:.1f}mA rating"
            )
        if not current_limited and state.input_voltage > 0:
            findings.append(
                f"{state.component_id}: LED without current limiting resistor at {state.input_voltage:.2f}V"
            )
    for finding in findings:
        logger.debug("Limit check: %s", finding)
    return findings


def check_wire_limits(wire: WireData) -> list[str]:
    findings = []
    if wire.current > wire.max_current + _EPSILON:
        findings.append(
            f"Wire {wire.wire_id}: current {wire.current:.2f}A exceeds {wire.max_current}A for {wire.gauge} AWG"
        )
    if wire.power > wire.max_power + _EPSILON:
        findings.append(
            f"Wire {wire.wire_id}: power {wire.power:.1f}W exceeds {wire.max_power}W for {wire.gauge} AWG"
        )
    for finding in findings:
        logger.debug("Limit check: %s", finding)
    return findings
