"""
models/format_utils.py

Parsing and formatting of electrical quantities with SI unit prefixes.
Module files and snapshots may give values as "1k", "220", "20mA" or "3.3V".
"""
import re

SI_PREFIX_MULTIPLIERS = {
    'p': 1e-12,  # Pico
    'n': 1e-9,   # Nano
    'u': 1e-6,   # Micro
    'µ': 1e-6,   # Micro
    'm': 1e-3,   # Milli
    'k': 1e3,    # Kilo
    'K': 1e3,    # Kilo (common on resistor labels)
    'M': 1e6,    # Mega
    'G': 1e9,    # Giga
}

FORMATTING_PREFIXES = [
    (1e9, 'G'), (1e6, 'M'), (1e3, 'k'), (1, ''),
    (1e-3, 'm'), (1e-6, 'µ'), (1e-9, 'n'), (1e-12, 'p'),
]

_NUMBER_RE = re.compile(r'^(-?\d+\.?\d*(?:e[-+]?\d+)?)\s*([a-zA-Zµ]*)')


def parse_value(s) -> float:
    """
    Parses a string with an optional SI prefix into a float.
    Examples: "10k" -> 10000.0, "20mA" -> 0.02, "3.3V" -> 3.3
    """
    if not isinstance(s, str):
        return float(s)

    s = s.strip()
    match = _NUMBER_RE.match(s)
    if not match:
        raise ValueError(f"Invalid number format: {s}")

    num_str, unit_str = match.groups()
    if not unit_str:
        return float(num_str)

    # Only the leading letter can be a prefix; "V", "A", "Ω" are bare units
    multiplier = SI_PREFIX_MULTIPLIERS.get(unit_str[0])
    if multiplier is None:
        return float(num_str)
    return float(num_str) * multiplier


def parse_value_or(s, default: float) -> float:
    """parse_value that falls back to *default* for missing or bad input."""
    if s is None or s == "":
        return default
    try:
        return parse_value(s)
    except (ValueError, TypeError):
        return default


def format_value(value: float, unit: str = "") -> str:
    """
    Formats a float into a string with the most appropriate SI prefix.
    Examples: 0.015 -> "15.00 mA" (unit="A"), 1500 -> "1.50 kΩ" (unit="Ω")
    """
    if value == 0:
        return f"0 {unit}".strip()

    abs_val = abs(value)
    for mult, prefix in FORMATTING_PREFIXES:
        if abs_val >= mult:
            scaled_val = value / mult
            if scaled_val == int(scaled_val):
                return f"{int(scaled_val)} {prefix}{unit}".strip()
            return f"{scaled_val:.2f} {prefix}{unit}".strip()

    return f"{value:.2e} {unit}".strip()
