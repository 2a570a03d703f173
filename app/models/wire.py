"""
WireData - Pure Python data model for grid wires.

A wire is an ordered list of straight segments between integer grid
positions. Wires are electrically transparent; the gauge only sets the
current/power rating used by the limit checks.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

Position = tuple[int, int]


@dataclass(frozen=True)
class WireGauge:
    """Rating of one AWG wire size."""

    gauge: int
    max_current: float
    max_power: float
    description: str = ""


# AWG ratings (amps, watts)
WIRE_GAUGES: dict[int, WireGauge] = {
    g.gauge: g
    for g in (
        WireGauge(0, 150, 18000, "0 AWG - Extra heavy duty"),
        WireGauge(1, 130, 15600, "1 AWG - Heavy duty"),
        WireGauge(2, 115, 13800, "2 AWG - Heavy duty"),
        WireGauge(3, 100, 12000, "3 AWG - Heavy duty"),
        WireGauge(4, 85, 10200, "4 AWG - Heavy duty"),
        WireGauge(6, 65, 7800, "6 AWG - Heavy duty"),
        WireGauge(8, 50, 6000, "8 AWG - Heavy duty"),
        WireGauge(10, 30, 3600, "10 AWG - Heavy duty"),
        WireGauge(12, 20, 2400, "12 AWG - Standard"),
        WireGauge(14, 15, 1800, "14 AWG - Standard"),
        WireGauge(16, 10, 1200, "16 AWG - Light duty"),
        WireGauge(18, 7, 840, "18 AWG - Signal"),
        WireGauge(20, 5, 600, "20 AWG - Low power"),
        WireGauge(22, 3, 360, "22 AWG - Data"),
        WireGauge(24, 2, 240, "24 AWG - Micro"),
    )
}

DEFAULT_GAUGE = 14


def gauge_rating(gauge: Optional[int]) -> WireGauge:
    """Rating for *gauge*; unknown gauges fall back to 14 AWG."""
    return WIRE_GAUGES.get(gauge, WIRE_GAUGES[DEFAULT_GAUGE])


@dataclass(frozen=True)
class WireSegment:
    """A straight segment between two grid positions."""

    start: Position
    end: Position

    @property
    def endpoints(self) -> tuple[Position, Position]:
        return (self.start, self.end)

    def to_dict(self) -> dict:
        return {
            "from": {"x": self.start[0], "y": self.start[1]},
            "to": {"x": self.end[0], "y": self.end[1]},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireSegment":
        start = data["from"]
        end = data["to"]
        return cls(
            start=(int(start["x"]), int(start["y"])),
            end=(int(end["x"]), int(end["y"])),
        )


@dataclass
class WireData:
    """
    Pure Python data class representing a wire on the grid.

    The electrical fields (voltage, current, power, is_powered, is_grounded,
    driven_by) are filled in by the solver on a copy; input wires are never
    modified.
    """

    wire_id: str
    segments: list[WireSegment] = field(default_factory=list)
    gauge: int = DEFAULT_GAUGE

    # Solved state
    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0
    is_powered: bool = False
    is_grounded: bool = False
    driven_by: Optional[str] = None

    @property
    def max_current(self) -> float:
        return gauge_rating(self.gauge).max_current

    @property
    def max_power(self) -> float:
        return gauge_rating(self.gauge).max_power

    def endpoints(self) -> list[Position]:
        """All segment endpoints in order, without duplicates."""
        seen: list[Position] = []
        for segment in self.segments:
            for pos in segment.endpoints:
                if pos not in seen:
                    seen.append(pos)
        return seen

    def copy(self, **changes) -> "WireData":
        """Return a new WireData with *changes* applied. Segments are shared (immutable)."""
        return replace(self, segments=list(self.segments), **changes)

    def to_dict(self) -> dict:
        """Serialize wire to dictionary (JSON snapshot format)."""
        return {
            "id": self.wire_id,
            "segments": [seg.to_dict() for seg in self.segments],
            "gauge": self.gauge,
            "maxCurrent": self.max_current,
            "maxPower": self.max_power,
            "voltage": self.voltage,
            "current": self.current,
            "power": self.power,
            "isPowered": self.is_powered,
            "isGrounded": self.is_grounded,
            "drivenBy": self.driven_by,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WireData":
        """
        Deserialize wire from dictionary.

        Solved fields are ignored on input; only id, segments and gauge are read.
        """
        return cls(
            wire_id=str(data["id"]),
            segments=[WireSegment.from_dict(seg) for seg in data.get("segments", [])],
            gauge=int(data.get("gauge", DEFAULT_GAUGE)),
        )

    def __repr__(self) -> str:
        return f"WireData({self.wire_id}, segments={len(self.segments)}, {self.voltage:.3g}V)"
