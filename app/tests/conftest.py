"""
Shared test fixtures for the grid circuit solver test suite.

All fixtures build pure-Python model objects.
"""

import sys
from pathlib import Path

# Ensure app/ is on sys.path so bare imports (models, electrical, controllers)
# work when running individual test files (e.g., python -m pytest app/tests/unit/test_foo.py).
_app_dir = str(Path(__file__).resolve().parent.parent)
if _app_dir not in sys.path:
    sys.path.insert(0, _app_dir)

import pytest
from models.grid import GridSnapshot
from models.module import arduino_uno_module, battery_module, ground_module, led_module, resistor_module
from models.wire import WireData, WireSegment


def make_grid(width=12, height=8):
    """Helper to create an empty GridSnapshot."""
    return GridSnapshot(width, height)


def make_wire(wire_id, *points, gauge=14):
    """Helper to create a WireData through consecutive *points*."""
    segments = [WireSegment(tuple(a), tuple(b)) for a, b in zip(points, points[1:])]
    return WireData(wire_id=wire_id, segments=segments, gauge=gauge)


@pytest.fixture
def series_circuit():
    """
    B1(5V) + -- R1(1k) -- R2(2k) -- B1 -

    B1 at (0,0)/(1,0), R1 at (0,2)/(1,2), R2 at (3,2)/(4,2).
    R2's 2k comes from a cell override.
    """
    grid = make_grid()
    grid.place_component("B1", battery_module(voltage=5.0), 0, 0)
    grid.place_component("R1", resistor_module(1000.0), 0, 2)
    grid.place_component("R2", resistor_module(), 3, 2, resistance=2000.0)
    wires = [
        make_wire("w1", (0, 0), (0, 2)),
        make_wire("w2", (1, 2), (3, 2)),
        make_wire("w3", (4, 2), (4, 0), (1, 0)),
    ]
    return grid, wires


@pytest.fixture
def parallel_circuit():
    """
    B1(5V) + -- J1 --+-- R1(1k) --+-- J2 -- B1 -
                     +-- R2(1k) --+

    Junctions J1 (3,3) and J2 (6,3) are empty cells.
    """
    grid = make_grid(10, 6)
    grid.place_component("B1", battery_module(voltage=5.0), 0, 0)
    grid.place_component("R1", resistor_module(1000.0), 4, 2)
    grid.place_component("R2", resistor_module(1000.0), 4, 4)
    wires = [
        make_wire("w1", (0, 0), (3, 3)),
        make_wire("w2", (3, 3), (4, 2)),
        make_wire("w3", (3, 3), (4, 4)),
        make_wire("w4", (5, 2), (6, 3)),
        make_wire("w5", (5, 4), (6, 3)),
        make_wire("w6", (6, 3), (1, 0)),
    ]
    return grid, wires


@pytest.fixture
def led_circuit():
    """
    B1(9V) + -- R1(100) -- LED1 -- B1 -

    LED-limited: 20 mA, R1 drops 2 V, LED sees 7 V.
    """
    grid = make_grid()
    grid.place_component("B1", battery_module(voltage=9.0), 0, 0)
    grid.place_component("R1", resistor_module(100.0), 0, 2)
    grid.place_component("LED1", led_module(), 3, 2)
    wires = [
        make_wire("w1", (0, 0), (0, 2)),
        make_wire("w2", (1, 2), (3, 2)),
        make_wire("w3", (4, 2), (4, 0), (1, 0)),
    ]
    return grid, wires


@pytest.fixture
def open_circuit():
    """B1 + -- R1, with R1's far pin and B1 - left unconnected."""
    grid = make_grid()
    grid.place_component("B1", battery_module(voltage=5.0), 0, 0)
    grid.place_component("R1", resistor_module(1000.0), 0, 2)
    wires = [make_wire("w1", (0, 0), (0, 2))]
    return grid, wires


@pytest.fixture
def microcontroller_circuit():
    """
    B1(9V) + -- U1.D13 -- R1(100) ... LED1 -- B1 -

    U1 is an Arduino Uno at (0,2); D13 sits at (3,2).
    The walk meets U1 at D13, then LED1, then R1.
    """
    grid = make_grid()
    grid.place_component("B1", battery_module(voltage=9.0), 0, 0)
    grid.place_component("U1", arduino_uno_module(), 0, 2)
    grid.place_component("R1", resistor_module(100.0), 6, 2)
    grid.place_component("LED1", led_module(), 6, 4)
    wires = [
        make_wire("w1", (0, 0), (3, 2)),
        make_wire("w2", (3, 2), (6, 2)),
        make_wire("w3", (7, 2), (6, 4)),
        make_wire("w4", (7, 4), (1, 0)),
    ]
    return grid, wires


@pytest.fixture
def forked_circuit():
    """
    B1(9V) + -- J1 --+-- R1(1k) -- G1
                     +-- R2(1k) -- (open)

    J1 (3,3) is an empty junction. G1 is a Ground module, so only the R1
    leg reaches ground; B1 - is left unconnected.
    """
    grid = make_grid()
    grid.place_component("B1", battery_module(voltage=9.0), 0, 0)
    grid.place_component("R1", resistor_module(1000.0), 4, 2)
    grid.place_component("G1", ground_module(), 7, 2)
    grid.place_component("R2", resistor_module(1000.0), 4, 4)
    wires = [
        make_wire("w1", (0, 0), (3, 3)),
        make_wire("w2", (3, 3), (4, 2)),
        make_wire("w3", (3, 3), (4, 4)),
        make_wire("w4", (5, 2), (7, 2)),
    ]
    return grid, wires


@pytest.fixture
def no_source_circuit():
    """Resistor and LED wired together with no battery or supply."""
    grid = make_grid()
    grid.place_component("R1", resistor_module(1000.0), 0, 2)
    grid.place_component("LED1", led_module(), 3, 2)
    wires = [make_wire("w1", (1, 2), (3, 2))]
    return grid, wires
