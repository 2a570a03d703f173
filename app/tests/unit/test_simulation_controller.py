"""Tests for controllers/simulation_controller.py: repeated solves, diffs and history."""

from datetime import datetime

import pytest
from controllers.simulation_controller import (
    HistoryEntry,
    ResultDiff,
    SimulationController,
    SolveHistory,
    diff_results,
)
from electrical.config import SolverConfig
from electrical.solver import solve_circuit
from models.module import battery_module, resistor_module
from tests.conftest import make_grid


class TestDiffResults:
    def test_first_solve_adds_everything(self, series_circuit):
        result = solve_circuit(*series_circuit)
        diff = diff_results(None, result)
        assert diff.added == ["B1", "R1", "R2"]
        assert diff.removed == []
        assert diff.changed == {}

    def test_identical_results_empty(self, series_circuit):
        a = solve_circuit(*series_circuit)
        b = solve_circuit(*series_circuit)
        assert diff_results(a, b).is_empty

    def test_changed_fields_reported(self, microcontroller_circuit):
        grid, wires = microcontroller_circuit
        off = solve_circuit(grid, wires, pin_states={13: "LOW"})
        on = solve_circuit(grid, wires, pin_states={13: "HIGH"})
        diff = diff_results(off, on)
        assert diff.changed["LED1"]["is_on"] == (False, True)
        assert diff.changed["U1"]["status"] == ("inactive", "active")
        assert "B1" not in diff.changed

    def test_removed_component(self, series_circuit, open_circuit):
        diff = diff_results(solve_circuit(*series_circuit), solve_circuit(*open_circuit))
        assert diff.removed == ["R2"]

    def test_tolerance(self, series_circuit):
        a = solve_circuit(*series_circuit)
        b = solve_circuit(*series_circuit)
        b.component_states["R1"].voltage += 1e-12
        assert diff_results(a, b).is_empty
        assert not diff_results(a, b, tolerance=0.0).is_empty

    def test_empty_diff(self):
        assert ResultDiff().is_empty


class TestSolveHistory:
    def test_newest_first(self, series_circuit, led_circuit):
        history = SolveHistory()
        history.add(solve_circuit(*series_circuit), label="series")
        history.add(solve_circuit(*led_circuit), label="led")
        assert [e.label for e in history.entries] == ["led", "series"]
        assert history.latest().label == "led"
        assert history[1].label == "series"

    def test_bounded(self, series_circuit):
        history = SolveHistory(max_entries=3)
        result = solve_circuit(*series_circuit)
        for i in range(5):
            history.add(result, label=str(i))
        assert len(history) == 3
        assert [e.label for e in history.entries] == ["4", "3", "2"]

    def test_clear(self, series_circuit):
        history = SolveHistory()
        history.add(solve_circuit(*series_circuit))
        history.clear()
        assert len(history) == 0
        assert history.latest() is None

    def test_entry_summary(self, led_circuit):
        entry = HistoryEntry(datetime(2024, 3, 1, 9, 30), solve_circuit(*led_circuit), "demo")
        assert entry.summary == "[2024-03-01 09:30:00] 9.00V 20.00mA OK (demo)"

    def test_entry_summary_with_errors(self, no_source_circuit):
        entry = HistoryEntry(datetime(2024, 3, 1), solve_circuit(*no_source_circuit))
        assert entry.summary.endswith("1 error(s)")


class TestSimulationController:
    def test_run_records_result(self, series_circuit):
        sim = SimulationController()
        result = sim.run(*series_circuit, label="first")
        assert sim.last_result is result
        assert len(sim.history) == 1
        assert sim.history.latest().label == "first"
        assert sim.last_trace is not None
        assert sim.last_trace.of_kind("pathway")

    def test_observer_events(self, series_circuit):
        sim = SimulationController()
        events = []
        sim.add_observer(lambda event, data: events.append((event, data)))
        sim.run(*series_circuit)
        sim.run(*series_circuit)
        assert [e for e, _ in events] == ["solve_started", "solve_completed"] * 2
        assert events[1][1].added == ["B1", "R1", "R2"]
        assert events[3][1].is_empty

    def test_observer_added_once(self, series_circuit):
        sim = SimulationController()
        calls = []

        def observer(event, data):
            calls.append(event)

        sim.add_observer(observer)
        sim.add_observer(observer)
        sim.run(*series_circuit)
        assert calls == ["solve_started", "solve_completed"]

    def test_remove_observer(self, series_circuit):
        sim = SimulationController()
        calls = []

        def observer(event, data):
            calls.append(event)

        sim.add_observer(observer)
        sim.remove_observer(observer)
        sim.run(*series_circuit)
        assert calls == []

    def test_failing_observer_logged(self, series_circuit, caplog):
        sim = SimulationController()

        def bad_observer(event, data):
            raise TypeError("bad observer")

        sim.add_observer(bad_observer)
        result = sim.run(*series_circuit)
        assert result.success
        assert "bad observer" in caplog.text

    def test_set_config_applies(self, series_circuit):
        _, wires = series_circuit
        grid = make_grid()
        grid.place_component("B1", battery_module(voltage=5.0, max_current=0.0), 0, 0)
        grid.place_component("R1", resistor_module(1000.0), 0, 2)
        grid.place_component("R2", resistor_module(2000.0), 3, 2)

        sim = SimulationController()
        assert sim.run(grid, wires).circuit_info.total_current == pytest.approx(5 / 3000)
        sim.set_config(SolverConfig(default_source_current=0.001))
        assert sim.run(grid, wires).circuit_info.total_current == pytest.approx(0.001)

    def test_history_limit(self, series_circuit):
        sim = SimulationController(max_history=2)
        for _ in range(4):
            sim.run(*series_circuit)
        assert len(sim.history) == 2
