"""
Integration tests: snapshot files through the controllers and solver.

Covers save -> load -> solve -> save result, and repeated solves driven
by pin-state changes with observers attached.
"""

import json

import pytest
from controllers.file_controller import FileController, SnapshotDocument
from controllers.simulation_controller import SimulationController
from electrical.solver import solve_circuit
from models.grid import GridSnapshot
from models.wire import WireData


class TestSnapshotRoundTrip:
    @pytest.mark.parametrize(
        "fixture_name",
        ["series_circuit", "parallel_circuit", "led_circuit", "open_circuit", "microcontroller_circuit"],
    )
    def test_loaded_snapshot_solves_identically(self, request, tmp_path, fixture_name):
        grid, wires = request.getfixturevalue(fixture_name)
        path = tmp_path / f"{fixture_name}.json"
        FileController().save_snapshot(path, SnapshotDocument(grid, wires))

        loaded = FileController().load_snapshot(path)
        original = solve_circuit(grid, wires)
        reloaded = solve_circuit(loaded.grid, loaded.wires)
        assert reloaded.to_dict() == original.to_dict()

    def test_result_file_is_plain_json(self, tmp_path, led_circuit):
        path = tmp_path / "result.json"
        FileController.save_result(path, solve_circuit(*led_circuit))
        data = json.loads(path.read_text())

        wires = [WireData.from_dict(w) for w in data["updatedWires"]]
        assert [w.wire_id for w in wires] == ["w1", "w2", "w3"]
        grid = GridSnapshot.from_dict(data["updatedGridData"])
        assert grid.cell_at(3, 2).is_powered
        assert data["circuitInfo"]["totalCurrent"] == pytest.approx(0.02)

    def test_solved_state_in_file_is_ignored_on_load(self, tmp_path, series_circuit):
        result = solve_circuit(*series_circuit)
        data = result.updated_grid.to_dict()
        data["wires"] = [w.to_dict() for w in result.updated_wires]
        path = tmp_path / "solved.json"
        path.write_text(json.dumps(data))

        loaded = FileController().load_snapshot(path)
        assert all(w.voltage == 0.0 for w in loaded.wires)
        again = solve_circuit(loaded.grid, loaded.wires)
        assert again.circuit_info.to_dict() == result.circuit_info.to_dict()


class TestPinStateDrivenSolves:
    def test_toggle_gpio_reports_changes(self, tmp_path, microcontroller_circuit):
        grid, wires = microcontroller_circuit
        path = tmp_path / "blink.json"
        FileController().save_snapshot(path, SnapshotDocument(grid, wires, {"13": {"state": "LOW"}}))
        document = FileController().load_snapshot(path)

        sim = SimulationController()
        diffs = []
        sim.add_observer(lambda event, data: diffs.append(data) if event == "solve_completed" else None)

        sim.run(document.grid, document.wires, document.pin_states, label="low")
        sim.run(document.grid, document.wires, {"13": {"state": "HIGH"}}, label="high")
        sim.run(document.grid, document.wires, {"13": {"state": "HIGH"}}, label="high again")

        assert len(diffs) == 3
        assert diffs[1].changed["LED1"]["is_on"] == (False, True)
        assert diffs[2].is_empty
        assert [e.label for e in sim.history.entries] == ["high again", "high", "low"]

    def test_history_keeps_independent_results(self, microcontroller_circuit):
        grid, wires = microcontroller_circuit
        sim = SimulationController()
        sim.run(grid, wires, {13: "HIGH"})
        sim.run(grid, wires, {13: "LOW"})
        low, high = sim.history[0].result, sim.history[1].result
        assert high.state("LED1").is_on is True
        assert low.state("LED1").is_on is False
