"""Tests for the command-line interface (app/cli.py)."""

import json

import pytest
from cli import (
    __version__,
    build_parser,
    cmd_batch,
    cmd_modules,
    cmd_solve,
    cmd_validate,
    load_snapshot,
    main,
    try_load_snapshot,
)
from controllers.file_controller import SnapshotDocument


def _series_snapshot():
    return {
        "width": 12,
        "height": 8,
        "components": [
            {"componentId": "B1", "module": "Battery", "x": 0, "y": 0},
            {"componentId": "R1", "module": "Resistor", "x": 0, "y": 2},
        ],
        "wires": [
            {"id": "w1", "segments": [{"from": {"x": 0, "y": 0}, "to": {"x": 0, "y": 2}}]},
            {"id": "w2", "segments": [{"from": {"x": 1, "y": 2}, "to": {"x": 1, "y": 0}}]},
        ],
    }


@pytest.fixture
def series_file(tmp_path):
    """A 9 V battery driving a 1k resistor."""
    filepath = tmp_path / "series.json"
    filepath.write_text(json.dumps(_series_snapshot()))
    return str(filepath)


@pytest.fixture
def no_source_file(tmp_path):
    """A lone resistor: structurally valid, electrically unsolvable."""
    filepath = tmp_path / "no_source.json"
    data = {"width": 4, "height": 4, "components": [{"componentId": "R1", "module": "Resistor", "x": 0, "y": 0}]}
    filepath.write_text(json.dumps(data))
    return str(filepath)


@pytest.fixture
def gpio_file(tmp_path):
    """Battery through an Arduino D13 pin into an LED and resistor."""
    data = {
        "width": 12,
        "height": 8,
        "components": [
            {"componentId": "B1", "module": "Battery", "x": 0, "y": 0},
            {"componentId": "U1", "module": "Arduino Uno R3", "x": 0, "y": 2},
            {"componentId": "R1", "module": "Resistor", "x": 6, "y": 2, "resistance": 100},
            {"componentId": "LED1", "module": "LED", "x": 6, "y": 4},
        ],
        "wires": [
            {"id": "w1", "segments": [{"from": {"x": 0, "y": 0}, "to": {"x": 3, "y": 2}}]},
            {"id": "w2", "segments": [{"from": {"x": 3, "y": 2}, "to": {"x": 6, "y": 2}}]},
            {"id": "w3", "segments": [{"from": {"x": 7, "y": 2}, "to": {"x": 6, "y": 4}}]},
            {"id": "w4", "segments": [{"from": {"x": 7, "y": 4}, "to": {"x": 1, "y": 0}}]},
        ],
    }
    filepath = tmp_path / "gpio.json"
    filepath.write_text(json.dumps(data))
    return str(filepath)


class TestLoadSnapshot:
    def test_load_valid(self, series_file):
        document = load_snapshot(series_file)
        assert isinstance(document, SnapshotDocument)
        assert document.grid.component_ids() == ["B1", "R1"]
        assert len(document.wires) == 2

    def test_load_nonexistent(self):
        with pytest.raises(SystemExit):
            load_snapshot("/nonexistent/file.json")

    def test_load_invalid_structure(self, tmp_path):
        bad = tmp_path / "bad_struct.json"
        bad.write_text('{"foo": "bar"}')
        with pytest.raises(SystemExit):
            load_snapshot(str(bad))


class TestTryLoadSnapshot:
    def test_success(self, series_file):
        document, error = try_load_snapshot(series_file)
        assert document is not None
        assert error == ""

    def test_nonexistent(self):
        document, error = try_load_snapshot("/nonexistent/file.json")
        assert document is None
        assert "not found" in error

    def test_invalid_json(self, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        document, error = try_load_snapshot(str(bad))
        assert document is None
        assert "invalid JSON" in error


class TestSolveCommand:
    def test_json_to_stdout(self, series_file, capsys):
        code = cmd_solve(build_parser().parse_args(["solve", series_file]))
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["circuitInfo"]["pathways"] == [["B1", "R1"]]
        assert data["circuitInfo"]["totalCurrent"] == pytest.approx(0.009)

    def test_csv(self, series_file, capsys):
        code = cmd_solve(build_parser().parse_args(["solve", series_file, "--format", "csv"]))
        assert code == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert lines[0].startswith("component,type,status")
        assert lines[1].startswith("B1,Battery,active")

    def test_output_file(self, series_file, tmp_path):
        outfile = tmp_path / "result.json"
        code = cmd_solve(build_parser().parse_args(["solve", series_file, "-o", str(outfile)]))
        assert code == 0
        assert "componentStates" in json.loads(outfile.read_text())

    def test_summary_on_stderr(self, series_file, capsys):
        cmd_solve(build_parser().parse_args(["solve", series_file]))
        err = capsys.readouterr().err
        assert "Solved: 9 V" in err
        assert "1 kΩ" in err

    def test_pin_file(self, gpio_file, tmp_path, capsys):
        pins = tmp_path / "pins.json"
        pins.write_text(json.dumps({"13": {"state": "HIGH"}}))
        code = cmd_solve(build_parser().parse_args(["solve", gpio_file, "--pins", str(pins)]))
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["componentStates"]["LED1"]["isOn"] is True

    def test_without_pins_led_stays_off(self, gpio_file, capsys):
        cmd_solve(build_parser().parse_args(["solve", gpio_file]))
        data = json.loads(capsys.readouterr().out)
        assert data["componentStates"]["LED1"]["isOn"] is False

    def test_config_file(self, series_file, tmp_path, capsys):
        config = tmp_path / "solver.json"
        config.write_text(json.dumps({"default_resistance": 5000}))
        code = cmd_solve(build_parser().parse_args(["solve", series_file, "--config", str(config)]))
        assert code == 0

    def test_bad_config_file(self, series_file, tmp_path):
        config = tmp_path / "solver.json"
        config.write_text("[]")
        with pytest.raises(SystemExit):
            cmd_solve(build_parser().parse_args(["solve", series_file, "--config", str(config)]))

    def test_via_main(self, series_file, capsys):
        assert main(["solve", series_file]) == 0


class TestValidateCommand:
    def test_valid_snapshot(self, series_file, capsys):
        code = cmd_validate(build_parser().parse_args(["validate", series_file]))
        assert code == 0
        assert "valid" in capsys.readouterr().out

    def test_no_source_fails(self, no_source_file, capsys):
        code = cmd_validate(build_parser().parse_args(["validate", no_source_file]))
        assert code == 1
        assert "No power source found" in capsys.readouterr().err

    def test_via_main(self, series_file):
        assert main(["validate", series_file]) == 0


class TestBatchCommand:
    @pytest.fixture
    def snapshot_dir(self, tmp_path):
        """Three valid snapshots with different resistor values."""
        snapshots = tmp_path / "snapshots"
        snapshots.mkdir()
        for i, resistance in enumerate([470, 1000, 2200], 1):
            data = _series_snapshot()
            data["components"][1]["resistance"] = resistance
            (snapshots / f"snap_{i}.json").write_text(json.dumps(data))
        return snapshots

    def test_all_pass(self, snapshot_dir, capsys):
        code = cmd_batch(build_parser().parse_args(["batch", str(snapshot_dir)]))
        assert code == 0
        assert capsys.readouterr().out.count("OK") == 3

    def test_output_dir(self, snapshot_dir, tmp_path):
        out_dir = tmp_path / "results"
        code = cmd_batch(build_parser().parse_args(["batch", str(snapshot_dir), "--output-dir", str(out_dir)]))
        assert code == 0
        assert sorted(p.name for p in out_dir.iterdir()) == [
            "snap_1_result.json",
            "snap_2_result.json",
            "snap_3_result.json",
        ]

    def test_glob_pattern(self, snapshot_dir):
        assert cmd_batch(build_parser().parse_args(["batch", str(snapshot_dir / "snap_1*.json")])) == 0

    def test_invalid_file_fails(self, snapshot_dir, capsys):
        (snapshot_dir / "broken.json").write_text("not json")
        code = cmd_batch(build_parser().parse_args(["batch", str(snapshot_dir)]))
        assert code == 1
        assert "FAIL" in capsys.readouterr().err

    def test_fail_fast(self, snapshot_dir, capsys):
        (snapshot_dir / "a_broken.json").write_text("not json")
        code = cmd_batch(build_parser().parse_args(["batch", str(snapshot_dir), "--fail-fast"]))
        assert code == 1
        assert "OK" not in capsys.readouterr().out

    def test_no_files(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert cmd_batch(build_parser().parse_args(["batch", str(empty)])) == 1


class TestModulesCommand:
    def test_lists_library(self, capsys):
        assert cmd_modules(build_parser().parse_args(["modules"])) == 0
        out = capsys.readouterr().out
        assert "Battery" in out
        assert "Arduino Uno R3" in out
        assert "D13:GPIO" in out
        assert "Component models: battery, led, microcontroller, motor, powersupply, resistor" in out


class TestParser:
    def test_no_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_solve_requires_snapshot(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["solve"])

    def test_invalid_format(self, series_file):
        with pytest.raises(SystemExit):
            main(["solve", series_file, "--format", "xml"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out
