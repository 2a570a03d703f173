"""
Command-line interface for the grid circuit solver.

Solve snapshots, validate them and list built-in modules.

Usage::

    python -m cli solve snapshot.json
    python -m cli solve snapshot.json --pins pins.json --config solver.json --output result.json
    python -m cli solve snapshot.json --format csv
    python -m cli validate snapshot.json
    python -m cli batch snapshots/ --output-dir results/
    python -m cli modules
"""

import argparse
import csv
import glob
import io
import json
import logging
import sys
from pathlib import Path

from controllers.file_controller import FileController, SnapshotDocument
from controllers.simulation_controller import SimulationController
from electrical.component_models import model_for, registered_kinds
from electrical.config import SolverConfig
from models.format_utils import format_value
from models.module import MODULE_LIBRARY

__version__ = "0.1.0"


def try_load_snapshot(filepath: str) -> tuple[SnapshotDocument | None, str]:
    """Load and validate a snapshot JSON file without exiting.

    Returns:
        (document, "") on success, or (None, error_message) on failure.
    """
    path = Path(filepath)
    if not path.exists():
        return None, f"file not found: {filepath}"

    try:
        return FileController().load_snapshot(path), ""
    except json.JSONDecodeError as e:
        return None, f"invalid JSON in {filepath}: {e}"
    except ValueError as e:
        return None, f"invalid snapshot file: {e}"


def load_snapshot(filepath: str) -> SnapshotDocument:
    """Load and validate a snapshot JSON file.

    Raises:
        SystemExit: On file read or validation errors.
    """
    document, error = try_load_snapshot(filepath)
    if document is None:
        print(f"Error: {error}", file=sys.stderr)
        sys.exit(1)
    return document


def _load_config(path) -> SolverConfig:
    if not path:
        return SolverConfig()
    try:
        return SolverConfig.load(path)
    except (OSError, ValueError) as e:
        print(f"Error: invalid solver config {path}: {e}", file=sys.stderr)
        sys.exit(1)


def _load_pins(path, document: SnapshotDocument) -> dict:
    pin_states = dict(document.pin_states)
    if path:
        try:
            pin_states.update(FileController.load_pin_states(path))
        except (OSError, ValueError) as e:
            print(f"Error: invalid pin-state file {path}: {e}", file=sys.stderr)
            sys.exit(1)
    return pin_states


def _result_to_csv(result) -> str:
    """Component states as CSV, one row per component."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["component", "type", "status", "voltage_V", "current_A", "power_W"])
    for cid, state in result.component_states.items():
        writer.writerow([cid, state.component_type, state.status, state.voltage, state.current, state.power])
    return buf.getvalue()


def _format_result(result, fmt: str) -> str:
    if fmt == "csv":
        return _result_to_csv(result)
    return json.dumps(result.to_dict(), indent=2)


def _print_summary(result) -> None:
    info = result.circuit_info
    print(
        f"Solved: {format_value(info.total_voltage, 'V')}, {format_value(info.total_current, 'A')}, "
        f"{format_value(info.total_resistance, 'Ω')}, {format_value(info.total_power, 'W')}",
        file=sys.stderr,
    )
    for warning in info.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    for error in info.errors:
        print(f"  - {error}", file=sys.stderr)


def cmd_solve(args: argparse.Namespace) -> int:
    """Solve a snapshot and output the result."""
    document = load_snapshot(args.snapshot)
    config = _load_config(args.config)
    pin_states = _load_pins(args.pins, document)

    sim = SimulationController(config)
    result = sim.run(document.grid, document.wires, pin_states, label=Path(args.snapshot).stem)
    _print_summary(result)

    output_text = _format_result(result, args.format)
    if args.output:
        Path(args.output).write_text(output_text)
        print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(output_text)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Check file structure, then report circuit-level errors from a solve."""
    document = load_snapshot(args.snapshot)
    result = SimulationController().run(document.grid, document.wires, document.pin_states)
    info = result.circuit_info

    if info.errors:
        print(f"Snapshot has errors: {args.snapshot}", file=sys.stderr)
        for err in info.errors:
            print(f"  - {err}", file=sys.stderr)
        return 1

    print(f"Snapshot is valid: {args.snapshot}")
    for warning in info.warnings:
        print(f"  Warning: {warning}")
    return 0


def cmd_batch(args: argparse.Namespace) -> int:
    """Solve every snapshot in a directory or glob."""
    pattern = args.path
    if Path(pattern).is_dir():
        files = sorted(str(p) for p in Path(pattern).glob("*.json"))
    else:
        files = sorted(glob.glob(pattern))
    if not files:
        print(f"No .json snapshot files found matching: {pattern}", file=sys.stderr)
        return 1

    config = _load_config(args.config)
    out_dir = Path(args.output_dir) if args.output_dir else None
    if out_dir:
        out_dir.mkdir(parents=True, exist_ok=True)

    any_failed = False
    for filepath in files:
        document, error = try_load_snapshot(filepath)
        if document is None:
            print(f"FAIL {filepath}: {error}", file=sys.stderr)
            any_failed = True
            if args.fail_fast:
                break
            continue

        result = SimulationController(config).run(document.grid, document.wires, document.pin_states)
        errors = result.circuit_info.errors
        status = "OK" if not errors else f"{len(errors)} error(s)"
        print(f"{status:>10}  {filepath}")
        if errors:
            any_failed = True
        if out_dir:
            FileController.save_result(out_dir / f"{Path(filepath).stem}_result.json", result)
        if errors and args.fail_fast:
            break

    return 1 if any_failed else 0


def cmd_modules(args: argparse.Namespace) -> int:
    """List the built-in module library and the registered component models."""
    for name, module in MODULE_LIBRARY.items():
        pins = ", ".join(f"{p.pin}:{p.role.value}" for p in module.grid)
        solved = "model" if model_for(module) is not None else "-"
        print(f"{name:<16} {module.category:<16} {solved:<6} {pins}")
    print(f"Component models: {', '.join(registered_kinds())}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="gridcircuit",
        description="Grid circuit solver: solve, validate and inspect grid snapshots from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log solver details to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # solve
    solve_parser = subparsers.add_parser("solve", help="Solve a snapshot and output results")
    solve_parser.add_argument("snapshot", help="Path to snapshot JSON file")
    solve_parser.add_argument("--pins", help="Pin-state JSON file (overrides pinStates in the snapshot)")
    solve_parser.add_argument("--config", help="Solver config JSON file")
    solve_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Output format (default: json)")
    solve_parser.add_argument("--output", "-o", help="Write results to file instead of stdout")

    # validate
    val_parser = subparsers.add_parser("validate", help="Check a snapshot for errors")
    val_parser.add_argument("snapshot", help="Path to snapshot JSON file")

    # batch
    batch_parser = subparsers.add_parser("batch", help="Solve multiple snapshot files")
    batch_parser.add_argument("path", help="Directory or glob pattern matching snapshot JSON files")
    batch_parser.add_argument("--config", help="Solver config JSON file")
    batch_parser.add_argument("--output-dir", help="Write per-file results to this directory")
    batch_parser.add_argument("--fail-fast", action="store_true", help="Stop on first error")

    # modules
    subparsers.add_parser("modules", help="List built-in modules")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    handlers = {
        "solve": cmd_solve,
        "validate": cmd_validate,
        "batch": cmd_batch,
        "modules": cmd_modules,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
