"""
Grid circuit solver application.

Packages:
    models       grid snapshot, module/pin definitions and wires
    electrical   topology extraction and steady-state solver
    controllers  solve history, observers and snapshot file I/O

Entry point: ``python -m cli`` from this directory.
"""
