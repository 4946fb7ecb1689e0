"""tgo CLI — Typer-based command-line interface.

Provides the ``tgo`` command, a drop-in for ``go test`` that prints
compact per-unit results and end-of-run summaries.

All output uses Rich for formatted terminal display.
"""
