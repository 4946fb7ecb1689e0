"""Error taxonomy for a tgo run.

Only ``SupervisedProcessError`` ever reaches the caller of a run; the
other errors are raised and handled inside the stream driver.
"""

from __future__ import annotations


class TgoError(RuntimeError):
    """Base class for every tgo error."""


class RecordParseError(TgoError):
    """Raised when one input line is not a valid test event.

    Non-fatal: the driver logs the line and keeps scanning.
    """

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class StreamReadError(TgoError):
    """Raised when the input stream itself fails.

    Scanning stops early; whatever was collected is still summarized.
    """


class CancellationError(TgoError):
    """Raised when shutdown was requested while scanning."""


class SupervisedProcessError(TgoError):
    """The supervised test process exited with a non-zero status."""

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"test process exited with status {exit_code}")
        self.exit_code = exit_code
