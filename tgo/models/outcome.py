"""Typed result of one tgo run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from tgo.errors import SupervisedProcessError


class RunCounts(BaseModel):
    """Totals shown on the final banner line.

    ``passed``, ``failed`` and ``skipped`` count test units only;
    ``none`` counts every unit (package or test) that never finished.
    """

    model_config = ConfigDict(frozen=True)

    passed: int = 0
    failed: int = 0
    none: int = 0
    skipped: int = 0


class RunOutcome(BaseModel):
    """How a run ended, distinguishable from a clean run."""

    model_config = ConfigDict(frozen=True)

    exit_code: int | None = None  # None: clean exit or killed by a signal
    cancelled: bool = False
    stream_error: str | None = None
    counts: RunCounts = RunCounts()
    elapsed_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return (
            not self.exit_code
            and not self.cancelled
            and self.stream_error is None
        )

    def raise_for_status(self) -> None:
        """Raise ``SupervisedProcessError`` if the test process failed."""
        if self.exit_code:
            raise SupervisedProcessError(self.exit_code)
