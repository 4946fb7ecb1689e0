"""Stream driver — scanning, draining and terminating one test run.

States
------
scanning
    Decode input lines in arrival order, append each event to the unit
    store and print a unit the first time it shows a result the config
    asks to see inline.  At most one such print happens per unit.
draining
    Input ended (EOF, read error or cancellation).  Print the units
    that never finished, the grouped summaries, the coverage table and
    the totals line.
terminating
    Give the test process a grace period to exit, then kill it and
    collect its exit status.
"""

from __future__ import annotations

import logging
import subprocess
import time
from collections.abc import Iterable, Iterator
from enum import Enum

from tgo.config import TgoConfig, Verbosity
from tgo.core.cancellation import CancellationToken
from tgo.core.supervisor import EventSource
from tgo.core.unit_store import UnitStore
from tgo.errors import CancellationError, RecordParseError, StreamReadError
from tgo.models.events import TERMINAL_ACTIONS, Action, Event, Key, Status
from tgo.models.outcome import RunCounts, RunOutcome
from tgo.report.renderer import Presenter

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    """Lifecycle of a ``StreamDriver``."""

    SCANNING = "scanning"
    DRAINING = "draining"
    TERMINATING = "terminating"
    DONE = "done"


def _read_lines(lines: Iterable[bytes | str]) -> Iterator[bytes | str]:
    """Iterate input lines, turning IO failures into ``StreamReadError``."""
    iterator = iter(lines)
    while True:
        try:
            line = next(iterator)
        except StopIteration:
            return
        except (OSError, ValueError) as exc:
            raise StreamReadError(f"error reading test output: {exc}") from exc
        yield line


class StreamDriver:
    """Drives one run from the first input line to the exit status.

    Parameters
    ----------
    config:
        The immutable run configuration.
    presenter:
        Where unit details and summaries are printed.
    cover_enabled:
        Print the coverage table after the summaries.
    """

    def __init__(
        self,
        config: TgoConfig,
        presenter: Presenter,
        *,
        cover_enabled: bool = False,
    ) -> None:
        self.config = config
        self.presenter = presenter
        self.cover_enabled = cover_enabled
        self.store = UnitStore()
        self.printed: set[Key] = set()
        self.state = DriverState.SCANNING
        self.cancelled = False
        self.stream_error: str | None = None
        self._started = time.monotonic()

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def feed(self, event: Event) -> bool:
        """Append one event; print its unit on first sight.

        Returns whether the unit was printed by this call.
        """
        key = self.store.append(event)
        if key in self.printed or not self.config.shows_inline(event.action):
            return False
        self.presenter.print_detail(self.store[key])
        self.printed.add(key)
        return True

    def scan(
        self,
        lines: Iterable[bytes | str],
        token: CancellationToken | None = None,
    ) -> None:
        """Consume input until it ends, fails, or the token is cancelled."""
        self.state = DriverState.SCANNING
        self.presenter.print_separator()
        try:
            for line in _read_lines(lines):
                if token is not None:
                    token.raise_if_cancelled()
                logger.debug("LINE: %s", line.rstrip())
                try:
                    event = Event.from_json(line)
                except RecordParseError as exc:
                    logger.warning("Skipping input line: %s: %r", exc, exc.line)
                    continue
                self.feed(event)
        except StreamReadError as exc:
            logger.error("%s", exc)
            self.stream_error = str(exc)
        except CancellationError:
            logger.info("Scanning cancelled with %d units collected", len(self.store))
            self.cancelled = True
        if token is not None and token.cancelled:
            self.cancelled = True
        self.state = DriverState.DRAINING

    # ------------------------------------------------------------------
    # Draining
    # ------------------------------------------------------------------

    def pending_units(self) -> UnitStore:
        """Units that never reported a terminal action."""
        return self.store.filter_by_action(*TERMINAL_ACTIONS)

    def counts(self) -> RunCounts:
        store = self.store
        return RunCounts(
            passed=store.units_with_action(Action.PASS).count_tests(),
            failed=store.units_with_action(Action.FAIL).count_tests(),
            none=len(self.pending_units()),
            skipped=store.units_with_action(Action.SKIP).count_tests(),
        )

    def summary_units(self, status: Status) -> UnitStore:
        """The units shown in the summary group for ``status``."""
        if status.action is None:
            return self.pending_units()
        units = self.store.units_with_action(status.action)
        if status == Status.SKIP and self.config.v <= Verbosity.V3:
            units = units.without_test_files()
        return units

    def drain(self) -> RunCounts:
        """Print everything that is only known once the input has ended."""
        self.state = DriverState.DRAINING
        counts = self.counts()
        if not len(self.store):
            return counts

        presenter = self.presenter
        if Status.NONE in self.config.results:
            unseen = self.store.filter_excluding(self.printed).filter_by_action(
                *TERMINAL_ACTIONS
            )
            for key in unseen.ordered_keys():
                presenter.print_detail(self.store[key])
                self.printed.add(key)

        for status in self.config.summary:
            units = self.summary_units(status)
            if len(units):
                presenter.print_summary(status, units, self.store)

        if self.cover_enabled:
            covered = self.store.with_coverage()
            if len(covered):
                presenter.print_coverage(covered)

        presenter.print_totals(counts, time.monotonic() - self._started)
        return counts

    # ------------------------------------------------------------------
    # Terminating
    # ------------------------------------------------------------------

    def terminate(self, source: EventSource) -> int | None:
        """Wait out the grace period, then kill; return the exit code.

        A process killed by a signal has no exit code.
        """
        self.state = DriverState.TERMINATING
        source.close()
        try:
            returncode = source.wait(timeout=self.config.grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning(
                "Test process still running %.1fs after its output ended, killing it",
                self.config.grace_seconds,
            )
            source.kill()
            returncode = source.wait()
        self.state = DriverState.DONE
        if returncode < 0:
            logger.debug("Test process ended by signal %d", -returncode)
            return None
        return returncode or None

    # ------------------------------------------------------------------
    # Whole run
    # ------------------------------------------------------------------

    def run(
        self,
        source: EventSource,
        token: CancellationToken | None = None,
    ) -> RunOutcome:
        """Scan the source to the end, drain, and collect its exit status."""
        self._started = time.monotonic()
        if token is not None:
            token.add_callback(source.terminate)
        self.scan(source.lines(), token)
        counts = self.drain()
        exit_code = self.terminate(source)
        return RunOutcome(
            exit_code=exit_code,
            cancelled=self.cancelled,
            stream_error=self.stream_error,
            counts=counts,
            elapsed_seconds=time.monotonic() - self._started,
        )
