"""Rich terminal presenter for unit results, summaries and coverage.

Turns unit event sequences into Rich ``Text`` renderables.  Every mode
has a ``render_*`` method that builds the text and a ``print_*`` method
that writes it to the console.

Color scheme
------------
- red      : FAIL
- green    : PASS, BENCH
- yellow   : NONE
- magenta  : SKIP
- cyan     : elapsed times
- blue     : coverage
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.text import Text

from tgo.config import TgoConfig, Verbosity
from tgo.core.compactor import display_events
from tgo.core.status import (
    derive_status,
    find_coverage,
    find_first_by_action,
    is_package_without_tests,
    sort_by_time,
)
from tgo.core.unit_store import UnitStore
from tgo.models.events import TERMINAL_ACTIONS, Event, Status
from tgo.models.outcome import RunCounts

_RULE = "════════════"
_SHORT_RULE = "══════"

# Elapsed times below this are not worth printing.
_MIN_ELAPSED = 0.01


class StatusStyles(BaseModel):
    """Dispatch tables from status to display name and Rich style."""

    model_config = ConfigDict(frozen=True)

    names: dict[Status, str] = {status: status.display_name for status in Status}
    colors: dict[Status, str] = {
        Status.FAIL: "red",
        Status.PASS: "green",
        Status.NONE: "yellow",
        Status.SKIP: "bright_magenta",
        Status.BENCH: "green",
    }
    # Raw output lines of failed and skipped units are tinted.
    output_colors: dict[Status, str] = {
        Status.FAIL: "red",
        Status.SKIP: "bright_magenta",
    }
    package: str = ""
    test: str = "magenta"
    time: str = "cyan"
    coverage: str = "blue"

    def name(self, status: Status) -> str:
        return self.names.get(status, status.value.upper())

    def color(self, status: Status) -> str:
        return self.colors.get(status, "")

    def bold(self, status: Status) -> str:
        return f"bold {self.color(status)}".strip()

    def output(self, status: Status) -> str:
        return self.output_colors.get(status, "")


def format_elapsed(seconds: float) -> str:
    return f"({seconds:.2f}s)"


def format_clock(moment: datetime) -> str:
    """``HH:MM:SS.fff`` with trailing fractional zeros dropped."""
    fraction = f".{moment.microsecond // 1000:03d}".rstrip("0").rstrip(".")
    return moment.strftime("%H:%M:%S") + fraction


def format_duration(seconds: float) -> str:
    """Go-style duration rounded to milliseconds: ``350ms``, ``1.5s``, ``2m3s``."""
    millis = round(seconds * 1000)
    if millis == 0:
        return "0s"
    if millis < 1000:
        return f"{millis}ms"
    hours, rest = divmod(millis, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    secs = f"{rest / 1000:.3f}".rstrip("0").rstrip(".") + "s"
    if hours:
        return f"{hours}h{minutes}m{secs}"
    if minutes:
        return f"{minutes}m{secs}"
    return secs


class Presenter:
    """Renders units as Rich terminal output.

    Parameters
    ----------
    config:
        The run configuration (verbosity, hidden empty statuses).
    console:
        Rich Console instance.  A new one is created if not provided.
    styles:
        Status dispatch tables.  Defaults to ``StatusStyles()``.
    """

    def __init__(
        self,
        config: TgoConfig,
        console: Console | None = None,
        *,
        styles: StatusStyles | None = None,
    ) -> None:
        self.config = config
        self.console = console or Console(highlight=False, soft_wrap=True)
        self.styles = styles or StatusStyles()

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    def render_detail(self, events: Sequence[Event]) -> Text | None:
        """Render one unit: a header line plus its remaining output.

        Returns ``None`` when there is nothing worth printing.
        """
        if not events:
            return None
        low_verbosity = self.config.v <= Verbosity.V3
        shown = display_events(events, self.config.v)
        if not shown:
            return None

        output_events = [
            e for e in shown if not (low_verbosity and e.output.strip() == "")
        ]

        ordered = sort_by_time(shown)
        status = derive_status(ordered)
        if not output_events and self.config.hides_empty(status):
            return None

        event = None
        if status.action is not None:
            event = find_first_by_action(ordered, status.action)
        if event is None:
            event = ordered[0]

        parts = [self._detail_header(status, event, events, bool(output_events))]
        if output_events:
            parts.append(Text(""))
            parts.extend(self._output_line(status, e) for e in output_events)
            parts.append(Text(""))
        return Text("\n").join(parts)

    def _detail_header(
        self,
        status: Status,
        event: Event,
        events: Sequence[Event],
        has_output: bool,
    ) -> Text:
        styles = self.styles
        bold = styles.bold(status)
        header = Text()
        header.append("===", bold)
        header.append(" ")
        header.append(styles.name(status), bold)
        header.append(" ")
        header.append(event.package, styles.color(status))
        if event.test:
            header.append(".")
            header.append(event.test, f"bold {styles.test}" if has_output else styles.test)

        if event.elapsed >= _MIN_ELAPSED:
            header.append("  ")
            header.append(format_elapsed(event.elapsed), styles.time)

        coverage = find_coverage(events)
        if coverage:
            header.append("  ")
            header.append(f"{{{coverage}}}", styles.coverage)

        if is_package_without_tests(events):
            header.append("  [no tests]")
        return header

    def _output_line(self, status: Status, event: Event) -> Text:
        line = Text()
        if self.config.v >= Verbosity.V3:
            line.append(f"{event.action.value:>7} {format_clock(event.time)} ")
        output = event.output.removesuffix("\n")
        line.append_text(Text.from_ansi(output, style=self.styles.output(status)))
        return line

    def print_detail(self, events: Sequence[Event]) -> bool:
        """Print one unit.  Returns whether anything was printed."""
        text = self.render_detail(events)
        if text is None:
            return False
        self.console.print(text)
        return True

    # ------------------------------------------------------------------
    # Grouped summary
    # ------------------------------------------------------------------

    def render_summary(
        self,
        status: Status,
        units: UnitStore,
        all_units: UnitStore | None = None,
    ) -> Text:
        """Render one summary group, one line per unit in key order.

        Package lines count the tests of that package in ``all_units``
        (defaults to ``units``).
        """
        styles = self.styles
        color = styles.color(status)
        name = styles.name(status)
        test_counts = Counter(
            key.package for key in (all_units if all_units is not None else units)
            if not key.is_package
        )

        lines = [Text.assemble((_RULE, color), " ", (name, color), " ", (_RULE, color))]
        for key in units.ordered_keys():
            events = units[key]
            line = Text(f"{name:>6} ", style=color)
            line.append(key.package, styles.package)
            if not key.is_package:
                line.append(".")
                line.append(key.test, styles.test)

            ending = find_first_by_action(events, *TERMINAL_ACTIONS)
            if ending is not None and ending.elapsed >= _MIN_ELAPSED:
                line.append("  ")
                line.append(format_elapsed(ending.elapsed), styles.time)

            if key.is_package:
                line.append("   ")
                line.append(f"<{test_counts[key.package]} tests>", color)
                if is_package_without_tests(events):
                    line.append("  [no tests]")
                coverage = find_coverage(events)
                if coverage:
                    line.append("  ")
                    line.append(f"{{{coverage}}}", styles.coverage)
            lines.append(line)
        return Text("\n").join(lines)

    def print_summary(
        self,
        status: Status,
        units: UnitStore,
        all_units: UnitStore | None = None,
    ) -> None:
        self.console.print(self.render_summary(status, units, all_units))

    # ------------------------------------------------------------------
    # Coverage table
    # ------------------------------------------------------------------

    def render_coverage(self, units: UnitStore) -> Text:
        cover = self.styles.coverage
        lines = [Text.assemble((_RULE, cover), " ", ("COVR", cover), " ", (_RULE, cover))]
        for key in units.ordered_keys():
            if not key.is_package:
                continue
            coverage = find_coverage(units[key])
            line = Text(f"{coverage:>6} " if coverage else "", style=cover)
            line.append(key.package, self.styles.package)
            lines.append(line)
        return Text("\n").join(lines)

    def print_coverage(self, units: UnitStore) -> None:
        self.console.print(self.render_coverage(units))

    # ------------------------------------------------------------------
    # Totals banner
    # ------------------------------------------------------------------

    def render_totals(
        self,
        counts: RunCounts,
        elapsed: float,
        now: datetime | None = None,
    ) -> Text:
        """The final ``PASS:n | FAIL:n | NONE:n | SKIP:n`` line.

        The frame takes the color of the worst non-empty class.
        """
        styles = self.styles
        frame = ""
        passed = Text(f"{styles.name(Status.PASS)}:{counts.passed}")
        failed = Text(f"{styles.name(Status.FAIL)}:{counts.failed}")
        none = Text(f"{styles.name(Status.NONE)}:{counts.none}")
        skipped = Text(f"{styles.name(Status.SKIP)}:{counts.skipped}")

        if counts.passed > 0:
            frame = styles.bold(Status.PASS)
            passed.stylize(frame)
        if counts.none > 0:
            frame = styles.bold(Status.NONE)
            none.stylize(frame)
        if counts.failed > 0:
            frame = styles.bold(Status.FAIL)
            failed.stylize(frame)

        moment = now or datetime.now()
        separator = Text.assemble(" ", ("|", frame), " ")
        line = Text.assemble((_SHORT_RULE, frame), " ", (moment.strftime("%H:%M:%S"), frame))
        for part in (passed, failed, none, skipped, Text(format_duration(elapsed), frame)):
            line.append_text(separator)
            line.append_text(part)
        line.append("  ")
        line.append(_SHORT_RULE, frame)
        return line

    def print_totals(
        self,
        counts: RunCounts,
        elapsed: float,
        now: datetime | None = None,
    ) -> None:
        self.console.print()
        self.console.print(self.render_totals(counts, elapsed, now))

    def print_separator(self) -> None:
        self.console.print("*****", markup=False)
