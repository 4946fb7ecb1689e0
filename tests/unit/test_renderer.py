"""Unit tests for the Presenter.

Covers the detail, summary, coverage and totals modes and the
status-to-style dispatch tables.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from tgo.core.unit_store import UnitStore
from tgo.models.events import Action, Event, Status
from tgo.models.outcome import RunCounts
from tgo.report.renderer import (
    StatusStyles,
    format_clock,
    format_duration,
    format_elapsed,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _failed_test(make_event):
    return [
        make_event("run", package="example.com/calc", test="TestDiv"),
        make_event(package="example.com/calc", test="TestDiv", output="=== RUN   TestDiv\n"),
        make_event(
            package="example.com/calc",
            test="TestDiv",
            output="    calc_test.go:21: division by zero\n",
        ),
        make_event(
            package="example.com/calc", test="TestDiv", output="--- FAIL: TestDiv (0.03s)\n"
        ),
        make_event("fail", package="example.com/calc", test="TestDiv", elapsed=0.03),
    ]


def _calc_store(make_event) -> UnitStore:
    units = UnitStore()
    for event in [
        *_failed_test(make_event),
        make_event("pass", package="example.com/calc", test="TestAdd"),
        make_event(package="example.com/calc", output="coverage: 75.0% of statements\n"),
        make_event("fail", package="example.com/calc", elapsed=0.05),
    ]:
        units.append(event)
    return units


# ---------------------------------------------------------------------------
# Test: Style tables
# ---------------------------------------------------------------------------


class TestStatusStyles:
    """Every status must have a display name and a color."""

    def test_all_statuses_have_names(self):
        styles = StatusStyles()
        for status in Status:
            assert styles.name(status) == status.display_name

    def test_all_statuses_have_colors(self):
        styles = StatusStyles()
        for status in Status:
            assert styles.color(status), f"Missing color for {status}"

    def test_output_tint_only_for_fail_and_skip(self):
        styles = StatusStyles()
        assert styles.output(Status.FAIL) == "red"
        assert styles.output(Status.PASS) == ""


class TestFormatting:
    def test_elapsed(self):
        assert format_elapsed(0.0312) == "(0.03s)"

    def test_clock(self):
        assert format_clock(datetime(2024, 5, 1, 10, 0, 0, 120000)) == "10:00:00.12"
        assert format_clock(datetime(2024, 5, 1, 10, 0, 0)) == "10:00:00"

    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0s"),
            (0.35, "350ms"),
            (1.5, "1.5s"),
            (2.0, "2s"),
            (123.5, "2m3.5s"),
            (3600, "1h0m0s"),
        ],
    )
    def test_duration(self, seconds, expected):
        assert format_duration(seconds) == expected


# ---------------------------------------------------------------------------
# Test: Detail mode
# ---------------------------------------------------------------------------


class TestDetail:
    def test_failed_test(self, make_presenter, make_event, read_output):
        presenter = make_presenter()
        assert presenter.print_detail(_failed_test(make_event))
        lines = read_output().splitlines()
        assert lines[0] == "=== FAIL example.com/calc.TestDiv  (0.03s)"
        assert lines[1] == ""
        assert lines[2] == "    calc_test.go:21: division by zero"
        assert lines[3] == ""
        assert "=== RUN" not in read_output()

    def test_package_without_tests(self, make_presenter, make_event, read_output):
        presenter = make_presenter()
        presenter.print_detail(
            [
                make_event(package="example.com/util", output="?   \texample.com/util\t[no test files]\n"),
                make_event("skip", package="example.com/util"),
            ]
        )
        assert read_output() == "=== SKIP example.com/util  [no tests]\n"

    def test_package_with_coverage(self, make_presenter, make_event, read_output):
        presenter = make_presenter()
        presenter.print_detail(
            [
                make_event(package="example.com/calc", output="coverage: 75.0% of statements\n"),
                make_event("fail", package="example.com/calc", elapsed=0.05),
            ]
        )
        assert read_output() == "=== FAIL example.com/calc  (0.05s)  {75.0%}\n"

    def test_unfinished_test(self, make_presenter, make_event, read_output):
        presenter = make_presenter()
        presenter.print_detail(
            [
                make_event("run", package="example.com/slow", test="TestHang"),
                make_event(package="example.com/slow", test="TestHang", output="waiting\n"),
            ]
        )
        assert read_output().splitlines()[0] == "=== NONE example.com/slow.TestHang"

    def test_hidden_when_empty(self, make_presenter, make_event, read_output):
        presenter = make_presenter(res_hide="pass")
        events = [
            make_event("run", test="TestAdd"),
            make_event(test="TestAdd", output="=== RUN   TestAdd\n"),
            make_event("pass", test="TestAdd"),
        ]
        assert not presenter.print_detail(events)
        assert read_output() == ""

    def test_not_hidden_with_output(self, make_presenter, make_event, read_output):
        presenter = make_presenter(res_hide="pass")
        events = [
            make_event(test="TestAdd", output="    add_test.go:3: 1+1\n"),
            make_event("pass", test="TestAdd"),
        ]
        assert presenter.print_detail(events)
        assert "1+1" in read_output()

    def test_nothing_left_after_compaction(self, make_presenter, make_event):
        presenter = make_presenter()
        assert presenter.render_detail([make_event("run", test="TestX")]) is None
        assert presenter.render_detail([]) is None

    def test_blank_output_dropped_at_low_verbosity(self, make_presenter, make_event, read_output):
        presenter = make_presenter()
        presenter.print_detail(
            [
                make_event(test="T", output="a\n"),
                make_event(test="T", output="   \n"),
                make_event("fail", test="T"),
            ]
        )
        assert read_output().splitlines() == ["=== FAIL example.com/p.T", "", "a", ""]

    def test_action_and_time_prefix_at_v3(self, make_presenter, make_event, read_output):
        presenter = make_presenter(v=3)
        presenter.print_detail(
            [
                make_event(test="T", output="hello\n", time="2024-05-01T10:00:00.12Z"),
                make_event("fail", test="T", time="2024-05-01T10:00:01Z"),
            ]
        )
        assert " output 10:00:00.12 hello" in read_output().splitlines()

    def test_no_compaction_at_v4(self, make_presenter, make_event, read_output):
        presenter = make_presenter(v=4)
        presenter.print_detail(
            [
                make_event(test="T", output="=== RUN   T\n"),
                make_event("pass", test="T"),
            ]
        )
        assert "=== RUN   T" in read_output()


# ---------------------------------------------------------------------------
# Test: Summary, coverage and totals
# ---------------------------------------------------------------------------


class TestSummary:
    def test_fail_group(self, make_presenter, make_event):
        presenter = make_presenter()
        store = _calc_store(make_event)
        text = presenter.render_summary(Status.FAIL, store.units_with_action(Action.FAIL), store)
        assert text.plain.splitlines() == [
            "════════════ FAIL ════════════",
            "  FAIL example.com/calc.TestDiv  (0.03s)",
            "  FAIL example.com/calc  (0.05s)   <2 tests>  {75.0%}",
        ]

    def test_package_count_defaults_to_group(self, make_presenter, make_event):
        presenter = make_presenter()
        store = _calc_store(make_event)
        text = presenter.render_summary(Status.FAIL, store.units_with_action(Action.FAIL))
        assert "<1 tests>" in text.plain

    def test_no_tests_marker(self, make_presenter, make_event):
        presenter = make_presenter()
        store = UnitStore()
        store.append(make_event(package="u", output="?   \tu\t[no test files]\n"))
        store.append(make_event("skip", package="u"))
        text = presenter.render_summary(Status.SKIP, store)
        assert text.plain.splitlines()[1] == "  SKIP u   <0 tests>  [no tests]"


class TestCoverage:
    def test_table(self, make_presenter, make_event):
        presenter = make_presenter()
        store = _calc_store(make_event)
        text = presenter.render_coverage(store.with_coverage())
        assert text.plain.splitlines() == [
            "════════════ COVR ════════════",
            " 75.0% example.com/calc",
        ]


class TestTotals:
    def test_line(self, make_presenter):
        presenter = make_presenter()
        text = presenter.render_totals(
            RunCounts(passed=1, failed=1, none=1, skipped=0),
            1.5,
            now=datetime(2024, 5, 1, 10, 0, 0),
        )
        assert text.plain == (
            "══════ 10:00:00 | PASS:1 | FAIL:1 | NONE:1 | SKIP:0 | 1.5s  ══════"
        )

    def test_frame_takes_worst_color(self, make_presenter):
        presenter = make_presenter()
        failed = presenter.render_totals(RunCounts(passed=3, failed=1), 0)
        assert any(span.style == "bold red" for span in failed.spans)

        pending = presenter.render_totals(RunCounts(passed=3, none=1), 0)
        styles = {span.style for span in pending.spans}
        assert "bold yellow" in styles
        assert "bold red" not in styles

        passed = presenter.render_totals(RunCounts(passed=3), 0)
        assert {span.style for span in passed.spans} == {"bold green"}

    def test_print_adds_blank_line(self, make_presenter, read_output):
        presenter = make_presenter()
        presenter.print_totals(RunCounts(), 0, now=datetime(2024, 5, 1, 10, 0, 0))
        assert read_output().startswith("\n══════ 10:00:00 | PASS:0")


class TestScenarios:
    def test_passing_test_compacts_to_header(self, make_presenter, make_line, read_output):
        presenter = make_presenter()
        events = [
            Event.from_json(make_line(Action="run", Package="p", Test="T")),
            Event.from_json(make_line(Action="pass", Package="p", Test="T", Elapsed=0.02)),
        ]
        presenter.print_detail(events)
        assert read_output() == "=== PASS p.T  (0.02s)\n"

    def test_unfinished_package_counts_no_tests(self, make_presenter, make_event):
        presenter = make_presenter()
        store = UnitStore()
        store.append(make_event(package="q", output="ok  \tq\t0.003s\n"))
        pending = store.filter_by_action(Action.FAIL, Action.SKIP, Action.PASS, Action.BENCH)
        text = presenter.render_summary(Status.NONE, pending, store)
        assert text.plain.splitlines()[1] == "  NONE q   <0 tests>"

    def test_package_counts_its_tests(self, make_presenter, make_event):
        presenter = make_presenter()
        store = UnitStore()
        store.append(make_event("fail", package="a", test="T1"))
        store.append(make_event("pass", package="a", test="T2"))
        store.append(make_event("pass", package="a"))
        text = presenter.render_summary(Status.PASS, store.units_with_action(Action.PASS), store)
        assert text.plain.splitlines()[-1] == "  PASS a   <2 tests>"
