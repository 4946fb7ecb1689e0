"""Display-only removal of framework boilerplate from a unit's events.

``go test`` announces and concludes every test with banner lines
(``=== RUN``, ``--- PASS: T (0.01s)``) and every package with marker
lines (``ok  <pkg> 0.01s``, ``PASS``, coverage summaries).  The header
tgo prints already carries that information, so at low verbosity the
banners are dropped.  The result is always a subsequence of the input.
"""

from __future__ import annotations

from collections.abc import Sequence

from tgo.config import Verbosity
from tgo.core.status import NO_TEST_FILES_MARKER, find_first_by_action
from tgo.models.events import Action, Event

# Highest verbosity at which events are compacted.
COMPACT_MAX_VERBOSITY = Verbosity.V3

_LIFECYCLE_ACTIONS = frozenset({Action.RUN, Action.CONT, Action.PAUSE})


def _elapsed_of_first(events: Sequence[Event], action: Action) -> float:
    event = find_first_by_action(events, action)
    return event.elapsed if event is not None else 0.0


def _test_banners(test: str, passed_at: float, failed_at: float, skipped_at: float) -> set[str]:
    return {
        f"=== RUN   {test}\n",
        f"=== CONT  {test}\n",
        f"=== PAUSE {test}\n",
        f"--- FAIL: {test} ({failed_at:.2f}s)\n",
        f"--- SKIP: {test} ({skipped_at:.2f}s)\n",
        f"--- PASS: {test} ({passed_at:.2f}s)\n",
    }


def _is_package_boilerplate(event: Event) -> bool:
    output = event.output.lstrip(" ")
    stripped = event.output.strip()
    package = event.package
    return (
        output.startswith(f"ok  \t{package}")
        or output.endswith(NO_TEST_FILES_MARKER)
        or output == f"ok   {package}\n"
        or output in ("PASS\n", "FAIL\n", "testing: warning: no tests to run\n")
        or stripped.startswith(f"FAIL\t{package}\t")
        or (stripped.startswith("coverage:") and stripped.endswith("of statements"))
    )


def compact(events: Sequence[Event]) -> list[Event]:
    """Remove events that carry nothing beyond the unit's header line.

    Terminal banners are matched against the elapsed time of the first
    event with that terminal action anywhere in the sequence.
    """
    passed_at = _elapsed_of_first(events, Action.PASS)
    failed_at = _elapsed_of_first(events, Action.FAIL)
    skipped_at = _elapsed_of_first(events, Action.SKIP)

    banners: dict[str, set[str]] = {}
    kept: list[Event] = []
    for event in events:
        if event.action in _LIFECYCLE_ACTIONS:
            continue
        if event.action == Action.OUTPUT:
            if event.test:
                if event.test not in banners:
                    banners[event.test] = _test_banners(
                        event.test, passed_at, failed_at, skipped_at
                    )
                if event.output.lstrip(" ") in banners[event.test]:
                    continue
            elif _is_package_boilerplate(event):
                continue
        kept.append(event)
    return kept


def display_events(events: Sequence[Event], verbosity: int) -> list[Event]:
    """Compact at low verbosity; above it, an unchanged copy."""
    if verbosity <= COMPACT_MAX_VERBOSITY:
        return compact(events)
    return list(events)
