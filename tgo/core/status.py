"""Status derivation — pure functions over one unit's event sequence.

A unit's status is never stored.  It is re-derived from the events on
every call: the status of the first terminal event, or ``Status.NONE``
if the unit never reported finishing.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from tgo.models.events import Action, Event, Status

NO_TEST_FILES_MARKER = "[no test files]\n"

_COVERAGE_RE = re.compile(r"^coverage: (.+) of statements$")


def derive_status(events: Iterable[Event]) -> Status:
    """Return the status of the first terminal event, else ``NONE``."""
    for event in events:
        status = Status.from_action(event.action)
        if status is not None:
            return status
    return Status.NONE


def find_first_by_action(events: Iterable[Event], *actions: Action) -> Event | None:
    for event in events:
        if event.action in actions:
            return event
    return None


def sort_by_time(events: Iterable[Event]) -> list[Event]:
    """Stable sort by event time; arrival order breaks ties."""
    return sorted(events, key=lambda e: e.time)


def is_package_without_tests(events: Iterable[Event]) -> bool:
    """Whether the package reported ``[no test files]``."""
    for event in events:
        if (
            event.action == Action.OUTPUT
            and event.test == ""
            and event.output.lstrip(" ").endswith(NO_TEST_FILES_MARKER)
        ):
            return True
    return False


def find_coverage(events: Sequence[Event]) -> str:
    """Extract the reported coverage, e.g. ``"87.3%"``, or ``""``.

    Only package-level sequences carry coverage.
    """
    if not events or events[0].test != "":
        return ""
    for event in events:
        if event.action != Action.OUTPUT:
            continue
        match = _COVERAGE_RE.match(event.output.strip())
        if match:
            return match.group(1).strip()
    return ""
