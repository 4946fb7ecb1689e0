"""Test event records as emitted by ``go test -json``.

One JSON object per line::

    {"Time":"2024-05-01T10:00:00.123456789Z","Action":"pass",
     "Package":"example.com/p","Test":"TestX","Elapsed":0.02}

Events with an empty ``Test`` belong to the package as a whole.  The
pair (package, test) is the ``Key`` that groups events into units.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tgo.errors import RecordParseError

# Go's zero time.Time, used when a record carries no timestamp.
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

# Go timestamps carry nanoseconds; datetime holds microseconds.
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


class Action(str, Enum):
    """What happened to a test.

    run    - the test has started running
    pause  - the test has been paused
    cont   - the test has continued running
    pass   - the test passed
    bench  - the benchmark printed log output but did not fail
    fail   - the test or benchmark failed
    output - the test printed output
    skip   - the test was skipped or the package contained no tests
    """

    RUN = "run"
    PAUSE = "pause"
    CONT = "cont"
    PASS = "pass"
    BENCH = "bench"
    FAIL = "fail"
    OUTPUT = "output"
    SKIP = "skip"
    UNKNOWN = "unknown"


class Status(str, Enum):
    """End state of a unit; ``NONE`` means it never reported finishing."""

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"
    BENCH = "bench"
    NONE = "none"

    @property
    def action(self) -> Action | None:
        """The terminal action that produces this status."""
        return _STATUS_ACTIONS.get(self)

    @property
    def display_name(self) -> str:
        return self.value.upper()

    @classmethod
    def from_action(cls, action: Action) -> Status | None:
        for status, status_action in _STATUS_ACTIONS.items():
            if status_action == action:
                return status
        return None


_STATUS_ACTIONS: dict[Status, Action] = {
    Status.PASS: Action.PASS,
    Status.FAIL: Action.FAIL,
    Status.SKIP: Action.SKIP,
    Status.BENCH: Action.BENCH,
}

# Actions that end a unit's logical execution, in summary scan order.
TERMINAL_ACTIONS: tuple[Action, ...] = (
    Action.FAIL,
    Action.SKIP,
    Action.PASS,
    Action.BENCH,
)

ALL_STATUSES: tuple[Status, ...] = (
    Status.BENCH,
    Status.PASS,
    Status.SKIP,
    Status.NONE,
    Status.FAIL,
)


class Key(NamedTuple):
    """Identifies a package and test together."""

    package: str
    test: str = ""

    @property
    def is_package(self) -> bool:
        return self.test == ""

    def __str__(self) -> str:
        if self.test == "":
            return self.package
        return f"{self.package}.{self.test}"


class Event(BaseModel):
    """A single decoded ``go test -json`` record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    time: datetime = Field(default=ZERO_TIME, alias="Time")
    action: Action = Field(default=Action.UNKNOWN, alias="Action")
    package: str = Field(alias="Package")
    test: str = Field(default="", alias="Test")
    elapsed: float = Field(default=0.0, ge=0, alias="Elapsed")
    output: str = Field(default="", alias="Output")

    @field_validator("time", mode="before")
    @classmethod
    def _truncate_nanoseconds(cls, value: Any) -> Any:
        if value is None:
            return ZERO_TIME
        if isinstance(value, str):
            return _FRACTION_RE.sub(r"\1", value)
        return value

    @field_validator("time")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("action", mode="before")
    @classmethod
    def _unclassified_action(cls, value: Any) -> Any:
        if isinstance(value, Action):
            return value
        try:
            return Action(value)
        except ValueError:
            return Action.UNKNOWN

    @field_validator("package")
    @classmethod
    def _package_required(cls, value: str) -> str:
        if not value:
            raise ValueError("event has no package")
        return value

    @field_validator("test", "output", mode="before")
    @classmethod
    def _null_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def key(self) -> Key:
        return Key(self.package, self.test)

    @classmethod
    def from_json(cls, line: str | bytes) -> Event:
        """Decode one input line.

        Raises
        ------
        RecordParseError
            If the line is not JSON, not an object, or fails validation.
        """
        try:
            return cls.model_validate_json(line)
        except ValidationError as exc:
            text = line.decode("utf-8", "replace") if isinstance(line, bytes) else line
            first = exc.errors()[0]
            raise RecordParseError(
                f"invalid test event: {first['msg']}", line=text.rstrip("\n")
            ) from exc
