"""Shared test fixtures for tgo."""

from __future__ import annotations

import io
import json
import os
import subprocess
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import pytest
from rich.console import Console

from tgo.cli import app as cli_app
from tgo.config import TgoConfig
from tgo.models.events import Event
from tgo.report.renderer import Presenter


@pytest.fixture(autouse=True)
def clean_tgo_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's TGO_* settings out of the tests."""
    for name in list(os.environ):
        if name.startswith("TGO_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def plain_cli_consoles(monkeypatch: pytest.MonkeyPatch) -> None:
    """Uncolored CLI consoles, whatever terminal the tests run in."""
    monkeypatch.setattr(
        cli_app, "console", Console(highlight=False, soft_wrap=True, color_system=None)
    )
    monkeypatch.setattr(
        cli_app, "err_console", Console(stderr=True, highlight=False, color_system=None)
    )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@pytest.fixture
def make_event() -> Callable[..., Event]:
    """Factory fixture: build an Event with sensible defaults."""

    def _factory(
        action: str = "output",
        package: str = "example.com/p",
        test: str = "",
        **overrides: Any,
    ) -> Event:
        defaults: dict[str, Any] = {
            "action": action,
            "package": package,
            "test": test,
        }
        defaults.update(overrides)
        return Event(**defaults)

    return _factory


@pytest.fixture
def make_line() -> Callable[..., bytes]:
    """Factory fixture: one ``go test -json`` line, e.g. ``make_line(Action="pass")``."""

    def _factory(**fields: Any) -> bytes:
        return (json.dumps(fields) + "\n").encode()

    return _factory


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@pytest.fixture
def console() -> Console:
    """A plain, wide console writing into memory."""
    return Console(
        file=io.StringIO(),
        width=200,
        color_system=None,
        highlight=False,
        soft_wrap=True,
    )


@pytest.fixture
def read_output(console: Console) -> Callable[[], str]:
    """Everything printed to the memory console so far."""
    return lambda: console.file.getvalue()  # type: ignore[attr-defined]


@pytest.fixture
def make_presenter(console: Console) -> Callable[..., Presenter]:
    """Factory fixture: a Presenter on the memory console for a config."""

    def _factory(**settings: Any) -> Presenter:
        return Presenter(TgoConfig(**settings), console=console)

    return _factory


# ---------------------------------------------------------------------------
# Event sources
# ---------------------------------------------------------------------------


class FakeSource:
    """In-memory ``EventSource`` standing in for the go test process."""

    def __init__(
        self,
        lines: Iterable[bytes],
        returncode: int = 0,
        *,
        hang: bool = False,
    ) -> None:
        self._lines = lines
        self.returncode = returncode
        self.hang = hang
        self.terminated = False
        self.killed = False
        self.closed = False
        self.wait_timeouts: list[float | None] = []

    def lines(self) -> Iterator[bytes]:
        yield from self._lines

    def terminate(self) -> None:
        self.terminated = True

    def kill(self) -> None:
        self.killed = True

    def close(self) -> None:
        self.closed = True

    def wait(self, timeout: float | None = None) -> int:
        self.wait_timeouts.append(timeout)
        if self.hang and not self.killed:
            raise subprocess.TimeoutExpired("go", timeout or 0)
        return self.returncode


@pytest.fixture
def make_source() -> Callable[..., FakeSource]:
    return FakeSource
