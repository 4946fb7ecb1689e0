"""Run configuration — env-driven, immutable for the whole run.

Centralized config using pydantic-settings.  tgo forwards every command
line argument to ``go test``, so its own settings come from TGO_*
environment variables and an optional plain config file instead of
flags.

Precedence, highest first: presets derived from the go test arguments
(``-v``) and ``TGO_ALL``, environment variables, the config file named
by ``TGO_CONFIG``, defaults.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from enum import IntEnum
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    NoDecode,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from rich.console import Console

from tgo.models.events import ALL_STATUSES, Action, Status


class Verbosity(IntEnum):
    """Output verbosity, 0 (lowest) to 5 (highest)."""

    V0 = 0  # default
    V1 = 1  # minor changes
    V2 = 2  # a few more details
    V3 = 3  # action and time prefixes on output lines
    V4 = 4  # debug logging, no compaction
    V5 = 5  # reserved


# Comma separated on the environment, never JSON.
StatusList = Annotated[tuple[Status, ...], NoDecode]

DEFAULT_STATUSES: tuple[Status, ...] = (Status.FAIL, Status.NONE)

_HELP = """
tgo settings:

  tgo specific settings are controlled using environment variables so it
  doesn't clash with other arguments.

  TGO_ALL=1         show mostly everything
  TGO_V=0           verbosity: 0(lowest) to 5(highest)
  TGO_RESULTS       types of results to show
  TGO_SUMMARY       types of summary to show
  TGO_RES_HIDE      types of results to hide when empty
  TGO_BIN=go        go binary name
  TGO_PRINT_CONFIG  print config on run
  TGO_CONFIG        plain config file, one "name value" per line

"""


def parse_statuses(value: str) -> tuple[Status, ...]:
    """Parse ``"fail,none"`` style lists; ``-`` is empty, ``all`` is every status."""
    value = value.strip().lower()
    if value in ("", "-"):
        return ()
    if value == "all":
        return ALL_STATUSES
    statuses: list[Status] = []
    for name in value.split(","):
        name = name.strip()
        try:
            statuses.append(Status(name))
        except ValueError:
            raise ValueError(f"{name} is not a valid status") from None
    return tuple(statuses)


def format_statuses(statuses: Sequence[Status]) -> str:
    return ",".join(s.value for s in statuses)


class TgoConfig(BaseSettings):
    """tgo settings with TGO_* environment variable overrides.

    Keyword arguments act as config-file values: environment variables
    take precedence over them.

    Examples
    --------
    Show everything, with raw output prefixes::

        export TGO_ALL=1
        export TGO_V=3

    Only failures, inline and in the summary::

        export TGO_RESULTS=fail
        export TGO_SUMMARY=fail
    """

    model_config = SettingsConfigDict(
        env_prefix="TGO_",
        frozen=True,
        extra="ignore",
    )

    v: int = Field(default=0, ge=0, le=5)
    results: StatusList = DEFAULT_STATUSES
    summary: StatusList = DEFAULT_STATUSES
    res_hide: StatusList = ()
    bin: str = "go"
    all: bool = False
    print_config: bool = False
    config: Path | None = None

    # How long the test process gets to exit after its output ends.
    grace_seconds: float = Field(default=2.0, ge=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings

    @field_validator("results", "summary", "res_hide", mode="before")
    @classmethod
    def _split_statuses(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_statuses(value)
        return value

    def shows_inline(self, action: Action) -> bool:
        """Whether an event with this action triggers a first-sight print."""
        return any(status.action == action for status in self.results)

    def hides_empty(self, status: Status) -> bool:
        return status in self.res_hide

    def with_presets(self, args: Sequence[str]) -> TgoConfig:
        """Apply the ``TGO_ALL`` and ``-v`` presets, returning a new config."""
        update: dict[str, Any] = {}
        if self.all:
            update.update(results=ALL_STATUSES, summary=ALL_STATUSES, res_hide=())
        if "-v" in args:
            update.update(
                v=int(Verbosity.V2),
                results=(Status.BENCH, Status.PASS, Status.NONE, Status.FAIL),
                res_hide=(Status.BENCH, Status.PASS, Status.NONE),
                summary=(Status.NONE, Status.FAIL),
            )
        if not update:
            return self
        return self.model_copy(update=update)


def read_config_file(path: Path) -> dict[str, str]:
    """Read a plain config file of ``name value`` lines.

    Blank lines and ``#`` comments are ignored; a name without a value
    means ``true``.  Names may use dashes (``res-hide``).
    """
    values: dict[str, str] = {}
    text = Path(path).read_text(encoding="utf-8")
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split(None, 1)
        name = parts[0].lstrip("-").replace("-", "_")
        if name not in TgoConfig.model_fields or name == "config":
            raise ValueError(f"{path}:{lineno}: unknown setting {parts[0]!r}")
        values[name] = parts[1].strip() if len(parts) > 1 else "true"
    return values


def load_config(
    args: Sequence[str] = (), *, config_file: Path | None = None
) -> TgoConfig:
    """Build the run configuration once.

    Raises ``ValueError`` (including pydantic's ``ValidationError``) for
    invalid settings and ``OSError`` for an unreadable config file.
    """
    path = config_file or os.environ.get("TGO_CONFIG")
    file_values: dict[str, Any] = read_config_file(Path(path)) if path else {}
    return TgoConfig(**file_values).with_presets(args)


def print_config(config: TgoConfig, console: Console) -> None:
    console.print(
        "\nTGO config:\n"
        f"  TGO_RESULTS: {format_statuses(config.results)}\n"
        f"  TGO_SUMMARY: {format_statuses(config.summary)}\n"
        f"  TGO_RES_HIDE: {format_statuses(config.res_hide)}\n",
        markup=False,
        highlight=False,
    )


def print_help(console: Console) -> None:
    names = format_statuses(ALL_STATUSES)
    console.print(
        _HELP + f"  valid values for TGO_RESULTS, TGO_SUMMARY and TGO_RES_HIDE: {names}\n",
        markup=False,
        highlight=False,
    )
