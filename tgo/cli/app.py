"""Main Typer application — ``tgo [go test arguments...]``.

Entry point: ``tgo`` (configured via pyproject.toml [project.scripts]).

Every argument is forwarded to ``go test -json`` untouched, including
``-h``; tgo's own settings come from TGO_* environment variables (see
``tgo.config``).
"""

from __future__ import annotations

import logging

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from typer.core import TyperCommand

from tgo.config import Verbosity, load_config, print_config, print_help
from tgo.core.cancellation import CancellationToken, SignalBridge
from tgo.core.driver import StreamDriver
from tgo.core.supervisor import GoTestProcess
from tgo.errors import SupervisedProcessError
from tgo.report.renderer import Presenter

logger = logging.getLogger(__name__)

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False)

app = typer.Typer(
    name="tgo",
    help="tgo: go test with compact, grouped results.",
    rich_markup_mode="rich",
    add_completion=False,
)


class GoTestCommand(TyperCommand):
    """Keeps the raw argument list; click drops the first ``--``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        ctx.meta["go_test_args"] = list(args)
        return super().parse_args(ctx, args)


def configure_logging(verbosity: int) -> None:
    """Send tgo's logs to stderr; debug output only at verbosity 4 and up."""
    level = logging.DEBUG if verbosity >= Verbosity.V4 else logging.WARNING
    handler = RichHandler(console=err_console, show_time=False, markup=False)
    package_logger = logging.getLogger("tgo")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)


@app.command(
    name="test",
    cls=GoTestCommand,
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
    add_help_option=False,
)
def test_cmd(ctx: typer.Context) -> None:
    """Run ``go test -json`` with the given arguments and report the results."""
    args = list(ctx.meta.get("go_test_args", ctx.args))
    try:
        config = load_config(args)
    except (ValueError, OSError) as exc:
        console.print(str(exc), markup=False)
        raise typer.Exit(code=1)

    configure_logging(config.v)
    if config.print_config:
        print_config(config, err_console)
    if args[:1] == ["-h"]:
        print_help(err_console)

    logger.debug("config %r", config)
    logger.debug("args: %s", args)

    presenter = Presenter(config, console=console)
    driver = StreamDriver(config, presenter, cover_enabled="-cover" in args)
    token = CancellationToken()

    try:
        source = GoTestProcess.start(config.bin, args)
    except OSError as exc:
        console.print(str(exc), markup=False)
        raise typer.Exit(code=1)

    with SignalBridge(token):
        outcome = driver.run(source, token)

    logger.debug("outcome %r", outcome)
    try:
        outcome.raise_for_status()
    except SupervisedProcessError as exc:
        raise typer.Exit(code=exc.exit_code)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
