"""Main Typer application — registers the build and publish commands.

Entry point: ``chartforge`` (configured via pyproject.toml console_scripts).
"""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from chartforge import __version__
from chartforge.cli.commands.build import build_cmd
from chartforge.cli.commands.publish import publish_cmd
from chartforge.config import load_settings
from chartforge.core.errors import ConfigurationError

app = typer.Typer(
    name="chartforge",
    help="chartforge: build helm charts and publish them to a chart repository.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

app.command(
    name="build",
    help="Build all charts from <source> into <output> and generate a repo index.",
)(build_cmd)
app.command(
    name="publish",
    help="Publish all charts from <chartsDir> to <repository>.",
)(publish_cmd)


def configure_logging(level: str) -> None:
    """Route log records through Rich on stderr at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"chartforge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the chartforge version and exit.",
    ),
) -> None:
    """chartforge: build helm charts and publish them to a chart repository."""
    try:
        level = log_level or load_settings().log_level
    except ConfigurationError as exc:
        Console(stderr=True).print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    configure_logging(level)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
