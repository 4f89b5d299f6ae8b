"""``chartforge build`` — package charts and generate the local repo index."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from chartforge.cli.params import (
    BUILD_PARAMETERS,
    json_template,
    resolve_build_parameters,
)
from chartforge.config import load_settings
from chartforge.core.builder import ChartBuilder
from chartforge.core.errors import ChartforgeError

console = Console()


def build_cmd(
    source: Path = typer.Option(
        None,
        "--source",
        "-s",
        help=(
            "A directory with chart sources. Either a single chart (with Chart.yaml) "
            "or a tree of chart directories."
        ),
    ),
    output: Path = typer.Option(
        None,
        "--output",
        "-o",
        help="A directory chart packages should be produced in.",
    ),
    version: str = typer.Option(
        None,
        "--version",
        "-v",
        help="A chart version if different than set in 'Chart.yaml'.",
    ),
    app_version: str = typer.Option(
        None,
        "--app-version",
        "--appVersion",
        help="An appVersion if different than set in 'Chart.yaml'.",
    ),
    config_file: Path = typer.Option(
        None,
        "--config-file",
        "--configFile",
        help="A path to a JSON file containing parameters for this command.",
    ),
    resolve_env: bool = typer.Option(
        False,
        "--resolve-env",
        "--resolveEnv",
        help="Resolve ${VAR} / ${VAR:default} placeholders in config file values.",
    ),
    show_template: bool = typer.Option(
        False,
        "--json-template",
        "--jsonTemplate",
        help="Print a JSON template of this command's parameters and exit.",
    ),
) -> None:
    """Build all charts from <source> into <output> and generate a repo index."""
    if show_template:
        typer.echo(json_template(BUILD_PARAMETERS))
        raise typer.Exit(code=0)

    try:
        settings = load_settings()
        params = resolve_build_parameters(
            settings,
            {
                "source": source,
                "output": output,
                "version": version,
                "app_version": app_version,
            },
            config_file=config_file,
            resolve_env=resolve_env,
        )
        built = ChartBuilder(settings.helm_binary).build(
            params.source,
            params.output,
            version=params.version,
            app_version=params.app_version,
        )
    except ChartforgeError as exc:
        console.print(f"[bold red]Build failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Built {len(built)} chart(s)[/bold green] into "
        f"{escape(str(params.output))}"
    )
