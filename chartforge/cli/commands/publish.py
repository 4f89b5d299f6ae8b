"""``chartforge publish`` — publish built charts to a remote helm repository.

Merges ``<chartsDir>/index.yaml`` into the repository's ``index.yaml``,
uploads every chart the repository does not have yet, then uploads the
merged index.  Re-publishing unchanged charts is a no-op; publishing a
changed chart under an existing version is refused.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chartforge.cli.params import (
    PUBLISH_PARAMETERS,
    json_template,
    resolve_publish_parameters,
)
from chartforge.config import load_settings
from chartforge.core.errors import (
    ArchiveUploadError,
    ChartforgeError,
    ConflictError,
    IndexUploadError,
)
from chartforge.core.publisher import PublishWorkflow
from chartforge.core.stores import LocalChartRepo, RemoteChartRepo
from chartforge.models.publish import PublishResult, PublishState

console = Console()


def _print_result(result: PublishResult, repository: str) -> None:
    if result.state == PublishState.NO_CHANGES:
        console.print("[bold yellow]No changes in remote repo index.[/bold yellow]")
        return

    table = Table(title="Published Charts")
    table.add_column("Chart", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Digest", style="dim")
    for record in result.added:
        table.add_row(record.name, record.version, record.digest[:12])
    console.print(table)
    console.print(
        Panel(
            "\n".join([
                "[bold green]Charts deployed successfully.[/bold green]",
                "",
                f"[bold]Repository:[/bold] {escape(repository)}",
                f"[bold]Uploaded:[/bold]   {len(result.uploaded)} archive(s) + index.yaml",
            ]),
            title="[bold]Publish[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )


def _print_failure(exc: ChartforgeError) -> None:
    console.print(f"[bold red]Publish failed:[/bold red] {escape(str(exc))}")
    if isinstance(exc, ConflictError):
        console.print("[dim]Bump the chart version and build again.[/dim]")
    elif isinstance(exc, ArchiveUploadError) and exc.uploaded:
        console.print(
            f"[yellow]{len(exc.uploaded)} archive(s) were uploaded but are not "
            "referenced by the index yet.[/yellow]"
        )
    elif isinstance(exc, IndexUploadError):
        console.print(
            "[yellow]All archives are uploaded; retry to update the index.[/yellow]"
        )


def publish_cmd(
    charts_dir: Path = typer.Option(
        None,
        "--charts-dir",
        "--chartsDir",
        "-c",
        help="A directory containing built charts packages.",
    ),
    repository: str = typer.Option(
        None,
        "--repository",
        "-r",
        help="Helm charts repository URL.",
    ),
    username: str = typer.Option(
        None,
        "--username",
        "-u",
        help="The username for the Helm charts repository.",
    ),
    password: str = typer.Option(
        None,
        "--password",
        "-p",
        help="The password for the Helm charts repository.",
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
    """Publish all charts from <chartsDir> to <repository>."""
    if show_template:
        typer.echo(json_template(PUBLISH_PARAMETERS))
        raise typer.Exit(code=0)

    try:
        settings = load_settings()
        params = resolve_publish_parameters(
            settings,
            {
                "charts_dir": charts_dir,
                "repository": repository,
                "username": username,
                "password": password,
            },
            config_file=config_file,
            resolve_env=resolve_env,
        )
        with RemoteChartRepo(
            params.repository,
            params.username,
            params.password,
            timeout=settings.http_timeout,
        ) as remote:
            workflow = PublishWorkflow(
                LocalChartRepo(params.charts_dir),
                remote,
                archive_extension=params.archive_extension,
                verify_digests=params.verify_digests,
            )
            result = workflow.run()
    except ChartforgeError as exc:
        _print_failure(exc)
        raise typer.Exit(code=1)

    _print_result(result, params.repository)
