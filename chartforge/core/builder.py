"""Chart builder — package chart sources with helm and index the output.

A directory containing ``Chart.yaml`` is a chart.  Given a source tree,
every chart below it is packaged into the output directory, then
``helm repo index`` writes the local ``index.yaml`` that publish reads.
"""

from __future__ import annotations

import logging
from pathlib import Path

from chartforge.core.errors import BuildError
from chartforge.core.shell import CommandRunner, run_command

logger = logging.getLogger(__name__)

CHART_MANIFEST = "Chart.yaml"


def is_chart_directory(path: Path) -> bool:
    return (path / CHART_MANIFEST).exists()


def find_chart_directories(path: Path) -> list[Path]:
    """Return ``path`` if it is a chart, else every chart below it.

    Hidden directories are skipped and the search does not descend into a
    chart once found (so bundled subcharts are left to helm).
    """
    path = Path(path)
    if is_chart_directory(path):
        return [path]

    found: list[Path] = []
    for child in sorted(path.iterdir()):
        if child.name.startswith(".") or not child.is_dir():
            continue
        found.extend(find_chart_directories(child))
    return found


class ChartBuilder:
    """Packages charts via the helm CLI.

    Parameters
    ----------
    helm_binary:
        Name or path of the helm executable.
    runner:
        Command runner; defaults to ``run_command``.  Tests inject a fake.
    """

    def __init__(self, helm_binary: str = "helm", runner: CommandRunner | None = None) -> None:
        self.helm_binary = helm_binary
        self._runner = runner or run_command

    def helm(self, *args: str) -> None:
        output = self._runner([self.helm_binary, *args])
        if output:
            logger.info("%s", output)

    def build_charts(
        self,
        source: Path,
        output: Path,
        version: str | None = None,
        app_version: str | None = None,
    ) -> list[Path]:
        """Run ``dependency build`` and ``package`` for every chart under ``source``."""
        logger.info("Building helm charts from '%s'", source)
        dirs = find_chart_directories(source)
        logger.info("Found %d chart directories.", len(dirs))
        if not dirs:
            logger.info("Nothing to do")

        for chart_dir in dirs:
            logger.info("Processing directory: %s", chart_dir)
            package_args = ["package", str(chart_dir), "-d", str(output)]
            if version:
                package_args += ["--version", version]
            if app_version:
                package_args += ["--app-version", app_version]
            try:
                self.helm("dependency", "build", str(chart_dir))
                self.helm(*package_args)
            except BuildError as exc:
                logger.error("%s", exc)
                raise BuildError(f"Unable to build '{chart_dir}'. {exc}") from exc
        return dirs

    def build_index(self, output: Path) -> None:
        logger.info("Building helm charts repo index.")
        self.helm("repo", "index", str(output))

    def build(
        self,
        source: Path,
        output: Path,
        version: str | None = None,
        app_version: str | None = None,
    ) -> list[Path]:
        """Package every chart under ``source`` into ``output`` and index it."""
        try:
            output.mkdir(parents=True, exist_ok=True)
            dirs = self.build_charts(source, output, version, app_version)
            self.build_index(output)
        except (BuildError, OSError) as exc:
            raise BuildError(f"Charts build has failed. {exc}") from exc
        return dirs
