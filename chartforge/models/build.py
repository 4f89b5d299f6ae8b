"""Build command parameters."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict


class BuildParameters(BaseModel):
    """Resolved parameters for one build invocation."""

    model_config = ConfigDict(frozen=True)

    source: Path = Path(".")
    output: Path = Path("charts-output")
    version: str | None = None  # overrides Chart.yaml version
    app_version: str | None = None  # overrides Chart.yaml appVersion
