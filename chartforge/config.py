"""Runtime configuration — env-driven defaults for the CLI.

Centralized settings using pydantic-settings.  Reads from a .env file and
CHARTFORGE_* environment variables.  Explicit CLI options and config files
take precedence; see ``chartforge.cli.params``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from chartforge.core.errors import ConfigurationError


class ChartforgeSettings(BaseSettings):
    """Environment-backed defaults for build and publish.

    Examples
    --------
    Override via environment::

        export CHARTFORGE_REPOSITORY=https://nexus.example.com/repository/helm
        export CHARTFORGE_USERNAME=ci
        export CHARTFORGE_PASSWORD=secret
        export CHARTFORGE_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CHARTFORGE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    # Build
    source_dir: Path = Path(".")
    helm_binary: str = "helm"

    # Publish
    charts_dir: Path = Path("charts-output")
    repository: str = ""
    username: str = ""
    password: str = ""
    archive_extension: str = "tgz"
    verify_digests: bool = True
    http_timeout: float = 30.0


def load_settings() -> ChartforgeSettings:
    """Read settings, reporting a bad ``CHARTFORGE_*`` value as a ConfigurationError."""
    try:
        return ChartforgeSettings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid CHARTFORGE_* settings: {exc}") from exc
