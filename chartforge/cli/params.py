"""Command parameter resolution — CLI options, JSON config files and env defaults.

Precedence for each parameter, highest first:

1. an option given explicitly on the command line
2. a value from ``--config-file`` (camelCase or snake_case keys)
3. ``CHARTFORGE_*`` environment / ``.env`` via ``ChartforgeSettings``

With ``--resolve-env`` the config file's values (not keys) may contain
``${VAR}`` or ``${VAR:default}`` placeholders, expanded the way ``envsubst``
would before the JSON is parsed.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from chartforge.config import ChartforgeSettings
from chartforge.core.errors import ConfigurationError
from chartforge.models.build import BuildParameters
from chartforge.models.publish import PublishParameters

_PLACEHOLDER = re.compile(r"\$\{(.+?)(?::(.*?))?\}")
_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")
_JSON_ESCAPES = {"\\": "\\\\", '"': '\\"'}

PUBLISH_PARAMETERS = ("charts_dir", "repository", "username", "password")
BUILD_PARAMETERS = ("source", "output", "version", "app_version")


def snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def camel_case(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def _escape_json(value: str) -> str:
    for char, escaped in _JSON_ESCAPES.items():
        value = value.replace(char, escaped)
    return value


def resolve_env_placeholders(content: str, environ: Mapping[str, str]) -> str:
    """Replace ``${VAR}`` / ``${VAR:default}`` with JSON-escaped env values.

    An unset or empty variable falls back to the default, then to "".
    """

    def _substitute(match: re.Match[str]) -> str:
        value = environ.get(match.group(1))
        if value:
            return _escape_json(value)
        return match.group(2) or ""

    return _PLACEHOLDER.sub(_substitute, content)


def load_config_file(
    path: Path,
    *,
    resolve_env: bool = False,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load a JSON parameter file, returning snake_case keys."""
    try:
        content = Path(path).read_text(encoding="utf-8")
        if resolve_env:
            content = resolve_env_placeholders(content, os.environ if environ is None else environ)
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Unable to load config file: {path}. {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return {snake_case(key): value for key, value in data.items()}


def merge_parameters(
    names: Iterable[str],
    cli_values: Mapping[str, Any],
    file_values: Mapping[str, Any],
    defaults: Mapping[str, Any],
) -> dict[str, Any]:
    """Pick the first non-``None`` value per name: CLI, then file, then defaults."""
    resolved: dict[str, Any] = {}
    for name in names:
        for layer in (cli_values, file_values, defaults):
            value = layer.get(name)
            if value is not None:
                resolved[name] = value
                break
        else:
            resolved[name] = None
    return resolved


def json_template(names: Iterable[str]) -> str:
    """An empty JSON parameter template, usable as a ``--config-file`` skeleton."""
    return json.dumps({camel_case(name): "" for name in names}, indent=2)


def resolve_publish_parameters(
    settings: ChartforgeSettings,
    cli_values: Mapping[str, Any],
    *,
    config_file: Path | None = None,
    resolve_env: bool = False,
) -> PublishParameters:
    """Resolve publish parameters, failing before any I/O if one is missing."""
    file_values = load_config_file(config_file, resolve_env=resolve_env) if config_file else {}
    defaults = {
        "charts_dir": settings.charts_dir,
        "repository": settings.repository,
        "username": settings.username or None,
        "password": settings.password or None,
    }
    values = merge_parameters(PUBLISH_PARAMETERS, cli_values, file_values, defaults)
    if not values["charts_dir"]:
        raise ConfigurationError("Missing --chartsDir parameter.")
    if not values["repository"]:
        raise ConfigurationError("Missing --repository parameter.")
    try:
        return PublishParameters(
            charts_dir=Path(values["charts_dir"]),
            repository=str(values["repository"]),
            username=values["username"] or None,
            password=values["password"] or None,
            archive_extension=settings.archive_extension,
            verify_digests=settings.verify_digests,
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid publish parameters: {exc}") from exc


def resolve_build_parameters(
    settings: ChartforgeSettings,
    cli_values: Mapping[str, Any],
    *,
    config_file: Path | None = None,
    resolve_env: bool = False,
) -> BuildParameters:
    """Resolve build parameters; source and output fall back to settings."""
    file_values = load_config_file(config_file, resolve_env=resolve_env) if config_file else {}
    defaults = {"source": settings.source_dir, "output": settings.charts_dir}
    values = merge_parameters(BUILD_PARAMETERS, cli_values, file_values, defaults)
    return BuildParameters(
        source=Path(values["source"]),
        output=Path(values["output"]),
        version=values["version"] or None,
        app_version=values["app_version"] or None,
    )
