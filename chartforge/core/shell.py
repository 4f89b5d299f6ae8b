"""Run external commands (helm) and capture their output."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from typing import Protocol

from chartforge.core.errors import CommandFailedError, CommandNotFoundError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Callable that runs ``args`` and returns stripped stdout, or ``None`` if empty."""

    def __call__(self, args: Sequence[str]) -> str | None:
        ...


def run_command(args: Sequence[str]) -> str | None:
    """Run a command, raising on a missing binary or a non-zero exit."""
    command = shlex.join(args)
    logger.info("$ %s", command)
    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as exc:
        raise CommandNotFoundError(
            f"Failed to run {command} command. "
            f"Make sure {args[0]} is installed and added to the $PATH"
        ) from exc

    if result.returncode != 0:
        raise CommandFailedError(command, result.returncode, result.stderr)
    output = result.stdout.strip()
    return output or None
