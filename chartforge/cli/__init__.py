"""chartforge CLI — Typer-based command-line interface.

Provides the ``chartforge`` command with ``build`` and ``publish``
subcommands.  All output uses Rich for formatted terminal display.
"""
