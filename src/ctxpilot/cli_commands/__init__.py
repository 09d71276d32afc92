"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from ctxpilot.cli_commands.budget import budget
    from ctxpilot.cli_commands.score import score
    from ctxpilot.cli_commands.truncate import truncate

    cli.add_command(budget)
    cli.add_command(truncate)
    cli.add_command(score)
