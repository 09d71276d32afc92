"""``ctxpilot budget``: show the history budget for a context window."""

from __future__ import annotations

import click

from ctxpilot.cli_commands._output import print_budget
from ctxpilot.core.context.budget import ContextBudgetPlanner


@click.command("budget")
@click.argument("context_window", type=click.IntRange(min=1))
@click.option(
    "--tokens",
    type=click.IntRange(min=0),
    default=None,
    help="Current history size; prints the truncation decision for it.",
)
def budget(context_window: int, tokens: int | None) -> None:
    """Show the usable history budget for CONTEXT_WINDOW tokens."""
    planner = ContextBudgetPlanner(context_window)
    decision = planner.decide(tokens) if tokens is not None else None
    print_budget(planner.limits, decision, tokens)
