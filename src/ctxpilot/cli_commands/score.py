"""``ctxpilot score``: show each message's relevance score."""

from __future__ import annotations

import sys

import click

from ctxpilot.cli_commands._output import HistoryLoadError, console, load_history, print_messages_table
from ctxpilot.core.context.relevance import score_message_relevance


@click.command("score")
@click.argument("history_file", type=click.Path(exists=True))
def score(history_file: str) -> None:
    """Score every message in HISTORY_FILE (a JSON list of messages)."""
    try:
        messages = load_history(history_file)
    except HistoryLoadError as exc:
        console.print(f"[red]Error loading history:[/red] {exc}")
        sys.exit(1)

    total = len(messages)
    scores = [score_message_relevance(m, i, total) for i, m in enumerate(messages)]
    print_messages_table(messages, "Relevance Scores", scores)
