"""``ctxpilot truncate``: preview a single truncation pass over a history file."""

from __future__ import annotations

import json
import sys

import click

from ctxpilot.cli_commands._output import HistoryLoadError, console, load_history, print_messages_table
from ctxpilot.core.context.budget import Keep, target_reduction
from ctxpilot.core.context.sliding_window import get_next_truncation_range, get_truncated_messages
from ctxpilot.core.context.smart_truncation import smart_truncate_messages
from ctxpilot.utils.telemetry import (
    ATTR_MESSAGES_IN,
    ATTR_MESSAGES_OUT,
    ATTR_TRUNCATION_KEEP,
    ATTR_TRUNCATION_MODE,
    get_tracer,
    set_span_attributes,
)

_tracer = get_tracer(__name__)


@click.command("truncate")
@click.argument("history_file", type=click.Path(exists=True))
@click.option(
    "--mode",
    type=click.Choice(["smart", "classic"]),
    default="smart",
    help="Relevance-based truncation or the sliding window.",
)
@click.option(
    "--keep",
    type=click.Choice(["half", "quarter"]),
    default="half",
    help="How much of the truncatable history to keep.",
)
@click.option("--json", "as_json", is_flag=True, help="Output the truncated history as JSON.")
def truncate(history_file: str, mode: str, keep: Keep, as_json: bool) -> None:
    """Truncate HISTORY_FILE once and show what remains."""
    try:
        messages = load_history(history_file)
    except HistoryLoadError as exc:
        console.print(f"[red]Error loading history:[/red] {exc}")
        sys.exit(1)

    with _tracer.start_as_current_span("cli.truncate") as span:
        set_span_attributes(
            span,
            {
                ATTR_TRUNCATION_MODE: mode,
                ATTR_TRUNCATION_KEEP: keep,
                ATTR_MESSAGES_IN: len(messages),
            },
        )
        if mode == "smart":
            result = smart_truncate_messages(messages, target_reduction(keep))
        else:
            deleted = get_next_truncation_range(messages, None, keep)
            result = get_truncated_messages(messages, deleted)
        span.set_attribute(ATTR_MESSAGES_OUT, len(result))

    if as_json:
        console.print_json(json.dumps([m.model_dump(mode="json") for m in result]))
        return

    console.print(f"{len(messages)} messages -> {len(result)} messages ({mode}, keep {keep})")
    print_messages_table(result, "Truncated History")
