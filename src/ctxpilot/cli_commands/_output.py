"""Shared CLI input loading and output formatters."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from ctxpilot.core.context.budget import ContextWindowLimits, TruncationDecision  # noqa: TC001
from ctxpilot.core.interface.models import Message

console = Console()

_HISTORY_ADAPTER = TypeAdapter(list[Message])


class HistoryLoadError(Exception):
    """Raised when a history JSON file cannot be read or validated."""


def load_history(path: str | Path) -> list[Message]:
    """Load a history file: a JSON list of messages or ``{"messages": [...]}``."""
    try:
        data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise HistoryLoadError(f"Cannot read {path}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list):
        raise HistoryLoadError("History JSON must be a list of messages")

    try:
        return _HISTORY_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise HistoryLoadError(str(exc)) from exc


def print_budget(
    limits: ContextWindowLimits,
    decision: TruncationDecision | None = None,
    total_tokens: int | None = None,
) -> None:
    """Pretty-print the budget for a context window and an optional decision."""
    console.print("\n[bold]Context Budget[/bold]")
    console.print(f"  Context window: {limits.context_window:,}")
    console.print(f"  Max history size: {limits.max_allowed_size:,}")
    if decision is None or total_tokens is None:
        return

    console.print(f"  History tokens: {total_tokens:,}")
    if decision.should_truncate:
        console.print(f"  [yellow]Truncate[/yellow] (keep {decision.keep})")
    else:
        console.print("  [green]Within budget[/green]")


def print_messages_table(
    messages: list[Message],
    title: str,
    scores: list[float] | None = None,
) -> None:
    """Pretty-print messages as a table, optionally with relevance scores."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Role", style="cyan")
    if scores is not None:
        table.add_column("Score", justify="right")
    table.add_column("Content")

    for index, message in enumerate(messages):
        row = [str(index), message.role]
        if scores is not None:
            row.append(f"{scores[index]:.3f}")
        row.append(_truncate(_summarize(message)))
        table.add_row(*row)

    console.print(table)


def _summarize(message: Message) -> str:
    if isinstance(message.content, str):
        return message.content
    parts = [message.text] if message.text else []
    for block in message.blocks:
        if block.type != "text":
            parts.append(f"<{block.type}>")
    return " ".join(parts)


def _truncate(text: str, max_len: int = 80) -> str:
    text = text.replace("\n", " ")
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
