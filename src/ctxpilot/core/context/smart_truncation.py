"""Smart truncation: drop the least relevant messages, not the oldest ones.

The first message (the task) and the last two exchanges are never
candidates. Everything in between is scored with
:func:`~ctxpilot.core.context.relevance.score_message_relevance` and the
lowest-scoring share is removed. A synthetic assistant message at
position 1 records how many messages went.

Input lists are never mutated; every function returns a new list.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ctxpilot.core.context.relevance import contains_important_content, score_message_relevance
from ctxpilot.core.interface.models import Message

logger = logging.getLogger(__name__)

# Histories at or below this length are never truncated.
MIN_TRUNCATABLE_LENGTH = 6
# The most recent messages (two user/assistant pairs) are always kept.
PROTECTED_TAIL = 4
SUMMARY_POSITION = 1

_SELECTIVE_KEEP_FRACTION = 0.7


def identify_messages_to_remove(
    messages: Sequence[Message],
    target_reduction: float = 0.5,
) -> list[int]:
    """Return the indices of the lowest-relevance messages, ascending.

    Candidates are ``messages[1:-4]``. When there are two or fewer
    candidates nothing is removed. Ties keep their original order, so the
    older of two equally scored messages goes first.
    """
    total = len(messages)
    candidates = list(range(1, total - PROTECTED_TAIL))
    if len(candidates) <= 2:
        return []

    scored = sorted(
        candidates,
        key=lambda index: score_message_relevance(messages[index], index, total),
    )
    remove_count = math.floor(len(candidates) * target_reduction)
    return sorted(scored[:remove_count])


def summary_message(removed: int) -> Message:
    """Build the placeholder that stands in for *removed* dropped messages."""
    return Message.assistant(
        f"[CONTEXT SUMMARY: {removed} less relevant messages were removed to optimize "
        "context window usage. The removed messages contained tool usage and results "
        "that are no longer relevant to the current task.]"
    )


def smart_truncate_messages(
    messages: Sequence[Message],
    target_reduction: float = 0.5,
) -> list[Message]:
    """Remove the least relevant messages and insert a summary placeholder."""
    if len(messages) <= MIN_TRUNCATABLE_LENGTH:
        return list(messages)

    to_remove = set(identify_messages_to_remove(messages, target_reduction))
    if not to_remove:
        return list(messages)

    kept = [m for i, m in enumerate(messages) if i not in to_remove]
    kept.insert(SUMMARY_POSITION, summary_message(len(to_remove)))
    logger.debug(
        "Smart truncation removed %d of %d messages (target %.2f)",
        len(to_remove),
        len(messages),
        target_reduction,
    )
    return kept


# ---------------------------------------------------------------------------
# Selective inclusion (position + importance filter)
# ---------------------------------------------------------------------------


def should_include_message(message: Message, index: int, total: int) -> bool:
    """Return True if *message* survives selective context inclusion."""
    if index == 0 or index >= total - PROTECTED_TAIL:
        return True
    if contains_important_content(message):
        return True
    return index / total >= 1 - _SELECTIVE_KEEP_FRACTION


def apply_selective_context_inclusion(messages: Sequence[Message]) -> list[Message]:
    """Keep the task, the recent tail, important messages and the newest 70%."""
    if len(messages) <= MIN_TRUNCATABLE_LENGTH:
        return list(messages)

    total = len(messages)
    kept = [m for i, m in enumerate(messages) if should_include_message(m, i, total)]
    removed = total - len(kept)
    if removed:
        kept.insert(
            SUMMARY_POSITION,
            Message.assistant(
                f"[CONTEXT SUMMARY: {removed} messages were removed to optimize context "
                "window usage. The conversation continues with the most relevant messages.]"
            ),
        )
    return kept
