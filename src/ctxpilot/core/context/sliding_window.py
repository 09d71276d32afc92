"""Sliding-window truncation over a persistent deleted range.

Classic (non-smart) mode never scores messages. It keeps one contiguous
:class:`~ctxpilot.core.interface.models.TruncationRange` of logically
deleted indices over the *full* history and only ever grows it, so a
message evicted once stays evicted and is never looked at again.

Layout of a history of ``n`` messages::

    [0, 1]            first exchange (task + first reply), always kept
    [2, n - 4)        truncatable span
    [n - 4, n)        last two exchanges, always kept

"half" removes half of the truncatable span, "quarter" removes three
quarters of it. The removed count is rounded down to an even number so
whole exchanges go and the kept history still alternates roles.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ctxpilot.core.context.budget import Keep, target_reduction
from ctxpilot.core.interface.models import Message, TextBlock, TruncationRange

logger = logging.getLogger(__name__)

RANGE_START = 2
PROTECTED_TAIL = 4


def _notice(removed: int) -> str:
    return (
        f"[CONTEXT NOTICE: {removed} earlier messages were removed to keep the "
        "conversation within the context window. The original task and the most "
        "recent exchanges are retained.]"
    )


def get_next_truncation_range(
    messages: Sequence[Message],
    current_range: TruncationRange | None,
    keep: Keep,
) -> TruncationRange | None:
    """Compute the deleted range for the next request.

    The result always contains *current_range*: its start is reused and
    its end only moves forward. Calling again with the same history and
    *keep* returns the same range.
    """
    span_end = len(messages) - PROTECTED_TAIL
    span = span_end - RANGE_START
    if span <= 0:
        return current_range

    remove = int(span * target_reduction(keep)) // 2 * 2
    end = RANGE_START + remove
    # The kept history should resume on a user turn after the gap.
    if remove and messages[end - 1].role != "assistant":
        end -= 1
    if end <= RANGE_START:
        return current_range

    if current_range is None:
        return TruncationRange(start=RANGE_START, end=end)

    return TruncationRange(start=current_range.start, end=max(end, current_range.end))


def get_truncated_messages(
    messages: Sequence[Message],
    deleted_range: TruncationRange | None,
) -> list[Message]:
    """Return *messages* without the deleted range, plus a visible notice.

    The notice is appended as a text block to a copy of the last kept
    message before the gap when that is an assistant turn with block
    content; otherwise a standalone assistant notice is inserted at the gap.
    """
    if deleted_range is None or deleted_range.size == 0:
        return list(messages)

    start = deleted_range.start
    end = min(deleted_range.end, len(messages))
    removed = end - start
    if removed <= 0:
        return list(messages)

    head = list(messages[:start])
    tail = list(messages[end:])

    anchor = head[-1]
    if start - 1 >= 1 and anchor.role == "assistant" and not isinstance(anchor.content, str):
        head[-1] = anchor.with_block(TextBlock(text=_notice(removed)))
        return head + tail
    return [*head, Message.assistant(_notice(removed)), *tail]


class SlidingWindowRangeTracker:
    """Owns the deleted range for one task's history."""

    def __init__(self, current_range: TruncationRange | None = None) -> None:
        self._range = current_range

    @property
    def current_range(self) -> TruncationRange | None:
        return self._range

    def advance(self, messages: Sequence[Message], keep: Keep) -> TruncationRange | None:
        """Grow the deleted range for *messages* and return it."""
        previous = self._range
        self._range = get_next_truncation_range(messages, previous, keep)
        if self._range != previous:
            logger.debug("Deleted range advanced from %s to %s (keep=%s)", previous, self._range, keep)
        return self._range

    def apply(self, messages: Sequence[Message]) -> list[Message]:
        """Return *messages* with the current deleted range removed."""
        return get_truncated_messages(messages, self._range)

    def reset(self) -> None:
        self._range = None
