"""Relevance scoring for conversation messages.

Scores are ordering keys, not probabilities: the content bonuses are
additive and independent, so a message that hits several markers can
score above 1. Do not clamp.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ctxpilot.core.interface.models import TextBlock, ToolResultBlock, ToolUseBlock

if TYPE_CHECKING:
    from ctxpilot.core.interface.models import Message

_RECENCY_EXPONENT = 1.5
_RECENCY_WEIGHT = 0.6
_CONTENT_WEIGHT = 0.4

TOOL_USE_BONUS = 0.3
TOOL_RESULT_BONUS = 0.3
FILE_CONTENT_BONUS = 0.2
ERROR_BONUS = 0.25
TASK_BONUS = 0.4
FEEDBACK_BONUS = 0.3

_SUCCESS_MARKERS = ("successfully created", "successfully updated", "successfully installed")
_NON_CRITICAL_ERROR = "This error is not critical"


def _texts(message: Message) -> list[str]:
    return [block.text for block in message.blocks if isinstance(block, TextBlock)]


def _has_tool_use(message: Message) -> bool:
    return any(
        isinstance(block, ToolUseBlock)
        or (isinstance(block, TextBlock) and "<tool_use>" in block.text)
        for block in message.blocks
    )


def _has_tool_result(message: Message) -> bool:
    return any(
        isinstance(block, ToolResultBlock)
        or (isinstance(block, TextBlock) and "[" in block.text and "Result]" in block.text)
        for block in message.blocks
    )


def content_score(message: Message) -> float:
    """Sum the content bonuses for *message*; plain-text messages score 0."""
    if isinstance(message.content, str):
        return 0.0

    texts = _texts(message)
    score = 0.0
    if _has_tool_use(message):
        score += TOOL_USE_BONUS
    if _has_tool_result(message):
        score += TOOL_RESULT_BONUS
    if any("<file_content" in t or "<final_file_content" in t for t in texts):
        score += FILE_CONTENT_BONUS
    if any("Error" in t and ":" in t for t in texts):
        score += ERROR_BONUS
    if any("<task>" in t or "</task>" in t for t in texts):
        score += TASK_BONUS
    if any("<feedback>" in t for t in texts):
        score += FEEDBACK_BONUS
    return score


def score_message_relevance(message: Message, index: int, total: int) -> float:
    """Score *message* at position *index* in a history of *total* messages.

    The recency term ``(index / total) ** 1.5`` is convex, so late messages
    gain much more than mid-history ones.
    """
    recency = (index / total) ** _RECENCY_EXPONENT if total else 0.0
    return _RECENCY_WEIGHT * recency + _CONTENT_WEIGHT * content_score(message)


def contains_important_content(message: Message) -> bool:
    """Return True if *message* must survive selective context inclusion.

    Important means: it defines the task, reports a successful
    create/update/install from a tool, or carries a critical error.
    """
    if isinstance(message.content, str):
        return False

    texts = _texts(message)
    if any("<task>" in t for t in texts):
        return True

    for block in message.blocks:
        if isinstance(block, ToolResultBlock) and isinstance(block.content, str):
            if any(marker in block.content for marker in _SUCCESS_MARKERS):
                return True

    return any("Error:" in t and _NON_CRITICAL_ERROR not in t for t in texts)
