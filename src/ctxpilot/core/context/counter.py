"""Token counting: protocol and implementations for measuring history size.

Provides accurate counting via tiktoken (for OpenAI-family models) and a
character-based estimator as a universal fallback. Both walk every content
block variant, so tool calls and tool results are counted too.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import tiktoken

from ctxpilot.core.interface.models import (
    ImageBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)

if TYPE_CHECKING:
    from ctxpilot.core.interface.models import Message


@runtime_checkable
class TokenCounter(Protocol):
    """Protocol for counting tokens in messages."""

    def count_text(self, text: str) -> int:
        """Return the token count for a raw string (e.g. the system prompt)."""
        ...

    def count_message(self, message: Message) -> int:
        """Return the token count for a single message."""
        ...

    def count_messages(self, messages: Iterable[Message]) -> int:
        """Return the total token count for a sequence of messages."""
        ...


# Per-message overhead: every message has <|start|>{role}\n ... <|end|> framing.
_MSG_OVERHEAD = 4
# Reply priming tokens added once to the total (OpenAI convention).
_REPLY_PRIMING = 2
# Flat charge for an image block; providers bill images by tile, not by bytes.
_IMAGE_TOKENS = 85


def _message_tokens(message: Message, count: Callable[[str], int]) -> int:
    tokens = _MSG_OVERHEAD
    if isinstance(message.content, str):
        return tokens + count(message.content)
    for block in message.content:
        if isinstance(block, TextBlock):
            tokens += count(block.text)
        elif isinstance(block, ToolUseBlock):
            tokens += count(block.name) + count(json.dumps(block.input))
        elif isinstance(block, ToolResultBlock):
            tokens += count(block.text)
        elif isinstance(block, ImageBlock):
            tokens += _IMAGE_TOKENS
    return tokens


# ---------------------------------------------------------------------------
# Tiktoken-based counter (accurate for OpenAI models)
# ---------------------------------------------------------------------------


class TiktokenCounter:
    """Token counter using tiktoken encodings.

    Falls back to ``cl100k_base`` when the model's encoding is unknown.
    """

    def __init__(self, model: str) -> None:
        try:
            self._enc = tiktoken.encoding_for_model(model)
        except KeyError:
            self._enc = tiktoken.get_encoding("cl100k_base")

    def count_text(self, text: str) -> int:
        return len(self._enc.encode(text))

    def count_message(self, message: Message) -> int:
        """Count tokens in a single message including per-message overhead."""
        return _message_tokens(message, self.count_text)

    def count_messages(self, messages: Iterable[Message]) -> int:
        """Count total tokens for a conversation, including reply priming."""
        return sum(self.count_message(m) for m in messages) + _REPLY_PRIMING


# ---------------------------------------------------------------------------
# Estimating counter (universal fallback)
# ---------------------------------------------------------------------------

_CHARS_PER_TOKEN = 4


class EstimatingCounter:
    """Fallback token counter that estimates ~4 characters per token."""

    def count_text(self, text: str) -> int:
        return len(text) // _CHARS_PER_TOKEN

    def count_message(self, message: Message) -> int:
        return _message_tokens(message, self.count_text)

    def count_messages(self, messages: Iterable[Message]) -> int:
        return sum(self.count_message(m) for m in messages) + _REPLY_PRIMING
