"""Conversation schema, model descriptor and streaming transport."""

from ctxpilot.core.interface.client import StreamingClient
from ctxpilot.core.interface.config import ModelConfig
from ctxpilot.core.interface.models import (
    ContentBlock,
    ConversationHistory,
    ImageBlock,
    Message,
    ReasoningChunk,
    StreamChunk,
    TextBlock,
    TextChunk,
    ToolCallChunk,
    ToolResultBlock,
    ToolUseBlock,
    TruncationRange,
    UsageChunk,
)
from ctxpilot.core.interface.transpiler import Transpiler

__all__ = [
    "ContentBlock",
    "ConversationHistory",
    "ImageBlock",
    "Message",
    "ModelConfig",
    "ReasoningChunk",
    "StreamChunk",
    "StreamingClient",
    "TextBlock",
    "TextChunk",
    "ToolCallChunk",
    "ToolResultBlock",
    "ToolUseBlock",
    "Transpiler",
    "TruncationRange",
    "UsageChunk",
]
