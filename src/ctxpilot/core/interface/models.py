"""Conversation schema: messages, content blocks, truncation ranges, stream chunks.

Messages mirror the block-structured format used by agentic providers: a
message carries either plain text or an ordered list of typed content
blocks (text, tool use, tool result, image). The rest of the engine only
ever works with these models; the transport converts them at the edge.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

# ---------------------------------------------------------------------------
# Content Blocks
# ---------------------------------------------------------------------------


class TextBlock(BaseModel):
    """Plain text content block."""

    type: Literal["text"] = "text"
    text: str


class ImageBlock(BaseModel):
    """Image content block (URL or inline base64)."""

    type: Literal["image"] = "image"
    url: str | None = None
    data: str | None = None
    media_type: str | None = None


class ToolUseBlock(BaseModel):
    """A tool invocation emitted by the assistant."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = {}


class ToolResultBlock(BaseModel):
    """The result of a tool invocation, sent back on a user turn."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str | list[TextBlock | ImageBlock] = ""
    is_error: bool = False

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextBlock))


ContentBlock = Annotated[
    TextBlock | ImageBlock | ToolUseBlock | ToolResultBlock,
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Message
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """A single conversation turn.

    ``content`` is either a plain string or an ordered list of blocks.
    Only block-list content takes part in relevance scoring and can carry
    attached environment details.
    """

    role: Literal["user", "assistant"]
    content: str | list[ContentBlock] = []

    @property
    def blocks(self) -> list[TextBlock | ImageBlock | ToolUseBlock | ToolResultBlock]:
        """Return the content blocks, or an empty list for plain-text content."""
        if isinstance(self.content, str):
            return []
        return list(self.content)

    @property
    def text(self) -> str:
        """Concatenated text of the message (plain content or text blocks)."""
        if isinstance(self.content, str):
            return self.content
        return "".join(block.text for block in self.content if isinstance(block, TextBlock))

    @classmethod
    def user(cls, text: str) -> "Message":
        """Create a user message with a single text block."""
        return cls(role="user", content=[TextBlock(text=text)])

    @classmethod
    def assistant(cls, text: str) -> "Message":
        """Create an assistant message with a single text block."""
        return cls(role="assistant", content=[TextBlock(text=text)])

    def with_block(self, block: TextBlock) -> "Message":
        """Return a copy with *block* appended; the original is left untouched."""
        if isinstance(self.content, str):
            msg = "cannot append a block to plain-text message content"
            raise TypeError(msg)
        return self.model_copy(update={"content": [*self.content, block]})


# ---------------------------------------------------------------------------
# Conversation History
# ---------------------------------------------------------------------------


class ConversationHistory(BaseModel):
    """An ordered, append-only sequence of messages."""

    messages: list[Message] = []

    def append(self, message: Message) -> None:
        """Append a message to the history."""
        self.messages.append(message)

    def __len__(self) -> int:
        return len(self.messages)

    def __iter__(self):  # type: ignore[override]
        return iter(self.messages)

    def __getitem__(self, index: int) -> Message:
        return self.messages[index]


# ---------------------------------------------------------------------------
# Truncation Range
# ---------------------------------------------------------------------------


class TruncationRange(BaseModel):
    """Half-open ``[start, end)`` range of logically deleted history indices.

    Index 0 (the task) can never be part of a range.
    """

    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=1)
    end: int

    @model_validator(mode="after")
    def _check_bounds(self) -> "TruncationRange":
        if self.end < self.start:
            msg = f"range end ({self.end}) precedes start ({self.start})"
            raise ValueError(msg)
        return self

    @property
    def size(self) -> int:
        return self.end - self.start

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end


# ---------------------------------------------------------------------------
# Stream Chunks
# ---------------------------------------------------------------------------


class TextChunk(BaseModel):
    """A text delta from the model."""

    type: Literal["text"] = "text"
    text: str


class ReasoningChunk(BaseModel):
    """A reasoning/thinking delta from models that expose one."""

    type: Literal["reasoning"] = "reasoning"
    reasoning: str


class ToolCallChunk(BaseModel):
    """A fragment of a structured tool call."""

    type: Literal["tool_call"] = "tool_call"
    index: int = 0
    id: str | None = None
    name: str | None = None
    arguments_delta: str = ""


class UsageChunk(BaseModel):
    """Terminal token usage report."""

    type: Literal["usage"] = "usage"
    input_tokens: int = 0
    output_tokens: int = 0
    cache_write_tokens: int = 0
    cache_read_tokens: int = 0
    total_cost: float | None = None


StreamChunk = TextChunk | ReasoningChunk | ToolCallChunk | UsageChunk
