"""Transpiler protocol: converts between the conversation schema and a wire format.

A transpiler turns a system prompt plus message list into the payload a
provider accepts, and turns each raw streaming delta from the provider
back into zero or more :data:`StreamChunk` values.
"""

from typing import Any, Protocol, runtime_checkable

from ctxpilot.core.interface.models import Message, StreamChunk


@runtime_checkable
class Transpiler(Protocol):
    """Protocol for provider-specific message format transpilers."""

    def to_provider(self, system_prompt: str, messages: list[Message]) -> dict[str, Any]:
        """Convert a system prompt and history into a provider payload."""
        ...

    def from_stream_chunk(self, raw: Any) -> list[StreamChunk]:
        """Convert one raw streaming delta into stream chunks."""
        ...
