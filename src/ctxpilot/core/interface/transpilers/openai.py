"""OpenAI transpiler: block messages to ChatML, streaming deltas to chunks.

LiteLLM speaks OpenAI's chat completion format for every provider, so this
is the only mapping the streaming client needs.
"""

import json
from typing import Any

from ctxpilot.core.interface.models import (
    ImageBlock,
    Message,
    ReasoningChunk,
    StreamChunk,
    TextBlock,
    TextChunk,
    ToolCallChunk,
    ToolResultBlock,
    ToolUseBlock,
    UsageChunk,
)


class OpenAITranspiler:
    """Converts between the block message schema and OpenAI's chat format."""

    def to_provider(self, system_prompt: str, messages: list[Message]) -> dict[str, Any]:
        """Return ``{"messages": [...]}`` with the system prompt first.

        Tool results become ``tool``-role messages placed before the rest of
        the user turn, as OpenAI requires them to follow the assistant's
        tool calls directly.
        """
        result: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        for msg in messages:
            result.extend(self._message_to_openai(msg))
        return {"messages": result}

    def from_stream_chunk(self, raw: Any) -> list[StreamChunk]:
        """Convert one LiteLLM ``ModelResponseStream`` into stream chunks."""
        chunks: list[StreamChunk] = []

        choices = _get(raw, "choices") or []
        if choices:
            delta = _get(choices[0], "delta")
            if delta is not None:
                content = _get(delta, "content")
                if content:
                    chunks.append(TextChunk(text=content))
                reasoning = _get(delta, "reasoning_content")
                if reasoning:
                    chunks.append(ReasoningChunk(reasoning=reasoning))
                for tc in _get(delta, "tool_calls") or []:
                    function = _get(tc, "function")
                    chunks.append(
                        ToolCallChunk(
                            index=_get(tc, "index") or 0,
                            id=_get(tc, "id"),
                            name=_get(function, "name") if function is not None else None,
                            arguments_delta=(_get(function, "arguments") or "")
                            if function is not None
                            else "",
                        )
                    )

        usage = _get(raw, "usage")
        if usage:
            details = _get(usage, "prompt_tokens_details")
            cache_read = _get(details, "cached_tokens") if details is not None else None
            chunks.append(
                UsageChunk(
                    input_tokens=_get(usage, "prompt_tokens") or 0,
                    output_tokens=_get(usage, "completion_tokens") or 0,
                    cache_write_tokens=_get(usage, "cache_creation_input_tokens") or 0,
                    cache_read_tokens=cache_read or 0,
                    total_cost=_get(usage, "cost"),
                )
            )
        return chunks

    def _message_to_openai(self, msg: Message) -> list[dict[str, Any]]:
        """Convert one block message into one or more OpenAI messages."""
        if isinstance(msg.content, str):
            return [{"role": msg.role, "content": msg.content}]

        tool_results: list[dict[str, Any]] = []
        parts: list[dict[str, Any]] = []
        tool_calls: list[dict[str, Any]] = []

        for block in msg.content:
            if isinstance(block, ToolResultBlock):
                tool_results.append(
                    {"role": "tool", "tool_call_id": block.tool_use_id, "content": block.text}
                )
            elif isinstance(block, ToolUseBlock):
                tool_calls.append(
                    {
                        "id": block.id,
                        "type": "function",
                        "function": {"name": block.name, "arguments": json.dumps(block.input)},
                    }
                )
            elif isinstance(block, TextBlock):
                parts.append({"type": "text", "text": block.text})
            else:
                parts.append(_image_to_openai(block))

        result = list(tool_results)
        if parts or tool_calls:
            converted: dict[str, Any] = {"role": msg.role}
            if len(parts) == 1 and parts[0]["type"] == "text":
                converted["content"] = parts[0]["text"]
            else:
                converted["content"] = parts or None
            if tool_calls:
                converted["tool_calls"] = tool_calls
            result.append(converted)
        return result


def _image_to_openai(block: ImageBlock) -> dict[str, Any]:
    url = block.url
    if block.data and block.media_type:
        url = f"data:{block.media_type};base64,{block.data}"
    return {"type": "image_url", "image_url": {"url": url}}


def _get(obj: Any, key: str) -> Any:
    """Read *key* from a dict or an attribute-style response object."""
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)
