"""StreamingClient: async streaming access to LLMs via LiteLLM.

Wraps ``litellm.acompletion(stream=True)`` behind the block message schema
so the request orchestrator only ever sees :data:`StreamChunk` values.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any

import litellm

from ctxpilot.core.interface.config import ModelConfig
from ctxpilot.core.interface.models import Message, StreamChunk, UsageChunk
from ctxpilot.core.interface.transpiler import Transpiler
from ctxpilot.core.interface.transpilers.openai import OpenAITranspiler
from ctxpilot.utils.telemetry import ATTR_MODEL, ATTR_PROVIDER, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class StreamingClient:
    """Async client that streams model replies as chunks.

    Usage::

        config = ModelConfig(model="openrouter/anthropic/claude-3.5-sonnet")
        client = StreamingClient(config)
        async for chunk in client.create_message(system_prompt, messages):
            ...
    """

    def __init__(self, config: ModelConfig, transpiler: Transpiler | None = None) -> None:
        self.config = config
        self.transpiler: Transpiler = transpiler or OpenAITranspiler()

    async def create_message(
        self,
        system_prompt: str,
        messages: list[Message],
        **kwargs: Any,
    ) -> AsyncIterator[StreamChunk]:
        """Open a streaming completion and yield chunks as they arrive.

        Errors raised while opening the stream surface on the first
        iteration, which is where the orchestrator watches for them.
        """
        with _tracer.start_as_current_span("model.stream") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)

            payload = self.transpiler.to_provider(system_prompt, messages)
            call_kwargs: dict[str, Any] = {
                **self.config.extra,
                "model": self.config.model,
                "messages": payload["messages"],
                "stream": True,
                "stream_options": {"include_usage": True},
                **kwargs,
            }
            if self.config.api_key:
                call_kwargs["api_key"] = self.config.api_key
            if self.config.api_base:
                call_kwargs["api_base"] = self.config.api_base

            response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]

            async for raw in response:  # pyright: ignore[reportGeneralTypeIssues]
                for chunk in self.transpiler.from_stream_chunk(raw):
                    if isinstance(chunk, UsageChunk) and chunk.total_cost is None:
                        chunk = chunk.model_copy(update={"total_cost": self._estimate_cost(chunk)})
                    yield chunk

    def _estimate_cost(self, usage: UsageChunk) -> float | None:
        """Price *usage* from LiteLLM's model cost map, if the model is in it."""
        try:
            prompt_cost, completion_cost = litellm.cost_per_token(  # pyright: ignore[reportUnknownMemberType]
                model=self.config.model,
                prompt_tokens=usage.input_tokens,
                completion_tokens=usage.output_tokens,
            )
        except Exception:  # litellm raises a bare Exception for unmapped models
            logger.debug("No LiteLLM pricing for %s, cost left unset", self.config.model)
            return None
        return prompt_cost + completion_cost
