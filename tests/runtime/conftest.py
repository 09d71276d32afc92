"""Fakes for the orchestrator's collaborators."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any
from unittest.mock import AsyncMock

import pytest

from ctxpilot.core.interface.config import ModelConfig
from ctxpilot.core.interface.models import Message, StreamChunk

PROMPT = "====\n\n".join(
    [
        "You are a coding agent.\n\n",
        "TOOL USE\n\nUse one tool per message.\n\n",
        "CAPABILITIES\n\nYou can read files.\n\n",
        "RULES\n\nBe concise.\n\n",
        "OBJECTIVE\n\nFinish the task.",
    ]
)


@dataclass
class FakeToolHub:
    is_connecting: bool = False


@dataclass
class FakeHost:
    tool_hub: FakeToolHub | None = field(default_factory=FakeToolHub)

    def get_tool_hub(self) -> FakeToolHub | None:
        return self.tool_hub


class ScriptedStream:
    """MessageStream whose every call plays the next script.

    A script is either an exception (raised before the first chunk) or a
    list of chunks, exceptions (raised mid-stream) and ``asyncio.Event``
    objects (awaited before continuing).
    """

    def __init__(self, config: ModelConfig, scripts: list[Any]) -> None:
        self.config = config
        self._scripts = list(scripts)
        self.calls: list[tuple[str, list[Message]]] = []

    async def create_message(
        self, system_prompt: str, messages: list[Message]
    ) -> AsyncIterator[StreamChunk]:
        self.calls.append((system_prompt, messages))
        script = self._scripts.pop(0)
        if isinstance(script, BaseException):
            raise script
        for item in script:
            if isinstance(item, BaseException):
                raise item
            if isinstance(item, asyncio.Event):
                await item.wait()
                continue
            yield item


def make_config(model: str = "openrouter/anthropic/claude-3.5-sonnet", window: int = 128_000) -> ModelConfig:
    return ModelConfig(model=model, context_window=window)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def build_prompt() -> AsyncMock:
    return AsyncMock(return_value=PROMPT)
