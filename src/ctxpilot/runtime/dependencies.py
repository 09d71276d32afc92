"""Collaborator interfaces the request orchestrator depends on.

The orchestrator never reaches into the host's object graph. It gets a
narrow :class:`HostServices` view exposing only the tool hub lookup, a
prompt builder, and a message stream.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ctxpilot.core.interface.config import ModelConfig
    from ctxpilot.core.interface.models import Message, StreamChunk


@runtime_checkable
class ToolHub(Protocol):
    """Tool-connectivity hub (e.g. MCP servers) the system prompt describes."""

    @property
    def is_connecting(self) -> bool:
        """True while tool servers are still being connected."""
        ...


@runtime_checkable
class HostServices(Protocol):
    """The slice of the host the orchestrator is allowed to see."""

    def get_tool_hub(self) -> ToolHub | None:
        """Return the tool hub, or ``None`` if the host has none."""
        ...


class SystemPromptBuilder(Protocol):
    """Builds the base system prompt from workspace and tooling context."""

    async def __call__(
        self,
        cwd: str,
        supports_computer_use: bool,
        tool_hub: ToolHub,
        browser_settings: dict[str, Any],
    ) -> str: ...


@runtime_checkable
class MessageStream(Protocol):
    """A streaming model transport."""

    config: ModelConfig

    def create_message(
        self, system_prompt: str, messages: list[Message]
    ) -> AsyncIterator[StreamChunk]:
        """Start a request and return its lazy chunk sequence."""
        ...
