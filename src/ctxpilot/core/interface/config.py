"""Model configuration: provider, model name, context window, capability flags."""

import logging
from typing import Any

import litellm
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW = 128_000


class ModelConfig(BaseModel):
    """Descriptor for a specific model/provider combination.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``openrouter/anthropic/claude-3.5-sonnet``,
    ``anthropic/claude-3-opus``).
    """

    model: str
    api_key: str | None = None
    api_base: str | None = None
    context_window: int | None = None
    capabilities: dict[str, bool] = Field(default_factory=lambda: dict[str, bool]())
    # Passed through to litellm.acompletion, e.g. temperature or extra_headers.
    extra: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"

    @property
    def supports_computer_use(self) -> bool:
        return self.capabilities.get("supports_computer_use", False)

    def resolve_context_window(self) -> int:
        """Return the context window: explicit value > LiteLLM model map > default."""
        if self.context_window is not None:
            return self.context_window
        try:
            info = litellm.get_model_info(self.model)  # pyright: ignore[reportUnknownMemberType]
        except Exception:  # litellm raises a bare Exception for unmapped models
            logger.debug("No LiteLLM model info for %s, using default window", self.model)
            return DEFAULT_CONTEXT_WINDOW
        window = info.get("max_input_tokens") or info.get("max_tokens")
        return int(window) if window else DEFAULT_CONTEXT_WINDOW
