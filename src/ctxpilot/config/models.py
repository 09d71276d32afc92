"""Pydantic models for the settings YAML consumed by the CLI and hosts."""

from __future__ import annotations

from pydantic import BaseModel, Field

from ctxpilot.core.context.settings import ContextOptimizationSettings
from ctxpilot.core.interface.config import ModelConfig


class Settings(BaseModel):
    """Top-level settings file.

    Example::

        model:
          model: openrouter/anthropic/claude-3.5-sonnet
          api_key: ${OPENROUTER_API_KEY}
        context_optimization:
          useSmartTruncation: false
        custom_instructions: Prefer small diffs.
    """

    model: ModelConfig | None = None
    context_optimization: ContextOptimizationSettings = Field(
        default_factory=ContextOptimizationSettings
    )
    custom_instructions: str | None = None
    instructions_file: str | None = None
