"""Counter registry: picks a TokenCounter for a model config."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ctxpilot.core.context.counter import EstimatingCounter, TiktokenCounter, TokenCounter

if TYPE_CHECKING:
    from ctxpilot.core.interface.config import ModelConfig

# Vendors whose tokenization tiktoken reproduces exactly.
_TIKTOKEN_VENDORS = frozenset({"openai", "azure", "azure_ai"})
# Gateways that prefix the real vendor: ``openrouter/openai/gpt-4o``.
_ROUTING_PROVIDERS = frozenset({"openrouter"})


def _vendor_and_model(config: ModelConfig) -> tuple[str, str]:
    parts = config.model.split("/")
    if len(parts) == 1:
        return config.provider, parts[0]
    if parts[0] in _ROUTING_PROVIDERS and len(parts) > 2:
        return parts[1], "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


def get_counter(config: ModelConfig) -> TokenCounter:
    """Return tiktoken for OpenAI-family models, the estimator for everything else.

    Models reached through a routing gateway are matched on the vendor
    behind it, so ``openrouter/openai/gpt-4o`` is counted with tiktoken
    while ``openrouter/anthropic/claude-3.5-sonnet`` is estimated.
    """
    vendor, model_name = _vendor_and_model(config)
    if vendor in _TIKTOKEN_VENDORS:
        return TiktokenCounter(model_name)
    return EstimatingCounter()
