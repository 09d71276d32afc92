"""Provider-specific transpiler implementations."""

from ctxpilot.core.interface.transpilers.openai import OpenAITranspiler

__all__ = ["OpenAITranspiler"]
