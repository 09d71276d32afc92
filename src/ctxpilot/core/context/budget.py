"""Context budget planning: how much history fits, and how hard to cut.

A model's context window is never fully available to history: part of it
is held back as headroom for the system prompt, tool definitions and the
reply. The headroom depends on the model family, so well-known window
sizes get a fixed reserve and everything else gets a proportional one.

Truncation is two-tier. Once history reaches the budget, half of the
truncatable history goes; if even half of the current size would still
overflow, three quarters go instead so the next request is not immediately
over budget again.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

Keep = Literal["half", "quarter"]

# Exact window sizes with a fixed reserve (no interpolation between them).
_RESERVED_HEADROOM: dict[int, int] = {
    64_000: 27_000,  # deepseek models
    128_000: 30_000,  # most models
    200_000: 40_000,  # claude models
}
_FALLBACK_RESERVE = 40_000
_FALLBACK_RATIO = 0.8

# Fraction of the truncatable messages removed for each keep directive.
_TARGET_REDUCTION: dict[str, float] = {"half": 0.5, "quarter": 0.75}


class ContextWindowLimits(BaseModel):
    """Usable history budget derived from a context window."""

    model_config = ConfigDict(frozen=True)

    context_window: int
    max_allowed_size: int | float


class TruncationDecision(BaseModel):
    """Whether to truncate, and how much history to keep if so."""

    model_config = ConfigDict(frozen=True)

    should_truncate: bool
    keep: Keep = "half"


def calculate_context_window_limits(context_window: int) -> ContextWindowLimits:
    """Return the maximum history size allowed for *context_window*."""
    reserved = _RESERVED_HEADROOM.get(context_window)
    if reserved is not None:
        max_allowed: int | float = context_window - reserved
    else:
        max_allowed = max(context_window - _FALLBACK_RESERVE, context_window * _FALLBACK_RATIO)
    return ContextWindowLimits(context_window=context_window, max_allowed_size=max_allowed)


def should_truncate_conversation(total_tokens: int, context_window: int) -> TruncationDecision:
    """Decide whether a history of *total_tokens* must be truncated."""
    max_allowed = calculate_context_window_limits(context_window).max_allowed_size
    if total_tokens < max_allowed:
        return TruncationDecision(should_truncate=False, keep="half")
    keep: Keep = "quarter" if total_tokens / 2 > max_allowed else "half"
    return TruncationDecision(should_truncate=True, keep=keep)


def target_reduction(keep: Keep) -> float:
    """Map a keep directive to the fraction of candidates smart truncation removes."""
    return _TARGET_REDUCTION[keep]


class ContextBudgetPlanner:
    """Budget planner bound to one model's context window."""

    def __init__(self, context_window: int) -> None:
        self._context_window = context_window
        self._limits = calculate_context_window_limits(context_window)

    @property
    def context_window(self) -> int:
        return self._context_window

    @property
    def limits(self) -> ContextWindowLimits:
        return self._limits

    def decide(self, total_tokens: int) -> TruncationDecision:
        return should_truncate_conversation(total_tokens, self._context_window)

    def target_reduction(self, keep: Keep) -> float:
        return target_reduction(keep)
