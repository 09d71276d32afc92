"""Context budgeting: token counting, relevance scoring, truncation and optimization."""

from ctxpilot.core.context.budget import (
    ContextBudgetPlanner,
    ContextWindowLimits,
    TruncationDecision,
    calculate_context_window_limits,
    should_truncate_conversation,
)
from ctxpilot.core.context.counter import EstimatingCounter, TiktokenCounter, TokenCounter
from ctxpilot.core.context.counter_registry import get_counter
from ctxpilot.core.context.optimizer import (
    DEFAULT_SECTION_POLICY,
    OptimizedContext,
    SectionPolicy,
    optimize_context,
    optimize_conversation_history,
    optimize_environment_details,
    optimize_system_prompt,
)
from ctxpilot.core.context.relevance import contains_important_content, score_message_relevance
from ctxpilot.core.context.settings import (
    DEFAULT_CONTEXT_OPTIMIZATION_SETTINGS,
    ContextOptimizationSettings,
)
from ctxpilot.core.context.sliding_window import (
    SlidingWindowRangeTracker,
    get_next_truncation_range,
    get_truncated_messages,
)
from ctxpilot.core.context.smart_truncation import (
    apply_selective_context_inclusion,
    identify_messages_to_remove,
    smart_truncate_messages,
)

__all__ = [
    "DEFAULT_CONTEXT_OPTIMIZATION_SETTINGS",
    "DEFAULT_SECTION_POLICY",
    "ContextBudgetPlanner",
    "ContextOptimizationSettings",
    "ContextWindowLimits",
    "EstimatingCounter",
    "OptimizedContext",
    "SectionPolicy",
    "SlidingWindowRangeTracker",
    "TiktokenCounter",
    "TokenCounter",
    "TruncationDecision",
    "apply_selective_context_inclusion",
    "calculate_context_window_limits",
    "contains_important_content",
    "get_counter",
    "get_next_truncation_range",
    "get_truncated_messages",
    "identify_messages_to_remove",
    "optimize_context",
    "optimize_conversation_history",
    "optimize_environment_details",
    "optimize_system_prompt",
    "score_message_relevance",
    "should_truncate_conversation",
    "smart_truncate_messages",
]
