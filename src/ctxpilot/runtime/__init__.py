"""Request runtime: the orchestrator, its collaborators, errors and usage tracking."""

from ctxpilot.runtime.errors import (
    DependencyMissingError,
    DependencyTimeoutError,
    InstructionsReadError,
    RequestError,
    format_error_with_status_code,
)
from ctxpilot.runtime.orchestrator import RETRY_ELIGIBLE_PROVIDERS, RequestOrchestrator
from ctxpilot.runtime.state import RequestPhase, RequestState
from ctxpilot.runtime.tracking import (
    RequestMetrics,
    metrics_from_usage,
    parse_request_metrics,
    update_request_text,
)

__all__ = [
    "RETRY_ELIGIBLE_PROVIDERS",
    "DependencyMissingError",
    "DependencyTimeoutError",
    "InstructionsReadError",
    "RequestError",
    "RequestMetrics",
    "RequestOrchestrator",
    "RequestPhase",
    "RequestState",
    "format_error_with_status_code",
    "metrics_from_usage",
    "parse_request_metrics",
    "update_request_text",
]
