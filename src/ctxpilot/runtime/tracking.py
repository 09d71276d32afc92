"""Per-request usage bookkeeping.

The host persists one JSON text per request (tokens in/out, cache
traffic, cost, cancel reason). The orchestrator reads the previous
request's totals to decide whether the history needs truncating. That
text comes from storage and may be damaged; a malformed record is logged
and left exactly as it was.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from ctxpilot.core.interface.models import StreamChunk, UsageChunk

logger = logging.getLogger(__name__)


class RequestMetrics(BaseModel):
    """Token and cost totals for one request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    tokens_in: int = 0
    tokens_out: int = 0
    cache_writes: int = 0
    cache_reads: int = 0
    cost: float | None = None
    cancel_reason: str | None = None
    streaming_failed_message: str | None = None

    @property
    def total_tokens(self) -> int:
        """Everything that occupied the context window on that request."""
        return self.tokens_in + self.tokens_out + self.cache_writes + self.cache_reads


def parse_request_metrics(text: str) -> RequestMetrics | None:
    """Parse a persisted request record; ``None`` when it is malformed."""
    try:
        data: Any = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Ignoring malformed request metadata: %r", text[:200] if text else text)
        return None
    if not isinstance(data, dict):
        logger.warning("Ignoring request metadata that is not an object: %r", text[:200])
        return None
    try:
        return RequestMetrics.model_validate(data)
    except ValidationError as exc:
        logger.warning("Ignoring invalid request metadata: %s", exc)
        return None


def update_request_text(text: str, **fields: Any) -> str:
    """Merge *fields* (snake_case, stored camelCase) into a persisted request record.

    Returns *text* unchanged if it does not hold a JSON object.
    """
    try:
        data: Any = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        logger.warning("Leaving malformed request metadata untouched")
        return text
    if not isinstance(data, dict):
        logger.warning("Leaving non-object request metadata untouched")
        return text
    data.update({to_camel(k): v for k, v in fields.items() if v is not None})
    return json.dumps(data)


def metrics_from_usage(chunks: Iterable[StreamChunk]) -> RequestMetrics:
    """Fold the usage chunks of a finished stream into one record."""
    metrics = RequestMetrics()
    cost: float | None = None
    for chunk in chunks:
        if not isinstance(chunk, UsageChunk):
            continue
        metrics.tokens_in += chunk.input_tokens
        metrics.tokens_out += chunk.output_tokens
        metrics.cache_writes += chunk.cache_write_tokens
        metrics.cache_reads += chunk.cache_read_tokens
        if chunk.total_cost is not None:
            cost = (cost or 0.0) + chunk.total_cost
    metrics.cost = cost
    return metrics
