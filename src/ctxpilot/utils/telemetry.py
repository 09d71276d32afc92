"""OpenTelemetry tracing for request orchestration.

Only the OpenTelemetry *API* is a hard dependency. Until
:func:`configure_telemetry` installs an SDK provider, every tracer handed
out here is a no-op, so instrumented code pays nothing when tracing is off.

Usage::

    from ctxpilot.utils.telemetry import ATTR_MODEL, get_tracer, set_span_attributes

    _tracer = get_tracer(__name__)

    with _tracer.start_as_current_span("request.attempt") as span:
        set_span_attributes(span, {ATTR_MODEL: config.model})

The SDK and exporters ship in the ``otel`` extra
(``pip install ctxpilot[otel]``).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from opentelemetry import trace

# ---------------------------------------------------------------------------
# Span attribute keys
# ---------------------------------------------------------------------------

ATTR_MODEL = "ctxpilot.model"
ATTR_PROVIDER = "ctxpilot.provider"
ATTR_REQUEST_INDEX = "ctxpilot.request.index"
ATTR_FIRST_REQUEST = "ctxpilot.request.first"
ATTR_RETRY = "ctxpilot.request.retry"
ATTR_TOKENS_TOTAL = "ctxpilot.tokens.total"
ATTR_CONTEXT_WINDOW = "ctxpilot.context_window"
ATTR_TRUNCATION_MODE = "ctxpilot.truncation.mode"
ATTR_TRUNCATION_KEEP = "ctxpilot.truncation.keep"
ATTR_MESSAGES_IN = "ctxpilot.messages.in"
ATTR_MESSAGES_OUT = "ctxpilot.messages.out"

_INSTRUMENTATION_NAME = "ctxpilot"

_SDK_HINT = "Install it with: pip install ctxpilot[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    """Return the tracer for *name* (defaults to the package name)."""
    return trace.get_tracer(name or _INSTRUMENTATION_NAME)


def set_span_attributes(span: trace.Span, attributes: Mapping[str, Any]) -> None:
    """Set every attribute whose value is not ``None``."""
    for key, value in attributes.items():
        if value is not None:
            span.set_attribute(key, value)


def configure_telemetry(
    *,
    service_name: str = "ctxpilot",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install an SDK tracer provider as the global provider.

    Args:
        service_name: Value of the ``service.name`` resource attribute.
        export_to_console: Print finished spans to stdout as they end.
        otlp_endpoint: Batch-export spans over OTLP/gRPC to this endpoint.

    Raises:
        ImportError: ``opentelemetry-sdk`` (or, with *otlp_endpoint*,
            ``opentelemetry-exporter-otlp``) is not installed.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
            BatchSpanProcessor,
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )
    except ImportError as exc:
        msg = f"opentelemetry-sdk is required for configure_telemetry(). {_SDK_HINT}"
        raise ImportError(msg) from exc

    processors: list[Any] = []
    if export_to_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter()))
    if otlp_endpoint:
        processors.append(BatchSpanProcessor(_otlp_exporter(otlp_endpoint)))

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    for processor in processors:
        provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)


def _otlp_exporter(endpoint: str) -> Any:
    try:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
            OTLPSpanExporter,
        )
    except ImportError as exc:
        msg = f"opentelemetry-exporter-otlp is required for OTLP export. {_SDK_HINT}"
        raise ImportError(msg) from exc
    return OTLPSpanExporter(endpoint=endpoint)
