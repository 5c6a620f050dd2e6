"""
Profile Config Store - OpenTelemetry Tracing Module

Every gated store operation runs inside one span named
``config_store.<operation>`` (e.g. ``config_store.save_config``), so time
spent queued at the gate and time spent in the storage adapter show up on
the same span.

Patterns Applied:
- One-time configure_tracing() at startup
- Manual instrumentation at the store's public operation boundary
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

SERVICE_NAME = "profile-config-store"
SPAN_PREFIX = "config_store"

_configured: bool = False


def _build_provider(service_name: str, service_version: str, console_export: bool) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": service_name, "service.version": service_version}
        )
    )
    if console_export:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    return provider


def configure_tracing(
    service_name: str = SERVICE_NAME,
    console_export: bool = False,
    service_version: str = "0.1.0",
) -> None:
    """Install the global tracer provider.

    Called once from the application lifespan; later calls are no-ops.

    Args:
        service_name: Service name for trace attribution
        console_export: Print finished spans to stdout (development only)
        service_version: Version reported in the trace resource
    """
    global _configured

    if _configured:
        return

    trace.set_tracer_provider(_build_provider(service_name, service_version, console_export))
    _configured = True


def get_tracer(name: str) -> Any:
    """Get a tracer for *name* (typically ``__name__``)."""
    return trace.get_tracer(name)


def span_name(operation: str) -> str:
    """Span name for a store operation label, e.g. "set mode config"."""
    return f"{SPAN_PREFIX}.{operation.replace(' ', '_')}"


@contextmanager
def operation_span(tracer: Any, operation: str, **attributes: Any) -> Iterator[Any]:
    """Open the span of one store operation.

    Attributes are recorded as ``config_store.<key>``; None values are
    skipped. Exceptions leaving the block are recorded on the span by
    OpenTelemetry and re-raised.
    """
    with tracer.start_as_current_span(span_name(operation)) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"{SPAN_PREFIX}.{key}", value)
        yield span


def reset_tracing() -> None:
    """Reset tracing configuration for testing."""
    global _configured
    _configured = False
