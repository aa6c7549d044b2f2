"""Optional OpenTelemetry spans around reconcile attempts."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Any, Iterator

try:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    TRACING_AVAILABLE = True
except ImportError:
    TRACING_AVAILABLE = False

logger = logging.getLogger(__name__)

_tracer: Any = None


def initialize_tracing(service_name: str = "secrets-store-rotator") -> None:
    """Export reconcile spans over OTLP when ``OTEL_TRACES_ENABLED=true``.

    ``OTEL_SERVICE_NAME`` and ``OTEL_EXPORTER_OTLP_ENDPOINT`` override the
    service name and the collector endpoint.
    """
    global _tracer

    if not TRACING_AVAILABLE or os.getenv("OTEL_TRACES_ENABLED", "false").lower() != "true":
        return

    try:
        provider = TracerProvider(
            resource=Resource.create({"service.name": os.getenv("OTEL_SERVICE_NAME", service_name)})
        )
        endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(service_name)
    except Exception as e:
        # Rotation runs without tracing
        logger.warning(f"Failed to initialize tracing: {e}")


@contextmanager
def reconcile_span(key: str, outcome: Any) -> Iterator[None]:
    """Trace one reconcile attempt, tagging the span from its outcome on exit.

    The span records the stage reached, the failure reason and whether the
    mounted versions changed. Failed outcomes mark the span as an error.
    """
    if _tracer is None:
        yield
        return

    with _tracer.start_as_current_span("reconcile_rotation", attributes={"rotation.key": key}) as span:
        try:
            yield
        finally:
            span.set_attribute("rotation.stage", outcome.stage)
            span.set_attribute("rotation.provider", outcome.provider)
            span.set_attribute("rotation.rotated", outcome.requires_update)
            if outcome.failed:
                span.set_attribute("rotation.reason", outcome.reason)
                span.set_status(trace.Status(trace.StatusCode.ERROR, outcome.reason))
