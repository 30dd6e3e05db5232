"""
OpenTelemetry tracing setup.
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Tracer

from typed_tasks import __version__
from typed_tasks.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(
    settings: Settings | None = None,
    enable_console_export: bool = False,
) -> Tracer:
    """
    Set up OpenTelemetry tracing.

    Spans are exported over OTLP only when otel_enabled is set.

    Args:
        settings: Optional settings, defaults to get_settings().
        enable_console_export: If True, also export spans to console.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = settings or get_settings()

    resource = Resource.create(
        {
            "service.name": settings.otel_service_name,
            "service.version": __version__,
        }
    )

    provider = TracerProvider(resource=resource)

    if settings.otel_enabled:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTLP span export enabled",
            extra={"endpoint": settings.otel_exporter_otlp_endpoint},
        )

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)

    _tracer = trace.get_tracer(settings.otel_service_name)

    return _tracer


def instrument_fastapi(app: Any) -> None:
    """
    Instrument FastAPI application with OpenTelemetry.

    Args:
        app: The FastAPI application instance.
    """
    FastAPIInstrumentor.instrument_app(app)


def get_tracer() -> Tracer:
    """
    Get the tracer instance.

    Falls back to the globally configured provider (a no-op one unless
    tracing was set up) without installing a provider itself.
    """
    if _tracer is None:
        return trace.get_tracer("typed_tasks")
    return _tracer
