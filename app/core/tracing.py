"""
OpenTelemetry Distributed Tracing Configuration.

Sets up OpenTelemetry with:
- TracerProvider with the service name
- BatchSpanProcessor for span export (console, or OTLP when configured)
- Environment variable control (OTEL_ENABLED=true/false)

Usage:
    from app.core.tracing import setup_tracing, get_tracer, instrument_app

    setup_tracing()
    instrument_app(app)

    tracer = get_tracer(__name__)
    with tracer.start_as_current_span("tool.recall_decisions") as span:
        span.set_attribute("meeting_id", meeting_id)

When tracing is disabled, get_tracer() hands out OpenTelemetry's no-op
tracer, so instrumented code runs unchanged.

Environment Variables:
    OTEL_ENABLED: Set to "true" to enable tracing (default: false)
    OTEL_SERVICE_NAME: Override service name (default: converse-knowledge-service)
    OTEL_EXPORTER_OTLP_ENDPOINT: OTLP endpoint for production (optional)
"""

import logging
import os
from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.trace import Tracer

logger = logging.getLogger("Converse.Tracing")

DEFAULT_SERVICE_NAME = "converse-knowledge-service"

_tracer_provider: Optional[TracerProvider] = None
_is_initialized = False


def is_tracing_enabled() -> bool:
    return os.getenv("OTEL_ENABLED", "false").lower() == "true"


def setup_tracing(service_name: Optional[str] = None) -> Optional[TracerProvider]:
    """
    Initialize OpenTelemetry tracing.

    Returns:
        The configured TracerProvider, or None if tracing is disabled.
    """
    global _tracer_provider, _is_initialized

    if _is_initialized:
        logger.debug("Tracing already initialized, skipping")
        return _tracer_provider

    if not is_tracing_enabled():
        logger.info("OpenTelemetry tracing is disabled (set OTEL_ENABLED=true to enable)")
        _is_initialized = True
        return None

    effective_service_name = (
        service_name
        or os.getenv("OTEL_SERVICE_NAME")
        or DEFAULT_SERVICE_NAME
    )

    _tracer_provider = TracerProvider(resource=Resource.create({
        SERVICE_NAME: effective_service_name
    }))

    otlp_endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
            exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
            logger.info(f"Using OTLP exporter with endpoint: {otlp_endpoint}")
        except ImportError:
            logger.warning("OTLP exporter requested but grpc dependencies not installed, using console")
            exporter = ConsoleSpanExporter()
    else:
        exporter = ConsoleSpanExporter()
        logger.info("Using Console exporter for trace output")

    _tracer_provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(_tracer_provider)

    _is_initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {effective_service_name}")
    return _tracer_provider


def get_tracer(name: str) -> Tracer:
    """Get a tracer for custom spans (no-op when tracing is disabled)."""
    return trace.get_tracer(name)


def instrument_app(app) -> None:
    """Add automatic request spans to a FastAPI application."""
    if not is_tracing_enabled():
        logger.debug("Tracing disabled, skipping FastAPI instrumentation")
        return

    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    FastAPIInstrumentor.instrument_app(app)
    logger.info("FastAPI instrumentation enabled")


def instrument_httpx() -> None:
    """Trace outbound provider calls (the OpenAI and Anthropic SDKs use httpx)."""
    if not is_tracing_enabled():
        logger.debug("Tracing disabled, skipping httpx instrumentation")
        return

    from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
    HTTPXClientInstrumentor().instrument()
    logger.info("httpx instrumentation enabled")


def shutdown_tracing() -> None:
    """Flush and shut down the tracing provider."""
    global _tracer_provider, _is_initialized

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shut down")

    _tracer_provider = None
    _is_initialized = False

