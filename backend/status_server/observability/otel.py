from __future__ import annotations

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from ..core.config import Settings
from .logging import get_logger

logger = get_logger("observability.otel")


def init_otel(app: FastAPI, settings: Settings) -> bool:
    """
    Initialize OpenTelemetry tracing when STATUS_OTEL_ENABLED is set.

    Spans are exported via OTLP gRPC. Returns whether tracing was installed.
    """
    otel_settings = settings.otel
    if not otel_settings.enabled:
        return False

    resource = Resource(
        attributes={
            "service.name": otel_settings.service_name,
            "service.environment": settings.app.env.value,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    trace.set_tracer_provider(tracer_provider)

    span_exporter = OTLPSpanExporter(
        endpoint=otel_settings.exporter_otlp_endpoint,
        insecure=True,
    )

    span_processor = BatchSpanProcessor(span_exporter)
    tracer_provider.add_span_processor(span_processor)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)
    logger.info(
        "OpenTelemetry tracing enabled",
        extra={"endpoint": otel_settings.exporter_otlp_endpoint},
    )
    return True
