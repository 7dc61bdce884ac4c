"""
OpenTelemetry Distributed Tracing

Spans cover checkout, the commit workflow and payouts. Export is enabled
when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is configured.
"""

import logging
from typing import Optional

from opentelemetry import trace
from opentelemetry.instrumentation.django import DjangoInstrumentor
from opentelemetry.instrumentation.requests import RequestsInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

logger = logging.getLogger(__name__)

_initialized = False


def setup_tracing(service_name: str, otlp_endpoint: Optional[str] = None) -> None:
    """
    Initialize the tracer provider and auto-instrument Django and requests.

    Args:
        service_name: Service name reported on every span
        otlp_endpoint: OTLP gRPC collector endpoint; spans are not exported without it
    """
    global _initialized

    if _initialized:
        logger.warning("Tracing already initialized. Skipping.")
        return

    tracer_provider = TracerProvider(resource=Resource(attributes={SERVICE_NAME: service_name}))

    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
        logger.info(f"OTLP trace export configured: {otlp_endpoint}")

    trace.set_tracer_provider(tracer_provider)

    DjangoInstrumentor().instrument()
    RequestsInstrumentor().instrument()

    _initialized = True
    logger.info(f"OpenTelemetry tracing initialized for service: {service_name}")


def get_tracer(name: str = __name__) -> trace.Tracer:
    """
    Get a tracer for custom spans.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span("commit_order") as span:
            span.set_attribute("order.id", order_id)
    """
    return trace.get_tracer(name)
