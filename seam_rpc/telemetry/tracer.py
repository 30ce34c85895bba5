"""
OpenTelemetry Tracing

Tracer setup and span helpers. Spans are created through the global tracer
provider, which is a no-op until ``setup_tracer`` is called.
"""

import logging
from typing import Dict, Any

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

def setup_tracer(service_name: str, otlp_endpoint: str = "localhost:4317"):
    """Configure OpenTelemetry tracer
    
    Args:
        service_name: Service name
        otlp_endpoint: OTLP receiver address
    """
    provider = TracerProvider(sampler=ALWAYS_ON)
    
    otlp_exporter = OTLPSpanExporter(endpoint=otlp_endpoint)
    provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
    
    trace.set_tracer_provider(provider)
    
    tracer = trace.get_tracer(service_name)
    
    logger.info(f"OpenTelemetry trace configured, service name: {service_name}, OTLP endpoint: {otlp_endpoint}")
    
    return tracer

def create_span(name: str, attributes: Dict[str, Any] = None, kind=trace.SpanKind.INTERNAL):
    """Create new span and make it current
    
    Args:
        name: Span name
        attributes: Span attributes
        kind: Span kind
        
    Returns:
        Context manager yielding the span
    """
    tracer = trace.get_tracer(__name__)
    return tracer.start_as_current_span(
        name,
        attributes=attributes or {},
        kind=kind,
        record_exception=False,
        set_status_on_exception=False,
    )

def mark_span_error(span, exc: BaseException = None, description: str = None):
    """Flag a span as failed, optionally attaching the exception that caused it"""
    if exc is not None:
        span.record_exception(exc)
    span.set_status(Status(StatusCode.ERROR, description or (str(exc) if exc else None)))
