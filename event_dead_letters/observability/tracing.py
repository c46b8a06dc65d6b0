"""
OpenTelemetry Tracing Setup for the Event Dead Letter Store
"""

from typing import Optional

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

# Global tracer instance
tracer: Optional[trace.Tracer] = None


def init_tracing(
    service_name: str = "event-dead-letters",
    enable_console_export: bool = False,
) -> trace.Tracer:
    """
    Initialize OpenTelemetry tracing

    Args:
        service_name: Name of the service for trace identification
        enable_console_export: Whether to export traces to console (dev mode)

    Returns:
        Configured Tracer instance
    """
    global tracer

    resource = Resource(attributes={SERVICE_NAME: service_name})
    provider = TracerProvider(resource=resource)

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    tracer = trace.get_tracer(__name__)

    return tracer


def trace_dead_letter_operation(
    operation: str,
    group: str,
    insertion_id: Optional[str] = None,
) -> trace.Span:
    """
    Create a span for one dead letter store operation

    Args:
        operation: Operation name (store, remove, remove_group)
        group: Listener group name
        insertion_id: Insertion id, when the operation targets one record

    Returns:
        Started span; the caller ends it
    """
    if tracer is None:
        # Non-recording span, safe to end
        return trace.INVALID_SPAN

    attributes = {"dead_letters.group": group}
    if insertion_id is not None:
        attributes["dead_letters.insertion_id"] = insertion_id

    return tracer.start_span(f"dead_letters.{operation}", attributes=attributes)
