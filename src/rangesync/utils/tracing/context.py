"""
Span helpers used around every engine operation.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


def _attribute_value(value):
    if isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes,
):
    """
    Run the enclosed block inside a span.

    Exceptions are recorded on the span (``error.type``, ``error.message``)
    and re-raised unchanged.

    Example:
        >>> with trace_operation("delete", kind=trace.SpanKind.CLIENT, table="t") as span:
        ...     span.set_attribute("rows.affected", 3)
    """
    with get_tracer().start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, _attribute_value(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            raise


def add_span_attributes(**attributes) -> None:
    """Set attributes on the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, _attribute_value(value))
