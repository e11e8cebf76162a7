"""
OpenTelemetry tracer setup.

Nothing is exported until initialize_tracing() is called; before that
get_tracer() hands out the API's proxy tracer, whose spans are no-ops. This
keeps library use (and the test suite) free of exporter threads.
"""

import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "rangesync"

_provider: TracerProvider | None = None


def initialize_tracing(
    service_name: str = "rangesync",
    otlp_endpoint: str | None = None,
    console_export: bool = False,
    sampling_rate: float = 1.0,
) -> trace.Tracer:
    """
    Install an SDK tracer provider with the requested exporters.

    Args:
        service_name: Service name resource attribute
        otlp_endpoint: OTLP gRPC collector endpoint; falls back to the
            OTLP_ENDPOINT environment variable, disabled when neither is set
        console_export: Also print finished spans to stdout
        sampling_rate: Ratio of traces sampled, 0.0-1.0

    Returns:
        Tracer bound to the new provider
    """
    global _provider

    if _provider is not None:
        logger.warning("Tracing already initialized, returning existing tracer")
        return _provider.get_tracer(INSTRUMENTATION_NAME)

    provider = TracerProvider(
        resource=Resource(attributes={SERVICE_NAME: service_name}),
        sampler=TraceIdRatioBased(sampling_rate),
    )

    exporters = []

    endpoint = otlp_endpoint or os.getenv("OTLP_ENDPOINT")
    if endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
        exporters.append("OTLP")
        logger.info(f"OTLP exporter configured: {endpoint}")

    if console_export or os.getenv("TRACE_CONSOLE", "").lower() == "true":
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        exporters.append("Console")

    if not exporters:
        logger.warning("No trace exporters configured, spans will be dropped")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(
        f"Tracing initialized: {service_name} "
        f"(exporters: {', '.join(exporters) or 'none'}, sampling: {sampling_rate})"
    )
    return provider.get_tracer(INSTRUMENTATION_NAME)


def get_tracer() -> trace.Tracer:
    """Return the rangesync tracer from the current global provider."""
    return trace.get_tracer(INSTRUMENTATION_NAME)


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down."""
    global _provider

    if _provider is None:
        return

    try:
        _provider.shutdown()
        logger.info("Tracing shutdown complete")
    finally:
        _provider = None
