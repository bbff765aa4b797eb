"""OpenTelemetry tracing for the resource prototype.

Spans cover graph builds, view projections and DFU walks. They leave the
process only when an OTLP endpoint is configured.
"""

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased

import resource_proto
from resource_proto.infrastructure.config import Config, get_config

TRACER_NAME = "resource_proto"


def setup_tracing(config: Config | None = None) -> trace.Tracer:
    """Install a tracer provider sampling ``trace_sample_ratio`` of root spans."""
    config = config or get_config()
    observability = config.observability

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": TRACER_NAME,
                "service.version": resource_proto.__version__,
                "deployment.environment": observability.environment,
                "resource_proto.graph.scale": config.graph.scale,
            }
        ),
        sampler=ParentBased(TraceIdRatioBased(observability.trace_sample_ratio)),
    )

    if observability.otel_endpoint:
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=observability.otel_endpoint, insecure=True))
        )

    trace.set_tracer_provider(provider)
    return provider.get_tracer(TRACER_NAME, resource_proto.__version__)


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    """Get a tracer from the global provider."""
    return trace.get_tracer(name)
