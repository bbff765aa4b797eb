"""OpenTelemetry spans around graph builds, projections and walks."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from opentelemetry import trace

from resource_proto.infrastructure.tracing import get_tracer


class OpenTelemetryTracer:
    """Tracing for the resource matching workflow."""

    def __init__(self, tracer: Optional[trace.Tracer] = None, service_name: str = "resource-proto"):
        """Initialize the tracer.

        Args:
            tracer: Tracer to record spans with; the global one if None.
            service_name: Value of the service.name span attribute.
        """
        self.tracer = tracer or get_tracer()
        self.service_name = service_name

    @contextmanager
    def trace_build(self, scale: str) -> Generator[trace.Span, None, None]:
        """Trace a graph build."""
        with self.tracer.start_as_current_span(
            "graph.build",
            attributes={
                "graph.scale": scale,
                "service.name": self.service_name,
            },
        ) as span:
            yield span

    @contextmanager
    def trace_projection(self, matcher: str) -> Generator[trace.Span, None, None]:
        """Trace the projection of a matcher's view."""
        with self.tracer.start_as_current_span(
            "matcher.project",
            attributes={
                "matcher.name": matcher,
                "service.name": self.service_name,
            },
        ) as span:
            yield span

    @contextmanager
    def trace_traversal(self, matcher: str, root_count: int) -> Generator[trace.Span, None, None]:
        """Trace a DFU walk."""
        with self.tracer.start_as_current_span(
            "dfu.traverse",
            attributes={
                "matcher.name": matcher,
                "dfu.roots": root_count,
                "service.name": self.service_name,
            },
        ) as span:
            yield span
