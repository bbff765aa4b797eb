"""Prometheus metrics export for graph builds, projections and walks.

Translates domain results into updates of the MetricsRegistry series.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from prometheus_client import CollectorRegistry

from resource_proto.infrastructure.metrics import MetricsRegistry

if TYPE_CHECKING:
    from resource_proto.domain.entities.resource_graph import ResourceGraph
    from resource_proto.domain.services.projector import FilteredView
    from resource_proto.domain.services.traverser import TraversalResult


class PrometheusExporter:
    """Record resource prototype activity in Prometheus series."""

    def __init__(self, metrics: Optional[MetricsRegistry] = None):
        """Initialize the exporter.

        Args:
            metrics: Metrics registry to update. Creates one over a private
                CollectorRegistry if None.
        """
        self.metrics = metrics or MetricsRegistry(CollectorRegistry())

    def record_graph(self, graph: ResourceGraph, build_seconds: float) -> None:
        """Record the size and build time of a graph."""
        self.metrics.graph_vertices.set(graph.num_vertices)
        self.metrics.graph_edges.set(graph.num_edges)
        self.metrics.graph_build_seconds.observe(build_seconds)

    def record_view(self, view: FilteredView) -> None:
        """Record the size of a filtered view."""
        self.metrics.view_vertices.labels(matcher=view.name).set(view.num_vertices)
        self.metrics.view_edges.labels(matcher=view.name).set(view.num_edges)

    def record_traversal(self, result: TraversalResult) -> None:
        """Record a finished walk."""
        labels = {"matcher": result.name}
        self.metrics.traversal_seconds.labels(**labels).observe(result.elapsed_seconds)
        self.metrics.traversal_vertices_total.labels(**labels).inc(result.visited_count)
        outcome = "aborted" if result.aborted else "completed"
        self.metrics.traversal_outcomes_total.labels(outcome=outcome, **labels).inc()

    def record_cycle(self, matcher: str) -> None:
        """Record a walk that failed on a cycle."""
        self.metrics.traversal_outcomes_total.labels(matcher=matcher, outcome="cycle").inc()

    def record_matcher_error(self, kind: str) -> None:
        """Record a matcher configuration failure.

        Args:
            kind: "unknown_matcher" or "unknown_subsystem".
        """
        self.metrics.matcher_errors_total.labels(kind=kind).inc()

    def export_metrics(self) -> str:
        """Export metrics in Prometheus text format."""
        return self.metrics.export_metrics()
