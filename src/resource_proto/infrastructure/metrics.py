"""Prometheus metrics for the resource prototype."""

from __future__ import annotations

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, Info, generate_latest

import resource_proto


class MetricsRegistry:
    """Resource graph, matcher and traversal metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self._registry = registry or REGISTRY

        self.graph_vertices = Gauge("resource_graph_vertices", "Vertices in the resource graph", registry=self._registry)
        self.graph_edges = Gauge("resource_graph_edges", "Edges in the resource graph", registry=self._registry)
        self.graph_build_seconds = Histogram("resource_graph_build_seconds", "Graph build latency", buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0), registry=self._registry)

        self.view_vertices = Gauge("filtered_view_vertices", "Vertices in a filtered view", ["matcher"], registry=self._registry)
        self.view_edges = Gauge("filtered_view_edges", "Edges in a filtered view", ["matcher"], registry=self._registry)
        self.matcher_errors_total = Counter("matcher_config_errors_total", "Matcher configuration failures", ["kind"], registry=self._registry)

        self.traversal_seconds = Histogram("dfu_traversal_seconds", "DFU traversal latency", ["matcher"], buckets=(0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5), registry=self._registry)
        self.traversal_vertices_total = Counter("dfu_visited_vertices_total", "Vertices visited by DFU walks", ["matcher"], registry=self._registry)
        self.traversal_outcomes_total = Counter("dfu_traversals_total", "DFU walks by outcome", ["matcher", "outcome"], registry=self._registry)

        self.info = Info("resource_proto", "Resource prototype info", registry=self._registry)
        self.info.info({"version": resource_proto.__version__})

    def export_metrics(self) -> str:
        """Render the registry in Prometheus text format."""
        return generate_latest(self._registry).decode("utf-8")


_metrics: MetricsRegistry | None = None


def get_metrics() -> MetricsRegistry:
    """Process-wide registry over the default Prometheus collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsRegistry()
    return _metrics
