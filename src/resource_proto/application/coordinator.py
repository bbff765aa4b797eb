"""Resource Matching Application Coordinator.

Orchestrates the domain services into the resource prototype workflow:
build the graph once, configure matchers against it, project one view
per matcher, walk views with timing, and export them. Records metrics
and spans for each step.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Sequence

from resource_proto.adapters.outbound.exporters import get_exporter
from resource_proto.adapters.outbound.metrics import PrometheusExporter
from resource_proto.adapters.outbound.tracing import OpenTelemetryTracer
from resource_proto.domain.entities.resource_graph import ResourceGraph
from resource_proto.domain.entities.resource_spec import SubsystemSpec
from resource_proto.domain.errors import CycleDetectedError, UnknownMatcherError, UnknownSubsystemError
from resource_proto.domain.services.graph_builder import ResourceGraphBuilder
from resource_proto.domain.services.matcher import (
    MATCHER_CATALOG,
    Matcher,
    MatcherPolicy,
    configure_matcher,
    lookup_policy,
)
from resource_proto.domain.services.projector import FilteredView, project
from resource_proto.domain.services.spec_catalog import build_scale_spec
from resource_proto.domain.services.traverser import DFUTraverser, DFUVisitor, TraversalResult
from resource_proto.domain.value_objects.scale import ScaleTier
from resource_proto.ports.outbound.exporter import GraphFormat

logger = logging.getLogger(__name__)


class ResourceMatchingCoordinator:
    """Coordinates graph building, matching and export with observability."""

    def __init__(
        self,
        graph: ResourceGraph,
        metrics: Optional[PrometheusExporter] = None,
        tracer: Optional[OpenTelemetryTracer] = None,
        deadline_seconds: Optional[float] = None,
    ) -> None:
        """Initialize the coordinator over a built graph.

        Args:
            graph: Fully built resource graph; never mutated.
            metrics: Metrics recorder; metrics are skipped if None.
            tracer: Span recorder; tracing is skipped if None.
            deadline_seconds: Deadline handed to every configured matcher.
        """
        self._graph = graph
        self._metrics = metrics
        self._tracer = tracer
        self._deadline_seconds = deadline_seconds
        self._traverser = DFUTraverser()
        self._matchers: dict[str, Matcher] = {}
        self._views: dict[str, FilteredView] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_specs(
        cls,
        specs: Sequence[SubsystemSpec],
        label: str = "custom",
        metrics: Optional[PrometheusExporter] = None,
        tracer: Optional[OpenTelemetryTracer] = None,
        **kwargs,
    ) -> ResourceMatchingCoordinator:
        """Build a graph from specs and wrap it in a coordinator.

        Raises:
            ValidationError: If the specs are invalid.
        """
        builder = ResourceGraphBuilder()
        started = time.perf_counter()
        if tracer:
            with tracer.trace_build(label):
                graph = builder.build(specs)
        else:
            graph = builder.build(specs)
        if metrics:
            metrics.record_graph(graph, time.perf_counter() - started)
        return cls(graph, metrics=metrics, tracer=tracer, **kwargs)

    @classmethod
    def for_scale(cls, scale: ScaleTier | str, **kwargs) -> ResourceMatchingCoordinator:
        """Build the predefined test graph of a scale tier."""
        tier = ScaleTier.parse(scale) if isinstance(scale, str) else scale
        return cls.from_specs(build_scale_spec(tier), label=tier.value, **kwargs)

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    def list_subsystems(self) -> list[str]:
        """Subsystem names in first-encounter order."""
        return list(self._graph.registry)

    @staticmethod
    def list_matchers() -> list[MatcherPolicy]:
        """Catalog policies in declaration order."""
        return list(MATCHER_CATALOG.values())

    def configure_matcher(self, name: str) -> Matcher:
        """Configure (once per policy) and return the matcher of a catalog policy.

        Names are matched case-insensitively, so every spelling of a
        policy shares one matcher and one view.

        Raises:
            UnknownMatcherError: If the name is not in the catalog.
            UnknownSubsystemError: If the graph lacks a subsystem the
                policy needs.
        """
        try:
            policy = lookup_policy(name)
        except UnknownMatcherError:
            if self._metrics:
                self._metrics.record_matcher_error("unknown_matcher")
            raise
        with self._lock:
            cached = self._matchers.get(policy.name)
            if cached is not None:
                return cached
            try:
                matcher = configure_matcher(
                    self._graph.registry, policy.name, deadline_seconds=self._deadline_seconds
                )
            except UnknownSubsystemError:
                if self._metrics:
                    self._metrics.record_matcher_error("unknown_subsystem")
                raise
            self._matchers[policy.name] = matcher
            return matcher

    def get_view(self, name: str) -> FilteredView:
        """Filtered view of a matcher, projected on first use."""
        matcher = self.configure_matcher(name)
        with self._lock:
            view = self._views.get(matcher.name)
            if view is not None:
                return view
        if self._tracer:
            with self._tracer.trace_projection(matcher.name):
                view = project(self._graph, matcher)
        else:
            view = project(self._graph, matcher)
        if self._metrics:
            self._metrics.record_view(view)
        with self._lock:
            return self._views.setdefault(matcher.name, view)

    def run_matcher(self, name: str, visitor: Optional[DFUVisitor] = None) -> TraversalResult:
        """Walk a matcher's view from the roots of its subsystems.

        Args:
            name: Policy name.
            visitor: Hooks to use instead of the matcher's own.

        Raises:
            UnknownMatcherError: If the name is not in the catalog.
            UnknownSubsystemError: If the graph lacks a needed subsystem.
            CycleDetectedError: If the view has a cycle on a descent path.
        """
        matcher = self.configure_matcher(name)
        view = self.get_view(name)
        roots = view.roots()
        # Matchers keep per-walk state, so concurrent walks each get a copy
        hooks = visitor or matcher.clone()
        try:
            if self._tracer:
                with self._tracer.trace_traversal(matcher.name, len(roots)):
                    result = self._traverser.begin_walk(view, roots, hooks)
            else:
                result = self._traverser.begin_walk(view, roots, hooks)
        except CycleDetectedError:
            if self._metrics:
                self._metrics.record_cycle(matcher.name)
            raise

        if self._metrics:
            self._metrics.record_traversal(result)
        logger.info(
            f"Matcher {matcher.name} visited {result.visited_count} of {view.num_vertices} view vertices "
            f"in {result.elapsed_seconds:.6f}s"
        )
        return result

    def export_view(self, name: str, format_name: GraphFormat | str = GraphFormat.DOT) -> str:
        """Serialize a matcher's filtered view.

        Raises:
            UnsupportedFormatError: If the format is not implemented.
        """
        view = self.get_view(name)
        exporter = get_exporter(format_name)
        logger.info(f"Exporting the view of matcher {view.name} as {exporter.format.value}")
        return exporter.export(view)
