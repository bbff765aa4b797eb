"""Filtered view projector.

Derives the read-only subgraph a matcher is allowed to see. Projection
runs once per matcher, before any walk, so that traversal cost depends
on the size of the view rather than on the whole graph.
"""

from __future__ import annotations

import logging
from typing import Iterator

from resource_proto.domain.entities.resource_graph import ResourceGraph
from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation
from resource_proto.domain.services.matcher import Matcher, MatcherStep
from resource_proto.domain.value_objects.identifiers import WILDCARD, EdgeId, VertexId

logger = logging.getLogger(__name__)

_NO_EDGES: tuple[EdgeId, ...] = ()


class FilteredView:
    """Vertices and edges of a graph selected by one matcher configuration."""

    def __init__(
        self,
        graph: ResourceGraph,
        name: str,
        steps: tuple[MatcherStep, ...],
        vertex_ids: frozenset[VertexId],
        edge_ids: tuple[EdgeId, ...],
        adjacency: dict[VertexId, tuple[EdgeId, ...]],
    ) -> None:
        self._graph = graph
        self._name = name
        self._steps = steps
        self._vertex_ids = vertex_ids
        self._edge_ids = edge_ids
        self._edge_set = frozenset(edge_ids)
        self._adjacency = adjacency
        self._filters: dict[str, set[str]] = {}
        for subsystem, relation_filter in steps:
            self._filters.setdefault(subsystem, set()).add(relation_filter)

    @property
    def graph(self) -> ResourceGraph:
        return self._graph

    @property
    def name(self) -> str:
        """Name of the matcher this view was projected for."""
        return self._name

    @property
    def steps(self) -> tuple[MatcherStep, ...]:
        return self._steps

    @property
    def subsystems(self) -> tuple[str, ...]:
        return tuple(dict.fromkeys(subsystem for subsystem, _ in self._steps))

    @property
    def vertex_ids(self) -> frozenset[VertexId]:
        return self._vertex_ids

    @property
    def edge_ids(self) -> frozenset[EdgeId]:
        return self._edge_set

    @property
    def num_vertices(self) -> int:
        return len(self._vertex_ids)

    @property
    def num_edges(self) -> int:
        return len(self._edge_ids)

    def has_vertex(self, vertex_id: int) -> bool:
        return vertex_id in self._vertex_ids

    def has_edge(self, edge_id: int) -> bool:
        return edge_id in self._edge_set

    def out_edges(self, vertex_id: int) -> tuple[EdgeId, ...]:
        """Outgoing view edges of a vertex, in insertion order."""
        return self._adjacency.get(vertex_id, _NO_EDGES)

    def edge_subsystems(self, edge_id: int) -> frozenset[str]:
        """Active subsystems whose filter admits an edge into this view."""
        member_of = self._graph.edge(edge_id).member_of
        return frozenset(
            subsystem
            for subsystem, kinds in self._filters.items()
            if subsystem in member_of and (WILDCARD in kinds or member_of[subsystem] in kinds)
        )

    def vertex(self, vertex_id: int) -> ResourcePool:
        return self._graph.vertex(vertex_id)

    def edge(self, edge_id: int) -> ResourceRelation:
        return self._graph.edge(edge_id)

    def vertices(self) -> Iterator[ResourcePool]:
        """View vertices in ascending id order."""
        for vid in sorted(self._vertex_ids):
            yield self._graph.vertex(vid)

    def edges(self) -> Iterator[ResourceRelation]:
        """View edges in ascending id order."""
        for eid in self._edge_ids:
            yield self._graph.edge(eid)

    def roots(self) -> tuple[VertexId, ...]:
        """Declared roots of the active subsystems."""
        return self._graph.roots_for(self.subsystems)

    def __contains__(self, vertex_id: object) -> bool:
        return vertex_id in self._vertex_ids

    def __repr__(self) -> str:
        return f"FilteredView(name={self._name!r}, vertices={self.num_vertices}, edges={self.num_edges})"


def project(graph: ResourceGraph, matcher: Matcher) -> FilteredView:
    """Project the part of ``graph`` that ``matcher`` selects.

    A vertex is kept iff it belongs to an active subsystem. An edge is
    kept iff both endpoints are kept and it carries, in some active
    subsystem, a relation kind accepted by that subsystem's filter.
    """
    steps = matcher.active_subsystems()
    matches_vertex = matcher.matches_vertex
    matches_edge = matcher.matches_edge

    vertex_ids = frozenset(v.id for v in graph.vertices() if matches_vertex(v.member_of))

    edge_ids: list[EdgeId] = []
    adjacency: dict[VertexId, list[EdgeId]] = {}
    for edge in graph.edges():
        if edge.source in vertex_ids and edge.target in vertex_ids and matches_edge(edge.member_of):
            edge_ids.append(edge.id)
            adjacency.setdefault(edge.source, []).append(edge.id)

    view = FilteredView(
        graph,
        matcher.name,
        steps,
        vertex_ids,
        tuple(edge_ids),
        {vid: tuple(ids) for vid, ids in adjacency.items()},
    )
    logger.debug(f"Projected {view!r} from {graph!r}")
    return view
