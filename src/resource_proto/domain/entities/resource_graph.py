"""The multi-subsystem resource graph.

The graph is a plain adjacency list over two arenas: ``vertices[i]`` is
the pool with id ``i`` and ``edges[j]`` the relation with id ``j``.
Out-adjacency lists keep edge insertion order, which is the order the
traverser visits children in.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence

from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation
from resource_proto.domain.value_objects.identifiers import EdgeId, VertexId


class SubsystemRegistry:
    """Subsystem names in first-encounter order, with their relation kinds."""

    def __init__(self) -> None:
        self._relations: dict[str, list[str]] = {}
        self._frozen = False

    def register(self, subsystem: str, relation: str | None = None) -> bool:
        """Record a subsystem (and optionally a relation kind used in it).

        Returns:
            True if the subsystem was seen for the first time.

        Raises:
            RuntimeError: If the registry belongs to a finished graph.
        """
        if self._frozen:
            raise RuntimeError("subsystem registry is read-only once the graph is built")
        is_new = subsystem not in self._relations
        kinds = self._relations.setdefault(subsystem, [])
        if relation is not None and relation not in kinds:
            kinds.append(relation)
        return is_new

    def freeze(self) -> None:
        self._frozen = True

    def names(self) -> tuple[str, ...]:
        return tuple(self._relations)

    def relations(self, subsystem: str) -> tuple[str, ...]:
        """Relation kinds used in a subsystem (empty if unknown)."""
        return tuple(self._relations.get(subsystem, ()))

    def __contains__(self, subsystem: object) -> bool:
        return subsystem in self._relations

    def __iter__(self) -> Iterator[str]:
        return iter(self._relations)

    def __len__(self) -> int:
        return len(self._relations)

    def __repr__(self) -> str:
        return f"SubsystemRegistry({list(self._relations)})"


class ResourceGraph:
    """All resource pools and relations of every subsystem, plus their roots."""

    def __init__(
        self,
        vertices: Sequence[ResourcePool],
        edges: Sequence[ResourceRelation],
        roots: Mapping[str, Sequence[VertexId]],
        registry: SubsystemRegistry | None = None,
    ) -> None:
        """Assemble a graph from already materialized pools and relations.

        Args:
            vertices: Pools, where ``vertices[i].id == i``.
            edges: Relations, where ``edges[j].id == j``.
            roots: Root vertex ids per subsystem.
            registry: Subsystem registry; derived from memberships if None.

        Raises:
            ValueError: If ids are not dense or an edge/root references a
                missing vertex.
        """
        self._vertices: tuple[ResourcePool, ...] = tuple(vertices)
        self._edges: tuple[ResourceRelation, ...] = tuple(edges)

        for index, vertex in enumerate(self._vertices):
            if vertex.id != index:
                raise ValueError(f"vertex at index {index} has id {vertex.id}")

        count = len(self._vertices)
        out: list[list[EdgeId]] = [[] for _ in range(count)]
        for index, edge in enumerate(self._edges):
            if edge.id != index:
                raise ValueError(f"edge at index {index} has id {edge.id}")
            if not (0 <= edge.source < count and 0 <= edge.target < count):
                raise ValueError(f"edge {edge.id} references a vertex outside the graph")
            out[edge.source].append(edge.id)
        self._out: tuple[tuple[EdgeId, ...], ...] = tuple(tuple(ids) for ids in out)

        frozen_roots: dict[str, tuple[VertexId, ...]] = {}
        for subsystem, ids in roots.items():
            for vid in ids:
                if not 0 <= vid < count:
                    raise ValueError(f"root {vid} of {subsystem} is not a graph vertex")
            frozen_roots[subsystem] = tuple(ids)
        self._roots = MappingProxyType(frozen_roots)

        if registry is None:
            registry = SubsystemRegistry()
            for edge in self._edges:
                for subsystem, relation in edge.member_of.items():
                    registry.register(subsystem, relation)
            for vertex in self._vertices:
                for subsystem in vertex.member_of:
                    registry.register(subsystem)
        registry.freeze()
        self._registry = registry

    @property
    def registry(self) -> SubsystemRegistry:
        return self._registry

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    @property
    def subsystem_roots(self) -> Mapping[str, tuple[VertexId, ...]]:
        """Root vertex ids keyed by subsystem."""
        return self._roots

    @property
    def roots(self) -> tuple[VertexId, ...]:
        """Every declared root, ascending and without duplicates."""
        return tuple(sorted({vid for ids in self._roots.values() for vid in ids}))

    def roots_for(self, subsystems: Iterable[str]) -> tuple[VertexId, ...]:
        """Roots of the given subsystems, ascending and without duplicates."""
        wanted = set(subsystems)
        return tuple(sorted({
            vid for subsystem, ids in self._roots.items() if subsystem in wanted for vid in ids
        }))

    def vertex(self, vertex_id: int) -> ResourcePool:
        return self._vertices[vertex_id]

    def edge(self, edge_id: int) -> ResourceRelation:
        return self._edges[edge_id]

    def vertices(self) -> tuple[ResourcePool, ...]:
        return self._vertices

    def edges(self) -> tuple[ResourceRelation, ...]:
        return self._edges

    def out_edges(self, vertex_id: int) -> tuple[EdgeId, ...]:
        """Outgoing edge ids of a vertex, in insertion order."""
        return self._out[vertex_id]

    def vertices_of(self, subsystem: str) -> list[ResourcePool]:
        """Pools belonging to a subsystem."""
        return [v for v in self._vertices if subsystem in v.member_of]

    def edges_of(self, subsystem: str, relation: str | None = None) -> list[ResourceRelation]:
        """Relations belonging to a subsystem, optionally of one kind."""
        return [
            e for e in self._edges
            if subsystem in e.member_of and (relation is None or e.member_of[subsystem] == relation)
        ]

    def count_by_type(self) -> dict[str, int]:
        """Number of pools of each type."""
        counts: dict[str, int] = {}
        for vertex in self._vertices:
            counts[vertex.type] = counts.get(vertex.type, 0) + 1
        return counts

    def find(self, name: str) -> ResourcePool | None:
        """Look a pool up by name."""
        for vertex in self._vertices:
            if vertex.name == name:
                return vertex
        return None

    def __contains__(self, vertex_id: object) -> bool:
        return isinstance(vertex_id, int) and 0 <= vertex_id < len(self._vertices)

    def __repr__(self) -> str:
        return (
            f"ResourceGraph(vertices={self.num_vertices}, edges={self.num_edges}, "
            f"subsystems={list(self._registry)})"
        )
