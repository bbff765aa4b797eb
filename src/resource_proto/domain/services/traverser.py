"""Depth-first-and-up (DFU) traverser.

Walks a filtered view from a set of roots, moving down through the
view's edges to the leaves and back up, and calls four visitor hooks per
vertex:

1. pre_down: on arrival; decides CONTINUE, SKIP_SUBTREE or ABORT
2. post_down: once everything below the vertex has been walked
3. pre_up: turns the children's results into this vertex's result
4. post_up: just before control returns to the parent

Down events let a visitor accumulate state while descending; up events
let it aggregate or prune on the way back. The walk uses an explicit
stack, visits roots in ascending id order and children in edge insertion
order, so repeated walks over an unchanged view are identical.

A vertex reached again while it is still on the descent path raises
CycleDetectedError when every edge of that loop belongs to one common
subsystem: each subsystem is a hierarchy, so such a loop is a data
integrity fault. Two cases are not faults and are treated like a vertex
already finished through another path, which is never visited twice:

- the companion edge leading straight back to the parent, i.e. the other
  direction of the link just descended
- a loop stitched together from edges of different subsystems, such as
  node -> edge switch -> node -> PDU -> node
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Iterator, Optional

from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation
from resource_proto.domain.errors import CycleDetectedError
from resource_proto.domain.value_objects.identifiers import EdgeId, VertexId

if TYPE_CHECKING:
    from resource_proto.domain.services.projector import FilteredView

logger = logging.getLogger(__name__)


class VisitOutcome(Enum):
    """What the walk does after a pre_down hook."""
    CONTINUE = "continue"           # Descend into children
    SKIP_SUBTREE = "skip_subtree"   # Treat as a dead end, go straight to the up phase
    ABORT = "abort"                 # Stop the whole walk now


class DFUVisitor:
    """Base visitor; every hook is a no-op that keeps the walk going."""

    def begin_walk(self) -> None:
        pass

    def pre_down(self, vertex: ResourcePool, depth: int) -> VisitOutcome:
        return VisitOutcome.CONTINUE

    def post_down(self, vertex: ResourcePool, child_results: list) -> None:
        pass

    def pre_up(self, vertex: ResourcePool, child_results: list) -> Any:
        return None

    def post_up(self, vertex: ResourcePool, result: Any) -> None:
        pass

    def end_walk(self, result: TraversalResult) -> None:
        pass


@dataclass
class TraversalResult:
    """What a walk visited, what hooks left behind, and how long it took."""
    view: FilteredView
    roots: tuple[VertexId, ...]
    order: list[VertexId] = field(default_factory=list)
    edge_ids: list[EdgeId] = field(default_factory=list)
    annotations: dict[VertexId, Any] = field(default_factory=dict)
    elapsed_seconds: float = 0.0
    started_at: float = 0.0
    finished_at: float = 0.0
    aborted: bool = False

    @property
    def name(self) -> str:
        return self.view.name

    @property
    def visited_count(self) -> int:
        return len(self.order)

    @property
    def vertex_ids(self) -> frozenset[VertexId]:
        return frozenset(self.order)

    def vertices(self) -> Iterator[ResourcePool]:
        """Visited vertices in visit order."""
        for vid in self.order:
            yield self.view.vertex(vid)

    def edges(self) -> Iterator[ResourceRelation]:
        """Examined edges in the order they were followed."""
        for eid in self.edge_ids:
            yield self.view.edge(eid)

    def annotation(self, vertex_id: int) -> Any:
        return self.annotations.get(vertex_id)

    def matched(self) -> list[VertexId]:
        """Vertices whose annotation reports a satisfied request, in visit order."""
        return [
            vid for vid in self.order
            if getattr(self.annotations.get(vid), "satisfies", None) is True
        ]


class _Frame:
    __slots__ = ("vertex", "edges", "next_edge", "depth", "arrival", "results")

    def __init__(
        self,
        vertex: ResourcePool,
        edges: tuple[EdgeId, ...],
        depth: int,
        arrival: Optional[EdgeId],
    ) -> None:
        self.vertex = vertex
        self.edges = edges
        self.next_edge = 0
        self.depth = depth
        self.arrival = arrival
        self.results: list = []


class DFUTraverser:
    """Performs DFU walks over filtered views."""

    def begin_walk(
        self,
        view: FilteredView,
        roots: Iterable[int],
        visitor: DFUVisitor,
    ) -> TraversalResult:
        """Walk ``view`` from ``roots``, calling ``visitor`` hooks.

        Roots outside the view are ignored.

        Returns:
            TraversalResult; ``aborted`` is set when a hook returned ABORT.

        Raises:
            CycleDetectedError: If a vertex is reached again while on the
                descent path, through edges of a single subsystem. The
                error carries the partial result.
        """
        ordered_roots = tuple(sorted({VertexId(r) for r in roots if view.has_vertex(r)}))
        result = TraversalResult(view=view, roots=ordered_roots)
        visited: set[int] = set()
        on_path: dict[int, int] = {}

        visitor.begin_walk()
        result.started_at = time.time()
        started = time.perf_counter()
        try:
            for root in ordered_roots:
                if root in visited:
                    continue
                if not self._walk(view, root, visitor, result, visited, on_path):
                    result.aborted = True
                    logger.info(f"Walk of {view.name} aborted after {result.visited_count} vertices")
                    break
        except CycleDetectedError as err:
            err.partial = result
            logger.error(f"Walk of {view.name} hit a cycle at vertex {err.vertex_id}")
            raise
        finally:
            result.elapsed_seconds = time.perf_counter() - started
            result.finished_at = time.time()

        visitor.end_walk(result)
        return result

    def _walk(
        self,
        view: FilteredView,
        root: VertexId,
        visitor: DFUVisitor,
        result: TraversalResult,
        visited: set[int],
        on_path: dict[int, int],
    ) -> bool:
        """Walk one root; returns False if the walk was aborted."""
        vertex_of = view.vertex
        edge_of = view.edge
        out_edges = view.out_edges
        order = result.order
        edge_ids = result.edge_ids
        annotations = result.annotations

        def arrive(vid: int, depth: int, arrival: Optional[EdgeId], index: int) -> Optional[_Frame]:
            vertex = vertex_of(vid)
            visited.add(vid)
            order.append(vertex.id)
            outcome = visitor.pre_down(vertex, depth)
            if outcome is VisitOutcome.ABORT:
                return None
            on_path[vid] = index
            if outcome is VisitOutcome.SKIP_SUBTREE:
                return _Frame(vertex, (), depth, arrival)
            return _Frame(vertex, out_edges(vid), depth, arrival)

        frame = arrive(root, 0, None, 0)
        if frame is None:
            return False
        stack = [frame]

        while stack:
            frame = stack[-1]
            if frame.next_edge < len(frame.edges):
                eid = frame.edges[frame.next_edge]
                frame.next_edge += 1
                edge = edge_of(eid)
                child = edge.target
                if child in on_path:
                    if frame.arrival is None or edge.companion != frame.arrival:
                        if self._closes_subsystem_loop(view, stack, on_path[child], eid):
                            raise CycleDetectedError(child)
                    edge_ids.append(eid)
                    continue
                edge_ids.append(eid)
                if child in visited:
                    continue
                child_frame = arrive(child, frame.depth + 1, eid, len(stack))
                if child_frame is None:
                    return False
                stack.append(child_frame)
                continue

            # Everything below this vertex is done: run its up phase
            vertex = frame.vertex
            visitor.post_down(vertex, frame.results)
            value = visitor.pre_up(vertex, frame.results)
            if value is not None:
                annotations[vertex.id] = value
            stack.pop()
            del on_path[vertex.id]
            visitor.post_up(vertex, value)
            if stack and value is not None:
                stack[-1].results.append(value)

        return True

    @staticmethod
    def _closes_subsystem_loop(
        view: FilteredView,
        stack: list[_Frame],
        start: int,
        closing: EdgeId,
    ) -> bool:
        """Check whether the path below ``stack[start]`` plus ``closing`` share a subsystem."""
        shared = view.edge_subsystems(closing)
        for frame in stack[start + 1:]:
            shared = shared & view.edge_subsystems(frame.arrival)
            if not shared:
                return False
        return bool(shared)


def traverse(
    view: FilteredView,
    roots: Iterable[int],
    matcher: DFUVisitor,
    visitor: Optional[DFUVisitor] = None,
) -> TraversalResult:
    """Walk a filtered view with a matcher's hooks (or an explicit visitor).

    Raises:
        CycleDetectedError: If the view has a cycle on a descent path.
    """
    return DFUTraverser().begin_walk(view, roots, visitor or matcher)
