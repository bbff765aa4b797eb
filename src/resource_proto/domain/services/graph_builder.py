"""Resource graph builder.

Materializes a sequence of subsystem specifications into one
multi-subsystem ResourceGraph:

1. Validation: every spec is checked up front, so a bad spec fails the
   whole build and no partial graph is ever returned
2. Tree expansion: each SpecUnit creates ``count`` siblings under every
   parent, pre-order, wiring parent -> child relations
3. Attach rules: vertices created by earlier specs are linked below this
   spec's anchor vertices with block distribution
4. Overlays: existing edges of another subsystem join this subsystem

Vertex ids follow creation order, so a containment tree built first gets
ids in depth-first pre-order.
"""

from __future__ import annotations

import logging
import time
from typing import Mapping, Optional, Sequence

from resource_proto.domain.entities.resource_graph import ResourceGraph, SubsystemRegistry
from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation
from resource_proto.domain.entities.resource_spec import (
    RESOURCE_TYPES,
    ResourceType,
    SpecUnit,
    SubsystemSpec,
)
from resource_proto.domain.errors import ValidationError
from resource_proto.domain.value_objects.identifiers import (
    MEMBER,
    EdgeId,
    VertexId,
    create_vertex_name,
)

logger = logging.getLogger(__name__)


class _BuildState:
    """Mutable scratch space used while a graph is being materialized."""

    def __init__(self) -> None:
        self.registry = SubsystemRegistry()
        # Vertex columns
        self.v_type: list[str] = []
        self.v_basename: list[str] = []
        self.v_name: list[str] = []
        self.v_size: list[int] = []
        self.v_unit: list[str] = []
        self.v_member: list[dict[str, str]] = []
        # Edge columns
        self.e_source: list[int] = []
        self.e_target: list[int] = []
        self.e_relation: list[str] = []
        self.e_member: list[dict[str, str]] = []
        self.e_companion: list[Optional[int]] = []

        self.ordinals: dict[str, int] = {}
        self.by_type: dict[str, list[int]] = {}
        self.roots: dict[str, list[VertexId]] = {}

    def add_vertex(self, unit: SpecUnit, rtype: ResourceType, subsystem: str) -> int:
        vid = len(self.v_type)
        basename = unit.basename or rtype.basename
        ordinal = self.ordinals.get(unit.type, 0)
        self.ordinals[unit.type] = ordinal + 1
        self.v_type.append(unit.type)
        self.v_basename.append(basename)
        self.v_name.append(create_vertex_name(basename, ordinal))
        self.v_size.append(unit.size)
        self.v_unit.append(rtype.unit)
        self.v_member.append({subsystem: MEMBER})
        self.by_type.setdefault(unit.type, []).append(vid)
        return vid

    def add_edge(self, source: int, target: int, subsystem: str, relation: str) -> int:
        eid = len(self.e_source)
        self.e_source.append(source)
        self.e_target.append(target)
        self.e_relation.append(relation)
        self.e_member.append({subsystem: relation})
        self.e_companion.append(None)
        self.registry.register(subsystem, relation)
        return eid

    def pair(self, forward: int, backward: int) -> None:
        self.e_companion[forward] = backward
        self.e_companion[backward] = forward

    def finish(self) -> ResourceGraph:
        vertices = [
            ResourcePool(
                id=VertexId(i),
                type=self.v_type[i],
                basename=self.v_basename[i],
                name=self.v_name[i],
                size=self.v_size[i],
                unit=self.v_unit[i],
                member_of=self.v_member[i],
            )
            for i in range(len(self.v_type))
        ]
        edges = [
            ResourceRelation(
                id=EdgeId(j),
                source=VertexId(self.e_source[j]),
                target=VertexId(self.e_target[j]),
                relation=self.e_relation[j],
                member_of=self.e_member[j],
                companion=None if self.e_companion[j] is None else EdgeId(self.e_companion[j]),
            )
            for j in range(len(self.e_source))
        ]
        return ResourceGraph(vertices, edges, self.roots, self.registry)


class ResourceGraphBuilder:
    """Builds a ResourceGraph from subsystem specifications."""

    def __init__(self, resource_types: Optional[Mapping[str, ResourceType]] = None) -> None:
        """Initialize the builder.

        Args:
            resource_types: Catalog of known resource types. Defaults to
                RESOURCE_TYPES.
        """
        self._types = dict(resource_types or RESOURCE_TYPES)

    def validate(self, specs: Sequence[SubsystemSpec]) -> list[str]:
        """Check specs without building anything.

        Returns:
            Human-readable problems; empty when the specs are valid.
        """
        problems: list[str] = []
        if not specs:
            return ["at least one subsystem specification is required"]

        seen_subsystems: dict[str, SubsystemSpec] = {}
        produced: set[str] = set()

        for position, spec in enumerate(specs):
            where = f"spec[{position}] ({spec.subsystem or '?'})"
            if not spec.subsystem:
                problems.append(f"{where}: subsystem name is empty")
            elif spec.subsystem in seen_subsystems:
                problems.append(f"{where}: subsystem '{spec.subsystem}' is defined twice")
            if not spec.relation:
                problems.append(f"{where}: relation kind is empty")
            if spec.reverse_relation is not None and not spec.reverse_relation:
                problems.append(f"{where}: reverse relation kind is empty")

            if spec.is_overlay:
                problems.extend(self._validate_overlay(where, spec, seen_subsystems))
            elif spec.root is None:
                problems.append(f"{where}: needs either a root unit or an overlay")
            else:
                problems.extend(self._validate_units(where, spec.root))
                own_types = spec.produced_types()
                for rule in spec.attach:
                    if rule.anchor_type not in own_types:
                        problems.append(
                            f"{where}: attach anchor type '{rule.anchor_type}' is not produced by this spec"
                        )
                    if rule.target_type not in self._types:
                        problems.append(f"{where}: undefined resource type '{rule.target_type}'")
                    elif rule.target_type not in produced:
                        problems.append(
                            f"{where}: attach target type '{rule.target_type}' is not produced by an earlier spec"
                        )
                produced |= own_types

            if spec.subsystem and spec.subsystem not in seen_subsystems:
                seen_subsystems[spec.subsystem] = spec

        return problems

    def _validate_units(self, where: str, root: SpecUnit) -> list[str]:
        problems = []
        for unit in root.walk():
            if unit.type not in self._types:
                problems.append(f"{where}: undefined resource type '{unit.type}'")
            if isinstance(unit.count, bool) or not isinstance(unit.count, int) or unit.count < 1:
                problems.append(f"{where}: count of '{unit.type}' must be a positive integer, got {unit.count!r}")
            if isinstance(unit.size, bool) or not isinstance(unit.size, int) or unit.size < 0:
                problems.append(f"{where}: size of '{unit.type}' must be a non-negative integer, got {unit.size!r}")
        return problems

    def _validate_overlay(
        self, where: str, spec: SubsystemSpec, seen: Mapping[str, SubsystemSpec]
    ) -> list[str]:
        problems = []
        overlay = spec.overlay
        if spec.root is not None or spec.attach or spec.reverse_relation is not None:
            problems.append(f"{where}: an overlay cannot define units, attach rules or a reverse relation")
        base = seen.get(overlay.base)
        if base is None:
            problems.append(f"{where}: overlay base subsystem '{overlay.base}' is not defined earlier")
        elif overlay.base_relation not in self._relations_of(base):
            problems.append(
                f"{where}: overlay base '{overlay.base}' has no relation kind '{overlay.base_relation}'"
            )
        return problems

    def _relations_of(self, spec: SubsystemSpec) -> set[str]:
        kinds = {spec.relation}
        if spec.reverse_relation:
            kinds.add(spec.reverse_relation)
        return kinds

    def build(self, specs: Sequence[SubsystemSpec]) -> ResourceGraph:
        """Materialize the specs into a graph.

        Raises:
            ValidationError: If any spec is malformed; nothing is built.
        """
        problems = self.validate(specs)
        if problems:
            logger.error(f"Rejected resource specification: {len(problems)} problem(s)")
            raise ValidationError(
                f"invalid resource specification: {problems[0]}"
                + (f" (and {len(problems) - 1} more)" if len(problems) > 1 else ""),
                problems,
            )

        started = time.perf_counter()
        state = _BuildState()
        for spec in specs:
            if state.registry.register(spec.subsystem):
                logger.debug(f"Registered subsystem {spec.subsystem}")
            if spec.is_overlay:
                self._apply_overlay(spec, state)
            else:
                self._apply_tree(spec, state)

        graph = state.finish()
        logger.info(
            f"Built resource graph with {graph.num_vertices} vertices, {graph.num_edges} edges "
            f"and subsystems {list(graph.registry)} in {time.perf_counter() - started:.3f}s"
        )
        return graph

    def _apply_tree(self, spec: SubsystemSpec, state: _BuildState) -> None:
        subsystem = spec.subsystem
        roots = state.roots.setdefault(subsystem, [])
        created: dict[str, list[int]] = {}

        def link(parent: int, child: int) -> None:
            forward = state.add_edge(parent, child, subsystem, spec.relation)
            if spec.reverse_relation:
                state.pair(forward, state.add_edge(child, parent, subsystem, spec.reverse_relation))

        def expand(unit: SpecUnit, parent: Optional[int]) -> None:
            rtype = self._types[unit.type]
            for _ in range(unit.count):
                vid = state.add_vertex(unit, rtype, subsystem)
                created.setdefault(unit.type, []).append(vid)
                if parent is None:
                    roots.append(VertexId(vid))
                else:
                    link(parent, vid)
                for child in unit.children:
                    expand(child, vid)

        # Targets are fixed before expansion so this spec never attaches to itself
        targets = {rule.target_type: list(state.by_type.get(rule.target_type, ())) for rule in spec.attach}

        logger.debug(f"Expanding {subsystem}: {spec.root.expanded_count()} new vertices")

        expand(spec.root, None)

        for rule in spec.attach:
            anchors = created[rule.anchor_type]
            chosen = targets[rule.target_type]
            n, m = len(chosen), len(anchors)
            for i, target in enumerate(chosen):
                state.v_member[target][subsystem] = MEMBER
                link(anchors[i * m // n], target)
            logger.debug(
                f"Attached {n} {rule.target_type} vertices below {m} {rule.anchor_type} "
                f"vertices in {subsystem}"
            )

    def _apply_overlay(self, spec: SubsystemSpec, state: _BuildState) -> None:
        subsystem = spec.subsystem
        base, base_relation = spec.overlay.base, spec.overlay.base_relation
        has_incoming: set[int] = set()
        members: list[int] = []
        for eid, member_of in enumerate(state.e_member):
            if member_of.get(base) != base_relation:
                continue
            member_of[subsystem] = spec.relation
            source, target = state.e_source[eid], state.e_target[eid]
            for vid in (source, target):
                if subsystem not in state.v_member[vid]:
                    state.v_member[vid][subsystem] = MEMBER
                    members.append(vid)
            has_incoming.add(target)
        state.registry.register(subsystem, spec.relation)
        state.roots[subsystem] = [VertexId(v) for v in sorted(members) if v not in has_incoming]


def build_graph(specs: Sequence[SubsystemSpec]) -> ResourceGraph:
    """Build a resource graph from specs with the default type catalog.

    Raises:
        ValidationError: If the specification is malformed or inconsistent.
    """
    return ResourceGraphBuilder().build(specs)
