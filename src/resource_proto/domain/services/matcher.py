"""Subsystem-aware matcher.

A matcher is a named policy selecting which subsystems of the resource
graph, and which relation kinds inside them, a walk should see. It plays
two roles:

1. Configuration: an ordered set of (subsystem, relation filter) pairs,
   each validated against the graph's subsystem registry, from which the
   projector derives a filtered view
2. Visitor: the DFU hooks, which roll resource counts up the walk and
   mark subtrees that can satisfy a resource request

Policies live in MATCHER_CATALOG as data; adding a policy is adding an
entry, not a branch.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Mapping, Optional

from resource_proto.domain.entities.resource_graph import SubsystemRegistry
from resource_proto.domain.entities.resource_pool import ResourcePool
from resource_proto.domain.errors import UnknownMatcherError, UnknownSubsystemError
from resource_proto.domain.services.traverser import DFUVisitor, VisitOutcome
from resource_proto.domain.value_objects.identifiers import WILDCARD

logger = logging.getLogger(__name__)

MatcherStep = tuple[str, str]


@dataclass(frozen=True)
class MatcherPolicy:
    """A catalog entry: ordered activation steps plus a description."""
    name: str
    description: str
    steps: tuple[MatcherStep, ...]


MATCHER_CATALOG: dict[str, MatcherPolicy] = {
    p.name: p
    for p in (
        MatcherPolicy("CA", "Containment Aware", (("containment", "contains"),)),
        MatcherPolicy("IBA", "InfiniBand connection-Aware", (("ibnet", WILDCARD),)),
        MatcherPolicy("IBBA", "InfiniBand Bandwidth-Aware", (("ibnetbw", WILDCARD),)),
        MatcherPolicy("PFS1BA", "Parallel File System 1 Bandwidth-aware", (("pfs1bw", "flows_up"),)),
        MatcherPolicy("PA", "Power-Aware", (("power", WILDCARD),)),
        MatcherPolicy(
            "C+IBA",
            "Containment and InfiniBand connection-Aware",
            (("containment", "contains"), ("ibnet", "connected_up")),
        ),
        MatcherPolicy(
            "C+PFS1BA",
            "Containment and PFS1 Bandwidth-Aware",
            (("containment", "contains"), ("pfs1bw", "flows_up")),
        ),
        MatcherPolicy(
            "C+PA",
            "Containment and Power-Aware",
            (("containment", "contains"), ("power", "drawn")),
        ),
        MatcherPolicy(
            "IB+IBBA",
            "InfiniBand connection and Bandwidth-Aware",
            (("ibnet", "connected_down"), ("ibnetbw", WILDCARD)),
        ),
        MatcherPolicy(
            "C+P+IBA",
            "Containment, Power and InfiniBand connection-Aware",
            (("containment", "contains"), ("power", "drawn"), ("ibnet", "connected_up")),
        ),
        MatcherPolicy(
            "ALL",
            "Aware of everything",
            (
                ("containment", WILDCARD),
                ("ibnet", WILDCARD),
                ("ibnetbw", WILDCARD),
                ("pfs1bw", WILDCARD),
                ("power", WILDCARD),
            ),
        ),
        # Descriptive names sharing the steps of the policies above
        MatcherPolicy("containment-only", "Containment hierarchy only", (("containment", "contains"),)),
        MatcherPolicy("interconnect-aware", "Interconnect links in both directions", (("ibnet", WILDCARD),)),
        MatcherPolicy(
            "bandwidth-aware",
            "Interconnect and file system bandwidth flows",
            (("ibnetbw", WILDCARD), ("pfs1bw", "flows_up")),
        ),
        MatcherPolicy("power-aware", "Power distribution in both directions", (("power", WILDCARD),)),
    )
}


def lookup_policy(name: str) -> MatcherPolicy:
    """Find a catalog policy by name, ignoring case.

    Raises:
        UnknownMatcherError: If no policy has that name.
    """
    policy = MATCHER_CATALOG.get(name)
    if policy is None:
        folded = name.casefold()
        policy = next((p for p in MATCHER_CATALOG.values() if p.name.casefold() == folded), None)
    if policy is None:
        raise UnknownMatcherError(name)
    return policy


@dataclass
class ResourceRequest:
    """Minimum amount of each resource type a subtree must hold."""
    amounts: dict[str, int] = field(default_factory=dict)

    def satisfied_by(self, counts: Mapping[str, int]) -> bool:
        return all(counts.get(rtype, 0) >= need for rtype, need in self.amounts.items())


@dataclass
class SubtreeMatch:
    """Annotation left on a vertex when the walk comes back up through it."""
    vertex_id: int
    counts: dict[str, int]
    satisfies: Optional[bool] = None


class Matcher(DFUVisitor):
    """Matcher configuration and default DFU visitor."""

    def __init__(
        self,
        registry: SubsystemRegistry,
        name: str = "",
        request: Optional[ResourceRequest] = None,
        skip_types: frozenset[str] = frozenset(),
        deadline_seconds: Optional[float] = None,
    ) -> None:
        """Initialize an empty matcher.

        Args:
            registry: Subsystems of the graph this matcher will walk.
            name: Policy name.
            request: Resource amounts a subtree must hold to be marked as
                satisfying; None disables the check.
            skip_types: Resource types treated as dead ends.
            deadline_seconds: Abort a walk once it has run this long.
        """
        self._registry = registry
        self._name = name
        self._pairs: list[MatcherStep] = []
        self._filters: dict[str, set[str]] = {}
        self.request = request
        self.skip_types = frozenset(skip_types)
        self.deadline_seconds = deadline_seconds
        self._walk_started: Optional[float] = None

    # -- configuration ---------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    def set_name(self, name: str) -> None:
        self._name = name

    def add_subsystem(self, subsystem: str, relation_filter: str = WILDCARD) -> None:
        """Activate a subsystem under a relation filter.

        Pairs added before a failing call stay active.

        Raises:
            UnknownSubsystemError: If the graph has no such subsystem.
        """
        if subsystem not in self._registry:
            logger.warning(f"Matcher {self._name}: subsystem {subsystem} does not exist")
            raise UnknownSubsystemError(subsystem, self.active_subsystems())
        pair = (subsystem, relation_filter)
        if pair in self._pairs:
            return
        self._pairs.append(pair)
        self._filters.setdefault(subsystem, set()).add(relation_filter)

    def active_subsystems(self) -> tuple[MatcherStep, ...]:
        """The (subsystem, filter) pairs configured so far, in order."""
        return tuple(self._pairs)

    def subsystems(self) -> tuple[str, ...]:
        """Distinct active subsystem names, in activation order."""
        return tuple(self._filters)

    def clone(self) -> Matcher:
        """Copy with the same configuration and its own walk state."""
        other = Matcher(self._registry, self._name, self.request, self.skip_types, self.deadline_seconds)
        other._pairs = list(self._pairs)
        other._filters = {subsystem: set(kinds) for subsystem, kinds in self._filters.items()}
        return other

    def matches_vertex(self, member_of: Mapping[str, str]) -> bool:
        return any(subsystem in member_of for subsystem in self._filters)

    def matches_edge(self, member_of: Mapping[str, str]) -> bool:
        for subsystem, relation in member_of.items():
            filters = self._filters.get(subsystem)
            if filters and (WILDCARD in filters or relation in filters):
                return True
        return False

    # -- DFU hooks -------------------------------------------------------

    def begin_walk(self) -> None:
        self._walk_started = time.perf_counter()

    def pre_down(self, vertex: ResourcePool, depth: int) -> VisitOutcome:
        if (
            self.deadline_seconds is not None
            and self._walk_started is not None
            and time.perf_counter() - self._walk_started > self.deadline_seconds
        ):
            logger.warning(f"Matcher {self._name}: deadline of {self.deadline_seconds}s exceeded")
            return VisitOutcome.ABORT
        if vertex.type in self.skip_types:
            return VisitOutcome.SKIP_SUBTREE
        return VisitOutcome.CONTINUE

    def pre_up(self, vertex: ResourcePool, child_results: list) -> SubtreeMatch:
        counts = {vertex.type: vertex.size}
        for child in child_results:
            for rtype, amount in child.counts.items():
                counts[rtype] = counts.get(rtype, 0) + amount
        satisfies = self.request.satisfied_by(counts) if self.request is not None else None
        return SubtreeMatch(vertex.id, counts, satisfies)

    def __repr__(self) -> str:
        return f"Matcher(name={self._name!r}, subsystems={self._pairs})"


def configure_matcher(
    registry: SubsystemRegistry,
    name: str,
    **options,
) -> Matcher:
    """Create a matcher for a catalog policy.

    Args:
        registry: Subsystems of the target graph.
        name: Policy name (case-insensitive).
        **options: Forwarded to Matcher (request, skip_types, deadline_seconds).

    Raises:
        UnknownMatcherError: If the policy is not in the catalog.
        UnknownSubsystemError: If a step names a missing subsystem; the
            steps applied before it are available on the error.
    """
    policy = lookup_policy(name)
    matcher = Matcher(registry, policy.name, **options)
    for subsystem, relation_filter in policy.steps:
        matcher.add_subsystem(subsystem, relation_filter)
    logger.info(f"Loaded matcher {policy.name} with subsystems {list(matcher.active_subsystems())}")
    return matcher
