"""Resource pools (vertices) and resource relations (edges).

Both are created by the graph builder and never change afterwards; the
subsystem membership maps are exposed read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from resource_proto.domain.value_objects.identifiers import EdgeId, VertexId


def _freeze(mapping: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ResourcePool:
    """A pool of identical resources, e.g. one node or one core."""
    id: VertexId
    type: str
    basename: str
    name: str
    size: int = 1
    unit: str = ""
    member_of: Mapping[str, str] = field(default_factory=lambda: _freeze({}))

    def __post_init__(self) -> None:
        if not isinstance(self.member_of, MappingProxyType):
            object.__setattr__(self, "member_of", _freeze(self.member_of))

    def in_subsystem(self, subsystem: str) -> bool:
        """Check whether this pool participates in a subsystem."""
        return subsystem in self.member_of


@dataclass(frozen=True)
class ResourceRelation:
    """A directed relation between two resource pools.

    ``member_of`` maps each subsystem the edge belongs to onto the
    relation kind it carries there; ``relation`` is the kind it was
    created with. ``companion`` is the edge carrying the same link in the
    opposite direction, when the subsystem records both directions.
    """
    id: EdgeId
    source: VertexId
    target: VertexId
    relation: str
    member_of: Mapping[str, str] = field(default_factory=lambda: _freeze({}))
    companion: Optional[EdgeId] = None

    def __post_init__(self) -> None:
        if not isinstance(self.member_of, MappingProxyType):
            object.__setattr__(self, "member_of", _freeze(self.member_of))

    def relation_in(self, subsystem: str) -> str | None:
        """Relation kind this edge carries in a subsystem, if any."""
        return self.member_of.get(subsystem)
