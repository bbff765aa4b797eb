"""Domain value objects for the resource prototype.

Value objects are immutable objects without identity: vertex and edge
ids, subsystem and relation names, and the scale tiers of test graphs.
"""

from resource_proto.domain.value_objects.identifiers import (
    MEMBER,
    WILDCARD,
    EdgeId,
    RelationKind,
    SubsystemName,
    VertexId,
    create_vertex_name,
)
from resource_proto.domain.value_objects.scale import (
    TIER_SHAPES,
    ScaleTier,
    TierShape,
)

__all__ = [
    "MEMBER",
    "WILDCARD",
    "EdgeId",
    "RelationKind",
    "SubsystemName",
    "VertexId",
    "create_vertex_name",
    "TIER_SHAPES",
    "ScaleTier",
    "TierShape",
]
