"""Domain entities for the resource prototype.

Entities represent the objects the matcher reasons about:
- ResourcePool / ResourceRelation: vertices and edges of the graph
- ResourceGraph / SubsystemRegistry: the multi-subsystem graph
- SubsystemSpec and friends: declarative specifications of subsystems
"""

from resource_proto.domain.entities.resource_graph import (
    ResourceGraph,
    SubsystemRegistry,
)
from resource_proto.domain.entities.resource_pool import (
    ResourcePool,
    ResourceRelation,
)
from resource_proto.domain.entities.resource_spec import (
    RESOURCE_TYPES,
    AttachRule,
    OverlayRule,
    ResourceType,
    SpecUnit,
    SubsystemSpec,
)

__all__ = [
    # Graph
    "ResourceGraph",
    "SubsystemRegistry",
    # Pools and relations
    "ResourcePool",
    "ResourceRelation",
    # Specifications
    "RESOURCE_TYPES",
    "AttachRule",
    "OverlayRule",
    "ResourceType",
    "SpecUnit",
    "SubsystemSpec",
]
