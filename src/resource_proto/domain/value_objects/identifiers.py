"""Resource-graph type-safe identifiers.

Vertex and edge ids are dense integers assigned in creation order, so
they double as indices into the graph's arenas.
"""

from __future__ import annotations

from typing import NewType

# Resource pool (vertex) identifier
VertexId = NewType("VertexId", int)

# Resource relation (edge) identifier
EdgeId = NewType("EdgeId", int)

# Subsystem (hierarchy) name, e.g. "containment", "ibnet"
SubsystemName = NewType("SubsystemName", str)

# Relation kind, e.g. "contains", "connected_up"
RelationKind = NewType("RelationKind", str)

# Relation filter matching any relation kind within a subsystem
WILDCARD = RelationKind("*")

# Marker stored on a vertex for each subsystem it belongs to
MEMBER = "*"


def create_vertex_name(basename: str, ordinal: int) -> str:
    """Create a vertex name from its basename and per-type ordinal."""
    return f"{basename}{ordinal}"
