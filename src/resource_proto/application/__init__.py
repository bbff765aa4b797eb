"""Application layer for the resource prototype.

Orchestrates domain services to provide high-level functionality.
"""

from resource_proto.application.coordinator import ResourceMatchingCoordinator

__all__ = [
    "ResourceMatchingCoordinator",
]
