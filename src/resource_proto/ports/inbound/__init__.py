"""Inbound ports - interfaces offered by the resource prototype."""

from resource_proto.ports.inbound.api import ResourceMatchingAPI

__all__ = [
    "ResourceMatchingAPI",
]
