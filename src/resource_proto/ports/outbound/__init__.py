"""Outbound ports - interfaces for collaborators the core hands results to."""

from resource_proto.ports.outbound.exporter import Exporter, GraphFormat, GraphSource

__all__ = [
    "Exporter",
    "GraphFormat",
    "GraphSource",
]
