"""Export port: serializing a graph source to a visualization format."""

from __future__ import annotations

from abc import abstractmethod
from enum import Enum
from typing import Iterable, Protocol

from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation


class GraphFormat(Enum):
    """Supported output formats and their file extensions."""
    DOT = "dot"
    GRAPHML = "graphml"
    CYPHER = "cypher"

    @property
    def extension(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> GraphFormat:
        """Parse a format name case-insensitively.

        Raises:
            ValueError: If the name is not a known format.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise ValueError(f"unknown graph format '{value}' (expected one of: {valid})") from None


class GraphSource(Protocol):
    """Anything exposing a named set of vertices and edges.

    Both FilteredView and TraversalResult satisfy it.
    """

    @property
    def name(self) -> str:
        ...

    def vertices(self) -> Iterable[ResourcePool]:
        ...

    def edges(self) -> Iterable[ResourceRelation]:
        ...


class Exporter(Protocol):
    """Serializes a graph source to text in one format."""

    @property
    @abstractmethod
    def format(self) -> GraphFormat:
        """Format this exporter writes."""
        ...

    @abstractmethod
    def export(self, source: GraphSource) -> str:
        """Serialize the source.

        Raises:
            UnsupportedFormatError: If the format has no implementation yet.
            ExportError: If serialization fails.
        """
        ...
