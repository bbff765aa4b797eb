"""Inbound port interfaces for the resource prototype.

Inbound ports define what the core offers to its outer layers. The CLI
drives it today; a scheduler service would drive the same interface.
"""

from __future__ import annotations

from typing import Protocol

from resource_proto.domain.entities.resource_graph import ResourceGraph
from resource_proto.domain.services.matcher import Matcher
from resource_proto.domain.services.projector import FilteredView
from resource_proto.domain.services.traverser import TraversalResult


class ResourceMatchingAPI(Protocol):
    """Main API offered by the resource prototype."""

    @property
    def graph(self) -> ResourceGraph:
        """The resource graph every matcher works on."""
        ...

    def list_subsystems(self) -> list[str]:
        """List subsystems discovered while building the graph.

        Returns:
            Subsystem names in first-encounter order.
        """
        ...

    def configure_matcher(self, name: str) -> Matcher:
        """Configure a catalog matcher against the graph.

        Args:
            name: Policy name, e.g. "CA" or "C+PA".

        Returns:
            The configured matcher.
        """
        ...

    def get_view(self, name: str) -> FilteredView:
        """Get (projecting on first use) the filtered view of a matcher.

        Args:
            name: Policy name.

        Returns:
            The matcher's filtered view.
        """
        ...

    def run_matcher(self, name: str) -> TraversalResult:
        """Configure, project and walk the graph with a matcher.

        Args:
            name: Policy name.

        Returns:
            Result of the timed walk.
        """
        ...

    def export_view(self, name: str, format_name: str) -> str:
        """Serialize a matcher's filtered view.

        Args:
            name: Policy name.
            format_name: "dot", "graphml" or "cypher".

        Returns:
            The serialized graph text.
        """
        ...
