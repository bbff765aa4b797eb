"""Error taxonomy of the resource prototype.

None of these errors is transient: each reports a structural fault in a
specification, a matcher configuration or the graph itself, so callers
are expected to report them rather than retry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from resource_proto.domain.services.traverser import TraversalResult


class ResourceProtoError(Exception):
    """Base class for all resource prototype errors."""
    pass


class ValidationError(ResourceProtoError):
    """A resource specification is malformed or inconsistent.

    Raised by the graph builder before any vertex is materialized; no
    partial graph is ever returned.
    """

    def __init__(self, message: str, problems: Optional[list[str]] = None) -> None:
        self.problems = problems or [message]
        super().__init__(message)


class UnknownSubsystemError(ResourceProtoError):
    """A matcher step names a subsystem the graph does not have.

    ``active`` holds the (subsystem, filter) pairs that were configured
    before the failing step; they stay valid.
    """

    def __init__(self, subsystem: str, active: tuple[tuple[str, str], ...] = ()) -> None:
        self.subsystem = subsystem
        self.active = active
        super().__init__(f"unknown subsystem: {subsystem}")


class UnknownMatcherError(ResourceProtoError):
    """A matcher policy name is not in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown matcher: {name}")


class CycleDetectedError(ResourceProtoError):
    """A vertex was reached again while still on the current descent path."""

    def __init__(self, vertex_id: int, partial: Optional[TraversalResult] = None) -> None:
        self.vertex_id = vertex_id
        self.partial = partial
        super().__init__(f"cycle detected at vertex {vertex_id}")


class ExportError(ResourceProtoError):
    """Serializing a graph source failed."""
    pass


class UnsupportedFormatError(ExportError):
    """The requested export format has no implementation yet."""

    def __init__(self, format_name: str) -> None:
        self.format_name = format_name
        super().__init__(f"graph format is not yet implemented: {format_name}")
