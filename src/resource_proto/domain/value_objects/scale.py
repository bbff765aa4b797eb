"""Scale tiers of the predefined test resource graphs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ScaleTier(Enum):
    """Size of the generated test resource graph."""
    MINI = "mini"
    SMALL = "small"
    MEDIUM = "medium"
    MEDPLUS = "medplus"
    LARGE = "large"
    LARGEST = "largest"

    @classmethod
    def parse(cls, value: str) -> ScaleTier:
        """Parse a tier name case-insensitively.

        Raises:
            ValueError: If the name is not a known tier.
        """
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(t.value for t in cls)
            raise ValueError(f"unknown scale '{value}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class TierShape:
    """Fan-out of each level of the test topology."""
    racks: int
    nodes_per_rack: int
    sockets_per_node: int
    cores_per_socket: int
    io_routers: int
    memory_gb_per_socket: int = 64

    @property
    def node_count(self) -> int:
        return self.racks * self.nodes_per_rack

    @property
    def core_count(self) -> int:
        return self.node_count * self.sockets_per_node * self.cores_per_socket


TIER_SHAPES: dict[ScaleTier, TierShape] = {
    ScaleTier.MINI: TierShape(racks=1, nodes_per_rack=2, sockets_per_node=2, cores_per_socket=4, io_routers=1),
    ScaleTier.SMALL: TierShape(racks=2, nodes_per_rack=8, sockets_per_node=2, cores_per_socket=8, io_routers=2),
    ScaleTier.MEDIUM: TierShape(racks=4, nodes_per_rack=16, sockets_per_node=2, cores_per_socket=12, io_routers=4),
    ScaleTier.MEDPLUS: TierShape(racks=8, nodes_per_rack=32, sockets_per_node=2, cores_per_socket=16, io_routers=4),
    ScaleTier.LARGE: TierShape(racks=12, nodes_per_rack=48, sockets_per_node=2, cores_per_socket=18, io_routers=8),
    ScaleTier.LARGEST: TierShape(racks=16, nodes_per_rack=64, sockets_per_node=2, cores_per_socket=18, io_routers=8),
}
