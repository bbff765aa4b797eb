"""Predefined test resource specifications.

Each scale tier yields five subsystems over one cluster:

- containment: cluster -> rack -> node -> socket -> {core, memory}
- ibnet: core switch -> edge switch (one per rack) -> node, with
  connected_up companions pointing back toward the core switch
- ibnetbw: the connected_down links of ibnet, viewed as bandwidth flow
- pfs1bw: parallel file system -> I/O routers -> node
- power: power panel -> PDU (one per rack) -> node, with drawn
  companions pointing back toward the panel
"""

from __future__ import annotations

from resource_proto.domain.entities.resource_spec import (
    AttachRule,
    OverlayRule,
    SpecUnit,
    SubsystemSpec,
)
from resource_proto.domain.value_objects.scale import TIER_SHAPES, ScaleTier, TierShape

CONTAINMENT = "containment"
IBNET = "ibnet"
IBNETBW = "ibnetbw"
PFS1BW = "pfs1bw"
POWER = "power"

PFS_BANDWIDTH_GBPS = 1000
IO_ROUTER_BANDWIDTH_GBPS = 100
PDU_CAPACITY_KW = 40


def containment_spec(shape: TierShape) -> SubsystemSpec:
    socket = SpecUnit(
        "socket",
        count=shape.sockets_per_node,
        children=(
            SpecUnit("core", count=shape.cores_per_socket),
            SpecUnit("memory", count=1, size=shape.memory_gb_per_socket),
        ),
    )
    node = SpecUnit("node", count=shape.nodes_per_rack, children=(socket,))
    rack = SpecUnit("rack", count=shape.racks, children=(node,))
    return SubsystemSpec(
        subsystem=CONTAINMENT,
        relation="contains",
        root=SpecUnit("cluster", children=(rack,)),
    )


def ibnet_spec(shape: TierShape) -> SubsystemSpec:
    return SubsystemSpec(
        subsystem=IBNET,
        relation="connected_down",
        reverse_relation="connected_up",
        root=SpecUnit("core_switch", children=(SpecUnit("edge_switch", count=shape.racks),)),
        attach=(AttachRule(anchor_type="edge_switch", target_type="node"),),
    )


def ibnetbw_spec() -> SubsystemSpec:
    return SubsystemSpec(
        subsystem=IBNETBW,
        relation="flows_down",
        overlay=OverlayRule(base=IBNET, base_relation="connected_down"),
    )


def pfs1bw_spec(shape: TierShape) -> SubsystemSpec:
    routers = SpecUnit("io_router", count=shape.io_routers, size=IO_ROUTER_BANDWIDTH_GBPS)
    return SubsystemSpec(
        subsystem=PFS1BW,
        relation="flows_up",
        root=SpecUnit("pfs", size=PFS_BANDWIDTH_GBPS, basename="pfs", children=(routers,)),
        attach=(AttachRule(anchor_type="io_router", target_type="node"),),
    )


def power_spec(shape: TierShape) -> SubsystemSpec:
    pdus = SpecUnit("pdu", count=shape.racks, size=PDU_CAPACITY_KW)
    return SubsystemSpec(
        subsystem=POWER,
        relation="supplies",
        reverse_relation="drawn",
        root=SpecUnit("power_panel", size=PDU_CAPACITY_KW * shape.racks, children=(pdus,)),
        attach=(AttachRule(anchor_type="pdu", target_type="node"),),
    )


def build_scale_spec(tier: ScaleTier) -> list[SubsystemSpec]:
    """Specs of the five-subsystem test graph for a scale tier."""
    shape = TIER_SHAPES[tier]
    return [
        containment_spec(shape),
        ibnet_spec(shape),
        ibnetbw_spec(),
        pfs1bw_spec(shape),
        power_spec(shape),
    ]
