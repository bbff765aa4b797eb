"""Unit tests for the resource graph, builder, matcher and projector."""

import pytest

from resource_proto.domain.entities.resource_graph import ResourceGraph, SubsystemRegistry
from resource_proto.domain.entities.resource_pool import ResourcePool, ResourceRelation
from resource_proto.domain.entities.resource_spec import (
    AttachRule,
    OverlayRule,
    SpecUnit,
    SubsystemSpec,
)
from resource_proto.domain.errors import (
    UnknownMatcherError,
    UnknownSubsystemError,
    ValidationError,
)
from resource_proto.domain.services.graph_builder import ResourceGraphBuilder, build_graph
from resource_proto.domain.services.matcher import (
    MATCHER_CATALOG,
    Matcher,
    configure_matcher,
    lookup_policy,
)
from resource_proto.domain.services.projector import project
from resource_proto.domain.services.spec_catalog import build_scale_spec
from resource_proto.domain.value_objects.identifiers import (
    WILDCARD,
    EdgeId,
    VertexId,
    create_vertex_name,
)
from resource_proto.domain.value_objects.scale import TIER_SHAPES, ScaleTier


def containment(root: SpecUnit) -> SubsystemSpec:
    return SubsystemSpec(subsystem="containment", relation="contains", root=root)


def reachable_in(graph: ResourceGraph, subsystem: str) -> set[int]:
    """Vertices reachable from a subsystem's roots over that subsystem's edges."""
    seen = set(graph.subsystem_roots[subsystem])
    stack = list(seen)
    while stack:
        for eid in graph.out_edges(stack.pop()):
            edge = graph.edge(eid)
            if subsystem in edge.member_of and edge.target not in seen:
                seen.add(edge.target)
                stack.append(edge.target)
    return seen


class TestIdentifiers:
    """Test identifier helpers and scale tiers."""

    def test_create_vertex_name(self):
        """Test vertex names are basename plus per-type ordinal."""
        assert create_vertex_name("node", 0) == "node0"
        assert create_vertex_name("coreswitch", 12) == "coreswitch12"

    def test_scale_parse(self):
        """Test tier names parse case-insensitively."""
        assert ScaleTier.parse("MedPlus") is ScaleTier.MEDPLUS
        assert ScaleTier.parse(" largest ") is ScaleTier.LARGEST

    def test_scale_parse_unknown(self):
        """Test unknown tier names are rejected."""
        with pytest.raises(ValueError, match="unknown scale"):
            ScaleTier.parse("huge")

    def test_tier_shapes_grow(self):
        """Test every tier is at least as large as the one before."""
        counts = [TIER_SHAPES[tier].core_count for tier in ScaleTier]
        assert counts == sorted(counts)
        assert TIER_SHAPES[ScaleTier.MINI].node_count == 2


@pytest.mark.unit
class TestGraphBuilder:
    """Test building resource graphs from specifications."""

    def test_two_node_graph(self, two_node_graph):
        """Test vertex and edge counts of a simple containment tree."""
        assert two_node_graph.num_vertices == 11
        assert two_node_graph.num_edges == 10
        assert two_node_graph.count_by_type() == {"cluster": 1, "node": 2, "core": 8}

    def test_ids_follow_preorder(self, two_node_graph):
        """Test ids are assigned in depth-first pre-order of creation."""
        names = [v.name for v in two_node_graph.vertices()]
        assert names == [
            "cluster0", "node0", "core0", "core1", "core2", "core3",
            "node1", "core4", "core5", "core6", "core7",
        ]

    def test_roots_and_membership(self, two_node_graph):
        """Test roots per subsystem and membership tagging."""
        assert two_node_graph.subsystem_roots["containment"] == (0,)
        assert two_node_graph.roots == (0,)
        assert all(v.in_subsystem("containment") for v in two_node_graph.vertices())
        assert all(e.relation_in("containment") == "contains" for e in two_node_graph.edges())

    def test_out_edges_keep_insertion_order(self, two_node_graph):
        """Test children are listed in creation order."""
        node0 = two_node_graph.find("node0")
        targets = [two_node_graph.edge(e).target for e in two_node_graph.out_edges(node0.id)]
        assert targets == [2, 3, 4, 5]

    def test_mini_graph_counts(self, mini_graph):
        """Test the five-subsystem graph at mini scale."""
        assert mini_graph.num_vertices == 34
        assert mini_graph.num_edges == 42
        assert mini_graph.registry.names() == ("containment", "ibnet", "ibnetbw", "pfs1bw", "power")

    def test_mini_graph_roots(self, mini_graph):
        """Test roots of tree, attached and overlay subsystems."""
        roots = mini_graph.subsystem_roots
        assert roots["containment"] == (mini_graph.find("cluster0").id,)
        assert roots["ibnet"] == (mini_graph.find("coreswitch0").id,)
        assert roots["ibnetbw"] == (mini_graph.find("coreswitch0").id,)
        assert roots["pfs1bw"] == (mini_graph.find("pfs0").id,)
        assert roots["power"] == (mini_graph.find("powerpanel0").id,)

    def test_reverse_relations(self, mini_graph):
        """Test companion edges point back up the hierarchy."""
        down = mini_graph.edges_of("ibnet", "connected_down")
        up = mini_graph.edges_of("ibnet", "connected_up")
        assert len(down) == len(up) == 3
        assert {(e.source, e.target) for e in up} == {(e.target, e.source) for e in down}

    def test_reverse_relations_are_paired(self, mini_graph):
        """Test each companion edge points at the link it reverses."""
        for subsystem, forward_kind in (("ibnet", "connected_down"), ("power", "supplies")):
            for edge in mini_graph.edges_of(subsystem, forward_kind):
                back = mini_graph.edge(edge.companion)
                assert back.companion == edge.id
                assert (back.source, back.target) == (edge.target, edge.source)
        assert all(e.companion is None for e in mini_graph.edges_of("containment"))
        assert all(e.companion is None for e in mini_graph.edges_of("pfs1bw"))

    @pytest.mark.parametrize("tier", [t.value for t in ScaleTier] + ["two-node"])
    def test_members_reachable_from_subsystem_roots(self, tier, two_node_spec):
        """Test every vertex is reachable from the roots of each subsystem it joins."""
        specs = two_node_spec if tier == "two-node" else build_scale_spec(ScaleTier.parse(tier))
        graph = build_graph(specs)
        assert graph.roots
        for subsystem in graph.registry:
            members = {v.id for v in graph.vertices_of(subsystem)}
            assert members <= reachable_in(graph, subsystem), subsystem

    def test_overlay_shares_edges(self, mini_graph):
        """Test an overlay subsystem reuses the base edges."""
        overlay = mini_graph.edges_of("ibnetbw")
        assert [e.id for e in overlay] == [e.id for e in mini_graph.edges_of("ibnet", "connected_down")]
        assert all(e.member_of["ibnetbw"] == "flows_down" for e in overlay)
        assert mini_graph.registry.relations("ibnetbw") == ("flows_down",)

    def test_attached_nodes_join_subsystem(self, mini_graph):
        """Test attached vertices keep their original memberships."""
        node = mini_graph.find("node1")
        assert set(node.member_of) == {"containment", "ibnet", "ibnetbw", "pfs1bw", "power"}
        assert not mini_graph.find("core0").in_subsystem("ibnet")

    def test_attach_block_distribution(self):
        """Test targets are spread over anchors in contiguous blocks."""
        graph = build_graph([
            containment(SpecUnit("cluster", children=(SpecUnit("node", count=5),))),
            SubsystemSpec(
                subsystem="net",
                relation="links",
                root=SpecUnit("edge_switch", count=2),
                attach=(AttachRule(anchor_type="edge_switch", target_type="node"),),
            ),
        ])
        switches = {v.id: v.name for v in graph.vertices_of("net") if v.type == "edge_switch"}
        placement = [
            (switches[e.source], graph.vertex(e.target).name) for e in graph.edges_of("net")
        ]
        assert placement == [
            ("edgeswitch0", "node0"), ("edgeswitch0", "node1"), ("edgeswitch0", "node2"),
            ("edgeswitch1", "node3"), ("edgeswitch1", "node4"),
        ]
        assert graph.subsystem_roots["net"] == tuple(sorted(switches))

    def test_memory_sizes(self, mini_graph):
        """Test pool sizes and units come from the specification."""
        memory = mini_graph.find("memory0")
        assert memory.size == 64
        assert memory.unit == "GB"


@pytest.mark.unit
class TestSpecValidation:
    """Test that malformed specifications never produce a graph."""

    def test_empty_specification(self):
        with pytest.raises(ValidationError, match="at least one"):
            build_graph([])

    def test_undefined_resource_type(self):
        with pytest.raises(ValidationError) as exc_info:
            build_graph([containment(SpecUnit("cluster", children=(SpecUnit("widget"),)))])
        assert "undefined resource type 'widget'" in exc_info.value.problems[0]

    def test_non_positive_count(self):
        with pytest.raises(ValidationError, match="positive integer"):
            build_graph([containment(SpecUnit("cluster", children=(SpecUnit("node", count=0),)))])

    def test_negative_size(self):
        with pytest.raises(ValidationError, match="non-negative"):
            build_graph([containment(SpecUnit("memory", size=-1))])

    def test_duplicate_subsystem(self):
        spec = containment(SpecUnit("cluster"))
        with pytest.raises(ValidationError, match="defined twice"):
            build_graph([spec, spec])

    def test_attach_target_must_exist_earlier(self):
        net = SubsystemSpec(
            subsystem="net",
            relation="links",
            root=SpecUnit("edge_switch"),
            attach=(AttachRule(anchor_type="edge_switch", target_type="node"),),
        )
        with pytest.raises(ValidationError, match="earlier spec"):
            build_graph([net, containment(SpecUnit("cluster", children=(SpecUnit("node"),)))])

    def test_attach_anchor_must_be_own_type(self):
        net = SubsystemSpec(
            subsystem="net",
            relation="links",
            root=SpecUnit("edge_switch"),
            attach=(AttachRule(anchor_type="rack", target_type="node"),),
        )
        with pytest.raises(ValidationError, match="anchor type 'rack'"):
            build_graph([containment(SpecUnit("cluster", children=(SpecUnit("node"),))), net])

    def test_overlay_base_must_exist(self):
        overlay = SubsystemSpec(
            subsystem="bw", relation="flows", overlay=OverlayRule(base="ibnet", base_relation="connected_down")
        )
        with pytest.raises(ValidationError, match="not defined earlier"):
            build_graph([containment(SpecUnit("cluster")), overlay])

    def test_all_problems_reported(self):
        """Test validation collects every problem rather than the first."""
        builder = ResourceGraphBuilder()
        problems = builder.validate([
            SubsystemSpec(subsystem="", relation="", root=SpecUnit("widget", count=0)),
        ])
        assert len(problems) == 4

    def test_valid_specification_has_no_problems(self, two_node_spec):
        assert ResourceGraphBuilder().validate(two_node_spec) == []


@pytest.mark.unit
class TestResourceGraph:
    """Test direct graph assembly and the subsystem registry."""

    def test_registry_order_and_relations(self):
        registry = SubsystemRegistry()
        assert registry.register("containment", "contains") is True
        assert registry.register("ibnet", "connected_down") is True
        assert registry.register("ibnet", "connected_up") is False
        assert list(registry) == ["containment", "ibnet"]
        assert registry.relations("ibnet") == ("connected_down", "connected_up")
        assert registry.relations("power") == ()

    def test_registry_frozen_with_graph(self, two_node_graph):
        with pytest.raises(RuntimeError):
            two_node_graph.registry.register("power")

    def test_pool_membership_read_only(self, two_node_graph):
        with pytest.raises(TypeError):
            two_node_graph.vertex(0).member_of["power"] = "*"

    def test_rejects_dangling_edge(self):
        vertices = [ResourcePool(VertexId(0), "node", "node", "node0", member_of={"x": "*"})]
        edges = [ResourceRelation(EdgeId(0), VertexId(0), VertexId(3), "links", {"x": "links"})]
        with pytest.raises(ValueError, match="outside the graph"):
            ResourceGraph(vertices, edges, {"x": [VertexId(0)]})

    def test_derives_registry(self):
        vertices = [
            ResourcePool(VertexId(0), "node", "node", "node0", member_of={"x": "*"}),
            ResourcePool(VertexId(1), "node", "node", "node1", member_of={"x": "*"}),
        ]
        edges = [ResourceRelation(EdgeId(0), VertexId(0), VertexId(1), "links", {"x": "links"})]
        graph = ResourceGraph(vertices, edges, {"x": [VertexId(0)]})
        assert graph.registry.names() == ("x",)
        assert 1 in graph
        assert 2 not in graph


@pytest.mark.unit
class TestMatcher:
    """Test matcher configuration and the policy catalog."""

    def test_catalog_names(self):
        assert list(MATCHER_CATALOG) == [
            "CA", "IBA", "IBBA", "PFS1BA", "PA", "C+IBA",
            "C+PFS1BA", "C+PA", "IB+IBBA", "C+P+IBA", "ALL",
            "containment-only", "interconnect-aware", "bandwidth-aware", "power-aware",
        ]

    def test_lookup_ignores_case(self):
        assert lookup_policy("c+pa").name == "C+PA"
        assert lookup_policy("Interconnect-Aware").name == "interconnect-aware"

    @pytest.mark.parametrize(
        "name, same_as",
        [("containment-only", "CA"), ("interconnect-aware", "IBA"), ("power-aware", "PA")],
    )
    def test_descriptive_names_share_steps(self, name, same_as):
        assert MATCHER_CATALOG[name].steps == MATCHER_CATALOG[same_as].steps

    def test_bandwidth_aware_steps(self):
        assert MATCHER_CATALOG["bandwidth-aware"].steps == (
            MATCHER_CATALOG["IBBA"].steps + MATCHER_CATALOG["PFS1BA"].steps
        )

    def test_unknown_matcher(self, mini_graph):
        with pytest.raises(UnknownMatcherError, match="unknown matcher: BOGUS"):
            configure_matcher(mini_graph.registry, "BOGUS")

    def test_add_subsystem(self, mini_graph):
        matcher = Matcher(mini_graph.registry)
        matcher.set_name("custom")
        matcher.add_subsystem("containment", "contains")
        matcher.add_subsystem("power")
        matcher.add_subsystem("containment", "contains")
        assert matcher.name == "custom"
        assert matcher.active_subsystems() == (("containment", "contains"), ("power", WILDCARD))
        assert matcher.subsystems() == ("containment", "power")

    def test_unknown_subsystem_keeps_partial_configuration(self, two_node_graph):
        matcher = Matcher(two_node_graph.registry, "C+IBA")
        matcher.add_subsystem("containment", "contains")
        with pytest.raises(UnknownSubsystemError) as exc_info:
            matcher.add_subsystem("ibnet", "connected_up")
        assert exc_info.value.subsystem == "ibnet"
        assert exc_info.value.active == (("containment", "contains"),)
        assert matcher.active_subsystems() == (("containment", "contains"),)

    def test_catalog_policy_on_partial_graph(self, two_node_graph):
        with pytest.raises(UnknownSubsystemError) as exc_info:
            configure_matcher(two_node_graph.registry, "C+IBA")
        assert exc_info.value.active == (("containment", "contains"),)

    def test_interconnect_aware_without_interconnect(self, two_node_graph):
        with pytest.raises(UnknownSubsystemError) as exc_info:
            configure_matcher(two_node_graph.registry, "interconnect-aware")
        assert exc_info.value.subsystem == "ibnet"
        assert exc_info.value.active == ()

    @pytest.mark.parametrize("name", list(MATCHER_CATALOG))
    def test_every_policy_configures_on_scale_graph(self, mini_graph, name):
        matcher = configure_matcher(mini_graph.registry, name)
        assert matcher.active_subsystems() == MATCHER_CATALOG[name].steps

    def test_edge_filter(self, mini_graph):
        matcher = configure_matcher(mini_graph.registry, "IB+IBBA")
        assert matcher.matches_edge({"ibnet": "connected_down"})
        assert not matcher.matches_edge({"ibnet": "connected_up"})
        assert not matcher.matches_edge({"containment": "contains"})
        assert matcher.matches_vertex({"ibnet": "*", "containment": "*"})

    def test_wildcard_filter_accepts_both_directions(self, mini_graph):
        matcher = configure_matcher(mini_graph.registry, "IBA")
        assert matcher.matches_edge({"ibnet": "connected_down"})
        assert matcher.matches_edge({"ibnet": "connected_up"})

    def test_clone_is_independent(self, mini_graph):
        matcher = configure_matcher(mini_graph.registry, "CA", deadline_seconds=5.0)
        copy = matcher.clone()
        copy.add_subsystem("power")
        assert copy.deadline_seconds == 5.0
        assert matcher.active_subsystems() == (("containment", "contains"),)


@pytest.mark.unit
class TestProjector:
    """Test filtered views."""

    def test_containment_view(self, mini_graph):
        view = project(mini_graph, configure_matcher(mini_graph.registry, "CA"))
        assert view.name == "CA"
        assert view.num_vertices == 28
        assert view.num_edges == 27
        assert view.roots() == (0,)

    @pytest.mark.parametrize(
        "name, vertices, edges",
        [
            ("IBA", 4, 6),
            ("IBBA", 4, 3),
            ("PFS1BA", 4, 3),
            ("PA", 4, 6),
            ("C+IBA", 30, 30),
            ("C+PFS1BA", 30, 30),
            ("C+PA", 30, 30),
            ("IB+IBBA", 4, 3),
            ("C+P+IBA", 32, 33),
            ("ALL", 34, 42),
            ("containment-only", 28, 27),
            ("interconnect-aware", 4, 6),
            ("bandwidth-aware", 6, 6),
            ("power-aware", 4, 6),
        ],
    )
    def test_view_sizes(self, mini_graph, name, vertices, edges):
        view = project(mini_graph, configure_matcher(mini_graph.registry, name))
        assert (view.num_vertices, view.num_edges) == (vertices, edges)

    def test_edges_have_both_endpoints(self, mini_graph):
        view = project(mini_graph, configure_matcher(mini_graph.registry, "C+PA"))
        for edge in view.edges():
            assert view.has_vertex(edge.source) and view.has_vertex(edge.target)

    def test_projection_is_repeatable(self, mini_graph):
        matcher = configure_matcher(mini_graph.registry, "ALL")
        first, second = project(mini_graph, matcher), project(mini_graph, matcher)
        assert first.vertex_ids == second.vertex_ids
        assert list(first.edges()) == list(second.edges())

    def test_adding_subsystems_only_grows_view(self, mini_graph):
        matcher = Matcher(mini_graph.registry, "growing")
        matcher.add_subsystem("containment", "contains")
        smaller = project(mini_graph, matcher)
        matcher.add_subsystem("power", "drawn")
        larger = project(mini_graph, matcher)
        assert smaller.vertex_ids <= larger.vertex_ids
        assert smaller.edge_ids <= larger.edge_ids

    def test_projection_leaves_graph_untouched(self, mini_graph):
        before = (mini_graph.num_vertices, mini_graph.num_edges)
        project(mini_graph, configure_matcher(mini_graph.registry, "PA"))
        assert (mini_graph.num_vertices, mini_graph.num_edges) == before


def test_expanded_count():
    """Test the number of vertices a unit tree produces."""
    unit = SpecUnit("rack", count=2, children=(SpecUnit("node", count=3, children=(SpecUnit("core", count=4),)),))
    assert unit.expanded_count() == 2 * (1 + 3 * (1 + 4))
