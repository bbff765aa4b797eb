"""Domain services for the resource prototype.

Services implement the core workflow:
- ResourceGraphBuilder: specification -> multi-subsystem graph
- Matcher: subsystem selection policy and default DFU visitor
- project: matcher -> filtered view
- DFUTraverser: depth-first-and-up walks over a filtered view
"""

from resource_proto.domain.services.graph_builder import (
    ResourceGraphBuilder,
    build_graph,
)
from resource_proto.domain.services.matcher import (
    MATCHER_CATALOG,
    Matcher,
    MatcherPolicy,
    ResourceRequest,
    SubtreeMatch,
    configure_matcher,
    lookup_policy,
)
from resource_proto.domain.services.projector import (
    FilteredView,
    project,
)
from resource_proto.domain.services.spec_catalog import build_scale_spec
from resource_proto.domain.services.traverser import (
    DFUTraverser,
    DFUVisitor,
    TraversalResult,
    VisitOutcome,
    traverse,
)

__all__ = [
    "ResourceGraphBuilder",
    "build_graph",
    "MATCHER_CATALOG",
    "Matcher",
    "MatcherPolicy",
    "ResourceRequest",
    "SubtreeMatch",
    "configure_matcher",
    "lookup_policy",
    "FilteredView",
    "project",
    "build_scale_spec",
    "DFUTraverser",
    "DFUVisitor",
    "TraversalResult",
    "VisitOutcome",
    "traverse",
]
