"""Graph exporters: DOT and GraphML text for filtered views and walks.

Each exporter consumes a GraphSource (a FilteredView or a
TraversalResult) and returns text; writing files is left to the caller.
Edge labels list every subsystem the edge belongs to with the relation
kind it carries there, e.g. ``containment:contains``.

Neo4j Cypher is declared as a format but not implemented yet.
"""

from __future__ import annotations

from typing import Mapping
from xml.etree import ElementTree

from resource_proto.domain.errors import UnsupportedFormatError
from resource_proto.ports.outbound.exporter import Exporter, GraphFormat, GraphSource


def _membership_label(member_of: Mapping[str, str]) -> str:
    return ",".join(f"{subsystem}:{relation}" for subsystem, relation in member_of.items())


def _dot_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DotExporter:
    """AT&T Graphviz DOT."""

    @property
    def format(self) -> GraphFormat:
        return GraphFormat.DOT

    def export(self, source: GraphSource) -> str:
        lines = [f"digraph {_dot_quote(source.name or 'resources')} {{"]
        for vertex in source.vertices():
            lines.append(f"{vertex.id}[label={_dot_quote(vertex.name)}];")
        for edge in source.edges():
            lines.append(f"{edge.source}->{edge.target} [label={_dot_quote(_membership_label(edge.member_of))}];")
        lines.append("}")
        return "\n".join(lines) + "\n"


class GraphMLExporter:
    """GraphML (XML) with name/type/size/subsystems on vertices and relations on edges."""

    NAMESPACE = "http://graphml.graphdrawing.org/xmlns"

    _KEYS = (
        ("v_name", "node", "name", "string"),
        ("v_type", "node", "type", "string"),
        ("v_size", "node", "size", "int"),
        ("v_subsystems", "node", "subsystems", "string"),
        ("e_relation", "edge", "relation", "string"),
        ("e_subsystems", "edge", "member_of", "string"),
    )

    @property
    def format(self) -> GraphFormat:
        return GraphFormat.GRAPHML

    def export(self, source: GraphSource) -> str:
        root = ElementTree.Element("graphml", xmlns=self.NAMESPACE)
        for key_id, domain, name, attr_type in self._KEYS:
            ElementTree.SubElement(
                root, "key", {"id": key_id, "for": domain, "attr.name": name, "attr.type": attr_type}
            )
        graph = ElementTree.SubElement(root, "graph", id=source.name or "resources", edgedefault="directed")

        for vertex in source.vertices():
            node = ElementTree.SubElement(graph, "node", id=f"n{vertex.id}")
            self._data(node, "v_name", vertex.name)
            self._data(node, "v_type", vertex.type)
            self._data(node, "v_size", str(vertex.size))
            self._data(node, "v_subsystems", ",".join(vertex.member_of))

        for edge in source.edges():
            element = ElementTree.SubElement(
                graph, "edge", id=f"e{edge.id}", source=f"n{edge.source}", target=f"n{edge.target}"
            )
            self._data(element, "e_relation", edge.relation)
            self._data(element, "e_subsystems", _membership_label(edge.member_of))

        ElementTree.indent(root)
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ElementTree.tostring(root, encoding="unicode") + "\n"

    @staticmethod
    def _data(parent: ElementTree.Element, key: str, value: str) -> None:
        ElementTree.SubElement(parent, "data", key=key).text = value


class CypherExporter:
    """Neo4j Cypher; not implemented yet."""

    @property
    def format(self) -> GraphFormat:
        return GraphFormat.CYPHER

    def export(self, source: GraphSource) -> str:
        raise UnsupportedFormatError(self.format.value)


_EXPORTERS: dict[GraphFormat, type] = {
    GraphFormat.DOT: DotExporter,
    GraphFormat.GRAPHML: GraphMLExporter,
    GraphFormat.CYPHER: CypherExporter,
}


def get_exporter(graph_format: GraphFormat | str) -> Exporter:
    """Create the exporter for a format.

    Raises:
        ValueError: If the format name is unknown.
    """
    if isinstance(graph_format, str):
        graph_format = GraphFormat.parse(graph_format)
    return _EXPORTERS[graph_format]()
