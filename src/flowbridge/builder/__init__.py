"""Graph building and XscpData document encoding."""

from flowbridge.builder.document import DOCUMENT_TYPE, dumps, from_document, loads, to_document
from flowbridge.builder.graph_builder import BuildResult, build_graph, node_kind_for

__all__ = [
    "BuildResult",
    "build_graph",
    "node_kind_for",
    "DOCUMENT_TYPE",
    "to_document",
    "from_document",
    "dumps",
    "loads",
]
