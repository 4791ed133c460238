"""flowbridge model layer -- public type re-exports."""

from flowbridge.model.css import (
    BreakpointMatch,
    ClassIndexEntry,
    CSSRule,
    MediaFeature,
    MediaQuery,
    NativeRule,
    RuleSource,
    Stylesheet,
)
from flowbridge.model.diagnostic import Severity, ValidationIssue
from flowbridge.model.embed import ChunkPlan, EmbedChunk, EmbedKind, byte_size
from flowbridge.model.graph import (
    GraphIndex,
    GraphNode,
    GraphStyle,
    LinkData,
    NodeGraph,
    NodeKind,
)
from flowbridge.model.markup import MarkupTree, ParsedElement, TextLeaf
from flowbridge.model.report import (
    EmbedSizeSummary,
    RoutingStats,
    SafetyReport,
    Verdict,
)

__all__ = [
    # css
    "RuleSource",
    "CSSRule",
    "Stylesheet",
    "MediaFeature",
    "MediaQuery",
    "BreakpointMatch",
    "ClassIndexEntry",
    "NativeRule",
    # markup
    "ParsedElement",
    "TextLeaf",
    "MarkupTree",
    # graph
    "NodeKind",
    "LinkData",
    "GraphNode",
    "GraphStyle",
    "GraphIndex",
    "NodeGraph",
    # diagnostic
    "Severity",
    "ValidationIssue",
    # embed
    "EmbedKind",
    "EmbedChunk",
    "ChunkPlan",
    "byte_size",
    # report
    "Verdict",
    "RoutingStats",
    "EmbedSizeSummary",
    "SafetyReport",
]
