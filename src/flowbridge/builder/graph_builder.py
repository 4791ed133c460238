"""Graph builder: turn a normalized markup tree into nodes and styles."""

from __future__ import annotations

from dataclasses import dataclass, field

from flowbridge.config import BridgeConfig
from flowbridge.ids import IdGenerator
from flowbridge.markup.serializer import serialize
from flowbridge.model.css import ClassIndexEntry
from flowbridge.model.graph import GraphNode, GraphStyle, LinkData, NodeGraph, NodeKind
from flowbridge.model.markup import Child, MarkupTree, ParsedElement, TextLeaf
from flowbridge.stylesheet.declarations import format_style_less

__all__ = ["BuildResult", "build_graph", "node_kind_for"]

_HEADINGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

# Elements the node model cannot express; they travel as raw markup.
EMBEDDED_ELEMENTS = frozenset({
    "img", "picture", "video", "audio", "svg", "iframe", "canvas", "object",
    "embed", "form", "input", "select", "textarea",
})

# Document wrappers rendered as plain divs.
_DIV_ELEMENTS = frozenset({"html", "body", "main"})


@dataclass
class BuildResult:
    graph: NodeGraph
    embed_css: str = ""
    unused_classes: list[str] = field(default_factory=list)

    @property
    def nodes(self) -> list[GraphNode]:
        return self.graph.nodes

    @property
    def styles(self) -> list[GraphStyle]:
        return self.graph.styles


def node_kind_for(tag: str) -> NodeKind:
    if tag in _HEADINGS:
        return NodeKind.HEADING
    if tag == "p":
        return NodeKind.PARAGRAPH
    if tag == "a":
        return NodeKind.LINK
    if tag == "section":
        return NodeKind.SECTION
    if tag in EMBEDDED_ELEMENTS:
        return NodeKind.HTML_EMBED
    return NodeKind.BLOCK


def _carried_attributes(element: ParsedElement) -> tuple[tuple[str, str], ...]:
    return tuple(
        (name, value)
        for name, value in element.attributes.items()
        if name == "id" or name.startswith("data-")
    )


def _element_node(element: ParsedElement, node_id: str, child_ids: tuple[str, ...]) -> GraphNode:
    kind = node_kind_for(element.tag)
    if kind is NodeKind.HTML_EMBED:
        return GraphNode(id=node_id, kind=kind, tag="div", embed_html=serialize(element))
    tag = "div" if element.tag in _DIV_ELEMENTS else element.tag
    link = None
    if kind is NodeKind.LINK:
        link = LinkData(
            url=element.attributes.get("href") or "#",
            target=element.attributes.get("target") or None,
        )
    return GraphNode(
        id=node_id,
        kind=kind,
        tag=tag,
        classes=tuple(element.classes),
        children=child_ids,
        link=link,
        attributes=_carried_attributes(element),
    )


def build_graph(
    tree: MarkupTree,
    class_index: dict[str, ClassIndexEntry],
    embed_css: str = "",
    config: BridgeConfig | None = None,
    ids: IdGenerator | None = None,
) -> BuildResult:
    """Emit one node per element or text leaf, and one style per used class.

    Nodes are listed parent-first. Every class that appears on a node gets a
    style (with an empty base when the stylesheet never defines it), except
    reserved builder classes the stylesheet does not define, which the
    target already provides.
    """
    config = config or BridgeConfig()
    ids = ids or IdGenerator()
    nodes: list[GraphNode] = []

    stack: list[tuple[Child, str]] = [(root, ids.next_id()) for root in tree.roots]
    stack.reverse()
    while stack:
        item, node_id = stack.pop()
        if isinstance(item, TextLeaf):
            nodes.append(GraphNode(id=node_id, kind=NodeKind.TEXT, tag="", text=item.text))
            continue
        if node_kind_for(item.tag) is NodeKind.HTML_EMBED:
            nodes.append(_element_node(item, node_id, ()))
            continue
        children = [(child, ids.next_id()) for child in item.children]
        nodes.append(_element_node(item, node_id, tuple(cid for _, cid in children)))
        stack.extend(reversed(children))

    styles: list[GraphStyle] = []
    seen: set[str] = set()
    for node in nodes:
        for name in node.classes:
            if name in seen:
                continue
            seen.add(name)
            entry = class_index.get(name)
            if entry is None and config.is_reserved(name):
                continue
            styles.append(GraphStyle(
                id=ids.next_id(),
                name=name,
                base=format_style_less(entry.base) if entry else "",
                variants={
                    key: format_style_less(decls)
                    for key, decls in (entry.variants.items() if entry else ())
                },
            ))

    graph = NodeGraph(nodes=nodes, styles=styles)
    if embed_css.strip():
        graph.embeds["css"] = embed_css
    unused = [name for name in class_index if name not in seen]
    return BuildResult(graph=graph, embed_css=embed_css, unused_classes=unused)
