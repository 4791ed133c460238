"""Collapse subtrees nested beyond the safe depth into raw-embed nodes."""

from __future__ import annotations

from dataclasses import replace
from html import escape

from flowbridge.markup.sanitizer import sanitize_embed_html
from flowbridge.markup.serializer import render_start_tag
from flowbridge.model.graph import GraphNode, NodeGraph, NodeKind
from flowbridge.model.markup import VOID_ELEMENTS
from flowbridge.repair.base import RepairContext, replace_nodes


def _start_tag(node: GraphNode) -> str:
    attributes = list(node.attributes)
    if node.link is not None:
        attributes.insert(0, ("href", node.link.url))
        if node.link.target:
            attributes.insert(1, ("target", node.link.target))
    return render_start_tag(node.tag or "div", node.classes, attributes)


def serialize_subtree(graph: NodeGraph, node_id: str) -> str:
    """Render the subtree rooted at *node_id* as HTML, iteratively."""
    nodes = graph.node_map()
    out: list[str] = []
    visited: set[str] = set()
    stack: list[str | tuple[str]] = [node_id]
    while stack:
        item = stack.pop()
        if isinstance(item, tuple):
            out.append(item[0])
            continue
        node = nodes.get(item)
        if node is None or item in visited:
            continue
        visited.add(item)
        if node.is_text:
            out.append(escape(node.text or "", quote=False))
            continue
        if node.is_embed:
            out.append(node.embed_html or "")
            continue
        out.append(_start_tag(node))
        if node.tag in VOID_ELEMENTS:
            continue
        stack.append((f"</{node.tag or 'div'}>",))
        stack.extend(reversed(node.children))
    return "".join(out)


def _descendants(graph: NodeGraph, node_id: str) -> set[str]:
    nodes = graph.node_map()
    found: set[str] = set()
    stack = list(nodes[node_id].children) if node_id in nodes else []
    while stack:
        current = stack.pop()
        if current in found or current not in nodes:
            continue
        found.add(current)
        stack.extend(nodes[current].children)
    return found


class FlattenDeepSubtrees:
    """Replace each node at the safe depth that still has children.

    The node and its whole subtree become one HtmlEmbed node at the same
    position, holding the sanitized HTML of the subtree, so the deepest
    node of the result sits exactly at the safe depth.
    """

    name = "flatten-deep-subtrees"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        limit = context.config.safe_depth
        depths = graph.depths()
        node_map = graph.node_map()
        targets = [
            node_id for node_id, depth in depths.items()
            if depth == limit and node_map[node_id].children and not node_map[node_id].is_embed
        ]
        if not targets:
            return graph

        replacements: dict[str, GraphNode] = {}
        removed: set[str] = set()
        for node_id in targets:
            if node_id in removed:
                continue
            html, _ = sanitize_embed_html(serialize_subtree(graph, node_id))
            subtree = _descendants(graph, node_id)
            replacements[node_id] = GraphNode(
                id=context.ids.next_id(),
                kind=NodeKind.HTML_EMBED,
                tag="div",
                embed_html=html,
            )
            removed |= subtree
            context.record(
                f"Collapsed {len(subtree) + 1} node(s) below depth {limit} "
                f"under '{node_id}' into a raw embed"
            )

        nodes: list[GraphNode] = []
        for node in graph.nodes:
            if node.id in removed:
                continue
            if node.id in replacements:
                nodes.append(replacements[node.id])
                continue
            if any(c in replacements for c in node.children):
                node = replace(
                    node,
                    children=tuple(
                        replacements[c].id if c in replacements else c
                        for c in node.children
                    ),
                )
            nodes.append(node)
        return replace_nodes(graph, nodes)
