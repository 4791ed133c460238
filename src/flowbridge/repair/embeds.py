"""Embed repairs: unsafe raw markup and oversized embed nodes."""

from __future__ import annotations

from dataclasses import replace

from flowbridge.chunker import chunk_embed
from flowbridge.markup.sanitizer import sanitize_embed_html
from flowbridge.model.embed import EmbedKind, byte_size
from flowbridge.model.graph import GraphNode, NodeGraph, NodeKind
from flowbridge.repair.base import RepairContext


class SanitizeEmbedMarkup:
    """Clean the HTML of every embed node and of the html side-channel."""

    name = "sanitize-embed-markup"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        changed = False
        nodes: list[GraphNode] = []
        for node in graph.nodes:
            if node.is_embed and node.embed_html:
                html, changes = sanitize_embed_html(node.embed_html)
                if changes:
                    changed = True
                    for line in changes:
                        context.record(f"{line} in embed node '{node.id}'")
                    node = replace(node, embed_html=html)
            nodes.append(node)

        embeds = dict(graph.embeds)
        if embeds.get("html"):
            html, changes = sanitize_embed_html(embeds["html"])
            if changes:
                changed = True
                for line in changes:
                    context.record(f"{line} in the html embed")
                embeds["html"] = html

        if not changed:
            return graph
        return NodeGraph(nodes=nodes, styles=list(graph.styles), embeds=embeds)


class SplitOversizedEmbeds:
    """Split embed nodes above the hard limit into sibling embed nodes.

    The chunks replace the node in its parent's child list, in order. An
    oversized root embed is wrapped in a new block holding the chunks.
    """

    name = "split-oversized-embeds"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        limit = context.config.embed_hard_limit
        oversized = {
            node.id for node in graph.embed_nodes()
            if byte_size(node.embed_html or "") > limit
        }
        if not oversized:
            return graph

        referenced = graph.referenced_ids()
        expansions: dict[str, tuple[str, ...]] = {}
        nodes: list[GraphNode] = []
        for node in graph.nodes:
            if node.id not in oversized or node.id in expansions:
                nodes.append(node)
                continue
            plan = chunk_embed(node.embed_html or "", EmbedKind.HTML, context.config.chunk_ceiling)
            if not plan.was_chunked:
                nodes.append(node)
                continue
            parts = [
                GraphNode(id=context.ids.next_id(), kind=NodeKind.HTML_EMBED, embed_html=chunk.content)
                for chunk in plan.chunks
            ]
            part_ids = tuple(p.id for p in parts)
            context.record(
                f"Split embed node '{node.id}' ({plan.original_size} bytes) into {len(parts)} parts"
            )
            if node.id in referenced:
                expansions[node.id] = part_ids
            else:
                nodes.append(replace(node, kind=NodeKind.BLOCK, embed_html=None, children=part_ids))
                expansions[node.id] = (node.id,)
            nodes.extend(parts)

        if not expansions:
            return graph

        result: list[GraphNode] = []
        for node in nodes:
            if any(c in expansions and expansions[c] != (c,) for c in node.children):
                children: list[str] = []
                for child in node.children:
                    children.extend(expansions.get(child, (child,)))
                node = replace(node, children=tuple(children))
            result.append(node)
        return NodeGraph(nodes=result, styles=list(graph.styles), embeds=dict(graph.embeds))
