"""Reference repairs: orphaned states, dangling children, cycles, roots."""

from __future__ import annotations

from dataclasses import replace

from flowbridge.model.graph import GraphNode, GraphStyle, NodeGraph, NodeKind
from flowbridge.repair.base import RepairContext, replace_nodes
from flowbridge.validation.rules import orphaned_state_names


class DropOrphanedStates:
    """Remove state styles (``name:hover``) whose base style is missing.

    Node classes naming those states go too, so no later repair recreates
    them as placeholders.
    """

    name = "drop-orphaned-states"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        orphaned = orphaned_state_names(graph, context.config)
        if not orphaned:
            return graph
        styles: list[GraphStyle] = []
        for style in graph.styles:
            if style.name in orphaned:
                context.record(f"Removed orphaned state style '{style.name}'")
                continue
            styles.append(style)
        nodes: list[GraphNode] = []
        for node in graph.nodes:
            dropped = [c for c in node.classes if c in orphaned]
            if dropped:
                context.record(
                    f"Removed orphaned state class(es) {', '.join(dropped)} from node '{node.id}'"
                )
                node = replace(node, classes=tuple(c for c in node.classes if c not in orphaned))
            nodes.append(node)
        return NodeGraph(nodes=nodes, styles=styles, embeds=dict(graph.embeds))


class DropInvalidVariants:
    name = "drop-invalid-variants"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        legal = context.config.variant_keys()
        styles: list[GraphStyle] = []
        changed = False
        for style in graph.styles:
            invalid = [key for key in style.variants if key not in legal]
            if invalid:
                changed = True
                context.record(
                    f"Removed invalid variant(s) {', '.join(invalid)} from style '{style.name}'"
                )
                style = replace(
                    style,
                    variants={k: v for k, v in style.variants.items() if k in legal},
                )
            styles.append(style)
        if not changed:
            return graph
        return NodeGraph(nodes=list(graph.nodes), styles=styles, embeds=dict(graph.embeds))


class PruneDanglingReferences:
    """Drop child ids that resolve to no node, and children of leaf kinds."""

    name = "prune-dangling-references"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        known = {node.id for node in graph.nodes}
        nodes: list[GraphNode] = []
        changed = False
        for node in graph.nodes:
            if node.kind in (NodeKind.TEXT, NodeKind.HTML_EMBED) and node.children:
                context.record(f"Removed child references from {node.kind.value} node '{node.id}'")
                node = replace(node, children=())
                changed = True
            dangling = [c for c in node.children if c not in known]
            if dangling:
                context.record(
                    f"Removed {len(dangling)} dangling child reference(s) from node '{node.id}'"
                )
                node = replace(node, children=tuple(c for c in node.children if c in known))
                changed = True
            nodes.append(node)
        return replace_nodes(graph, nodes) if changed else graph


class BreakCycles:
    """Remove each child reference that closes a cycle."""

    name = "break-cycles"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        back_edges = graph.back_edges()
        if not back_edges:
            return graph
        to_drop: dict[str, set[str]] = {}
        for parent, child in back_edges:
            to_drop.setdefault(parent, set()).add(child)
            context.record(f"Broke cycle by removing '{child}' from the children of '{parent}'")
        nodes = []
        handled: set[str] = set()
        for node in graph.nodes:
            if node.id in to_drop and node.id not in handled:
                handled.add(node.id)
                node = replace(
                    node,
                    children=tuple(c for c in node.children if c not in to_drop[node.id]),
                )
            nodes.append(node)
        return replace_nodes(graph, nodes)


class AddPlaceholderStyles:
    """Create empty styles for classes that nodes use but nobody defines."""

    name = "add-placeholder-styles"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        names = {style.name for style in graph.styles} | orphaned_state_names(graph, context.config)
        added: list[GraphStyle] = []
        for node in graph.nodes:
            for name in node.classes:
                if name in names or context.config.is_reserved(name):
                    continue
                names.add(name)
                added.append(GraphStyle(id=context.ids.next_id(), name=name))
                context.record(f"Added empty style for class '{name}'")
        if not added:
            return graph
        return NodeGraph(
            nodes=list(graph.nodes),
            styles=list(graph.styles) + added,
            embeds=dict(graph.embeds),
        )


class WrapMultipleRoots:
    """Put all root nodes under one block when there is more than one."""

    name = "wrap-multiple-roots"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        roots = graph.root_nodes()
        if len([r for r in roots if not r.is_text]) <= 1:
            return graph
        wrapper = GraphNode(
            id=context.ids.next_id(),
            kind=NodeKind.BLOCK,
            tag="div",
            children=tuple(r.id for r in roots),
        )
        context.record(f"Wrapped {len(roots)} root nodes in a single block")
        return replace_nodes(graph, [wrapper] + list(graph.nodes))
