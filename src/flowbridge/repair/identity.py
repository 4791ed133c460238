"""Identity repairs: duplicate ids and duplicate style names."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace

from flowbridge.model.graph import GraphStyle, NodeGraph
from flowbridge.repair.base import RepairContext
from flowbridge.stylesheet.declarations import format_style_less, parse_style_less


class DeduplicateIds:
    """Give later occurrences of a duplicated id a fresh id.

    For node ids, the k-th child reference to a duplicated id (in document
    order) is remapped to its k-th occurrence, so each copy keeps exactly
    one parent. References beyond the number of occurrences keep the
    original id.
    """

    name = "deduplicate-ids"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        occurrences: dict[str, list[int]] = defaultdict(list)
        for i, node in enumerate(graph.nodes):
            occurrences[node.id].append(i)
        duplicated = {node_id: pos for node_id, pos in occurrences.items() if len(pos) > 1}

        nodes = list(graph.nodes)
        if duplicated:
            issued: dict[str, list[str]] = {}
            for node_id, positions in duplicated.items():
                issued[node_id] = [node_id]
                for pos in positions[1:]:
                    new_id = context.ids.next_id()
                    issued[node_id].append(new_id)
                    nodes[pos] = replace(nodes[pos], id=new_id)
                context.record(
                    f"Regenerated {len(positions) - 1} duplicate id(s) for node '{node_id}'"
                )
            seen_refs: dict[str, int] = defaultdict(int)
            for i, node in enumerate(nodes):
                if not any(c in issued for c in node.children):
                    continue
                children = []
                for child in node.children:
                    if child in issued:
                        k = seen_refs[child]
                        seen_refs[child] += 1
                        ids = issued[child]
                        children.append(ids[k] if k < len(ids) else child)
                    else:
                        children.append(child)
                nodes[i] = replace(node, children=tuple(children))

        styles = list(graph.styles)
        seen_style_ids: set[str] = set()
        for i, style in enumerate(styles):
            if style.id in seen_style_ids:
                styles[i] = replace(style, id=context.ids.next_id())
                context.record(f"Regenerated duplicate id for style '{style.name}'")
            seen_style_ids.add(styles[i].id)

        return NodeGraph(nodes=nodes, styles=styles, embeds=dict(graph.embeds))


def _merge_style_less(first: str, second: str) -> str:
    merged = parse_style_less(first)
    for prop, value in parse_style_less(second).items():
        merged.pop(prop, None)
        merged[prop] = value
    return format_style_less(merged)


class MergeDuplicateStyleNames:
    """Fold styles sharing a name into the first one; later values win."""

    name = "merge-duplicate-style-names"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        merged: dict[str, GraphStyle] = {}
        order: list[str] = []
        changed = False
        for style in graph.styles:
            existing = merged.get(style.name)
            if existing is None:
                merged[style.name] = style
                order.append(style.name)
                continue
            changed = True
            variants = dict(existing.variants)
            for key, value in style.variants.items():
                variants[key] = _merge_style_less(variants.get(key, ""), value)
            merged[style.name] = replace(
                existing,
                base=_merge_style_less(existing.base, style.base),
                variants=variants,
            )
            context.record(f"Merged duplicate style '{style.name}'")
        if not changed:
            return graph
        return NodeGraph(
            nodes=list(graph.nodes),
            styles=[merged[name] for name in order],
            embeds=dict(graph.embeds),
        )
