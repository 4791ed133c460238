"""Class-name repairs: reserved builder names and unsafe characters."""

from __future__ import annotations

from dataclasses import replace

from flowbridge.config import BridgeConfig
from flowbridge.model.graph import NodeGraph
from flowbridge.repair.base import RepairContext


def safe_class_name(name: str, config: BridgeConfig, taken: set[str]) -> str:
    """``w-button`` -> ``custom-button``, suffixed until unused."""
    stem = name
    for prefix in config.reserved_prefixes:
        if name.startswith(prefix):
            stem = name[len(prefix):]
            break
    candidate = f"{config.rename_prefix}{stem}"
    suffix = 2
    unique = candidate
    while unique in taken or config.is_reserved(unique):
        unique = f"{candidate}-{suffix}"
        suffix += 1
    return unique


class RenameReservedClasses:
    """Rename reserved-name styles and every node class list that uses them."""

    name = "rename-reserved-classes"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        config = context.config
        taken = {style.name for style in graph.styles} | graph.class_names()
        renames: dict[str, str] = {}
        for style in graph.styles:
            if config.is_reserved(style.name) and style.name not in renames:
                new_name = safe_class_name(style.name, config, taken)
                taken.add(new_name)
                renames[style.name] = new_name
                context.record(f"Renamed reserved class '{style.name}' to '{new_name}'")
        if not renames:
            return graph

        styles = [
            replace(s, name=renames[s.name]) if s.name in renames else s
            for s in graph.styles
        ]
        nodes = [
            replace(n, classes=tuple(renames.get(c, c) for c in n.classes))
            if any(c in renames for c in n.classes) else n
            for n in graph.nodes
        ]
        return NodeGraph(nodes=nodes, styles=styles, embeds=dict(graph.embeds))


class SanitizeClassNames:
    """Rewrite class names into the builder-safe ``[a-z0-9_-]`` form.

    Styles and node class lists are renamed together. A name that folds
    onto an existing one (``Hero`` and ``hero``) becomes that name, and
    the duplicate styles are left for ``MergeDuplicateStyleNames``.
    """

    name = "sanitize-class-names"

    def apply(self, graph: NodeGraph, context: RepairContext) -> NodeGraph:
        config = context.config
        renames: dict[str, str] = {}
        for name in sorted({style.name for style in graph.styles} | graph.class_names()):
            cleaned = config.clean_class_name(name)
            if cleaned != name:
                renames[name] = cleaned
                context.record(f"Renamed class '{name}' to '{cleaned}'")
        if not renames:
            return graph

        styles = [
            replace(s, name=renames[s.name]) if s.name in renames else s
            for s in graph.styles
        ]
        nodes = [
            replace(n, classes=tuple(dict.fromkeys(renames.get(c, c) for c in n.classes)))
            if any(c in renames for c in n.classes) else n
            for n in graph.nodes
        ]
        return NodeGraph(nodes=nodes, styles=styles, embeds=dict(graph.embeds))
