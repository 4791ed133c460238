"""Node graph model: nodes, named styles, and the graph container."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class NodeKind(Enum):
    BLOCK = "Block"
    LINK = "Link"
    HEADING = "Heading"
    PARAGRAPH = "Paragraph"
    SECTION = "Section"
    HTML_EMBED = "HtmlEmbed"
    TEXT = "Text"


@dataclass(frozen=True)
class LinkData:
    url: str = "#"
    target: str | None = None
    mode: str = "external"


@dataclass(frozen=True)
class GraphNode:
    """One element (or text leaf) of the output document."""

    id: str
    kind: NodeKind = NodeKind.BLOCK
    tag: str = "div"
    classes: tuple[str, ...] = ()
    children: tuple[str, ...] = ()
    text: str | None = None
    link: LinkData | None = None
    embed_html: str | None = None
    attributes: tuple[tuple[str, str], ...] = ()

    @property
    def is_text(self) -> bool:
        return self.kind is NodeKind.TEXT

    @property
    def is_embed(self) -> bool:
        return self.kind is NodeKind.HTML_EMBED


@dataclass(frozen=True)
class GraphStyle:
    """A named class style with its base declarations and variants."""

    id: str
    name: str
    base: str = ""
    variants: dict[str, str] = field(default_factory=dict)


@dataclass
class GraphIndex:
    """Position-based view of a graph for iterative traversal.

    ``children[i]`` lists the positions of node *i*'s resolvable children;
    when an id is duplicated the first occurrence wins.
    """

    ids: list[str]
    positions: dict[str, int]
    children: list[list[int]]
    roots: list[int]


@dataclass
class NodeGraph:
    """Nodes, styles and side-channel embeds of one conversion.

    Nodes and styles are kept as lists so that invalid input (for example
    duplicated ids) stays representable for the validator.
    """

    nodes: list[GraphNode] = field(default_factory=list)
    styles: list[GraphStyle] = field(default_factory=list)
    embeds: dict[str, str] = field(default_factory=dict)

    def node_map(self) -> dict[str, GraphNode]:
        result: dict[str, GraphNode] = {}
        for node in self.nodes:
            result.setdefault(node.id, node)
        return result

    def referenced_ids(self) -> set[str]:
        return {child for node in self.nodes for child in node.children}

    def root_nodes(self) -> list[GraphNode]:
        """Nodes that no other node lists as a child, in document order."""
        referenced = self.referenced_ids()
        return [n for n in self.nodes if n.id not in referenced]

    def index(self) -> GraphIndex:
        ids = [n.id for n in self.nodes]
        positions: dict[str, int] = {}
        for i, node_id in enumerate(ids):
            positions.setdefault(node_id, i)
        children = [
            [positions[c] for c in node.children if c in positions]
            for node in self.nodes
        ]
        referenced = {c for kids in children for c in kids}
        roots = [i for i in range(len(ids)) if i not in referenced and positions[ids[i]] == i]
        return GraphIndex(ids=ids, positions=positions, children=children, roots=roots)

    def depths(self) -> dict[str, int]:
        """Depth of every node reachable from a root (roots have depth 1).

        Iterative, and safe on cyclic graphs: each node is visited once.
        """
        idx = self.index()
        depth: dict[int, int] = {}
        stack = [(r, 1) for r in reversed(idx.roots)]
        while stack:
            pos, d = stack.pop()
            if pos in depth:
                continue
            depth[pos] = d
            for child in reversed(idx.children[pos]):
                if child not in depth:
                    stack.append((child, d + 1))
        return {idx.ids[pos]: d for pos, d in depth.items()}

    def embed_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes if n.is_embed]

    def class_names(self) -> set[str]:
        return {name for node in self.nodes for name in node.classes}

    def back_edges(self) -> list[tuple[str, str]]:
        """``(parent, child)`` references that close a cycle.

        Iterative depth-first search over node positions with an explicit
        recursion stack; duplicated ids resolve to their first occurrence.
        """
        idx = self.index()
        white, grey, black = 0, 1, 2
        color = [white] * len(idx.ids)
        edges: list[tuple[str, str]] = []
        order = idx.roots + list(range(len(idx.ids)))
        for start in order:
            if color[start] != white or idx.positions[idx.ids[start]] != start:
                continue
            color[start] = grey
            stack: list[tuple[int, int]] = [(start, 0)]
            while stack:
                pos, next_child = stack[-1]
                children = idx.children[pos]
                if next_child >= len(children):
                    color[pos] = black
                    stack.pop()
                    continue
                stack[-1] = (pos, next_child + 1)
                child = children[next_child]
                if color[child] == grey:
                    edges.append((idx.ids[pos], idx.ids[child]))
                elif color[child] == white:
                    color[child] = grey
                    stack.append((child, 0))
        return edges
