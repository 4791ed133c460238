"""Tests for the built-in graph repairs and the sanitize pass."""

import pytest

from flowbridge.config import BridgeConfig
from flowbridge.ids import IdGenerator
from flowbridge.model.graph import GraphNode, GraphStyle, NodeGraph, NodeKind
from flowbridge.repair import (
    AddPlaceholderStyles,
    BreakCycles,
    DeduplicateIds,
    DropInvalidVariants,
    DropOrphanedStates,
    FlattenDeepSubtrees,
    MergeDuplicateStyleNames,
    PruneDanglingReferences,
    RenameReservedClasses,
    RepairContext,
    SanitizeClassNames,
    SanitizeEmbedMarkup,
    SplitOversizedEmbeds,
    WrapMultipleRoots,
    safe_class_name,
    sanitize,
    serialize_subtree,
)
from flowbridge.validation import validate
from flowbridge.validation.rules import check_cycles, check_depth, check_style_references


def _node(node_id, *children, kind=NodeKind.BLOCK, classes=(), **kwargs) -> GraphNode:
    return GraphNode(id=node_id, kind=kind, children=tuple(children), classes=tuple(classes), **kwargs)


def _graph(nodes=(), styles=(), embeds=None) -> NodeGraph:
    return NodeGraph(nodes=list(nodes), styles=list(styles), embeds=dict(embeds or {}))


def _context(config: BridgeConfig | None = None) -> RepairContext:
    return RepairContext(config=config or BridgeConfig(), ids=IdGenerator.seeded(11))


def _chain(depth: int) -> NodeGraph:
    nodes = [_node(f"n{i}", f"n{i + 1}") for i in range(depth - 1)]
    nodes.append(_node(f"n{depth - 1}"))
    return _graph(nodes)


# ---------------------------------------------------------------------------
# Identity repairs
# ---------------------------------------------------------------------------


class TestIdentityRepairs:
    def test_duplicate_node_ids_get_fresh_ids(self):
        graph = _graph([_node("r", "a", "a"), _node("a"), _node("a")])
        context = _context()
        result = DeduplicateIds().apply(graph, context)
        ids = [n.id for n in result.nodes]
        assert len(set(ids)) == 3
        assert result.nodes[0].children == ("a", ids[2])
        assert context.fixes == ["Regenerated 1 duplicate id(s) for node 'a'"]

    def test_duplicate_style_ids(self):
        graph = _graph(styles=[GraphStyle(id="s", name="x"), GraphStyle(id="s", name="y")])
        result = DeduplicateIds().apply(graph, _context())
        assert result.styles[0].id == "s"
        assert result.styles[1].id != "s"

    def test_merge_duplicate_style_names(self):
        graph = _graph(styles=[
            GraphStyle(id="s1", name="a", base="color: red; top: 0;", variants={"small": "top: 1px;"}),
            GraphStyle(id="s2", name="a", base="color: blue;", variants={"hover": "color: green;"}),
        ])
        context = _context()
        [style] = MergeDuplicateStyleNames().apply(graph, context).styles
        assert style.id == "s1"
        assert style.base == "top: 0; color: blue;"
        assert style.variants == {"small": "top: 1px;", "hover": "color: green;"}
        assert context.fixes == ["Merged duplicate style 'a'"]

    def test_no_duplicates_is_a_no_op(self):
        graph = _graph([_node("a")], [GraphStyle(id="s", name="a")])
        context = _context()
        assert MergeDuplicateStyleNames().apply(graph, context) is graph
        assert context.fixes == []


# ---------------------------------------------------------------------------
# Reference repairs
# ---------------------------------------------------------------------------


class TestReferenceRepairs:
    def test_drop_orphaned_states(self):
        graph = _graph(styles=[GraphStyle(id="s1", name="btn:hover"), GraphStyle(id="s2", name="card:hover"),
                               GraphStyle(id="s3", name="card")])
        result = DropOrphanedStates().apply(graph, _context())
        assert [s.name for s in result.styles] == ["card:hover", "card"]

    def test_drop_orphaned_state_classes_from_nodes(self):
        graph = _graph(
            [_node("a", classes=("btn:hover", "card", "card:hover"))],
            [GraphStyle(id="s1", name="btn:hover"), GraphStyle(id="s2", name="card")],
        )
        context = _context()
        result = DropOrphanedStates().apply(graph, context)
        assert [s.name for s in result.styles] == ["card"]
        assert result.nodes[0].classes == ("card", "card:hover")
        assert context.fixes == [
            "Removed orphaned state style 'btn:hover'",
            "Removed orphaned state class(es) btn:hover from node 'a'",
        ]

    def test_drop_invalid_variants(self):
        graph = _graph(styles=[GraphStyle(id="s", name="a", variants={"small": "top: 0;", "mobile": "top: 1px;"})])
        context = _context()
        result = DropInvalidVariants().apply(graph, context)
        assert result.styles[0].variants == {"small": "top: 0;"}
        assert context.fixes == ["Removed invalid variant(s) mobile from style 'a'"]

    def test_prune_dangling_and_leaf_children(self):
        graph = _graph([
            _node("r", "ghost", "t"),
            _node("t", "x", kind=NodeKind.TEXT, text="hi"),
            _node("x"),
        ])
        result = PruneDanglingReferences().apply(graph, _context())
        assert result.nodes[0].children == ("t",)
        assert result.nodes[1].children == ()

    def test_break_cycle(self):
        graph = _graph([_node("a", "b"), _node("b", "a")])
        context = _context()
        result = BreakCycles().apply(graph, context)
        assert result.nodes[0].children == ("b",)
        assert result.nodes[1].children == ()
        assert check_cycles(result, BridgeConfig()) == []
        assert context.fixes == ["Broke cycle by removing 'a' from the children of 'b'"]

    def test_placeholder_styles(self):
        graph = _graph([_node("a", classes=("hero", "w-inline-block", "hero"))])
        result = AddPlaceholderStyles().apply(graph, _context())
        assert [(s.name, s.base) for s in result.styles] == [("hero", "")]

    def test_wrap_multiple_roots(self):
        graph = _graph([_node("a"), _node("b")])
        result = WrapMultipleRoots().apply(graph, _context())
        wrapper = result.nodes[0]
        assert wrapper.kind is NodeKind.BLOCK
        assert wrapper.children == ("a", "b")
        assert [n.id for n in result.root_nodes()] == [wrapper.id]

    def test_single_root_not_wrapped(self):
        graph = _graph([_node("a", "b"), _node("b")])
        assert WrapMultipleRoots().apply(graph, _context()) is graph


# ---------------------------------------------------------------------------
# Reserved class names
# ---------------------------------------------------------------------------


class TestRenameReservedClasses:
    def test_safe_class_name(self):
        config = BridgeConfig()
        assert safe_class_name("w-button", config, set()) == "custom-button"
        assert safe_class_name("w-button", config, {"custom-button"}) == "custom-button-2"

    def test_rename_updates_styles_and_nodes(self):
        graph = _graph(
            [_node("a", classes=("w-button", "cta"))],
            [GraphStyle(id="s1", name="w-button", base="color: red;"), GraphStyle(id="s2", name="cta")],
        )
        context = _context()
        result = RenameReservedClasses().apply(graph, context)
        assert [s.name for s in result.styles] == ["custom-button", "cta"]
        assert result.nodes[0].classes == ("custom-button", "cta")
        assert check_style_references(result, BridgeConfig()) == []
        assert context.fixes == ["Renamed reserved class 'w-button' to 'custom-button'"]

    def test_rename_avoids_existing_names(self):
        graph = _graph(
            [_node("a", classes=("w-button", "custom-button"))],
            [GraphStyle(id="s1", name="w-button"), GraphStyle(id="s2", name="custom-button")],
        )
        result = RenameReservedClasses().apply(graph, _context())
        assert result.nodes[0].classes == ("custom-button-2", "custom-button")


class TestSanitizeClassNames:
    def test_renames_styles_and_nodes(self):
        graph = _graph(
            [_node("a", classes=("md:flex", "card:hover"))],
            [GraphStyle(id="s1", name="md:flex", base="display: flex;"), GraphStyle(id="s2", name="card")],
        )
        context = _context()
        result = SanitizeClassNames().apply(graph, context)
        assert [s.name for s in result.styles] == ["md-flex", "card"]
        assert result.nodes[0].classes == ("md-flex", "card:hover")
        assert context.fixes == ["Renamed class 'md:flex' to 'md-flex'"]

    def test_folded_names_merge(self):
        graph = _graph(
            [_node("a", classes=("Hero", "hero"))],
            [
                GraphStyle(id="s1", name="Hero", base="color: red;"),
                GraphStyle(id="s2", name="hero", base="top: 0;"),
            ],
        )
        context = _context()
        renamed = SanitizeClassNames().apply(graph, context)
        assert renamed.nodes[0].classes == ("hero",)
        [style] = MergeDuplicateStyleNames().apply(renamed, context).styles
        assert style.id == "s1"
        assert style.base == "color: red; top: 0;"

    def test_clean_names_untouched(self):
        graph = _graph([_node("a", classes=("hero", "btn:hover"))], [GraphStyle(id="s", name="hero")])
        assert SanitizeClassNames().apply(graph, _context()) is graph


# ---------------------------------------------------------------------------
# Depth flattening
# ---------------------------------------------------------------------------


class TestFlattenDeepSubtrees:
    def test_collapse_below_safe_depth(self):
        context = _context()
        result = FlattenDeepSubtrees().apply(_chain(35), context)
        assert len(result.nodes) == 30
        embed = result.nodes[-1]
        assert embed.kind is NodeKind.HTML_EMBED
        assert embed.embed_html == "<div>" * 6 + "</div>" * 6
        assert result.nodes[-2].children == (embed.id,)
        assert max(result.depths().values()) == 30
        assert check_depth(result, BridgeConfig()) == []
        assert context.fixes == ["Collapsed 6 node(s) below depth 30 under 'n29' into a raw embed"]

    def test_shallow_tree_untouched(self):
        graph = _chain(30)
        assert FlattenDeepSubtrees().apply(graph, _context()) is graph

    def test_serialize_subtree(self):
        graph = _graph([
            _node("r", "t", "i", "e", classes=("box",), tag="section", attributes=(("id", "top"),)),
            _node("t", kind=NodeKind.TEXT, text="a < b"),
            _node("i", tag="br"),
            _node("e", kind=NodeKind.HTML_EMBED, embed_html="<svg></svg>"),
        ])
        assert serialize_subtree(graph, "r") == '<section class="box" id="top">a &lt; b<br><svg></svg></section>'


# ---------------------------------------------------------------------------
# Embed repairs
# ---------------------------------------------------------------------------


class TestEmbedRepairs:
    def test_sanitize_embed_nodes_and_side_channel(self):
        graph = _graph(
            [_node("e", kind=NodeKind.HTML_EMBED, embed_html="<span>A<br>B</span>")],
            embeds={"html": "<body><p>x</p></body>"},
        )
        context = _context()
        result = SanitizeEmbedMarkup().apply(graph, context)
        assert result.nodes[0].embed_html == "<span>A</span><br><span>B</span>"
        assert result.embeds["html"] == "<p>x</p>"
        assert context.fixes == [
            "Split 1 inline element(s) around line breaks in embed node 'e'",
            "Removed 2 document shell tag(s) in the html embed",
        ]

    def test_split_referenced_embed(self):
        config = BridgeConfig(embed_hard_limit=30, embed_soft_limit=20, chunk_ceiling=20)
        html = "<p>aaaaaaaaaa</p><p>bbbbbbbbbb</p>"
        graph = _graph([_node("r", "e"), _node("e", kind=NodeKind.HTML_EMBED, embed_html=html)])
        result = SplitOversizedEmbeds().apply(graph, _context(config))
        root, *parts = result.nodes
        assert root.children == tuple(p.id for p in parts)
        assert [p.embed_html for p in parts] == ["<p>aaaaaaaaaa</p>", "<p>bbbbbbbbbb</p>"]
        assert "e" not in {n.id for n in result.nodes}

    def test_split_root_embed_becomes_block(self):
        config = BridgeConfig(embed_hard_limit=30, embed_soft_limit=20, chunk_ceiling=20)
        html = "<p>aaaaaaaaaa</p><p>bbbbbbbbbb</p>"
        graph = _graph([_node("e", kind=NodeKind.HTML_EMBED, embed_html=html)])
        result = SplitOversizedEmbeds().apply(graph, _context(config))
        block, *parts = result.nodes
        assert block.id == "e"
        assert block.kind is NodeKind.BLOCK
        assert block.children == tuple(p.id for p in parts)
        assert "".join(p.embed_html for p in parts) == html


# ---------------------------------------------------------------------------
# sanitize
# ---------------------------------------------------------------------------


def _messy() -> NodeGraph:
    return _graph(
        [_node("r", "a", "ghost", classes=("w-button", "hero")), _node("a"), _node("b")],
        [
            GraphStyle(id="s1", name="w-button", base="color: red;"),
            GraphStyle(id="s2", name="hero:hover"),
            GraphStyle(id="s3", name="x", base="top: 0;"),
            GraphStyle(id="s4", name="x", base="left: 0;"),
        ],
    )


class TestSanitize:
    def test_fixes_every_repairable_issue(self):
        result = sanitize(_messy(), ids=IdGenerator.seeded(5))
        assert result.changed
        assert not any(issue.needs_repair for issue in result.issues)
        names = {s.name for s in result.graph.styles}
        assert {"custom-button", "hero", "x"} <= names
        assert "hero:hover" not in names

    def test_second_run_is_a_no_op(self):
        first = sanitize(_messy(), ids=IdGenerator.seeded(5))
        second = sanitize(first.graph, ids=IdGenerator.seeded(6))
        assert second.fixes == []
        assert not second.changed

    def test_issue_selection_runs_only_triggered_repairs(self):
        graph = _graph([_node("a"), _node("b")], [GraphStyle(id="s", name="w-row")])
        issues = [i for i in validate(graph) if i.code == "MULTIPLE_ROOTS"]
        result = sanitize(graph, ids=IdGenerator.seeded(5), issues=issues)
        assert result.fixes == ["Wrapped 2 root nodes in a single block"]
        assert result.graph.styles[0].name == "w-row"

    def test_deep_graph_sanitized(self):
        result = sanitize(_chain(60), ids=IdGenerator.seeded(5))
        assert max(result.graph.depths().values()) == 30
        assert not any(i.code in {"EXCESSIVE_DEPTH", "DEPTH_EXCEEDS_SAFE_LIMIT"} for i in result.issues)

    def test_orphaned_state_class_converges(self):
        graph = _graph([_node("a", classes=("btn:hover",))], [GraphStyle(id="s1", name="btn:hover")])
        first = sanitize(graph, ids=IdGenerator.seeded(5))
        assert first.fixes == [
            "Removed orphaned state style 'btn:hover'",
            "Removed orphaned state class(es) btn:hover from node 'a'",
        ]
        second = sanitize(first.graph, ids=IdGenerator.seeded(6))
        assert second.fixes == []
        assert not any(i.code == "ORPHANED_STATE" for i in second.issues)


_SMALL_EMBEDS = BridgeConfig(embed_hard_limit=30, embed_soft_limit=20, chunk_ceiling=20)

_GENERATED = [
    pytest.param(
        _graph(
            [_node("r", "a", "b"), _node("a"), _node("a"), _node("b")],
            [GraphStyle(id="s", name="x"), GraphStyle(id="s", name="y"), GraphStyle(id="t", name="x")],
        ),
        BridgeConfig(),
        id="duplicates",
    ),
    pytest.param(_graph([_node("a", "b"), _node("b", "c"), _node("c", "a")]), BridgeConfig(), id="cycle"),
    pytest.param(
        _graph(
            [_node("a", "b", classes=("card:hover",)), _node("b", classes=("btn:focus", "btn:hover"))],
            [GraphStyle(id="s1", name="btn:hover"), GraphStyle(id="s2", name="card:hover")],
        ),
        BridgeConfig(),
        id="state-only-styles",
    ),
    pytest.param(_chain(45), BridgeConfig(), id="deep-chain"),
    pytest.param(
        _graph([
            _node("r", "e1", "e2"),
            _node("e1", kind=NodeKind.HTML_EMBED, embed_html="<p>aaaaaaaaaa</p><p>bbbbbbbbbb</p>"),
            _node("e2", kind=NodeKind.HTML_EMBED, embed_html="<p>" + "x" * 40 + "</p>"),
        ]),
        _SMALL_EMBEDS,
        id="oversized-embeds",
    ),
    pytest.param(
        _graph(
            [_node("r", "a", "b"), _node("a", classes=("md:flex", "Hero")), _node("b", classes=("hero",))],
            [
                GraphStyle(id="s1", name="md:flex"),
                GraphStyle(id="s2", name="Hero", base="color: red;"),
                GraphStyle(id="s3", name="hero", base="top: 0;"),
            ],
        ),
        BridgeConfig(),
        id="unsafe-class-names",
    ),
]


class TestSanitizeGeneratedGraphs:
    @pytest.mark.parametrize("graph, config", _GENERATED)
    def test_output_is_sound(self, graph, config):
        result = sanitize(graph, config, IdGenerator.seeded(5)).graph
        node_ids = [n.id for n in result.nodes]
        assert len(node_ids) == len(set(node_ids))
        style_ids = [s.id for s in result.styles]
        assert len(style_ids) == len(set(style_ids))
        assert {c for n in result.nodes for c in n.children} <= set(node_ids)
        assert result.back_edges() == []
        assert len({s.name for s in result.styles}) == len(result.styles)

    @pytest.mark.parametrize("graph, config", _GENERATED)
    def test_second_pass_changes_nothing(self, graph, config):
        first = sanitize(graph, config, IdGenerator.seeded(5))
        second = sanitize(first.graph, config, IdGenerator.seeded(6))
        assert second.fixes == []
        assert second.graph == first.graph
