"""Preflight rules for node graphs.

Each rule is a pure function taking a NodeGraph and the BridgeConfig and
returning a list of ValidationIssue objects describing any problems found.
"""

from __future__ import annotations

import re
import uuid
from collections import Counter

from flowbridge.config import BridgeConfig
from flowbridge.markup.sanitizer import find_embed_hazards
from flowbridge.model.diagnostic import Severity, ValidationIssue
from flowbridge.model.embed import byte_size
from flowbridge.model.graph import NodeGraph, NodeKind


# ---------------------------------------------------------------------------
# Declaration patterns
# ---------------------------------------------------------------------------

_BAD_LITERAL_RE = re.compile(r"\b(?:undefined|NaN|null)\b")
_TEMPLATE_RE = re.compile(r"\{\{|\}\}|\$\{")
_EMPTY_URL_RE = re.compile(r"url\(\s*(?:''|\"\")?\s*\)")
_HEX_RE = re.compile(r"#([0-9a-fA-F]+)\b")
_VALID_HEX_LENGTHS = frozenset({3, 4, 6, 8})


# ---------------------------------------------------------------------------
# Structural rules (FATAL severity)
# ---------------------------------------------------------------------------


def check_unique_ids(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Node ids and style ids must each be unique."""
    issues: list[ValidationIssue] = []
    for label, items in (("node", graph.nodes), ("style", graph.styles)):
        counts = Counter(item.id for item in items)
        for item_id, count in counts.items():
            if count > 1:
                issues.append(ValidationIssue(
                    severity=Severity.FATAL,
                    code="DUPLICATE_ID",
                    message=f"{label.capitalize()} id '{item_id}' is used {count} times.",
                    node_id=item_id,
                    context=label,
                    fix="Regenerate ids for the later duplicates.",
                ))
    return issues


def check_child_references(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Every child id must resolve to a node."""
    known = {node.id for node in graph.nodes}
    issues: list[ValidationIssue] = []
    for node in graph.nodes:
        for child in node.children:
            if child not in known:
                issues.append(ValidationIssue(
                    severity=Severity.FATAL,
                    code="ORPHAN_CHILD_REFERENCE",
                    message=f"Node '{node.id}' references missing child '{child}'.",
                    node_id=node.id,
                    context=child,
                    fix="Remove the dangling child reference.",
                ))
    return issues


def check_cycles(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """No node may be its own descendant; reports each back edge once."""
    return [
        ValidationIssue(
            severity=Severity.FATAL,
            code="CIRCULAR_REFERENCE",
            message=f"Node '{parent}' lists its ancestor '{child}' as a child.",
            node_id=parent,
            context=child,
            fix="Remove the child reference that closes the cycle.",
        )
        for parent, child in graph.back_edges()
    ]


def check_depth(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Tree depth must stay within the safe threshold."""
    depths = graph.depths()
    if not depths:
        return []
    deepest_id, deepest = max(depths.items(), key=lambda item: item[1])
    if deepest > config.max_depth:
        return [ValidationIssue(
            severity=Severity.FATAL,
            code="EXCESSIVE_DEPTH",
            message=f"Tree depth {deepest} exceeds the maximum of {config.max_depth}.",
            node_id=deepest_id,
            fix="Flatten deeply nested subtrees into raw embeds.",
        )]
    if deepest > config.safe_depth:
        return [ValidationIssue(
            severity=Severity.ERROR,
            code="DEPTH_EXCEEDS_SAFE_LIMIT",
            message=f"Tree depth {deepest} exceeds the safe depth of {config.safe_depth}.",
            node_id=deepest_id,
            fix="Flatten deeply nested subtrees into raw embeds.",
        )]
    return []


# ---------------------------------------------------------------------------
# Style rules (ERROR severity)
# ---------------------------------------------------------------------------


def orphaned_state_names(graph: NodeGraph, config: BridgeConfig) -> set[str]:
    """State-suffixed style or class names whose base style is missing."""
    names = {style.name for style in graph.styles}
    orphaned: set[str] = set()
    for name in names | graph.class_names():
        parts = config.split_state(name)
        if parts and parts[0] not in names:
            orphaned.add(name)
    return orphaned


def check_orphaned_states(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """A state-suffixed style (``button:hover``) needs its base style.

    A node class naming such a state is reported too, once per name.
    """
    orphaned = orphaned_state_names(graph, config)
    issues: list[ValidationIssue] = []
    defined: set[str] = set()
    for style in graph.styles:
        if style.name in orphaned:
            defined.add(style.name)
            base = style.name.partition(":")[0]
            issues.append(ValidationIssue(
                severity=Severity.ERROR,
                code="ORPHANED_STATE",
                message=f"State style '{style.name}' has no base style '{base}'.",
                node_id=style.id,
                context=style.name,
                fix="Drop the state style or add its base class.",
            ))
    for name in sorted(orphaned - defined):
        base = name.partition(":")[0]
        issues.append(ValidationIssue(
            severity=Severity.ERROR,
            code="ORPHANED_STATE",
            message=f"Class '{name}' names a state of missing base style '{base}'.",
            context=name,
            fix="Drop the class or add its base class.",
        ))
    return issues


def check_class_names(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Class names use lower-case letters, digits, ``-`` and ``_`` only.

    A pseudo-state suffix such as ``:hover`` is allowed.
    """
    issues: list[ValidationIssue] = []
    for name in sorted({style.name for style in graph.styles} | graph.class_names()):
        cleaned = config.clean_class_name(name)
        if cleaned != name:
            issues.append(ValidationIssue(
                severity=Severity.ERROR,
                code="INVALID_CLASS_NAME",
                message=f"Class name '{name}' has characters the builder does not accept.",
                context=name,
                fix=f"Rename it to '{cleaned}'.",
            ))
    return issues


def check_variant_keys(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Variant keys must be a breakpoint, a pseudo-state, or both joined by ``_``."""
    legal = config.variant_keys()
    issues: list[ValidationIssue] = []
    for style in graph.styles:
        for key in style.variants:
            if key not in legal:
                issues.append(ValidationIssue(
                    severity=Severity.ERROR,
                    code="INVALID_VARIANT_KEY",
                    message=f"Style '{style.name}' has unknown variant '{key}'.",
                    node_id=style.id,
                    context=style.name,
                    fix="Use a breakpoint, a pseudo-state, or '<breakpoint>_<state>'.",
                ))
    return issues


def check_reserved_class_names(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Styles must not redefine the builder's own classes."""
    issues: list[ValidationIssue] = []
    for style in graph.styles:
        if config.is_reserved(style.name):
            issues.append(ValidationIssue(
                severity=Severity.ERROR,
                code="RESERVED_CLASS_NAME",
                message=f"Style '{style.name}' uses a reserved class name.",
                node_id=style.id,
                context=style.name,
                fix=f"Rename it with the '{config.rename_prefix}' prefix.",
            ))
    return issues


def check_duplicate_style_names(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Each style name is defined once."""
    counts = Counter(style.name for style in graph.styles)
    return [
        ValidationIssue(
            severity=Severity.ERROR,
            code="DUPLICATE_STYLE_NAME",
            message=f"Style name '{name}' is defined {count} times.",
            context=name,
            fix="Merge the styles into one.",
        )
        for name, count in counts.items()
        if count > 1
    ]


def check_single_root(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """A pasted document has exactly one element root."""
    roots = [n for n in graph.root_nodes() if not n.is_text]
    if len(roots) <= 1:
        return []
    return [ValidationIssue(
        severity=Severity.ERROR,
        code="MULTIPLE_ROOTS",
        message=f"Document has {len(roots)} root nodes; exactly one is expected.",
        fix="Wrap the roots in a single block.",
    )]


def check_node_structure(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Text and embed nodes are leaves, and links carry a URL."""
    issues: list[ValidationIssue] = []
    for node in graph.nodes:
        if node.kind in (NodeKind.TEXT, NodeKind.HTML_EMBED) and node.children:
            issues.append(ValidationIssue(
                severity=Severity.ERROR,
                code="TEXT_NODE_HAS_CHILDREN",
                message=f"{node.kind.value} node '{node.id}' must not have children.",
                node_id=node.id,
                fix="Remove the child references.",
            ))
        if node.kind is NodeKind.LINK and (node.link is None or not node.link.url):
            issues.append(ValidationIssue(
                severity=Severity.WARNING,
                code="LINK_MISSING_URL",
                message=f"Link node '{node.id}' has no URL.",
                node_id=node.id,
            ))
    return issues


def check_embed_markup(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Raw embed HTML must be free of constructs the builder rejects."""
    issues: list[ValidationIssue] = []
    for node in graph.embed_nodes():
        hazards = find_embed_hazards(node.embed_html or "")
        if hazards:
            issues.append(ValidationIssue(
                severity=Severity.ERROR,
                code="UNSAFE_EMBED_MARKUP",
                message=f"Embed contains {', '.join(hazards)}.",
                node_id=node.id,
                fix="Sanitize the embed markup.",
            ))
    html = graph.embeds.get("html", "")
    if html and find_embed_hazards(html):
        issues.append(ValidationIssue(
            severity=Severity.ERROR,
            code="UNSAFE_EMBED_MARKUP",
            message=f"HTML embed contains {', '.join(find_embed_hazards(html))}.",
            context="html",
            fix="Sanitize the embed markup.",
        ))
    return issues


# ---------------------------------------------------------------------------
# Size rules
# ---------------------------------------------------------------------------


def _size_issue(size: int, config: BridgeConfig, label: str, node_id: str | None) -> ValidationIssue | None:
    if size > config.embed_hard_limit:
        return ValidationIssue(
            severity=Severity.ERROR,
            code="EMBED_SIZE_EXCEEDED",
            message=f"{label} is {size} bytes, above the {config.embed_hard_limit} byte limit.",
            node_id=node_id,
            context=label,
            fix="Split the embed into chunks.",
        )
    if size > config.embed_soft_limit:
        return ValidationIssue(
            severity=Severity.WARNING,
            code="EMBED_SIZE_LARGE",
            message=f"{label} is {size} bytes, above the {config.embed_soft_limit} byte soft limit.",
            node_id=node_id,
            context=label,
        )
    return None


def check_embed_sizes(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Embeds stay under the hard byte limit and should stay under the soft one."""
    issues: list[ValidationIssue] = []
    for kind, content in graph.embeds.items():
        issue = _size_issue(byte_size(content), config, f"{kind} embed", None)
        if issue:
            issues.append(issue)
    for node in graph.embed_nodes():
        issue = _size_issue(byte_size(node.embed_html or ""), config, "embed node", node.id)
        if issue:
            issues.append(issue)
    return issues


# ---------------------------------------------------------------------------
# Advisory rules (WARNING severity)
# ---------------------------------------------------------------------------


def check_style_references(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Node classes should resolve to a style or a reserved builder class.

    Orphaned state classes are left to :func:`check_orphaned_states`.
    """
    names = {style.name for style in graph.styles} | orphaned_state_names(graph, config)
    issues: list[ValidationIssue] = []
    for node in graph.nodes:
        for name in node.classes:
            if name not in names and not config.is_reserved(name):
                issues.append(ValidationIssue(
                    severity=Severity.WARNING,
                    code="MISSING_STYLE_REF",
                    message=f"Node '{node.id}' uses class '{name}' with no style.",
                    node_id=node.id,
                    context=name,
                    fix="Add an empty style for the class.",
                ))
    return issues


def _declaration_problems(style_less: str) -> list[str]:
    problems = []
    if _BAD_LITERAL_RE.search(style_less):
        problems.append("undefined/NaN/null value")
    if _TEMPLATE_RE.search(style_less):
        problems.append("unrendered template expression")
    if _EMPTY_URL_RE.search(style_less):
        problems.append("empty url()")
    for match in _HEX_RE.finditer(style_less):
        if len(match.group(1)) not in _VALID_HEX_LENGTHS:
            problems.append(f"malformed color #{match.group(1)}")
    return problems


def check_declarations(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Declarations should not carry placeholder or malformed values."""
    issues: list[ValidationIssue] = []
    for style in graph.styles:
        blocks = [("base", style.base)] + list(style.variants.items())
        for key, style_less in blocks:
            for problem in _declaration_problems(style_less):
                issues.append(ValidationIssue(
                    severity=Severity.WARNING,
                    code="INVALID_STYLE",
                    message=f"Style '{style.name}' ({key}) has {problem}.",
                    node_id=style.id,
                    context=style.name,
                ))
    return issues


def check_id_format(graph: NodeGraph, config: BridgeConfig) -> list[ValidationIssue]:
    """Node and style ids should be UUID v4 strings."""
    issues: list[ValidationIssue] = []
    for item in list(graph.nodes) + list(graph.styles):
        try:
            parsed = uuid.UUID(item.id)
        except ValueError:
            parsed = None
        if parsed is None or parsed.version != 4:
            issues.append(ValidationIssue(
                severity=Severity.WARNING,
                code="INVALID_ID_FORMAT",
                message=f"Id '{item.id}' is not a UUID v4.",
                node_id=item.id,
            ))
    return issues


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

ALL_RULES = [
    check_unique_ids,
    check_child_references,
    check_cycles,
    check_class_names,
    check_orphaned_states,
    check_variant_keys,
    check_depth,
    check_embed_sizes,
    check_reserved_class_names,
    check_duplicate_style_names,
    check_style_references,
    check_single_root,
    check_node_structure,
    check_embed_markup,
    check_declarations,
    check_id_format,
]
