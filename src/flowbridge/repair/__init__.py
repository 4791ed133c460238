"""Repair pass: fixes the issues reported by the preflight validator."""

from __future__ import annotations

from dataclasses import dataclass, field

from flowbridge.config import BridgeConfig
from flowbridge.ids import IdGenerator
from flowbridge.model.diagnostic import ValidationIssue
from flowbridge.model.graph import NodeGraph
from flowbridge.repair.base import Repair, RepairContext
from flowbridge.repair.classnames import RenameReservedClasses, SanitizeClassNames, safe_class_name
from flowbridge.repair.depth import FlattenDeepSubtrees, serialize_subtree
from flowbridge.repair.embeds import SanitizeEmbedMarkup, SplitOversizedEmbeds
from flowbridge.repair.identity import DeduplicateIds, MergeDuplicateStyleNames
from flowbridge.repair.references import (
    AddPlaceholderStyles,
    BreakCycles,
    DropInvalidVariants,
    DropOrphanedStates,
    PruneDanglingReferences,
    WrapMultipleRoots,
)
from flowbridge.validation import validate

# Order matters: identities first, then references, then structure, then
# the embeds produced by flattening.
BUILTIN_REPAIRS: list[Repair] = [
    DeduplicateIds(),
    SanitizeClassNames(),
    MergeDuplicateStyleNames(),
    DropOrphanedStates(),
    DropInvalidVariants(),
    PruneDanglingReferences(),
    BreakCycles(),
    RenameReservedClasses(),
    AddPlaceholderStyles(),
    WrapMultipleRoots(),
    FlattenDeepSubtrees(),
    SanitizeEmbedMarkup(),
    SplitOversizedEmbeds(),
]

# Issue codes each repair resolves.
REPAIR_TRIGGERS: dict[str, frozenset[str]] = {
    "deduplicate-ids": frozenset({"DUPLICATE_ID"}),
    "sanitize-class-names": frozenset({"INVALID_CLASS_NAME"}),
    "merge-duplicate-style-names": frozenset({"DUPLICATE_STYLE_NAME"}),
    "drop-orphaned-states": frozenset({"ORPHANED_STATE"}),
    "drop-invalid-variants": frozenset({"INVALID_VARIANT_KEY"}),
    "prune-dangling-references": frozenset({"ORPHAN_CHILD_REFERENCE", "TEXT_NODE_HAS_CHILDREN"}),
    "break-cycles": frozenset({"CIRCULAR_REFERENCE"}),
    "rename-reserved-classes": frozenset({"RESERVED_CLASS_NAME"}),
    "add-placeholder-styles": frozenset({"MISSING_STYLE_REF"}),
    "wrap-multiple-roots": frozenset({"MULTIPLE_ROOTS"}),
    "flatten-deep-subtrees": frozenset({"DEPTH_EXCEEDS_SAFE_LIMIT", "EXCESSIVE_DEPTH"}),
    "sanitize-embed-markup": frozenset({"UNSAFE_EMBED_MARKUP"}),
    "split-oversized-embeds": frozenset({"EMBED_SIZE_EXCEEDED"}),
}


@dataclass
class SanitizeResult:
    graph: NodeGraph
    fixes: list[str] = field(default_factory=list)
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.fixes)


def _selected(issues: list[ValidationIssue] | None) -> list[Repair]:
    if issues is None:
        return list(BUILTIN_REPAIRS)
    codes = {issue.code for issue in issues}
    return [r for r in BUILTIN_REPAIRS if REPAIR_TRIGGERS.get(r.name, frozenset()) & codes]


def sanitize(
    graph: NodeGraph,
    config: BridgeConfig | None = None,
    ids: IdGenerator | None = None,
    issues: list[ValidationIssue] | None = None,
) -> SanitizeResult:
    """Apply the built-in repairs to *graph* and re-validate the result.

    With *issues*, only the repairs that resolve one of their codes run;
    without, every repair runs (each is a no-op when nothing matches).
    Running ``sanitize`` on its own output applies no further fixes.
    """
    config = config or BridgeConfig()
    context = RepairContext(config=config, ids=ids or IdGenerator())
    for repair in _selected(issues):
        graph = repair.apply(graph, context)
    return SanitizeResult(graph=graph, fixes=context.fixes, issues=validate(graph, config))


__all__ = [
    "BUILTIN_REPAIRS",
    "REPAIR_TRIGGERS",
    "Repair",
    "RepairContext",
    "SanitizeResult",
    "sanitize",
    "safe_class_name",
    "serialize_subtree",
    "AddPlaceholderStyles",
    "BreakCycles",
    "DeduplicateIds",
    "DropInvalidVariants",
    "DropOrphanedStates",
    "FlattenDeepSubtrees",
    "MergeDuplicateStyleNames",
    "PruneDanglingReferences",
    "RenameReservedClasses",
    "SanitizeClassNames",
    "SanitizeEmbedMarkup",
    "SplitOversizedEmbeds",
    "WrapMultipleRoots",
]
