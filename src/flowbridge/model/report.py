"""Safety report: the verdict and evidence produced by the safety gate."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from flowbridge.model.diagnostic import ValidationIssue
from flowbridge.model.embed import ChunkPlan


class Verdict(StrEnum):
    PASS = "pass"
    WARN = "warn"
    BLOCK = "block"


@dataclass(frozen=True)
class RoutingStats:
    native: int = 0
    embed: int = 0
    split: int = 0
    mapped_breakpoints: int = 0
    nonstandard_media: int = 0

    def to_dict(self) -> dict:
        return {
            "native": self.native,
            "embed": self.embed,
            "split": self.split,
            "mapped_breakpoints": self.mapped_breakpoints,
            "nonstandard_media": self.nonstandard_media,
        }


@dataclass(frozen=True)
class EmbedSizeSummary:
    sizes: dict[str, int] = field(default_factory=dict)
    node_embed_total: int = 0
    soft_limit: int = 0
    hard_limit: int = 0

    @property
    def total(self) -> int:
        return sum(self.sizes.values()) + self.node_embed_total

    def to_dict(self) -> dict:
        return {
            "sizes": dict(self.sizes),
            "node_embed_total": self.node_embed_total,
            "total": self.total,
            "soft_limit": self.soft_limit,
            "hard_limit": self.hard_limit,
        }


@dataclass
class SafetyReport:
    verdict: Verdict
    fatal_issues: list[ValidationIssue] = field(default_factory=list)
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    applied_fixes: list[str] = field(default_factory=list)
    embed_sizes: EmbedSizeSummary = field(default_factory=EmbedSizeSummary)
    chunking: dict[str, ChunkPlan] = field(default_factory=dict)
    routing: RoutingStats | None = None
    states: list[str] = field(default_factory=list)
    repair_passes: int = 0

    @property
    def blocked(self) -> bool:
        return self.verdict is Verdict.BLOCK

    def summary(self) -> str:
        return (
            f"{self.verdict.value.upper()}: {len(self.fatal_issues)} fatal, "
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s), "
            f"{len(self.applied_fixes)} fix(es) applied"
        )

    def to_dict(self) -> dict:
        return {
            "verdict": self.verdict.value,
            "fatal_issues": [i.to_dict() for i in self.fatal_issues],
            "errors": [i.to_dict() for i in self.errors],
            "warnings": [i.to_dict() for i in self.warnings],
            "applied_fixes": list(self.applied_fixes),
            "embed_sizes": self.embed_sizes.to_dict(),
            "chunking": {k: plan.to_dict() for k, plan in self.chunking.items()},
            "routing": self.routing.to_dict() if self.routing else None,
            "states": list(self.states),
            "repair_passes": self.repair_passes,
        }
