"""Graph validator: runs all preflight rules and reports issues."""

from __future__ import annotations

from typing import Callable

from flowbridge.config import BridgeConfig
from flowbridge.errors import FlowbridgeError
from flowbridge.model.diagnostic import Severity, ValidationIssue
from flowbridge.model.graph import NodeGraph
from flowbridge.validation.rules import ALL_RULES


class ValidationError(FlowbridgeError):
    """Raised when validation produces FATAL issues."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        messages = [str(i) for i in issues if i.is_fatal]
        super().__init__(
            f"Validation failed with {len(messages)} fatal issue(s): " + "; ".join(messages)
        )


RuleFunc = Callable[[NodeGraph, BridgeConfig], list[ValidationIssue]]


def validate(
    graph: NodeGraph,
    config: BridgeConfig | None = None,
    extra_rules: list[RuleFunc] | None = None,
) -> list[ValidationIssue]:
    """Run all preflight rules against *graph*.

    Returns every issue found (fatal, error and warning) in rule order.
    The graph is never modified.
    """
    config = config or BridgeConfig()
    rules: list[RuleFunc] = list(ALL_RULES)
    if extra_rules:
        rules.extend(extra_rules)
    issues: list[ValidationIssue] = []
    for rule in rules:
        issues.extend(rule(graph, config))
    return issues


def validate_or_raise(
    graph: NodeGraph,
    config: BridgeConfig | None = None,
    extra_rules: list[RuleFunc] | None = None,
) -> list[ValidationIssue]:
    """Run validation; raises :class:`ValidationError` if any FATAL issues exist.

    Returns the non-fatal issues when none are fatal.
    """
    issues = validate(graph, config, extra_rules=extra_rules)
    fatal = [i for i in issues if i.is_fatal]
    if fatal:
        raise ValidationError(fatal)
    return issues


def split_by_severity(
    issues: list[ValidationIssue],
) -> tuple[list[ValidationIssue], list[ValidationIssue], list[ValidationIssue]]:
    """Return ``(fatal, errors, warnings)``."""
    return (
        [i for i in issues if i.severity is Severity.FATAL],
        [i for i in issues if i.severity is Severity.ERROR],
        [i for i in issues if i.severity is Severity.WARNING],
    )
