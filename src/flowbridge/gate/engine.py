"""Safety gate: runs the whole conversion and decides pass, warn or block."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

from flowbridge.builder import build_graph, from_document, to_document
from flowbridge.chunker import chunk_embed, ensure_within
from flowbridge.config import BridgeConfig
from flowbridge.errors import ParseError, SizeLimitExceeded
from flowbridge.events import types as events
from flowbridge.events.bus import EventBus
from flowbridge.ids import IdGenerator
from flowbridge.markup import normalize, parse_markup, sanitize_embed_html
from flowbridge.model.diagnostic import Severity, ValidationIssue
from flowbridge.model.embed import ChunkPlan, EmbedKind, byte_size
from flowbridge.model.graph import NodeGraph
from flowbridge.model.report import EmbedSizeSummary, RoutingStats, SafetyReport, Verdict
from flowbridge.repair import sanitize
from flowbridge.routing import route
from flowbridge.stylesheet import build_class_index, parse_stylesheet
from flowbridge.validation import split_by_severity, validate

logger = logging.getLogger(__name__)

_SIZE_CODES = frozenset({"EMBED_SIZE_EXCEEDED", "EMBED_SIZE_LARGE"})


class GateState(StrEnum):
    RECEIVED = "received"
    ROUTED = "routed"
    BUILT = "built"
    VALIDATED = "validated"
    SANITIZED = "sanitized"
    REVALIDATED = "revalidated"
    CHUNKED = "chunked"
    REPORTED = "reported"


@dataclass
class GateInput:
    """Everything one conversion starts from."""

    markup: str
    css: str = ""
    js: str = ""
    html_embed: str = ""
    tokens: dict[str, str] | None = None


@dataclass
class GateResult:
    report: SafetyReport
    graph: NodeGraph | None = None
    document: dict[str, Any] | None = None
    embeds: dict[str, str] = field(default_factory=dict)
    chunks: dict[str, ChunkPlan] = field(default_factory=dict)

    @property
    def blocked(self) -> bool:
        return self.report.blocked


@dataclass
class _Run:
    """Mutable state of a single gate run."""

    ids: IdGenerator
    states: list[str] = field(default_factory=list)


def decide_verdict(issues: list[ValidationIssue], fixes: list[str]) -> Verdict:
    """``block`` on any FATAL issue, ``warn`` on fixes or remaining issues."""
    if any(issue.is_fatal for issue in issues):
        return Verdict.BLOCK
    if fixes or issues:
        return Verdict.WARN
    return Verdict.PASS


def _unpasteable(issue: ValidationIssue) -> ValidationIssue:
    """An embed node still above the hard limit after repair blocks the paste."""
    if issue.code != "EMBED_SIZE_EXCEEDED" or issue.node_id is None or issue.is_fatal:
        return issue
    return replace(
        issue,
        severity=Severity.FATAL,
        message=f"{issue.message} It cannot be split any further.",
        fix="Reduce the size of the embedded markup.",
    )


class SafetyGate:
    """Orchestrates parse, route, build, validate, repair and chunk.

    The gate holds configuration only. Every run gets its own state trail
    and its own id generator, so one gate can serve concurrent runs. With
    *seed*, each run draws ids from a generator seeded with it, and equal
    inputs give byte-identical documents.
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        seed: int | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.seed = seed
        self.event_bus = event_bus or EventBus()

    def _start(self) -> _Run:
        ids = IdGenerator.seeded(self.seed) if self.seed is not None else IdGenerator()
        return _Run(ids=ids)

    # -- public entry points ----------------------------------------------

    def run(self, gate_input: GateInput) -> GateResult:
        """Convert markup and CSS into a checked document."""
        run = self._start()
        self.event_bus.emit(events.GateStarted(
            markup_size=byte_size(gate_input.markup), css_size=byte_size(gate_input.css),
        ))
        self._enter(run, GateState.RECEIVED)
        try:
            tree = parse_markup(gate_input.markup)
            css = "\n".join(part for part in [*tree.styles, gate_input.css] if part.strip())
            stylesheet = parse_stylesheet(css, tokens=gate_input.tokens)
            normalized = normalize(tree, stylesheet, self.config)
            routing = route(normalized.stylesheet, self.config)
            self._enter(run, GateState.ROUTED)
            class_index = build_class_index(routing.native_rules, self.config)
            built = build_graph(
                normalized.tree, class_index, routing.embed_css, config=self.config, ids=run.ids
            )
            self._enter(run, GateState.BUILT)
        except ParseError as exc:
            return self._parse_failure(run, exc)

        for warning in stylesheet.warnings:
            logger.debug("stylesheet: %s", warning)
        graph = built.graph
        js = "\n".join(part for part in [*tree.scripts, gate_input.js] if part.strip())
        if js:
            graph.embeds["js"] = js
        if gate_input.html_embed.strip():
            graph.embeds["html"] = gate_input.html_embed
        return self._check(run, graph, routing.stats)

    def check_document(self, document: dict[str, Any], embeds: dict[str, str] | None = None) -> GateResult:
        """Validate, repair and chunk an existing XscpData document."""
        run = self._start()
        self._enter(run, GateState.RECEIVED)
        try:
            graph = from_document(document)
        except ParseError as exc:
            return self._parse_failure(run, exc)
        graph.embeds.update(embeds or {})
        return self._check(run, graph, None)

    # -- stages -------------------------------------------------------------

    def _check(self, run: _Run, graph: NodeGraph, routing: RoutingStats | None) -> GateResult:
        config = self.config
        issues = validate(graph, config)
        self._enter(run, GateState.VALIDATED)
        self._report_issues(GateState.VALIDATED, issues)

        fixes: list[str] = []
        passes = 0
        while any(i.needs_repair for i in issues) and passes < config.max_repair_passes:
            self._enter(run, GateState.SANITIZED)
            result = sanitize(graph, config, run.ids, issues=issues)
            passes += 1
            logger.info("Repair pass %d applied %d fix(es)", passes, len(result.fixes))
            self.event_bus.emit(events.RepairPassCompleted(iteration=passes, fixes=tuple(result.fixes)))
            fixes.extend(result.fixes)
            graph, issues = result.graph, result.issues
            self._enter(run, GateState.REVALIDATED)
            self._report_issues(GateState.REVALIDATED, issues)
            if not result.changed:
                break

        embeds = dict(graph.embeds)
        if embeds.get("html"):
            html, changes = sanitize_embed_html(embeds["html"])
            if changes:
                embeds["html"] = html
                fixes.extend(f"{line} in the html embed" for line in changes)

        chunks, size_issues = self._chunk(embeds, fixes)
        self._enter(run, GateState.CHUNKED)
        issues = [i for i in issues if not self._resolved_by_chunking(i, chunks)] + size_issues
        issues = [_unpasteable(i) for i in issues]

        report = self._report(run, graph, embeds, issues, fixes, chunks, routing, passes)
        document = None if report.blocked else to_document(graph)
        return GateResult(report=report, graph=graph, document=document, embeds=embeds, chunks=chunks)

    def _chunk(
        self, embeds: dict[str, str], fixes: list[str]
    ) -> tuple[dict[str, ChunkPlan], list[ValidationIssue]]:
        chunks: dict[str, ChunkPlan] = {}
        issues: list[ValidationIssue] = []
        for kind in EmbedKind:
            content = embeds.get(kind.value, "")
            if not content:
                continue
            plan = chunk_embed(content, kind, self.config.chunk_ceiling)
            chunks[kind.value] = plan
            self.event_bus.emit(events.EmbedChunked(
                kind=kind.value, chunks=len(plan.chunks), size=plan.original_size,
            ))
            if plan.was_chunked:
                fixes.append(f"Split the {kind.value} embed into {len(plan.chunks)} parts")
            try:
                ensure_within(plan, self.config.embed_hard_limit)
            except SizeLimitExceeded as exc:
                issues.append(ValidationIssue(
                    severity=Severity.FATAL,
                    code="EMBED_SIZE_EXCEEDED",
                    message=str(exc),
                    context=f"{kind.value} embed",
                    fix="Reduce the size of the largest rule or statement.",
                ))
        return chunks, issues

    @staticmethod
    def _resolved_by_chunking(issue: ValidationIssue, chunks: dict[str, ChunkPlan]) -> bool:
        if issue.code not in _SIZE_CODES or issue.node_id is not None or not issue.context:
            return False
        kind = issue.context.split(" ", 1)[0]
        plan = chunks.get(kind)
        return plan is not None and plan.was_chunked

    def _report(
        self,
        run: _Run,
        graph: NodeGraph,
        embeds: dict[str, str],
        issues: list[ValidationIssue],
        fixes: list[str],
        chunks: dict[str, ChunkPlan],
        routing: RoutingStats | None,
        passes: int,
    ) -> SafetyReport:
        fatal, errors, warnings = split_by_severity(issues)
        verdict = decide_verdict(issues, fixes)
        self._enter(run, GateState.REPORTED)
        report = SafetyReport(
            verdict=verdict,
            fatal_issues=fatal,
            errors=errors,
            warnings=warnings,
            applied_fixes=list(fixes),
            embed_sizes=EmbedSizeSummary(
                sizes={kind: byte_size(content) for kind, content in embeds.items()},
                node_embed_total=sum(byte_size(n.embed_html or "") for n in graph.embed_nodes()),
                soft_limit=self.config.embed_soft_limit,
                hard_limit=self.config.embed_hard_limit,
            ),
            chunking=chunks,
            routing=routing,
            states=list(run.states),
            repair_passes=passes,
        )
        self._announce(report)
        return report

    def _parse_failure(self, run: _Run, exc: ParseError) -> GateResult:
        logger.warning("Input could not be parsed: %s", exc)
        self.event_bus.emit(events.GateFailed(error=str(exc)))
        issue = ValidationIssue(
            severity=Severity.FATAL,
            code="PARSE_ERROR",
            message=str(exc),
            context=f"line {exc.line}" if exc.line is not None else None,
        )
        self._enter(run, GateState.REPORTED)
        report = SafetyReport(
            verdict=Verdict.BLOCK, fatal_issues=[issue], states=list(run.states),
        )
        self._announce(report)
        return GateResult(report=report)

    # -- helpers ------------------------------------------------------------

    def _enter(self, run: _Run, state: GateState) -> None:
        logger.debug("gate state: %s", state.value)
        run.states.append(state.value)
        self.event_bus.emit(events.GateStateEntered(state=state.value))

    def _report_issues(self, state: GateState, issues: list[ValidationIssue]) -> None:
        fatal, errors, warnings = split_by_severity(issues)
        self.event_bus.emit(events.IssuesFound(
            state=state.value, fatal=len(fatal), errors=len(errors), warnings=len(warnings),
        ))

    def _announce(self, report: SafetyReport) -> None:
        if report.blocked:
            logger.warning("Verdict %s", report.summary())
            for issue in report.fatal_issues:
                logger.warning("  %s", issue)
        else:
            logger.info("Verdict %s", report.summary())
        self.event_bus.emit(events.GateCompleted(verdict=report.verdict.value))
