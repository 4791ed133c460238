"""CSS router: decide, per rule and per declaration, native vs. embed.

Rules the builder can express as class styles go to the class index; the
rest is collected into one CSS embed artifact, in an order that preserves
the cascade: at-rules and custom-property roots first, then base rules,
then breakpoint groups, then non-standard media blocks.
"""

from __future__ import annotations

import logging
import re
import textwrap
from dataclasses import dataclass, field
from enum import StrEnum

from flowbridge.config import BridgeConfig
from flowbridge.model.css import BreakpointMatch, CSSRule, NativeRule, RuleSource, Stylesheet
from flowbridge.model.report import RoutingStats
from flowbridge.stylesheet.declarations import (
    SUPPORTED_PROPERTIES,
    resolve_variables,
    strip_important,
)
from flowbridge.stylesheet.media import map_breakpoint
from flowbridge.stylesheet.selectors import parse_selector

__all__ = [
    "Destination",
    "PropertyRoute",
    "RouteDecision",
    "RoutingResult",
    "route",
    "selector_embed_reason",
    "declaration_embed_reason",
]

logger = logging.getLogger(__name__)

_VENDOR_PREFIXES = ("-webkit-", "-moz-", "-ms-", "-o-")

_MODERN_COLOR_RE = re.compile(r"\b(?:oklch|oklab|lch|lab|hwb|color-mix)\(", re.IGNORECASE)

_VIEWPORT_MATH_RE = re.compile(
    r"\b(?:clamp|calc|min|max)\([^;]*?\d(?:\.\d+)?(?:vw|vh|vmin|vmax|dvh|svh|lvh|dvw|svw|lvw)\b",
    re.IGNORECASE,
)

_CONTAINER_PROPERTIES = frozenset({"container", "container-type", "container-name"})


class Destination(StrEnum):
    NATIVE = "native"
    EMBED = "embed"
    SPLIT = "split"


@dataclass(frozen=True)
class PropertyRoute:
    property: str
    value: str
    destination: Destination
    reason: str | None = None
    transformation: str | None = None


@dataclass
class RouteDecision:
    selector: str
    destination: Destination
    reasons: list[str] = field(default_factory=list)
    media: str | None = None
    breakpoint: BreakpointMatch | None = None
    properties: list[PropertyRoute] = field(default_factory=list)
    line: int = 0


@dataclass
class RoutingResult:
    decisions: list[RouteDecision] = field(default_factory=list)
    native_rules: list[NativeRule] = field(default_factory=list)
    embed_css: str = ""
    stats: RoutingStats = field(default_factory=RoutingStats)

    def by_destination(self, destination: Destination) -> list[RouteDecision]:
        return [d for d in self.decisions if d.destination is destination]


def selector_embed_reason(selector: str, config: BridgeConfig) -> str | None:
    """Return why *selector* cannot be native, or ``None`` if it can."""
    info = parse_selector(selector)
    if info.unparsed:
        return "unsupported-selector"
    if info.has_pseudo_element:
        return "pseudo-element"
    if info.pseudo_classes:
        states = info.states(config.pseudo_states)
        if states is None or len(states) > 1:
            return "pseudo-class-complex"
    if any(comb in ">+~" for comb in info.combinators):
        return "combinator"
    if info.combinators and not info.is_class_chain:
        return "combinator"
    if info.has_id:
        return "id-selector"
    if info.has_attribute:
        return "attribute-selector"
    if info.has_tag:
        return "tag-selector"
    if any(len(c.classes) > 1 for c in info.compounds):
        return "compound-selector"
    return None


def declaration_embed_reason(prop: str, value: str, unresolved: bool = False) -> str | None:
    """Return why a declaration cannot be native, or ``None`` if it can."""
    if prop.startswith("--"):
        return "custom-property"
    if prop.startswith(_VENDOR_PREFIXES) or value.lstrip().startswith(_VENDOR_PREFIXES):
        return "vendor-prefix"
    if unresolved:
        return "css-variable"
    if _MODERN_COLOR_RE.search(value):
        return "modern-color"
    if prop in _CONTAINER_PROPERTIES:
        return "container-query"
    if _VIEWPORT_MATH_RE.search(value):
        return "viewport-function"
    if prop not in SUPPORTED_PROPERTIES:
        return "unsupported-property"
    return None


def _render_rule(selector: str, declarations: dict[str, str]) -> str:
    body = "".join(f"  {prop}: {value};\n" for prop, value in declarations.items())
    return f"{selector} {{\n{body}}}"


class _EmbedCollector:
    """Accumulates embed CSS in cascade-preserving sections."""

    def __init__(self) -> None:
        self.head: list[str] = []
        self.base: list[str] = []
        self.standard: dict[str, list[str]] = {}
        self.nonstandard: dict[str, list[str]] = {}

    def add(self, text: str, media: str | None = None, standard: bool = True) -> None:
        if media is None:
            self.base.append(text)
            return
        groups = self.standard if standard else self.nonstandard
        group = groups.setdefault(media, [])
        if text not in group:
            group.append(text)

    def render(self) -> str:
        parts = list(self.head) + list(self.base)
        for groups in (self.standard, self.nonstandard):
            for media, texts in groups.items():
                inner = textwrap.indent("\n".join(texts), "  ")
                parts.append(f"@media {media} {{\n{inner}\n}}")
        return "\n".join(parts) + ("\n" if parts else "")


class _Router:
    def __init__(self, stylesheet: Stylesheet, config: BridgeConfig) -> None:
        self.stylesheet = stylesheet
        self.config = config
        self.result = RoutingResult()
        self.embed = _EmbedCollector()
        self._breakpoints: dict[str, BreakpointMatch | None] = {}

    def breakpoint_for(self, media: str) -> BreakpointMatch | None:
        if media not in self._breakpoints:
            self._breakpoints[media] = map_breakpoint(media, self.config)
        return self._breakpoints[media]

    def route_rule(self, rule: CSSRule) -> None:
        if rule.source is RuleSource.ROOT:
            self._whole(rule, "root-variables")
            self.embed.head.append(rule.text)
            return
        if rule.source is RuleSource.AT_RULE:
            self._whole(rule, "at-rule")
            self.embed.head.append(rule.text)
            return

        bp = None
        if rule.source is RuleSource.MEDIA:
            bp = self.breakpoint_for(rule.media)
            if bp is None:
                self._whole(rule, "breakpoint-nonstandard")
                self.embed.add(rule.text, rule.media, standard=False)
                return
            if rule.at_rule:
                self._whole(rule, "at-rule", bp)
                self.embed.add(rule.text, rule.media)
                return

        for selector in rule.selectors:
            self._route_selector(rule, selector, bp)

    def _whole(self, rule: CSSRule, reason: str, bp: BreakpointMatch | None = None) -> None:
        reasons = [reason] if bp is None else ["breakpoint-mapped", reason]
        self.result.decisions.append(RouteDecision(
            selector=rule.selector,
            destination=Destination.EMBED,
            reasons=reasons,
            media=rule.media,
            breakpoint=bp,
            line=rule.line,
        ))

    def _route_selector(self, rule: CSSRule, selector: str, bp: BreakpointMatch | None) -> None:
        reasons = ["breakpoint-mapped"] if bp else []
        decision = RouteDecision(
            selector=selector,
            destination=Destination.NATIVE,
            reasons=reasons,
            media=rule.media,
            breakpoint=bp,
            line=rule.line,
        )
        self.result.decisions.append(decision)

        selector_reason = selector_embed_reason(selector, self.config)
        if selector_reason:
            decision.destination = Destination.EMBED
            decision.reasons.append(selector_reason)
            decision.properties = [
                PropertyRoute(p, v, Destination.EMBED, selector_reason)
                for p, v in rule.declarations.items()
            ]
            self.embed.add(_render_rule(selector, rule.declarations), rule.media)
            return

        native: dict[str, str] = {}
        embedded: dict[str, str] = {}
        for prop, raw in rule.declarations.items():
            resolved, unresolved = resolve_variables(
                raw, self.stylesheet.variables, self.config.variable_depth
            )
            value, important = strip_important(resolved)
            reason = declaration_embed_reason(prop, value, unresolved)
            if reason:
                embedded[prop] = raw
                decision.properties.append(PropertyRoute(prop, raw, Destination.EMBED, reason))
                if reason not in decision.reasons:
                    decision.reasons.append(reason)
                continue
            notes = []
            if resolved != raw:
                notes.append("variables resolved")
            if important:
                notes.append("!important removed")
            native[prop] = value
            decision.properties.append(PropertyRoute(
                prop, value, Destination.NATIVE, None, ", ".join(notes) or None
            ))

        if embedded and native:
            decision.destination = Destination.SPLIT
        elif embedded:
            decision.destination = Destination.EMBED
        if embedded:
            self.embed.add(_render_rule(selector, embedded), rule.media)
        if native or not embedded:
            self.result.native_rules.append(
                NativeRule(selector=selector, declarations=native, breakpoint=bp.key if bp else None)
            )

    def finish(self) -> RoutingResult:
        decisions = self.result.decisions
        self.result.embed_css = self.embed.render()
        self.result.stats = RoutingStats(
            native=sum(d.destination is Destination.NATIVE for d in decisions),
            embed=sum(d.destination is Destination.EMBED for d in decisions),
            split=sum(d.destination is Destination.SPLIT for d in decisions),
            mapped_breakpoints=len({m for m, bp in self._breakpoints.items() if bp}),
            nonstandard_media=len({m for m, bp in self._breakpoints.items() if bp is None}),
        )
        return self.result


def route(stylesheet: Stylesheet, config: BridgeConfig | None = None) -> RoutingResult:
    """Route every rule of *stylesheet* to the class index or the CSS embed."""
    config = config or BridgeConfig()
    router = _Router(stylesheet, config)
    for rule in stylesheet.rules:
        router.route_rule(rule)
    result = router.finish()
    logger.debug(
        "Routed %d rule(s): %d native, %d embed, %d split",
        len(result.decisions), result.stats.native, result.stats.embed, result.stats.split,
    )
    return result
