"""Stylesheet model: parsed rules, media queries and class index entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RuleSource(Enum):
    BASE = "base"
    MEDIA = "media"
    AT_RULE = "at-rule"
    ROOT = "root"


@dataclass(frozen=True)
class CSSRule:
    """A single selector block (or at-rule) from a stylesheet.

    ``text`` keeps the rule's original source so that rules routed to an
    embed can be emitted verbatim.
    """

    selector: str
    declarations: dict[str, str] = field(default_factory=dict)
    source: RuleSource = RuleSource.BASE
    media: str | None = None
    at_rule: str | None = None
    text: str = ""
    line: int = 1

    @property
    def selectors(self) -> list[str]:
        """The comma-separated selector list, split outside parentheses."""
        return split_selector_list(self.selector)


@dataclass
class Stylesheet:
    rules: list[CSSRule] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    @property
    def media_queries(self) -> list[str]:
        seen: list[str] = []
        for rule in self.rules:
            if rule.media is not None and rule.media not in seen:
                seen.append(rule.media)
        return seen


@dataclass(frozen=True)
class MediaFeature:
    name: str
    value: str | None = None


@dataclass(frozen=True)
class MediaQuery:
    media_type: str | None = None
    modifier: str | None = None  # "only" or "not"
    features: tuple[MediaFeature, ...] = ()


@dataclass(frozen=True)
class BreakpointMatch:
    key: str
    feature: str
    width: int
    was_rounded: bool = False


@dataclass
class ClassIndexEntry:
    """Everything the stylesheet says about one class name."""

    name: str
    base: dict[str, str] = field(default_factory=dict)
    variants: dict[str, dict[str, str]] = field(default_factory=dict)
    selectors: list[str] = field(default_factory=list)

    def merge(self, declarations: dict[str, str], variant: str | None = None) -> None:
        target = self.base if variant is None else self.variants.setdefault(variant, {})
        for prop, value in declarations.items():
            target.pop(prop, None)
            target[prop] = value


def split_selector_list(selector: str) -> list[str]:
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in selector:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


@dataclass(frozen=True)
class NativeRule:
    """A rule (or the native part of one) bound for the class index."""

    selector: str
    declarations: dict[str, str] = field(default_factory=dict)
    breakpoint: str | None = None
