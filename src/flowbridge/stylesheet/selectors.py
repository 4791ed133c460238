"""Selector tokenizing shared by the normalizer, router and class index."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

__all__ = [
    "Compound",
    "SelectorInfo",
    "parse_selector",
    "flattened_class_name",
    "LEGACY_PSEUDO_ELEMENTS",
]

_IDENT_RE = re.compile(r"-?[_a-zA-Z][\w-]*")

LEGACY_PSEUDO_ELEMENTS = frozenset({"before", "after", "first-line", "first-letter"})

# Tag names used when a tag appears inside a flattened chain.
_TAG_ALIASES = {"a": "link"}


@dataclass
class Compound:
    """One compound selector, e.g. ``a.nav-link:hover``."""

    tag: str | None = None
    classes: list[str] = field(default_factory=list)
    ids: list[str] = field(default_factory=list)
    attributes: list[str] = field(default_factory=list)
    pseudo_classes: list[tuple[str, str | None]] = field(default_factory=list)
    pseudo_elements: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (
            self.tag or self.classes or self.ids or self.attributes
            or self.pseudo_classes or self.pseudo_elements
        )


@dataclass
class SelectorInfo:
    text: str
    compounds: list[Compound] = field(default_factory=list)
    combinators: list[str] = field(default_factory=list)
    unparsed: bool = False

    @property
    def last(self) -> Compound:
        return self.compounds[-1]

    @property
    def has_pseudo_element(self) -> bool:
        return any(c.pseudo_elements for c in self.compounds)

    @property
    def pseudo_classes(self) -> list[tuple[str, str | None]]:
        return [p for c in self.compounds for p in c.pseudo_classes]

    @property
    def has_id(self) -> bool:
        return any(c.ids for c in self.compounds)

    @property
    def has_attribute(self) -> bool:
        return any(c.attributes for c in self.compounds)

    @property
    def has_tag(self) -> bool:
        return any(c.tag for c in self.compounds)

    def states(self, native: frozenset[str]) -> list[str] | None:
        """The native pseudo-states on the last compound.

        Returns ``None`` when any pseudo-class is functional, not native, or
        appears before the last compound.
        """
        for compound in self.compounds[:-1]:
            if compound.pseudo_classes:
                return None
        states = []
        for name, arg in self.last.pseudo_classes:
            if arg is not None or name not in native:
                return None
            states.append(name)
        return states

    @property
    def is_single_class(self) -> bool:
        """``.name`` optionally followed by pseudo-classes."""
        if self.unparsed or len(self.compounds) != 1:
            return False
        c = self.compounds[0]
        return (
            c.tag is None and len(c.classes) == 1 and not c.ids
            and not c.attributes and not c.pseudo_elements
        )

    @property
    def is_class_chain(self) -> bool:
        """Descendant chain of class-only compounds, e.g. ``.card .title``."""
        if self.unparsed or len(self.compounds) < 2:
            return False
        if any(comb != " " for comb in self.combinators):
            return False
        return all(
            c.tag is None and c.classes and not c.ids and not c.attributes
            and not c.pseudo_elements
            for c in self.compounds
        )


def _read_balanced(text: str, pos: int) -> int:
    """Return the index after the parenthesized group opening at *pos*."""
    depth = 0
    i = pos
    while i < len(text):
        if text[i] == "(":
            depth += 1
        elif text[i] == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return len(text)


def parse_selector(text: str) -> SelectorInfo:
    """Tokenize a single (comma-free) selector."""
    info = SelectorInfo(text=text.strip())
    src = info.text
    current = Compound()
    pending: str | None = None
    i = 0

    def _flush() -> None:
        nonlocal current, pending
        if current.is_empty:
            return
        if info.compounds:
            info.combinators.append(pending or " ")
        info.compounds.append(current)
        current = Compound()
        pending = None

    while i < len(src):
        ch = src[i]
        if ch.isspace():
            _flush()
            i += 1
            continue
        if ch in ">+~":
            _flush()
            pending = ch
            i += 1
            continue
        if ch == "*":
            current.tag = "*"
            i += 1
            continue
        if ch in ".#":
            match = _IDENT_RE.match(src, i + 1)
            if not match:
                info.unparsed = True
                break
            (current.classes if ch == "." else current.ids).append(match.group(0))
            i = match.end()
            continue
        if ch == "[":
            end = src.find("]", i)
            if end == -1:
                info.unparsed = True
                break
            current.attributes.append(src[i + 1:end])
            i = end + 1
            continue
        if ch == ":":
            is_element = src.startswith("::", i)
            start = i + (2 if is_element else 1)
            match = _IDENT_RE.match(src, start)
            if not match:
                info.unparsed = True
                break
            name = match.group(0).lower()
            i = match.end()
            arg = None
            if i < len(src) and src[i] == "(":
                end = _read_balanced(src, i)
                arg = src[i + 1:end - 1]
                i = end
            if is_element or name in LEGACY_PSEUDO_ELEMENTS:
                current.pseudo_elements.append(name)
            else:
                current.pseudo_classes.append((name, arg))
            continue
        match = _IDENT_RE.match(src, i)
        if match and current.tag is None and current.is_empty:
            current.tag = match.group(0).lower()
            i = match.end()
            continue
        info.unparsed = True
        break

    _flush()
    if pending is not None or not info.compounds:
        info.unparsed = True
    return info


def _compound_part(compound: Compound) -> str:
    if compound.classes:
        return "-".join(compound.classes)
    tag = compound.tag or ""
    return _TAG_ALIASES.get(tag, tag)


def flattened_class_name(info: SelectorInfo) -> str:
    """Derive the class name that stands in for a descendant/child chain.

    ``.card .title`` becomes ``card-title``; ``.links a`` becomes
    ``links-link``.
    """
    return "-".join(_compound_part(c) for c in info.compounds)
