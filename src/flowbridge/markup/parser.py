"""HTML parser: builds a :class:`MarkupTree` with the stdlib HTMLParser."""

from __future__ import annotations

import re
from html.parser import HTMLParser

from flowbridge.errors import ParseError
from flowbridge.model.markup import MarkupTree, ParsedElement, TextLeaf

__all__ = ["parse_markup", "INLINE_ELEMENTS"]

# Elements whose content is collected into side channels instead of the tree.
_CAPTURED = frozenset({"style", "script", "title"})

# Elements dropped together with their content.
_DISCARDED = frozenset({"noscript", "template"})

# Elements dropped but whose children are kept.
_TRANSPARENT = frozenset({"html", "head"})

# Void-like elements that carry nothing for the document.
_DROPPED_VOID = frozenset({"meta", "link", "base"})

_PRESERVE_WHITESPACE = frozenset({"pre", "textarea"})

INLINE_ELEMENTS = frozenset({
    "a", "abbr", "b", "code", "em", "i", "label", "mark", "small",
    "span", "strong", "sub", "sup", "u",
})

_WS_RE = re.compile(r"\s+")


class _TreeBuilder(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tree = MarkupTree()
        self._stack: list[ParsedElement] = []
        self._capture: str | None = None
        self._buffer: list[str] = []
        self._discard_depth = 0

    # -- helpers ---------------------------------------------------------

    def _siblings(self) -> list:
        return self._stack[-1].children if self._stack else self.tree.roots

    def _preserving(self) -> bool:
        return any(el.tag in _PRESERVE_WHITESPACE for el in self._stack)

    # -- HTMLParser callbacks --------------------------------------------

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self._capture:
            return
        if tag in _DISCARDED:
            self._discard_depth += 1
            return
        if self._discard_depth or tag in _TRANSPARENT or tag in _DROPPED_VOID:
            return
        attributes = {name: (value or "") for name, value in attrs}
        if tag in _CAPTURED:
            if tag == "script" and attributes.get("src"):
                return
            self._capture = tag
            self._buffer = []
            return
        classes = attributes.pop("class", "").split()
        element = ParsedElement(tag=tag, classes=list(dict.fromkeys(classes)), attributes=attributes)
        self._siblings().append(element)
        if not element.is_void:
            self._stack.append(element)

    def handle_endtag(self, tag: str) -> None:
        if self._capture:
            if tag == self._capture:
                self._finish_capture()
            return
        if tag in _DISCARDED:
            self._discard_depth = max(0, self._discard_depth - 1)
            return
        if self._discard_depth:
            return
        for i in range(len(self._stack) - 1, -1, -1):
            if self._stack[i].tag == tag:
                del self._stack[i:]
                return

    def handle_data(self, data: str) -> None:
        if self._capture:
            self._buffer.append(data)
            return
        if self._discard_depth:
            return
        siblings = self._siblings()
        if not self._preserving():
            data = _WS_RE.sub(" ", data)
            if not data.strip():
                previous = siblings[-1] if siblings else None
                if not (isinstance(previous, ParsedElement) and previous.tag in INLINE_ELEMENTS):
                    return
        if siblings and isinstance(siblings[-1], TextLeaf):
            siblings[-1].text += data
        else:
            siblings.append(TextLeaf(data))

    def _finish_capture(self) -> None:
        content = "".join(self._buffer)
        if self._capture == "style":
            self.tree.styles.append(content)
        elif self._capture == "script":
            if content.strip():
                self.tree.scripts.append(content)
        elif self._capture == "title":
            self.tree.title = content.strip()
        self._capture = None
        self._buffer = []

    def close(self) -> None:
        super().close()
        if self._capture:
            self._finish_capture()


def _strip_edges(tree: MarkupTree) -> None:
    """Trim leading and trailing whitespace of block-level text runs."""
    for element, _ in tree.walk():
        if element.tag in INLINE_ELEMENTS or element.tag in _PRESERVE_WHITESPACE:
            continue
        children = element.children
        if children and isinstance(children[0], TextLeaf):
            children[0].text = children[0].text.lstrip()
        if children and isinstance(children[-1], TextLeaf):
            children[-1].text = children[-1].text.rstrip()
        element.children = [
            c for c in children if not (isinstance(c, TextLeaf) and not c.text)
        ]
    tree.roots = [
        r for r in tree.roots if not (isinstance(r, TextLeaf) and not r.text.strip())
    ]


def parse_markup(html: str) -> MarkupTree:
    """Parse an HTML document or fragment.

    ``<style>``, inline ``<script>`` and ``<title>`` contents are collected on
    the tree instead of becoming elements; ``<html>`` and ``<head>`` wrappers
    are dropped. Unbalanced end tags close up to the nearest matching open
    element and are otherwise ignored.
    """
    builder = _TreeBuilder()
    try:
        builder.feed(html)
        builder.close()
    except (AssertionError, ValueError) as exc:
        raise ParseError(f"Cannot parse markup: {exc}") from exc
    tree = builder.tree
    _strip_edges(tree)
    return tree
