"""Markup tree model produced by the HTML parser and the normalizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})


@dataclass
class TextLeaf:
    text: str


@dataclass
class ParsedElement:
    tag: str
    classes: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    children: list[Child] = field(default_factory=list)

    @property
    def is_void(self) -> bool:
        return self.tag in VOID_ELEMENTS

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def elements(self) -> Iterator[ParsedElement]:
        """Yield this element's element children."""
        for child in self.children:
            if isinstance(child, ParsedElement):
                yield child

    def text_content(self) -> str:
        parts: list[str] = []
        stack: list[Child] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, TextLeaf):
                parts.append(item.text)
            else:
                stack.extend(reversed(item.children))
        return "".join(parts)


Child = Union[ParsedElement, TextLeaf]


@dataclass
class MarkupTree:
    """Top-level content of a markup fragment or document."""

    roots: list[Child] = field(default_factory=list)
    styles: list[str] = field(default_factory=list)
    scripts: list[str] = field(default_factory=list)
    title: str = ""

    def walk(self) -> Iterator[tuple[ParsedElement, tuple[ParsedElement, ...]]]:
        """Yield every element with its ancestor chain (outermost first)."""
        stack: list[tuple[Child, tuple[ParsedElement, ...]]] = [
            (root, ()) for root in reversed(self.roots)
        ]
        while stack:
            item, ancestors = stack.pop()
            if not isinstance(item, ParsedElement):
                continue
            yield item, ancestors
            path = ancestors + (item,)
            for child in reversed(item.children):
                stack.append((child, path))

    def clone(self) -> MarkupTree:
        """Deep copy of the tree, built with an explicit stack."""
        roots = [_shallow_copy(root) for root in self.roots]
        stack: list[tuple[Child, Child]] = list(zip(self.roots, roots))
        while stack:
            source, copy = stack.pop()
            if isinstance(source, ParsedElement) and isinstance(copy, ParsedElement):
                copy.children = [_shallow_copy(child) for child in source.children]
                stack.extend(zip(source.children, copy.children))
        return MarkupTree(
            roots=roots, styles=list(self.styles), scripts=list(self.scripts), title=self.title
        )


def _shallow_copy(item: Child) -> Child:
    if isinstance(item, TextLeaf):
        return TextLeaf(item.text)
    return ParsedElement(tag=item.tag, classes=list(item.classes), attributes=dict(item.attributes))
