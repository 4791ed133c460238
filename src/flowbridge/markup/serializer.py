"""Serialize markup trees back to HTML."""

from __future__ import annotations

from html import escape
from typing import Iterable

from flowbridge.model.markup import VOID_ELEMENTS, Child, TextLeaf

__all__ = ["serialize", "render_start_tag"]


def render_start_tag(
    tag: str, classes: Iterable[str] = (), attributes: Iterable[tuple[str, str]] = ()
) -> str:
    parts = [tag]
    class_list = list(classes)
    if class_list:
        parts.append(f'class="{escape(" ".join(class_list))}"')
    for name, value in attributes:
        parts.append(f'{name}="{escape(value)}"' if value != "" else name)
    return "<" + " ".join(parts) + ">"


def serialize(nodes: Child | list[Child]) -> str:
    """Render one node or a list of nodes as HTML.

    Iterative, so arbitrarily deep trees do not hit the recursion limit.
    """
    if not isinstance(nodes, list):
        nodes = [nodes]
    out: list[str] = []
    stack: list[Child | str] = list(reversed(nodes))
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, TextLeaf):
            out.append(escape(item.text, quote=False))
        else:
            out.append(render_start_tag(item.tag, item.classes, item.attributes.items()))
            if item.tag in VOID_ELEMENTS:
                continue
            stack.append(f"</{item.tag}>")
            stack.extend(reversed(item.children))
    return "".join(out)
