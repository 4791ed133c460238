"""Markup normalizer: make element-level CSS expressible as classes.

The builder can only attach styles to class names, so selectors that target
elements by tag or by position in the tree are rewritten onto synthesized
classes, and those classes are injected into every element the original
selector matched.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from flowbridge.config import BridgeConfig
from flowbridge.model.css import CSSRule, RuleSource, Stylesheet
from flowbridge.model.markup import Child, MarkupTree, ParsedElement, TextLeaf
from flowbridge.stylesheet.selectors import (
    Compound,
    SelectorInfo,
    flattened_class_name,
    parse_selector,
)

__all__ = ["NormalizedMarkup", "normalize"]

_BREAKABLE_INLINE = frozenset({"span", "a", "strong", "em", "b", "i"})


@dataclass
class NormalizedMarkup:
    tree: MarkupTree
    stylesheet: Stylesheet
    rewrites: dict[str, str] = field(default_factory=dict)
    injected: dict[str, int] = field(default_factory=dict)
    split_breaks: int = 0


def _suffix(compound: Compound) -> str:
    parts = []
    for name, arg in compound.pseudo_classes:
        parts.append(f":{name}" if arg is None else f":{name}({arg})")
    parts.extend(f"::{name}" for name in compound.pseudo_elements)
    return "".join(parts)


def _compound_matches(compound: Compound, element: ParsedElement) -> bool:
    if compound.tag and compound.tag != "*" and compound.tag != element.tag:
        return False
    return all(name in element.classes for name in compound.classes)


def _chain_matches(
    info: SelectorInfo,
    element: ParsedElement,
    ancestors: tuple[ParsedElement, ...],
    position: int | None = None,
) -> bool:
    """Right-to-left match of a descendant/child chain with backtracking."""
    if position is None:
        position = len(info.compounds) - 1
    if not _compound_matches(info.compounds[position], element):
        return False
    if position == 0:
        return True
    combinator = info.combinators[position - 1]
    if combinator == ">":
        if not ancestors:
            return False
        return _chain_matches(info, ancestors[-1], ancestors[:-1], position - 1)
    for i in range(len(ancestors) - 1, -1, -1):
        if _chain_matches(info, ancestors[i], ancestors[:i], position - 1):
            return True
    return False


def _is_flattenable_chain(info: SelectorInfo) -> bool:
    if info.unparsed or len(info.compounds) < 2:
        return False
    if any(comb not in (" ", ">") for comb in info.combinators):
        return False
    for i, compound in enumerate(info.compounds):
        is_last = i == len(info.compounds) - 1
        if compound.ids or compound.attributes or compound.tag == "*":
            return False
        if not (compound.tag or compound.classes):
            return False
        if not is_last and (compound.pseudo_classes or compound.pseudo_elements):
            return False
    return True


class _Normalizer:
    def __init__(self, tree: MarkupTree, config: BridgeConfig) -> None:
        self.tree = tree
        self.config = config
        self.injected: dict[str, int] = {}
        self._wrapped_body = False

    def _inject(self, element: ParsedElement, class_name: str) -> None:
        if class_name not in element.classes:
            element.add_class(class_name)
            self.injected[class_name] = self.injected.get(class_name, 0) + 1

    def _tag_class(self, tag: str) -> str:
        return self.config.element_classes.get(tag, f"el-{tag}")

    def _assign_tag(self, tag: str, class_name: str) -> None:
        matched = False
        for element, _ in self.tree.walk():
            if element.tag == tag:
                self._inject(element, class_name)
                matched = True
        if tag == "body" and not matched and not self._wrapped_body:
            wrapper = ParsedElement(tag="div", children=list(self.tree.roots))
            self._inject(wrapper, class_name)
            self.tree.roots = [wrapper]
            self._wrapped_body = True

    def rewrite(self, selector: str) -> str:
        info = parse_selector(selector)
        if info.unparsed:
            return selector
        if len(info.compounds) == 1:
            compound = info.compounds[0]
            if compound.ids or compound.attributes or compound.tag in (None, "*", "html"):
                return selector
            if compound.classes:
                # tag.class: the class alone carries the style.
                return "." + ".".join(compound.classes) + _suffix(compound)
            class_name = self._tag_class(compound.tag)
            self._assign_tag(compound.tag, class_name)
            return f".{class_name}{_suffix(compound)}"
        if not _is_flattenable_chain(info):
            return selector
        derived = flattened_class_name(info)
        for element, ancestors in self.tree.walk():
            if _chain_matches(info, element, ancestors):
                self._inject(element, derived)
        return f".{derived}{_suffix(info.last)}"


def _split_breaks(children: list[Child]) -> tuple[list[Child], int]:
    """Split inline elements holding text/<br>/text into sibling inlines."""
    result: list[Child] = []
    splits = 0
    for child in children:
        if not _is_breakable(child):
            result.append(child)
            continue
        splits += 1
        group: list[Child] = []
        for grandchild in child.children + [None]:
            if grandchild is None or (
                isinstance(grandchild, ParsedElement) and grandchild.tag == "br"
            ):
                if any(isinstance(g, TextLeaf) and g.text.strip() for g in group):
                    result.append(ParsedElement(
                        tag=child.tag,
                        classes=list(child.classes),
                        attributes=dict(child.attributes),
                        children=group,
                    ))
                if grandchild is not None:
                    result.append(grandchild)
                group = []
            else:
                group.append(grandchild)
    return result, splits


def _is_breakable(node: Child) -> bool:
    if not isinstance(node, ParsedElement) or node.tag not in _BREAKABLE_INLINE:
        return False
    has_break = False
    has_text = False
    for child in node.children:
        if isinstance(child, TextLeaf):
            has_text = has_text or bool(child.text.strip())
        elif child.tag == "br":
            has_break = True
        else:
            return False
    return has_break and has_text


def _split_all_breaks(tree: MarkupTree) -> int:
    total = 0
    tree.roots, count = _split_breaks(tree.roots)
    total += count
    for element, _ in list(tree.walk()):
        element.children, count = _split_breaks(element.children)
        total += count
    return total


def normalize(
    tree: MarkupTree, stylesheet: Stylesheet, config: BridgeConfig | None = None
) -> NormalizedMarkup:
    """Rewrite element-level selectors onto classes.

    Returns a new tree and stylesheet; the inputs are left untouched.
    Selector lists are split into one rule per selector. Selectors that
    cannot be expressed as classes (ids, attributes, sibling combinators,
    ``*``) are kept for the router to send to the embed.
    """
    config = config or BridgeConfig()
    new_tree = tree.clone()
    normalizer = _Normalizer(new_tree, config)
    rules: list[CSSRule] = []
    rewrites: dict[str, str] = {}

    for rule in stylesheet.rules:
        if rule.source in (RuleSource.AT_RULE, RuleSource.ROOT) or rule.at_rule:
            rules.append(rule)
            continue
        for selector in rule.selectors:
            rewritten = normalizer.rewrite(selector)
            if rewritten != selector:
                rewrites[selector] = rewritten
            rules.append(replace(rule, selector=rewritten))

    split_count = _split_all_breaks(new_tree)
    return NormalizedMarkup(
        tree=new_tree,
        stylesheet=Stylesheet(
            rules=rules,
            variables=dict(stylesheet.variables),
            warnings=list(stylesheet.warnings),
        ),
        rewrites=rewrites,
        injected=dict(normalizer.injected),
        split_breaks=split_count,
    )
