"""Class index: fold native rules into per-class base and variant maps."""

from __future__ import annotations

from typing import Iterable

from flowbridge.config import BridgeConfig
from flowbridge.model.css import ClassIndexEntry, NativeRule
from flowbridge.stylesheet.declarations import expand_shorthand
from flowbridge.stylesheet.selectors import flattened_class_name, parse_selector

__all__ = ["build_class_index", "variant_key", "class_target"]


def variant_key(breakpoint: str | None, state: str | None) -> str | None:
    """Compose a variant key: ``medium``, ``hover`` or ``medium_hover``."""
    if breakpoint and state:
        return f"{breakpoint}_{state}"
    return breakpoint or state


def class_target(selector: str, config: BridgeConfig) -> tuple[str, str | None] | None:
    """Return ``(class_name, state)`` for a natively representable selector."""
    info = parse_selector(selector)
    if info.is_single_class:
        name = info.last.classes[0]
    elif info.is_class_chain:
        name = flattened_class_name(info)
    else:
        return None
    states = info.states(config.pseudo_states)
    if states is None or len(states) > 1:
        return None
    return name, (states[0] if states else None)


def build_class_index(
    rules: Iterable[NativeRule], config: BridgeConfig | None = None
) -> dict[str, ClassIndexEntry]:
    """Build the class index from native rules, in source order.

    Later declarations override earlier ones per property. Shorthands are
    expanded so that a later longhand overrides part of an earlier shorthand.
    Rules whose selector is not a class target are ignored.
    """
    config = config or BridgeConfig()
    index: dict[str, ClassIndexEntry] = {}
    for rule in rules:
        target = class_target(rule.selector, config)
        if target is None:
            continue
        name, state = target
        entry = index.setdefault(name, ClassIndexEntry(name=name))
        expanded: dict[str, str] = {}
        for prop, value in rule.declarations.items():
            for long_prop, long_value in expand_shorthand(prop, value).items():
                expanded.pop(long_prop, None)
                expanded[long_prop] = long_value
        entry.merge(expanded, variant_key(rule.breakpoint, state))
        if rule.selector not in entry.selectors:
            entry.selectors.append(rule.selector)
    return index
