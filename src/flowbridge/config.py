"""Conversion settings and the builder vocabulary table."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from flowbridge.errors import ConfigError


@dataclass(frozen=True)
class Breakpoint:
    """A target breakpoint and the media widths that map onto it."""

    key: str
    feature: str  # "max-width" or "min-width"
    width: int
    accepted: tuple[int, ...] = ()

    def matches(self, feature: str, width: int) -> bool:
        if feature != self.feature:
            return False
        return width == self.width or width in self.accepted

    @property
    def query(self) -> str:
        return f"({self.feature}: {self.width}px)"


DEFAULT_BREAKPOINTS: tuple[Breakpoint, ...] = (
    Breakpoint("medium", "max-width", 991, (992,)),
    Breakpoint("small", "max-width", 767, (768,)),
    Breakpoint("tiny", "max-width", 479, (478, 480)),
    Breakpoint("xl", "min-width", 1280),
    Breakpoint("xxl", "min-width", 1440),
    Breakpoint("xxxl", "min-width", 1920),
)

DEFAULT_PSEUDO_STATES = frozenset({
    "hover",
    "focus",
    "focus-visible",
    "focus-within",
    "active",
    "visited",
})

RESERVED_CLASS_NAMES = frozenset({
    "w-layout-grid", "w-layout-hflex", "w-layout-vflex",
    "w-container", "w-row", "w-col", "w-clearfix",
    "w-button", "w-slider", "w-slide", "w-nav", "w-nav-menu",
    "w-dropdown", "w-dropdown-toggle", "w-dropdown-list",
    "w-tab-menu", "w-tab-link", "w-tab-content", "w-tab-pane",
    "w-form", "w-input", "w-select", "w-checkbox", "w-radio",
    "w-richtext", "w-embed", "w-video", "w-background-video",
    "w-lightbox", "w-lightbox-thumbnail", "w-lightbox-group",
})

_UNSAFE_CLASS_CHARS_RE = re.compile(r"[^a-z0-9_-]+")

DEFAULT_ELEMENT_CLASSES: dict[str, str] = {
    "body": "wf-body",
    "h1": "heading-h1",
    "h2": "heading-h2",
    "h3": "heading-h3",
    "h4": "heading-h4",
    "h5": "heading-h5",
    "h6": "heading-h6",
    "p": "text-body",
    "a": "link",
    "section": "wf-section",
    "nav": "wf-nav",
    "header": "wf-header",
    "footer": "wf-footer",
    "main": "wf-main",
    "article": "wf-article",
    "aside": "wf-aside",
}


@dataclass(frozen=True)
class BridgeConfig:
    embed_hard_limit: int = 50_000
    embed_soft_limit: int = 40_000
    chunk_ceiling: int = 40_000
    max_depth: int = 50
    safe_depth: int = 30
    max_repair_passes: int = 5
    variable_depth: int = 5
    breakpoints: tuple[Breakpoint, ...] = DEFAULT_BREAKPOINTS
    pseudo_states: frozenset[str] = DEFAULT_PSEUDO_STATES
    reserved_prefixes: tuple[str, ...] = ("w-",)
    reserved_names: frozenset[str] = RESERVED_CLASS_NAMES
    rename_prefix: str = "custom-"
    element_classes: dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_ELEMENT_CLASSES)
    )

    def __post_init__(self) -> None:
        if self.embed_soft_limit > self.embed_hard_limit:
            raise ConfigError("embed_soft_limit must not exceed embed_hard_limit")
        if self.chunk_ceiling > self.embed_hard_limit:
            raise ConfigError("chunk_ceiling must not exceed embed_hard_limit")
        if self.safe_depth > self.max_depth:
            raise ConfigError("safe_depth must not exceed max_depth")

    @property
    def breakpoint_keys(self) -> frozenset[str]:
        return frozenset(bp.key for bp in self.breakpoints)

    def breakpoint(self, key: str) -> Breakpoint | None:
        for bp in self.breakpoints:
            if bp.key == key:
                return bp
        return None

    def variant_keys(self) -> frozenset[str]:
        """Every variant key a style may legally carry."""
        combined = {
            f"{bp}_{state}"
            for bp in self.breakpoint_keys
            for state in self.pseudo_states
        }
        return self.breakpoint_keys | self.pseudo_states | combined

    def split_state(self, class_name: str) -> tuple[str, str] | None:
        """Split a state-suffixed name like ``button:hover`` into its parts.

        Only a known pseudo-state counts as a suffix, so ``md:flex`` is a
        plain (malformed) class name and not a state of ``md``.
        """
        base, sep, state = class_name.partition(":")
        if not sep or state not in self.pseudo_states:
            return None
        return base, state

    def clean_class_name(self, class_name: str) -> str:
        """Lower-case *class_name* and fold unsafe characters into ``-``.

        ``Hero Title`` -> ``hero-title``, ``md:flex`` -> ``md-flex``. A
        pseudo-state suffix is kept; a valid name comes back unchanged.
        """
        parts = self.split_state(class_name)
        base = parts[0] if parts else class_name
        cleaned = _UNSAFE_CLASS_CHARS_RE.sub("-", base.lower()).strip("-") or "class"
        return f"{cleaned}:{parts[1]}" if parts else cleaned

    def is_reserved(self, class_name: str) -> bool:
        if class_name in self.reserved_names:
            return True
        return any(class_name.startswith(p) for p in self.reserved_prefixes)


def _breakpoint_from_dict(data: dict) -> Breakpoint:
    try:
        return Breakpoint(
            key=data["key"],
            feature=data["feature"],
            width=int(data["width"]),
            accepted=tuple(int(w) for w in data.get("accepted", ())),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid breakpoint entry {data!r}: {exc}") from exc


def config_from_dict(data: dict, base: BridgeConfig | None = None) -> BridgeConfig:
    """Overlay *data* on *base* (or the defaults)."""
    base = base or BridgeConfig()
    known = {f.name for f in fields(BridgeConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    overrides: dict = {}
    for key, value in data.items():
        if key == "breakpoints":
            overrides[key] = tuple(_breakpoint_from_dict(b) for b in value)
        elif key in ("pseudo_states", "reserved_names"):
            overrides[key] = frozenset(value)
        elif key == "reserved_prefixes":
            overrides[key] = tuple(value)
        elif key == "element_classes":
            overrides[key] = dict(value)
        else:
            overrides[key] = value
    return replace(base, **overrides)


def load_config(path: str | Path) -> BridgeConfig:
    """Read a JSON file of overrides and return the resulting config."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot read config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a JSON object")
    return config_from_dict(data)
