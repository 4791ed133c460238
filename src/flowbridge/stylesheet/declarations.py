"""Declaration-level helpers: splitting, variables, shorthands, styleLess."""

from __future__ import annotations

import re

__all__ = [
    "parse_declarations",
    "resolve_variables",
    "expand_shorthand",
    "format_style_less",
    "parse_style_less",
    "strip_important",
    "SUPPORTED_PROPERTIES",
]

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)

# Outermost var() call: var(--name) or var(--name, fallback)
_VAR_RE = re.compile(r"var\(\s*(--[\w-]+)\s*(?:,\s*(?P<fallback>[^()]*(?:\([^()]*\)[^()]*)*))?\)")

_IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)

SUPPORTED_PROPERTIES = frozenset({
    "display", "flex-direction", "flex-wrap", "justify-content", "align-items",
    "align-content", "align-self", "flex", "flex-grow", "flex-shrink", "flex-basis",
    "order", "gap", "row-gap", "column-gap", "grid-row-gap", "grid-column-gap",
    "grid-template-columns", "grid-template-rows", "grid-template-areas",
    "grid-column", "grid-row", "grid-column-start", "grid-column-end",
    "grid-row-start", "grid-row-end", "grid-auto-rows", "grid-auto-columns",
    "grid-auto-flow", "grid-area",
    "width", "height", "min-width", "max-width", "min-height", "max-height",
    "aspect-ratio", "box-sizing",
    "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
    "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
    "position", "top", "right", "bottom", "left", "z-index", "float", "clear",
    "background", "background-color", "background-image", "background-size",
    "background-position", "background-repeat", "background-clip",
    "background-attachment",
    "color", "font", "font-family", "font-size", "font-weight", "font-style",
    "line-height", "letter-spacing", "word-spacing", "text-align",
    "text-decoration", "text-transform", "text-indent", "text-shadow",
    "white-space", "word-break", "overflow-wrap", "text-overflow",
    "border", "border-width", "border-style", "border-color",
    "border-top", "border-top-width", "border-top-style", "border-top-color",
    "border-right", "border-right-width", "border-right-style", "border-right-color",
    "border-bottom", "border-bottom-width", "border-bottom-style", "border-bottom-color",
    "border-left", "border-left-width", "border-left-style", "border-left-color",
    "border-radius", "border-top-left-radius", "border-top-right-radius",
    "border-bottom-right-radius", "border-bottom-left-radius",
    "opacity", "box-shadow", "filter", "mix-blend-mode",
    "overflow", "overflow-x", "overflow-y",
    "transform", "transform-origin",
    "visibility", "cursor", "pointer-events", "user-select",
    "list-style", "list-style-type", "list-style-position", "list-style-image",
    "object-fit", "object-position",
    "outline", "outline-width", "outline-style", "outline-color", "outline-offset",
})

# Shorthand -> longhands in top/right/bottom/left order.
_BOX_SHORTHANDS: dict[str, tuple[str, str, str, str]] = {
    "padding": ("padding-top", "padding-right", "padding-bottom", "padding-left"),
    "margin": ("margin-top", "margin-right", "margin-bottom", "margin-left"),
    "border-radius": (
        "border-top-left-radius",
        "border-top-right-radius",
        "border-bottom-right-radius",
        "border-bottom-left-radius",
    ),
}


def split_top_level(text: str, separator: str) -> list[str]:
    """Split *text* on *separator* outside parentheses and quotes."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False
    for ch in text:
        if quote:
            current.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == quote:
                quote = None
            continue
        if ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return parts


def _split_values(value: str) -> list[str]:
    """Split a value on whitespace outside parentheses."""
    tokens: list[str] = []
    current = ""
    depth = 0
    for ch in value:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        if ch.isspace() and depth == 0:
            if current:
                tokens.append(current)
                current = ""
            continue
        current += ch
    if current:
        tokens.append(current)
    return tokens


def parse_declarations(body: str) -> dict[str, str]:
    """Parse a declaration block body into an ordered property map.

    Property names are lowercased except custom properties. Empty or
    malformed declarations are skipped; a repeated property keeps its last
    value.
    """
    body = _COMMENT_RE.sub("", body)
    declarations: dict[str, str] = {}
    for chunk in split_top_level(body, ";"):
        prop, sep, value = chunk.partition(":")
        if not sep:
            continue
        prop = prop.strip()
        value = value.strip()
        if not prop or not value:
            continue
        if not prop.startswith("--"):
            prop = prop.lower()
        declarations.pop(prop, None)
        declarations[prop] = value
    return declarations


def strip_important(value: str) -> tuple[str, bool]:
    stripped = _IMPORTANT_RE.sub("", value)
    return stripped, stripped != value


def resolve_variables(
    value: str, variables: dict[str, str], max_depth: int = 5
) -> tuple[str, bool]:
    """Substitute ``var()`` references.

    Returns the resolved value and whether any reference stayed unresolved
    (no definition and no fallback, or nesting deeper than *max_depth*).
    """
    result = value
    for _ in range(max_depth):
        if "var(" not in result:
            return result, False
        unresolved = False

        def _substitute(match: re.Match) -> str:
            nonlocal unresolved
            name = match.group(1)
            if name in variables:
                return variables[name]
            fallback = match.group("fallback")
            if fallback is not None and fallback.strip():
                return fallback.strip()
            unresolved = True
            return match.group(0)

        replaced = _VAR_RE.sub(_substitute, result)
        if unresolved or replaced == result:
            return replaced, True
        result = replaced
    return result, "var(" in result


def expand_shorthand(prop: str, value: str) -> dict[str, str]:
    """Expand box, gap, flex and grid-placement shorthands into longhands.

    Values that cannot be expanded safely (for example ones containing
    ``var()`` or ``/`` in ``border-radius``) are returned unchanged.
    """
    if "var(" in value:
        return {prop: value}
    parts = _split_values(value)

    if prop in _BOX_SHORTHANDS:
        if prop == "border-radius" and "/" in value:
            return {prop: value}
        if not 1 <= len(parts) <= 4:
            return {prop: value}
        top = parts[0]
        right = parts[1] if len(parts) > 1 else top
        bottom = parts[2] if len(parts) > 2 else top
        left = parts[3] if len(parts) > 3 else right
        return dict(zip(_BOX_SHORTHANDS[prop], (top, right, bottom, left)))

    if prop == "gap":
        if not 1 <= len(parts) <= 2:
            return {prop: value}
        return {"row-gap": parts[0], "column-gap": parts[-1]}

    if prop == "flex":
        if parts == ["none"]:
            return {"flex-grow": "0", "flex-shrink": "0", "flex-basis": "auto"}
        if parts == ["auto"]:
            return {"flex-grow": "1", "flex-shrink": "1", "flex-basis": "auto"}
        if len(parts) == 1 and _is_number(parts[0]):
            return {"flex-grow": parts[0], "flex-shrink": "1", "flex-basis": "0%"}
        if len(parts) == 2 and all(_is_number(p) for p in parts):
            return {"flex-grow": parts[0], "flex-shrink": parts[1], "flex-basis": "0%"}
        if len(parts) == 3:
            return {"flex-grow": parts[0], "flex-shrink": parts[1], "flex-basis": parts[2]}
        return {prop: value}

    if prop in ("grid-column", "grid-row"):
        start, sep, end = value.partition("/")
        result = {f"{prop}-start": start.strip()}
        if sep:
            result[f"{prop}-end"] = end.strip()
        return result

    return {prop: value}


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def format_style_less(declarations: dict[str, str]) -> str:
    """Render declarations in the builder's ``prop: value;`` form."""
    return " ".join(f"{prop}: {value};" for prop, value in declarations.items())


def parse_style_less(style_less: str) -> dict[str, str]:
    return parse_declarations(style_less)
