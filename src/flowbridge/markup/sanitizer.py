"""String-level cleanup of raw HTML destined for embed blocks."""

from __future__ import annotations

import re

__all__ = ["sanitize_embed_html", "find_embed_hazards"]

_SHELL_TAG_RE = re.compile(r"<!doctype[^>]*>|</?(?:html|head|body)(?:\s[^>]*)?>", re.IGNORECASE)

_HANDLER_RE = re.compile(
    r"""\s+on[a-z]+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
    re.IGNORECASE,
)

_TAG_RE = re.compile(r"<[a-zA-Z][^>]*>")

_BREAK_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)

# An inline element whose text is interrupted by one or more line breaks.
_INLINE_BREAK_RE = re.compile(
    r"<(?P<tag>span|a|strong|em|i|b)(?P<attrs>(?:\s[^>]*)?)>"
    r"(?P<inner>[^<]*(?:<br\s*/?>[^<]*)+)</(?P=tag)>",
    re.IGNORECASE,
)


def _has_text(match: re.Match) -> bool:
    return any(part.strip() for part in _BREAK_RE.split(match.group("inner")))


def _split_inline(match: re.Match) -> str:
    if not _has_text(match):
        return match.group(0)
    tag, attrs = match.group("tag"), match.group("attrs")
    parts = []
    for i, segment in enumerate(_BREAK_RE.split(match.group("inner"))):
        if i:
            parts.append("<br>")
        if segment.strip():
            parts.append(f"<{tag}{attrs}>{segment}</{tag}>")
    return "".join(parts)


def _splittable(html: str) -> list[re.Match]:
    return [m for m in _INLINE_BREAK_RE.finditer(html) if _has_text(m)]


def find_embed_hazards(html: str) -> list[str]:
    """Describe the constructs :func:`sanitize_embed_html` would rewrite."""
    hazards = []
    if _SHELL_TAG_RE.search(html):
        hazards.append("document shell tags")
    if any(_HANDLER_RE.search(tag) for tag in _TAG_RE.findall(html)):
        hazards.append("inline event handlers")
    if _splittable(html):
        hazards.append("line breaks inside inline elements")
    return hazards


def sanitize_embed_html(html: str) -> tuple[str, list[str]]:
    """Remove constructs known to break the target builder.

    Strips ``<!doctype>``, ``<html>``, ``<head>`` and ``<body>`` tags (their
    content stays), removes ``on*=`` event-handler attributes, and splits
    ``<span>A<br>B</span>`` into ``<span>A</span><br><span>B</span>`` at
    every break. An inline element holding only breaks and whitespace is
    left as it is.
    Returns the new markup and one change line per kind of fix. Applying it
    to its own output changes nothing.
    """
    changes: list[str] = []

    result, count = _SHELL_TAG_RE.subn("", html)
    if count:
        changes.append(f"Removed {count} document shell tag(s)")

    count = 0

    def _strip_handlers(match: re.Match) -> str:
        nonlocal count
        cleaned, n = _HANDLER_RE.subn("", match.group(0))
        count += n
        return cleaned

    result = _TAG_RE.sub(_strip_handlers, result)
    if count:
        changes.append(f"Removed {count} inline event handler(s)")

    total = 0
    while True:
        splittable = len(_splittable(result))
        if not splittable:
            break
        total += splittable
        result = _INLINE_BREAK_RE.sub(_split_inline, result)
    if total:
        changes.append(f"Split {total} inline element(s) around line breaks")

    return result, changes
