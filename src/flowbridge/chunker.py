"""Embed chunker: split oversized CSS/JS/HTML embeds at safe boundaries.

Content is cut into atomic units (CSS rules, JS statements, top-level HTML
elements) that are then packed greedily into chunks no larger than the
ceiling. Nothing is trimmed or re-joined with separators, so the chunks
concatenate back to the original text exactly.
"""

from __future__ import annotations

import re

from flowbridge.errors import SizeLimitExceeded
from flowbridge.model.embed import ChunkPlan, EmbedChunk, EmbedKind, byte_size
from flowbridge.model.markup import VOID_ELEMENTS

__all__ = ["DEFAULT_CEILING", "chunk_embed", "split_units", "ensure_within"]

DEFAULT_CEILING = 40_000

_HTML_TOKEN_RE = re.compile(
    r"<!--.*?-->|<(?P<close>/?)(?P<tag>[a-zA-Z][\w:-]*)(?P<rest>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>",
    re.DOTALL,
)

_RAW_TEXT_ELEMENTS = frozenset({"script", "style", "textarea", "title"})


def _skip_quoted(content: str, pos: int) -> int:
    quote = content[pos]
    i = pos + 1
    while i < len(content):
        if content[i] == "\\":
            i += 2
            continue
        if content[i] == quote:
            return i + 1
        i += 1
    return len(content)


def _css_units(content: str) -> list[str]:
    units: list[str] = []
    start = depth = i = 0
    n = len(content)
    while i < n:
        ch = content[i]
        if ch in "\"'":
            i = _skip_quoted(content, i)
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
            if depth == 0:
                units.append(content[start:i + 1])
                start = i + 1
        elif ch == ";" and depth == 0:
            units.append(content[start:i + 1])
            start = i + 1
        i += 1
    if start < n:
        units.append(content[start:])
    return units


def _block_ends_line(content: str, pos: int) -> bool:
    j = pos + 1
    while j < len(content) and content[j] in " \t":
        j += 1
    return j >= len(content) or content[j] in "\r\n"


def _js_units(content: str) -> list[str]:
    units: list[str] = []
    start = depth = i = 0
    n = len(content)
    while i < n:
        ch = content[i]
        if ch in "\"'`":
            i = _skip_quoted(content, i)
            continue
        if content.startswith("//", i):
            end = content.find("\n", i)
            i = n if end == -1 else end
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch in "{([":
            depth += 1
        elif ch in "})]":
            depth = max(0, depth - 1)
            if ch == "}" and depth == 0 and _block_ends_line(content, i):
                units.append(content[start:i + 1])
                start = i + 1
        elif ch == ";" and depth == 0:
            units.append(content[start:i + 1])
            start = i + 1
        i += 1
    if start < n:
        units.append(content[start:])
    return units


def _html_units(content: str) -> list[str]:
    units: list[str] = []
    start = depth = pos = 0
    while True:
        match = _HTML_TOKEN_RE.search(content, pos)
        if not match:
            break
        pos = match.end()
        tag = (match.group("tag") or "").lower()
        if match.group(0).startswith("<!--"):
            ends_unit = depth == 0
        elif match.group("close"):
            depth = max(0, depth - 1)
            ends_unit = depth == 0
        elif tag in VOID_ELEMENTS or match.group("rest").rstrip().endswith("/"):
            ends_unit = depth == 0
        else:
            if tag in _RAW_TEXT_ELEMENTS:
                closing = re.search(rf"</{tag}\s*>", content[pos:], re.IGNORECASE)
                if closing:
                    pos += closing.end()
                    ends_unit = depth == 0
                else:
                    pos = len(content)
                    ends_unit = True
            else:
                depth += 1
                ends_unit = False
        if ends_unit:
            units.append(content[start:pos])
            start = pos
    if start < len(content):
        units.append(content[start:])
    return units


def split_units(content: str, kind: EmbedKind) -> list[str]:
    """Cut *content* into atomic units for *kind*."""
    if kind is EmbedKind.CSS:
        return _css_units(content)
    if kind is EmbedKind.JS:
        return _js_units(content)
    return _html_units(content)


def _instructions(kind: EmbedKind, chunks: list[EmbedChunk], total: int) -> list[str]:
    lines = [
        f"{kind.value.upper()} embed split into {len(chunks)} parts ({total} bytes total)",
        "Copy each part to a separate custom code block, in order:",
    ]
    for chunk in chunks:
        note = " (over limit)" if chunk.over_limit else ""
        lines.append(f"  Part {chunk.index + 1}/{len(chunks)}: {chunk.size} bytes{note}")
    return lines


def chunk_embed(
    content: str, kind: EmbedKind | str, ceiling: int = DEFAULT_CEILING
) -> ChunkPlan:
    """Split *content* into chunks of at most *ceiling* UTF-8 bytes.

    A unit that alone exceeds the ceiling becomes its own chunk flagged
    ``over_limit``; for JS such a statement is first split on newlines.
    """
    kind = EmbedKind(kind)
    total = byte_size(content)
    if total <= ceiling:
        chunk = EmbedChunk(index=0, content=content, size=total, kind=kind)
        return ChunkPlan(kind=kind, chunks=[chunk], was_chunked=False, original_size=total, ceiling=ceiling)

    units: list[str] = []
    for unit in split_units(content, kind):
        if kind is EmbedKind.JS and byte_size(unit) > ceiling:
            units.extend(unit.splitlines(keepends=True))
        else:
            units.append(unit)

    pieces: list[str] = []
    current = ""
    current_size = 0
    for unit in units:
        size = byte_size(unit)
        if current and current_size + size <= ceiling:
            current += unit
            current_size += size
            continue
        if current:
            pieces.append(current)
        current, current_size = unit, size
        if size > ceiling:
            pieces.append(current)
            current, current_size = "", 0
    if current:
        pieces.append(current)

    chunks = [
        EmbedChunk(index=i, content=piece, size=byte_size(piece), kind=kind,
                   over_limit=byte_size(piece) > ceiling)
        for i, piece in enumerate(pieces)
    ]
    return ChunkPlan(
        kind=kind,
        chunks=chunks,
        was_chunked=len(chunks) > 1,
        original_size=total,
        ceiling=ceiling,
        instructions=_instructions(kind, chunks, total),
    )


def ensure_within(plan: ChunkPlan, hard_limit: int) -> None:
    """Raise :class:`SizeLimitExceeded` for the first chunk above *hard_limit*."""
    for chunk in plan.chunks:
        if chunk.size > hard_limit:
            raise SizeLimitExceeded(plan.kind.value, chunk.index, chunk.size, hard_limit)
