"""Scanner-based stylesheet parser.

Splits CSS source into :class:`CSSRule` records while tracking brace depth,
quoted strings and comments, so that braces or semicolons inside strings
never end a block early. ``@media`` bodies are parsed into child rules that
remember their query; every other at-rule is kept verbatim.
"""

from __future__ import annotations

import re

from flowbridge.errors import ParseError
from flowbridge.model.css import CSSRule, RuleSource, Stylesheet
from flowbridge.stylesheet.declarations import parse_declarations

__all__ = ["parse_stylesheet"]

_AT_KEYWORD_RE = re.compile(r"@(?P<name>-?[A-Za-z][\w-]*)")

_ROOT_SELECTORS = frozenset({":root", ":host"})


class _Scanner:
    """Position helpers over one source string."""

    def __init__(self, src: str) -> None:
        self.src = src

    def location(self, pos: int) -> tuple[int, int]:
        line = self.src.count("\n", 0, pos) + 1
        column = pos - (self.src.rfind("\n", 0, pos) + 1) + 1
        return line, column

    def skip_string(self, pos: int) -> int:
        """Return the index just after the string literal opening at *pos*."""
        quote = self.src[pos]
        i = pos + 1
        while i < len(self.src):
            ch = self.src[i]
            if ch == "\\":
                i += 2
                continue
            if ch == quote:
                return i + 1
            i += 1
        line, column = self.location(pos)
        raise ParseError("Unterminated string literal", line, column)

    def skip_comment(self, pos: int) -> int:
        end = self.src.find("*/", pos + 2)
        return len(self.src) if end == -1 else end + 2

    def skip_trivia(self, pos: int, end: int) -> int:
        while pos < end:
            if self.src[pos].isspace():
                pos += 1
            elif self.src.startswith("/*", pos):
                pos = self.skip_comment(pos)
            else:
                break
        return pos

    def find_top_level(self, pos: int, end: int, targets: str) -> int | None:
        """Find the first of *targets* at nesting depth zero."""
        depth = 0
        i = pos
        while i < end:
            ch = self.src[i]
            if ch in "\"'":
                i = self.skip_string(i)
                continue
            if self.src.startswith("/*", i):
                i = self.skip_comment(i)
                continue
            if ch in targets and depth == 0:
                return i
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)
            i += 1
        return None

    def matching_brace(self, open_pos: int, end: int) -> int | None:
        depth = 0
        i = open_pos
        while i < end:
            ch = self.src[i]
            if ch in "\"'":
                i = self.skip_string(i)
                continue
            if self.src.startswith("/*", i):
                i = self.skip_comment(i)
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return None


def _has_nested_block(scanner: _Scanner, start: int, end: int) -> bool:
    return scanner.find_top_level(start, end, "{") is not None


def _scan(
    scanner: _Scanner,
    pos: int,
    end: int,
    sheet: Stylesheet,
    media: str | None = None,
) -> None:
    src = scanner.src
    while True:
        pos = scanner.skip_trivia(pos, end)
        if pos >= end:
            return
        line, _ = scanner.location(pos)

        if src[pos] == "}":
            sheet.warnings.append(f"Unexpected '}}' on line {line}")
            pos += 1
            continue

        if src[pos] == "@":
            pos = _scan_at_rule(scanner, pos, end, sheet, media)
            continue

        brace = scanner.find_top_level(pos, end, "{}")
        if brace is None or src[brace] == "}":
            stop = end if brace is None else brace
            sheet.warnings.append(
                f"Ignoring text without a declaration block on line {line}: "
                f"{src[pos:stop].strip()[:40]!r}"
            )
            if brace is None:
                return
            pos = brace + 1
            continue
        close = scanner.matching_brace(brace, end)
        if close is None:
            sheet.warnings.append(f"Unterminated block starting on line {line}")
            return

        selector = " ".join(src[pos:brace].split())
        body_start, body_end = brace + 1, close
        text = src[pos:close + 1]

        if _has_nested_block(scanner, body_start, body_end):
            sheet.rules.append(CSSRule(
                selector=selector,
                source=RuleSource.MEDIA if media else RuleSource.AT_RULE,
                media=media,
                at_rule="nested",
                text=text,
                line=line,
            ))
        else:
            declarations = parse_declarations(src[body_start:body_end])
            _collect_variables(declarations, sheet, media)
            sheet.rules.append(CSSRule(
                selector=selector,
                declarations=declarations,
                source=_source_for(selector, declarations, media),
                media=media,
                text=text,
                line=line,
            ))
        pos = close + 1


def _source_for(selector: str, declarations: dict[str, str], media: str | None) -> RuleSource:
    if media is not None:
        return RuleSource.MEDIA
    if selector in _ROOT_SELECTORS:
        return RuleSource.ROOT
    if declarations and all(p.startswith("--") for p in declarations):
        # Scoped root: a block that only defines custom properties.
        return RuleSource.ROOT
    return RuleSource.BASE


def _collect_variables(
    declarations: dict[str, str], sheet: Stylesheet, media: str | None
) -> None:
    if media is not None:
        return
    for prop, value in declarations.items():
        if prop.startswith("--"):
            sheet.variables.setdefault(prop, value)


def _scan_at_rule(
    scanner: _Scanner, pos: int, end: int, sheet: Stylesheet, media: str | None
) -> int:
    src = scanner.src
    line, _ = scanner.location(pos)
    match = _AT_KEYWORD_RE.match(src, pos)
    if not match:
        sheet.warnings.append(f"Malformed at-rule on line {line}")
        return pos + 1
    name = match.group("name").lower()

    stop = scanner.find_top_level(match.end(), end, ";{")
    if stop is None:
        sheet.warnings.append(f"Unterminated @{name} on line {line}")
        return end

    prelude = " ".join(src[match.end():stop].split())
    if src[stop] == ";":
        sheet.rules.append(CSSRule(
            selector=f"@{name} {prelude}".strip(),
            source=RuleSource.MEDIA if media else RuleSource.AT_RULE,
            media=media,
            at_rule=name,
            text=src[pos:stop + 1],
            line=line,
        ))
        return stop + 1

    close = scanner.matching_brace(stop, end)
    if close is None:
        sheet.warnings.append(f"Unterminated @{name} block on line {line}")
        return end

    if name == "media" and media is None:
        _scan(scanner, stop + 1, close, sheet, media=prelude)
    else:
        sheet.rules.append(CSSRule(
            selector=f"@{name} {prelude}".strip(),
            source=RuleSource.MEDIA if media else RuleSource.AT_RULE,
            media=media,
            at_rule=name,
            text=src[pos:close + 1],
            line=line,
        ))
    return close + 1


def parse_stylesheet(text: str, tokens: dict[str, str] | None = None) -> Stylesheet:
    """Parse CSS source into a :class:`Stylesheet`.

    *tokens* supplies design-token variables that apply wherever the
    stylesheet itself does not define the same custom property.

    Malformed blocks are skipped with a warning. Raises :class:`ParseError`
    only when a string literal is never closed.
    """
    sheet = Stylesheet()
    scanner = _Scanner(text)
    _scan(scanner, 0, len(text), sheet)
    if tokens:
        for name, value in tokens.items():
            sheet.variables.setdefault(name, value)
    return sheet
