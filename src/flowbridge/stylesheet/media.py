"""Media query parsing and breakpoint mapping.

Queries are parsed with a small LALR grammar (``media.lark``). Anything the
grammar rejects, such as range syntax ``(width >= 600px)``, is reported as
:class:`MediaQueryError` and treated as a non-standard query.
"""

from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

from flowbridge.config import BridgeConfig
from flowbridge.errors import MediaQueryError
from flowbridge.model.css import BreakpointMatch, MediaFeature, MediaQuery

__all__ = ["parse_media_query", "map_breakpoint"]

GRAMMAR_PATH = Path(__file__).parent / "media.lark"

_WIDTH_RE = re.compile(r"^(?P<number>\d+(?:\.\d+)?)\s*(?P<unit>px|em|rem)?$", re.IGNORECASE)

_WIDTH_FEATURES = ("max-width", "min-width")


class _MediaTransformer(Transformer):
    def query_list(self, items: list) -> list[MediaQuery]:
        return list(items)

    def typed_query(self, items: list) -> MediaQuery:
        modifier = None
        if not isinstance(items[0], Token):
            modifier = items.pop(0)
        media_type = str(items[0]).lower()
        features = tuple(i for i in items[1:] if isinstance(i, MediaFeature))
        return MediaQuery(media_type=media_type, modifier=modifier, features=features)

    def feature_query(self, items: list) -> MediaQuery:
        return MediaQuery(features=tuple(items))

    def modifier(self, items: list) -> str:
        return str(items[0]).lower()

    def valued_feature(self, items: list) -> MediaFeature:
        name, value = items
        return MediaFeature(name=str(name).lower(), value=str(value).strip())

    def bare_feature(self, items: list) -> MediaFeature:
        return MediaFeature(name=str(items[0]).lower())


@lru_cache(maxsize=1)
def _get_parser() -> Lark:
    return Lark(
        GRAMMAR_PATH.read_text(encoding="utf-8"),
        parser="lalr",
        start="start",
    )


def parse_media_query(text: str) -> list[MediaQuery]:
    """Parse a media query list into :class:`MediaQuery` records."""
    try:
        tree = _get_parser().parse(text.strip())
    except LarkError as exc:
        raise MediaQueryError(text, str(exc).splitlines()[0]) from exc
    result = _MediaTransformer().transform(tree)
    if isinstance(result, MediaQuery):
        return [result]
    return result


def _width_in_px(value: str) -> float | None:
    match = _WIDTH_RE.match(value.strip())
    if not match:
        return None
    number = float(match.group("number"))
    unit = (match.group("unit") or "px").lower()
    if unit in ("em", "rem"):
        number *= 16
    return number


def map_breakpoint(query: str, config: BridgeConfig | None = None) -> BreakpointMatch | None:
    """Map a media query onto one of the configured breakpoints.

    A query is standard only when it is a single query with no media type
    (or ``all``) and exactly one ``max-width``/``min-width`` feature whose
    width is accepted by a configured breakpoint. Returns ``None`` for
    everything else.
    """
    config = config or BridgeConfig()
    try:
        queries = parse_media_query(query)
    except MediaQueryError:
        return None
    if len(queries) != 1:
        return None
    parsed = queries[0]
    if parsed.modifier == "not":
        return None
    if parsed.media_type not in (None, "all"):
        return None
    if len(parsed.features) != 1:
        return None
    feature = parsed.features[0]
    if feature.name not in _WIDTH_FEATURES or feature.value is None:
        return None
    px = _width_in_px(feature.value)
    if px is None:
        return None
    width = round(px)
    for bp in config.breakpoints:
        if bp.matches(feature.name, width):
            return BreakpointMatch(
                key=bp.key,
                feature=feature.name,
                width=width,
                was_rounded=(width != bp.width or px != width),
            )
    return None
