"""Stylesheet parsing, media queries, selectors and the class index."""

from flowbridge.stylesheet.class_index import build_class_index, class_target, variant_key
from flowbridge.stylesheet.declarations import (
    expand_shorthand,
    format_style_less,
    parse_declarations,
    resolve_variables,
)
from flowbridge.stylesheet.media import map_breakpoint, parse_media_query
from flowbridge.stylesheet.parser import parse_stylesheet
from flowbridge.stylesheet.selectors import parse_selector
from flowbridge.stylesheet.tokens import TokenManifest, load_token_manifest, parse_token_manifest

__all__ = [
    "parse_stylesheet",
    "parse_declarations",
    "resolve_variables",
    "expand_shorthand",
    "format_style_less",
    "parse_media_query",
    "map_breakpoint",
    "parse_selector",
    "build_class_index",
    "class_target",
    "variant_key",
    "TokenManifest",
    "load_token_manifest",
    "parse_token_manifest",
]
