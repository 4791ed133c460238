"""Markup parsing, normalization, serialization and embed cleanup."""

from flowbridge.markup.normalizer import NormalizedMarkup, normalize
from flowbridge.markup.parser import parse_markup
from flowbridge.markup.sanitizer import find_embed_hazards, sanitize_embed_html
from flowbridge.markup.serializer import serialize

__all__ = [
    "parse_markup",
    "normalize",
    "NormalizedMarkup",
    "serialize",
    "sanitize_embed_html",
    "find_embed_hazards",
]
