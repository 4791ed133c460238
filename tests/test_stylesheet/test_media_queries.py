"""Tests for media query parsing and breakpoint mapping."""

import pytest

from flowbridge.config import BridgeConfig, Breakpoint
from flowbridge.errors import MediaQueryError
from flowbridge.model.css import MediaFeature
from flowbridge.stylesheet.media import map_breakpoint, parse_media_query


# ---------------------------------------------------------------------------
# parse_media_query
# ---------------------------------------------------------------------------


class TestParseMediaQuery:
    def test_feature_only(self):
        [query] = parse_media_query("(max-width: 767px)")
        assert query.media_type is None
        assert query.modifier is None
        assert query.features == (MediaFeature("max-width", "767px"),)

    def test_typed_query_with_modifier(self):
        [query] = parse_media_query("only screen and (min-width: 1280px)")
        assert query.modifier == "only"
        assert query.media_type == "screen"
        assert query.features == (MediaFeature("min-width", "1280px"),)

    def test_bare_feature(self):
        [query] = parse_media_query("(hover)")
        assert query.features == (MediaFeature("hover"),)

    def test_query_list(self):
        queries = parse_media_query("print, (max-width: 479px)")
        assert len(queries) == 2
        assert queries[0].media_type == "print"

    def test_case_insensitive_keywords(self):
        [query] = parse_media_query("NOT Print AND (color)")
        assert query.modifier == "not"
        assert query.media_type == "print"

    def test_range_syntax_rejected(self):
        with pytest.raises(MediaQueryError):
            parse_media_query("(width >= 600px)")


# ---------------------------------------------------------------------------
# map_breakpoint
# ---------------------------------------------------------------------------


class TestMapBreakpoint:
    @pytest.mark.parametrize(
        "query,key",
        [
            ("(max-width: 991px)", "medium"),
            ("(max-width: 767px)", "small"),
            ("(max-width: 479px)", "tiny"),
            ("(min-width: 1280px)", "xl"),
            ("(min-width: 1440px)", "xxl"),
            ("(min-width: 1920px)", "xxxl"),
            ("all and (max-width: 767px)", "small"),
        ],
    )
    def test_standard_widths(self, query, key):
        match = map_breakpoint(query)
        assert match is not None
        assert match.key == key
        assert not match.was_rounded

    def test_accepted_neighbour_width(self):
        match = map_breakpoint("(max-width: 768px)")
        assert match.key == "small"
        assert match.was_rounded

    def test_em_units(self):
        match = map_breakpoint("(max-width: 30em)")
        assert match.key == "tiny"
        assert match.width == 480

    def test_nonstandard_width(self):
        assert map_breakpoint("(max-width: 999px)") is None

    def test_wrong_feature_direction(self):
        assert map_breakpoint("(min-width: 767px)") is None

    @pytest.mark.parametrize(
        "query",
        [
            "screen and (max-width: 767px)",
            "print",
            "(orientation: landscape)",
            "(min-width: 480px) and (max-width: 767px)",
            "not all and (max-width: 767px)",
            "(max-width: 767px), (min-width: 1280px)",
            "(width <= 767px)",
        ],
    )
    def test_nonstandard_shapes(self, query):
        assert map_breakpoint(query) is None

    def test_custom_breakpoint_table(self):
        config = BridgeConfig(breakpoints=(Breakpoint("wide", "min-width", 2000),))
        assert map_breakpoint("(min-width: 2000px)", config).key == "wide"
        assert map_breakpoint("(max-width: 767px)", config) is None
