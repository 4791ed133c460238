"""Tests for the stylesheet scanner and declaration helpers."""

import pytest

from flowbridge.errors import ParseError
from flowbridge.model.css import RuleSource
from flowbridge.stylesheet import parse_stylesheet
from flowbridge.stylesheet.declarations import (
    expand_shorthand,
    format_style_less,
    parse_declarations,
    parse_style_less,
    resolve_variables,
    split_top_level,
    strip_important,
)


# ---------------------------------------------------------------------------
# parse_stylesheet
# ---------------------------------------------------------------------------


class TestParseStylesheet:
    def test_simple_rules(self):
        sheet = parse_stylesheet(".a { color: red; } .b { margin: 0 }")
        assert [r.selector for r in sheet.rules] == [".a", ".b"]
        assert sheet.rules[0].declarations == {"color": "red"}
        assert sheet.rules[1].declarations == {"margin": "0"}
        assert all(r.source is RuleSource.BASE for r in sheet.rules)

    def test_rule_keeps_source_text_and_line(self):
        sheet = parse_stylesheet("\n\n.card {\n  padding: 4px;\n}")
        rule = sheet.rules[0]
        assert rule.text == ".card {\n  padding: 4px;\n}"
        assert rule.line == 3

    def test_braces_inside_strings_do_not_end_block(self):
        sheet = parse_stylesheet('.q::before { content: "}{;"; color: red; } .next { top: 0; }')
        assert [r.selector for r in sheet.rules] == [".q::before", ".next"]
        assert sheet.rules[0].declarations["content"] == '"}{;"'
        assert sheet.rules[0].declarations["color"] == "red"

    def test_comments_are_ignored(self):
        sheet = parse_stylesheet("/* header { */ .a { /* x: y; */ color: red; }")
        assert len(sheet.rules) == 1
        assert sheet.rules[0].declarations == {"color": "red"}

    def test_media_block_children_remember_query(self):
        css = "@media (max-width: 767px) { .a { color: red; } .b { color: blue; } }"
        sheet = parse_stylesheet(css)
        assert [r.selector for r in sheet.rules] == [".a", ".b"]
        assert all(r.source is RuleSource.MEDIA for r in sheet.rules)
        assert all(r.media == "(max-width: 767px)" for r in sheet.rules)
        assert sheet.media_queries == ["(max-width: 767px)"]

    def test_root_block_defines_variables(self):
        sheet = parse_stylesheet(":root { --brand: #ff0000; --gap: 8px; } .a { color: var(--brand); }")
        assert sheet.rules[0].source is RuleSource.ROOT
        assert sheet.variables == {"--brand": "#ff0000", "--gap": "8px"}

    def test_scoped_root_with_only_custom_properties(self):
        sheet = parse_stylesheet(".theme-dark { --bg: black; }")
        assert sheet.rules[0].source is RuleSource.ROOT
        assert sheet.variables["--bg"] == "black"

    def test_first_variable_definition_wins(self):
        sheet = parse_stylesheet(":root { --x: 1px; } .scope { --x: 2px; }")
        assert sheet.variables["--x"] == "1px"

    def test_tokens_fill_missing_variables_only(self):
        sheet = parse_stylesheet(":root { --x: 1px; }", tokens={"--x": "9px", "--y": "2px"})
        assert sheet.variables == {"--x": "1px", "--y": "2px"}

    def test_other_at_rules_kept_verbatim(self):
        css = "@keyframes spin { from { top: 0; } to { top: 10px; } } @import url(a.css);"
        sheet = parse_stylesheet(css)
        assert [r.at_rule for r in sheet.rules] == ["keyframes", "import"]
        assert sheet.rules[0].text.startswith("@keyframes spin {")
        assert sheet.rules[0].text.endswith("}")
        assert sheet.rules[1].text == "@import url(a.css);"
        assert all(r.source is RuleSource.AT_RULE for r in sheet.rules)

    def test_nested_at_rule_inside_media_stays_in_media(self):
        css = "@media (max-width: 767px) { @supports (display: grid) { .a { display: grid; } } }"
        sheet = parse_stylesheet(css)
        assert len(sheet.rules) == 1
        assert sheet.rules[0].at_rule == "supports"
        assert sheet.rules[0].source is RuleSource.MEDIA

    def test_native_nesting_is_marked(self):
        sheet = parse_stylesheet(".card { color: red; .title { color: blue; } }")
        assert sheet.rules[0].at_rule == "nested"
        assert sheet.rules[0].source is RuleSource.AT_RULE

    def test_unterminated_block_degrades_gracefully(self):
        sheet = parse_stylesheet(".ok { color: red; } .broken { color: blue;")
        assert [r.selector for r in sheet.rules] == [".ok"]
        assert any("Unterminated" in w for w in sheet.warnings)

    def test_stray_closing_brace_warns(self):
        sheet = parse_stylesheet("} .a { color: red; }")
        assert [r.selector for r in sheet.rules] == [".a"]
        assert sheet.warnings

    def test_unterminated_string_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_stylesheet('.a { content: "never closed; }')
        assert exc_info.value.line == 1

    def test_selector_list_split(self):
        sheet = parse_stylesheet(".a, .b:is(.c, .d) { color: red; }")
        assert sheet.rules[0].selectors == [".a", ".b:is(.c, .d)"]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


class TestParseDeclarations:
    def test_lowercases_properties_but_not_custom_properties(self):
        assert parse_declarations("COLOR: Red; --Brand-Color: blue") == {
            "color": "Red",
            "--Brand-Color": "blue",
        }

    def test_semicolons_in_parens_and_strings(self):
        decls = parse_declarations('background: url("a;b.png"); font-family: "x;y", serif')
        assert decls["background"] == 'url("a;b.png")'
        assert decls["font-family"] == '"x;y", serif'

    def test_last_value_wins_and_moves_to_end(self):
        decls = parse_declarations("color: red; margin: 0; color: blue")
        assert list(decls.items()) == [("margin", "0"), ("color", "blue")]

    def test_skips_malformed(self):
        assert parse_declarations("color; : red; width:") == {}

    def test_split_top_level(self):
        assert split_top_level("a(b,c),d", ",") == ["a(b,c)", "d"]


class TestStripImportant:
    def test_strips_flag(self):
        assert strip_important("red !important") == ("red", True)
        assert strip_important("red ! IMPORTANT") == ("red", True)

    def test_no_flag(self):
        assert strip_important("red") == ("red", False)


class TestResolveVariables:
    def test_resolves_defined(self):
        assert resolve_variables("var(--x)", {"--x": "4px"}) == ("4px", False)

    def test_uses_fallback(self):
        assert resolve_variables("var(--missing, 2px)", {}) == ("2px", False)

    def test_nested_definitions(self):
        variables = {"--a": "var(--b)", "--b": "blue"}
        assert resolve_variables("1px solid var(--a)", variables) == ("1px solid blue", False)

    def test_unresolved_reported(self):
        value, unresolved = resolve_variables("var(--missing)", {})
        assert unresolved
        assert value == "var(--missing)"

    def test_depth_limit(self):
        variables = {"--a": "var(--b)", "--b": "var(--a)"}
        _, unresolved = resolve_variables("var(--a)", variables, max_depth=3)
        assert unresolved


class TestExpandShorthand:
    def test_padding_two_values(self):
        assert expand_shorthand("padding", "4px 8px") == {
            "padding-top": "4px",
            "padding-right": "8px",
            "padding-bottom": "4px",
            "padding-left": "8px",
        }

    def test_margin_three_values(self):
        result = expand_shorthand("margin", "1px 2px 3px")
        assert result["margin-left"] == "2px"
        assert result["margin-bottom"] == "3px"

    def test_border_radius_with_slash_kept(self):
        assert expand_shorthand("border-radius", "4px / 8px") == {"border-radius": "4px / 8px"}

    def test_var_values_kept(self):
        assert expand_shorthand("padding", "var(--gap)") == {"padding": "var(--gap)"}

    def test_gap(self):
        assert expand_shorthand("gap", "8px") == {"row-gap": "8px", "column-gap": "8px"}

    def test_flex_single_number(self):
        assert expand_shorthand("flex", "1") == {
            "flex-grow": "1",
            "flex-shrink": "1",
            "flex-basis": "0%",
        }

    def test_grid_column(self):
        assert expand_shorthand("grid-column", "1 / 3") == {
            "grid-column-start": "1",
            "grid-column-end": "3",
        }

    def test_non_shorthand_passthrough(self):
        assert expand_shorthand("color", "red") == {"color": "red"}


class TestStyleLess:
    def test_format(self):
        assert format_style_less({"color": "red", "margin-top": "0"}) == "color: red; margin-top: 0;"

    def test_parse_back(self):
        assert parse_style_less("color: red; margin-top: 0;") == {"color": "red", "margin-top": "0"}
