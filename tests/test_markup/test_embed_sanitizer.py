"""Tests for the string-level embed HTML sanitizer."""

import pytest

from flowbridge.markup import find_embed_hazards, sanitize_embed_html


class TestSanitizeEmbedHtml:
    def test_splits_inline_around_break(self):
        html, changes = sanitize_embed_html("<span>Years<br>Experience</span>")
        assert html == "<span>Years</span><br><span>Experience</span>"
        assert changes == ["Split 1 inline element(s) around line breaks"]

    def test_split_keeps_attributes(self):
        html, _ = sanitize_embed_html('<a href="/x" class="l">A<br/>B</a>')
        assert html == '<a href="/x" class="l">A</a><br><a href="/x" class="l">B</a>'

    def test_leading_break_drops_empty_half(self):
        html, _ = sanitize_embed_html("<em><br>tail</em>")
        assert html == "<br><em>tail</em>"

    def test_splits_at_every_break(self):
        html, changes = sanitize_embed_html("<span>A<br>B<br />C</span>")
        assert html == "<span>A</span><br><span>B</span><br><span>C</span>"
        assert changes == ["Split 1 inline element(s) around line breaks"]

    def test_blank_halves_left_alone(self):
        source = "<span> <br> </span>"
        assert sanitize_embed_html(source) == (source, [])

    def test_empty_segment_between_breaks_dropped(self):
        html, _ = sanitize_embed_html("<b>A<br><br>B</b>")
        assert html == "<b>A</b><br><br><b>B</b>"

    def test_strips_document_shell(self):
        html, changes = sanitize_embed_html(
            "<!DOCTYPE html><html lang='en'><head></head><body><p>x</p></body></html>"
        )
        assert html == "<p>x</p>"
        assert changes == ["Removed 7 document shell tag(s)"]

    def test_strips_event_handlers(self):
        html, changes = sanitize_embed_html(
            '<button onclick="go()" class="b" onMouseOver=\'x()\'>Go</button>'
        )
        assert html == '<button class="b">Go</button>'
        assert changes == ["Removed 2 inline event handler(s)"]

    def test_handler_text_outside_tags_untouched(self):
        source = "<p>set onclick=doIt in the config</p>"
        assert sanitize_embed_html(source) == (source, [])

    def test_clean_markup_unchanged(self):
        source = '<div class="x"><span>ok</span><br></div>'
        assert sanitize_embed_html(source) == (source, [])

    @pytest.mark.parametrize(
        "source",
        [
            "<span>Years<br>Experience</span>",
            "<html><body onload='x()'><b>a<br>b</b></body></html>",
            '<div onclick="a()"><i>1<br>2</i><span>3<br>4</span></div>',
        ],
    )
    def test_idempotent(self, source):
        once, _ = sanitize_embed_html(source)
        twice, changes = sanitize_embed_html(once)
        assert twice == once
        assert changes == []


class TestFindEmbedHazards:
    def test_reports_each_kind(self):
        hazards = find_embed_hazards("<body><div onclick='x'><span>a<br>b</span></div></body>")
        assert hazards == [
            "document shell tags",
            "inline event handlers",
            "line breaks inside inline elements",
        ]

    def test_clean(self):
        assert find_embed_hazards("<div><p>fine</p></div>") == []

    def test_multiple_breaks_reported(self):
        assert find_embed_hazards("<span>A<br>B<br>C</span>") == ["line breaks inside inline elements"]

    def test_blank_inline_break_not_reported(self):
        assert find_embed_hazards("<span> <br> </span>") == []
