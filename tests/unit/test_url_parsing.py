"""Unit tests for URL resolution and span parsers."""

import pytest

from freeze_dry.utils.url_parsing import (
    css_url_spans,
    css_urls,
    resolve_url,
    space_separated_spans,
    srcset_spans,
    whole_value_spans,
)


BASE = "https://example.com/main/page.html"


@pytest.mark.unit
class TestResolveUrl:
    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ("image.png", "https://example.com/main/image.png"),
            ("  /root.css\n", "https://example.com/root.css"),
            ("../up.png", "https://example.com/up.png"),
            ("//cdn.example.org/lib.css", "https://cdn.example.org/lib.css"),
            ("#top", "https://example.com/main/page.html#top"),
            ("https://other.org/x", "https://other.org/x"),
            ("data:image/png;base64,AAAA", "data:image/png;base64,AAAA"),
            ("javascript:", "javascript:"),
        ],
    )
    def test_resolves_against_base(self, target, expected):
        assert resolve_url(target, BASE) == expected

    def test_relative_without_base_is_undefined(self):
        assert resolve_url("image.png", None) is None

    def test_relative_against_about_blank_is_undefined(self):
        assert resolve_url("image.png", "about:blank") is None

    def test_absolute_url_needs_no_base(self):
        assert resolve_url("https://other.org/x", None) == "https://other.org/x"

    def test_unparsable_url_is_undefined(self):
        assert resolve_url("http://[invalid", BASE) is None


@pytest.mark.unit
class TestAttributeParsers:
    def test_whole_value_strips_whitespace(self):
        assert whole_value_spans("  a.png ") == [(2, 7)]

    @pytest.mark.parametrize("value", ["", "   "])
    def test_whole_value_empty(self, value):
        assert whole_value_spans(value) == []

    def test_space_separated(self):
        assert space_separated_spans("a b  c") == [(0, 1), (2, 3), (5, 6)]

    def test_srcset_with_descriptors(self):
        value = "a.png 1x, b.png 2x"
        assert [value[s:e] for s, e in srcset_spans(value)] == ["a.png", "b.png"]

    def test_srcset_trailing_comma_is_not_part_of_url(self):
        assert srcset_spans("a.png, b.png") == [(0, 5), (7, 12)]

    def test_srcset_keeps_commas_inside_data_urls(self):
        value = "data:image/png;base64,AAAA 2x, b.png"
        assert [value[s:e] for s, e in srcset_spans(value)] == ["data:image/png;base64,AAAA", "b.png"]

    def test_srcset_skips_commas_in_descriptor_parentheses(self):
        value = "a.png (max-width: 1px, 2px), b.png 3x"
        assert [value[s:e] for s, e in srcset_spans(value)] == ["a.png", "b.png"]


@pytest.mark.unit
class TestCssUrls:
    def test_types_and_order(self):
        text = (
            "@import url(imported.css);\n"
            "/* url(ignored.png) */\n"
            "body { background: url(bg.png); }\n"
            '@font-face { font-family: X; src: url("font.woff2"); }\n'
            '@import "other.css";\n'
        )
        found = css_urls(text)
        assert [text[url.start : url.end] for url in found] == ["imported.css", "bg.png", "font.woff2", "other.css"]
        assert [url.subresource_type for url in found] == ["style", "image", "font", "style"]

    def test_quoted_urls_exclude_quotes(self):
        text = "a { background: url( 'x.png' ) } b { background: url(\"y.png\") }"
        assert [text[s:e] for s, e in css_url_spans(text)] == ["x.png", "y.png"]

    def test_empty_url_is_skipped(self):
        assert css_urls("a { background: url() }") == []

    def test_commented_font_face_does_not_type_urls(self):
        text = "/* @font-face { */ a { background: url(x.png) }"
        assert [url.subresource_type for url in css_urls(text)] == ["image"]

    def test_url_function_is_case_insensitive(self):
        text = "a { background: URL(x.png) }"
        assert [text[s:e] for s, e in css_url_spans(text)] == ["x.png"]
