"""Unit tests for compiling a resource tree into a single HTML string."""

import base64
from datetime import datetime

from bs4 import BeautifulSoup
import pytest

from freeze_dry import Blob, Environment, FreezeDryConfig
from freeze_dry.domain import Resource
from freeze_dry.utils.compiler import create_single_file, http_date
from freeze_dry.utils.data_url import parse_data_url


class CountingEnvironment(Environment):
    def __init__(self):
        self.encoded: list[bytes] = []

    def b64encode(self, data: bytes) -> str:
        self.encoded.append(data)
        return super().b64encode(data)


@pytest.fixture
def environment():
    return CountingEnvironment()


@pytest.fixture
def config(environment, fixed_now):
    return FreezeDryConfig(glob=environment, now=fixed_now, add_metadata=False, charset_declaration=None)


def image_resource(data=b"png"):
    return Resource("https://example.com/main/image.png", Blob(data, "image/png"))


def decoded_html(data_url: str) -> str:
    return parse_data_url(data_url).text()


@pytest.mark.unit
class TestInlining:
    def test_inlines_image_as_data_url(self, make_document, config):
        resource = make_document('<img src="image.png">')
        resource.links[0].resource = image_resource(b"\x89PNG")
        html = create_single_file(resource, config)
        expected = "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()
        assert html == f'<img src="{expected}"/>'

    def test_shared_resource_is_encoded_once(self, make_document, config, environment):
        resource = make_document('<img src="image.png"><img src="./image.png">')
        shared = image_resource()
        for link in resource.links:
            link.resource = shared
        html = create_single_file(resource, config)
        assert environment.encoded == [b"png"]
        assert html.count("data:image/png;base64,cG5n") == 2

    def test_unfetched_links_are_left_alone(self, make_document, config):
        resource = make_document('<img src="https://example.com/main/missing.png">')
        assert create_single_file(resource, config) == '<img src="https://example.com/main/missing.png"/>'

    def test_stylesheet_subresources_inline_recursively(self, make_document, make_stylesheet, config):
        resource = make_document('<link rel="stylesheet" href="style.css">')
        stylesheet = make_stylesheet("a { background: url(image.png) }")
        stylesheet.links[0].resource = image_resource()
        resource.links[0].resource = stylesheet

        html = create_single_file(resource, config)

        href = BeautifulSoup(html, "html.parser").link["href"]
        assert href.startswith("data:text/css;charset=utf-8;base64,")
        assert decoded_html(href) == "a { background: url(data:image/png;base64,cG5n) }"

    def test_frames_compile_into_nested_data_urls(self, make_document, config):
        resource = make_document('<iframe src="frame.html"></iframe>')
        frame = make_document('<p><img src="image.png"></p>', url="https://example.com/main/frame.html")
        frame.links[0].resource = image_resource()
        resource.links[0].resource = frame

        html = create_single_file(resource, config)

        src = BeautifulSoup(html, "html.parser").iframe["src"]
        assert src.startswith("data:text/html;charset=utf-8;base64,")
        assert decoded_html(src) == '<p><img src="data:image/png;base64,cG5n"/></p>'

    def test_cycle_falls_back_to_absolute_url(self, make_document, config):
        outer = make_document('<iframe src="inner.html"></iframe>')
        inner = make_document('<iframe src="page.html"></iframe>', url="https://example.com/main/inner.html")
        outer.links[0].resource = inner
        inner.links[0].resource = outer

        html = create_single_file(outer, config)

        src = BeautifulSoup(html, "html.parser").iframe["src"]
        assert decoded_html(src) == '<iframe src="https://example.com/main/page.html"></iframe>'


@pytest.mark.unit
class TestMetadata:
    def test_adds_memento_metadata_first_in_head(self, make_document, config):
        resource = make_document("<html><head><title>t</title></head><body></body></html>")
        html = create_single_file(resource, config.model_copy(update={"add_metadata": True}))
        head = BeautifulSoup(html, "html.parser").head
        meta, link, title = head.find_all(True)
        assert meta["http-equiv"] == "Memento-Datetime"
        assert meta["content"] == "Sat, 18 Aug 2018 18:02:20 GMT"
        assert link["rel"] == ["original"]
        assert link["href"] == "https://example.com/main/page.html"
        assert title.name == "title"

    def test_no_metadata_when_disabled(self, make_document, config):
        resource = make_document("<html><head></head><body></body></html>")
        html = create_single_file(resource, config)
        assert "Memento-Datetime" not in html
        assert 'rel="original"' not in html

    def test_http_date_treats_naive_times_as_utc(self):
        assert http_date(datetime(2018, 8, 18, 18, 2, 20)) == "Sat, 18 Aug 2018 18:02:20 GMT"


@pytest.mark.unit
class TestCharsetDeclaration:
    def test_replaces_existing_declarations(self, make_document, config):
        resource = make_document(
            "<html><head><title>t</title>"
            '<meta http-equiv="Content-Type" content="text/html; charset=windows-1252">'
            '<meta charset="latin1"></head></html>'
        )
        html = create_single_file(resource, config.model_copy(update={"charset_declaration": "utf-8"}))
        assert html == '<html><head><meta charset="utf-8"/><title>t</title></head></html>'

    def test_precedes_metadata(self, make_document, config):
        resource = make_document("<html><head></head></html>")
        html = create_single_file(
            resource, config.model_copy(update={"charset_declaration": "utf-8", "add_metadata": True})
        )
        first = BeautifulSoup(html, "html.parser").head.find(True)
        assert first.attrs == {"charset": "utf-8"}

    def test_creates_missing_head(self, make_document, config):
        resource = make_document("<!DOCTYPE html><p>hi</p>")
        html = create_single_file(resource, config.model_copy(update={"charset_declaration": "utf-8"}))
        assert html == '<!DOCTYPE html><head><meta charset="utf-8"/></head><p>hi</p>'

    @pytest.mark.parametrize("charset", [None, ""])
    def test_declarations_removed_when_disabled(self, make_document, config, charset):
        resource = make_document(
            '<html><head><meta charset="latin1">'
            '<meta http-equiv="Content-Type" content="text/html; charset=latin1"><title>t</title></head></html>'
        )
        html = create_single_file(resource, config.model_copy(update={"charset_declaration": charset}))
        assert html == "<html><head><title>t</title></head></html>"
