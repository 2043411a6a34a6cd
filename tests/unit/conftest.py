"""Conftest for unit tests: marks every test as a unit test, plus parsing helpers."""

from bs4 import BeautifulSoup
import pytest

from freeze_dry.domain import DocumentResource, StylesheetResource


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def make_document():
    """Parse markup into a DocumentResource at the given URL."""

    def make(html: str, url: str = "https://example.com/main/page.html") -> DocumentResource:
        return DocumentResource(url, BeautifulSoup(html, "html.parser"))

    return make


@pytest.fixture
def make_stylesheet():
    def make(text: str, url: str = "https://example.com/main/style.css") -> StylesheetResource:
        return StylesheetResource(url, text)

    return make
