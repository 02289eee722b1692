"""Tests for notecraft.registry - strategy selection."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from notecraft.errors import NoExtractorAvailable
from notecraft.items import ExtractedContent
from notecraft.registry import ExtractorRegistry, ExtractorStrategy


class _Strategy:
    def __init__(self, name: str, accepts: bool = True) -> None:
        self.name = name
        self.accepts = accepts
        self.calls = 0

    def can_handle(self, url, document):
        self.calls += 1
        return self.accepts

    def extract(self, document, url=""):
        return ExtractedContent(title=self.name)


class _Broken(_Strategy):
    def can_handle(self, url, document):
        raise RuntimeError("selector exploded")


@pytest.fixture
def document() -> BeautifulSoup:
    return BeautifulSoup("<p>x</p>", "lxml")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_register_and_count(self):
        registry = ExtractorRegistry()
        registry.register(_Strategy("a"))
        registry.register(_Strategy("b"))
        assert registry.count == 2
        assert [s.name for s in registry.extractors] == ["a", "b"]

    def test_extractors_is_a_copy(self):
        registry = ExtractorRegistry()
        registry.register(_Strategy("a"))
        registry.extractors.clear()
        assert registry.count == 1

    def test_clear(self):
        registry = ExtractorRegistry()
        registry.register(_Strategy("a"))
        registry.set_fallback(_Strategy("fb"))
        registry.clear()
        assert registry.count == 0
        assert registry.fallback is None

    def test_strategies_satisfy_protocol(self):
        from notecraft.extractors import GenericExtractor, SkillBuilderExtractor

        assert isinstance(GenericExtractor(), ExtractorStrategy)
        assert isinstance(SkillBuilderExtractor(), ExtractorStrategy)


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestFindExtractor:
    def test_first_match_wins(self, document):
        a, b = _Strategy("a"), _Strategy("b")
        registry = ExtractorRegistry()
        registry.register(a)
        registry.register(b)
        assert registry.find_extractor("", document) is a
        assert b.calls == 0

    def test_skips_non_matching(self, document):
        a, b = _Strategy("a", accepts=False), _Strategy("b")
        registry = ExtractorRegistry()
        registry.register(a)
        registry.register(b)
        assert registry.find_extractor("https://x.com", document) is b

    def test_fallback_used(self, document):
        fallback = _Strategy("fallback")
        registry = ExtractorRegistry()
        registry.register(_Strategy("a", accepts=False))
        registry.set_fallback(fallback)
        assert registry.find_extractor("", document) is fallback

    def test_fallback_not_consulted_first(self, document):
        fallback = _Strategy("fallback")
        a = _Strategy("a")
        registry = ExtractorRegistry()
        registry.set_fallback(fallback)
        registry.register(a)
        assert registry.find_extractor("", document) is a
        assert fallback.calls == 0

    def test_no_match_no_fallback(self, document):
        registry = ExtractorRegistry()
        registry.register(_Strategy("a", accepts=False))
        with pytest.raises(NoExtractorAvailable) as exc_info:
            registry.find_extractor("https://x.com/page", document)
        assert exc_info.value.url == "https://x.com/page"

    def test_failing_can_handle_isolated(self, document, caplog):
        b = _Strategy("b")
        registry = ExtractorRegistry()
        registry.register(_Broken("broken"))
        registry.register(b)
        assert registry.find_extractor("", document) is b
        assert "broken" in caplog.text
