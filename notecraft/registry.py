"""notecraft.registry: choose the extractor strategy for a document.

Usage::

    from notecraft.registry import ExtractorRegistry

    class DocsSite:
        name = "docs-site"
        def can_handle(self, url, document):
            return "docs.example.com" in url
        def extract(self, document, url=""):
            ...

    registry = ExtractorRegistry()
    registry.register(DocsSite())
    registry.set_fallback(GenericExtractor())
    strategy = registry.find_extractor(url, document)

Strategies follow a ``runtime_checkable`` ``Protocol`` so any object with the
right attributes qualifies; there is no base class to inherit from.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from bs4 import BeautifulSoup

from notecraft.errors import NoExtractorAvailable
from notecraft.items import ExtractedContent

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Protocol definition
# ---------------------------------------------------------------------------

@runtime_checkable
class ExtractorStrategy(Protocol):
    """Site-specific extraction profile."""

    name: str

    def can_handle(self, url: str, document: BeautifulSoup) -> bool:
        """Return True if this strategy understands *document*."""
        ...

    def extract(self, document: BeautifulSoup, url: str = "") -> ExtractedContent:
        """Turn *document* into an :class:`ExtractedContent`."""
        ...


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ExtractorRegistry:
    """Ordered strategy list plus an optional fallback.

    Selection walks the strategies in registration order and returns the first
    whose ``can_handle`` is true.  Registration happens at start-up; lookups
    afterwards only read.
    """

    def __init__(self) -> None:
        self._extractors: list[ExtractorStrategy] = []
        self._fallback: ExtractorStrategy | None = None

    def register(self, extractor: ExtractorStrategy) -> None:
        self._extractors.append(extractor)
        logger.debug("Registered extractor %r", extractor.name)

    def set_fallback(self, extractor: ExtractorStrategy) -> None:
        """Use *extractor* when no registered strategy accepts a document."""
        self._fallback = extractor

    @property
    def fallback(self) -> ExtractorStrategy | None:
        return self._fallback

    @property
    def extractors(self) -> list[ExtractorStrategy]:
        """Registered strategies, in order (a copy)."""
        return list(self._extractors)

    @property
    def count(self) -> int:
        return len(self._extractors)

    def clear(self) -> None:
        """Remove all strategies and the fallback. Primarily for use in tests."""
        self._extractors.clear()
        self._fallback = None

    def find_extractor(self, url: str, document: BeautifulSoup) -> ExtractorStrategy:
        """Return the strategy for *document*.

        A ``can_handle`` that raises counts as "no" for that strategy only.

        Raises:
            NoExtractorAvailable: nothing matched and no fallback is set.
        """
        for extractor in self._extractors:
            try:
                accepted = extractor.can_handle(url, document)
            except Exception as exc:
                logger.warning("Extractor %s failed in can_handle: %s", extractor.name, exc)
                continue
            if accepted:
                logger.info("Using extractor %s for %s", extractor.name, url or "<document>")
                return extractor

        if self._fallback is not None:
            logger.info("Using fallback extractor %s for %s", self._fallback.name, url or "<document>")
            return self._fallback

        raise NoExtractorAvailable(url)
