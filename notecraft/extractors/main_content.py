"""Boilerplate removal and main-content location on a parsed document.

The locator is a DOM heuristic:

1. Priority CSS selectors; the biggest match with enough words wins.
2. Paragraph-density scoring over ``<div>``/``<section>``.
3. ``<body>``.

Both functions mutate the tree they are given; strategies run them on a copy.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

# Minimum words for a candidate element to count as content
_DOM_MIN_WORDS = 10

# Share of the body's words the best-scoring element needs to be picked alone
_DOMINANCE_RATIO = 0.55

BOILERPLATE_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "nav",
    "header",
    "footer",
    "aside",
    ".advertisement",
    ".ads",
    ".cookie-banner",
    ".newsletter-signup",
    '[role="banner"]',
    '[role="navigation"]',
    '[role="complementary"]',
)

# Priority CSS selectors for the DOM heuristic (tried in order)
CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    "main",
    '[role="main"]',
    '[itemprop="articleBody"]',
    ".post-content",
    ".article-content",
    ".entry-content",
    ".post-body",
    ".article-body",
    "#article-content",
    "#post-content",
    "#entry-content",
    "#content",
    "#main-content",
    ".content-body",
    ".story-body",
    ".blog-post",
    ".post",
    ".single-content",
)

# Class/id substrings that indicate non-content elements
_NOISE_SUBSTRINGS: tuple[str, ...] = (
    "sidebar",
    "comment",
    "advertisement",
    "banner",
    "promo",
    "related",
    "share",
    "social",
    "newsletter",
    "cookie",
    "popup",
    "modal",
    "widget",
)


def _word_count(tag: Tag) -> int:
    return len(tag.get_text(separator=" ").split())


def clean_boilerplate(soup: BeautifulSoup | Tag, selectors: Iterable[str] = BOILERPLATE_SELECTORS) -> None:
    """Remove every element matched by *selectors* from *soup* in place."""
    for selector in selectors:
        try:
            found = soup.select(selector)
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
            continue
        for el in found:
            if isinstance(el, Tag):
                el.decompose()


def _is_noisy_element(tag: Tag) -> bool:
    """Return True if *tag* appears to be boilerplate/noise."""
    combined = " ".join(
        [
            " ".join(tag.get("class") or []),
            str(tag.get("id") or ""),
            str(tag.get("role") or ""),
        ],
    ).lower()
    return any(noise in combined for noise in _NOISE_SUBSTRINGS)


def _paragraph_density_score(tag: Tag) -> tuple[int, int]:
    """Return (paragraph_words, total_words) for density scoring."""
    paragraphs = tag.find_all("p")
    para_text = " ".join(p.get_text(separator=" ") for p in paragraphs)
    return len(para_text.split()), _word_count(tag)


def find_main_content(soup: BeautifulSoup | Tag) -> Tag:
    """Return the element most likely to hold the document's main content."""
    # decompose() leaves already-collected descendants detached; skip them
    for el in soup.find_all(["div", "section"]):
        if isinstance(el, Tag) and not el.decomposed and _is_noisy_element(el):
            el.decompose()

    # Step 1: priority selectors
    for selector in CONTENT_SELECTORS:
        try:
            elements = [el for el in soup.select(selector) if isinstance(el, Tag)]
        except Exception as exc:
            logger.debug("CSS selector %r failed: %s", selector, exc)
            continue
        if not elements:
            continue
        best = max(elements, key=_word_count)
        if _word_count(best) >= _DOM_MIN_WORDS:
            logger.debug("Main content matched selector %r", selector)
            return best

    body = soup.find("body")

    # Step 2: paragraph density scoring across <div> and <section>
    candidates: list[tuple[float, Tag]] = []
    for el in soup.find_all(["div", "section"]):
        if not isinstance(el, Tag):
            continue
        para_words, total_words = _paragraph_density_score(el)
        if para_words < _DOM_MIN_WORDS:
            continue
        density = para_words / max(total_words, 1)
        candidates.append((para_words * density, el))

    if candidates:
        top_el = max(candidates, key=lambda c: c[0])[1]
        # Content spread over many equal-weight sections: keep the whole body
        body_wc = _word_count(body) if isinstance(body, Tag) else 0
        if body_wc == 0 or _word_count(top_el) / body_wc >= _DOMINANCE_RATIO:
            return top_el

    # Step 3: full body fallback
    return body if isinstance(body, Tag) else soup
