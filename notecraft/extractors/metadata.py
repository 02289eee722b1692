"""Metadata helpers shared by the extractor strategies.

Every lookup is an ordered selector fallback list: the first selector that
yields a non-empty value wins.  Selectors that soupsieve rejects are skipped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

import dateparser
from bs4 import BeautifulSoup, Tag

from notecraft.items import ImageAsset
from notecraft.settings import DEFAULT_IMAGE_ALT, MAX_AUTO_TAGS

logger = logging.getLogger(__name__)

Document = BeautifulSoup | Tag

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")


def _safe_str(val: Any, default: str = "") -> str:
    """Safely convert a BeautifulSoup attribute value (str | list | None) to str."""
    if val is None:
        return default
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def _text(el: Tag) -> str:
    return _WHITESPACE_RE.sub(" ", el.get_text(separator=" ")).strip()


def _select(document: Document, selector: str) -> list[Tag]:
    try:
        return [el for el in document.select(selector) if isinstance(el, Tag)]
    except Exception as exc:
        logger.debug("CSS selector %r failed: %s", selector, exc)
        return []


def select_first(document: Document, selectors: Iterable[str]) -> Tag | None:
    """Return the first element matched by the first matching selector."""
    for selector in selectors:
        found = _select(document, selector)
        if found:
            return found[0]
    return None


def first_text(document: Document, selectors: Iterable[str]) -> str | None:
    """Return the text of the first selector match that has any text."""
    for selector in selectors:
        for el in _select(document, selector)[:1]:
            text = _text(el)
            if text:
                return text
    return None


def first_attr_or_text(
    document: Document,
    selectors: Iterable[str],
    attrs: Iterable[str] = ("content",),
) -> str | None:
    """Like :func:`first_text` but prefer the value of one of *attrs*."""
    attrs = tuple(attrs)
    for selector in selectors:
        for el in _select(document, selector)[:1]:
            for attr in attrs:
                value = _safe_str(el.get(attr)).strip()
                if value:
                    return value
            text = _text(el)
            if text:
                return text
    return None


def all_texts(document: Document, selectors: Iterable[str]) -> list[str]:
    """Return the texts matched by the first selector that yields any."""
    for selector in selectors:
        texts = [t for t in (_text(el) for el in _select(document, selector)) if t]
        if texts:
            return texts
    return []


# ---------------------------------------------------------------------------
# Title, author, date
# ---------------------------------------------------------------------------

def extract_title(document: Document) -> str | None:
    """``og:title`` -> ``<title>`` -> first ``<h1>``."""
    return (
        first_attr_or_text(document, ('meta[property="og:title"]',))
        or first_text(document, ("title",))
        or first_text(document, ("h1",))
    )


_AUTHOR_SELECTORS: tuple[str, ...] = (
    'meta[name="author"]',
    'meta[property="article:author"]',
    ".author",
    '[rel="author"]',
    ".byline",
)

_DATE_SELECTORS: tuple[str, ...] = (
    'meta[property="article:published_time"]',
    'meta[name="publishedDate"]',
    "time[datetime]",
    ".published",
    ".date",
)


def extract_author(document: Document) -> str | None:
    return first_attr_or_text(document, _AUTHOR_SELECTORS)


def parse_date(raw: str | None) -> datetime | None:
    """Parse a free-form date string.

    Returns None on failure or when the year falls outside 1990-2099
    (catches epoch defaults like 1970-01-01 and far-future typos).
    """
    if not raw:
        return None
    raw = _WHITESPACE_RE.sub(" ", raw.strip())
    try:
        parsed = dateparser.parse(
            raw,
            settings={
                "RETURN_AS_TIMEZONE_AWARE": True,
                "PREFER_DAY_OF_MONTH": "first",
                "PREFER_LOCALE_DATE_ORDER": False,
            },
        )
    except Exception as exc:
        logger.debug("Date parse failed for %r: %s", raw, exc)
        return None
    if parsed is None or not (1990 <= parsed.year <= 2099):
        return None
    return parsed


def extract_date(document: Document) -> datetime | None:
    """Return the publication date; an unparseable candidate moves on to the next selector."""
    for selector in _DATE_SELECTORS:
        for el in _select(document, selector)[:1]:
            raw = (
                _safe_str(el.get("content")).strip()
                or _safe_str(el.get("datetime")).strip()
                or _text(el)
            )
            parsed = parse_date(raw)
            if parsed is not None:
                return parsed
    return None


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

DIAGRAM_KEYWORDS: tuple[str, ...] = (
    "diagram",
    "architecture",
    "flowchart",
    "schema",
    "diagrama",
    "arquitectura",
)

_DIAGRAM_MIN_WIDTH = 600
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def _declared_width(img: Tag) -> int:
    match = _LEADING_INT_RE.match(_safe_str(img.get("width")))
    return int(match.group(1)) if match else 0


def is_likely_diagram(img: Tag) -> bool:
    """Guess whether *img* is a diagram: keyword, SVG source or a wide declared width."""
    src = _safe_str(img.get("src") or img.get("data-src")).lower()
    alt = _safe_str(img.get("alt")).lower()
    if any(kw in src or kw in alt for kw in DIAGRAM_KEYWORDS):
        return True
    if src.split("?", 1)[0].split("#", 1)[0].endswith(".svg"):
        return True
    return _declared_width(img) > _DIAGRAM_MIN_WIDTH


def extract_images(
    container: Document | None,
    is_diagram: Callable[[Tag], bool] = is_likely_diagram,
) -> list[ImageAsset]:
    """Collect the ``<img>`` elements under *container*.

    The source is ``src`` or, failing that, ``data-src``.  The first
    occurrence of a URL wins; later duplicates are skipped.
    """
    if container is None:
        return []

    images: list[ImageAsset] = []
    seen_urls: set[str] = set()

    for img in container.find_all("img"):
        if not isinstance(img, Tag):
            continue
        src = _safe_str(img.get("src")).strip() or _safe_str(img.get("data-src")).strip()
        if not src or src in seen_urls:
            continue
        seen_urls.add(src)
        images.append(
            ImageAsset(
                original_url=src,
                alt_text=_safe_str(img.get("alt")).strip() or DEFAULT_IMAGE_ALT,
                is_diagram=is_diagram(img),
            ),
        )

    return images


# ---------------------------------------------------------------------------
# Tags and word count
# ---------------------------------------------------------------------------

TECH_TERMS: tuple[str, ...] = (
    "React", "Vue", "Angular", "Svelte", "Next.js", "Nuxt",
    "Python", "JavaScript", "TypeScript", "Go", "Rust", "Java", "C#", "PHP",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Terraform",
    "API", "GraphQL", "REST", "gRPC", "WebSocket",
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch",
    "Linux", "Ubuntu", "Debian", "CentOS",
    "Git", "GitHub", "GitLab", "CI/CD", "DevOps",
    "HTML", "CSS", "SCSS", "Tailwind", "Bootstrap",
    "Node.js", "Express", "NestJS", "FastAPI", "Django", "Flask",
    "AI", "Machine Learning", "Deep Learning", "LLM", "NLP",
    "Security", "OAuth", "JWT", "SSL", "HTTPS",
)

# Word-bounded on both sides; lookarounds instead of \b so that terms ending
# in punctuation (C#) still match.
_TERM_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (term, re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)", re.IGNORECASE))
    for term in TECH_TERMS
)


def auto_tag(text: str, limit: int = MAX_AUTO_TAGS) -> list[str]:
    """Return vocabulary terms found in *text*, in vocabulary order, at most *limit*."""
    if not text:
        return []
    found: list[str] = []
    for term, pattern in _TERM_PATTERNS:
        if pattern.search(text):
            found.append(term)
            if len(found) >= limit:
                break
    return found


def merge_tags(*groups: Iterable[str]) -> list[str]:
    """Concatenate tag lists, dropping case-insensitive duplicates (first spelling kept)."""
    merged: list[str] = []
    seen: set[str] = set()
    for group in groups:
        for tag in group:
            key = tag.strip().lower()
            if key and key not in seen:
                seen.add(key)
                merged.append(tag.strip())
    return merged


def count_words(markdown: str) -> int:
    return len(markdown.split())
