"""notecraft.query - turn a page into an :class:`ExtractedContent`.

Basic usage::

    from notecraft.query import extract

    content = extract(html, url="https://example.com/docs/page")
    print(content.title)
    print(content.markdown)

Choosing strategies yourself::

    from notecraft.query import default_registry, extract

    registry = default_registry(export_mode="flashcards")
    registry.register(MyDocsSiteExtractor())
    content = extract(html, url=url, registry=registry)

Fetching is a convenience for the command line and uses only the stdlib
(``urllib``).
"""

from __future__ import annotations

import gzip
import logging
import random
import time
import urllib.error
import urllib.request
import zlib
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from notecraft.errors import FetchError
from notecraft.extractors.generic import GenericExtractor
from notecraft.extractors.preprocess import preprocess
from notecraft.extractors.skillbuilder import SkillBuilderExtractor
from notecraft.items import ExportMode, ExtractedContent
from notecraft.registry import ExtractorRegistry
from notecraft.settings import DOWNLOAD_TIMEOUT, USER_AGENT

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------

def default_registry(export_mode: ExportMode | str | None = None) -> ExtractorRegistry:
    """Return a registry with the built-in strategies.

    With *export_mode* unset every strategy keeps its own default
    (study for course pages, reference for everything else).
    """
    registry = ExtractorRegistry()
    if export_mode is None:
        registry.register(SkillBuilderExtractor())
        registry.set_fallback(GenericExtractor())
    else:
        registry.register(SkillBuilderExtractor(export_mode))
        registry.set_fallback(GenericExtractor(export_mode))
    return registry


def parse_document(html: str) -> BeautifulSoup:
    """Preprocess *html* and parse it with lxml."""
    return BeautifulSoup(preprocess(html or ""), "lxml")


def extract(
    html: str,
    url: str = "",
    *,
    registry: ExtractorRegistry | None = None,
    export_mode: ExportMode | str | None = None,
) -> ExtractedContent:
    """Extract structured Markdown from *html*.

    Exactly one strategy runs: the first registered one that accepts the
    document, else the registry's fallback.  *registry* defaults to
    :func:`default_registry` built for *export_mode*.

    Raises:
        NoExtractorAvailable: the registry has no match and no fallback.
    """
    if registry is None:
        registry = default_registry(export_mode)

    document = parse_document(html)
    strategy = registry.find_extractor(url, document)
    content = strategy.extract(document, url)
    logger.info(
        "Extracted %r with %s (%d words)",
        content.title, strategy.name, content.metadata.get("word_count", 0),
    )
    return content


# ---------------------------------------------------------------------------
# Low-level HTTP fetch
# ---------------------------------------------------------------------------

_RETRY_CODES: frozenset[int] = frozenset({429, 500, 502, 503, 504})


def _decode_response_body(raw: bytes, headers: object | None) -> str:
    encoding = ""
    charset = "utf-8"
    if headers is not None:
        encoding = str(headers.get("Content-Encoding", "")).lower().strip()
        charset = headers.get_content_charset("utf-8") or "utf-8"

    if encoding == "gzip":
        raw = gzip.decompress(raw)
    elif encoding in ("deflate", "zlib"):
        raw = zlib.decompress(raw)

    try:
        return raw.decode(charset, errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def fetch_html(
    url: str,
    *,
    timeout: int = DOWNLOAD_TIMEOUT,
    user_agent: str | None = None,
    max_retries: int = 2,
) -> str:
    """Fetch *url* and return the response body as a decoded string.

    Retries with jittered exponential backoff on 429/5xx responses and
    network-level failures.

    Raises:
        FetchError: On HTTP errors, connection failures, or invalid URLs.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise FetchError(f"Unsupported URL scheme: {parsed.scheme!r}", url=url)

    req = urllib.request.Request(
        url,
        headers={
            "User-Agent": user_agent or USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate",
        },
    )

    for attempt in range(max_retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                raw: bytes = resp.read()
                try:
                    return _decode_response_body(raw, resp.headers)
                except (OSError, zlib.error) as exc:
                    raise FetchError(f"Decompression failed for {url}: {exc}", url=url) from exc

        except urllib.error.HTTPError as exc:
            if exc.code in _RETRY_CODES and attempt < max_retries:
                delay = (2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "HTTP %d for %s - retrying in %.1fs (attempt %d/%d)",
                    exc.code, url, delay, attempt + 1, max_retries,
                )
                time.sleep(delay)
                continue
            raise FetchError(
                f"HTTP {exc.code} fetching {url}: {exc.reason}", url=url, status=exc.code,
            ) from exc

        except urllib.error.URLError as exc:
            if attempt < max_retries:
                delay = (2 ** attempt) + random.uniform(0, 1)
                logger.debug(
                    "URL error for %s - retrying in %.1fs (attempt %d/%d): %s",
                    url, delay, attempt + 1, max_retries, exc.reason,
                )
                time.sleep(delay)
                continue
            raise FetchError(f"URL error fetching {url}: {exc.reason}", url=url) from exc

        except OSError as exc:
            if attempt < max_retries:
                time.sleep((2 ** attempt) + random.uniform(0, 1))
                continue
            raise FetchError(f"Network error fetching {url}: {exc}", url=url) from exc

    raise FetchError(f"Failed to fetch {url}", url=url)
