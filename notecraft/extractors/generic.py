"""Fallback strategy for articles and documentation pages."""

from __future__ import annotations

import copy
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from notecraft.extractors.main_content import clean_boilerplate, find_main_content
from notecraft.extractors.markdown import html_to_markdown
from notecraft.extractors.metadata import (
    auto_tag,
    count_words,
    extract_author,
    extract_date,
    extract_images,
    extract_title,
)
from notecraft.extractors.modes import apply_export_mode
from notecraft.extractors.rules import ConversionRule, is_youtube_iframe
from notecraft.items import ExportMode, ExtractedContent

logger = logging.getLogger(__name__)


def _is_embed(node: Tag) -> bool:
    return node.name == "iframe" and bool(node.get("src")) and not is_youtube_iframe(node)


def _embed(content: str, node: Tag, options: dict[str, Any]) -> str:
    return f"\n\n[Embedded content]({str(node.get('src')).strip()})\n\n"


# Inserted ahead of the baseline rules
GENERIC_RULES: tuple[ConversionRule, ...] = (
    ConversionRule("embed", _is_embed, _embed),
)


class GenericExtractor:
    """Handles any page: boilerplate stripped, main content found by DOM heuristics."""

    name = "generic"

    def __init__(self, export_mode: ExportMode | str = ExportMode.REFERENCE) -> None:
        self.export_mode = ExportMode(export_mode)

    def can_handle(self, url: str, document: BeautifulSoup) -> bool:
        return True

    def extract(self, document: BeautifulSoup, url: str = "") -> ExtractedContent:
        soup = copy.copy(document)

        # Header metadata first: boilerplate removal drops <header> and friends
        title = extract_title(soup)
        author = extract_author(soup)
        date = extract_date(soup)

        clean_boilerplate(soup)
        main = find_main_content(soup)

        content = html_to_markdown(main, GENERIC_RULES)
        word_count = count_words(content)
        logger.debug("generic: %d words extracted from %s", word_count, url or "<document>")

        return ExtractedContent(
            title=title or "",
            author=author,
            date=date,
            source_url=url,
            tags=auto_tag(content),
            markdown=apply_export_mode(content, self.export_mode),
            images=extract_images(main),
            metadata={
                "extractor": self.name,
                "export_mode": self.export_mode.value,
                "word_count": word_count,
            },
        )
