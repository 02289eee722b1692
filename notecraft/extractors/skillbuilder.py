"""Strategy for AWS Skill Builder course pages.

Course pages carry more structure than an article: a course and module
title, a list of learning objectives, an estimated duration and, very often,
architecture diagrams.  The note is laid out around those:

    ## Learning Objectives   (checklist, when the page lists any)
    ## Content               (the converted lesson)
    ## Architecture Diagrams (gallery of diagram images)
    ## Study Notes           (study mode only: empty template to fill in)
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from bs4 import BeautifulSoup, Tag

from notecraft.extractors.main_content import clean_boilerplate
from notecraft.extractors.markdown import html_to_markdown
from notecraft.extractors.metadata import (
    all_texts,
    auto_tag,
    count_words,
    extract_images,
    first_text,
    is_likely_diagram,
    merge_tags,
    select_first,
)
from notecraft.extractors.modes import format_for_flashcards
from notecraft.extractors.rules import ConversionRule, detect_code_language, fenced_block, node_classes
from notecraft.items import ExportMode, ExtractedContent, ImageAsset

logger = logging.getLogger(__name__)

PLATFORM = "aws-skill-builder"
DEFAULT_COURSE_TITLE = "AWS Course"
BASE_TAGS: tuple[str, ...] = ("aws", "cloud", "certification")

# ---------------------------------------------------------------------------
# Selector fallback lists (first non-empty match wins)
# ---------------------------------------------------------------------------

COURSE_INDICATORS: tuple[str, ...] = (
    ".course-content",
    '[class*="aws-skill-builder"]',
    ".module-content",
    ".learning-content",
)

COURSE_TITLE_SELECTORS: tuple[str, ...] = (
    "h1.course-title",
    ".course-header h1",
    ".course-title",
    "h1",
)

MODULE_TITLE_SELECTORS: tuple[str, ...] = (
    ".module-title",
    ".current-module h2",
    ".content-header h2",
)

OBJECTIVE_SELECTORS: tuple[str, ...] = (
    ".learning-objectives li",
    ".objectives-list li",
    ".learning-outcomes li",
)

ESTIMATED_TIME_SELECTORS: tuple[str, ...] = (
    ".estimated-time",
    ".duration",
    "time[datetime]",
)

CONTENT_SELECTORS: tuple[str, ...] = (
    ".course-content",
    ".module-content",
    ".learning-content",
    "article",
    "main",
    ".content",
)

ARCHITECTURE_KEYWORDS: tuple[str, ...] = (
    "architecture", "diagram", "diagrama", "arquitectura",
    "schema", "infrastructure", "infraestructura",
    "vpc", "subnet", "ec2", "s3", "rds", "lambda",
    "flow", "workflow", "data-flow",
)

# ---------------------------------------------------------------------------
# Conversion rules (ahead of the baseline)
# ---------------------------------------------------------------------------

_HIGHLIGHT_CLASSES = frozenset({"code-block", "highlight"})


def _is_highlight_block(node: Tag) -> bool:
    return (
        node.name == "div"
        and bool(_HIGHLIGHT_CLASSES.intersection(node_classes(node)))
        and node.find("pre") is None
    )


def _highlight_block(content: str, node: Tag, options: dict[str, Any]) -> str | None:
    code = node.get_text()
    if not code.strip():
        return None
    return fenced_block(code, detect_code_language(node.find("code"), node))


SKILL_BUILDER_RULES: tuple[ConversionRule, ...] = (
    ConversionRule("highlight_block", _is_highlight_block, _highlight_block),
)

# ---------------------------------------------------------------------------
# Study template
# ---------------------------------------------------------------------------

STUDY_NOTES_TEMPLATE = """\
## Study Notes

### Key Points

-
-
-

### Important Terms

| Term | Definition |
| ---- | ---------- |
|      |            |

### Exam Questions

- Q:
  - A:"""


def is_architecture_diagram(image: ImageAsset) -> bool:
    text = f"{image.original_url} {image.alt_text}".lower()
    return any(kw in text for kw in ARCHITECTURE_KEYWORDS)


class SkillBuilderExtractor:
    """Course-aware extraction for AWS Skill Builder."""

    name = "skill-builder"

    def __init__(self, export_mode: ExportMode | str = ExportMode.STUDY) -> None:
        self.export_mode = ExportMode(export_mode)

    def can_handle(self, url: str, document: BeautifulSoup) -> bool:
        if "skillbuilder.aws" in url.lower():
            return True
        return select_first(document, COURSE_INDICATORS) is not None

    def extract(self, document: BeautifulSoup, url: str = "") -> ExtractedContent:
        soup = copy.copy(document)
        clean_boilerplate(soup)

        course = (
            first_text(soup, COURSE_TITLE_SELECTORS)
            or first_text(soup, ("title",))
            or DEFAULT_COURSE_TITLE
        )
        module = first_text(soup, MODULE_TITLE_SELECTORS)
        objectives = all_texts(soup, OBJECTIVE_SELECTORS)
        estimated_time = first_text(soup, ESTIMATED_TIME_SELECTORS)

        main = select_first(soup, CONTENT_SELECTORS) or soup.find("body") or soup
        content = html_to_markdown(main, SKILL_BUILDER_RULES)

        images = extract_images(main, is_diagram=is_likely_diagram)
        for image in images:
            if not image.is_diagram and is_architecture_diagram(image):
                image.is_diagram = True

        word_count = count_words(content)
        logger.debug(
            "skill-builder: course=%r module=%r objectives=%d words=%d",
            course, module, len(objectives), word_count,
        )

        return ExtractedContent(
            title=f"{course} - {module}" if module else course,
            source_url=url,
            tags=merge_tags(BASE_TAGS, auto_tag(content)),
            markdown=self.format_content(content, objectives, images),
            images=images,
            metadata={
                "extractor": self.name,
                "platform": PLATFORM,
                "course": course,
                "module": module,
                "objectives": objectives,
                "estimated_time": estimated_time,
                "word_count": word_count,
                "export_mode": self.export_mode.value,
            },
        )

    def format_content(
        self,
        content: str,
        objectives: list[str],
        images: list[ImageAsset],
    ) -> str:
        """Lay the lesson out as objectives, content, diagrams and study notes."""
        sections: list[str] = []

        if objectives:
            checklist = "\n".join(f"- [ ] {objective}" for objective in objectives)
            sections.append(f"## Learning Objectives\n\n{checklist}")

        sections.append(f"## Content\n\n{content}" if content else "## Content")

        diagrams = [img for img in images if img.is_diagram]
        if diagrams:
            gallery = [
                f"### Diagram {i}: {img.alt_text}\n\n![{img.alt_text}]({img.local_path or img.original_url})"
                for i, img in enumerate(diagrams, start=1)
            ]
            sections.append("## Architecture Diagrams\n\n" + "\n\n".join(gallery))

        if self.export_mode is ExportMode.STUDY:
            sections.append(STUDY_NOTES_TEMPLATE)

        body = "\n\n---\n\n".join(sections)
        if self.export_mode is ExportMode.FLASHCARDS:
            return format_for_flashcards(body)
        return body
