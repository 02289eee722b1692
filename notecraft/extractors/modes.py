"""Export-mode templates applied to an extracted Markdown body.

All of these are plain templates: the "summary" is the opening prose of the
page, not a generated abstract.
"""

from __future__ import annotations

import re

from notecraft.extractors.markdown import split_fenced
from notecraft.items import ExportMode
from notecraft.settings import SUMMARY_MAX_CHARS, SUMMARY_MAX_PARAGRAPHS

NO_SUMMARY = "No content to summarize."

REVIEW_QUESTIONS: tuple[str, ...] = (
    "What is the main concept?",
    "What are the key points?",
    "How does this apply in practice?",
)

# Paragraphs starting like this are structure, not prose
_NON_PROSE_RE = re.compile(r"^(?:#|\||>|!\[|[-*+] |\d+[.)] |---)")


def prose_paragraphs(markdown: str) -> list[str]:
    """Return the prose paragraphs of *markdown*, skipping code, headings, lists and tables."""
    paragraphs: list[str] = []
    for segment in split_fenced(markdown):
        if segment.fence:
            continue
        for block in "\n".join(segment.lines).split("\n\n"):
            block = block.strip()
            if block and not _NON_PROSE_RE.match(block):
                paragraphs.append(block)
    return paragraphs


def summarize(
    markdown: str,
    max_paragraphs: int = SUMMARY_MAX_PARAGRAPHS,
    max_chars: int = SUMMARY_MAX_CHARS,
) -> str:
    """Join the first prose paragraphs, cutting at *max_chars* with ``...``."""
    paragraphs = prose_paragraphs(markdown)
    if not paragraphs:
        return NO_SUMMARY

    parts: list[str] = []
    used = 0
    for paragraph in paragraphs[:max_paragraphs]:
        if used + len(paragraph) > max_chars:
            parts.append(paragraph[: max_chars - used].rstrip() + "...")
            break
        parts.append(paragraph)
        used += len(paragraph) + 2
    return "\n\n".join(parts).strip()


def format_for_study(markdown: str) -> str:
    questions = "\n".join(f"- [ ] {q}" for q in REVIEW_QUESTIONS)
    return (
        f"## Summary\n\n{summarize(markdown)}\n\n---\n\n"
        f"{markdown}\n\n---\n\n"
        f"## Review Questions\n\n{questions}"
    )


def flashcards(markdown: str) -> list[str]:
    """One card per ``###`` heading that sits under a ``##`` section."""
    cards: list[str] = []
    section = ""
    for segment in split_fenced(markdown):
        if segment.fence:
            continue
        for line in segment.lines:
            if line.startswith("## "):
                section = line[3:].strip()
            elif line.startswith("### ") and section:
                cards.append(f"#flashcard\n**{section} - {line[4:].strip()}** ::")
    return cards


def format_for_flashcards(markdown: str) -> str:
    cards = "\n\n".join(flashcards(markdown))
    return f"# Study Cards\n\n{cards}\n\n---\n\n{markdown}" if cards else f"# Study Cards\n\n---\n\n{markdown}"


def apply_export_mode(markdown: str, mode: ExportMode | str) -> str:
    """Shape *markdown* for *mode*; ``reference`` returns it unchanged."""
    mode = ExportMode(mode)
    if mode is ExportMode.STUDY:
        return format_for_study(markdown)
    if mode is ExportMode.FLASHCARDS:
        return format_for_flashcards(markdown)
    return markdown
