"""Convert HTML to Markdown, then normalise the Markdown.

:func:`html_to_markdown` renders with a fresh :class:`RuleEngine` and runs the
result through :func:`postprocess`, an ordered list of pure passes:

1. collapse blank-line runs
2. strip trailing whitespace
3. one space after heading markers
4. blank line between prose and the blocks around it
5. trim blank lines just inside code fences
6. align pipe tables
7. collapse links with an empty target
8. drop backtick pairs that straddle a line break
9. trim the document

Passes other than 2 and 9 leave fenced code alone.  The whole list is applied
until the output stops changing, so ``postprocess`` is idempotent.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import NamedTuple

from bs4 import BeautifulSoup, Tag

from notecraft.extractors.preprocess import preprocess
from notecraft.extractors.rules import ConversionRule, build_engine

logger = logging.getLogger(__name__)

# Upper bound on postprocess rounds; real documents settle in two
_MAX_ROUNDS = 5


def html_to_markdown(source: str | Tag, rules: Iterable[ConversionRule] = ()) -> str:
    """Convert *source* to clean Markdown.

    *source* is either raw HTML (preprocessed here) or an already parsed node.
    *rules* go in front of the baseline rule set.  If rendering fails the
    node's plain text is returned instead.
    """
    if source is None:
        return ""
    if isinstance(source, str):
        if not source.strip():
            return ""
        source = BeautifulSoup(preprocess(source), "lxml")

    engine = build_engine(rules)
    try:
        md = engine.render(source)
    except Exception as exc:
        # Plain-text fallback
        logger.warning("Markdown rendering failed, using plain text: %s", exc)
        md = source.get_text(separator="\n")

    return postprocess(md)


# ---------------------------------------------------------------------------
# Fenced code segments
# ---------------------------------------------------------------------------

_FENCE_OPEN_RE = re.compile(r"^(`{3,}|~{3,})")


class Segment(NamedTuple):
    """A run of lines that is either prose or one fenced code block."""

    fence: str | None  # opening fence, None for prose
    lines: list[str]

    @property
    def closed(self) -> bool:
        return (
            self.fence is not None
            and len(self.lines) > 1
            and _is_closing_fence(self.lines[-1], self.fence)
        )


def _is_closing_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    return len(stripped) >= len(fence) and stripped == fence[0] * len(stripped)


def split_fenced(markdown: str) -> list[Segment]:
    """Split *markdown* into prose and fenced-code segments.

    Fenced segments include their fence lines.  An unclosed fence runs to the
    end of the document.
    """
    segments: list[Segment] = []
    fence: str | None = None
    current: list[str] = []
    for line in markdown.split("\n"):
        if fence is None:
            match = _FENCE_OPEN_RE.match(line.lstrip())
            if not match:
                current.append(line)
                continue
            if current:
                segments.append(Segment(None, current))
            fence, current = match.group(1), [line]
            continue
        current.append(line)
        if _is_closing_fence(line, fence):
            segments.append(Segment(fence, current))
            fence, current = None, []
    if current:
        segments.append(Segment(fence, current))
    return segments


def _outside_fences(markdown: str, transform: Callable[[list[str]], list[str]]) -> str:
    lines: list[str] = []
    for segment in split_fenced(markdown):
        lines.extend(segment.lines if segment.fence else transform(segment.lines))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# 1-3. Blank lines, trailing whitespace, headings
# ---------------------------------------------------------------------------

_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_HEADING_SPACING_RE = re.compile(r"^(#{1,6})[ \t]+(?=\S)")


def _drop_repeated_blanks(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line.strip() and out and not out[-1].strip():
            continue
        out.append(line)
    return out


def collapse_blank_lines(markdown: str) -> str:
    """Reduce runs of blank lines to a single blank line."""
    return _outside_fences(markdown, _drop_repeated_blanks)


def strip_trailing_whitespace(markdown: str) -> str:
    return _TRAILING_WHITESPACE_RE.sub("", markdown)


def normalize_heading_spacing(markdown: str) -> str:
    """Leave exactly one space between a heading's ``#`` run and its text.

    ``#word`` without a space is a tag, not a heading, and is kept as is.
    """
    return _outside_fences(
        markdown, lambda lines: [_HEADING_SPACING_RE.sub(r"\1 ", line) for line in lines],
    )


# ---------------------------------------------------------------------------
# 4. Block separation
# ---------------------------------------------------------------------------

# Lines that continue the block above them: list items, numbered items,
# indented continuations, table rows and quote lines.
_CONTINUATION_RE = re.compile(r"^(?:\s|[-*+]|\d|\||>)")


def _separate_blocks(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if (
            line.strip()
            and out
            and out[-1].strip()
            and not _CONTINUATION_RE.match(line)
        ):
            out.append("")
        out.append(line)
    return out


def separate_list_blocks(markdown: str) -> str:
    """Insert a blank line before a prose line that directly follows another line.

    Best effort: a prose line that starts with a digit counts as a list item.
    """
    return _outside_fences(markdown, _separate_blocks)


# ---------------------------------------------------------------------------
# 5. Code fences
# ---------------------------------------------------------------------------

def _strip_blank_edges(lines: list[str], leading: bool, trailing: bool) -> list[str]:
    start, end = 0, len(lines)
    while leading and start < end and not lines[start].strip():
        start += 1
    while trailing and end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


def trim_code_fences(markdown: str) -> str:
    """Drop blank lines right after an opening fence and right before its close."""
    lines: list[str] = []
    for segment in split_fenced(markdown):
        if not segment.fence:
            lines.extend(segment.lines)
        elif segment.closed:
            body = _strip_blank_edges(segment.lines[1:-1], True, True)
            lines.extend([segment.lines[0], *body, segment.lines[-1]])
        else:
            body = _strip_blank_edges(segment.lines[1:], True, False)
            lines.extend([segment.lines[0], *body])
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# 6. Tables
# ---------------------------------------------------------------------------

_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_SEPARATOR_ROW_RE = re.compile(r"^\s*\|(?:\s*:?-+:?\s*\|)+\s*$")


def _is_table_row(line: str) -> bool:
    return line.lstrip().startswith("|")


def split_table_row(line: str) -> list[str]:
    """Return the trimmed cells of a pipe-table row; ``\\|`` stays in its cell."""
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.strip() for cell in _CELL_SPLIT_RE.split(row)]


def _format_table(header: list[str], rows: list[list[str]]) -> list[str]:
    widths = [len(cell) for cell in header]
    for row in rows:
        for i, cell in enumerate(row[: len(widths)]):
            widths[i] = max(widths[i], len(cell))
    widths = [max(w, 1) for w in widths]

    def emit(cells: list[str]) -> str:
        return "| " + " | ".join(c.ljust(w) for c, w in zip(cells, widths)) + " |"

    # zip() drops cells beyond the header's column count
    return [emit(header), emit(["-" * w for w in widths]), *(emit(r) for r in rows)]


def _format_table_blocks(lines: list[str]) -> list[str]:
    out: list[str] = []
    i = 0
    while i < len(lines):
        line = lines[i]
        if (
            _is_table_row(line)
            and i + 2 < len(lines)
            and _SEPARATOR_ROW_RE.match(lines[i + 1])
            and _is_table_row(lines[i + 2])
            and not _SEPARATOR_ROW_RE.match(line)
        ):
            end = i + 2
            while end < len(lines) and _is_table_row(lines[end]):
                end += 1
            header = split_table_row(line)
            rows = [split_table_row(row) for row in lines[i + 2:end]]
            out.extend(_format_table(header, rows))
            i = end
            continue
        out.append(line)
        i += 1
    return out


def format_tables(markdown: str) -> str:
    """Pad every pipe table so that each column has one width.

    A column's width is the longest trimmed cell in it (header included).
    Data rows shorter than the header keep their cell count.
    """
    return _outside_fences(markdown, _format_table_blocks)


# ---------------------------------------------------------------------------
# 7-8. Links and backticks
# ---------------------------------------------------------------------------

_EMPTY_LINK_RE = re.compile(r"(?<!!)\[([^\]\n]*)\]\(\s*\)")
_SINGLE_BACKTICK_RE = re.compile(r"(?<!`)`(?!`)")


def collapse_empty_links(markdown: str) -> str:
    """``[text]()`` becomes ``text``; images are left alone."""
    return _outside_fences(
        markdown, lambda lines: [_EMPTY_LINK_RE.sub(r"\1", line) for line in lines],
    )


def _unpair_backticks(lines: list[str]) -> list[str]:
    out = list(lines)
    i = 0
    while i < len(out) - 1:
        first, second = out[i], out[i + 1]
        ticks_first = [m.start() for m in _SINGLE_BACKTICK_RE.finditer(first)]
        ticks_second = [m.start() for m in _SINGLE_BACKTICK_RE.finditer(second)]
        if len(ticks_first) % 2 and len(ticks_second) % 2:
            opening, closing = ticks_first[-1], ticks_second[0]
            after = first[opening + 1:opening + 2]
            before = second[closing - 1:closing] if closing else ""
            if after.strip() and before.strip():
                out[i] = first[:opening] + first[opening + 1:]
                out[i + 1] = second[:closing] + second[closing + 1:]
                i += 2
                continue
        i += 1
    return out


def strip_stray_backticks(markdown: str) -> str:
    """Remove single backtick pairs that straddle a line break.

    Inline code spans on one line are real code and stay.  An unmatched
    backtick that pairs with one on the next line is leftover markup, so both
    are dropped and the text between them kept.  A backtick next to whitespace
    or another backtick is never touched.
    """
    return _outside_fences(markdown, _unpair_backticks)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

PASSES: tuple[Callable[[str], str], ...] = (
    collapse_blank_lines,
    strip_trailing_whitespace,
    normalize_heading_spacing,
    separate_list_blocks,
    trim_code_fences,
    format_tables,
    collapse_empty_links,
    strip_stray_backticks,
    str.strip,
)


def _run_passes(markdown: str) -> str:
    for step in PASSES:
        markdown = step(markdown)
    return markdown


def postprocess(markdown: str) -> str:
    """Normalise raw Markdown produced by the rule engine.

    Re-runs :data:`PASSES` until the text stops changing, so
    ``postprocess(postprocess(m)) == postprocess(m)``.
    """
    if not markdown:
        return ""
    for _ in range(_MAX_ROUNDS):
        processed = _run_passes(markdown)
        if processed == markdown:
            break
        markdown = processed
    else:
        logger.debug("Markdown postprocess did not settle after %d rounds", _MAX_ROUNDS)
    return markdown
