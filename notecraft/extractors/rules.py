"""Rule-driven HTML to Markdown conversion built on markdownify.

markdownify renders every node bottom-up: children first, then the node's own
``convert_<tag>`` function.  :class:`RuleEngine` hooks into that last step and
offers each node, together with its already-rendered children, to an ordered
list of :class:`ConversionRule` objects.  The first rule whose filter matches
and whose replacement returns a string wins; otherwise markdownify's default
conversion runs.

Usage::

    engine = build_engine()
    markdown = engine.render(soup.body)

Build a fresh engine per extraction; rules never share state between engines.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from bs4 import Tag
from markdownify import ASTERISK, ATX, MarkdownConverter, chomp

from notecraft.extractors.preprocess import PSEUDO_TABLE_ATTR
from notecraft.settings import BULLET_MARKER, TABLE_CELL_ELLIPSIS, TABLE_CELL_MAX_CHARS

logger = logging.getLogger(__name__)

RuleFilter = Callable[[Tag], bool]
RuleReplacement = Callable[[str, Tag, dict[str, Any]], "str | None"]


@dataclass(frozen=True)
class ConversionRule:
    """A node predicate paired with the Markdown it renders to.

    ``replacement(content, node, options)`` receives the rendered Markdown of
    the node's children.  Returning ``None`` declines the node and lets the
    next rule (or the default conversion) handle it.
    """

    name: str
    filter: RuleFilter
    replacement: RuleReplacement


# ---------------------------------------------------------------------------
# Node helpers
# ---------------------------------------------------------------------------

def node_classes(node: Tag) -> list[str]:
    """Return the lower-cased class tokens of *node*."""
    value = node.get("class") or []
    if isinstance(value, str):
        value = value.split()
    return [str(c).lower() for c in value]


def _attr(node: Tag, name: str) -> str:
    value = node.get(name)
    if isinstance(value, list):
        return " ".join(str(v) for v in value).strip()
    return str(value or "").strip()


def _title_part(node: Tag) -> str:
    title = _attr(node, "title")
    return ' "%s"' % title.replace('"', r"\"") if title else ""


def _quote_lines(text: str) -> str:
    return "\n".join(("> " + line).rstrip() for line in text.split("\n"))


# ---------------------------------------------------------------------------
# Suppressed elements
# ---------------------------------------------------------------------------

SUPPRESSED_TAGS: frozenset[str] = frozenset(
    {"script", "style", "nav", "header", "footer", "aside"},
)


def _suppressed(content: str, node: Tag, options: dict[str, Any]) -> str:
    return ""


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------

LANGUAGE_ALIASES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "node": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "py3": "python",
    "python3": "python",
    "sh": "bash",
    "shell": "bash",
    "zsh": "bash",
    "console": "bash",
    "yml": "yaml",
    "cloudformation": "yaml",
    "terraform": "hcl",
    "tf": "hcl",
    "ps": "powershell",
    "ps1": "powershell",
    "rb": "ruby",
    "golang": "go",
    "rs": "rust",
    "kt": "kotlin",
    "cs": "csharp",
    "c#": "csharp",
    "md": "markdown",
}

_CLASS_LANGUAGE_RE = re.compile(r"^(?:language|lang)-(.+)$")
_BACKTICK_RUN_RE = re.compile(r"`{3,}")


def canonical_language(name: str) -> str:
    """Map a language alias to its canonical fence tag."""
    name = name.strip().lower()
    return LANGUAGE_ALIASES.get(name, name)


def detect_code_language(*elements: Tag | None) -> str:
    """Return the fence language declared on the first element that has one.

    ``data-language`` (set by the preprocessor) wins over ``language-x`` and
    ``lang-x`` classes.
    """
    for el in elements:
        if el is None:
            continue
        declared = _attr(el, "data-language")
        if declared:
            return canonical_language(declared)
        for cls in node_classes(el):
            match = _CLASS_LANGUAGE_RE.match(cls)
            if match:
                return canonical_language(match.group(1))
    return ""


def fenced_block(code: str, language: str = "") -> str:
    """Wrap *code* in a backtick fence long enough not to collide with it."""
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=2)
    fence = "`" * max(3, longest + 1)
    return f"\n\n{fence}{language}\n{code.strip(chr(10))}\n{fence}\n\n"


def _is_code_block(node: Tag) -> bool:
    return node.name == "pre" and node.find("code") is not None


def _code_block(content: str, node: Tag, options: dict[str, Any]) -> str:
    code = node.find("code")
    language = detect_code_language(code, node)
    # Raw text, not the rendered children: markup characters stay intact
    return fenced_block(code.get_text() if code else node.get_text(), language)


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def table_cell_text(cell: Tag) -> str:
    """Flatten a cell to one line, cap its length and escape pipes."""
    text = " ".join(cell.get_text().split())
    if len(text) > TABLE_CELL_MAX_CHARS:
        keep = TABLE_CELL_MAX_CHARS - len(TABLE_CELL_ELLIPSIS)
        text = text[:keep].rstrip() + TABLE_CELL_ELLIPSIS
    return text.replace("|", r"\|")


def _pipe_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def render_table_rows(rows: list[list[str]]) -> str:
    """Render cell rows as a pipe table; the first row is the header.

    Rows shorter than the header are padded with empty cells.
    """
    rows = [row for row in rows if row]
    if not rows:
        return ""
    header = rows[0]
    lines = [_pipe_row(header), _pipe_row(["---"] * len(header))]
    for row in rows[1:]:
        if len(row) < len(header):
            row = row + [""] * (len(header) - len(row))
        lines.append(_pipe_row(row))
    return "\n\n" + "\n".join(lines) + "\n\n"


def _table(content: str, node: Tag, options: dict[str, Any]) -> str:
    rows: list[list[str]] = []
    for tr in node.find_all("tr"):
        # Rows of nested tables belong to those tables
        if tr.find_parent("table") is not node:
            continue
        rows.append([table_cell_text(c) for c in tr.find_all(["th", "td"], recursive=False)])
    return render_table_rows(rows)


# ---------------------------------------------------------------------------
# Div-based pseudo tables (marked by the preprocessor)
# ---------------------------------------------------------------------------

_ROW_CLASS_RE = re.compile(r"\brow|head")


def _is_row_div(node: Tag) -> bool:
    return node.name == "div" and bool(_ROW_CLASS_RE.search(" ".join(node_classes(node))))


def _is_pseudo_table(node: Tag) -> bool:
    return node.name == "div" and node.has_attr(PSEUDO_TABLE_ATTR)


def _outer_rows(table: Tag) -> list[Tag]:
    """Row divs of *table* that are not nested inside another row div."""
    rows = []
    for row in table.find_all(_is_row_div):
        ancestor = row.parent
        while ancestor is not None and ancestor is not table and not _is_row_div(ancestor):
            ancestor = ancestor.parent
        if ancestor is table:
            rows.append(row)
    return rows


def _pseudo_table(content: str, node: Tag, options: dict[str, Any]) -> str | None:
    rows: list[list[str]] = []
    for row in _outer_rows(node):
        cells = [table_cell_text(c) for c in row.children if isinstance(c, Tag)]
        if cells:
            rows.append(cells)
    if not rows:
        return None
    return render_table_rows(rows)


# ---------------------------------------------------------------------------
# YouTube embeds
# ---------------------------------------------------------------------------

_YOUTUBE_HOST_RE = re.compile(r"(?:^|//|\.)(?:youtube(?:-nocookie)?\.com|youtu\.be)/", re.IGNORECASE)

# Tried in order; the first capture wins
YOUTUBE_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube(?:-nocookie)?\.com/embed/)([^&\s?#/]+)"),
    re.compile(r"youtube\.com/watch\?.*?\bv=([^&\s#]+)"),
    re.compile(r"youtube\.com/(?:shorts|live|v)/([^&\s?#/]+)"),
)


def youtube_video_id(url: str) -> str | None:
    """Return the video ID from a YouTube watch, embed or short URL."""
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def is_youtube_iframe(node: Tag) -> bool:
    return node.name == "iframe" and bool(_YOUTUBE_HOST_RE.search(_attr(node, "src")))


def _youtube(content: str, node: Tag, options: dict[str, Any]) -> str:
    video_id = youtube_video_id(_attr(node, "src"))
    if not video_id:
        return ""
    thumbnail = f"https://img.youtube.com/vi/{video_id}/0.jpg"
    return f"\n\n[![YouTube Video]({thumbnail})](https://www.youtube.com/watch?v={video_id})\n\n"


# ---------------------------------------------------------------------------
# Images and links
# ---------------------------------------------------------------------------

def _image(content: str, node: Tag, options: dict[str, Any]) -> str:
    src = _attr(node, "src")
    if not src:
        return ""
    return f"![{_attr(node, 'alt')}]({src}{_title_part(node)})"


def _is_link(node: Tag) -> bool:
    return node.name == "a" and node.has_attr("href")


def _link(content: str, node: Tag, options: dict[str, Any]) -> str:
    prefix, suffix, text = chomp(content)
    href = _attr(node, "href")
    if text and text == href:
        return f"{prefix}<{href}>{suffix}"
    if not text:
        return href
    if not href:
        return f"{prefix}{text}{suffix}"
    return f"{prefix}[{text}]({href}{_title_part(node)}){suffix}"


# ---------------------------------------------------------------------------
# Callouts / admonitions
# ---------------------------------------------------------------------------

CALLOUT_CLASSES: frozenset[str] = frozenset(
    {"callout", "admonition", "alert", "note", "notice", "aws-note"},
)
CALLOUT_ROLES: frozenset[str] = frozenset({"note", "alert"})

# Checked in this order; the first keyword found in any class token wins
CALLOUT_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("WARNING", ("warning", "caution", "attention")),
    ("TIP", ("tip", "hint", "success")),
    ("DANGER", ("danger", "error", "important", "critical")),
    ("INFO", ("info",)),
)


def is_callout(node: Tag) -> bool:
    if not node.name:
        return False
    if CALLOUT_CLASSES.intersection(node_classes(node)):
        return True
    return _attr(node, "role").lower() in CALLOUT_ROLES


def classify_callout(node: Tag) -> str:
    """Return NOTE, WARNING, TIP, DANGER or INFO for a callout element."""
    classes = node_classes(node)
    for kind, keywords in CALLOUT_KEYWORDS:
        if any(keyword in cls for keyword in keywords for cls in classes):
            return kind
    return "NOTE"


def _callout(content: str, node: Tag, options: dict[str, Any]) -> str:
    body = content.strip()
    if not body:
        return ""
    return f"\n\n> [!{classify_callout(node)}]\n{_quote_lines(body)}\n\n"


def _blockquote(content: str, node: Tag, options: dict[str, Any]) -> str:
    body = content.strip()
    if not body:
        return ""
    return f"\n\n{_quote_lines(body)}\n\n"


# ---------------------------------------------------------------------------
# List items
# ---------------------------------------------------------------------------

def _ordered_start(ol: Tag) -> int:
    try:
        return int(_attr(ol, "start"))
    except ValueError:
        return 1


def list_item_marker(node: Tag, bullet: str = BULLET_MARKER) -> str:
    """Return the marker for an ``<li>``: ``N.`` in ordered lists, else *bullet*.

    N is the ``<ol>`` start plus the number of preceding ``<li>`` siblings, so
    stray non-``<li>`` children never shift the numbering.
    """
    parent = node.parent
    if isinstance(parent, Tag) and parent.name == "ol":
        return f"{_ordered_start(parent) + len(node.find_previous_siblings('li'))}."
    return bullet


def _list_item(content: str, node: Tag, options: dict[str, Any]) -> str:
    text = content.strip()
    if not text:
        return ""
    bullets = options.get("bullets") or BULLET_MARKER
    prefix = list_item_marker(node, bullets[0]) + " "
    indent = " " * len(prefix)
    first, *rest = text.split("\n")
    lines = [prefix + first] + [indent + line if line else "" for line in rest]
    return "\n".join(lines) + "\n"


def _horizontal_rule(content: str, node: Tag, options: dict[str, Any]) -> str:
    return "\n\n---\n\n"


# ---------------------------------------------------------------------------
# Baseline rule set (specific rules before generic ones)
# ---------------------------------------------------------------------------

BASELINE_RULES: tuple[ConversionRule, ...] = (
    ConversionRule("suppressed", lambda n: n.name in SUPPRESSED_TAGS, _suppressed),
    ConversionRule("code_block", _is_code_block, _code_block),
    ConversionRule("table", lambda n: n.name == "table", _table),
    ConversionRule("pseudo_table", _is_pseudo_table, _pseudo_table),
    ConversionRule("youtube", is_youtube_iframe, _youtube),
    ConversionRule("image", lambda n: n.name == "img", _image),
    ConversionRule("link", _is_link, _link),
    ConversionRule("callout", is_callout, _callout),
    ConversionRule("blockquote", lambda n: n.name == "blockquote", _blockquote),
    ConversionRule("list_item", lambda n: n.name == "li", _list_item),
    ConversionRule("horizontal_rule", lambda n: n.name == "hr", _horizontal_rule),
)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class RuleEngine(MarkdownConverter):
    """markdownify converter that consults :class:`ConversionRule` objects first.

    Markdown escaping is switched off: the rules escape what needs escaping
    (table pipes, link titles) and a second escaping pass would corrupt it.
    """

    class Options(MarkdownConverter.DefaultOptions):
        bs4_options = "lxml"
        heading_style = ATX
        bullets = BULLET_MARKER
        strong_em_symbol = ASTERISK
        escape_asterisks = False
        escape_underscores = False
        escape_misc = False

    def __init__(self, rules: Iterable[ConversionRule] = (), **options: Any) -> None:
        super().__init__(**options)
        self.rules: tuple[ConversionRule, ...] = tuple(rules)
        self._dispatch_cache: dict[str, Callable[..., str]] = {}

    def get_conv_fn_cached(self, tag_name: str) -> Callable[..., str] | None:
        default = super().get_conv_fn_cached(tag_name)
        if not self.rules:
            return default
        if tag_name in self._dispatch_cache:
            return self._dispatch_cache[tag_name]

        def convert(el: Tag, text: str, parent_tags: set[str]) -> str:
            # Inside <pre>/<code> everything is literal text
            if "_noformat" not in parent_tags:
                converted = self.apply_rules(el, text)
                if converted is not None:
                    return converted
            return default(el, text, parent_tags=parent_tags) if default else text

        self._dispatch_cache[tag_name] = convert
        return convert

    def apply_rules(self, node: Tag, content: str) -> str | None:
        """Return the first rule replacement for *node*, or None."""
        for rule in self.rules:
            try:
                if not rule.filter(node):
                    continue
                converted = rule.replacement(content, node, self.options)
            except Exception as exc:
                logger.warning("Conversion rule %r failed on <%s>: %s", rule.name, node.name, exc)
                continue
            if converted is not None:
                return converted
        return None

    def render(self, node: Tag | str) -> str:
        """Render a parsed node (or an HTML string) to raw Markdown."""
        if isinstance(node, str):
            return self.convert(node)
        return self.convert_soup(node)


def build_engine(extra_rules: Iterable[ConversionRule] = ()) -> RuleEngine:
    """Return a new engine with *extra_rules* ahead of :data:`BASELINE_RULES`."""
    return RuleEngine(rules=(*extra_rules, *BASELINE_RULES))
