"""Lexical HTML clean-up applied before the document is parsed.

Passes run in the order listed in :data:`PASSES`; each one assumes the
normalisation done by the passes before it:

1. :func:`clean_attributes`       presentational attributes out, structure in
2. :func:`normalize_whitespace`   collapse whitespace outside ``<pre>``/``<code>``
3. :func:`mark_pseudo_tables`     tag div-based tables for the rule engine
4. :func:`normalize_code_blocks`  every ``<pre>`` wraps a ``<code>``
5. :func:`remove_empty_elements`  drop whitespace-only p/div/span, merge ``<br>`` runs
6. :func:`normalize_headings`     keep the first ``<h1>``, demote the rest

Every pass is a pure ``str -> str`` function.  None of them tries to be an HTML
parser: when a structure cannot be classified confidently the input is
returned unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Marker attribute added by mark_pseudo_tables and consumed by the
# pseudo_table conversion rule.
PSEUDO_TABLE_ATTR = "data-md-table"

# ---------------------------------------------------------------------------
# 1. Attributes
# ---------------------------------------------------------------------------

_START_TAG_RE = re.compile(r"<([a-zA-Z][^\s/>]*)([^<>]*)>")

_ATTR_VALUE = r"""(?:"[^"]*"|'[^']*'|[^\s"'>]+)"""
_STYLE_ATTR_RE = re.compile(r"\s+style\s*=\s*" + _ATTR_VALUE, re.IGNORECASE)
_DATA_ATTR_RE = re.compile(r"\s+data-[\w.:-]+(?:\s*=\s*" + _ATTR_VALUE + ")?", re.IGNORECASE)
_EMPTY_CLASS_RE = re.compile(r"""\s+class\s*=\s*(?:"\s*"|'\s*')""", re.IGNORECASE)


def _clean_start_tag(match: re.Match[str]) -> str:
    attrs = match.group(2)
    if not attrs.strip() or attrs.strip() == "/":
        return match.group(0)
    attrs = _STYLE_ATTR_RE.sub("", attrs)
    attrs = _DATA_ATTR_RE.sub("", attrs)
    attrs = _EMPTY_CLASS_RE.sub("", attrs)
    return f"<{match.group(1)}{attrs}>"


def clean_attributes(html: str) -> str:
    """Strip ``style``, ``data-*`` and empty ``class`` attributes.

    Only the inside of start tags is touched, so text that merely looks like
    an attribute (escaped markup in a code sample) survives.
    """
    return _START_TAG_RE.sub(_clean_start_tag, html)


# ---------------------------------------------------------------------------
# 2. Whitespace
# ---------------------------------------------------------------------------

# One capturing group: re.split() puts protected regions at odd indices
_PROTECTED_RE = re.compile(
    r"(<pre\b[^>]*>.*?</pre\s*>|<code\b[^>]*>.*?</code\s*>)",
    re.IGNORECASE | re.DOTALL,
)
_WHITESPACE_RUN_RE = re.compile(r"\s+")


def normalize_whitespace(html: str) -> str:
    """Collapse whitespace outside ``<pre>``/``<code>`` regions.

    Whitespace runs (newlines included) become one space, so after this pass
    the only line structure left lives inside preformatted regions, which are
    copied through byte for byte.
    """
    parts = _PROTECTED_RE.split(html)
    for i in range(0, len(parts), 2):
        parts[i] = _WHITESPACE_RUN_RE.sub(" ", parts[i])
    return "".join(parts).strip()


# ---------------------------------------------------------------------------
# 3. Div-based pseudo tables
# ---------------------------------------------------------------------------

_TABLE_DIV_RE = re.compile(
    r"""<div\b(?=[^>]*\bclass\s*=\s*["'][^"']*table)[^>]*>""",
    re.IGNORECASE,
)
_DIV_TAG_RE = re.compile(r"<(/?)div\b[^>]*>", re.IGNORECASE)
_ROW_DIV_RE = re.compile(r"""<div\b[^>]*\bclass\s*=\s*["'][^"']*\brow""", re.IGNORECASE)


def _matching_div_close(html: str, start: int) -> int | None:
    """Return the offset of the ``</div>`` closing a div opened before *start*."""
    depth = 1
    for tag in _DIV_TAG_RE.finditer(html, start):
        depth += -1 if tag.group(1) else 1
        if depth == 0:
            return tag.start()
    return None


def mark_pseudo_tables(html: str) -> str:
    """Mark ``div.*table*`` blocks that contain ``row``-classed divs.

    The marker is the :data:`PSEUDO_TABLE_ATTR` attribute; the actual
    conversion happens in the rule engine.  Blocks without row markers, or
    whose closing tag cannot be found, are left alone.
    """
    out: list[str] = []
    pos = 0
    for match in _TABLE_DIV_RE.finditer(html):
        tag = match.group(0)
        if PSEUDO_TABLE_ATTR in tag:
            continue
        close = _matching_div_close(html, match.end())
        if close is None:
            continue
        if not _ROW_DIV_RE.search(html, match.end(), close):
            continue
        out.append(html[pos:match.start()])
        out.append(f"{tag[:-1].rstrip()} {PSEUDO_TABLE_ATTR}>")
        pos = match.end()
    if not out:
        return html
    out.append(html[pos:])
    return "".join(out)


# ---------------------------------------------------------------------------
# 4. Code blocks
# ---------------------------------------------------------------------------

_PRE_BLOCK_RE = re.compile(r"(<pre\b[^>]*>)(.*?)(</pre\s*>)", re.IGNORECASE | re.DOTALL)
_STARTS_WITH_CODE_RE = re.compile(r"\s*<code\b", re.IGNORECASE)
_CODE_TAG_RE = re.compile(r"<code\b[^>]*>", re.IGNORECASE)
_CLASS_VALUE_RE = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)
_LANG_CLASS_RE = re.compile(r"(?:^|\s)(?:language|lang)-([\w+#-]+)", re.IGNORECASE)


def _language_in_tag(tag: str) -> str | None:
    cls = _CLASS_VALUE_RE.search(tag)
    if not cls:
        return None
    lang = _LANG_CLASS_RE.search(cls.group(1) or cls.group(2) or "")
    return lang.group(1) if lang else None


def _wrap_pre(match: re.Match[str]) -> str:
    open_tag, inner, close_tag = match.groups()
    if _STARTS_WITH_CODE_RE.match(inner):
        return match.group(0)
    lang = _language_in_tag(open_tag)
    code_open = f'<code class="language-{lang}">' if lang else "<code>"
    return f"{open_tag}{code_open}{inner}</code>{close_tag}"


def _tag_code_language(match: re.Match[str]) -> str:
    tag = match.group(0)
    if "data-language" in tag.lower():
        return tag
    lang = _language_in_tag(tag)
    if not lang:
        return tag
    return f'{tag[:-1].rstrip()} data-language="{lang}">'


def normalize_code_blocks(html: str) -> str:
    """Give every ``<pre>`` a ``<code>`` child and expose its language.

    A ``language-x`` (or ``lang-x``) class becomes ``data-language="x"`` on the
    ``<code>`` element.
    """
    html = _PRE_BLOCK_RE.sub(_wrap_pre, html)
    return _CODE_TAG_RE.sub(_tag_code_language, html)


# ---------------------------------------------------------------------------
# 5. Empty elements
# ---------------------------------------------------------------------------

_EMPTY_ELEMENT_RE = re.compile(r"<(p|div|span)\b[^>]*>\s*</\1\s*>", re.IGNORECASE)
_BR_RUN_RE = re.compile(r"(?:<br\s*/?>\s*){2,}", re.IGNORECASE)


def remove_empty_elements(html: str) -> str:
    """Remove whitespace-only ``<p>``, ``<div>`` and ``<span>`` elements.

    Removal repeats until nothing changes, so a parent left empty by the
    removal of its children goes as well.  Runs of ``<br>`` collapse to one.
    ``<pre>``/``<code>`` regions are left alone: highlighters emit
    whitespace-only spans there that carry the code's indentation.
    """
    parts = _PROTECTED_RE.split(html)
    for i in range(0, len(parts), 2):
        text = parts[i]
        while True:
            cleaned = _EMPTY_ELEMENT_RE.sub("", text)
            if cleaned == text:
                break
            text = cleaned
        parts[i] = _BR_RUN_RE.sub("<br>", text)
    return "".join(parts)


# ---------------------------------------------------------------------------
# 6. Headings
# ---------------------------------------------------------------------------

_H1_RE = re.compile(r"<h1\b([^>]*)>(.*?)</h1\s*>", re.IGNORECASE | re.DOTALL)


def normalize_headings(html: str) -> str:
    """Keep the first ``<h1>``; every later one becomes ``<h2>`` (attributes kept)."""
    seen = 0

    def _demote(match: re.Match[str]) -> str:
        nonlocal seen
        seen += 1
        if seen == 1:
            return match.group(0)
        return f"<h2{match.group(1)}>{match.group(2)}</h2>"

    return _H1_RE.sub(_demote, html)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

PASSES: tuple[Callable[[str], str], ...] = (
    clean_attributes,
    normalize_whitespace,
    mark_pseudo_tables,
    normalize_code_blocks,
    remove_empty_elements,
    normalize_headings,
)


def preprocess(html: str) -> str:
    """Run all :data:`PASSES` over *html* in order."""
    if not html:
        return ""
    for step in PASSES:
        try:
            html = step(html)
        except Exception as exc:
            logger.debug("Preprocess pass %s skipped: %s", step.__name__, exc)
    return html
