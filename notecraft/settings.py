"""Project-wide defaults for notecraft.

Values here are the fallbacks used when no YAML profile (see
:mod:`notecraft.profiles`) overrides them.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------
USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------
DEFAULT_EXPORT_MODE = "reference"

# Used when a document yields no title at all
DEFAULT_TITLE = "Untitled"

# Alt text for images without one
DEFAULT_IMAGE_ALT = "image"

# Automatic tag detection never returns more than this many tags
MAX_AUTO_TAGS = 10

# ---------------------------------------------------------------------------
# Markdown rendering
# ---------------------------------------------------------------------------
BULLET_MARKER = "-"

# Table cells longer than this are cut and end with TABLE_CELL_ELLIPSIS
TABLE_CELL_MAX_CHARS = 100
TABLE_CELL_ELLIPSIS = "..."

# Study-mode summary: first N prose paragraphs, capped at this many chars
SUMMARY_MAX_PARAGRAPHS = 3
SUMMARY_MAX_CHARS = 500

# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------
FILENAME_TEMPLATE = "{{date}}-{{title}}"
FILENAME_MAX_CHARS = 100

# ---------------------------------------------------------------------------
# HTTP (CLI --url only)
# ---------------------------------------------------------------------------
DOWNLOAD_TIMEOUT = 30
