"""Turn an :class:`ExtractedContent` into a note: frontmatter, body, file name.

Storage and image download stay with the caller.  :func:`resolve_images`
is the seam for the latter: it hands each image to a resolver callable and
collects what comes back.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

import yaml

from notecraft.items import ExtractedContent, ImageAsset
from notecraft.settings import DEFAULT_TITLE, FILENAME_MAX_CHARS, FILENAME_TEMPLATE

logger = logging.getLogger(__name__)

ImageResolver = Callable[[ImageAsset, str], ImageAsset]

# ---------------------------------------------------------------------------
# Frontmatter
# ---------------------------------------------------------------------------

def _frontmatter_data(content: ExtractedContent) -> dict[str, Any]:
    data: dict[str, Any] = {"title": content.title}
    if content.author:
        data["author"] = content.author
    if content.date:
        data["date"] = content.date.date()
    if content.source_url:
        data["source"] = content.source_url
    if content.tags:
        data["tags"] = list(content.tags)
    metadata = {k: v for k, v in content.metadata.items() if v is not None}
    if metadata:
        data["metadata"] = metadata
    return data


def build_frontmatter(content: ExtractedContent) -> str:
    """Return the ``---`` delimited YAML header for *content*.

    Keys, in order: ``title``, ``author``, ``date`` (ISO date), ``source``,
    ``tags`` and the extractor ``metadata``; empty ones are left out.
    """
    dumped = yaml.safe_dump(
        _frontmatter_data(content),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"---\n{dumped}---\n"


def render_note(content: ExtractedContent, show_frontmatter: bool = True) -> str:
    body = content.markdown.strip()
    if not show_frontmatter:
        return body + "\n"
    return f"{build_frontmatter(content)}\n{body}\n"


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

_FILE_STEM_RE = re.compile(r"[^a-zA-Z0-9\-_]")
_DASH_RUN_RE = re.compile(r"-+")
_VALID_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "svg", "webp", "bmp"})
_DATA_URL_MIME_RE = re.compile(r"^data:([^;,]+)[;,]")
_MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/gif": "gif",
    "image/svg+xml": "svg",
    "image/webp": "webp",
    "image/bmp": "bmp",
}


def _image_extension(image: ImageAsset) -> str:
    url = image.original_url
    if url.startswith("data:"):
        match = _DATA_URL_MIME_RE.match(url)
        return _MIME_EXTENSIONS.get(match.group(1).lower(), "png") if match else "png"
    path = url.split("?", 1)[0].split("#", 1)[0]
    extension = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return extension if extension in _VALID_EXTENSIONS else "png"


def image_filename(image: ImageAsset, stem: str) -> str:
    """Return a local file name for *image*: ``<stem>[-diagram].<ext>``.

    Unknown or missing extensions become ``png``.
    """
    clean = _DASH_RUN_RE.sub("-", _FILE_STEM_RE.sub("-", stem)).lower()
    suffix = "-diagram" if image.is_diagram else ""
    return f"{clean}{suffix}.{_image_extension(image)}"


def resolve_images(
    images: Iterable[ImageAsset],
    resolver: ImageResolver,
    note_name: str = "image",
) -> list[ImageAsset]:
    """Pass each image to *resolver* in order and collect the results.

    The resolver gets the asset and a suggested file name
    (``<note_name>-<n>...``) and returns the updated asset, normally with
    ``local_path`` set.  A resolver that raises leaves that one image as it
    was; the others are still processed.
    """
    resolved: list[ImageAsset] = []
    for index, image in enumerate(images, start=1):
        try:
            resolved.append(resolver(image, image_filename(image, f"{note_name}-{index}")))
        except Exception as exc:
            logger.warning("Could not resolve image %s: %s", image.original_url, exc)
            resolved.append(image)
    return resolved


def apply_local_paths(markdown: str, images: Iterable[ImageAsset]) -> str:
    """Replace every occurrence of each image's original URL with its local path."""
    for image in images:
        if image.local_path:
            markdown = markdown.replace(image.original_url, image.local_path)
    return markdown


# ---------------------------------------------------------------------------
# File names
# ---------------------------------------------------------------------------

_UNSAFE_FILENAME_RE = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE_RE = re.compile(r"\s+")


def sanitize_filename(name: str) -> str:
    """Lower-case, dash-separated, filesystem-safe version of *name*."""
    name = _UNSAFE_FILENAME_RE.sub("-", name.strip())
    name = _DASH_RUN_RE.sub("-", _WHITESPACE_RE.sub("-", name))
    return name[:FILENAME_MAX_CHARS].strip("-").lower() or DEFAULT_TITLE.lower()


def note_filename(
    title: str,
    template: str = FILENAME_TEMPLATE,
    today: datetime | None = None,
) -> str:
    """Expand ``{{date}}``, ``{{time}}`` and ``{{title}}`` in *template*; ``.md`` is appended."""
    today = today or datetime.now()
    name = (
        template.replace("{{date}}", today.strftime("%Y-%m-%d"))
        .replace("{{time}}", today.strftime("%H-%M-%S"))
        .replace("{{title}}", sanitize_filename(title))
    )
    return name if name.endswith(".md") else name + ".md"
