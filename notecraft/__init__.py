"""notecraft - turn web pages into structured Markdown notes.

Quick usage::

    from notecraft import extract, render_note

    content = extract(html, url="https://example.com/docs/page")
    print(content.title)
    print(render_note(content))

Adding a site-specific strategy::

    from notecraft import default_registry, extract

    class DocsSite:
        name = "docs-site"
        def can_handle(self, url, document):
            return "docs.example.com" in url
        def extract(self, document, url=""):
            ...

    registry = default_registry()
    registry.register(DocsSite())
    content = extract(html, url=url, registry=registry)
"""

from notecraft.errors import ConfigError, FetchError, NoExtractorAvailable, NotecraftError
from notecraft.items import ExportMode, ExtractedContent, ImageAsset
from notecraft.notes import render_note
from notecraft.query import default_registry, extract, fetch_html, parse_document
from notecraft.registry import ExtractorRegistry, ExtractorStrategy

__version__ = "0.1.0"
__all__ = [
    "ConfigError",
    "ExportMode",
    "ExtractedContent",
    "ExtractorRegistry",
    "ExtractorStrategy",
    "FetchError",
    "ImageAsset",
    "NoExtractorAvailable",
    "NotecraftError",
    "default_registry",
    "extract",
    "fetch_html",
    "parse_document",
    "render_note",
]
