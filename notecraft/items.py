"""Pydantic models for extracted notes and their image assets."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

from notecraft.settings import DEFAULT_IMAGE_ALT, DEFAULT_TITLE


class ExportMode(str, Enum):
    """How the extracted body is shaped before it is handed to the caller."""

    REFERENCE = "reference"  # plain technical reference, body untouched
    STUDY = "study"          # summary + review questions around the body
    FLASHCARDS = "flashcards"  # spaced-repetition cards built from headings


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class ImageAsset(BaseModel):
    """An image referenced by the extracted body.

    ``original_url`` is the identity key: one extraction never holds two
    assets with the same URL string.
    """

    original_url: str
    local_path: str | None = None
    alt_text: str = DEFAULT_IMAGE_ALT
    is_diagram: bool = False
    mime_type: str | None = None

    @field_validator("alt_text", mode="before")
    @classmethod
    def default_alt(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or DEFAULT_IMAGE_ALT
        return v or DEFAULT_IMAGE_ALT


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------

class ExtractedContent(BaseModel):
    """Output of one extraction run."""

    title: str = DEFAULT_TITLE
    author: str | None = None
    date: datetime | None = None
    source_url: str | None = None

    # Insertion order is detection order
    tags: list[str] = Field(default_factory=list)

    markdown: str = ""
    images: list[ImageAsset] = Field(default_factory=list)

    # Extractor specific: course title, word count, export mode, ...
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or DEFAULT_TITLE
        return v or DEFAULT_TITLE

    @field_validator("author", "source_url", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    def image_urls(self) -> list[str]:
        """Return the original URLs of all images, in detection order."""
        return [img.original_url for img in self.images]
