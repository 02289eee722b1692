"""YAML-based extraction profiles.

A profile file has a ``default`` section and optional per-domain overrides::

    default:
      export_mode: reference
      custom_tags: [clippings]
    domains:
      skillbuilder.aws:
        export_mode: study
      docs.example.com:
        auto_tagging: false

The most specific matching domain (longest suffix) is merged over
``default``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from notecraft.errors import ConfigError
from notecraft.extractors.metadata import merge_tags
from notecraft.items import ExportMode, ExtractedContent
from notecraft.settings import DEFAULT_EXPORT_MODE, FILENAME_TEMPLATE


class Profile(BaseModel):
    """Settings that shape one extraction and its note."""

    export_mode: ExportMode = ExportMode(DEFAULT_EXPORT_MODE)
    auto_tagging: bool = True
    custom_tags: list[str] = Field(default_factory=list)
    filename_template: str = FILENAME_TEMPLATE
    show_frontmatter: bool = True

    @field_validator("custom_tags", mode="before")
    @classmethod
    def split_tags(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v or []


def load_profile_data(path: str | Path, url: str) -> dict[str, Any]:
    """Load YAML profile and return merged settings for the given URL."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    default = data.get("default", {}) if isinstance(data, dict) else {}
    domains = data.get("domains", {}) if isinstance(data, dict) else {}

    netloc = urlparse(url).netloc.lower()
    best_key = ""
    best_cfg: dict[str, Any] = {}
    if isinstance(domains, dict):
        for key, cfg in domains.items():
            if not isinstance(key, str) or not isinstance(cfg, dict):
                continue
            key_lower = key.lower()
            if (netloc == key_lower or netloc.endswith("." + key_lower)) and (
                len(key_lower) > len(best_key)
            ):
                best_key = key_lower
                best_cfg = cfg

    merged = {}
    if isinstance(default, dict):
        merged.update(default)
    merged.update(best_cfg or {})
    return merged


def load_profile(path: str | Path, url: str = "") -> Profile:
    """Load and validate the profile that applies to *url*.

    Raises:
        ConfigError: the file is not valid YAML or holds values a
            :class:`Profile` rejects.
    """
    try:
        return Profile.model_validate(load_profile_data(path, url))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Cannot parse profile {path}: {exc}") from exc
    except ValidationError as exc:
        raise ConfigError(f"Invalid profile {path}: {exc}") from exc


def apply_profile(content: ExtractedContent, profile: Profile) -> ExtractedContent:
    """Return a copy of *content* with the profile's tag settings applied.

    Custom tags come first.  With ``auto_tagging`` off the detected tags are
    dropped and only the custom ones remain.
    """
    detected = content.tags if profile.auto_tagging else []
    return content.model_copy(update={"tags": merge_tags(profile.custom_tags, detected)})
