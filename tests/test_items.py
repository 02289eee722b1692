"""Tests for the pydantic data models."""

from __future__ import annotations

from notecraft.items import ExportMode, ExtractedContent, ImageAsset


class TestModels:
    def test_blank_title_defaults(self):
        assert ExtractedContent(title="   ").title == "Untitled"
        assert ExtractedContent().title == "Untitled"

    def test_blank_author_and_source_become_none(self):
        content = ExtractedContent(author=" ", source_url="")
        assert content.author is None
        assert content.source_url is None

    def test_image_alt_default(self):
        assert ImageAsset(original_url="a.png", alt_text="").alt_text == "image"
        assert ImageAsset(original_url="a.png").local_path is None

    def test_image_urls_in_order(self):
        content = ExtractedContent(images=[
            ImageAsset(original_url="b.png"),
            ImageAsset(original_url="a.png"),
        ])
        assert content.image_urls() == ["b.png", "a.png"]

    def test_export_mode_values(self):
        assert [m.value for m in ExportMode] == ["reference", "study", "flashcards"]

    def test_json_round_trip(self):
        content = ExtractedContent(title="T", tags=["a"], metadata={"word_count": 3})
        assert ExtractedContent.model_validate_json(content.model_dump_json()) == content
