"""Tests for the extractor strategies and the extract() entry point."""

from __future__ import annotations

import urllib.error
from unittest.mock import MagicMock, patch

import pytest

from notecraft.errors import FetchError, NoExtractorAvailable
from notecraft.items import ExtractedContent
from notecraft.query import default_registry, extract, fetch_html, parse_document
from notecraft.registry import ExtractorRegistry

# ---------------------------------------------------------------------------
# Generic extractor
# ---------------------------------------------------------------------------

class TestGenericExtractor:
    def test_returns_extracted_content(self, article_html):
        result = extract(article_html, url="https://example.com/blog/docker")
        assert isinstance(result, ExtractedContent)
        assert result.metadata["extractor"] == "generic"

    def test_header_metadata(self, article_html):
        result = extract(article_html, url="https://example.com/blog/docker")
        assert result.title == "Deploying Python Services with Docker"
        assert result.author == "Jane Smith"
        assert (result.date.year, result.date.month, result.date.day) == (2024, 1, 15)
        assert result.source_url == "https://example.com/blog/docker"

    def test_boilerplate_removed(self, article_html):
        md = extract(article_html).markdown
        assert "Home" not in md
        assert "Copyright" not in md
        assert "tracking" not in md

    def test_structure_converted(self, article_html):
        md = extract(article_html).markdown
        assert md.startswith("# Deploying Python Services with Docker\n\n")
        assert "\n## Building the image\n" in md
        assert "```dockerfile\nFROM python:3.12-slim\nWORKDIR /app\nCOPY . .\n```" in md
        assert "> [!WARNING]\n> Never bake secrets into the image." in md
        assert "3. Build the image\n4. Run the container" in md

    def test_table_aligned(self, article_html):
        md = extract(article_html).markdown
        assert (
            "| Variable  | Default |\n"
            "| --------- | ------- |\n"
            "| PORT      | 8000    |\n"
            "| LOG_LEVEL | info    |"
        ) in md

    def test_links(self, article_html):
        md = extract(article_html).markdown
        assert "Read the <https://docs.docker.com> reference or the compose guide." in md

    def test_embeds(self, article_html):
        md = extract(article_html).markdown
        assert "(https://www.youtube.com/watch?v=abc123XYZ)" in md
        assert "[Embedded content](https://codepen.io/embed/xyz)" in md

    def test_images_deduplicated(self, article_html):
        result = extract(article_html)
        assert result.image_urls() == ["https://example.com/img/architecture.png"]
        assert result.images[0].alt_text == "Service architecture"
        assert result.images[0].is_diagram

    def test_tags_and_word_count(self, article_html):
        result = extract(article_html)
        assert result.tags[:2] == ["Python", "Docker"]
        assert len(result.tags) <= 10
        assert result.metadata["word_count"] > 30

    def test_reference_mode_by_default(self, article_html):
        result = extract(article_html)
        assert result.metadata["export_mode"] == "reference"
        assert "## Review Questions" not in result.markdown

    def test_empty_document(self):
        result = extract("")
        assert result.title == "Untitled"
        assert result.markdown == ""
        assert result.images == []

    def test_input_document_not_mutated(self, article_html):
        from notecraft.extractors import GenericExtractor

        document = parse_document(article_html)
        GenericExtractor().extract(document)
        assert document.find("footer") is not None
        assert document.find("nav") is not None


# ---------------------------------------------------------------------------
# Skill Builder extractor
# ---------------------------------------------------------------------------

class TestSkillBuilderExtractor:
    def test_selected_for_course_pages(self, course_html):
        result = extract(course_html)
        assert result.metadata["extractor"] == "skill-builder"
        assert result.metadata["platform"] == "aws-skill-builder"

    def test_selected_by_url(self):
        from notecraft.extractors import SkillBuilderExtractor

        document = parse_document("<p>plain</p>")
        assert SkillBuilderExtractor().can_handle("https://explore.skillbuilder.aws/learn", document)
        assert not SkillBuilderExtractor().can_handle("https://example.com", document)

    def test_course_metadata(self, course_html):
        result = extract(course_html)
        assert result.title == "AWS Cloud Practitioner Essentials - Module 3: Global Infrastructure"
        meta = result.metadata
        assert meta["course"] == "AWS Cloud Practitioner Essentials"
        assert meta["module"] == "Module 3: Global Infrastructure"
        assert meta["objectives"] == [
            "Describe Regions and Availability Zones",
            "Explain edge locations",
        ]
        assert meta["estimated_time"] == "45 minutes"

    def test_base_tags_first(self, course_html):
        tags = extract(course_html).tags
        assert tags[:3] == ["aws", "cloud", "certification"]
        assert len({t.lower() for t in tags}) == len(tags)

    def test_layout(self, course_html):
        md = extract(course_html).markdown
        assert md.startswith(
            "## Learning Objectives\n\n"
            "- [ ] Describe Regions and Availability Zones\n"
            "- [ ] Explain edge locations\n\n---\n\n## Content\n\n## Regions",
        )
        assert "### Diagram 1: VPC layout\n\n![VPC layout](https://example.com/vpc-layout.png)" in md
        assert "## Study Notes" in md

    def test_highlight_block_and_callout(self, course_html):
        md = extract(course_html).markdown
        assert "```bash\naws ec2 describe-regions --output table\n```" in md
        assert "> [!INFO]\n> Choose a Region close to your users." in md

    def test_architecture_images_flagged(self, course_html):
        images = extract(course_html).images
        flags = {img.alt_text: img.is_diagram for img in images}
        assert flags == {"VPC layout": True, "Team photo": False}

    def test_reference_mode_has_no_study_template(self, course_html):
        md = extract(course_html, export_mode="reference").markdown
        assert "## Study Notes" not in md
        assert "## Content" in md

    def test_flashcards_mode(self, course_html):
        md = extract(course_html, export_mode="flashcards").markdown
        assert md.startswith("# Study Cards\n\n")
        assert "#flashcard\n**Regions - Availability Zones** ::" in md
        assert "## Study Notes" not in md


# ---------------------------------------------------------------------------
# extract() and the registry
# ---------------------------------------------------------------------------

class TestExtract:
    def test_default_registry_layout(self):
        registry = default_registry()
        assert [s.name for s in registry.extractors] == ["skill-builder"]
        assert registry.fallback.name == "generic"

    def test_export_mode_applies_to_all_strategies(self):
        registry = default_registry("flashcards")
        assert registry.extractors[0].export_mode.value == "flashcards"
        assert registry.fallback.export_mode.value == "flashcards"

    def test_invalid_export_mode(self):
        with pytest.raises(ValueError):
            default_registry("poster")

    def test_study_mode_wraps_generic_body(self, article_html):
        md = extract(article_html, export_mode="study").markdown
        assert md.startswith("## Summary\n\nThis guide walks through packaging")
        assert md.endswith("- [ ] How does this apply in practice?")

    def test_custom_registry(self, course_html):
        class Everything:
            name = "everything"

            def can_handle(self, url, document):
                return True

            def extract(self, document, url=""):
                return ExtractedContent(title="custom", metadata={"extractor": self.name})

        registry = default_registry()
        registry.clear()
        registry.register(Everything())
        assert extract(course_html, registry=registry).title == "custom"

    def test_no_extractor_available(self, article_html):
        with pytest.raises(NoExtractorAvailable):
            extract(article_html, registry=ExtractorRegistry())


# ---------------------------------------------------------------------------
# fetch_html() - HTTP fetch (mocked)
# ---------------------------------------------------------------------------

class TestFetchHtml:
    def _make_mock_response(self, body: str, charset: str = "utf-8") -> MagicMock:
        resp = MagicMock()
        resp.read.return_value = body.encode(charset)
        resp.headers.get.return_value = ""
        resp.headers.get_content_charset.return_value = charset
        resp.__enter__ = lambda s: s
        resp.__exit__ = MagicMock(return_value=False)
        return resp

    def test_returns_string(self):
        mock_resp = self._make_mock_response("<html><body><p>Hello world</p></body></html>")
        with patch("urllib.request.urlopen", return_value=mock_resp):
            result = fetch_html("https://example.com/docs")
        assert "Hello world" in result

    def test_http_error_raises_fetch_error(self):
        with patch(
            "urllib.request.urlopen",
            side_effect=urllib.error.HTTPError("https://example.com", 404, "Not Found", {}, None),
        ), pytest.raises(FetchError) as exc_info:
            fetch_html("https://example.com/missing")
        assert exc_info.value.status == 404

    def test_retries_then_fails(self):
        with patch(
            "urllib.request.urlopen",
            side_effect=urllib.error.URLError("Connection refused"),
        ) as urlopen, patch("notecraft.query.time.sleep") as sleep, pytest.raises(FetchError):
            fetch_html("https://example.com/docs", max_retries=2)
        assert urlopen.call_count == 3
        assert sleep.call_count == 2

    def test_invalid_scheme(self):
        with pytest.raises(FetchError) as exc_info:
            fetch_html("ftp://example.com/file.txt")
        assert "scheme" in str(exc_info.value).lower()
