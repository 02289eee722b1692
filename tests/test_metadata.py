"""Tests for metadata, image and tag helpers."""

from __future__ import annotations

from bs4 import BeautifulSoup


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


# ---------------------------------------------------------------------------
# Title, author, date
# ---------------------------------------------------------------------------

class TestTitleAuthorDate:
    def test_og_title_preferred(self, article_html):
        from notecraft.extractors.metadata import extract_title

        assert extract_title(_soup(article_html)) == "Deploying Python Services with Docker"

    def test_title_falls_back_to_h1(self):
        from notecraft.extractors.metadata import extract_title

        assert extract_title(_soup("<body><h1> Heading  one </h1></body>")) == "Heading one"

    def test_no_title(self):
        from notecraft.extractors.metadata import extract_title

        assert extract_title(_soup("<p>nothing</p>")) is None

    def test_author_meta(self, article_html):
        from notecraft.extractors.metadata import extract_author

        assert extract_author(_soup(article_html)) == "Jane Smith"

    def test_author_byline(self):
        from notecraft.extractors.metadata import extract_author

        assert extract_author(_soup('<p class="byline">Sam Lee</p>')) == "Sam Lee"

    def test_date_meta(self, article_html):
        from notecraft.extractors.metadata import extract_date

        date = extract_date(_soup(article_html))
        assert (date.year, date.month, date.day) == (2024, 1, 15)

    def test_unparseable_date_moves_on(self):
        from notecraft.extractors.metadata import extract_date

        html = (
            '<meta property="article:published_time" content="unknown">'
            '<time datetime="2023-05-02">May 2</time>'
        )
        date = extract_date(_soup(html))
        assert (date.year, date.month, date.day) == (2023, 5, 2)

    def test_parse_date_rejects_out_of_range(self):
        from notecraft.extractors.metadata import parse_date

        assert parse_date("1970-01-01") is None
        assert parse_date("") is None
        assert parse_date(None) is None


# ---------------------------------------------------------------------------
# Selector helpers
# ---------------------------------------------------------------------------

class TestSelectorHelpers:
    def test_first_text_skips_empty(self):
        from notecraft.extractors.metadata import first_text

        soup = _soup('<h1 class="a"> </h1><h2 class="b">Found</h2>')
        assert first_text(soup, (".a", ".b")) == "Found"

    def test_invalid_selector_skipped(self):
        from notecraft.extractors.metadata import first_text

        soup = _soup('<p class="ok">Yes</p>')
        assert first_text(soup, ("p[[", ".ok")) == "Yes"

    def test_all_texts_first_matching_selector(self):
        from notecraft.extractors.metadata import all_texts

        soup = _soup('<ul class="x"><li>a</li><li>b</li></ul><ol class="y"><li>c</li></ol>')
        assert all_texts(soup, (".missing li", ".x li", ".y li")) == ["a", "b"]


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class TestImages:
    def test_dedupe_and_defaults(self):
        from notecraft.extractors.metadata import extract_images

        soup = _soup(
            '<img src="a.png" alt="First">'
            '<img src="a.png" alt="Second">'
            '<img data-src="lazy.jpg">'
            "<img>",
        )
        images = extract_images(soup)
        assert [img.original_url for img in images] == ["a.png", "lazy.jpg"]
        assert images[0].alt_text == "First"
        assert images[1].alt_text == "image"

    def test_none_container(self):
        from notecraft.extractors.metadata import extract_images

        assert extract_images(None) == []

    def test_diagram_heuristics(self):
        from notecraft.extractors.metadata import is_likely_diagram

        def img(html):
            return _soup(html).find("img")

        assert is_likely_diagram(img('<img src="x.png" alt="System architecture">'))
        assert is_likely_diagram(img('<img src="flow.svg?v=2">'))
        assert is_likely_diagram(img('<img src="x.png" width="800px">'))
        assert not is_likely_diagram(img('<img src="cat.jpg" width="300" alt="A cat">'))

    def test_custom_classifier(self):
        from notecraft.extractors.metadata import extract_images

        images = extract_images(_soup('<img src="x.png">'), is_diagram=lambda tag: True)
        assert images[0].is_diagram


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------

class TestAutoTag:
    def test_vocabulary_order(self):
        from notecraft.extractors.metadata import auto_tag

        assert auto_tag("Docker images for python and AWS") == ["Python", "AWS", "Docker"]

    def test_capped_at_ten(self):
        from notecraft.extractors.metadata import TECH_TERMS, auto_tag

        tags = auto_tag(" ".join(TECH_TERMS))
        assert tags == list(TECH_TERMS[:10])

    def test_whole_words_only(self):
        from notecraft.extractors.metadata import auto_tag

        assert auto_tag("javascripting and going") == []

    def test_punctuated_terms(self):
        from notecraft.extractors.metadata import auto_tag

        assert auto_tag("Written in C# with Node.js") == ["C#", "Node.js"]

    def test_empty(self):
        from notecraft.extractors.metadata import auto_tag

        assert auto_tag("") == []

    def test_merge_tags(self):
        from notecraft.extractors.metadata import merge_tags

        assert merge_tags(["aws", "cloud"], ["AWS", "Docker"], [" docker "]) == ["aws", "cloud", "Docker"]

    def test_count_words(self):
        from notecraft.extractors.metadata import count_words

        assert count_words("one two\n\nthree") == 3
