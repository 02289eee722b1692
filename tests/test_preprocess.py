"""Tests for the lexical HTML preprocessing passes."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

class TestCleanAttributes:
    def test_strips_style_data_and_empty_class(self):
        from notecraft.extractors.preprocess import clean_attributes

        html = '<p style="color:red" data-x="1" class="">Hi</p>'
        assert clean_attributes(html) == "<p>Hi</p>"

    def test_keeps_structural_attributes(self):
        from notecraft.extractors.preprocess import clean_attributes

        html = '<a href="/docs" class="ref" data-track="nav">Docs</a>'
        assert clean_attributes(html) == '<a href="/docs" class="ref">Docs</a>'

    def test_self_closing_tag(self):
        from notecraft.extractors.preprocess import clean_attributes

        html = '<img src="a.png" data-src="b.png" />'
        assert clean_attributes(html) == '<img src="a.png" />'

    def test_text_outside_tags_untouched(self):
        from notecraft.extractors.preprocess import clean_attributes

        html = '<p>set style="bold" in the config</p>'
        assert clean_attributes(html) == html


# ---------------------------------------------------------------------------
# Whitespace
# ---------------------------------------------------------------------------

class TestNormalizeWhitespace:
    def test_collapses_runs(self):
        from notecraft.extractors.preprocess import normalize_whitespace

        assert normalize_whitespace("<p>  Hello \n\n  world </p>") == "<p> Hello world </p>"

    def test_pre_is_preserved(self):
        from notecraft.extractors.preprocess import normalize_whitespace

        html = "<p>a   b</p><pre>line 1\n    line 2</pre>"
        assert normalize_whitespace(html) == "<p>a b</p><pre>line 1\n    line 2</pre>"

    def test_inline_code_is_preserved(self):
        from notecraft.extractors.preprocess import normalize_whitespace

        html = "<p>run <code>ls   -la</code> now</p>"
        assert normalize_whitespace(html) == html


# ---------------------------------------------------------------------------
# Pseudo tables
# ---------------------------------------------------------------------------

class TestMarkPseudoTables:
    def test_marks_table_with_rows(self, pseudo_table_html):
        from notecraft.extractors.preprocess import PSEUDO_TABLE_ATTR, mark_pseudo_tables

        marked = mark_pseudo_tables(pseudo_table_html)
        assert f'<div class="pricing-table" {PSEUDO_TABLE_ATTR}>' in marked

    def test_table_without_rows_unchanged(self):
        from notecraft.extractors.preprocess import mark_pseudo_tables

        html = '<div class="table-wrapper"><p>Nothing tabular</p></div>'
        assert mark_pseudo_tables(html) == html

    def test_unclosed_div_unchanged(self):
        from notecraft.extractors.preprocess import mark_pseudo_tables

        html = '<div class="table"><div class="row">a</div>'
        assert mark_pseudo_tables(html) == html


# ---------------------------------------------------------------------------
# Code blocks
# ---------------------------------------------------------------------------

class TestNormalizeCodeBlocks:
    def test_wraps_bare_pre(self):
        from notecraft.extractors.preprocess import normalize_code_blocks

        assert normalize_code_blocks("<pre>x = 1</pre>") == "<pre><code>x = 1</code></pre>"

    def test_language_moves_to_code(self):
        from notecraft.extractors.preprocess import normalize_code_blocks

        result = normalize_code_blocks('<pre class="language-js">x</pre>')
        assert result == (
            '<pre class="language-js">'
            '<code class="language-js" data-language="js">x</code></pre>'
        )

    def test_existing_code_child_kept(self):
        from notecraft.extractors.preprocess import normalize_code_blocks

        result = normalize_code_blocks('<pre><code class="lang-py">pass</code></pre>')
        assert result == '<pre><code class="lang-py" data-language="py">pass</code></pre>'


# ---------------------------------------------------------------------------
# Empty elements and headings
# ---------------------------------------------------------------------------

class TestRemoveEmptyElements:
    def test_removes_nested_empties(self):
        from notecraft.extractors.preprocess import remove_empty_elements

        html = "<div><p> </p><span></span></div><p>keep</p>"
        assert remove_empty_elements(html) == "<p>keep</p>"

    def test_br_runs_collapse(self):
        from notecraft.extractors.preprocess import remove_empty_elements

        assert remove_empty_elements("a<br><br/> <br />b") == "a<br>b"

    def test_code_regions_untouched(self):
        from notecraft.extractors.preprocess import remove_empty_elements

        html = '<p></p><pre><code><span class="w">    </span>x<br><br>y</code></pre><span> </span>'
        assert remove_empty_elements(html) == (
            '<pre><code><span class="w">    </span>x<br><br>y</code></pre>'
        )


class TestNormalizeHeadings:
    def test_later_h1_demoted(self):
        from notecraft.extractors.preprocess import normalize_headings

        html = '<h1>A</h1><p>x</p><h1 class="x">B</h1>'
        assert normalize_headings(html) == '<h1>A</h1><p>x</p><h2 class="x">B</h2>'

    def test_single_h1_unchanged(self):
        from notecraft.extractors.preprocess import normalize_headings

        assert normalize_headings("<h1>Only</h1>") == "<h1>Only</h1>"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class TestPreprocess:
    def test_empty_input(self):
        from notecraft.extractors.preprocess import preprocess

        assert preprocess("") == ""

    def test_failing_pass_is_skipped(self, monkeypatch):
        import importlib

        module = importlib.import_module("notecraft.extractors.preprocess")

        def boom(html: str) -> str:
            raise ValueError("broken pass")

        monkeypatch.setattr(module, "PASSES", (boom, module.clean_attributes))
        assert module.preprocess('<p style="x">Hi</p>') == "<p>Hi</p>"

    def test_code_language_survives_attribute_cleaning(self):
        from notecraft.extractors.preprocess import preprocess

        result = preprocess('<pre><code class="language-python">x = 1</code></pre>')
        assert 'data-language="python"' in result
