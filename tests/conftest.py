"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def course_html() -> str:
    return _read_fixture("course.html")


@pytest.fixture
def pseudo_table_html() -> str:
    return _read_fixture("pseudo_table.html")


@pytest.fixture
def article_path() -> Path:
    return FIXTURES_DIR / "article.html"
