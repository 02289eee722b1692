"""Exceptions raised by notecraft."""

from __future__ import annotations


class NotecraftError(Exception):
    """Base exception for notecraft."""


class NoExtractorAvailable(NotecraftError):
    """Raised when no strategy matches a document and no fallback is set."""

    def __init__(self, url: str = "") -> None:
        super().__init__(
            f"No extractor can handle {url or 'the document'} "
            "and no fallback extractor is configured",
        )
        self.url = url


class FetchError(NotecraftError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(self, message: str, url: str = "", status: int = 0) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class ConfigError(NotecraftError):
    """Raised when a profile file holds invalid values."""
