"""Errors surfaced by the scrape pipeline.

Only the failures a caller can see are modelled here; every intermediate
tier failure is absorbed by the pipeline and turned into a fallback.
"""

from __future__ import annotations

from typing import Any


class ScrapeError(Exception):
    """Base class for user-visible scrape failures."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.message}


class MissingUrlError(ScrapeError):
    """The request carried no URL."""

    status_code = 400

    def __init__(self, message: str = "URL is required") -> None:
        super().__init__(message)


class ScrapingBlockedError(ScrapeError):
    """Every retrieval tier failed; the site could not be read."""

    status_code = 400
    error_type = "SCRAPING_BLOCKED"

    def __init__(
        self,
        message: str = "This website has strong protection that could not be bypassed.",
        suggestion: str = (
            "Try accessing the website directly in your browser first, "
            "then try again later."
        ),
    ) -> None:
        super().__init__(message)
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "suggestion": self.suggestion,
            "type": self.error_type,
        }


class ContentRetrievalError(ScrapeError):
    """No HTML was obtained even though no tier raised."""

    status_code = 500

    def __init__(self, message: str = "Failed to retrieve page content.") -> None:
        super().__init__(message)
