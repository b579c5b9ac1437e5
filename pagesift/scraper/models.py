"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

ExtractionMethod = Literal["readability", "fallback"]


class CheckpointType(str, Enum):
    """Kinds of bot-protection interstitial the classifier recognises."""

    VERCEL_SECURITY = "Vercel Security"
    CLOUDFLARE = "Cloudflare Protection"
    BOT_PROTECTION = "Bot Protection"
    ACCESS_DENIED = "Access Denied"
    RATE_LIMITED = "Rate Limited"
    NONE = ""


@dataclass(frozen=True)
class CheckpointVerdict:
    """Result of classifying a page as real content or an interstitial."""

    is_checkpoint: bool
    type: CheckpointType
    message: str


@dataclass
class PageSnapshot:
    """HTML and title produced by one retrieval tier."""

    html: str
    title: str


@dataclass
class ExtractionResult:
    """Output of the readability-style extractor."""

    title: str
    content: str
    excerpt: str


@dataclass
class ScrapedData:
    """The normalised page returned to callers."""

    url: str
    title: str
    description: str
    content: str


@dataclass
class ScrapeResult:
    """A :class:`ScrapedData` plus the extraction path that produced it."""

    data: ScrapedData
    extraction_method: ExtractionMethod

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON body of a successful ``/scrape`` response."""
        return {
            "success": True,
            "data": {
                "url": self.data.url,
                "title": self.data.title,
                "description": self.data.description,
                "content": self.data.content,
            },
            "extractionMethod": self.extraction_method,
        }
