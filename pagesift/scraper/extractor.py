"""Content extraction: turns final HTML into a :class:`ScrapeResult`."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import trafilatura
from bs4 import BeautifulSoup

from pagesift.scraper.models import ExtractionResult, ScrapedData, ScrapeResult

logger = logging.getLogger(__name__)

MAX_CONTENT = 2000
MAX_DESCRIPTION = 500
EXCERPT_LENGTH = 300
PARAGRAPH_FALLBACK_LENGTH = 1000
MIN_CONTENT = 100

NO_TITLE = "No title found"
NO_DESCRIPTION = "No description found"
NO_CONTENT = "No content found"

CONTENT_SELECTORS: List[str] = [
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    "article",
    ".post-content",
    ".entry-content",
    ".page-content",
    "section",
]

_NOISE_TAGS = ["script", "style", "nav", "header", "footer", "aside"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _collapse(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def _meta(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return (tag.get("content") or "").strip()


def _first_text(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find(name)
    return _collapse(tag.get_text(separator=" ")) if tag else ""


def extract_title(html: str) -> str:
    """Return the text of the first ``<title>`` tag, or empty string."""
    return _first_text(BeautifulSoup(html, "html.parser"), "title")


def _fallback_title(soup: BeautifulSoup) -> str:
    return (
        _first_text(soup, "title")
        or _first_text(soup, "h1")
        or _meta(soup, property="og:title")
        or NO_TITLE
    )


def _meta_description(soup: BeautifulSoup) -> str:
    return _meta(soup, name="description") or _meta(soup, property="og:description")


def _selector_content(soup: BeautifulSoup) -> str:
    """Pick text from the first structural container with real content.

    Falls back to the page's paragraphs when no container qualifies.
    Mutates *soup*: noise tags are removed from inspected containers.
    """
    for selector in CONTENT_SELECTORS:
        element = soup.select_one(selector)
        if element is None:
            continue
        for tag in element(_NOISE_TAGS):
            tag.decompose()
        text = _collapse(element.get_text(separator=" "))
        if len(text) > MIN_CONTENT:
            return text

    paragraphs = [_collapse(p.get_text(separator=" ")) for p in soup.find_all("p")]
    return " ".join(p for p in paragraphs if p)[:PARAGRAPH_FALLBACK_LENGTH]


def _readability(html: str, url: str) -> Optional[ExtractionResult]:
    """Run trafilatura over *html*; ``None`` when it finds no main text."""
    try:
        text: str | None = trafilatura.extract(
            html,
            url=url,
            include_links=False,
            include_images=False,
            include_tables=True,
        )
        if not text:
            return None
        metadata = trafilatura.extract_metadata(html, default_url=url)
    except Exception as exc:
        logger.warning("Readability extraction failed for %s: %s", url, exc)
        return None

    return ExtractionResult(
        title=(metadata.title or "") if metadata else "",
        content=text.strip(),
        excerpt=(metadata.description or "") if metadata else "",
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(html: str, url: str) -> ScrapeResult:
    """Extract title, description and content from *html*.

    Tries ``trafilatura`` first.  Its result is used only when the main
    text is longer than 100 characters; otherwise a BeautifulSoup pass over
    meta tags and common content containers provides every field.  Fields
    are never empty: placeholders stand in for anything not found.
    """
    soup = BeautifulSoup(html, "html.parser")
    readable = _readability(html, url)

    if readable is not None and len(readable.content) > MIN_CONTENT:
        logger.info("Using readability extraction for %s", url)
        content = readable.content[:MAX_CONTENT]
        title = readable.title or _fallback_title(soup)
        description = (
            readable.excerpt
            or _meta_description(soup)
            or content[:EXCERPT_LENGTH]
        )
        method = "readability"
    else:
        logger.info("Using fallback extraction for %s", url)
        title = _fallback_title(soup)
        description = (
            _meta_description(soup)
            or _meta(soup, name="twitter:description")
            or _first_text(soup, "p")[:EXCERPT_LENGTH]
            or NO_DESCRIPTION
        )
        content = _selector_content(soup)[:MAX_CONTENT] or NO_CONTENT
        method = "fallback"

    return ScrapeResult(
        data=ScrapedData(
            url=url,
            title=title,
            description=description[:MAX_DESCRIPTION],
            content=content,
        ),
        extraction_method=method,
    )
