"""Scrape orchestration: direct fetch, then stealth render, then plain render.

``ScrapePipeline.run`` walks a strict escalation ladder:

    INIT -> DIRECT_FETCH -> FALLBACK_STEALTH -> FALLBACK_PLAIN -> BLOCKED
                 |                 |                 |
                 +-----------------+-----------------+--> EXTRACT

A tier is only paid for when every cheaper tier has definitively failed.
No tier is retried, and the two renderers never run side by side.
Intermediate failures are logged and absorbed; only the last renderer's
failure reaches the caller, as :class:`ScrapingBlockedError`.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Awaitable, Callable, Optional, Protocol

import httpx

from pagesift.config import Settings, settings as default_settings
from pagesift.scraper.browser import BrowserLauncher, plain_renderer, stealth_renderer
from pagesift.scraper.checkpoint import classify
from pagesift.scraper.errors import (
    ContentRetrievalError,
    MissingUrlError,
    ScrapingBlockedError,
)
from pagesift.scraper.extractor import extract, extract_title
from pagesift.scraper.fetcher import fetch_direct
from pagesift.scraper.models import CheckpointVerdict, PageSnapshot, ScrapeResult

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], Awaitable[httpx.Response]]
Classifier = Callable[[str, str], CheckpointVerdict]
Extractor = Callable[[str, str], ScrapeResult]


class PageRenderer(Protocol):
    async def render(self, url: str) -> str: ...


def normalize_url(url: str) -> str:
    """Prefix ``https://`` unless *url* already has an http(s) scheme."""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


class ScrapePipeline:
    """Retrieve a page through escalating tiers and extract its content."""

    def __init__(
        self,
        stealth: PageRenderer,
        plain: PageRenderer,
        fetcher: Fetcher = fetch_direct,
        classifier: Classifier = classify,
        extractor: Extractor = extract,
    ) -> None:
        self._stealth = stealth
        self._plain = plain
        self._fetch = fetcher
        self._classify = classifier
        self._extract = extractor

    async def run(self, url: Optional[str]) -> ScrapeResult:
        """Scrape *url* and return its normalised content.

        Raises:
            MissingUrlError: *url* is empty or missing; nothing was fetched.
            ScrapingBlockedError: every tier failed.
            ContentRetrievalError: a tier reported success but produced no HTML.
        """
        if not url or not url.strip():
            raise MissingUrlError()

        full_url = normalize_url(url.strip())
        logger.info("Scraping %s", full_url)

        snapshot = await self._direct_fetch(full_url)
        if snapshot is not None:
            html = snapshot.html
        else:
            html = await self._render_fallbacks(full_url)

        if not html:
            logger.error("No HTML retrieved for %s after all attempts", full_url)
            raise ContentRetrievalError()

        return self._extract(html, full_url)

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    async def _direct_fetch(self, url: str) -> Optional[PageSnapshot]:
        """Return the page from a plain GET, or ``None`` to escalate."""
        logger.info("Stage 1: direct fetch")
        try:
            response = await self._fetch(url)
        except (TimeoutError, httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Direct fetch failed: %s", exc)
            return None

        if not response.is_success:
            logger.warning(
                "Direct fetch returned HTTP %s; escalating", response.status_code
            )
            return None

        snapshot = PageSnapshot(html=response.text, title=extract_title(response.text))
        verdict = self._classify(snapshot.html, snapshot.title)
        if verdict.is_checkpoint:
            logger.warning(
                "Checkpoint detected in direct fetch response: %s", verdict.type.value
            )
            return None

        logger.info("Direct fetch content appears valid")
        return snapshot

    async def _render_fallbacks(self, url: str) -> str:
        logger.info("Stage 2: stealth browser")
        try:
            html = await self._stealth.render(url)
        except Exception as stealth_exc:
            logger.warning("Stealth browser failed: %s", stealth_exc)
        else:
            logger.info("Stealth browser succeeded")
            return html

        logger.info("Stage 3: plain browser")
        try:
            html = await self._plain.render(url)
        except Exception as plain_exc:
            logger.error("All scraping methods failed for %s: %s", url, plain_exc)
            raise ScrapingBlockedError() from plain_exc

        logger.info("Plain browser succeeded")
        return html


def build_pipeline(
    cfg: Optional[Settings] = None,
    launcher: Optional[BrowserLauncher] = None,
) -> ScrapePipeline:
    """Return a pipeline whose browser options are resolved from *cfg* once."""
    cfg = cfg or default_settings
    return ScrapePipeline(
        stealth=stealth_renderer(launcher, cfg),
        plain=plain_renderer(launcher, cfg),
        fetcher=partial(fetch_direct, timeout=cfg.direct_fetch_timeout),
    )
