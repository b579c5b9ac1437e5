"""Scraper package: fetch-or-render retrieval and content extraction."""

from pagesift.scraper.checkpoint import classify
from pagesift.scraper.extractor import extract
from pagesift.scraper.fetcher import fetch_direct
from pagesift.scraper.models import CheckpointVerdict, ScrapedData, ScrapeResult
from pagesift.scraper.pipeline import ScrapePipeline, build_pipeline, normalize_url

__all__ = [
    "classify",
    "extract",
    "fetch_direct",
    "normalize_url",
    "build_pipeline",
    "ScrapePipeline",
    "CheckpointVerdict",
    "ScrapedData",
    "ScrapeResult",
]
