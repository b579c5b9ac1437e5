"""Scrape endpoint.

Routes
------
POST /scrape    Body: {"url": "example.com"}    → ScrapePipeline.run

Responses
---------
200  {"success": true, "data": {...}, "extractionMethod": "readability|fallback"}
400  {"error": "URL is required"}
400  {"error": "...", "suggestion": "...", "type": "SCRAPING_BLOCKED"}
500  {"error": "..."}
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pagesift.scraper.errors import ScrapeError

logger = logging.getLogger(__name__)

router = APIRouter()

UNEXPECTED_ERROR = "Failed to scrape the webpage. Please check the URL and try again."


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScrapeRequest(BaseModel):
    # Optional so a missing URL gets the pipeline's 400 instead of a 422.
    url: Optional[str] = None


# ---------------------------------------------------------------------------
# Endpoint
# ---------------------------------------------------------------------------

@router.post("")
async def scrape(request: Request) -> JSONResponse:
    """Retrieve a page and return its title, description and content.

    The body is parsed by hand so that malformed JSON is reported with the
    same 500 body as any other unexpected failure.
    """
    pipeline = request.app.state.pipeline
    try:
        payload = await request.json()
        # Any JSON value other than an object carries no url.
        if not isinstance(payload, dict):
            payload = {}
        body = ScrapeRequest.model_validate(payload)
        result = await pipeline.run(body.url)
    except ScrapeError as exc:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    except Exception:
        logger.exception("Scraping error")
        return JSONResponse(status_code=500, content={"error": UNEXPECTED_ERROR})

    return JSONResponse(status_code=200, content=result.to_dict())
