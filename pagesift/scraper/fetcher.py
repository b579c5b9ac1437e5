"""Direct HTTP fetch: the first and cheapest retrieval tier."""

from __future__ import annotations

import logging
import random
from typing import Optional

import httpx

from pagesift.config import settings
from pagesift.scraper.headers import browser_headers

logger = logging.getLogger(__name__)


async def fetch_direct(
    url: str,
    timeout: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> httpx.Response:
    """GET *url* once with rotated browser headers, following redirects.

    The status code is deliberately not checked; callers decide what a
    non-2xx response means.

    Args:
        url: Absolute URL to fetch.
        timeout: Seconds before giving up; defaults to
            ``settings.direct_fetch_timeout``.
        rng: Optional random source for the user-agent choice.

    Raises:
        TimeoutError: If the request does not complete within *timeout*.
        httpx.HTTPError: On any other transport failure (DNS, reset, ...).
    """
    if timeout is None:
        timeout = settings.direct_fetch_timeout

    async with httpx.AsyncClient(
        headers=browser_headers(rng),
        timeout=timeout,
        follow_redirects=True,
    ) as client:
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"Direct fetch of {url} timed out after {timeout}s") from exc

    logger.info("Direct fetch %s -> HTTP %s", url, response.status_code)
    return response
