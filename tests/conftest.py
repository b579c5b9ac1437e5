"""Shared fixtures for the scraper test suite.

No test touches the network or launches a browser: the direct fetch is
replaced by a coroutine returning canned ``httpx.Response`` objects (or by
``respx`` in the fetcher tests), and renderers are simple fakes that
return HTML or raise.
"""

from __future__ import annotations

from typing import Callable, List, Union

import httpx
import pytest

from pagesift.scraper.pipeline import ScrapePipeline

from tests.pages import FakeRenderer

FetchOutcome = Union[httpx.Response, BaseException]
RenderOutcome = Union[str, BaseException, None]


@pytest.fixture()
def calls() -> List[str]:
    """Ordered log of every tier the pipeline touched."""
    return []


@pytest.fixture()
def make_pipeline(calls: List[str]) -> Callable[..., ScrapePipeline]:
    """Factory for a pipeline wired to fakes.

    ``fetch`` is either a response to return or an exception to raise.
    ``stealth`` / ``plain`` are HTML strings or exceptions.
    """

    def _make(
        fetch: FetchOutcome,
        stealth: RenderOutcome = None,
        plain: RenderOutcome = None,
    ) -> ScrapePipeline:
        async def fake_fetch(url: str) -> httpx.Response:
            calls.append(f"fetch:{url}")
            if isinstance(fetch, BaseException):
                raise fetch
            return fetch

        def _renderer(name: str, outcome: RenderOutcome) -> FakeRenderer:
            if isinstance(outcome, BaseException):
                return FakeRenderer(name, calls, error=outcome)
            return FakeRenderer(name, calls, html=outcome)

        return ScrapePipeline(
            stealth=_renderer("stealth", stealth),
            plain=_renderer("plain", plain),
            fetcher=fake_fetch,
        )

    return _make
