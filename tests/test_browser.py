"""Tests for the rendering tiers and the adaptive wait loop.

No real browser is launched.  ``FakePage`` scripts the visible-text length
seen on each poll, ``FakeClock`` advances only when the loop sleeps, and a
stub launcher records what the renderer asked for.
"""

from __future__ import annotations

import random
from typing import Any, List, Optional, Sequence

import pytest

from pagesift.config import Settings
from pagesift.scraper import browser as browser_mod
from pagesift.scraper.browser import (
    PLAIN_VIEWPORT,
    STEALTH_VIEWPORT,
    LaunchOptions,
    Renderer,
    WaitPolicy,
    default_launcher,
    plain_renderer,
    stealth_renderer,
    wait_for_content,
)

from tests.pages import ARTICLE_HTML, CHALLENGE_HTML


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakePage:
    def __init__(
        self,
        html: str = ARTICLE_HTML,
        title: str = "",
        text_lengths: Sequence[int] = (1000,),
        scroll_error: Optional[Exception] = None,
        goto_error: Optional[Exception] = None,
    ) -> None:
        self.html = html
        self._title = title
        self._lengths = list(text_lengths)
        self._scroll_error = scroll_error
        self._goto_error = goto_error
        self.polls = 0
        self.scrolls: List[int] = []
        self.gotos: List[tuple] = []

    async def content(self) -> str:
        return self.html

    async def title(self) -> str:
        return self._title

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "innerText" in script:
            index = min(self.polls, len(self._lengths) - 1)
            self.polls += 1
            return self._lengths[index]
        if self._scroll_error is not None:
            raise self._scroll_error
        self.scrolls.append(arg)
        return None

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.gotos.append((url, kwargs))
        if self._goto_error is not None:
            raise self._goto_error


class StubBrowser:
    def __init__(self, page: FakePage) -> None:
        self.page = page
        self.closed = False
        self.pages: List[dict] = []

    async def new_page(self, *, user_agent: str, viewport: dict) -> FakePage:
        self.pages.append({"user_agent": user_agent, "viewport": viewport})
        return self.page

    async def close(self) -> None:
        self.closed = True


class StubLauncher:
    def __init__(self, browser: Optional[StubBrowser] = None,
                 error: Optional[Exception] = None) -> None:
        self.browser = browser
        self.error = error
        self.launches: List[LaunchOptions] = []

    async def launch(self, options: LaunchOptions) -> StubBrowser:
        self.launches.append(options)
        if self.error is not None:
            raise self.error
        assert self.browser is not None
        return self.browser


async def _no_sleep(seconds: float) -> None:
    return None


# ---------------------------------------------------------------------------
# wait_for_content
# ---------------------------------------------------------------------------

class TestWaitForContent:
    async def test_clean_page_settles_then_succeeds(self) -> None:
        clock = FakeClock()
        page = FakePage(text_lengths=[500])

        ok = await wait_for_content(page, WaitPolicy(), random.Random(0), clock.sleep, clock)

        assert ok is True
        assert page.polls == 1
        assert clock.sleeps == [1.0]

    async def test_checkpoint_with_lots_of_text_succeeds_on_first_poll(self) -> None:
        """Approximate heuristic: 1600 chars beside a checkpoint means overlay."""
        clock = FakeClock()
        page = FakePage(html=CHALLENGE_HTML, text_lengths=[1600])

        ok = await wait_for_content(page, WaitPolicy(), random.Random(0), clock.sleep, clock)

        assert ok is True
        assert page.polls == 1
        assert clock.sleeps == []

    async def test_clean_threshold_is_strict(self) -> None:
        clock = FakeClock()
        page = FakePage(text_lengths=[200, 201])
        policy = WaitPolicy(scroll_probability=0.0)

        ok = await wait_for_content(page, policy, random.Random(0), clock.sleep, clock)

        assert ok is True
        assert page.polls == 2
        assert 1.5 <= clock.sleeps[0] <= 2.5
        assert clock.sleeps[-1] == 1.0

    async def test_checkpoint_with_little_text_times_out(self) -> None:
        clock = FakeClock()
        page = FakePage(html=CHALLENGE_HTML, text_lengths=[300])

        ok = await wait_for_content(page, WaitPolicy(), random.Random(3), clock.sleep, clock)

        assert ok is False
        assert clock.now >= 25.0
        assert all(1.5 <= s <= 2.5 for s in clock.sleeps)
        # 25s budget at 1.5-2.5s per poll
        assert 10 <= page.polls <= 17

    async def test_scrolls_by_small_random_amount(self) -> None:
        clock = FakeClock()
        page = FakePage(text_lengths=[10, 10, 10, 500])
        policy = WaitPolicy(scroll_probability=1.0)

        await wait_for_content(page, policy, random.Random(5), clock.sleep, clock)

        assert len(page.scrolls) == 3
        assert all(25 <= dy <= 75 for dy in page.scrolls)

    async def test_never_scrolls_when_probability_zero(self) -> None:
        clock = FakeClock()
        page = FakePage(text_lengths=[10, 10, 500])

        await wait_for_content(
            page, WaitPolicy(scroll_probability=0.0), random.Random(5), clock.sleep, clock
        )

        assert page.scrolls == []

    async def test_scroll_failure_is_ignored(self) -> None:
        clock = FakeClock()
        page = FakePage(text_lengths=[10, 500], scroll_error=RuntimeError("navigating"))

        ok = await wait_for_content(
            page, WaitPolicy(scroll_probability=1.0), random.Random(1), clock.sleep, clock
        )

        assert ok is True

    async def test_thresholds_are_tunable(self) -> None:
        clock = FakeClock()
        page = FakePage(html=CHALLENGE_HTML, text_lengths=[60])
        policy = WaitPolicy(overlay_text_threshold=50)

        assert await wait_for_content(page, policy, random.Random(0), clock.sleep, clock)


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

def _renderer(launcher: StubLauncher, **kwargs: Any) -> Renderer:
    return Renderer(
        "test",
        launcher,
        LaunchOptions(executable_path="/opt/chrome", args=["--no-sandbox"]),
        {"width": 800, "height": 600},
        rng=random.Random(0),
        sleep=_no_sleep,
        **kwargs,
    )


class TestRenderer:
    async def test_returns_final_html_and_closes_browser(self) -> None:
        page = FakePage(text_lengths=[500])
        browser = StubBrowser(page)
        launcher = StubLauncher(browser)

        html = await _renderer(launcher).render("https://example.com")

        assert html == ARTICLE_HTML
        assert browser.closed is True
        assert launcher.launches[0].executable_path == "/opt/chrome"
        assert browser.pages[0]["viewport"] == {"width": 800, "height": 600}
        url, kwargs = page.gotos[0]
        assert url == "https://example.com"
        assert kwargs == {"wait_until": "domcontentloaded", "timeout": 60000}

    async def test_patcher_runs_before_navigation(self) -> None:
        page = FakePage(text_lengths=[500])
        order: List[str] = []

        async def patcher(p: FakePage) -> None:
            assert p.gotos == []
            order.append("patched")

        await _renderer(StubLauncher(StubBrowser(page)), patcher=patcher).render("https://e.com")

        assert order == ["patched"]

    async def test_navigation_error_closes_browser(self) -> None:
        page = FakePage(goto_error=TimeoutError("navigation timeout"))
        browser = StubBrowser(page)

        with pytest.raises(TimeoutError):
            await _renderer(StubLauncher(browser)).render("https://example.com")

        assert browser.closed is True

    async def test_launch_error_propagates(self) -> None:
        launcher = StubLauncher(error=RuntimeError("no chromium"))

        with pytest.raises(RuntimeError, match="no chromium"):
            await _renderer(launcher).render("https://example.com")

    async def test_wait_timeout_still_returns_html(self) -> None:
        page = FakePage(html=CHALLENGE_HTML, text_lengths=[10])
        browser = StubBrowser(page)
        renderer = _renderer(StubLauncher(browser), wait_policy=WaitPolicy(timeout=0))

        html = await renderer.render("https://example.com")

        assert html == CHALLENGE_HTML
        assert browser.closed is True

    async def test_navigation_timeout_in_milliseconds(self) -> None:
        page = FakePage(text_lengths=[500])

        await _renderer(
            StubLauncher(StubBrowser(page)), navigation_timeout=12.5
        ).render("https://example.com")

        assert page.gotos[0][1]["timeout"] == 12500


# ---------------------------------------------------------------------------
# Variant factories
# ---------------------------------------------------------------------------

class TestVariants:
    @pytest.fixture()
    def cfg(self) -> Settings:
        return Settings(
            browser_executable_path="/usr/bin/chromium",
            browser_launch_args=["--single-process"],
            stealth_headless=True,
            plain_headless=False,
            content_wait_timeout=5.0,
        )

    async def test_stealth_variant(self, cfg: Settings, monkeypatch) -> None:
        patched: List[FakePage] = []

        async def fake_stealth(page: FakePage) -> None:
            patched.append(page)

        monkeypatch.setattr(browser_mod, "apply_stealth", fake_stealth)
        page = FakePage(html=CHALLENGE_HTML, text_lengths=[1600])
        browser = StubBrowser(page)
        launcher = StubLauncher(browser)

        await stealth_renderer(launcher, cfg).render("https://example.com")

        assert patched == [page]
        assert browser.pages[0]["viewport"] == STEALTH_VIEWPORT
        options = launcher.launches[0]
        assert options.executable_path == "/usr/bin/chromium"
        assert options.args == ["--single-process"]
        assert options.headless is True

    async def test_plain_variant(self, cfg: Settings, monkeypatch) -> None:
        async def fail_stealth(page: FakePage) -> None:
            raise AssertionError("plain variant must not patch the page")

        monkeypatch.setattr(browser_mod, "apply_stealth", fail_stealth)
        browser = StubBrowser(FakePage(html=CHALLENGE_HTML, text_lengths=[1600]))
        launcher = StubLauncher(browser)

        await plain_renderer(launcher, cfg).render("https://example.com")

        assert browser.pages[0]["viewport"] == PLAIN_VIEWPORT
        assert launcher.launches[0].headless is False

    def test_default_launcher_is_singleton(self) -> None:
        assert default_launcher() is default_launcher()
