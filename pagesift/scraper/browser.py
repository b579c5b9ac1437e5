"""Headless-browser rendering tiers.

Two variants share one :class:`Renderer`:

- *stealth*: fingerprint patches from ``playwright-stealth``, 1920x1080.
  Tried first because many protection systems key on default automation
  fingerprints.
- *plain*: no patches, 1366x768.  The last resort.

Both drive the page through :func:`wait_for_content` before reading the
final HTML, and both close their browser on every exit path.

Playwright is imported lazily inside :class:`PlaywrightLauncher` so the
rest of the package (and the test suite) can run without a browser
install.  Tests hand :class:`Renderer` a stub launcher instead.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from pagesift.config import Settings, settings as default_settings
from pagesift.scraper.checkpoint import classify
from pagesift.scraper.headers import random_user_agent

logger = logging.getLogger(__name__)

Viewport = Dict[str, int]
PagePatcher = Callable[[Any], Awaitable[None]]
Sleep = Callable[[float], Awaitable[Any]]

STEALTH_VIEWPORT: Viewport = {"width": 1920, "height": 1080}
PLAIN_VIEWPORT: Viewport = {"width": 1366, "height": 768}

_TEXT_LENGTH_JS = "() => document.body ? document.body.innerText.length : 0"
_SCROLL_JS = "(dy) => window.scrollBy(0, dy)"
_WEBDRIVER_JS = "Object.defineProperty(navigator, 'webdriver', { get: () => false });"


# ---------------------------------------------------------------------------
# Launch configuration
# ---------------------------------------------------------------------------

@dataclass
class LaunchOptions:
    """How to start the browser binary.  Resolved once, never read ad hoc."""

    executable_path: Optional[str] = None
    args: List[str] = field(default_factory=list)
    headless: bool = True

    @classmethod
    def from_settings(cls, cfg: Settings, headless: bool) -> "LaunchOptions":
        return cls(
            executable_path=cfg.browser_executable_path,
            args=list(cfg.browser_launch_args),
            headless=headless,
        )


@dataclass
class WaitPolicy:
    """Tunable knobs for :func:`wait_for_content`.  Times are in seconds."""

    timeout: float = 25.0
    clean_text_threshold: int = 200
    overlay_text_threshold: int = 1500
    scroll_probability: float = 0.3
    scroll_range: Tuple[int, int] = (25, 75)
    delay_range: Tuple[float, float] = (1.5, 2.5)
    settle_delay: float = 1.0

    @classmethod
    def from_settings(cls, cfg: Settings) -> "WaitPolicy":
        return cls(
            timeout=cfg.content_wait_timeout,
            clean_text_threshold=cfg.clean_text_threshold,
            overlay_text_threshold=cfg.overlay_text_threshold,
            scroll_probability=cfg.scroll_probability,
        )


# ---------------------------------------------------------------------------
# Browser seam
# ---------------------------------------------------------------------------

class BrowserHandle(Protocol):
    async def new_page(self, *, user_agent: str, viewport: Viewport) -> Any: ...

    async def close(self) -> None: ...


class BrowserLauncher(Protocol):
    async def launch(self, options: LaunchOptions) -> BrowserHandle: ...


class PlaywrightBrowser:
    """A launched Chromium plus the Playwright driver that owns it."""

    def __init__(self, playwright: Any, browser: Any) -> None:
        self._playwright = playwright
        self._browser = browser

    async def new_page(self, *, user_agent: str, viewport: Viewport) -> Any:
        context = await self._browser.new_context(
            user_agent=user_agent, viewport=viewport
        )
        return await context.new_page()

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


class PlaywrightLauncher:
    """Starts a dedicated headless Chromium per :meth:`launch` call."""

    async def launch(self, options: LaunchOptions) -> PlaywrightBrowser:
        from playwright.async_api import async_playwright  # noqa: PLC0415

        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=options.headless,
                args=options.args,
                executable_path=options.executable_path,
            )
        except BaseException:
            await playwright.stop()
            raise
        return PlaywrightBrowser(playwright, browser)


@lru_cache(maxsize=None)
def default_launcher() -> PlaywrightLauncher:
    """Return the process-wide launcher, creating it on first use."""
    return PlaywrightLauncher()


async def apply_stealth(page: Any) -> None:
    """Mask automation signals on *page* before navigation."""
    from playwright_stealth import Stealth  # noqa: PLC0415

    await Stealth().apply_stealth_async(page)
    await page.add_init_script(_WEBDRIVER_JS)


# ---------------------------------------------------------------------------
# Adaptive wait
# ---------------------------------------------------------------------------

async def wait_for_content(
    page: Any,
    policy: Optional[WaitPolicy] = None,
    rng: Optional[random.Random] = None,
    sleep: Sleep = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Poll *page* until its content looks ready, or until the policy times out.

    Each poll reads the HTML, title and visible-text length and classifies
    the page.  Two conditions end the wait early:

    - no checkpoint and more than ``clean_text_threshold`` characters of
      visible text: settle for ``settle_delay`` then succeed;
    - a checkpoint but more than ``overlay_text_threshold`` characters of
      visible text: the checkpoint is an overlay on real content, succeed
      immediately.

    Otherwise the page is occasionally nudged with a small scroll and the
    loop sleeps for a randomised delay.

    Returns:
        ``True`` on an early exit, ``False`` if the timeout elapsed.  The
        caller reads ``page.content()`` either way.
    """
    policy = policy or WaitPolicy()
    rng = rng or random.Random()
    start = clock()

    while clock() - start < policy.timeout:
        html = await page.content()
        title = await page.title()
        text_length = await page.evaluate(_TEXT_LENGTH_JS)
        verdict = classify(html, title)

        if not verdict.is_checkpoint and text_length > policy.clean_text_threshold:
            logger.info("Content ready (%d chars of text, no checkpoint)", text_length)
            await sleep(policy.settle_delay)
            return True

        if verdict.is_checkpoint and text_length > policy.overlay_text_threshold:
            logger.info(
                "Checkpoint %r present alongside %d chars of text; treating it as an overlay",
                verdict.type.value,
                text_length,
            )
            return True

        if verdict.is_checkpoint:
            logger.debug(
                "Checkpoint %r, text length %d; waiting", verdict.type.value, text_length
            )
        else:
            logger.debug("No checkpoint but text length %d is low; waiting", text_length)

        if rng.random() < policy.scroll_probability:
            try:
                await page.evaluate(_SCROLL_JS, rng.randint(*policy.scroll_range))
            except Exception as exc:  # page may be mid-navigation
                logger.debug("Scroll failed: %s", exc)

        await sleep(rng.uniform(*policy.delay_range))

    logger.warning("Timed out after %.1fs waiting for content to settle", policy.timeout)
    return False


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class Renderer:
    """Render a URL in a dedicated headless browser and return its HTML."""

    def __init__(
        self,
        name: str,
        launcher: BrowserLauncher,
        options: LaunchOptions,
        viewport: Viewport,
        patcher: Optional[PagePatcher] = None,
        wait_policy: Optional[WaitPolicy] = None,
        navigation_timeout: float = 60.0,
        rng: Optional[random.Random] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.name = name
        self._launcher = launcher
        self._options = options
        self._viewport = viewport
        self._patcher = patcher
        self._wait_policy = wait_policy or WaitPolicy()
        self._navigation_timeout = navigation_timeout
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def render(self, url: str) -> str:
        """Load *url*, wait for content to settle, and return the final HTML.

        Raises:
            Exception: Whatever the launcher or page raised (launch failure,
                navigation timeout, crashed target).  The browser is closed
                before the exception leaves this method.
        """
        logger.info("[%s] Launching browser for %s", self.name, url)
        browser = await self._launcher.launch(self._options)
        try:
            page = await browser.new_page(
                user_agent=random_user_agent(self._rng), viewport=self._viewport
            )
            if self._patcher is not None:
                await self._patcher(page)

            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=int(self._navigation_timeout * 1000),
            )
            logger.info("[%s] Navigation completed", self.name)

            await wait_for_content(
                page, self._wait_policy, rng=self._rng, sleep=self._sleep
            )
            return await page.content()
        finally:
            logger.debug("[%s] Closing browser", self.name)
            await browser.close()


def stealth_renderer(
    launcher: Optional[BrowserLauncher] = None,
    cfg: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> Renderer:
    """Build the fingerprint-patched renderer tried first."""
    cfg = cfg or default_settings
    return Renderer(
        "stealth",
        launcher or default_launcher(),
        LaunchOptions.from_settings(cfg, headless=cfg.stealth_headless),
        STEALTH_VIEWPORT,
        patcher=apply_stealth,
        wait_policy=WaitPolicy.from_settings(cfg),
        navigation_timeout=cfg.navigation_timeout,
        rng=rng,
    )


def plain_renderer(
    launcher: Optional[BrowserLauncher] = None,
    cfg: Optional[Settings] = None,
    rng: Optional[random.Random] = None,
) -> Renderer:
    """Build the unpatched last-resort renderer."""
    cfg = cfg or default_settings
    return Renderer(
        "plain",
        launcher or default_launcher(),
        LaunchOptions.from_settings(cfg, headless=cfg.plain_headless),
        PLAIN_VIEWPORT,
        wait_policy=WaitPolicy.from_settings(cfg),
        navigation_timeout=cfg.navigation_timeout,
        rng=rng,
    )
