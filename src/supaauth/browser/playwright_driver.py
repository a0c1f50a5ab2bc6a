"""Playwright-backed browser session.

Drives a real Chromium, Firefox, or WebKit through Playwright's async API.
The window is visible by default because the user has to type their GitHub
credentials into it; ``headless=True`` is for environments where a session
already exists in ``user_data_dir``.

Every Playwright error is translated into
:class:`~supaauth.exceptions.BrowserError` so callers only ever see the
supaauth exception hierarchy.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from supaauth.browser.base import BrowserSession, BrowserTab
from supaauth.exceptions import BrowserError

logger = logging.getLogger(__name__)

BROWSER_TYPES = ("chromium", "firefox", "webkit")
"""Browser engines Playwright can launch."""


class PlaywrightTab(BrowserTab):
    """A :class:`~supaauth.browser.base.BrowserTab` wrapping a Playwright ``Page``."""

    def __init__(self, page: Any) -> None:
        super().__init__()
        self._page = page

    async def navigate(self, url: str) -> None:
        logger.debug("Navigating to %s", url)
        try:
            await self._page.goto(url, wait_until="load")
        except PlaywrightError as exc:
            raise BrowserError(f"Navigation to {url} failed: {exc}") from exc

    def current_url(self) -> str:
        return self._page.url

    async def has_element(self, selector: str) -> bool:
        try:
            return await self._page.query_selector(selector) is not None
        except PlaywrightError as exc:
            logger.debug("Probe for %r failed: %s", selector, exc)
            return False

    async def _close(self) -> None:
        try:
            await self._page.close()
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to close tab: {exc}") from exc


class PlaywrightSession(BrowserSession):
    """Own one Playwright browser for the duration of an invocation.

    Args:
        browser_type: One of :data:`BROWSER_TYPES`.
        headless: Launch without a visible window.
        user_data_dir: Persistent profile directory. When set, cookies
            (including an existing GitHub login) survive between runs.
    """

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = False,
        user_data_dir: Optional[Path] = None,
    ) -> None:
        super().__init__()
        if browser_type not in BROWSER_TYPES:
            raise BrowserError(
                f"Unknown browser '{browser_type}': must be one of {', '.join(BROWSER_TYPES)}"
            )
        self._browser_type = browser_type
        self._headless = headless
        self._user_data_dir = user_data_dir
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    async def open(self) -> None:
        if self._context is not None:
            return
        logger.debug(
            "Launching %s (headless=%s, profile=%s)",
            self._browser_type,
            self._headless,
            self._user_data_dir,
        )
        if self._user_data_dir is not None:
            try:
                self._user_data_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise BrowserError(
                    f"Cannot use browser profile directory {self._user_data_dir}: {exc}"
                ) from exc
        try:
            self._playwright = await async_playwright().start()
            launcher = getattr(self._playwright, self._browser_type)
            if self._user_data_dir is not None:
                self._context = await launcher.launch_persistent_context(
                    str(self._user_data_dir), headless=self._headless
                )
            else:
                self._browser = await launcher.launch(headless=self._headless)
                self._context = await self._browser.new_context()
        except PlaywrightError as exc:
            await self.close()
            raise BrowserError(f"Failed to launch {self._browser_type}: {exc}") from exc

    async def new_tab(self) -> BrowserTab:
        if self._context is None:
            raise BrowserError("Browser session is not open")
        try:
            page = await self._context.new_page()
        except PlaywrightError as exc:
            raise BrowserError(f"Failed to open a new tab: {exc}") from exc
        return self._track(PlaywrightTab(page))

    async def close(self) -> None:
        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = self._browser = self._playwright = None
        try:
            if context is not None:
                await context.close()
            if browser is not None:
                await browser.close()
        except PlaywrightError as exc:
            logger.warning("Error shutting down browser: %s", exc)
        finally:
            if playwright is not None:
                await playwright.stop()
