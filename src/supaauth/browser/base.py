"""Abstract browser capability used by the OAuth flow.

This module defines the two foundational types of the browser layer:

- :class:`BrowserTab` -- one page context: navigate, read the current URL,
  probe for an element, close.
- :class:`BrowserSession` -- one browser process that hands out tabs.

The OAuth flow only ever talks to these interfaces, so it can be driven by
:class:`~supaauth.browser.playwright_driver.PlaywrightSession` in production
and by an in-memory fake in tests.

Both types are async context managers. A tab is a scoped resource: every
``async with session.new_tab() as tab`` block closes the tab on exit,
whether the block returns, raises, times out, or is cancelled.

To add a driver, subclass both classes and implement the abstract methods.
Subclasses of :class:`BrowserSession` should call :meth:`_track` on every
tab they create so :attr:`~BrowserSession.open_tabs` stays accurate.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from supaauth.exceptions import BrowserError

logger = logging.getLogger(__name__)


class BrowserTab(ABC):
    """A single page context owned by a :class:`BrowserSession`."""

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has run."""
        return self._closed

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Load *url* and wait until the initial navigation completes.

        Raises:
            BrowserError: If the driver reports a navigation failure.
        """
        ...

    @abstractmethod
    def current_url(self) -> str:
        """Return whatever URL the tab shows right now.

        Non-blocking. Consecutive calls may disagree while a navigation or
        redirect chain is still in progress.
        """
        ...

    @abstractmethod
    async def has_element(self, selector: str) -> bool:
        """Return ``True`` iff a node matching *selector* exists at call time.

        A heuristic probe: driver errors yield ``False``, never an exception.
        """
        ...

    async def close(self) -> None:
        """Close the tab. Calling it again is a no-op."""
        if self._closed:
            return
        self._closed = True
        await self._close()

    @abstractmethod
    async def _close(self) -> None:
        """Release the driver-side page. Called at most once."""
        ...

    async def __aenter__(self) -> BrowserTab:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is None:
            await self.close()
            return
        # Keep the exception that ended the block; a close failure only gets logged.
        try:
            await self.close()
        except BrowserError as close_exc:
            logger.warning("%s", close_exc)


class BrowserSession(ABC):
    """One browser process for the lifetime of a CLI invocation.

    Example::

        async with PlaywrightSession(headless=True) as browser:
            async with await browser.new_tab() as tab:
                await tab.navigate("https://github.com")
                print(tab.current_url())
    """

    def __init__(self) -> None:
        self._tabs: list[BrowserTab] = []

    @property
    def open_tabs(self) -> int:
        """Number of tabs handed out by :meth:`new_tab` that are not yet closed."""
        return sum(1 for tab in self._tabs if not tab.closed)

    @abstractmethod
    async def open(self) -> None:
        """Launch the browser.

        Raises:
            BrowserError: If the underlying process cannot start.
        """
        ...

    @abstractmethod
    async def new_tab(self) -> BrowserTab:
        """Open a new page context.

        Raises:
            BrowserError: If the driver cannot create a page.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Shut the browser down. Must be safe to call more than once."""
        ...

    def _track(self, tab: BrowserTab) -> BrowserTab:
        self._tabs = [t for t in self._tabs if not t.closed]
        self._tabs.append(tab)
        return tab

    async def __aenter__(self) -> BrowserSession:
        await self.open()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
