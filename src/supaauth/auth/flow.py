"""Browser-mediated OAuth flow: authorize, wait for the redirect, extract the token.

:class:`OAuthFlow` is a small state machine::

    INIT -> CHECKING_SESSION -> BUILDING_REQUEST -> AWAITING_REDIRECT
         -> EXTRACTING_TOKEN -> COMPLETED

with the terminal failure states ``TIMED_OUT`` and ``FAILED``.

1. **CHECKING_SESSION** -- open the browser, load the provider's home page
   in a throwaway tab, and look for the logged-in header. The answer only
   changes the message shown to the user.
2. **BUILDING_REQUEST** -- ask :class:`~supaauth.client.identity.IdentityClient`
   for the authorization URL and the callback prefix.
3. **AWAITING_REDIRECT** -- open a fresh tab on the authorization URL and
   poll its current URL every ``poll_interval`` seconds until it starts with
   the callback prefix. The poll runs under a cancellable deadline
   (:func:`asyncio.wait_for`), so a timeout or Ctrl-C interrupts the sleep
   immediately, and the tab is closed on every path.
4. **EXTRACTING_TOKEN** -- :func:`~supaauth.client.redirect.extract_access_token`.

Nothing is retried except the URL poll itself, and nothing is persisted:
the token is handed back to the caller.
"""

from __future__ import annotations

import asyncio
import enum
import logging

from supaauth.browser.base import BrowserSession, BrowserTab
from supaauth.client.identity import IdentityClient
from supaauth.client.redirect import extract_access_token
from supaauth.exceptions import BrowserError
from supaauth.output import info

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0
"""Seconds the user has to finish signing in once the authorization page is loaded."""

POLL_INTERVAL = 0.5
"""Seconds between two reads of the tab's current URL."""

GITHUB_URL = "https://github.com"

GITHUB_SESSION_SELECTOR = "summary.Header-link[aria-label='View profile and more']"
"""Avatar menu in GitHub's header, only rendered for signed-in users.

Tied to GitHub's markup; if it stops matching, users are merely told to log
in when they already are.
"""


class FlowState(str, enum.Enum):
    INIT = "init"
    CHECKING_SESSION = "checking_session"
    BUILDING_REQUEST = "building_request"
    AWAITING_REDIRECT = "awaiting_redirect"
    EXTRACTING_TOKEN = "extracting_token"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class OAuthFlow:
    """Run one browser-mediated GitHub OAuth attempt through the identity broker.

    An instance runs exactly once; every CLI invocation builds a new one.

    Args:
        browser: An unopened browser session. The flow opens it on entry to
            :meth:`run` and closes it before returning.
        identity: Client used to build the authorization URL.
        timeout: Seconds to wait for the callback once the authorization
            page has loaded.
        poll_interval: Seconds between URL checks.
        provider_url: Page loaded to detect an existing provider session.
        session_selector: CSS selector present only when signed in.

    Example::

        flow = OAuthFlow(PlaywrightSession(), IdentityClient(config))
        token = await flow.run(is_signup=False)
    """

    def __init__(
        self,
        browser: BrowserSession,
        identity: IdentityClient,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
        provider_url: str = GITHUB_URL,
        session_selector: str = GITHUB_SESSION_SELECTOR,
    ) -> None:
        self._browser = browser
        self._identity = identity
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._provider_url = provider_url
        self._session_selector = session_selector
        self.state = FlowState.INIT
        self.history: list[FlowState] = [FlowState.INIT]
        self.provider_session_active = False

    def _transition(self, state: FlowState) -> None:
        logger.debug("OAuth flow: %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def run(self, is_signup: bool) -> str:
        """Run the whole flow and return the access token.

        Args:
            is_signup: Ask the broker for a sign-up rather than a sign-in.

        Returns:
            The bearer token recovered from the callback URL.

        Raises:
            BrowserError: If the browser fails, a navigation fails, or the
                callback is not reached within ``timeout``.
            AuthError: If the base URL is invalid or the callback URL
                carries no token.
            RuntimeError: If this instance has already run.
        """
        if self.state is not FlowState.INIT:
            raise RuntimeError("OAuthFlow instances cannot be reused")

        try:
            self._transition(FlowState.CHECKING_SESSION)
            async with self._browser:
                self.provider_session_active = await self.check_provider_session()
                if self.provider_session_active:
                    info("User is already logged in to GitHub. Using existing session.")
                else:
                    info("GitHub login required. Please log in using the browser window.")

                self._transition(FlowState.BUILDING_REQUEST)
                auth_url = self._identity.build_authorization_url(is_signup)
                callback_prefix = self._identity.callback_url_prefix()

                self._transition(FlowState.AWAITING_REDIRECT)
                info("Opening browser for authentication...")
                final_url = await self.await_redirect(auth_url, callback_prefix)

            self._transition(FlowState.EXTRACTING_TOKEN)
            token = extract_access_token(final_url)
        except BaseException:
            if self.state is not FlowState.TIMED_OUT:
                self._transition(FlowState.FAILED)
            raise

        self._transition(FlowState.COMPLETED)
        return token

    async def check_provider_session(self) -> bool:
        """Return whether the browser already holds a provider login.

        Raises:
            BrowserError: If the provider's page cannot be loaded.
        """
        async with await self._browser.new_tab() as tab:
            await tab.navigate(self._provider_url)
            return await tab.has_element(self._session_selector)

    async def await_redirect(self, auth_url: str, callback_prefix: str) -> str:
        """Load *auth_url* and wait until the tab reaches *callback_prefix*.

        The match is a plain string prefix test on the tab's URL, so any
        page under the callback path counts as arrival.

        Returns:
            The full URL the tab was on when it matched.

        Raises:
            BrowserError: On navigation failure, or ``"Authentication timed
                out"`` when ``timeout`` elapses first.
        """
        async with await self._browser.new_tab() as tab:
            await tab.navigate(auth_url)
            try:
                return await asyncio.wait_for(
                    self._poll_for_callback(tab, callback_prefix),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError:
                self._transition(FlowState.TIMED_OUT)
                raise BrowserError(
                    f"Authentication timed out after {self._timeout:g} seconds"
                ) from None

    async def _poll_for_callback(self, tab: BrowserTab, callback_prefix: str) -> str:
        while True:
            current_url = tab.current_url()
            if current_url.startswith(callback_prefix):
                logger.debug("Callback reached: %s", callback_prefix)
                return current_url
            await asyncio.sleep(self._poll_interval)
