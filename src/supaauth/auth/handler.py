"""Authentication façade used by the CLI commands.

:class:`AuthHandler` sequences the pieces for each command:

* ``signup`` / ``login`` -- :class:`~supaauth.auth.flow.OAuthFlow` ->
  :meth:`CredentialStore.put` -> :meth:`IdentityClient.fetch_user_profile`.
* ``whoami`` -- :meth:`CredentialStore.get` ->
  :meth:`IdentityClient.fetch_user_profile`.

Presentation is left to the command layer; every method returns the
:class:`~supaauth.models.UserProfile` it fetched.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from supaauth.auth.credential_store import CredentialStore
from supaauth.auth.flow import DEFAULT_TIMEOUT, POLL_INTERVAL, OAuthFlow
from supaauth.browser.base import BrowserSession
from supaauth.browser.playwright_driver import PlaywrightSession
from supaauth.client.identity import IdentityClient
from supaauth.models import ProviderConfig, UserProfile

logger = logging.getLogger(__name__)


class AuthHandler:
    """Run the signup, login, and whoami sequences.

    Args:
        config: Provider configuration for this invocation.
        store: Secret store for the token. Defaults to the keyring slot.
        identity: Broker client. Defaults to one built from *config*.
        browser_factory: Zero-argument callable returning an unopened
            :class:`~supaauth.browser.base.BrowserSession`. Called once per
            flow. Defaults to a headed Chromium.
        timeout: Seconds allowed for the user to finish the browser flow.
        poll_interval: Seconds between redirect checks.
    """

    def __init__(
        self,
        config: ProviderConfig,
        store: Optional[CredentialStore] = None,
        identity: Optional[IdentityClient] = None,
        browser_factory: Optional[Callable[[], BrowserSession]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        poll_interval: float = POLL_INTERVAL,
    ) -> None:
        self._config = config
        self._store = store or CredentialStore()
        self._identity = identity or IdentityClient(config)
        self._browser_factory = browser_factory or PlaywrightSession
        self._timeout = timeout
        self._poll_interval = poll_interval

    async def signup(self) -> UserProfile:
        """Sign up a new user through GitHub and store the resulting token."""
        return await self._authenticate(is_signup=True)

    async def login(self) -> UserProfile:
        """Log an existing user in through GitHub and store the resulting token."""
        return await self._authenticate(is_signup=False)

    async def whoami(self) -> UserProfile:
        """Return the profile for the stored token.

        Raises:
            NotAuthenticated: If no token is stored. No request is made.
        """
        token = self._store.get()
        return await self._identity.fetch_user_profile(token)

    async def _authenticate(self, is_signup: bool) -> UserProfile:
        """Acquire, store, and confirm a token.

        If the profile lookup fails after the token was stored, the token is
        removed again so a failed command never leaves a credential behind.
        """
        flow = OAuthFlow(
            self._browser_factory(),
            self._identity,
            timeout=self._timeout,
            poll_interval=self._poll_interval,
        )
        token = await flow.run(is_signup)

        self._store.put(token)
        try:
            return await self._identity.fetch_user_profile(token)
        except BaseException:
            logger.debug("Profile lookup did not complete; removing the token just stored")
            self._store.delete()
            raise
