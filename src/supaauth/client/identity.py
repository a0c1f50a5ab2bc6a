"""Identity-broker client for the Supabase ``/auth/v1`` endpoints.

:class:`IdentityClient` knows three things about the broker:

* how to build the GitHub ``/authorize`` URL that starts an implicit flow,
* which URL prefix marks the end of that flow (the callback), and
* how to fetch the authenticated user's profile with a bearer token.

HTTP goes through :class:`httpx.AsyncClient`. Errors are mapped onto the
supaauth hierarchy: a rejected request becomes
:class:`~supaauth.exceptions.AuthError` (with ``status_code``), a transport
failure becomes :class:`~supaauth.exceptions.HttpError`, and a body that is
not a user record becomes :class:`~supaauth.exceptions.SerializationError`.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Optional
from urllib.parse import urlencode, urlsplit

import httpx
from pydantic import ValidationError

from supaauth.exceptions import AuthError, HttpError, SerializationError
from supaauth.models import AuthorizationRequest, ProviderConfig, UserProfile

logger = logging.getLogger(__name__)

AUTHORIZE_PATH = "/auth/v1/authorize"
CALLBACK_PATH = "/auth/v1/callback"
USER_PATH = "/auth/v1/user"

DEFAULT_HTTP_TIMEOUT = 30.0
"""Seconds before a profile request is abandoned."""


def generate_state() -> str:
    """Return a fresh state nonce: unix seconds followed by a random 64-bit integer."""
    return f"{int(time.time())}{secrets.randbits(64)}"


class IdentityClient:
    """Talk to the identity broker on behalf of one CLI invocation.

    Args:
        config: Broker URL, anon key, and GitHub client id.
        timeout: Per-request timeout in seconds for profile lookups.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.

    Example::

        client = IdentityClient(config)
        url = client.build_authorization_url(is_signup=False)
        ...
        profile = await client.fetch_user_profile(token)
    """

    def __init__(
        self,
        config: ProviderConfig,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._timeout = timeout
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._config.supabase_url

    # ------------------------------------------------------------------
    # Authorization URL
    # ------------------------------------------------------------------

    def authorization_request(self, is_signup: bool) -> AuthorizationRequest:
        """Build a new :class:`~supaauth.models.AuthorizationRequest` with a fresh nonce."""
        return AuthorizationRequest(
            client_id=self._config.github_client_id,
            redirect_to=self.callback_url_prefix(),
            state=generate_state(),
            flow_type="signup" if is_signup else None,
        )

    def build_authorization_url(self, is_signup: bool) -> str:
        """Return the ``/authorize`` URL that starts a GitHub implicit flow.

        Every call yields a new ``state`` value; all other parameters are
        determined by the config and *is_signup*.

        Args:
            is_signup: Append ``flow_type=signup`` when ``True``.

        Returns:
            The absolute authorization URL.

        Raises:
            AuthError: If the configured base URL is not an absolute
                ``http(s)`` URL.
        """
        authorize_url = f"{self.base_url}{AUTHORIZE_PATH}"
        try:
            parts = urlsplit(authorize_url)
        except ValueError as exc:
            raise AuthError(f"Invalid Supabase URL '{self.base_url}': {exc}") from exc
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise AuthError(
                f"Invalid Supabase URL '{self.base_url}': expected an absolute http(s) URL"
            )

        request = self.authorization_request(is_signup)
        return f"{authorize_url}?{urlencode(request.query_params())}"

    def callback_url_prefix(self) -> str:
        """Return the URL prefix the browser reaches when the flow completes."""
        return f"{self.base_url}{CALLBACK_PATH}"

    # ------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------

    async def fetch_user_profile(self, token: str) -> UserProfile:
        """Fetch the profile of the user that *token* belongs to.

        Args:
            token: Bearer access token from the OAuth flow or the store.

        Returns:
            The parsed :class:`~supaauth.models.UserProfile`.

        Raises:
            AuthError: On a non-2xx response. ``status_code`` holds the
                HTTP status.
            HttpError: On transport failures (DNS, refused, timeout).
            SerializationError: If the body is not a valid user record.
        """
        url = f"{self.base_url}{USER_PATH}"
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self._config.supabase_anon_key,
            "Accept": "application/json",
        }

        logger.debug("GET %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise HttpError(f"Request to {url} failed: {exc}") from exc

        logger.debug("GET %s -> %d", url, response.status_code)
        if not response.is_success:
            raise AuthError(
                f"Failed to get user profile: HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return UserProfile.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise SerializationError(f"Unexpected user profile response: {exc}") from exc
