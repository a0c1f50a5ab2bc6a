"""Token storage in the operating system's secret store.

The token lives in a single keyring slot identified by a fixed
service/account pair (macOS Keychain, Windows Credential Locker, Secret
Service on Linux, or whatever backend :mod:`keyring` selects). Nothing is
ever written to disk by supaauth itself.

See Also:
    :class:`~supaauth.auth.handler.AuthHandler` -- the only writer.
"""

from __future__ import annotations

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from supaauth.exceptions import CredentialError, NotAuthenticated

logger = logging.getLogger(__name__)

SERVICE_NAME = "supaauth"
ACCOUNT_NAME = "supabase-token"


class CredentialStore:
    """Read/write the stored bearer token.

    Args:
        service: Keyring service name.
        account: Keyring account (user name) within the service.

    Example::

        store = CredentialStore()
        store.put("eyJhbGciOi...")
        assert store.get() == "eyJhbGciOi..."
    """

    def __init__(self, service: str = SERVICE_NAME, account: str = ACCOUNT_NAME) -> None:
        self._service = service
        self._account = account

    def put(self, secret: str) -> None:
        """Store *secret*, replacing any previous value.

        Raises:
            CredentialError: If the keyring backend rejects the write.
        """
        try:
            keyring.set_password(self._service, self._account, secret)
        except KeyringError as exc:
            raise CredentialError(f"Failed to store token: {exc}") from exc
        logger.debug("Token stored under %s/%s", self._service, self._account)

    def get(self) -> str:
        """Return the stored secret.

        Raises:
            NotAuthenticated: If nothing is stored, or the backend cannot be
                read.
        """
        try:
            secret = keyring.get_password(self._service, self._account)
        except KeyringError as exc:
            logger.debug("Keyring read failed: %s", exc)
            raise NotAuthenticated() from exc
        if not secret:
            raise NotAuthenticated()
        return secret

    def delete(self) -> None:
        """Remove the stored secret. A missing entry is not an error.

        Raises:
            CredentialError: If the keyring backend fails for another reason.
        """
        try:
            keyring.delete_password(self._service, self._account)
        except PasswordDeleteError:
            return
        except KeyringError as exc:
            raise CredentialError(f"Failed to delete token: {exc}") from exc
        logger.debug("Token deleted from %s/%s", self._service, self._account)
