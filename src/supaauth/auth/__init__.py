"""Token acquisition and storage.

The main entry points are:

- :class:`AuthHandler` -- the façade the CLI calls for ``signup``,
  ``login``, and ``whoami``.
- :class:`OAuthFlow` -- the browser-driven authorization state machine.
- :class:`CredentialStore` -- the keyring slot holding the token.

Typical usage::

    from supaauth.auth import AuthHandler

    profile = asyncio.run(AuthHandler(config).login())
"""

from supaauth.auth.credential_store import CredentialStore
from supaauth.auth.flow import FlowState, OAuthFlow
from supaauth.auth.handler import AuthHandler

__all__ = [
    "AuthHandler",
    "CredentialStore",
    "FlowState",
    "OAuthFlow",
]
