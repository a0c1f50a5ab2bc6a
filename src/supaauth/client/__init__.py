"""Identity-broker client and redirect parsing.

- :class:`IdentityClient` -- builds the authorization URL, knows the
  callback prefix, and fetches the user profile over HTTP.
- :func:`extract_access_token` / :func:`find_access_token` -- recover the
  bearer token from the final redirect URL.
"""

from supaauth.client.identity import IdentityClient, generate_state
from supaauth.client.redirect import extract_access_token, find_access_token

__all__ = [
    "IdentityClient",
    "extract_access_token",
    "find_access_token",
    "generate_state",
]
