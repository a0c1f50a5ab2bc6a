"""Recover the access token from the broker's final redirect URL.

Supabase's implicit flow lands the browser on a URL shaped like::

    https://abc.supabase.co/auth/v1/callback#access_token=eyJ...&token_type=bearer&expires_in=3600

The token normally sits in the fragment. Some deployments put it in the
query string instead, so that is checked as a fallback. The fragment always
wins when both are present.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from supaauth.exceptions import AuthError

TOKEN_KEY = "access_token"


def _token_from_fragment(fragment: str) -> Optional[str]:
    # First ``access_token=<value>`` pair wins; pairs with a second '=' are skipped.
    for param in fragment.split("&"):
        kv = param.split("=")
        if len(kv) == 2 and kv[0] == TOKEN_KEY and kv[1]:
            return kv[1]
    return None


def _token_from_query(query: str) -> Optional[str]:
    for key, value in parse_qsl(query, keep_blank_values=True):
        if key == TOKEN_KEY and value:
            return value
    return None


def find_access_token(url: str) -> Optional[str]:
    """Return the access token carried by *url*, or ``None``.

    Pure function: no I/O, no exceptions for ordinary input.

    Args:
        url: The URL the browser stopped on.

    Returns:
        The raw token from the fragment if present, otherwise the decoded
        token from the query string, otherwise ``None``. Empty values are
        treated as absent.

    Example::

        >>> find_access_token("https://x/cb#access_token=abc&token_type=bearer")
        'abc'
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return None
    return _token_from_fragment(parts.fragment) or _token_from_query(parts.query)


def extract_access_token(url: str) -> str:
    """Return the access token carried by *url*.

    Raises:
        AuthError: If neither the fragment nor the query holds a token.
    """
    token = find_access_token(url)
    if token is None:
        raise AuthError("Could not extract access token from URL")
    return token
