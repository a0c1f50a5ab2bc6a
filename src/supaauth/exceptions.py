"""Exception hierarchy for supaauth.

All exceptions inherit from :class:`SupaauthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`supaauth.exit_codes`.
Commands catch ``SupaauthError`` and exit with the matching code, while
unexpected exceptions produce a crash log and exit with
:data:`EXIT_GENERIC_FAILURE`. ``SupaauthError`` itself doubles as the
catch-all for failures that fit no narrower category.

Subclass hierarchy::

    SupaauthError (exit 1)
    +-- AuthError           (exit 3)
    +-- NotAuthenticated    (exit 4)
    +-- BrowserError        (exit 5)
    +-- HttpError           (exit 6)
    +-- SerializationError  (exit 6)
    +-- CredentialError     (exit 7)
    +-- ConfigError         (exit 8)
"""

from __future__ import annotations

from typing import Optional

from supaauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_BROWSER_ERROR,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_CREDENTIAL_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_AUTHENTICATED,
)


class SupaauthError(Exception):
    """Base exception for all supaauth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`supaauth.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class AuthError(SupaauthError):
    """Raised for protocol failures: bad base URL, missing token, rejected profile lookup.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the rejected response, when there was one.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotAuthenticated(SupaauthError):
    """Raised when no token is stored in the secret store."""

    exit_code = EXIT_NOT_AUTHENTICATED

    def __init__(self, message: str = "Not authenticated. Please login first."):
        super().__init__(message)


class BrowserError(SupaauthError):
    """Raised when the browser cannot be launched or driven, or the flow times out."""

    exit_code = EXIT_BROWSER_ERROR


class HttpError(SupaauthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class SerializationError(SupaauthError):
    """Raised when a response body is not the JSON document we expect."""

    exit_code = EXIT_CONNECTION_ERROR


class CredentialError(SupaauthError):
    """Raised when the operating system's secret store rejects a write."""

    exit_code = EXIT_CREDENTIAL_ERROR


class ConfigError(SupaauthError):
    """Raised for configuration problems (unreadable file, invalid JSON, bad fields)."""

    exit_code = EXIT_CONFIG_ERROR
