"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~supaauth.exceptions.SupaauthError` subclass.
Shell wrappers can inspect the exit code to tell failure classes apart
without parsing stderr.

Example::

    $ supaauth whoami
    Error: Whoami failed: Not authenticated. Please login first.
    $ echo $?
    4   # EXIT_NOT_AUTHENTICATED -- no token in the secret store
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The OAuth flow or the profile lookup was rejected."""

EXIT_NOT_AUTHENTICATED = 4
"""No stored token exists; ``login`` or ``signup`` has not been run."""

EXIT_BROWSER_ERROR = 5
"""The browser could not be driven, or the authorization timed out."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CREDENTIAL_ERROR = 7
"""The operating system's secret store rejected a read or write."""

EXIT_CONFIG_ERROR = 8
"""The provider configuration is missing or malformed."""
