"""supaauth -- acquire a Supabase bearer token through GitHub OAuth in a browser.

This package drives a real (or headless) browser through the GitHub sign-in
brokered by a Supabase project, recovers the access token from the final
redirect, stores it in the operating system's secret store, and confirms it
by fetching the authenticated user's profile.

Typical workflow::

    supaauth login     # browser opens, token is stored
    supaauth whoami    # profile of the stored token

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware provider configuration with env overrides.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
