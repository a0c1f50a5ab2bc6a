"""Auth commands -- ``signup``, ``login``, and ``whoami``.

``signup`` and ``login`` open a browser window on GitHub's authorization
page, wait for the Supabase callback, store the token in the system
keyring, and print the profile it belongs to. ``whoami`` prints the
profile for the stored token without opening a browser.

Typical workflow::

    supaauth login               # browser opens
    supaauth whoami              # profile of the stored token
    supaauth --json whoami       # same, as JSON on stdout
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional

import typer

from supaauth.auth.flow import DEFAULT_TIMEOUT
from supaauth.auth.handler import AuthHandler
from supaauth.exceptions import NotAuthenticated, SupaauthError
from supaauth.models import UserProfile
from supaauth.output import (
    OutputFormat,
    error,
    format_response,
    get_output,
    info,
    print_table,
    success,
    suggest,
)


def _build_handler(
    timeout: float = DEFAULT_TIMEOUT,
    headless: bool = False,
    browser: str = "chromium",
    browser_profile: Optional[Path] = None,
) -> AuthHandler:
    """Resolve the provider config and wire an :class:`AuthHandler` for this run."""
    from supaauth.browser.playwright_driver import PlaywrightSession
    from supaauth.config import resolve_provider_config

    config = resolve_provider_config()

    def browser_factory() -> PlaywrightSession:
        return PlaywrightSession(
            browser_type=browser,
            headless=headless,
            user_data_dir=browser_profile,
        )

    return AuthHandler(config, browser_factory=browser_factory, timeout=timeout)


def show_profile(profile: UserProfile) -> None:
    """Print *profile* to stdout: JSON in ``--json`` mode, a field table otherwise."""
    if get_output().format == OutputFormat.JSON:
        format_response(profile.model_dump(mode="json"))
        return
    rows = [[label, value] for label, value in profile.display_rows()]
    print_table(["Field", "Value"], rows, title="User")


def _run(
    label: str,
    action: Callable[[AuthHandler], Awaitable[UserProfile]],
    **handler_options: object,
) -> UserProfile:
    """Build a handler, run *action* on it, and turn failures into exit codes."""
    try:
        handler = _build_handler(**handler_options)  # type: ignore[arg-type]
        return asyncio.run(action(handler))
    except KeyboardInterrupt:
        info("\nCancelled.")
        raise typer.Exit(code=130) from None
    except NotAuthenticated as exc:
        error(f"{label} failed: {exc}")
        suggest("Log in first: supaauth login")
        raise typer.Exit(code=exc.exit_code) from None
    except SupaauthError as exc:
        error(f"{label} failed: {exc}")
        raise typer.Exit(code=exc.exit_code) from None


_TIMEOUT_OPTION = typer.Option(
    DEFAULT_TIMEOUT,
    "--timeout",
    min=1.0,
    help="Seconds to wait for the browser sign-in to finish.",
)
_HEADLESS_OPTION = typer.Option(
    False, "--headless", help="Run the browser without a window."
)
_BROWSER_OPTION = typer.Option(
    "chromium", "--browser", help="Browser engine: chromium, firefox, or webkit."
)
_PROFILE_OPTION = typer.Option(
    None,
    "--browser-profile",
    help="Persistent browser profile directory (keeps the GitHub session between runs).",
)


def signup_command(
    timeout: float = _TIMEOUT_OPTION,
    headless: bool = _HEADLESS_OPTION,
    browser: str = _BROWSER_OPTION,
    browser_profile: Optional[Path] = _PROFILE_OPTION,
) -> None:
    """Sign up with a new GitHub account.

    Example::

        supaauth signup
    """
    info("Initiating signup process with GitHub...")
    profile = _run(
        "Signup",
        lambda handler: handler.signup(),
        timeout=timeout,
        headless=headless,
        browser=browser,
        browser_profile=browser_profile,
    )
    success("Signup successful!")
    show_profile(profile)


def login_command(
    timeout: float = _TIMEOUT_OPTION,
    headless: bool = _HEADLESS_OPTION,
    browser: str = _BROWSER_OPTION,
    browser_profile: Optional[Path] = _PROFILE_OPTION,
) -> None:
    """Log in with an existing GitHub account.

    Example::

        supaauth login --browser-profile ~/.local/share/supaauth/browser
    """
    info("Initiating login process with GitHub...")
    profile = _run(
        "Login",
        lambda handler: handler.login(),
        timeout=timeout,
        headless=headless,
        browser=browser,
        browser_profile=browser_profile,
    )
    success("Login successful!")
    show_profile(profile)


def whoami_command() -> None:
    """Show the currently logged-in user."""
    profile = _run("Whoami", lambda handler: handler.whoami())
    info("Currently logged in as:")
    show_profile(profile)
