"""Shared test fixtures for supaauth.

Provides reusable fixtures for isolating config directories, swapping the
system keyring for an in-memory backend, managing output state, driving the
OAuth flow with a fake browser, and running CLI commands. These fixtures
are automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import PasswordDeleteError

from supaauth.browser.base import BrowserSession, BrowserTab
from supaauth.exceptions import BrowserError
from supaauth.models import ProviderConfig
from supaauth.output import OutputFormat, OutputManager, reset_output, set_output


SUPABASE_URL = "https://abc.supabase.co"
CALLBACK_URL = f"{SUPABASE_URL}/auth/v1/callback"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    Resetting forces a fresh manager to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path,
    clears the provider override variables, and changes the working
    directory to tmp_path so no stray ``.env`` is picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("supaauth.config._is_xdg_platform", lambda: True)

    # setenv first so monkeypatch also undoes values a loaded .env sets
    for var in ["SUPABASE_URL", "SUPABASE_ANON_KEY", "GITHUB_CLIENT_ID"]:
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)

    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def provider_config() -> ProviderConfig:
    return ProviderConfig(
        supabase_url=SUPABASE_URL,
        supabase_anon_key="anon-key-123",
        github_client_id="Iv1.client",
    )


@pytest.fixture
def profile_payload() -> dict[str, Any]:
    """A ``GET /auth/v1/user`` body as Supabase returns it for a GitHub user."""
    return {
        "id": "8f2c5a7e-0d1b-4a8e-9a3f-2b6c1d0e9f71",
        "aud": "authenticated",
        "email": "octo@example.com",
        "user_metadata": {
            "avatar_url": "https://avatars.githubusercontent.com/u/1?v=4",
            "email": "octo@example.com",
            "email_verified": True,
            "full_name": "Octo Cat",
            "iss": "https://api.github.com",
            "name": "Octo Cat",
            "preferred_username": "octocat",
            "provider_id": "1",
            "sub": "1",
            "user_name": "octocat",
        },
        "app_metadata": {"provider": "github", "providers": ["github"]},
        "created_at": "2024-01-15T10:30:00.000000Z",
    }


# ---------------------------------------------------------------------------
# In-memory keyring
# ---------------------------------------------------------------------------


class MemoryKeyring(KeyringBackend):
    """Keyring backend that keeps passwords in a dict."""

    priority = 1  # type: ignore[assignment]

    def __init__(self) -> None:
        super().__init__()
        self.passwords: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> Optional[str]:
        return self.passwords.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.passwords[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.passwords[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    """Swap the process-wide keyring for a :class:`MemoryKeyring`."""
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


# ---------------------------------------------------------------------------
# Fake browser
# ---------------------------------------------------------------------------


class FakeTab(BrowserTab):
    """Tab whose URL walks a scripted redirect chain, one step per read."""

    def __init__(self, browser: FakeBrowser) -> None:
        super().__init__()
        self._browser = browser
        self._url = "about:blank"
        self._chain: list[str] = []
        self.navigations: list[str] = []
        self.url_reads = 0

    async def navigate(self, url: str) -> None:
        self.navigations.append(url)
        if any(url.startswith(prefix) for prefix in self._browser.failing_urls):
            raise BrowserError(f"Navigation to {url} failed: net::ERR_NAME_NOT_RESOLVED")
        self._url = url
        self._chain = list(self._browser.redirects.get(url, []))

    def current_url(self) -> str:
        self.url_reads += 1
        if self._chain:
            self._url = self._chain.pop(0)
        return self._url

    async def has_element(self, selector: str) -> bool:
        return selector in self._browser.elements.get(self._url, set())

    async def _close(self) -> None:
        self._browser.closed_tabs.append(self)


class FakeBrowser(BrowserSession):
    """In-memory :class:`BrowserSession` for driving the OAuth flow in tests.

    Args:
        redirects: Maps a navigated URL to the URLs successive
            ``current_url()`` calls return afterwards.
        elements: Maps a URL to the selectors present on that page.
        failing_urls: URL prefixes whose navigation raises BrowserError.
        fail_open: Make :meth:`open` raise BrowserError.
    """

    def __init__(
        self,
        redirects: Optional[dict[str, list[str]]] = None,
        elements: Optional[dict[str, set[str]]] = None,
        failing_urls: tuple[str, ...] = (),
        fail_open: bool = False,
    ) -> None:
        super().__init__()
        self.redirects = redirects or {}
        self.elements = elements or {}
        self.failing_urls = failing_urls
        self.fail_open = fail_open
        self.opened = False
        self.closed = False
        self.tabs: list[FakeTab] = []
        self.closed_tabs: list[FakeTab] = []
        self.max_open_tabs = 0

    async def open(self) -> None:
        if self.fail_open:
            raise BrowserError("Failed to launch chromium: executable not found")
        self.opened = True

    async def new_tab(self) -> BrowserTab:
        tab = FakeTab(self)
        self._track(tab)
        self.tabs.append(tab)
        self.max_open_tabs = max(self.max_open_tabs, self.open_tabs)
        return tab

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_browser_cls() -> type[FakeBrowser]:
    return FakeBrowser


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
