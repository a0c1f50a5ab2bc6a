"""Tests for the browser-mediated OAuth flow state machine."""

from __future__ import annotations

import asyncio
import time
from urllib.parse import parse_qs, urlsplit

import pytest

from supaauth.auth.flow import GITHUB_SESSION_SELECTOR, GITHUB_URL, FlowState, OAuthFlow
from supaauth.client.identity import IdentityClient
from supaauth.exceptions import AuthError, BrowserError
from supaauth.models import ProviderConfig

CALLBACK = "https://abc.supabase.co/auth/v1/callback"


class ScriptedIdentity(IdentityClient):
    """IdentityClient whose authorization URL is fixed, so redirects can be scripted."""

    AUTH_URL = "https://abc.supabase.co/auth/v1/authorize?provider=github&state=1"

    def __init__(self, config: ProviderConfig) -> None:
        super().__init__(config)
        self.signup_flags: list[bool] = []

    def build_authorization_url(self, is_signup: bool) -> str:
        self.signup_flags.append(is_signup)
        return self.AUTH_URL


@pytest.fixture()
def identity(provider_config: ProviderConfig) -> ScriptedIdentity:
    return ScriptedIdentity(provider_config)


def _redirecting_browser(fake_browser_cls, *chain: str, **kwargs):
    return fake_browser_cls(redirects={ScriptedIdentity.AUTH_URL: list(chain)}, **kwargs)


def _flow(browser, identity, **kwargs) -> OAuthFlow:
    kwargs.setdefault("timeout", 2.0)
    kwargs.setdefault("poll_interval", 0.01)
    return OAuthFlow(browser, identity, **kwargs)


class TestSuccessfulFlow:
    def test_returns_token_from_fragment(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(
            fake_browser_cls,
            "https://github.com/login?client_id=Iv1.client",
            "https://github.com/login/oauth/authorize",
            f"{CALLBACK}#access_token=tok-abc&token_type=bearer&expires_in=3600",
        )
        flow = _flow(browser, identity)

        token = asyncio.run(flow.run(is_signup=False))

        assert token == "tok-abc"
        assert flow.state is FlowState.COMPLETED
        assert flow.history == [
            FlowState.INIT,
            FlowState.CHECKING_SESSION,
            FlowState.BUILDING_REQUEST,
            FlowState.AWAITING_REDIRECT,
            FlowState.EXTRACTING_TOKEN,
            FlowState.COMPLETED,
        ]

    def test_passes_signup_flag(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        asyncio.run(_flow(browser, identity).run(is_signup=True))
        assert identity.signup_flags == [True]

    def test_session_check_then_authorize(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        asyncio.run(_flow(browser, identity).run(is_signup=False))

        assert [tab.navigations for tab in browser.tabs] == [
            [GITHUB_URL],
            [ScriptedIdentity.AUTH_URL],
        ]

    def test_browser_opened_and_closed(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        asyncio.run(_flow(browser, identity).run(is_signup=False))
        assert browser.opened and browser.closed

    def test_at_most_one_tab_and_all_closed(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        asyncio.run(_flow(browser, identity).run(is_signup=False))

        assert browser.max_open_tabs == 1
        assert browser.open_tabs == 0
        assert all(tab.closed for tab in browser.tabs)

    def test_query_token_fallback(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}?access_token=from-query")
        assert asyncio.run(_flow(browser, identity).run(is_signup=False)) == "from-query"

    def test_with_real_authorization_url(
        self, fake_browser_cls, provider_config: ProviderConfig, quiet_output
    ) -> None:
        """The flow navigates to whatever URL the identity client builds."""

        class CallbackBrowser(fake_browser_cls):  # type: ignore[misc,valid-type]
            async def new_tab(self):
                tab = await super().new_tab()
                original = tab.navigate

                async def navigate(url: str) -> None:
                    await original(url)
                    if "/authorize" in url:
                        tab._chain = [f"{CALLBACK}#access_token=live"]

                tab.navigate = navigate  # type: ignore[method-assign]
                return tab

        browser = CallbackBrowser()
        token = asyncio.run(_flow(browser, IdentityClient(provider_config)).run(is_signup=True))

        assert token == "live"
        authorize_url = browser.tabs[1].navigations[0]
        params = parse_qs(urlsplit(authorize_url).query)
        assert params["flow_type"] == ["signup"]
        assert params["redirect_to"] == [CALLBACK]


class TestProviderSession:
    def test_logged_in_detected(self, fake_browser_cls, identity, capsys) -> None:
        browser = _redirecting_browser(
            fake_browser_cls,
            f"{CALLBACK}#access_token=t",
            elements={GITHUB_URL: {GITHUB_SESSION_SELECTOR}},
        )
        flow = _flow(browser, identity)
        asyncio.run(flow.run(is_signup=False))

        assert flow.provider_session_active is True
        assert "already logged in" in capsys.readouterr().err

    def test_not_logged_in(self, fake_browser_cls, identity, capsys) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        flow = _flow(browser, identity)
        asyncio.run(flow.run(is_signup=False))

        assert flow.provider_session_active is False
        assert "GitHub login required" in capsys.readouterr().err

    def test_check_closes_its_tab(self, fake_browser_cls, identity) -> None:
        browser = fake_browser_cls()
        flow = _flow(browser, identity)

        async def check() -> bool:
            async with browser:
                return await flow.check_provider_session()

        assert asyncio.run(check()) is False
        assert browser.tabs[0].closed


class TestTimeout:
    def test_never_matching_url_times_out(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, "https://github.com/login")
        flow = _flow(browser, identity, timeout=0.2, poll_interval=0.05)

        started = time.monotonic()
        with pytest.raises(BrowserError, match="Authentication timed out"):
            asyncio.run(flow.run(is_signup=False))
        elapsed = time.monotonic() - started

        assert elapsed < 0.2 + 0.05 + 0.5
        assert flow.state is FlowState.TIMED_OUT

    def test_timeout_closes_the_tab(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, "https://github.com/login")
        flow = _flow(browser, identity, timeout=0.1, poll_interval=0.02)

        with pytest.raises(BrowserError):
            asyncio.run(flow.run(is_signup=False))

        assert browser.open_tabs == 0
        assert all(tab.closed for tab in browser.tabs)
        assert browser.closed

    def test_polls_until_deadline(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, "https://github.com/login")
        flow = _flow(browser, identity, timeout=0.2, poll_interval=0.02)

        with pytest.raises(BrowserError):
            asyncio.run(flow.run(is_signup=False))

        assert browser.tabs[1].url_reads > 2

    def test_cancellation_closes_the_tab(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, "https://github.com/login")
        flow = _flow(browser, identity, timeout=30.0, poll_interval=0.5)

        async def cancel_soon() -> None:
            task = asyncio.ensure_future(flow.run(is_signup=False))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        started = time.monotonic()
        asyncio.run(cancel_soon())

        assert time.monotonic() - started < 0.5
        assert flow.state is FlowState.FAILED
        assert browser.open_tabs == 0


class TestFailures:
    def test_browser_launch_failure(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = fake_browser_cls(fail_open=True)
        flow = _flow(browser, identity)

        with pytest.raises(BrowserError, match="Failed to launch"):
            asyncio.run(flow.run(is_signup=False))
        assert flow.state is FlowState.FAILED
        assert flow.history == [FlowState.INIT, FlowState.CHECKING_SESSION, FlowState.FAILED]

    def test_provider_navigation_failure_fails_flow(
        self, fake_browser_cls, identity, quiet_output
    ) -> None:
        browser = fake_browser_cls(failing_urls=(GITHUB_URL,))
        flow = _flow(browser, identity)

        with pytest.raises(BrowserError, match="Navigation"):
            asyncio.run(flow.run(is_signup=False))

        assert flow.history[-2:] == [FlowState.CHECKING_SESSION, FlowState.FAILED]
        assert browser.open_tabs == 0
        assert identity.signup_flags == []

    def test_authorization_navigation_failure(
        self, fake_browser_cls, identity, quiet_output
    ) -> None:
        browser = fake_browser_cls(failing_urls=(ScriptedIdentity.AUTH_URL,))
        flow = _flow(browser, identity)

        with pytest.raises(BrowserError):
            asyncio.run(flow.run(is_signup=False))
        assert flow.history[-2:] == [FlowState.AWAITING_REDIRECT, FlowState.FAILED]
        assert browser.open_tabs == 0

    def test_bad_base_url_fails_while_building(self, fake_browser_cls, quiet_output) -> None:
        identity = IdentityClient(ProviderConfig(supabase_url="not a url"))
        flow = _flow(fake_browser_cls(), identity)

        with pytest.raises(AuthError, match="Invalid Supabase URL"):
            asyncio.run(flow.run(is_signup=False))
        assert flow.history[-2:] == [FlowState.BUILDING_REQUEST, FlowState.FAILED]

    def test_callback_without_token(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(
            fake_browser_cls, f"{CALLBACK}?error=access_denied&error_description=denied"
        )
        flow = _flow(browser, identity)

        with pytest.raises(AuthError, match="Could not extract access token"):
            asyncio.run(flow.run(is_signup=False))
        assert flow.history[-2:] == [FlowState.EXTRACTING_TOKEN, FlowState.FAILED]

    def test_flow_cannot_be_reused(self, fake_browser_cls, identity, quiet_output) -> None:
        browser = _redirecting_browser(fake_browser_cls, f"{CALLBACK}#access_token=t")
        flow = _flow(browser, identity)
        asyncio.run(flow.run(is_signup=False))

        with pytest.raises(RuntimeError, match="cannot be reused"):
            asyncio.run(flow.run(is_signup=False))
