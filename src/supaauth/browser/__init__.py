"""Browser automation layer.

The OAuth flow depends only on the abstract capability defined in
:mod:`supaauth.browser.base`:

- :class:`BrowserSession` -- owns one browser process and opens tabs.
- :class:`BrowserTab` -- navigate, read the current URL, probe for an
  element, close.

:class:`PlaywrightSession` is the production implementation.
"""

from supaauth.browser.base import BrowserSession, BrowserTab
from supaauth.browser.playwright_driver import BROWSER_TYPES, PlaywrightSession, PlaywrightTab

__all__ = [
    "BROWSER_TYPES",
    "BrowserSession",
    "BrowserTab",
    "PlaywrightSession",
    "PlaywrightTab",
]
