"""
Playwright implementation of the host page interfaces.

Opens the activity page in a persistent Chromium profile so the Google
login survives between runs. Uses the sync API: every call must happen on
the thread that called ``open()``, which AuditSession guarantees.
"""

from pathlib import Path
from typing import List, Optional

import structlog
from playwright.sync_api import ElementHandle, Page, sync_playwright

from ..config import settings


logger = structlog.get_logger(__name__)

_PARENT_JS = "el => el.parentElement"
_SET_ATTRIBUTE_JS = "(el, [name, value]) => el.setAttribute(name, value)"
_REMOVE_ATTRIBUTE_JS = "(el, name) => el.removeAttribute(name)"
_SCROLL_TO_END_JS = "() => window.scrollTo(0, document.documentElement.scrollHeight)"
# documentElement is more reliable than body on pages with nested scroll containers
_EXTENT_JS = "() => document.documentElement.scrollHeight"


class PlaywrightNode:
    """PageNode over a Playwright ElementHandle."""

    def __init__(self, handle: ElementHandle):
        self.handle = handle

    def parent(self) -> Optional["PlaywrightNode"]:
        element = self.handle.evaluate_handle(_PARENT_JS).as_element()
        return PlaywrightNode(element) if element is not None else None

    def get_attribute(self, name: str) -> Optional[str]:
        return self.handle.get_attribute(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.handle.evaluate(_SET_ATTRIBUTE_JS, [name, value])

    def remove_attribute(self, name: str) -> None:
        self.handle.evaluate(_REMOVE_ATTRIBUTE_JS, name)

    def inner_text(self) -> str:
        return self.handle.inner_text()

    def click(self) -> None:
        self.handle.click()


class PlaywrightHostPage:
    """
    HostPage over a Playwright Page.

    Args:
        page: An already navigated Playwright page
    """

    def __init__(self, page: Page, on_close=None):
        self.page = page
        self._on_close = on_close

    def query_all(self, selector: str) -> List[PlaywrightNode]:
        return [PlaywrightNode(handle) for handle in self.page.query_selector_all(selector)]

    def scroll_to_extent(self) -> None:
        self.page.evaluate(_SCROLL_TO_END_JS)

    def extent(self) -> int:
        return int(self.page.evaluate(_EXTENT_JS))

    def close(self) -> None:
        if self._on_close is not None:
            self._on_close()


def open_activity_page(
    url: Optional[str] = None,
    user_data_dir: Optional[str] = None,
    headless: Optional[bool] = None,
) -> PlaywrightHostPage:
    """
    Launch Chromium with a persistent profile and open the activity page.

    Args:
        url: Page to audit (default: settings.activity_page_url)
        user_data_dir: Browser profile directory
        headless: Run without a window (login needs a visible window once)

    Returns:
        PlaywrightHostPage; close() shuts the browser down
    """
    url = url or settings.activity_page_url
    profile = Path(user_data_dir or settings.browser_user_data_dir).expanduser()
    headless = settings.browser_headless if headless is None else headless
    profile.mkdir(parents=True, exist_ok=True)

    playwright = sync_playwright().start()
    context = None
    try:
        context = playwright.chromium.launch_persistent_context(str(profile), headless=headless)
        page = context.pages[0] if context.pages else context.new_page()

        logger.info("activity_page_opening", url=url, profile=str(profile), headless=headless)
        page.goto(url, wait_until="domcontentloaded", timeout=30000)
    except Exception as e:
        logger.error("activity_page_open_failed", url=url, error=str(e))
        if context is not None:
            context.close()
        playwright.stop()
        raise

    def _shutdown() -> None:
        context.close()
        playwright.stop()
        logger.info("browser_closed")

    return PlaywrightHostPage(page, on_close=_shutdown)
