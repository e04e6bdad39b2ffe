"""
Session manager for the single shared Chrome browser and page.

ChromeController is owned by the MCP server and passed explicitly to every
tool handler. It holds at most one BrowserHandle and one PageSession:
- page is set only while browser is set and the last initialize succeeded
- navigate/search lazily initialize; the other actions require a page
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from .browser import BrowserHandle
from .cancellation import NEVER_CANCELLED, CancelToken
from .config import ChromeConfig
from .page import PageSession
from .tools import content, navigation, wait
from .tools import input as input_tools
from .tools.base import ErrorCode, ToolError, envelope, not_initialized, translate_errors
from .tools.options import LaunchOptions

logger = logging.getLogger("mcp.chrome.controller")

BrowserFactory = Callable[[ChromeConfig, LaunchOptions], BrowserHandle]


class ChromeController:
    """Owns one browser handle and one page handle."""

    def __init__(self, config: ChromeConfig | None = None, browser_factory: BrowserFactory | None = None) -> None:
        self.config = config or ChromeConfig.from_env()
        self._browser_factory = browser_factory or BrowserHandle.launch
        self.browser: BrowserHandle | None = None
        self.page: PageSession | None = None
        self.initialized = False

    # ─────────────────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────────────────

    def initialize(self, options: dict[str, Any] | None = None) -> dict[str, Any]:
        """Close any existing browser, launch a fresh one and open a single page."""
        launch = LaunchOptions.for_config(self.config, options)

        with translate_errors("Browser initialization"):
            previous, self.browser, self.page, self.initialized = self.browser, None, None, False
            if previous is not None:
                previous.close()

            browser = self._browser_factory(self.config, launch)
            try:
                page = browser.new_page(launch.viewport, self.config.user_agent)
            except Exception:
                browser.close()
                raise
            self.browser, self.page, self.initialized = browser, page, True

        logger.info("chrome initialized headless=%s", launch.headless)
        return envelope("Chrome initialized")

    def ensure_session(self) -> None:
        if not self.initialized:
            self.initialize()

    def require_page(self) -> PageSession:
        if self.page is None:
            raise not_initialized()
        return self.page

    def close(self) -> dict[str, Any] | None:
        """Close the browser; returns None when there is nothing to close."""
        browser = self.browser
        if browser is None:
            return None

        self.browser, self.page, self.initialized = None, None, False
        try:
            browser.close()
        except Exception as exc:
            logger.error("Close browser failed: %s", exc)
            raise ToolError(ErrorCode.INTERNAL_ERROR, f"Close browser failed: {exc}") from exc

        logger.info("chrome closed")
        return envelope("Browser closed")

    # ─────────────────────────────────────────────────────────────────────────
    # Actions
    # ─────────────────────────────────────────────────────────────────────────

    def navigate_to(
        self, url: str, options: dict[str, Any] | None = None, cancel: CancelToken = NEVER_CANCELLED
    ) -> dict[str, Any]:
        return navigation.navigate_to(self, url, options, cancel)

    def search(self, query: str, cancel: CancelToken = NEVER_CANCELLED) -> dict[str, Any]:
        return navigation.search(self, query, cancel)

    def take_screenshot(self, options: dict[str, Any] | None = None) -> dict[str, Any]:
        return content.take_screenshot(self, options)

    def get_content(self, selector: str | None = None) -> dict[str, Any]:
        return content.get_content(self, selector)

    def click_element(
        self, selector: str, options: dict[str, Any] | None = None, cancel: CancelToken = NEVER_CANCELLED
    ) -> dict[str, Any]:
        return input_tools.click_element(self, selector, options, cancel)

    def type_text(
        self,
        selector: str,
        text: str,
        options: dict[str, Any] | None = None,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> dict[str, Any]:
        return input_tools.type_text(self, selector, text, options, cancel)

    def wait_for_element(
        self, selector: str, timeout: int | None = 10000, cancel: CancelToken = NEVER_CANCELLED
    ) -> dict[str, Any]:
        return wait.wait_for_element(self, selector, timeout, cancel)

    def scroll_page(self, options: dict[str, Any] | None = None) -> dict[str, Any]:
        return input_tools.scroll_page(self, options)


__all__ = ["BrowserFactory", "ChromeController"]
