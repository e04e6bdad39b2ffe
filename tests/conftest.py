"""Shared fakes: an in-memory page modelling a tiny DOM, and a browser factory."""

from __future__ import annotations

import math
import threading
import time
from typing import Any
from urllib.parse import quote_plus

import pytest

from mcp_servers.chrome.cancellation import NEVER_CANCELLED, CancelToken
from mcp_servers.chrome.config import ChromeConfig
from mcp_servers.chrome.controller import ChromeController
from mcp_servers.chrome.http_client import HttpClientError, WaitTimeoutError


class FakePage:
    def __init__(self, viewport: tuple[int, int] | None = None, user_agent: str | None = None) -> None:
        self.viewport = viewport
        self.user_agent = user_agent
        self.elements: dict[str, dict[str, Any]] = {}
        self.current_url = "about:blank"
        self.current_title = ""
        self.nav_error: Exception | None = None
        self.focused: str | None = None
        self.calls: list[tuple[str, Any]] = []
        self.waiting = threading.Event()
        self.closed = False

    def add(self, selector: str, *, text: str = "", html: str = "", value: str = "") -> None:
        self.elements[selector] = {"text": text, "html": html, "value": value}

    def goto(self, url: str, *, wait_until: str, timeout: float, cancel: CancelToken = NEVER_CANCELLED) -> None:
        self.calls.append(("goto", (url, wait_until, timeout)))
        if self.nav_error is not None:
            raise self.nav_error
        self.current_url = url
        self.current_title = f"Title of {url}"
        self.elements = {}
        if url == "https://www.bing.com":
            self.add("#sb_form_q", value="previous query")

    def url(self) -> str:
        return self.current_url

    def title(self) -> str:
        return self.current_title

    def wait_for_selector(self, selector: str, *, timeout: float, cancel: CancelToken = NEVER_CANCELLED) -> None:
        self.calls.append(("wait", (selector, timeout)))
        deadline = time.monotonic() + (timeout if timeout > 0 else math.inf)
        self.waiting.set()
        while selector not in self.elements:
            if time.monotonic() >= deadline:
                raise WaitTimeoutError(f"Waiting for selector `{selector}` failed: {int(timeout * 1000)} ms exceeded")
            cancel.sleep(0.01)

    def click(
        self,
        selector: str,
        *,
        button: str = "left",
        click_count: int = 1,
        delay_ms: int = 0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> None:
        self.calls.append(("click", (selector, button, click_count)))
        element = self.elements.get(selector)
        if element is None:
            raise HttpClientError(f"No element found for selector: {selector}")
        if click_count >= 3:
            element["selected"] = True
        self.focused = selector

    def type(self, selector: str, text: str, *, delay_ms: int = 0, cancel: CancelToken = NEVER_CANCELLED) -> None:
        self.calls.append(("type", (selector, text, delay_ms)))
        element = self.elements[selector]
        if element.pop("selected", False):
            element["value"] = ""
        element["value"] += text
        self.focused = selector

    def press_key(self, key: str) -> None:
        self.calls.append(("key", key))
        if key == "Enter" and self.focused == "#sb_form_q":
            query = self.elements["#sb_form_q"]["value"]
            self.current_url = f"https://www.bing.com/search?q={quote_plus(query)}"
            self.current_title = f"{query} - Search"
            self.add("#b_results", text="results")

    def eval_js(self, expression: str) -> Any:
        self.calls.append(("eval", expression))
        if "box.value = ''" in expression and "#sb_form_q" in self.elements:
            self.elements["#sb_form_q"]["value"] = ""
        return 0

    def content(self) -> str:
        return f"<!DOCTYPE html><html><head><title>{self.current_title}</title></head><body></body></html>"

    def element_text(self, selector: str) -> str | None:
        element = self.elements.get(selector)
        if element is None:
            return None
        return element["text"] or element["html"]

    def screenshot(self, format: str = "png", *, quality: int | None = None, full_page: bool = True) -> str:
        self.calls.append(("screenshot", (format, quality, full_page)))
        return "aGVsbG8="

    def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self) -> None:
        self.pages: list[FakePage] = []
        self.closed = False
        self.close_error: Exception | None = None
        self.page_error: Exception | None = None

    def new_page(self, viewport: tuple[int, int] | None, user_agent: str | None) -> FakePage:
        if self.page_error is not None:
            raise self.page_error
        page = FakePage(viewport, user_agent)
        self.pages.append(page)
        return page

    def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class FakeBrowserFactory:
    """Stands in for BrowserHandle.launch; records every launch."""

    def __init__(self) -> None:
        self.browsers: list[FakeBrowser] = []
        self.launches: list[Any] = []
        self.launch_error: Exception | None = None
        self.page_error: Exception | None = None

    def __call__(self, config: ChromeConfig, options: Any) -> FakeBrowser:
        self.launches.append(options)
        if self.launch_error is not None:
            raise self.launch_error
        browser = FakeBrowser()
        browser.page_error = self.page_error
        self.browsers.append(browser)
        return browser


@pytest.fixture
def chrome_config() -> ChromeConfig:
    return ChromeConfig(binary_path="/usr/bin/google-chrome")


@pytest.fixture
def browser_factory() -> FakeBrowserFactory:
    return FakeBrowserFactory()


@pytest.fixture
def controller(chrome_config: ChromeConfig, browser_factory: FakeBrowserFactory) -> ChromeController:
    return ChromeController(chrome_config, browser_factory=browser_factory)


@pytest.fixture
def page(controller: ChromeController) -> FakePage:
    """Controller with an initialized session; returns its page."""
    controller.initialize()
    assert isinstance(controller.page, FakePage)
    return controller.page
