"""
Tests for the session manager (ChromeController) and the tool operations.

Tests cover:
- Session lifecycle (initialize, lazy init, close)
- Page-requiring operations without a session
- Navigation, search, content, input, scroll, wait
"""

from __future__ import annotations

import pytest

from mcp_servers.chrome.controller import ChromeController
from mcp_servers.chrome.http_client import HttpClientError
from mcp_servers.chrome.tools.base import ErrorCode, ToolError
from mcp_servers.chrome.tools.input import scroll_script
from mcp_servers.chrome.tools.options import DEFAULT_LAUNCH_ARGS

# ═══════════════════════════════════════════════════════════════════════════════
# LIFECYCLE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_initialize_uses_default_launch_options(controller: ChromeController, browser_factory) -> None:
    result = controller.initialize()

    assert result == {"success": True, "message": "Chrome initialized"}
    assert controller.initialized
    options = browser_factory.launches[0]
    assert options.headless is False
    assert options.viewport == (1920, 1080)
    assert options.args == DEFAULT_LAUNCH_ARGS
    assert options.executable_path == "/usr/bin/google-chrome"
    page = controller.page
    assert page.viewport == (1920, 1080)
    assert "Chrome/120" in page.user_agent


def test_initialize_twice_closes_first_browser(controller: ChromeController, browser_factory) -> None:
    controller.initialize()
    controller.initialize({"headless": True})

    first, second = browser_factory.browsers
    assert first.closed
    assert not second.closed
    assert controller.browser is second
    assert browser_factory.launches[1].headless is True


def test_initialize_rejects_unknown_launch_option(controller: ChromeController, browser_factory) -> None:
    with pytest.raises(ToolError) as excinfo:
        controller.initialize({"devtools": True})
    assert excinfo.value.code == ErrorCode.INVALID_PARAMS
    assert "devtools" in excinfo.value.message
    assert browser_factory.launches == []


def test_initialize_failure_reports_and_leaves_no_session(controller: ChromeController, browser_factory) -> None:
    browser_factory.launch_error = HttpClientError("Failed to launch browser (/nope): not found")

    with pytest.raises(ToolError) as excinfo:
        controller.initialize()

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message == "Browser initialization failed: Failed to launch browser (/nope): not found"
    assert controller.browser is None
    assert controller.page is None
    assert not controller.initialized


def test_initialize_closes_browser_when_page_creation_fails(controller: ChromeController, browser_factory) -> None:
    browser_factory.page_error = HttpClientError("Target.createTarget: boom")

    with pytest.raises(ToolError):
        controller.initialize()

    assert browser_factory.browsers[0].closed
    assert controller.browser is None


def test_close_without_browser_returns_none(controller: ChromeController) -> None:
    assert controller.close() is None


def test_close_clears_state(controller: ChromeController, browser_factory) -> None:
    controller.initialize()
    result = controller.close()

    assert result == {"success": True, "message": "Browser closed"}
    assert browser_factory.browsers[0].closed
    assert controller.browser is None
    assert controller.page is None
    assert not controller.initialized


def test_close_failure_still_clears_state(controller: ChromeController, browser_factory) -> None:
    controller.initialize()
    browser_factory.browsers[0].close_error = HttpClientError("socket gone")

    with pytest.raises(ToolError) as excinfo:
        controller.close()

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message == "Close browser failed: socket gone"
    assert controller.browser is None
    assert not controller.initialized


# ═══════════════════════════════════════════════════════════════════════════════
# NO-SESSION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "call",
    [
        lambda c: c.take_screenshot(),
        lambda c: c.get_content(),
        lambda c: c.click_element("#go"),
        lambda c: c.type_text("#q", "hello"),
        lambda c: c.wait_for_element("#q"),
        lambda c: c.scroll_page(),
    ],
)
def test_page_operations_require_session(controller: ChromeController, browser_factory, call) -> None:
    with pytest.raises(ToolError) as excinfo:
        call(controller)
    assert excinfo.value.code == ErrorCode.INVALID_REQUEST
    assert excinfo.value.message == "Browser not initialized"
    assert browser_factory.launches == []


# ═══════════════════════════════════════════════════════════════════════════════
# NAVIGATION TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_navigate_lazily_initializes(controller: ChromeController, browser_factory) -> None:
    result = controller.navigate_to("https://example.com")

    assert len(browser_factory.browsers) == 1
    assert result == {
        "success": True,
        "url": "https://example.com",
        "title": "Title of https://example.com",
        "message": "Navigated to https://example.com",
    }
    assert controller.page.calls[0] == ("goto", ("https://example.com", "networkidle2", 30.0))


def test_navigate_passes_wait_until(controller: ChromeController) -> None:
    controller.navigate_to("https://example.com", {"waitUntil": "domcontentloaded", "timeout": 5000})
    assert controller.page.calls[0] == ("goto", ("https://example.com", "domcontentloaded", 5.0))


def test_navigate_rejects_unknown_wait_until(controller: ChromeController) -> None:
    with pytest.raises(ToolError) as excinfo:
        controller.navigate_to("https://example.com", {"waitUntil": "idle"})
    assert excinfo.value.code == ErrorCode.INVALID_PARAMS


def test_navigate_failure_is_internal_error(controller: ChromeController, page) -> None:
    page.nav_error = HttpClientError("net::ERR_CONNECTION_REFUSED at http://localhost:1")

    with pytest.raises(ToolError) as excinfo:
        controller.navigate_to("http://localhost:1")

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message == "Navigation failed: net::ERR_CONNECTION_REFUSED at http://localhost:1"
    assert isinstance(excinfo.value.__cause__, HttpClientError)


def test_close_then_navigate_starts_fresh_session(controller: ChromeController, browser_factory) -> None:
    controller.navigate_to("https://example.com")
    controller.close()
    controller.navigate_to("https://example.org")

    assert len(browser_factory.browsers) == 2
    assert browser_factory.browsers[0].closed
    assert controller.browser is browser_factory.browsers[1]
    assert controller.page.url() == "https://example.org"


def test_search_types_query_and_waits_for_results(controller: ChromeController) -> None:
    result = controller.search("python mcp")

    assert result["success"] is True
    assert result["query"] == "python mcp"
    assert result["url"] == "https://www.bing.com/search?q=python+mcp"
    assert result["title"] == "python mcp - Search"
    assert result["message"] == 'Searched Bing for "python mcp"; results loaded'
    page = controller.page
    assert page.elements["#sb_form_q"]["value"] == "python mcp"
    assert ("wait", ("#b_results", 15.0)) in page.calls
    assert ("key", "Enter") in page.calls


def test_search_network_failure_is_internal_error(controller: ChromeController, page) -> None:
    page.nav_error = HttpClientError("net::ERR_NAME_NOT_RESOLVED at https://www.bing.com")

    with pytest.raises(ToolError) as excinfo:
        controller.search("anything")

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message == "Search failed: net::ERR_NAME_NOT_RESOLVED at https://www.bing.com"


# ═══════════════════════════════════════════════════════════════════════════════
# CONTENT TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_screenshot_returns_png_data_url(controller: ChromeController, page) -> None:
    result = controller.take_screenshot()

    assert result == {
        "success": True,
        "screenshot": "data:image/png;base64,aGVsbG8=",
        "message": "Screenshot captured",
    }
    assert page.calls[-1] == ("screenshot", ("png", 90, True))


def test_screenshot_jpeg_uses_matching_mime_type(controller: ChromeController, page) -> None:
    result = controller.take_screenshot({"type": "jpeg", "quality": 40, "fullPage": False})

    assert result["screenshot"].startswith("data:image/jpeg;base64,")
    assert page.calls[-1] == ("screenshot", ("jpeg", 40, False))


def test_get_content_full_document(controller: ChromeController, page) -> None:
    controller.navigate_to("https://example.com")
    result = controller.get_content()

    assert result["content"].startswith("<!DOCTYPE html>")
    assert result["url"] == "https://example.com"
    assert result["message"] == "Page content retrieved"


def test_get_content_empty_selector_returns_full_document(controller: ChromeController, page) -> None:
    controller.navigate_to("https://example.com")
    assert controller.get_content("")["content"] == controller.get_content()["content"]


def test_get_content_falls_back_to_markup(controller: ChromeController, page) -> None:
    page.add("#empty", text="", html="<img src='x.png'>")
    page.add("#greeting", text="Hello")

    assert controller.get_content("#greeting")["content"] == "Hello"
    assert controller.get_content("#empty")["content"] == "<img src='x.png'>"


def test_get_content_missing_selector_is_internal_error(controller: ChromeController, page) -> None:
    with pytest.raises(ToolError) as excinfo:
        controller.get_content("#missing")

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message.startswith("Get content failed: ")
    assert "#missing" in excinfo.value.message


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_click_waits_then_clicks(controller: ChromeController, page) -> None:
    page.add("#go")
    result = controller.click_element("#go", {"button": "right"})

    assert result == {"success": True, "selector": "#go", "message": "Clicked element: #go"}
    assert page.calls[-2] == ("wait", ("#go", 10.0))
    assert page.calls[-1] == ("click", ("#go", "right", 1))


def test_click_rejects_unknown_option(controller: ChromeController, page) -> None:
    page.add("#go")
    with pytest.raises(ToolError) as excinfo:
        controller.click_element("#go", {"force": True})
    assert excinfo.value.code == ErrorCode.INVALID_PARAMS


def test_type_with_clear_replaces_value(controller: ChromeController, page) -> None:
    page.add("#q", value="old text")
    result = controller.type_text("#q", "new", {"clear": True})

    assert page.elements["#q"]["value"] == "new"
    assert result == {"success": True, "selector": "#q", "text": "new", "message": "Typed text into: #q"}
    assert ("click", ("#q", "left", 3)) in page.calls


def test_type_without_clear_appends(controller: ChromeController, page) -> None:
    page.add("#q", value="old ")
    controller.type_text("#q", "text")

    assert page.elements["#q"]["value"] == "old text"
    assert page.calls[-1] == ("type", ("#q", "text", 50))


def test_type_missing_element_times_out(controller: ChromeController, page, monkeypatch: pytest.MonkeyPatch) -> None:
    from mcp_servers.chrome.tools import input as input_tools

    monkeypatch.setattr(input_tools, "ELEMENT_TIMEOUT", 0.05)
    with pytest.raises(ToolError) as excinfo:
        controller.type_text("#nope", "x")

    assert excinfo.value.code == ErrorCode.INTERNAL_ERROR
    assert excinfo.value.message == "Type text failed: Waiting for selector `#nope` failed: 50 ms exceeded"


def test_type_rejects_non_string_text(controller: ChromeController, page) -> None:
    page.add("#q")
    with pytest.raises(ToolError) as excinfo:
        controller.type_text("#q", 42)  # type: ignore[arg-type]
    assert excinfo.value.code == ErrorCode.INVALID_PARAMS


def test_wait_for_element_success_and_timeout(controller: ChromeController, page) -> None:
    page.add("#ready")
    assert controller.wait_for_element("#ready") == {
        "success": True,
        "selector": "#ready",
        "message": "Element appeared: #ready",
    }

    with pytest.raises(ToolError) as excinfo:
        controller.wait_for_element("#never", timeout=30)
    assert excinfo.value.message == "Wait for element failed: Waiting for selector `#never` failed: 30 ms exceeded"


# ═══════════════════════════════════════════════════════════════════════════════
# SCROLL TESTS
# ═══════════════════════════════════════════════════════════════════════════════


def test_scroll_defaults(controller: ChromeController, page) -> None:
    result = controller.scroll_page()

    assert result == {"success": True, "direction": "down", "distance": 500, "message": "Scrolled page: down"}
    assert "window.scrollBy({top: 500, behavior: 'smooth'})" in page.calls[-1][1]


def test_scroll_top_ignores_distance() -> None:
    script = scroll_script("top", 1234, smooth=False)
    assert "window.scrollTo({top: 0})" in script
    assert "1234" not in script


def test_scroll_bottom_targets_document_height() -> None:
    script = scroll_script("bottom", 10, smooth=True)
    assert "scrollTo({top: (document.body || document.documentElement).scrollHeight, behavior: 'smooth'})" in script


def test_scroll_up_is_negative() -> None:
    assert "window.scrollBy({top: -300})" in scroll_script("up", 300, smooth=False)


def test_scroll_rejects_bad_direction(controller: ChromeController, page) -> None:
    with pytest.raises(ToolError) as excinfo:
        controller.scroll_page({"direction": "sideways"})
    assert excinfo.value.code == ErrorCode.INVALID_PARAMS
