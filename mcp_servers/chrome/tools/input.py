"""
Input operations for browser automation.

Provides:
- click_element: Wait for a selector and click it
- type_text: Wait for a selector and type into it (optionally replacing its value)
- scroll_page: Relative or absolute window scrolling
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..cancellation import NEVER_CANCELLED, CancelToken
from .base import ensure_str, envelope, translate_errors
from .options import ClickOptions, ScrollOptions, TypeOptions

if TYPE_CHECKING:
    from ..controller import ChromeController

logger = logging.getLogger("mcp.chrome.tools")

ELEMENT_TIMEOUT = 10.0


def click_element(
    controller: ChromeController,
    selector: str,
    options: dict[str, Any] | None = None,
    cancel: CancelToken = NEVER_CANCELLED,
) -> dict[str, Any]:
    page = controller.require_page()
    selector = ensure_str("selector", selector)
    opts = ClickOptions.from_mapping(options)

    with translate_errors("Click"):
        page.wait_for_selector(selector, timeout=ELEMENT_TIMEOUT, cancel=cancel)
        page.click(selector, button=opts.button, click_count=opts.click_count, delay_ms=opts.delay_ms, cancel=cancel)

    logger.info("clicked %s", selector)
    return envelope(f"Clicked element: {selector}", selector=selector)


def type_text(
    controller: ChromeController,
    selector: str,
    text: str,
    options: dict[str, Any] | None = None,
    cancel: CancelToken = NEVER_CANCELLED,
) -> dict[str, Any]:
    """Type `text` into `selector`; with clear=True a triple-click selects the old value first."""
    page = controller.require_page()
    selector = ensure_str("selector", selector)
    text = ensure_str("text", text, allow_empty=True)
    opts = TypeOptions.from_mapping(options)

    with translate_errors("Type text"):
        page.wait_for_selector(selector, timeout=ELEMENT_TIMEOUT, cancel=cancel)
        if opts.clear:
            page.click(selector, click_count=3, cancel=cancel)
        page.type(selector, text, delay_ms=opts.delay_ms, cancel=cancel)

    logger.info("typed into %s text_len=%d", selector, len(text))
    return envelope(f"Typed text into: {selector}", selector=selector, text=text)


def scroll_script(direction: str, distance: int, smooth: bool) -> str:
    """Build the in-page scroll expression; returns the resulting scrollY."""
    behavior = ", behavior: 'smooth'" if smooth else ""
    if direction == "up":
        call = f"window.scrollBy({{top: {-distance}{behavior}}})"
    elif direction == "top":
        call = f"window.scrollTo({{top: 0{behavior}}})"
    elif direction == "bottom":
        call = f"window.scrollTo({{top: (document.body || document.documentElement).scrollHeight{behavior}}})"
    else:
        call = f"window.scrollBy({{top: {distance}{behavior}}})"
    return f"(() => {{ {call}; return window.scrollY; }})()"


def scroll_page(controller: ChromeController, options: dict[str, Any] | None = None) -> dict[str, Any]:
    page = controller.require_page()
    opts = ScrollOptions.from_mapping(options)

    with translate_errors("Scroll"):
        page.eval_js(scroll_script(opts.direction, opts.distance, opts.smooth))

    logger.info("scrolled direction=%s distance=%d", opts.direction, opts.distance)
    return envelope(f"Scrolled page: {opts.direction}", direction=opts.direction, distance=opts.distance)
