"""Content extraction and screenshots for the session page."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..http_client import HttpClientError
from .base import ensure_str, envelope, translate_errors
from .options import ScreenshotOptions

if TYPE_CHECKING:
    from ..controller import ChromeController

logger = logging.getLogger("mcp.chrome.tools")


def take_screenshot(controller: ChromeController, options: dict[str, Any] | None = None) -> dict[str, Any]:
    """Capture the page as a base64 data URL (full-page PNG by default)."""
    page = controller.require_page()
    opts = ScreenshotOptions.from_mapping(options)

    with translate_errors("Screenshot"):
        data = page.screenshot(opts.type, quality=opts.quality, full_page=opts.full_page)

    logger.info("screenshot captured type=%s full_page=%s bytes_b64=%d", opts.type, opts.full_page, len(data))
    return envelope("Screenshot captured", screenshot=f"data:{opts.mime_type};base64,{data}")


def get_content(controller: ChromeController, selector: str | None = None) -> dict[str, Any]:
    """Return the first match's text (markup when its text is empty), or the whole document."""
    page = controller.require_page()
    # An empty selector means the whole document.
    if selector is not None and selector != "":
        selector = ensure_str("selector", selector)

    with translate_errors("Get content"):
        if selector:
            content = page.element_text(selector)
            if content is None:
                raise HttpClientError(f'failed to find element matching selector "{selector}"')
        else:
            content = page.content()
        url = page.url()
        title = page.title()

    return envelope("Page content retrieved", content=content, url=url, title=title)
