"""
Navigation tools.

Provides:
- navigate_to: Navigate the session page to a URL
- search: Run a Bing search and wait for the results container
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from ..cancellation import NEVER_CANCELLED, CancelToken
from .base import ensure_str, envelope, translate_errors
from .options import NavigateOptions

if TYPE_CHECKING:
    from ..controller import ChromeController

logger = logging.getLogger("mcp.chrome.tools")

SEARCH_URL = "https://www.bing.com"
SEARCH_INPUT_SELECTOR = "#sb_form_q"
SEARCH_RESULTS_SELECTOR = "#b_results"
SEARCH_INPUT_TIMEOUT = 10.0
SEARCH_RESULTS_TIMEOUT = 15.0


def navigate_to(
    controller: ChromeController,
    url: str,
    options: dict[str, Any] | None = None,
    cancel: CancelToken = NEVER_CANCELLED,
) -> dict[str, Any]:
    """Navigate to `url`, initializing the browser first if needed.

    Returns:
        Envelope with the final url and the page title
    """
    url = ensure_str("url", url)
    opts = NavigateOptions.from_mapping(options)
    controller.ensure_session()

    with translate_errors("Navigation"):
        page = controller.require_page()
        page.goto(url, wait_until=opts.wait_until, timeout=opts.timeout_ms / 1000.0, cancel=cancel)
        final_url = page.url()
        title = page.title()

    logger.info("navigated to %s", url)
    return envelope(f"Navigated to {url}", url=final_url, title=title)


def search(
    controller: ChromeController,
    query: str,
    cancel: CancelToken = NEVER_CANCELLED,
) -> dict[str, Any]:
    """Search Bing for `query` and wait until the results container is present."""
    query = ensure_str("query", query)
    controller.ensure_session()

    with translate_errors("Search"):
        page = controller.require_page()
        page.goto(SEARCH_URL, wait_until="networkidle2", timeout=30.0, cancel=cancel)
        page.wait_for_selector(SEARCH_INPUT_SELECTOR, timeout=SEARCH_INPUT_TIMEOUT, cancel=cancel)

        page.click(SEARCH_INPUT_SELECTOR, cancel=cancel)
        page.eval_js(
            f"(() => {{ const box = document.querySelector({json.dumps(SEARCH_INPUT_SELECTOR)});"
            " if (box) box.value = ''; })()"
        )
        page.type(SEARCH_INPUT_SELECTOR, query, cancel=cancel)
        page.press_key("Enter")

        page.wait_for_selector(SEARCH_RESULTS_SELECTOR, timeout=SEARCH_RESULTS_TIMEOUT, cancel=cancel)
        url = page.url()
        title = page.title()

    logger.info("searched bing query_len=%d", len(query))
    return envelope(f'Searched Bing for "{query}"; results loaded', query=query, url=url, title=title)
