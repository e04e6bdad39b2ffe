"""Waiting for elements to appear on the session page."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..cancellation import NEVER_CANCELLED, CancelToken
from .base import ensure_str, envelope, translate_errors
from .options import WaitOptions

if TYPE_CHECKING:
    from ..controller import ChromeController

logger = logging.getLogger("mcp.chrome.tools")


def wait_for_element(
    controller: ChromeController,
    selector: str,
    timeout: int | None = 10000,
    cancel: CancelToken = NEVER_CANCELLED,
) -> dict[str, Any]:
    """Block this call until `selector` matches, failing once `timeout` ms elapse.

    Only the calling request waits; other tool calls keep being served.
    """
    page = controller.require_page()
    selector = ensure_str("selector", selector)
    opts = WaitOptions.from_mapping({"timeout": timeout})

    with translate_errors("Wait for element"):
        page.wait_for_selector(selector, timeout=opts.timeout_ms / 1000.0, cancel=cancel)

    logger.info("element appeared %s", selector)
    return envelope(f"Element appeared: {selector}", selector=selector)
