"""
High-level page operations on top of a CDP connection.

PageSession is the page handle: navigation with lifecycle waits, selector
polling, mouse/keyboard input, content extraction and screenshots.
"""

from __future__ import annotations

import json
import math
from typing import Any

from .cancellation import NEVER_CANCELLED, CancelToken, Deadline
from .cdp import CdpConnection
from .http_client import HttpClientError, WaitTimeoutError

# waitUntil option -> Page.lifecycleEvent name
LIFECYCLE_EVENTS: dict[str, str] = {
    "load": "load",
    "domcontentloaded": "DOMContentLoaded",
    "networkidle0": "networkIdle",
    "networkidle2": "networkAlmostIdle",
}

_KEY_CODES: dict[str, int] = {
    "Enter": 13,
    "Tab": 9,
    "Escape": 27,
    "Backspace": 8,
    "Delete": 46,
    "ArrowUp": 38,
    "ArrowDown": 40,
    "ArrowLeft": 37,
    "ArrowRight": 39,
}

_KEY_TEXT: dict[str, str] = {"Enter": "\r", "Tab": "\t"}

_SELECTOR_POLL_INTERVAL = 0.1

# Runtime.evaluate errors Chrome reports while the page is swapping documents.
_TRANSIENT_CONTEXT_ERRORS = (
    "Execution context was destroyed",
    "Cannot find default execution context",
    "Cannot find context with specified id",
    "Inspected target navigated or closed",
)

_CONTENT_JS = """
(() => {
    let html = '';
    if (document.doctype) html = new XMLSerializer().serializeToString(document.doctype);
    if (document.documentElement) html += document.documentElement.outerHTML;
    return html;
})()
"""


def _deadline(timeout: float) -> Deadline:
    # A zero timeout waits indefinitely.
    return Deadline(timeout if timeout > 0 else math.inf)


class PageSession:
    """Page handle bound to one CDP page target."""

    def __init__(self, connection: CdpConnection, target_id: str):
        self.conn = connection
        self.target_id = target_id
        self.frame_id = target_id

    def setup(self, viewport: tuple[int, int] | None, user_agent: str | None) -> None:
        """Enable domains, lifecycle events, viewport and user agent."""
        self.conn.send("Page.enable")
        self.conn.send("Runtime.enable")
        self.conn.send("Page.setLifecycleEventsEnabled", {"enabled": True})
        tree = self.conn.send("Page.getFrameTree")
        frame = (tree.get("frameTree") or {}).get("frame") or {}
        self.frame_id = frame.get("id") or self.target_id
        if viewport is not None:
            width, height = viewport
            self.conn.send(
                "Emulation.setDeviceMetricsOverride",
                {"width": width, "height": height, "deviceScaleFactor": 1, "mobile": False},
            )
        if user_agent:
            self.set_user_agent(user_agent)

    def set_user_agent(self, user_agent: str) -> None:
        self.conn.send("Network.setUserAgentOverride", {"userAgent": user_agent})

    def close(self) -> None:
        self.conn.close()

    # ─────────────────────────────────────────────────────────────────────────
    # JavaScript
    # ─────────────────────────────────────────────────────────────────────────

    def eval_js(self, expression: str) -> Any:
        """Evaluate JavaScript in the page and return its JSON value."""
        result = self.conn.send(
            "Runtime.evaluate",
            {"expression": expression, "returnByValue": True, "awaitPromise": True},
        )
        details = result.get("exceptionDetails")
        if details:
            exception = details.get("exception") or {}
            text = exception.get("description") or details.get("text") or "JavaScript exception"
            raise HttpClientError(f"Evaluation failed: {text}")
        value = result.get("result")
        if not isinstance(value, dict):
            return None
        # Map undefined/null to None instead of the raw RemoteObject.
        if value.get("type") == "undefined" or value.get("subtype") == "null":
            return None
        return value.get("value")

    def url(self) -> str:
        return self.eval_js("window.location.href") or ""

    def title(self) -> str:
        return self.eval_js("document.title") or ""

    # ─────────────────────────────────────────────────────────────────────────
    # Navigation & waiting
    # ─────────────────────────────────────────────────────────────────────────

    def goto(
        self,
        url: str,
        *,
        wait_until: str = "networkidle2",
        timeout: float = 30.0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> None:
        """Navigate the main frame and wait for the requested lifecycle event."""
        lifecycle = LIFECYCLE_EVENTS[wait_until]
        self.conn.discard_events("Page.lifecycleEvent")

        result = self.conn.send("Page.navigate", {"url": url})
        error_text = result.get("errorText")
        if error_text:
            raise HttpClientError(f"{error_text} at {url}")
        loader_id = result.get("loaderId")
        if not loader_id:
            # Same-document navigation (fragment change): nothing to wait for.
            return

        deadline = _deadline(timeout)
        while True:
            cancel.raise_if_cancelled()
            if deadline.expired():
                raise WaitTimeoutError(f"Navigation timeout of {int(timeout * 1000)} ms exceeded")
            event = self.conn.wait_for_event(
                "Page.lifecycleEvent", timeout=min(0.5, deadline.remaining()), cancel=cancel
            )
            if (
                event is not None
                and event.get("name") == lifecycle
                and event.get("loaderId") == loader_id
                and event.get("frameId") == self.frame_id
            ):
                return

    def query_exists(self, selector: str) -> bool:
        return bool(self.eval_js(f"document.querySelector({json.dumps(selector)}) !== null"))

    def wait_for_selector(
        self,
        selector: str,
        *,
        timeout: float = 10.0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> None:
        """Poll until `selector` matches an element or the timeout elapses.

        Polling survives a navigation in flight: evaluate errors caused by the
        old document going away count as "not there yet".
        """
        deadline = _deadline(timeout)
        while True:
            cancel.raise_if_cancelled()
            try:
                if self.query_exists(selector):
                    return
            except HttpClientError as exc:
                if not any(marker in str(exc) for marker in _TRANSIENT_CONTEXT_ERRORS):
                    raise
            if deadline.expired():
                raise WaitTimeoutError(
                    f"Waiting for selector `{selector}` failed: {int(timeout * 1000)} ms exceeded"
                )
            cancel.sleep(min(_SELECTOR_POLL_INTERVAL, deadline.remaining()))

    # ─────────────────────────────────────────────────────────────────────────
    # Input
    # ─────────────────────────────────────────────────────────────────────────

    def _element_center(self, selector: str) -> tuple[float, float]:
        js = f"""
        (() => {{
            const el = document.querySelector({json.dumps(selector)});
            if (!el) return null;
            el.scrollIntoView({{block: 'center', inline: 'center'}});
            const r = el.getBoundingClientRect();
            return {{x: r.left + r.width / 2, y: r.top + r.height / 2}};
        }})()
        """
        point = self.eval_js(js)
        if not isinstance(point, dict):
            raise HttpClientError(f"No element found for selector: {selector}")
        return float(point.get("x", 0)), float(point.get("y", 0))

    def click(
        self,
        selector: str,
        *,
        button: str = "left",
        click_count: int = 1,
        delay_ms: int = 0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> None:
        """Click the centre of the first element matching `selector`."""
        x, y = self._element_center(selector)
        self.conn.send("Input.dispatchMouseEvent", {"type": "mouseMoved", "x": x, "y": y})
        for count in range(1, click_count + 1):
            params = {"x": x, "y": y, "button": button, "clickCount": count}
            self.conn.send("Input.dispatchMouseEvent", {"type": "mousePressed", **params})
            if delay_ms:
                cancel.sleep(delay_ms / 1000.0)
            self.conn.send("Input.dispatchMouseEvent", {"type": "mouseReleased", **params})

    def focus(self, selector: str) -> None:
        js = f"""
        (() => {{
            const el = document.querySelector({json.dumps(selector)});
            if (!el) return false;
            el.focus();
            return true;
        }})()
        """
        if not self.eval_js(js):
            raise HttpClientError(f"No element found for selector: {selector}")

    def type(
        self,
        selector: str,
        text: str,
        *,
        delay_ms: int = 0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> None:
        """Focus `selector` and type `text` one character at a time."""
        self.focus(selector)
        for i, char in enumerate(text):
            if i and delay_ms:
                cancel.sleep(delay_ms / 1000.0)
            else:
                cancel.raise_if_cancelled()
            if char in "\r\n":
                self.press_key("Enter")
            else:
                self.conn.send("Input.insertText", {"text": char})

    def press_key(self, key: str) -> None:
        """Press and release a keyboard key."""
        key_code = _KEY_CODES.get(key, ord(key[0].upper()) if len(key) == 1 else 0)
        params: dict[str, Any] = {
            "key": key,
            "code": f"Key{key.upper()}" if len(key) == 1 else key,
            "windowsVirtualKeyCode": key_code,
        }
        text = _KEY_TEXT.get(key, key if len(key) == 1 else "")
        down: dict[str, Any] = {"type": "keyDown" if text else "rawKeyDown", **params}
        if text:
            down["text"] = text
        self.conn.send("Input.dispatchKeyEvent", down)
        self.conn.send("Input.dispatchKeyEvent", {"type": "keyUp", **params})

    # ─────────────────────────────────────────────────────────────────────────
    # Content & screenshots
    # ─────────────────────────────────────────────────────────────────────────

    def content(self) -> str:
        """Full serialized document, doctype included."""
        return self.eval_js(_CONTENT_JS) or ""

    def element_text(self, selector: str) -> str | None:
        """Text of the first match, falling back to its markup; None when nothing matches."""
        js = f"""
        (() => {{
            const el = document.querySelector({json.dumps(selector)});
            if (!el) return null;
            return el.textContent || el.innerHTML;
        }})()
        """
        return self.eval_js(js)

    def screenshot(self, format: str = "png", *, quality: int | None = None, full_page: bool = True) -> str:
        """Capture the page, return base64 data."""
        params: dict[str, Any] = {"format": format, "fromSurface": True}
        if quality is not None and format != "png":
            params["quality"] = quality
        if full_page:
            metrics = self.conn.send("Page.getLayoutMetrics")
            size = metrics.get("cssContentSize") or metrics.get("contentSize") or {}
            width = math.ceil(float(size.get("width") or 0))
            height = math.ceil(float(size.get("height") or 0))
            if width and height:
                params["clip"] = {"x": 0, "y": 0, "width": width, "height": height, "scale": 1}
                params["captureBeyondViewport"] = True
        result = self.conn.send("Page.captureScreenshot", params)
        data = result.get("data")
        if not data:
            raise HttpClientError("Screenshot data is empty")
        return data


__all__ = ["LIFECYCLE_EVENTS", "PageSession"]
