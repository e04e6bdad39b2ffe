"""Browser handle: one launched Chrome process plus its browser-level CDP connection."""

from __future__ import annotations

import logging
from contextlib import suppress

from .cdp import CdpConnection
from .config import ChromeConfig
from .http_client import HttpClientError, http_get_json
from .launcher import ChromeLauncher
from .page import PageSession
from .tools.options import LaunchOptions

logger = logging.getLogger("mcp.chrome.browser")


class BrowserHandle:
    """Ownership token for one running browser process."""

    def __init__(self, launcher: ChromeLauncher, connection: CdpConnection, cdp_timeout: float = 30.0):
        self.launcher = launcher
        self.conn = connection
        self.cdp_timeout = cdp_timeout
        self.pages: list[PageSession] = []

    @classmethod
    def launch(cls, config: ChromeConfig, options: LaunchOptions) -> BrowserHandle:
        """Start Chrome and connect to its browser-level DevTools endpoint."""
        launcher = ChromeLauncher(config)
        result = launcher.launch(options)
        if not result.started:
            raise HttpClientError(f"Failed to launch browser ({options.executable_path}): {result.message}")
        try:
            version = http_get_json(f"http://127.0.0.1:{result.cdp_port}/json/version")
            ws_url = version.get("webSocketDebuggerUrl") if isinstance(version, dict) else None
            if not ws_url:
                raise HttpClientError("CDP browser WebSocket URL not found")
            conn = CdpConnection(ws_url, timeout=config.cdp_timeout)
        except HttpClientError:
            launcher.stop()
            raise
        return cls(launcher, conn, cdp_timeout=config.cdp_timeout)

    def _target_ws_url(self, target_id: str) -> str | None:
        targets = http_get_json(f"http://127.0.0.1:{self.launcher.cdp_port}/json/list") or []
        for target in targets:
            if isinstance(target, dict) and target.get("id") == target_id:
                return target.get("webSocketDebuggerUrl")
        return None

    def new_page(self, viewport: tuple[int, int] | None, user_agent: str | None) -> PageSession:
        """Open a new page target and return its handle."""
        result = self.conn.send("Target.createTarget", {"url": "about:blank"})
        target_id = result.get("targetId")
        if not target_id:
            raise HttpClientError("Failed to create browser page")
        ws_url = self._target_ws_url(target_id)
        if not ws_url:
            raise HttpClientError(f"Page target {target_id} has no WebSocket URL")
        page = PageSession(CdpConnection(ws_url, timeout=self.cdp_timeout), target_id)
        try:
            page.setup(viewport, user_agent)
        except HttpClientError:
            page.close()
            raise
        self.pages.append(page)
        return page

    def close(self) -> None:
        """Close pages, ask Chrome to exit, then reap the process."""
        for page in self.pages:
            page.close()
        self.pages.clear()
        try:
            self.conn.send("Browser.close")
        except HttpClientError as exc:
            # Chrome often drops the socket before answering Browser.close.
            logger.debug("Browser.close: %s", exc)
        finally:
            with suppress(Exception):
                self.conn.close()
            self.launcher.stop()


__all__ = ["BrowserHandle"]
