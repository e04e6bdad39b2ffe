from __future__ import annotations

import http.server
import os
import socketserver
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pytest

from mcp_servers.chrome.config import ChromeConfig
from mcp_servers.chrome.controller import ChromeController

pytestmark = pytest.mark.skipif(
    os.environ.get("RUN_BROWSER_INTEGRATION") != "1",
    reason="Requires real Chrome/Chromium. Set RUN_BROWSER_INTEGRATION=1 to enable.",
)

_PAGE = """<!DOCTYPE html>
<html>
<head><title>Smoke</title></head>
<body style="height: 4000px">
  <h1 id="greeting">Hello smoke</h1>
  <input id="name" value="prefilled">
  <button id="go" onclick="document.body.insertAdjacentHTML('beforeend', '<p id=done>clicked</p>')">Go</button>
</body>
</html>
"""


@contextmanager
def _serve(directory: Path) -> Iterator[str]:
    handler = lambda *args, **kwargs: http.server.SimpleHTTPRequestHandler(  # noqa: E731
        *args, directory=str(directory), **kwargs
    )
    with socketserver.TCPServer(("127.0.0.1", 0), handler) as httpd:
        thread = threading.Thread(target=httpd.serve_forever, daemon=True)
        thread.start()
        try:
            yield f"http://127.0.0.1:{httpd.server_address[1]}"
        finally:
            httpd.shutdown()


@pytest.fixture(scope="module")
def site(tmp_path_factory: pytest.TempPathFactory) -> Iterator[str]:
    root = tmp_path_factory.mktemp("site")
    (root / "index.html").write_text(_PAGE, encoding="utf-8")
    with _serve(root) as base:
        yield base


@pytest.fixture
def live_controller() -> Iterator[ChromeController]:
    config = ChromeConfig.from_env()
    config.headless = True
    ctrl = ChromeController(config)
    yield ctrl
    ctrl.close()


def test_navigate_read_type_click_scroll(live_controller: ChromeController, site: str) -> None:
    nav = live_controller.navigate_to(f"{site}/index.html", {"waitUntil": "load"})
    assert nav["title"] == "Smoke"

    assert live_controller.get_content("#greeting")["content"] == "Hello smoke"

    live_controller.type_text("#name", "typed", {"clear": True})
    assert live_controller.page.eval_js("document.querySelector('#name').value") == "typed"

    live_controller.click_element("#go")
    live_controller.wait_for_element("#done", timeout=5000)

    live_controller.scroll_page({"direction": "bottom", "smooth": False})
    assert live_controller.page.eval_js("window.scrollY") > 0
    live_controller.scroll_page({"direction": "top", "smooth": False, "distance": 999})
    assert live_controller.page.eval_js("window.scrollY") == 0

    shot = live_controller.take_screenshot({"fullPage": False})
    assert shot["screenshot"].startswith("data:image/png;base64,")
