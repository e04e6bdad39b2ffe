from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_BINARY_CANDIDATES: list[str] = [
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/opt/google/chrome/chrome",
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/local/bin/chromium",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    "/Applications/Chromium.app/Contents/MacOS/Chromium",
    "C:\\Program Files\\Google\\Chrome\\Application\\chrome.exe",
    "C:\\Program Files (x86)\\Google\\Chrome\\Application\\chrome.exe",
    # Snap builds ignore --user-data-dir outside $HOME; keep them last.
    "/snap/bin/chromium",
]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def expand_path(raw: str) -> str:
    return str(Path(raw).expanduser())


def _env_float(name: str, fallback: float) -> float:
    try:
        return float(os.environ.get(name) or fallback)
    except ValueError:
        return fallback


def _env_int(name: str, fallback: int) -> int:
    try:
        return int(os.environ.get(name) or fallback)
    except ValueError:
        return fallback


@dataclass
class ChromeConfig:
    binary_path: str
    profile_path: str = ""
    cdp_port: int = 0
    headless: bool = False
    extra_flags: list[str] = field(default_factory=list)
    user_agent: str = DEFAULT_USER_AGENT
    launch_timeout: float = 15.0
    cdp_timeout: float = 30.0
    max_workers: int = 4

    @classmethod
    def detect_binary(cls) -> str:
        env_path = os.environ.get("CHROME_PATH")
        if env_path:
            return expand_path(env_path)
        for candidate in DEFAULT_BINARY_CANDIDATES:
            path = Path(candidate)
            if path.exists() and os.access(str(path), os.X_OK):
                return str(path)
        for name in ("google-chrome", "chromium", "chromium-browser"):
            found = shutil.which(name)
            if found:
                return found
        # Last resort: let Popen surface a clear "not found" error at launch time.
        return "google-chrome"

    @classmethod
    def from_env(cls) -> ChromeConfig:
        profile = os.environ.get("MCP_CHROME_PROFILE", "").strip()
        flags_raw = os.environ.get("MCP_CHROME_FLAGS", "")
        return cls(
            binary_path=cls.detect_binary(),
            profile_path=expand_path(profile) if profile else "",
            cdp_port=max(0, _env_int("MCP_CHROME_PORT", 0)),
            headless=os.environ.get("MCP_HEADLESS", "0") == "1",
            extra_flags=[flag.strip() for flag in flags_raw.split(",") if flag.strip()],
            launch_timeout=_env_float("MCP_LAUNCH_TIMEOUT", 15.0),
            cdp_timeout=_env_float("MCP_CDP_TIMEOUT", 30.0),
            max_workers=max(1, _env_int("MCP_MAX_WORKERS", 4)),
        )
