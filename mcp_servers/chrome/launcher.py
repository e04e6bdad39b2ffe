from __future__ import annotations

import contextlib
import logging
import shutil
import socket
import subprocess
import tempfile
import time
from dataclasses import dataclass
from urllib.error import URLError
from urllib.request import urlopen

from .config import ChromeConfig, expand_path
from .tools.options import LaunchOptions

logger = logging.getLogger("mcp.chrome.launcher")


@dataclass
class LaunchResult:
    command: list[str]
    started: bool
    message: str
    cdp_port: int = 0


class ChromeLauncher:
    """Owns one Chrome process started with a DevTools port."""

    def __init__(self, config: ChromeConfig | None = None) -> None:
        self.config = config or ChromeConfig.from_env()
        self.process: subprocess.Popen | None = None
        self.cdp_port: int = 0
        self._temp_profile: str | None = None

    def build_launch_command(self, options: LaunchOptions, cdp_port: int, profile_dir: str) -> list[str]:
        flags = [
            f"--remote-debugging-port={cdp_port}",
            f"--user-data-dir={expand_path(profile_dir)}",
            "--remote-allow-origins=*",
            "--no-default-browser-check",
        ]
        if options.headless:
            flags.append("--headless=new")
        if options.viewport is not None:
            width, height = options.viewport
            flags.append(f"--window-size={width},{height}")
        flags.extend(options.args)
        flags.append("about:blank")
        return [options.executable_path, *flags]

    def _cdp_ready(self, port: int, timeout: float = 0.4) -> bool:
        endpoint = f"http://127.0.0.1:{port}/json/version"
        try:
            with urlopen(endpoint, timeout=timeout) as resp:
                return resp.status == 200
        except (OSError, TimeoutError, URLError):
            return False

    def launch(self, options: LaunchOptions) -> LaunchResult:
        """Start Chrome and wait until its DevTools endpoint answers."""
        port = self.config.cdp_port or self.find_free_port()
        profile_dir = options.user_data_dir
        if not profile_dir:
            profile_dir = self._temp_profile = tempfile.mkdtemp(prefix="mcp-chrome-profile-")

        cmd = self.build_launch_command(options, port, profile_dir)
        logger.info("launching chrome binary=%s port=%s headless=%s", options.executable_path, port, options.headless)
        try:
            self.process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            self._cleanup_profile()
            return LaunchResult(cmd, False, str(exc))

        deadline = time.time() + options.timeout_ms / 1000.0
        while time.time() < deadline:
            if self.process.poll() is not None:
                code = self.process.returncode
                self.process = None
                self._cleanup_profile()
                return LaunchResult(cmd, False, f"Chrome exited during startup (code {code})")
            if self._cdp_ready(port):
                self.cdp_port = port
                return LaunchResult(cmd, True, "Chrome launched", cdp_port=port)
            time.sleep(0.1)

        self.stop()
        return LaunchResult(cmd, False, f"Chrome launch timed out after {options.timeout_ms} ms")

    def stop(self, *, timeout: float = 2.0) -> bool:
        """Best-effort stop of the launcher-owned Chrome process."""
        proc = self.process
        self.process = None
        if proc is None:
            self._cleanup_profile()
            return False

        if proc.poll() is None:
            with contextlib.suppress(OSError):
                proc.terminate()
            try:
                proc.wait(timeout=max(0.1, float(timeout)))
            except subprocess.TimeoutExpired:
                # Escalate to kill.
                with contextlib.suppress(OSError):
                    proc.kill()
                with contextlib.suppress(subprocess.TimeoutExpired):
                    proc.wait(timeout=1.0)
        self._cleanup_profile()
        return True

    def _cleanup_profile(self) -> None:
        if self._temp_profile:
            shutil.rmtree(self._temp_profile, ignore_errors=True)
            self._temp_profile = None

    @staticmethod
    def find_free_port() -> int:
        with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
            s.bind(("127.0.0.1", 0))
            return s.getsockname()[1]
