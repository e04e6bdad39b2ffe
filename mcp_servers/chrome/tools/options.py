"""
Per-operation option records.

Each record enumerates the camelCase keys it recognizes. Parsing a mapping with
an unknown key, or a value of the wrong kind, raises an invalid-params ToolError
instead of silently merging it into the driver call.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from ..config import ChromeConfig
from .base import invalid_params

Parser = Callable[[str, Any], Any]

DEFAULT_VIEWPORT: tuple[int, int] = (1920, 1080)

DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--disable-web-security",
    "--disable-features=VizDisplayCompositor",
)

WAIT_UNTIL_CHOICES = ("load", "domcontentloaded", "networkidle0", "networkidle2")
SCREENSHOT_TYPES = ("png", "jpeg", "webp")
MOUSE_BUTTONS = ("left", "right", "middle")
SCROLL_DIRECTIONS = ("up", "down", "top", "bottom")


def _bool(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise invalid_params(f"Option '{key}' must be a boolean")
    return value


def _int(minimum: int | None = 0, maximum: int | None = None) -> Parser:
    def parse(key: str, value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise invalid_params(f"Option '{key}' must be a number")
        number = int(value)
        if (minimum is not None and number < minimum) or (maximum is not None and number > maximum):
            bound = f"between {minimum} and {maximum}" if maximum is not None else f">= {minimum}"
            raise invalid_params(f"Option '{key}' must be {bound}")
        return number

    return parse


def _int_or(default: int, minimum: int = 0) -> Parser:
    """Like _int, but zero falls back to `default`."""
    parse_int = _int(minimum=minimum)

    def parse(key: str, value: Any) -> int:
        return parse_int(key, value) or default

    return parse


def _str(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise invalid_params(f"Option '{key}' must be a non-empty string")
    return value


def _choice(choices: tuple[str, ...]) -> Parser:
    def parse(key: str, value: Any) -> str:
        if value not in choices:
            raise invalid_params(f"Option '{key}' must be one of: {', '.join(choices)}")
        return value

    return parse


def _str_list(key: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise invalid_params(f"Option '{key}' must be a list of strings")
    return tuple(value)


def _viewport(key: str, value: Any) -> tuple[int, int]:
    if not isinstance(value, Mapping):
        raise invalid_params(f"Option '{key}' must be an object with width and height")
    unknown = sorted(set(value) - {"width", "height"})
    if unknown:
        raise invalid_params(f"Unsupported {key} option(s): {', '.join(unknown)}")
    size = _int(minimum=1)
    return size("width", value.get("width")), size("height", value.get("height"))


class _Options:
    _KIND: ClassVar[str] = "option"
    # camelCase key -> (attribute name, parser)
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {}

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None = None, **defaults: Any):
        raw = dict(raw or {})
        unknown = sorted(set(raw) - set(cls._KEYS))
        if unknown:
            raise invalid_params(f"Unsupported {cls._KIND} option(s): {', '.join(unknown)}")
        values = dict(defaults)
        for key, (attr, parse) in cls._KEYS.items():
            if raw.get(key) is not None:
                values[attr] = parse(key, raw[key])
        return cls(**values)


@dataclass(frozen=True)
class LaunchOptions(_Options):
    executable_path: str
    headless: bool = False
    viewport: tuple[int, int] | None = DEFAULT_VIEWPORT
    args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS
    user_data_dir: str | None = None
    timeout_ms: int = 15000

    _KIND: ClassVar[str] = "launch"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "executablePath": ("executable_path", _str),
        "headless": ("headless", _bool),
        "defaultViewport": ("viewport", _viewport),
        "args": ("args", _str_list),
        "userDataDir": ("user_data_dir", _str),
        "timeout": ("timeout_ms", _int(minimum=1)),
    }

    @classmethod
    def for_config(cls, config: ChromeConfig, raw: Mapping[str, Any] | None = None) -> LaunchOptions:
        """Defaults come from the environment-driven config; `raw` overrides them."""
        return cls.from_mapping(
            raw,
            executable_path=config.binary_path,
            headless=config.headless,
            args=DEFAULT_LAUNCH_ARGS + tuple(config.extra_flags),
            user_data_dir=config.profile_path or None,
            timeout_ms=int(config.launch_timeout * 1000),
        )


@dataclass(frozen=True)
class NavigateOptions(_Options):
    wait_until: str = "networkidle2"
    timeout_ms: int = 30000

    _KIND: ClassVar[str] = "navigation"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "waitUntil": ("wait_until", _choice(WAIT_UNTIL_CHOICES)),
        "timeout": ("timeout_ms", _int(minimum=0)),
    }


@dataclass(frozen=True)
class ScreenshotOptions(_Options):
    type: str = "png"
    full_page: bool = True
    quality: int = 90

    _KIND: ClassVar[str] = "screenshot"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "type": ("type", _choice(SCREENSHOT_TYPES)),
        "fullPage": ("full_page", _bool),
        "quality": ("quality", _int(minimum=0, maximum=100)),
    }

    @property
    def mime_type(self) -> str:
        return f"image/{self.type}"


@dataclass(frozen=True)
class ClickOptions(_Options):
    button: str = "left"
    click_count: int = 1
    delay_ms: int = 0

    _KIND: ClassVar[str] = "click"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "button": ("button", _choice(MOUSE_BUTTONS)),
        "clickCount": ("click_count", _int(minimum=1)),
        "delay": ("delay_ms", _int(minimum=0)),
    }


@dataclass(frozen=True)
class TypeOptions(_Options):
    clear: bool = False
    delay_ms: int = 50

    _KIND: ClassVar[str] = "type"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "clear": ("clear", _bool),
        "delay": ("delay_ms", _int_or(50)),
    }


@dataclass(frozen=True)
class ScrollOptions(_Options):
    direction: str = "down"
    distance: int = 500
    smooth: bool = True

    _KIND: ClassVar[str] = "scroll"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "direction": ("direction", _choice(SCROLL_DIRECTIONS)),
        # Negative distances scroll the other way.
        "distance": ("distance", _int(minimum=None)),
        "smooth": ("smooth", _bool),
    }


@dataclass(frozen=True)
class WaitOptions(_Options):
    timeout_ms: int = 10000

    _KIND: ClassVar[str] = "wait"
    _KEYS: ClassVar[dict[str, tuple[str, Parser]]] = {
        "timeout": ("timeout_ms", _int(minimum=0)),
    }
