"""Redaction utilities for logging and frame-dumps.

Prefers safety over fidelity: typed text aimed at sensitive-looking fields is
hidden, long strings are truncated and screenshot data URLs are elided.
"""

from __future__ import annotations

import os
import re
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_SENSITIVE_SUBSTRINGS = (
    "token",
    "secret",
    "password",
    "passwd",
    "pwd",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "api-key",
    "api_key",
    "apikey",
    "otp",
    "cvv",
)

_SENSITIVE_EXACT = {
    # Avoid false-positives like "author"/"authorship" while still protecting obvious keys.
    "auth",
    "pass",
    "pin",
}

_WORD_RE = re.compile(r"[A-Za-z0-9_-]+")
_DATA_URL_RE = re.compile(r"data:image/[a-z]+;base64,[A-Za-z0-9+/=]+")

MAX_LOG_STRING = 200


def is_sensitive_key(key: str) -> bool:
    k = (key or "").strip().lower()
    if not k:
        return False
    if k in _SENSITIVE_EXACT:
        return True
    return any(s in k for s in _SENSITIVE_SUBSTRINGS)


def is_sensitive_selector(selector: Any) -> bool:
    """True when any identifier inside a CSS selector looks like a secret field."""
    if not isinstance(selector, str):
        return False
    return any(is_sensitive_key(word) for word in _WORD_RE.findall(selector))


def redact_url(url: str) -> str:
    """Drop userinfo and redact values of sensitive query parameters."""
    if not isinstance(url, str) or not url:
        return url
    try:
        parts = urlsplit(url)
    except ValueError:
        return url

    netloc = parts.netloc.split("@", 1)[1] if "@" in parts.netloc else parts.netloc
    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        if any(is_sensitive_key(k) for k, _ in pairs):
            query = urlencode([(k, "<redacted>" if is_sensitive_key(k) else v) for k, v in pairs])

    if netloc == parts.netloc and query == parts.query:
        return url
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


def _redacted_summary(value: Any) -> str:
    if isinstance(value, str):
        return f"<redacted str len={len(value)}>"
    return "<redacted>"


def _truncate(value: str, limit: int | None) -> str:
    if limit is None or len(value) <= limit:
        return value
    return value[:limit] + f"… <truncated len={len(value)}>"


def redact_tool_arguments(tool: str, args: dict[str, Any], *, max_chars: int | None = MAX_LOG_STRING) -> dict[str, Any]:
    """Redact tool arguments for safe logging."""
    if not isinstance(args, dict):
        return {}
    typing_secret = tool.removeprefix("chrome_") == "type" and is_sensitive_selector(args.get("selector"))

    out: dict[str, Any] = {}
    for key, value in args.items():
        lk = str(key).lower()
        if typing_secret and lk == "text":
            out[key] = _redacted_summary(value)
        elif is_sensitive_key(lk):
            out[key] = _redacted_summary(value)
        elif isinstance(value, str) and lk == "url":
            out[key] = _truncate(redact_url(value), max_chars)
        elif isinstance(value, str):
            out[key] = _truncate(value, max_chars)
        else:
            out[key] = value
    return out


def redact_text_content(text: str, *, max_chars: int | None = None) -> str:
    """Elide screenshot payloads inside a tool result's JSON text."""
    text = _DATA_URL_RE.sub(lambda m: f"<omitted image data url len={len(m.group(0))}>", text or "")
    return _truncate(text, max_chars)


def redact_jsonrpc_for_dump(payload: dict[str, Any], *, max_text_chars: int | None = None) -> dict[str, Any]:
    """Redact a JSON-RPC message for file dumps.

    Notes:
    - Tool call args are redacted based on tool name.
    - Screenshot data URLs are replaced with a short placeholder.
    - Large text blobs can be truncated.
    """
    max_text_chars = max_text_chars if max_text_chars is not None else _dump_max_chars()
    msg = dict(payload) if isinstance(payload, dict) else {}

    if msg.get("method") == "tools/call":
        params = msg.get("params")
        if isinstance(params, dict):
            name = params.get("name")
            args = params.get("arguments")
            if isinstance(name, str) and isinstance(args, dict):
                params = dict(params)
                params["arguments"] = redact_tool_arguments(name, args, max_chars=None)
                msg["params"] = params

    result = msg.get("result")
    if isinstance(result, dict) and isinstance(result.get("content"), list):
        redacted_content = []
        for item in result["content"]:
            if isinstance(item, dict) and item.get("type") == "text" and isinstance(item.get("text"), str):
                item = dict(item)
                item["text"] = redact_text_content(item["text"], max_chars=max_text_chars)
            redacted_content.append(item)
        result = dict(result)
        result["content"] = redacted_content
        msg["result"] = result

    return msg


def redact_jsonrpc_for_log(payload: dict[str, Any]) -> dict[str, Any]:
    """Stricter redaction for logs (shorter + safer)."""
    return redact_jsonrpc_for_dump(payload, max_text_chars=512)


def _dump_max_chars() -> int:
    raw = os.environ.get("MCP_DUMP_FRAMES_MAX_CHARS", "5000").strip()
    try:
        return max(0, int(raw))
    except ValueError:
        return 5000
