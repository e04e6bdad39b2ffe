"""
Base utilities for Chrome tool operations.

Provides:
- ErrorCode / ToolError: structured errors mapped 1:1 onto JSON-RPC error objects
- translate_errors: wraps driver failures into internal-error ToolErrors
- envelope: the uniform success payload returned by every operation
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from ..cancellation import OperationCancelled

logger = logging.getLogger("mcp.chrome.tools")


class ErrorCode(IntEnum):
    """JSON-RPC error codes used by MCP."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


@dataclass
class ToolError(Exception):
    """Structured error surfaced to the MCP client as a JSON-RPC error."""

    code: ErrorCode
    message: str
    tool: str = ""

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.tool:
            payload["data"] = {"tool": self.tool}
        return payload


def not_initialized(tool: str = "") -> ToolError:
    return ToolError(ErrorCode.INVALID_REQUEST, "Browser not initialized", tool)


def invalid_params(message: str, tool: str = "") -> ToolError:
    return ToolError(ErrorCode.INVALID_PARAMS, message, tool)


@contextmanager
def translate_errors(action: str, tool: str = "") -> Generator[None, None, None]:
    """Re-raise any driver failure as an internal-error ToolError.

    Usage:
        with translate_errors("Navigation", "chrome_navigate"):
            page.goto(url)
    """
    try:
        yield
    except (ToolError, OperationCancelled):
        raise
    except Exception as exc:
        logger.error("%s failed: %s", action, exc)
        raise ToolError(ErrorCode.INTERNAL_ERROR, f"{action} failed: {exc}", tool) from exc


def envelope(message: str, **fields: Any) -> dict[str, Any]:
    """Build the success payload: {"success": True, ...fields, "message": message}."""
    return {"success": True, **fields, "message": message}


def ensure_str(name: str, value: object, *, allow_empty: bool = False) -> str:
    """Validate a string argument (selector, url, text, query)."""
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise invalid_params(f"Argument '{name}' must be a non-empty string")
    return value
