"""
Chrome automation tools organized by domain.

Each module provides focused functionality:
- base: ErrorCode, ToolError, error translation, result envelope
- options: per-operation option records
- navigation: navigate, search
- content: screenshots, content extraction
- input: click, type, scroll
- wait: wait for element

Keep this package import light: the launcher imports `tools.options` and the
tool modules reference the controller only for typing.
"""

from .base import ErrorCode, ToolError, envelope, translate_errors

__all__ = ["ErrorCode", "ToolError", "envelope", "translate_errors"]
