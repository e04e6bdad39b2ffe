"""
Type definitions for MCP server responses and handlers.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..cancellation import CancelToken
    from ..controller import ChromeController


@dataclass(slots=True)
class ToolContent:
    """Single content item in tool response."""

    type: str  # always "text": envelopes travel as JSON text
    text: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP content format."""
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class ToolResult:
    """Result of a tool execution."""

    content: list[ToolContent] = field(default_factory=list)
    # Raw envelope kept for tests and logging; not part of the MCP wire format.
    data: Any | None = None

    @classmethod
    def json(cls, data: Any) -> ToolResult:
        """Create result with the payload serialized as indented JSON text.

        `close()` without a browser yields None, which serializes as "null".
        """
        return cls(content=[ToolContent(type="text", text=json.dumps(data, indent=2, ensure_ascii=False))], data=data)

    def to_content_list(self) -> list[dict[str, Any]]:
        """Convert to MCP content list format."""
        return [c.to_dict() for c in self.content]


# Handler signature: (controller, arguments, cancel) -> envelope (or None for an idle close)
HandlerFunc = Callable[["ChromeController", dict[str, Any], "CancelToken"], Any]


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """Specification for a registered tool."""

    name: str
    handler: HandlerFunc
    aliases: tuple[str, ...] = ()
