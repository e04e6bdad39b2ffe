"""
Tool registry with dispatch table for MCP server.

Maps tool names (and their unprefixed aliases) onto handlers that call the
ChromeController, applying the catalog defaults on the way in.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..cancellation import NEVER_CANCELLED, CancelToken, OperationCancelled
from ..tools.base import ErrorCode, ToolError
from .definitions import TOOL_DEFINITIONS
from .types import HandlerFunc, ToolResult, ToolSpec

if TYPE_CHECKING:
    from ..controller import ChromeController

logger = logging.getLogger("mcp.chrome.registry")

_REQUIRED: dict[str, tuple[str, ...]] = {
    d["name"]: tuple(d["inputSchema"].get("required", ())) for d in TOOL_DEFINITIONS
}


class ToolRegistry:
    """Registry for tool handlers."""

    def __init__(self) -> None:
        self._specs: dict[str, ToolSpec] = {}
        self._aliases: dict[str, str] = {}

    def register(self, name: str, handler: HandlerFunc, aliases: tuple[str, ...] = ()) -> None:
        """Register a tool handler under its canonical name and any aliases."""
        self._specs[name] = ToolSpec(name=name, handler=handler, aliases=aliases)
        for alias in aliases:
            self._aliases[alias] = name

    def resolve(self, name: str) -> str | None:
        """Return the canonical tool name, or None when unknown."""
        if name in self._specs:
            return name
        return self._aliases.get(name)

    def has(self, name: str) -> bool:
        """Check if handler exists."""
        return self.resolve(name) is not None

    def tool_names(self) -> list[str]:
        return list(self._specs)

    def dispatch(
        self,
        name: str,
        controller: ChromeController,
        arguments: dict[str, Any] | None,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> ToolResult:
        """
        Dispatch tool call to appropriate handler.

        Args:
            name: Tool name (canonical or alias)
            controller: Session owner passed to the handler
            arguments: Tool arguments
            cancel: Token for the in-flight request

        Returns:
            ToolResult wrapping the JSON envelope

        Raises:
            ToolError: Unknown tool, bad arguments, or a failed operation
            OperationCancelled: The client cancelled the request
        """
        canonical = self.resolve(name)
        if canonical is None:
            raise ToolError(ErrorCode.METHOD_NOT_FOUND, f"Unknown tool: {name}", name)

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolError(ErrorCode.INVALID_PARAMS, "Tool arguments must be an object", canonical)
        for key in _REQUIRED.get(canonical, ()):
            if arguments.get(key) is None:
                raise ToolError(ErrorCode.INVALID_PARAMS, f"Missing required argument: {key}", canonical)

        spec = self._specs[canonical]
        try:
            envelope = spec.handler(controller, arguments, cancel)
        except ToolError as exc:
            if not exc.tool:
                exc.tool = canonical
            raise
        except OperationCancelled:
            raise
        except Exception as exc:
            logger.exception("tool_call_failed tool=%s", canonical)
            raise ToolError(ErrorCode.INTERNAL_ERROR, f"Tool execution failed: {exc}", canonical) from exc

        return ToolResult.json(envelope)


# ─────────────────────────────────────────────────────────────────────────────
# Handlers
# ─────────────────────────────────────────────────────────────────────────────


def _navigate(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.navigate_to(args["url"], {"waitUntil": args.get("waitUntil") or "networkidle2"}, cancel)


def _search(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.search(args["query"], cancel)


def _screenshot(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.take_screenshot(
        {"fullPage": args.get("fullPage") is not False, "quality": args.get("quality") or 90}
    )


def _get_content(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.get_content(args.get("selector"))


def _click(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.click_element(args["selector"], cancel=cancel)


def _type(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.type_text(args["selector"], args["text"], {"clear": bool(args.get("clear"))}, cancel)


def _wait_for_element(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.wait_for_element(args["selector"], args.get("timeout") or 10000, cancel)


def _scroll(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.scroll_page(
        {
            "direction": args.get("direction") or "down",
            "distance": args.get("distance") or 500,
            "smooth": args.get("smooth") is not False,
        }
    )


def _close(controller: ChromeController, args: dict[str, Any], cancel: CancelToken) -> Any:
    return controller.close()


_HANDLERS: dict[str, HandlerFunc] = {
    "chrome_navigate": _navigate,
    "chrome_search": _search,
    "chrome_screenshot": _screenshot,
    "chrome_get_content": _get_content,
    "chrome_click": _click,
    "chrome_type": _type,
    "chrome_wait_for_element": _wait_for_element,
    "chrome_scroll": _scroll,
    "chrome_close": _close,
}


def create_default_registry() -> ToolRegistry:
    """Create registry with all Chrome tools (unprefixed names accepted as aliases)."""
    registry = ToolRegistry()
    for name, handler in _HANDLERS.items():
        registry.register(name, handler, aliases=(name.removeprefix("chrome_"),))
    return registry


__all__ = ["ToolRegistry", "create_default_registry"]
