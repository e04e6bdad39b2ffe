"""
MCP Server for Chrome automation via Chrome DevTools Protocol.

This module provides the main entry point and protocol handling.
Tool dispatch is handled via registry pattern in server/registry.py.
"""

from __future__ import annotations

import json
import logging
import os
import signal
import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from .cancellation import CancelToken, OperationCancelled
from .config import ChromeConfig
from .controller import ChromeController
from .server.contract import (
    DEFAULT_PROTOCOL_VERSION,
    LATEST_PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    initialize_result,
    select_protocol,
    tools_list,
)
from .server.redaction import redact_jsonrpc_for_dump, redact_jsonrpc_for_log, redact_tool_arguments
from .server.registry import create_default_registry
from .tools.base import ErrorCode, ToolError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
)
logger = logging.getLogger("mcp.chrome")

__all__ = [
    "SUPPORTED_PROTOCOL_VERSIONS",
    "LATEST_PROTOCOL_VERSION",
    "DEFAULT_PROTOCOL_VERSION",
    "McpServer",
    "main",
]

_write_lock = threading.Lock()
# Inbound frames are dumped from the reader thread, outbound ones from workers.
_dump_lock = threading.Lock()


def _dump_frame(marker: bytes, payload: dict[str, Any], raw_line: bytes) -> None:
    dump_path = os.environ.get("MCP_DUMP_FRAMES")
    if not dump_path:
        return
    if os.environ.get("MCP_DUMP_FRAMES_RAW") == "1":
        body = raw_line
    else:
        body = (json.dumps(redact_jsonrpc_for_dump(payload), ensure_ascii=False) + "\n").encode()
    with _dump_lock:
        if dump_dir := os.path.dirname(dump_path):
            os.makedirs(dump_dir, exist_ok=True)
        with open(dump_path, "ab") as fp:
            fp.write(marker + body)


def _write_message(payload: dict[str, Any]) -> None:
    """Write JSON-RPC message to stdout (one line, whole frames only)."""
    data = json.dumps(payload, ensure_ascii=False)
    line = (data + "\n").encode()
    with _write_lock:
        _dump_frame(b"--out--\n", payload, line)
        sys.stdout.buffer.write(line)
        sys.stdout.buffer.flush()


def _read_message() -> dict[str, Any] | None:
    """Read the next JSON-RPC message from stdin; None on EOF.

    Raises:
        json.JSONDecodeError: The line is not valid JSON
    """
    while True:
        line = sys.stdin.buffer.readline()
        if not line:
            return None
        line = line.strip()
        if line:
            break
    msg = json.loads(line.decode())
    if os.environ.get("MCP_TRACE"):
        logger.info("recv %s", redact_jsonrpc_for_log(msg) if isinstance(msg, dict) else msg)
    _dump_frame(b"--in--\n", msg if isinstance(msg, dict) else {}, line + b"\n")
    return msg


def _error_response(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": int(code), "message": message}}


def _valid_id(request_id: Any) -> bool:
    """JSON-RPC ids are strings, integers or null."""
    return request_id is None or (isinstance(request_id, (str, int)) and not isinstance(request_id, bool))


class McpServer:
    """MCP Server with registry-based tool dispatch.

    Tool calls run on a small worker pool so the stdin loop keeps reading
    (ping and cancellation stay responsive while a call waits on the page).
    """

    def __init__(self, config: ChromeConfig | None = None, controller: ChromeController | None = None) -> None:
        self.config = config or ChromeConfig.from_env()
        self.controller = controller or ChromeController(self.config)
        self.registry = create_default_registry()
        self.executor = ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="mcp-tool")
        self._inflight: dict[Any, CancelToken] = {}
        self._inflight_lock = threading.Lock()

    def handle_initialize(self, request_id: Any, params: dict[str, Any] | None = None) -> None:
        """Handle initialize request."""
        requested = (params or {}).get("protocolVersion") if isinstance(params, dict) else None
        protocol = select_protocol(requested)
        _write_message(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": initialize_result(protocol),
            }
        )

    def handle_list_tools(self, request_id: Any) -> None:
        """Handle tools/list request."""
        _write_message(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": {"tools": tools_list()},
            }
        )

    def _log_call(self, name: str, arguments: Any) -> None:
        """Log tool call with sanitized arguments."""
        safe_args = redact_tool_arguments(name, arguments) if isinstance(arguments, dict) else arguments
        logger.info("tool=%s args=%s", name, safe_args)

    def handle_call_tool(
        self,
        request_id: Any,
        name: str,
        arguments: dict[str, Any],
        cancel: CancelToken | None = None,
    ) -> None:
        """Run one tool call to completion and write its response.

        A cancelled call writes nothing: the client already gave up on it.
        """
        self._log_call(name, arguments)
        cancel = cancel or CancelToken()

        try:
            if not name:
                raise ToolError(ErrorCode.INVALID_PARAMS, "Missing tool name")
            result = self.registry.dispatch(name, self.controller, arguments, cancel)
        except OperationCancelled as exc:
            logger.info("tool_cancelled tool=%s reason=%s", name, exc)
            return
        except ToolError as exc:
            logger.info("tool_error tool=%s code=%d message=%s", exc.tool or name, int(exc.code), exc.message)
            _write_message({"jsonrpc": "2.0", "id": request_id, "error": exc.to_dict()})
            return

        if cancel.cancelled:
            logger.info("tool_cancelled tool=%s reason=%s", name, cancel.reason)
            return
        _write_message(
            {
                "jsonrpc": "2.0",
                "id": request_id,
                "result": {"content": result.to_content_list()},
            }
        )

    def _run_call(self, request_id: Any, name: str, arguments: dict[str, Any], cancel: CancelToken) -> None:
        try:
            self.handle_call_tool(request_id, name, arguments, cancel)
        except Exception:
            logger.exception("tool_call_crashed tool=%s", name)
            _write_message(_error_response(request_id, ErrorCode.INTERNAL_ERROR, "Tool execution failed"))
        finally:
            with self._inflight_lock:
                if self._inflight.get(request_id) is cancel:
                    del self._inflight[request_id]

    def handle_cancelled(self, params: dict[str, Any]) -> None:
        """Cancel the in-flight call named by `notifications/cancelled`."""
        request_id = params.get("requestId")
        if request_id is None or not _valid_id(request_id):
            logger.info("cancel_ignored request_id=%r", request_id)
            return
        with self._inflight_lock:
            token = self._inflight.get(request_id)
        if token is None:
            logger.info("cancel_ignored request_id=%s", request_id)
            return
        token.cancel(params.get("reason"))
        logger.info("cancel_requested request_id=%s", request_id)

    def dispatch(self, message: dict[str, Any]) -> Future | None:
        """Dispatch incoming JSON-RPC message to appropriate handler.

        Returns the worker future for `tools/call`, None for everything else.
        """
        if not isinstance(message, dict) or not message:
            _write_message(_error_response(None, ErrorCode.INVALID_REQUEST, "Invalid Request"))
            return None

        method = message.get("method")
        request_id = message.get("id")
        params = message.get("params") or {}

        if method is None:
            # Response to a server-initiated request; nothing is ever sent.
            return None
        if not _valid_id(request_id) or not isinstance(method, str):
            _write_message(_error_response(None, ErrorCode.INVALID_REQUEST, "Invalid Request"))
            return None
        if method == "initialize":
            self.handle_initialize(request_id, params)
        elif method == "notifications/initialized":
            return None
        elif method == "notifications/cancelled":
            if isinstance(params, dict):
                self.handle_cancelled(params)
        elif method == "tools/list":
            self.handle_list_tools(request_id)
        elif method == "tools/call":
            name = params.get("name") if isinstance(params, dict) else None
            arguments = params.get("arguments") if isinstance(params, dict) else None
            token = CancelToken()
            if request_id is not None:
                with self._inflight_lock:
                    self._inflight[request_id] = token
            return self.executor.submit(self._run_call, request_id, name or "", arguments, token)
        elif method == "ping":
            _write_message({"jsonrpc": "2.0", "id": request_id, "result": {}})
        elif request_id is not None:
            _write_message(_error_response(request_id, ErrorCode.METHOD_NOT_FOUND, f"Method {method} not found"))
        return None

    def close_browser(self) -> None:
        """Best-effort browser shutdown."""
        try:
            self.controller.close()
        except ToolError as exc:
            logger.warning("close_on_exit_failed: %s", exc)

    def shutdown(self) -> None:
        """Drain in-flight calls, then close the browser."""
        self.executor.shutdown(wait=True)
        self.close_browser()


def _install_signal_handlers(server: McpServer) -> None:
    def _on_signal(signum: int, _frame: Any) -> None:
        logger.info("signal %s received, closing browser", signal.Signals(signum).name)
        server.close_browser()
        raise SystemExit(0)

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)


def main() -> None:
    """Main entry point for MCP server."""
    try:
        server = McpServer()
    except Exception:
        logger.exception("startup_failed")
        sys.exit(1)

    _install_signal_handlers(server)
    logger.info("chrome mcp server ready binary=%s headless=%s", server.config.binary_path, server.config.headless)

    while True:
        try:
            message = _read_message()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning("parse_error: %s", exc)
            _write_message(_error_response(None, ErrorCode.PARSE_ERROR, "Parse error"))
            continue
        if message is None:
            break
        try:
            server.dispatch(message)
        except Exception:
            logger.exception("dispatch_failed")
            request_id = message.get("id") if isinstance(message, dict) else None
            if _valid_id(request_id) and request_id is not None:
                _write_message(_error_response(request_id, ErrorCode.INTERNAL_ERROR, "Internal error"))

    server.shutdown()


if __name__ == "__main__":
    main()
