"""Low-level Chrome DevTools Protocol connection over websocket-client."""

from __future__ import annotations

import json
import socket
import threading
from contextlib import suppress
from typing import Any

import websocket

from .cancellation import NEVER_CANCELLED, CancelToken, Deadline
from .http_client import HttpClientError

# recv() slice while waiting; keeps deadlines and cancellation responsive.
_RECV_SLICE = 0.2


class CdpConnection:
    """CDP WebSocket connection shared by every tool call of the session.

    Command round-trips and event reads are serialized with a lock so frames from
    concurrent tool calls never interleave; events seen while waiting for a
    response are queued for later consumers.
    """

    def __init__(self, ws_url: str, timeout: float = 30.0):
        try:
            self.ws = websocket.create_connection(ws_url, timeout=timeout, suppress_origin=True)
        except (OSError, websocket.WebSocketException) as exc:
            raise HttpClientError(f"Cannot connect to {ws_url}: {exc}") from exc
        self.ws_url = ws_url
        self.timeout = timeout
        self._next_id = 1
        self._lock = threading.RLock()
        self._event_queue: list[dict[str, Any]] = []
        self._max_event_queue = 2000

    def _push_event(self, event: dict[str, Any]) -> None:
        self._event_queue.append(event)
        if len(self._event_queue) > self._max_event_queue:
            # Drop oldest events to avoid unbounded growth in long sessions.
            del self._event_queue[: len(self._event_queue) - self._max_event_queue]

    def pop_event(self, event_name: str) -> dict[str, Any] | None:
        """Pop the oldest queued event params for the given event name."""
        with self._lock:
            for i, ev in enumerate(self._event_queue):
                if ev.get("method") == event_name:
                    self._event_queue.pop(i)
                    params = ev.get("params")
                    return params if isinstance(params, dict) else {}
        return None

    def discard_events(self, event_name: str) -> None:
        with self._lock:
            self._event_queue = [ev for ev in self._event_queue if ev.get("method") != event_name]

    def _recv_frame(self, timeout: float) -> dict[str, Any] | None:
        """Receive one decoded frame, or None when nothing arrived within `timeout`."""
        try:
            self.ws.settimeout(max(0.01, timeout))
            raw = self.ws.recv()
        except websocket.WebSocketTimeoutException:
            return None
        except (OSError, websocket.WebSocketException) as exc:
            if isinstance(exc, TimeoutError) or "timed out" in str(exc).lower():
                return None
            raise HttpClientError(f"CDP connection lost: {exc}") from exc
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            return None
        return data if isinstance(data, dict) else None

    def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send CDP command and wait for its response."""
        with self._lock:
            msg_id = self._next_id
            self._next_id += 1

            msg: dict[str, Any] = {"id": msg_id, "method": method}
            if params:
                msg["params"] = params
            try:
                self.ws.settimeout(self.timeout)
                self.ws.send(json.dumps(msg))
            except (OSError, websocket.WebSocketException) as exc:
                raise HttpClientError(f"CDP send failed ({method}): {exc}") from exc

            deadline = Deadline(self.timeout)
            while not deadline.expired():
                data = self._recv_frame(min(_RECV_SLICE, deadline.remaining()))
                if data is None:
                    continue
                if isinstance(data.get("method"), str) and "id" not in data:
                    self._push_event(data)
                    continue
                if data.get("id") == msg_id:
                    if "error" in data:
                        error = data["error"]
                        text = error.get("message") if isinstance(error, dict) else None
                        raise HttpClientError(f"{method}: {text or error}")
                    result = data.get("result")
                    return result if isinstance(result, dict) else {}
            raise HttpClientError(f"CDP response timed out ({method})")

    def wait_for_event(
        self,
        event_name: str,
        timeout: float = 10.0,
        cancel: CancelToken = NEVER_CANCELLED,
    ) -> dict[str, Any] | None:
        """Wait for a CDP event; returns its params or None on timeout."""
        queued = self.pop_event(event_name)
        if queued is not None:
            return queued

        deadline = Deadline(timeout)
        while not deadline.expired():
            cancel.raise_if_cancelled()
            # Release the lock between slices so other calls can issue commands.
            with self._lock:
                queued = self.pop_event(event_name)
                if queued is not None:
                    return queued
                data = self._recv_frame(min(_RECV_SLICE, deadline.remaining()))
                if data is None or not isinstance(data.get("method"), str) or "id" in data:
                    continue
                if data["method"] == event_name:
                    params = data.get("params")
                    return params if isinstance(params, dict) else {}
                self._push_event(data)
        return None

    def close(self) -> None:
        """Close the WebSocket; prefers a raw socket shutdown to avoid close-handshake hangs."""
        sock = getattr(self.ws, "sock", None)
        if sock is not None:
            with suppress(OSError):
                sock.shutdown(socket.SHUT_RDWR)
            with suppress(OSError):
                sock.close()
        with suppress(Exception):
            self.ws.close(timeout=0.2)


__all__ = ["CdpConnection"]
