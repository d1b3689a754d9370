"""Per-connection streaming state.

One ``StreamConnection`` per client. The heartbeat task and message dispatch
run concurrently and share only the sink, whose writes go through a single
lock. Closing the connection cancels and awaits the heartbeat before the sink
is closed, so no heartbeat can be written after close.
"""

import asyncio
import contextlib
import json
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable, AsyncIterator, Iterable
from typing import Any

from sse_starlette.sse import ServerSentEvent
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from mcpgate.auth import AuthResolver, Principal
from mcpgate.logging import ConnectionLogger, GatewayLogger
from mcpgate.registry import InvocationContext, ToolArgumentError, ToolRegistry
from mcpgate.types import AuthKind, ConnectionState, SessionKind

from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    ProtocolError,
    encode_frame,
    error_frame,
    invocation_response_frame,
    parse_invocation,
    tool_list_frame,
)

DEFAULT_HEARTBEAT_INTERVAL = 30.0
DEFAULT_MAX_LIFETIME = 600.0

_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.CONNECTING: {ConnectionState.AUTHENTICATING, ConnectionState.CLOSED},
    ConnectionState.AUTHENTICATING: {
        ConnectionState.UNAUTHORIZED,
        ConnectionState.STREAMING,
        ConnectionState.CLOSED,
    },
    ConnectionState.UNAUTHORIZED: set(),
    ConnectionState.STREAMING: {ConnectionState.CLOSED},
    ConnectionState.CLOSED: set(),
}


class SinkClosedError(Exception):
    """Raised by a sink when the peer is gone."""


class FrameSink(ABC):
    """Write side of a stream."""

    @abstractmethod
    async def send_frame(self, frame: dict[str, Any]) -> None:
        """Write one protocol frame."""

    @abstractmethod
    async def send_heartbeat(self) -> None:
        """Write one no-op keepalive frame."""

    @abstractmethod
    async def close(self) -> None:
        """Close the write side. Must be idempotent."""


class QueueFrameSink(FrameSink):
    """Server-sent-event sink drained by an HTTP streaming response.

    Iterating the sink yields ``ServerSentEvent`` objects until it is closed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ServerSentEvent | None] = asyncio.Queue()
        self._closed = False

    async def send_frame(self, frame: dict[str, Any]) -> None:
        self._put(ServerSentEvent(data=encode_frame(frame)))

    async def send_heartbeat(self) -> None:
        self._put(ServerSentEvent(comment="heartbeat"))

    async def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)

    def _put(self, event: ServerSentEvent) -> None:
        if self._closed:
            raise SinkClosedError("stream closed")
        self._queue.put_nowait(event)

    async def __aiter__(self) -> AsyncIterator[ServerSentEvent]:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            yield event


class WebSocketFrameSink(FrameSink):
    """Full-duplex sink. Each frame is one JSON text message."""

    HEARTBEAT = json.dumps({"type": "heartbeat"})

    def __init__(self, websocket: WebSocket):
        self._websocket = websocket

    async def send_frame(self, frame: dict[str, Any]) -> None:
        await self._send(encode_frame(frame))

    async def send_heartbeat(self) -> None:
        await self._send(self.HEARTBEAT)

    async def _send(self, text: str) -> None:
        if self._websocket.application_state != WebSocketState.CONNECTED:
            raise SinkClosedError("websocket closed")
        try:
            await self._websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError) as e:
            raise SinkClosedError(str(e)) from e

    async def close(self) -> None:
        if (
            self._websocket.application_state == WebSocketState.CONNECTED
            and self._websocket.client_state == WebSocketState.CONNECTED
        ):
            with contextlib.suppress(RuntimeError):
                await self._websocket.close()


class StreamConnection:
    """One client stream: authentication, advertisement, dispatch, heartbeat.

    Example:
        connection = StreamConnection(sink, registry, heartbeat_interval=30)
        principal = await connection.authenticate(resolver, authorization, session_id)
        if principal.authenticated:
            await connection.open()
            await connection.serve(incoming)
    """

    def __init__(
        self,
        sink: FrameSink,
        registry: ToolRegistry,
        logger: GatewayLogger | None = None,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        max_lifetime: float = DEFAULT_MAX_LIFETIME,
        transport: str = "sse",
        connection_id: str | None = None,
    ):
        self.connection_id = connection_id or uuid.uuid4().hex[:12]
        self.transport = transport
        self._sink = sink
        self._registry = registry
        self._gateway_logger = logger
        self._log: ConnectionLogger | None = None
        self._heartbeat_interval = heartbeat_interval
        self._max_lifetime = max_lifetime

        self._state = ConnectionState.CONNECTING
        self._principal: Principal | None = None
        self._write_lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._opened_at = time.monotonic()
        self.heartbeats_sent = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def principal(self) -> Principal | None:
        return self._principal

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    def _transition(self, new_state: ConnectionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Illegal connection transition {self._state.value} -> {new_state.value}")
        self._state = new_state

    async def authenticate(
        self,
        resolver: AuthResolver,
        authorization: str | None = None,
        session_id: str | None = None,
    ) -> Principal:
        """Resolve credentials. An anonymous result leaves the connection UNAUTHORIZED."""
        self._transition(ConnectionState.AUTHENTICATING)
        principal = await resolver.resolve(authorization, session_id, SessionKind.SESSION)
        self._principal = principal
        if principal.auth_kind == AuthKind.NONE:
            self._transition(ConnectionState.UNAUTHORIZED)
        return principal

    def attach(self, principal: Principal) -> None:
        """Skip resolution for a principal that was authenticated elsewhere."""
        self._transition(ConnectionState.AUTHENTICATING)
        self._principal = principal

    async def open(self, extra_frames: Iterable[dict[str, Any]] = ()) -> None:
        """Enter STREAMING: advertise tools, then start the heartbeat."""
        if self._principal is None or not self._principal.authenticated:
            raise RuntimeError("Connection is not authenticated")
        self._transition(ConnectionState.STREAMING)

        principal = self._principal
        if self._gateway_logger:
            self._log = self._gateway_logger.connection(
                self.connection_id, principal.auth_kind.value, principal.login
            )
            self._log.opened(self.transport)

        descriptors = self._registry.descriptors()
        await self.send(tool_list_frame(descriptors))
        if self._log:
            self._log.tools_advertised(len(descriptors))
        for frame in extra_frames:
            await self.send(frame)

        self._heartbeat_task = asyncio.create_task(
            self._heartbeat(), name=f"heartbeat-{self.connection_id}"
        )

    async def send(self, frame: dict[str, Any]) -> bool:
        """Write one frame. Returns False if the connection is closed."""
        async with self._write_lock:
            if self._state == ConnectionState.CLOSED:
                return False
            try:
                await self._sink.send_frame(frame)
            except SinkClosedError:
                self._closed.set()
                return False
            return True

    async def _heartbeat(self) -> None:
        while True:
            await asyncio.sleep(self._heartbeat_interval)
            async with self._write_lock:
                if self._state != ConnectionState.STREAMING:
                    return
                try:
                    await self._sink.send_heartbeat()
                except SinkClosedError:
                    self._closed.set()
                    return
                self.heartbeats_sent += 1
            if self._log:
                self._log.heartbeat()

    async def handle_message(self, message: str | bytes | dict[str, Any]) -> dict[str, Any]:
        """Dispatch one invocation message and write its response frame.

        Returns:
            The frame that was sent
        """
        frame = await self.dispatch(message)
        if frame.get("type") == "mcp_error" and self._log:
            self._log.protocol_error(frame.get("invocationId"), frame["code"], frame["message"])
        await self.send(frame)
        return frame

    async def dispatch(self, message: str | bytes | dict[str, Any]) -> dict[str, Any]:
        """Turn one invocation message into a response frame. Never raises."""
        try:
            request = parse_invocation(message)
        except ProtocolError as e:
            return e.to_frame()

        tool = self._registry.get(request.name)
        if tool is None:
            return error_frame(METHOD_NOT_FOUND, f"Unknown tool: {request.name}", request.id)

        if self._log:
            self._log.invoking(request.id, request.name, request.arguments)
        start = time.monotonic()
        context = InvocationContext(principal=self._principal, invocation_id=request.id)
        try:
            result = await tool.handler(request.arguments, context)
        except ToolArgumentError as e:
            return error_frame(INVALID_PARAMS, str(e), request.id)
        except Exception as e:
            return error_frame(INTERNAL_ERROR, f"Tool '{request.name}' failed: {e}", request.id)

        if self._log:
            self._log.invoked(request.id, request.name, int((time.monotonic() - start) * 1000))
        return invocation_response_frame(request.id, result)

    async def serve(
        self,
        incoming: AsyncIterable[str | bytes | dict[str, Any]] | None = None,
        hold_open: bool = True,
    ) -> None:
        """Dispatch incoming messages until the stream ends or the lifetime expires.

        Args:
            incoming: Invocation messages from the client, if any
            hold_open: Keep streaming after ``incoming`` is exhausted
        """
        reason = "cancelled"
        try:
            await asyncio.wait_for(self._pump(incoming, hold_open), timeout=self._max_lifetime)
            reason = "client_closed"
        except TimeoutError:
            reason = "max_lifetime"
        finally:
            await self.close(reason)

    async def _pump(
        self,
        incoming: AsyncIterable[str | bytes | dict[str, Any]] | None,
        hold_open: bool,
    ) -> None:
        if incoming is not None:
            async for message in incoming:
                if self._closed.is_set():
                    return
                await self.handle_message(message)
        if hold_open:
            await self._closed.wait()

    async def close(self, reason: str = "closed") -> None:
        """Stop the heartbeat and close the sink. Idempotent."""
        if self._state == ConnectionState.CLOSED:
            return
        was_streaming = self._state == ConnectionState.STREAMING
        self._state = ConnectionState.CLOSED
        self._closed.set()

        task = self._heartbeat_task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._heartbeat_task = None

        await self._sink.close()
        if was_streaming and self._log:
            self._log.closed(reason, int((time.monotonic() - self._opened_at) * 1000))
