"""HTTP transport for the streaming bridge.

Implements:
- GET|POST {bridge.path}: server-sent-event stream (POST bodies carry invocations)
- WS {bridge.websocket_path}: full-duplex stream, one invocation per text message
- Everything else is delegated to the mounted admin/OAuth app
"""

import asyncio
import json
import logging
import math
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from sse_starlette.sse import EventSourceResponse, ServerSentEvent
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from mcpgate.auth import AuthResolver, Principal
from mcpgate.config import BridgeConfig
from mcpgate.logging import GatewayLogger
from mcpgate.registry import ToolRegistry

from .connection import FrameSink, QueueFrameSink, StreamConnection, WebSocketFrameSink
from .protocol import DEBUG_INFO, USER_INFO

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized: API key or session required"
NOT_ACCEPTABLE_MESSAGE = "Not Acceptable: Expected Accept: text/event-stream"
EVENT_STREAM = "text/event-stream"


def iter_body_messages(body: bytes) -> list[Any]:
    """Split a POST body into invocation messages.

    Accepts one JSON object, a JSON array of objects, or newline-delimited
    JSON. Undecodable lines are passed through as text so they surface as
    parse-error frames.
    """
    if not body.strip():
        return []
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        text = body.decode("utf-8", errors="replace")
        return [line for line in text.splitlines() if line.strip()]
    if isinstance(data, list):
        return data
    return [data]


async def _aiter(items: list[Any]) -> AsyncIterator[Any]:
    for item in items:
        yield item


class HTTPTransport:
    """Starlette application hosting the streaming bridge.

    Optionally mounts the admin/OAuth FastAPI app at the root.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        resolver: AuthResolver,
        config: BridgeConfig | None = None,
        logger: GatewayLogger | None = None,
        cors_origins: list[str] | None = None,
        rest_app: "FastAPI | None" = None,
    ):
        """Initialize HTTP transport.

        Args:
            registry: Tools advertised and dispatched on every connection
            resolver: Credential resolver
            config: Bridge settings (paths, heartbeat, lifetime, realm)
            logger: Component logger for connection events
            cors_origins: Allowed CORS origins
            rest_app: Admin/OAuth app mounted at "/"
        """
        self._registry = registry
        self._resolver = resolver
        self._config = config or BridgeConfig()
        self._logger = logger
        self._cors_origins = cors_origins or ["*"]
        self._rest_app = rest_app
        self._connections: set[StreamConnection] = set()
        self._app: Starlette | None = None

    def _create_app(self) -> Starlette:
        middleware = [
            Middleware(
                CORSMiddleware,
                allow_origins=self._cors_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["Content-Type", "Accept", "Authorization"],
                max_age=86400,
            )
        ]

        routes: list[Route | WebSocketRoute | Mount] = [
            Route(self._config.path, self._handle_stream, methods=["GET", "POST"]),
            WebSocketRoute(self._config.websocket_path, self._handle_websocket),
        ]
        if self._rest_app is not None:
            routes.append(Mount("/", app=self._rest_app))

        return Starlette(routes=routes, middleware=middleware)

    @property
    def app(self) -> Starlette:
        """Get or create the Starlette application."""
        if self._app is None:
            self._app = self._create_app()
        return self._app

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def _new_connection(self, sink: FrameSink, transport: str) -> StreamConnection:
        return StreamConnection(
            sink,
            self._registry,
            logger=self._logger,
            heartbeat_interval=self._config.heartbeat_interval,
            max_lifetime=self._config.max_lifetime,
            transport=transport,
        )

    def _is_browser(self, request: Request) -> bool:
        if "direct" in request.query_params:
            return True
        user_agent = request.headers.get("User-Agent", "")
        return any(sig in user_agent for sig in self._config.browser_signatures)

    def _browser_frames(self, principal: Principal) -> list[dict[str, Any]]:
        kind = principal.auth_kind.value
        return [
            {"type": DEBUG_INFO, "message": f"Auth type: {kind}, user id: {principal.user_id}"},
            {"type": USER_INFO, "userData": principal.to_dict(), "authType": kind},
        ]

    async def _handle_stream(self, request: Request) -> Response:
        """Handle GET|POST on the stream path."""
        sink = QueueFrameSink()
        connection = self._new_connection(sink, "sse")
        principal = await connection.authenticate(
            self._resolver,
            request.headers.get("Authorization"),
            request.query_params.get("session"),
        )
        browser = self._is_browser(request)

        if not principal.authenticated:
            logger.info(
                f"[AUTH] Unauthenticated stream request (browser={browser}, "
                f"has_auth_header={'Authorization' in request.headers}, "
                f"has_session={'session' in request.query_params})"
            )
            if browser:
                return RedirectResponse("/authorize", status_code=302)
            return PlainTextResponse(
                UNAUTHORIZED_MESSAGE,
                status_code=401,
                headers={"WWW-Authenticate": f'Bearer realm="{self._config.realm}"'},
            )

        if not browser and EVENT_STREAM not in request.headers.get("Accept", ""):
            await connection.close("not_acceptable")
            return PlainTextResponse(NOT_ACCEPTABLE_MESSAGE, status_code=406)

        messages = iter_body_messages(await request.body()) if request.method == "POST" else []
        extra_frames = self._browser_frames(principal) if browser else []

        return EventSourceResponse(
            self._event_stream(connection, sink, extra_frames, messages),
            headers={"Cache-Control": "no-cache"},
            # Heartbeats are written by the connection under its write lock;
            # the library keepalive never fires within a connection's lifetime.
            ping=math.ceil(self._config.max_lifetime) + 1,
        )

    async def _event_stream(
        self,
        connection: StreamConnection,
        sink: QueueFrameSink,
        extra_frames: list[dict[str, Any]],
        messages: list[Any],
    ) -> AsyncIterator[ServerSentEvent]:
        self._connections.add(connection)
        await connection.open(extra_frames)
        serve_task = asyncio.create_task(connection.serve(_aiter(messages)))
        try:
            async for event in sink:
                yield event
        finally:
            # Shielded so a client-disconnect cancellation still propagates
            # while the connection is torn down.
            await asyncio.shield(self._release(connection, serve_task))

    async def _release(self, connection: StreamConnection, serve_task: asyncio.Task[None]) -> None:
        serve_task.cancel()
        await asyncio.wait([serve_task])
        await connection.close("client_disconnected")
        self._connections.discard(connection)

    async def _handle_websocket(self, websocket: WebSocket) -> None:
        """Handle the WebSocket stream."""
        connection = self._new_connection(WebSocketFrameSink(websocket), "websocket")
        principal = await connection.authenticate(
            self._resolver,
            websocket.headers.get("Authorization"),
            websocket.query_params.get("session"),
        )
        if not principal.authenticated:
            logger.info("[AUTH] Unauthenticated websocket request")
            await websocket.close(code=1008, reason=UNAUTHORIZED_MESSAGE)
            return

        await websocket.accept()
        self._connections.add(connection)
        try:
            await connection.open()
            await connection.serve(self._receive(websocket), hold_open=False)
        finally:
            await connection.close("client_disconnected")
            self._connections.discard(connection)

    @staticmethod
    async def _receive(websocket: WebSocket) -> AsyncIterator[str]:
        try:
            while True:
                yield await websocket.receive_text()
        except WebSocketDisconnect:
            return

    async def close_all(self) -> None:
        """Close every open connection (shutdown)."""
        for connection in list(self._connections):
            await connection.close("shutdown")
        self._connections.clear()
