"""Streaming bridge - tool advertisement, invocation dispatch and heartbeat."""

from .connection import (
    FrameSink,
    QueueFrameSink,
    SinkClosedError,
    StreamConnection,
    WebSocketFrameSink,
)
from .http_transport import HTTPTransport, iter_body_messages
from .protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    InvocationRequest,
    ProtocolError,
    encode_frame,
    error_frame,
    invocation_response_frame,
    parse_invocation,
    tool_list_frame,
)

__all__ = [
    # Connection
    "StreamConnection",
    "FrameSink",
    "QueueFrameSink",
    "WebSocketFrameSink",
    "SinkClosedError",
    # Transport
    "HTTPTransport",
    "iter_body_messages",
    # Protocol
    "PARSE_ERROR",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "InvocationRequest",
    "ProtocolError",
    "encode_frame",
    "error_frame",
    "invocation_response_frame",
    "parse_invocation",
    "tool_list_frame",
]
