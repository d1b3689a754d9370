"""Streaming wire protocol.

Frames are JSON objects. Client to server:
    {"id": 1, "method": "call_tool", "params": {"name": "add", "arguments": {"a": 2, "b": 3}}}

Server to client:
    {"type": "mcp_tool_list_response", "tools": [...]}
    {"type": "mcp_tool_invocation_response", "invocationId": 1, "result": {"content": [...]}}
    {"type": "mcp_error", "invocationId": 1, "code": -32601, "message": "Unknown tool: nope"}
"""

import json
from dataclasses import dataclass, field
from typing import Any

from mcpgate.registry import ToolResult

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

CALL_TOOL_METHOD = "call_tool"

TOOL_LIST_RESPONSE = "mcp_tool_list_response"
INVOCATION_RESPONSE = "mcp_tool_invocation_response"
ERROR = "mcp_error"
DEBUG_INFO = "debug_info"
USER_INFO = "user_info"

_NO_ID = object()


class ProtocolError(Exception):
    """Invocation message that cannot be dispatched. Rendered as an error frame."""

    def __init__(self, code: int, message: str, invocation_id: Any = _NO_ID):
        super().__init__(message)
        self.code = code
        self.message = message
        self.invocation_id = invocation_id

    def to_frame(self) -> dict[str, Any]:
        return error_frame(self.code, self.message, self.invocation_id)


@dataclass
class InvocationRequest:
    """A well-formed ``call_tool`` message."""

    id: Any
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


def tool_list_frame(descriptors: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": TOOL_LIST_RESPONSE, "tools": descriptors}


def invocation_response_frame(invocation_id: Any, result: ToolResult) -> dict[str, Any]:
    return {"type": INVOCATION_RESPONSE, "invocationId": invocation_id, "result": result.to_dict()}


def error_frame(code: int, message: str, invocation_id: Any = _NO_ID) -> dict[str, Any]:
    frame: dict[str, Any] = {"type": ERROR}
    if invocation_id is not _NO_ID:
        frame["invocationId"] = invocation_id
    frame["code"] = code
    frame["message"] = message
    return frame


def encode_frame(frame: dict[str, Any]) -> str:
    return json.dumps(frame, ensure_ascii=False, separators=(",", ":"))


def parse_invocation(message: str | bytes | dict[str, Any]) -> InvocationRequest:
    """Validate an incoming invocation message.

    Args:
        message: Raw JSON text or an already-decoded object

    Returns:
        InvocationRequest

    Raises:
        ProtocolError: PARSE_ERROR for malformed JSON or shape,
            METHOD_NOT_FOUND for any method other than ``call_tool``
    """
    if isinstance(message, str | bytes):
        try:
            data = json.loads(message)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ProtocolError(PARSE_ERROR, f"Invalid JSON: {e}") from e
    else:
        data = message

    if not isinstance(data, dict):
        raise ProtocolError(PARSE_ERROR, "Invalid request format: expected an object")

    if "id" not in data:
        raise ProtocolError(PARSE_ERROR, "Invalid request format: missing 'id'")
    invocation_id = data["id"]

    method = data.get("method")
    if not isinstance(method, str):
        raise ProtocolError(PARSE_ERROR, "Invalid request format: missing 'method'", invocation_id)
    if method != CALL_TOOL_METHOD:
        raise ProtocolError(METHOD_NOT_FOUND, f"Unknown method: {method}", invocation_id)

    params = data.get("params")
    if not isinstance(params, dict):
        raise ProtocolError(PARSE_ERROR, "Invalid request format: 'params' must be an object", invocation_id)

    name = params.get("name")
    if not isinstance(name, str) or not name:
        raise ProtocolError(PARSE_ERROR, "Invalid request format: missing tool name", invocation_id)

    arguments = params.get("arguments", {})
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ProtocolError(PARSE_ERROR, "Invalid request format: 'arguments' must be an object", invocation_id)

    return InvocationRequest(id=invocation_id, name=name, arguments=arguments)
