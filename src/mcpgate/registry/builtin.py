"""Built-in tools registered at startup."""

import json
from typing import Any

from .registry import ToolRegistry
from .types import InvocationContext, ToolArgumentError, ToolResult

ADD_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "a": {"type": "number", "description": "First addend"},
        "b": {"type": "number", "description": "Second addend"},
    },
    "required": ["a", "b"],
}

USER_INFO_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}


def _number(arguments: dict[str, Any], name: str) -> int | float:
    value = arguments.get(name)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ToolArgumentError(f"'{name}' must be a number")
    return value


async def add_tool(arguments: dict[str, Any], context: InvocationContext) -> ToolResult:
    a = _number(arguments, "a")
    b = _number(arguments, "b")
    return ToolResult.text(f"Result: {a} + {b} = {a + b}")


async def user_info_tool(arguments: dict[str, Any], context: InvocationContext) -> ToolResult:
    return ToolResult.text(json.dumps(context.principal.to_dict(), ensure_ascii=False))


def register_builtin_tools(registry: ToolRegistry) -> None:
    """Register ``add`` and ``userInfo``."""
    registry.register("add", "Add two numbers", add_tool, ADD_SCHEMA)
    registry.register("userInfo", "Return the authenticated user of this connection", user_info_tool, USER_INFO_SCHEMA)
