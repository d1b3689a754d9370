"""Tool registry - name to schema to handler."""

from .builtin import register_builtin_tools
from .registry import ToolRegistry
from .types import (
    InvocationContext,
    ToolArgumentError,
    ToolDefinition,
    ToolHandler,
    ToolResult,
)

__all__ = [
    "ToolRegistry",
    "ToolDefinition",
    "ToolHandler",
    "ToolResult",
    "InvocationContext",
    "ToolArgumentError",
    "register_builtin_tools",
]
