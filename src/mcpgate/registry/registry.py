"""Tool Registry - static mapping from tool name to handler."""

from __future__ import annotations

from typing import Any

from mcpgate.errors import create_error
from mcpgate.logging import GatewayLogger
from mcpgate.types import LogLevel

from .types import ToolDefinition, ToolHandler


class ToolRegistry:
    """Catalog of tools exposed over the streaming bridge.

    Populated once at startup; lookups of unknown names return None and the
    bridge turns them into method-not-found frames.
    """

    def __init__(self, logger: GatewayLogger | None = None):
        self._tools: dict[str, ToolDefinition] = {}
        self._logger = logger

    def _log(self, level: LogLevel, message: str, context: dict[str, Any] | None = None) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, "registry", message, context)

    def register(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        input_schema: dict[str, Any] | None = None,
    ) -> ToolDefinition:
        """Register a tool.

        Raises:
            GatewayError: TOOL_ALREADY_REGISTERED if ``name`` is taken
        """
        if name in self._tools:
            raise create_error("TOOL_ALREADY_REGISTERED", tool_name=name)

        tool = ToolDefinition(name=name, description=description, handler=handler)
        if input_schema is not None:
            tool.input_schema = input_schema
        self._tools[name] = tool
        self._log(LogLevel.DEBUG, f"Registered tool '{name}'", {"tool_name": name})
        return tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def list(self) -> list[ToolDefinition]:
        """Tools in registration order."""
        return list(self._tools.values())

    def descriptors(self) -> list[dict[str, Any]]:
        return [tool.to_descriptor() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
