"""Tool registry types."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from mcpgate.auth.models import Principal


class ToolArgumentError(ValueError):
    """Raised by a handler when its arguments do not fit the input schema."""


@dataclass
class InvocationContext:
    """Per-call context handed to tool handlers."""

    principal: Principal
    invocation_id: Any = None


@dataclass
class ToolResult:
    """Tool output as a list of content parts."""

    content: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[{"type": "text", "text": text}])

    def to_dict(self) -> dict[str, Any]:
        return {"content": self.content}


class ToolHandler(Protocol):
    """Async callable that executes one tool."""

    async def __call__(self, arguments: dict[str, Any], context: InvocationContext) -> ToolResult: ...


@dataclass
class ToolDefinition:
    """A registered tool: descriptor plus handler.

    ``name`` is the exact dispatch key used by invocation messages.
    """

    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_descriptor(self) -> dict[str, Any]:
        """Wire form advertised in the tool list.

        Returns:
            Dict with name, description and inputSchema
        """
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }
