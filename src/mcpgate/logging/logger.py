"""Gateway logger - colored or JSON component logging for the bridge and registry."""

import json
import sys
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, TextIO

from mcpgate.logging.colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from mcpgate.types import LogFormat, LogLevel


@dataclass
class LogConfig:
    """Logger configuration."""

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.COLORED
    show_params: bool = True
    truncate_at: int = 200
    components: dict[str, bool] = field(default_factory=dict)
    output: TextIO = field(default=sys.stdout)

    def __post_init__(self) -> None:
        """Initialize default components if not provided."""
        if not self.components:
            self.components = {
                "bridge": True,
                "tool": True,
                "registry": True,
                "auth": True,
            }


class GatewayLogger:
    """Main logger facade. Creates component-specific loggers."""

    def __init__(self, config: LogConfig | None = None):
        """Initialize logger with configuration.

        Args:
            config: Logger configuration (defaults to LogConfig())
        """
        self.config = config or LogConfig()
        self._level_order = {
            LogLevel.DEBUG: 0,
            LogLevel.INFO: 1,
            LogLevel.WARN: 2,
            LogLevel.ERROR: 3,
        }

    def connection(self, connection_id: str, auth_kind: str, login: str | None) -> "ConnectionLogger":
        """Get a logger scoped to one streaming connection.

        Args:
            connection_id: Connection identifier
            auth_kind: How the connection authenticated
            login: Principal login, if any

        Returns:
            ConnectionLogger instance
        """
        return ConnectionLogger(self, connection_id, auth_kind, login)

    def configure(self, config: LogConfig) -> None:
        """Update configuration."""
        self.config = config

    def _should_log(self, level: LogLevel) -> bool:
        return self._level_order.get(level, 0) >= self._level_order.get(self.config.level, 1)

    def _log(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Internal logging method.

        Args:
            level: Log level
            component: Component name (bridge, tool, registry, auth)
            message: Log message
            context: Additional context data
        """
        if not self._should_log(level):
            return

        if not self.config.components.get(component, True):
            return

        if self.config.format == LogFormat.JSON:
            self._log_json(level, component, message, context)
        else:
            self._log_colored(level, component, message, context)

    def _log_json(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": level.value,
            "component": component,
            "message": message,
        }
        if context:
            log_entry.update(context)

        print(json.dumps(log_entry, default=str), file=self.config.output)

    def _log_colored(
        self,
        level: LogLevel,
        component: str,
        message: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        level_colors = {
            LogLevel.DEBUG: LIGHT_BLUE,
            LogLevel.INFO: CYAN,
            LogLevel.WARN: YELLOW,
            LogLevel.ERROR: RED,
        }

        color = level_colors.get(level, RESET)
        component_color = {
            "bridge": MAGENTA,
            "tool": GREEN,
            "registry": CYAN,
            "auth": ORANGE,
        }.get(component, RESET)

        # Format: [COMPONENT] message
        output = f"{component_color}[{component.upper()}]{RESET} {color}{message}{RESET}"

        if context and self.config.show_params:
            context_str = str(context)
            if len(context_str) > self.config.truncate_at:
                context_str = context_str[: self.config.truncate_at] + "..."
            output += f" {LIGHT_BLUE}{context_str}{RESET}"

        print(output, file=self.config.output)


class ConnectionLogger:
    """Logger for streaming connection events."""

    def __init__(
        self,
        parent: GatewayLogger,
        connection_id: str,
        auth_kind: str,
        login: str | None,
    ):
        self.parent = parent
        self.connection_id = connection_id
        self.auth_kind = auth_kind
        self.login = login

    def _context(self, event: str, **extra: Any) -> dict[str, Any]:
        context: dict[str, Any] = {
            "connection_id": self.connection_id,
            "auth_kind": self.auth_kind,
            "event": event,
        }
        if self.login:
            context["login"] = self.login
        context.update(extra)
        return context

    def opened(self, transport: str) -> None:
        """Log stream opened."""
        message = f"Connection '{self.connection_id}' opened ({transport}, {self.auth_kind})"
        self.parent._log(
            LogLevel.INFO, "bridge", message, self._context("connection_opened", transport=transport)
        )

    def tools_advertised(self, tool_count: int) -> None:
        """Log tool list advertisement."""
        self.parent._log(
            LogLevel.DEBUG,
            "bridge",
            f"Advertised {tool_count} tools",
            self._context("tools_advertised", tool_count=tool_count),
        )

    def heartbeat(self) -> None:
        """Log heartbeat frame."""
        self.parent._log(LogLevel.DEBUG, "bridge", "Heartbeat", self._context("heartbeat"))

    def invoking(self, invocation_id: Any, tool_name: str, arguments: dict[str, Any]) -> None:
        """Log tool invocation start."""
        context = self._context("tool_invoking", invocation_id=invocation_id, tool_name=tool_name)
        if arguments:
            context["arguments"] = arguments
        self.parent._log(LogLevel.INFO, "tool", f"Calling tool '{tool_name}'", context)

    def invoked(self, invocation_id: Any, tool_name: str, duration_ms: int) -> None:
        """Log tool invocation success."""
        duration_s = duration_ms / 1000
        self.parent._log(
            LogLevel.INFO,
            "tool",
            f"Tool '{tool_name}' completed ({duration_s:.2f}s) ✓",
            self._context(
                "tool_invoked",
                invocation_id=invocation_id,
                tool_name=tool_name,
                duration_ms=duration_ms,
            ),
        )

    def protocol_error(self, invocation_id: Any, code: int, message: str) -> None:
        """Log an in-band error frame."""
        self.parent._log(
            LogLevel.WARN,
            "bridge",
            f"Protocol error {code}: {message}",
            self._context("protocol_error", invocation_id=invocation_id, code=code),
        )

    def closed(self, reason: str, duration_ms: int) -> None:
        """Log stream closed."""
        duration_s = duration_ms / 1000
        self.parent._log(
            LogLevel.INFO,
            "bridge",
            f"Connection '{self.connection_id}' closed after {duration_s:.2f}s ({reason})",
            self._context("connection_closed", reason=reason, duration_ms=duration_ms),
        )
