"""Gateway logging - component logger facade and stdlib log formatting."""

from .colors import (
    CYAN,
    GREEN,
    LIGHT_BLUE,
    MAGENTA,
    ORANGE,
    RED,
    RESET,
    YELLOW,
)
from .logger import ConnectionLogger, GatewayLogger, LogConfig
from .structured import StructuredLogFormatter, configure_logging

__all__ = [
    # Logger classes
    "GatewayLogger",
    "ConnectionLogger",
    "LogConfig",
    # stdlib integration
    "StructuredLogFormatter",
    "configure_logging",
    # Colors
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
