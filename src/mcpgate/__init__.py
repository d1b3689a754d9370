"""mcpgate - authenticated streaming tool gateway.

API keys, browser sessions and an admin registry in front of a streaming
tool-invocation bridge.
"""

from mcpgate.application import GatewayApplication

__version__ = "0.1.0"
__all__ = ["__version__", "GatewayApplication"]
