"""Run the gateway: ``python -m mcpgate [config.yaml]``."""

import asyncio
import sys

from mcpgate.application import GatewayApplication
from mcpgate.errors import GatewayError


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    config_path = args[0] if args else None

    application = GatewayApplication(config_path=config_path)
    try:
        asyncio.run(application.start())
    except GatewayError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if e.detail:
            print(e.detail, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
