"""CLI entry point: python -m idlecore.mcp"""

from __future__ import annotations

import sys


def main() -> None:
    # stdout carries the stdio transport; keep import-time output off it
    real_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        from idlecore.logging import setup_logging
        from idlecore.mcp.server import create_server

        setup_logging()
        server = create_server()
    finally:
        sys.stdout = real_stdout

    server.run(transport="stdio")


if __name__ == "__main__":
    main()
