"""
Domains MCP Server - Command line startup

Runs the server over SSE/HTTP, or over stdio when ``--stdio`` is given or
stdin is not an interactive terminal (e.g. when launched by an MCP inspector).

Usage:
    domains-mcp-server [--port PORT] [--host HOST] [--config-dir DIR] [--stdio]

License: Mozilla Public License 2.0
"""

import argparse
import asyncio
import logging
import sys

from .errors import StartupFailure
from .server import DomainsMCPServer, configure_logging

logger = logging.getLogger('domains-mcp-server')


def use_stdio(args) -> bool:
    return args.stdio or not sys.stdin.isatty()


def main(argv=None):
    parser = argparse.ArgumentParser(description='Domains MCP Server')
    parser.add_argument('--port', type=int, default=None,
                        help='Port to listen on (default: $PORT or 8000)')
    parser.add_argument('--host', type=str, default=None,
                        help='Host to bind to (default: $HOST or 0.0.0.0)')
    parser.add_argument('--config-dir', type=str, default=None,
                        help='Configuration directory path')
    parser.add_argument('--stdio', action='store_true',
                        help='Serve a single session over stdin/stdout')

    args = parser.parse_args(argv)

    configure_logging()

    try:
        server = DomainsMCPServer(config_dir=args.config_dir, host=args.host, port=args.port)
    except StartupFailure as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)

    try:
        if use_stdio(args):
            asyncio.run(server.run_stdio())
        else:
            asyncio.run(server.run_sse_server())
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        server.close()


if __name__ == "__main__":
    main()
