"""
Stdio Transport for MCP Server

Serves a single implicit session over newline-delimited JSON-RPC on the
process's standard input and output. No session table is involved.

License: Mozilla Public License 2.0
"""

import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional, TextIO

from mcp.types import PARSE_ERROR

from ..protocol import error_response

logger = logging.getLogger(__name__)


class StdioTransport:
    """
    Bridges stdin/stdout to one protocol server instance.
    """

    def __init__(self, server, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        """
        Initialize stdio transport.

        Args:
            server: Protocol server instance for the process-wide session
            stdin: Input stream (default: sys.stdin)
            stdout: Output stream (default: sys.stdout)
        """
        self.server = server
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    async def write(self, message: Dict[str, Any]):
        self.stdout.write(json.dumps(message) + "\n")
        self.stdout.flush()

    async def run(self):
        """Read messages until EOF, answering each on stdout"""
        loop = asyncio.get_running_loop()
        await self.server.connect(self.write)
        logger.info("Stdio transport started")

        try:
            while True:
                line = await loop.run_in_executor(None, self.stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue

                try:
                    message = json.loads(line)
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON on stdin: {e}")
                    await self.write(error_response(None, PARSE_ERROR, f"Parse error: {e}"))
                    continue

                reply = await self.server.handle_message(message)
                if reply is not None:
                    await self.write(reply)
        finally:
            self.server.close()
            logger.info("Stdio transport stopped")
