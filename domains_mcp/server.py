"""
Domains MCP Server

Main MCP server implementation with support for SSE (HTTP) and stdio modes.

License: Mozilla Public License 2.0
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from . import __version__
from .config import Config
from .core import DomainSearchClient, DomainSearchService, WidgetRegistry
from .protocol import DomainsProtocolServer
from .tools import ToolExecutor
from .transport import SessionManager, SSETransport, StdioTransport
from .transport.sse_handler import MESSAGE_PATH, SSE_PATH

logger = logging.getLogger('domains-mcp-server')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging():
    """
    Configure root logging from the environment.

    Logs always go to stderr (stdout carries the stdio protocol); set
    DOMAINS_MCP_LOG_FILE to also write to a file.
    """
    log_level = os.getenv('MCP_LOG_LEVEL', 'INFO').upper()
    handlers = [logging.StreamHandler(sys.stderr)]

    log_file = os.getenv('DOMAINS_MCP_LOG_FILE')
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


class DomainsMCPServer:
    """
    Domains MCP Server.

    Wires the widget registry, search service and tool executor together and
    serves them over SSE/HTTP (one protocol server per session) or stdio.
    """

    def __init__(self, config_dir: Optional[str] = None, host: Optional[str] = None,
                 port: Optional[int] = None, search_client=None):
        """
        Initialize MCP server.

        Args:
            config_dir: Path to configuration directory (optional)
            host: Host to bind in SSE mode (default: from HOST or 0.0.0.0)
            port: Port for SSE transport (default: from PORT or 8000)
            search_client: Domain search client override (default: built from config)

        Raises:
            StartupFailure: If configuration or widget assets cannot be loaded
        """
        self.config = Config(Path(config_dir)) if config_dir else Config()
        self.host = host or self.config.get_host()
        self.port = port or self.config.get_port()

        self.client = search_client or DomainSearchClient(
            self.config.get_search_url(),
            page_size=self.config.get_search_page_size(),
            timeout=self.config.get_request_timeout(),
            max_workers=self.config.get_max_workers(),
        )

        self.registry = WidgetRegistry.from_config(
            self.config.get_all_widgets(),
            self.config.get_assets_dir(),
        )
        self.search_service = DomainSearchService(self.client, self.config.products)
        self.tool_executor = ToolExecutor(self.registry, self.search_service, self.config)

        self.session_manager = SessionManager(self.create_protocol_server)
        self.session_manager.subscribe(self._log_session_event)
        self.transport = SSETransport(
            self.session_manager,
            keepalive_interval=self.config.get_keepalive_interval(),
        )
        self.sse_server = None

        logger.info(f"Domains MCP Server initialized (version={__version__})")
        logger.info(f"Tools: {len(self.registry.entries)}")

    def create_protocol_server(self) -> DomainsProtocolServer:
        """New protocol server instance sharing this server's catalog and executor"""
        return DomainsProtocolServer(self.registry, self.tool_executor)

    def build_app(self):
        return self.transport.build_app()

    async def run_sse_server(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Run server with SSE (Server-Sent Events) transport.

        Args:
            host: Host to bind to (default: self.host)
            port: Port to listen on (default: self.port)
        """
        import uvicorn

        listen_host = host or self.host
        listen_port = port or self.port

        logger.info(f"Domains MCP server listening on http://{listen_host}:{listen_port}")
        logger.info(f"  SSE stream: GET http://{listen_host}:{listen_port}{SSE_PATH}")
        logger.info(f"  Message post endpoint: POST http://{listen_host}:{listen_port}{MESSAGE_PATH}?sessionId=...")

        config = uvicorn.Config(
            self.build_app(),
            host=listen_host,
            port=listen_port,
            log_level="info",
            access_log=False,
        )
        server = uvicorn.Server(config)
        self.sse_server = server

        await server.serve()

    async def run_stdio(self):
        """Run server over stdin/stdout as a single session"""
        logger.info("Starting Domains MCP Server with stdio transport")
        transport = StdioTransport(self.create_protocol_server())
        await transport.run()

    def close(self):
        """Shutdown server and cleanup resources"""
        logger.info("Shutting down Domains MCP Server")

        if self.sse_server is not None:
            self.sse_server.should_exit = True

        self.session_manager.close_all()
        self.client.close()

    def get_info(self) -> Dict[str, Any]:
        """
        Get server information (for debugging/monitoring).

        Returns:
            Server info dict
        """
        active_sessions = self.session_manager.active_sessions()
        return {
            "version": __version__,
            "active_connections": len(active_sessions),
            "connection_ids": active_sessions,
            "tools": [entry.id for entry in self.registry.entries],
            "testing_mode": self.config.testing_mode,
            "transport": "SSE over Starlette/uvicorn",
        }

    @staticmethod
    def _log_session_event(session, event, previous):
        logger.debug(f"Session {session.session_id}: {previous.value} -> {session.state.value} ({event.value})")
