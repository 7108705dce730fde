"""
MCP Protocol Server

JSON-RPC request routing for one client session. Each connected client gets
its own instance, bound to the transport that carries its replies; the
catalog and tool executor behind it are shared.

License: Mozilla Public License 2.0
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    Implementation,
    InitializeResult,
    ListResourcesResult,
    ListResourceTemplatesResult,
    ListToolsResult,
    ResourcesCapability,
    ServerCapabilities,
    ToolsCapability,
)

from . import __version__
from .errors import DomainsMCPError, InvalidArguments

logger = logging.getLogger(__name__)

SERVER_NAME = "domains-node"

SendCallable = Callable[[Dict[str, Any]], Awaitable[None]]


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


def error_response(msg_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": msg_id,
        "error": {
            "code": code,
            "message": message,
        },
    }


class DomainsProtocolServer:
    """
    MCP server instance for a single session.

    Lifecycle: ``connect()`` binds the outbound transport (the session
    handshake), ``handle_message()`` answers requests, ``close()`` releases it.
    """

    def __init__(self, registry, tool_executor):
        """
        Initialize protocol server.

        Args:
            registry: WidgetRegistry instance
            tool_executor: ToolExecutor instance
        """
        self.registry = registry
        self.tool_executor = tool_executor

        self._send: Optional[SendCallable] = None
        self.closed = False
        self.initialized = False
        self.client_info: Optional[Dict[str, Any]] = None

        self._handlers = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/templates/list": self._list_resource_templates,
            "resources/read": self._read_resource,
        }

    @property
    def connected(self) -> bool:
        return self._send is not None and not self.closed

    async def connect(self, send: SendCallable):
        """
        Bind this server to its transport.

        Raises:
            RuntimeError: If the server is already connected or has been closed
        """
        if self.closed:
            raise RuntimeError("Protocol server has been closed")
        if self._send is not None:
            raise RuntimeError("Protocol server is already connected")

        self._send = send
        logger.debug("Protocol server connected to transport")

    async def send(self, message: Dict[str, Any]):
        """Push a message to the client through the bound transport"""
        if not self.connected:
            raise RuntimeError("Protocol server is not connected")
        await self._send(message)

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._send = None
        logger.debug("Protocol server closed")

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Process one incoming JSON-RPC message.

        Args:
            message: Decoded JSON-RPC message from the client

        Returns:
            JSON-RPC response, or None for notifications and client responses
        """
        if not isinstance(message, dict) or message.get("jsonrpc") != "2.0":
            return error_response(None, INVALID_REQUEST, "Invalid JSON-RPC message")

        method = message.get("method")
        msg_id = message.get("id")

        if method is None:
            # Response to a server-initiated request; this server never sends any.
            logger.debug(f"Ignoring client response for id={msg_id}")
            return None

        if not isinstance(method, str):
            return error_response(msg_id, INVALID_REQUEST, "Method must be a string")

        if "id" not in message:
            self._handle_notification(method)
            return None

        params = message.get("params") or {}
        if not isinstance(params, dict):
            return error_response(msg_id, INVALID_PARAMS, "Params must be an object")

        logger.debug(f"Processing MCP method: {method}")

        handler = self._handlers.get(method)
        if handler is None:
            return error_response(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")

        try:
            result = await handler(params)
        except DomainsMCPError as e:
            logger.warning(f"{method} failed: {e.message}")
            return error_response(msg_id, e.code, e.message)
        except Exception as e:
            logger.error(f"Error processing {method}: {e}", exc_info=True)
            return error_response(msg_id, INTERNAL_ERROR, f"Internal error: {e}")

        return {
            "jsonrpc": "2.0",
            "id": msg_id,
            "result": result,
        }

    def _handle_notification(self, method: str):
        if method == "notifications/initialized":
            self.initialized = True
            logger.debug("Client initialization complete")
        else:
            logger.debug(f"Ignoring notification: {method}")

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        self.client_info = params.get("clientInfo")

        logger.info(f"Initialize from client {self.client_info} (protocol {version})")

        return _dump(InitializeResult(
            protocolVersion=version,
            capabilities=ServerCapabilities(
                tools=ToolsCapability(listChanged=False),
                resources=ResourcesCapability(subscribe=False, listChanged=False),
            ),
            serverInfo=Implementation(name=SERVER_NAME, version=__version__),
        ))

    async def _ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _dump(ListToolsResult(tools=self.registry.list_tools()))

    async def _call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidArguments("Tool name is required")

        result = await self.tool_executor.execute_tool(name, params.get("arguments"))
        return _dump(result)

    async def _list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _dump(ListResourcesResult(resources=self.registry.list_resources()))

    async def _list_resource_templates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return _dump(ListResourceTemplatesResult(
            resourceTemplates=self.registry.list_resource_templates()
        ))

    async def _read_resource(self, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise InvalidArguments("Resource uri is required")

        return _dump(self.registry.resource_contents(uri))
