"""
SSE Transport for MCP Server

HTTP front door built on Starlette. Clients hold one Server-Sent Events
stream per session and post JSON-RPC messages to a companion endpoint.

Protocol Flow:
1. Client establishes SSE connection: GET /mcp
2. Server replies with an ``endpoint`` event: /mcp/messages?sessionId={id}
3. Client posts MCP messages: POST /mcp/messages?sessionId={id}
4. Server processes each message and pushes the reply as a ``message`` event
5. Connection maintained with periodic keepalive pings

License: Mozilla Public License 2.0
"""

import json
import logging

from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from ..errors import SessionNotFound
from .session_manager import END_OF_STREAM, SessionManager

logger = logging.getLogger(__name__)

SSE_PATH = "/mcp"
MESSAGE_PATH = "/mcp/messages"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "content-type",
}


def _text(body: str, status_code: int) -> Response:
    return PlainTextResponse(
        body,
        status_code=status_code,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Headers": "content-type",
        },
    )


class SSETransport:
    """
    SSE transport implementation for MCP protocol.

    Architecture:
    - GET /mcp: Establishes SSE connection (event stream), one session each
    - POST /mcp/messages?sessionId=...: Receives MCP JSON-RPC messages
    - OPTIONS on both paths: CORS preflight
    """

    def __init__(self, session_manager: SessionManager, keepalive_interval: int = 15):
        """
        Initialize SSE transport.

        Args:
            session_manager: SessionManager owning the session table
            keepalive_interval: Seconds between keepalive pings on idle streams
        """
        self.session_manager = session_manager
        self.keepalive_interval = keepalive_interval

    def build_app(self) -> Starlette:
        """Create the Starlette application serving the MCP endpoints"""
        return Starlette(
            routes=[
                Route(SSE_PATH, endpoint=self.handle_sse_endpoint, methods=["GET"]),
                Route(MESSAGE_PATH, endpoint=self.handle_messages_endpoint, methods=["POST"]),
                Route(SSE_PATH, endpoint=self.handle_preflight, methods=["OPTIONS"]),
                Route(MESSAGE_PATH, endpoint=self.handle_preflight, methods=["OPTIONS"]),
            ]
        )

    async def handle_preflight(self, request: Request) -> Response:
        return Response(status_code=204, headers=CORS_HEADERS)

    async def handle_sse_endpoint(self, request: Request) -> Response:
        """
        Handle GET /mcp - establish SSE connection.

        The stream stays open for the lifetime of the session; the session is
        closed when the client disconnects or the server shuts the stream.
        """
        try:
            session = self.session_manager.open_session()
            await self.session_manager.connect(session)
        except Exception as e:
            logger.error(f"Failed to start SSE session: {e}", exc_info=True)
            return _text("Failed to establish SSE connection", 500)

        session_id = session.session_id
        client = request.client.host if request.client else "unknown"
        logger.info(f"SSE connection established: {session_id} from {client}")

        async def event_stream():
            try:
                yield {"event": "endpoint", "data": f"{MESSAGE_PATH}?sessionId={session_id}"}

                while True:
                    message = await session.outgoing.get()
                    if message is END_OF_STREAM:
                        break
                    yield {"event": "message", "data": json.dumps(message)}
            finally:
                self.session_manager.close_session(session_id)
                logger.info(f"SSE connection closed: {session_id}")

        return EventSourceResponse(
            event_stream(),
            ping=self.keepalive_interval,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )

    async def handle_messages_endpoint(self, request: Request) -> Response:
        """
        Handle POST /mcp/messages?sessionId={id} - receive an MCP message.

        The message is processed before this request completes; the reply is
        delivered on the session's SSE stream.
        """
        session_id = request.query_params.get("sessionId")
        if not session_id:
            return _text("Missing sessionId query parameter", 400)

        try:
            self.session_manager.get_session(session_id)
        except SessionNotFound:
            logger.warning(f"Message received for unknown session: {session_id}")
            return _text("Unknown session", 404)

        try:
            message = await request.json()
        except ValueError as e:
            logger.error(f"Invalid JSON in message from {session_id}: {e}")
            return _text("Invalid JSON body", 400)

        try:
            await self.session_manager.handle_message(session_id, message)
        except SessionNotFound:
            return _text("Unknown session", 404)
        except Exception as e:
            logger.error(f"Failed to process message for {session_id}: {e}", exc_info=True)
            return _text("Failed to process message", 500)

        return _text("Accepted", 202)
