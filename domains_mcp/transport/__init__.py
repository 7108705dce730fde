"""
MCP Transport Layer

Transport implementations for the Domains MCP Server: an SSE/HTTP front door
backed by the session manager, and a single-session stdio transport.

License: Mozilla Public License 2.0
"""

from .session_manager import Session, SessionEvent, SessionManager, SessionState
from .sse_handler import SSETransport
from .stdio import StdioTransport

__all__ = [
    'Session',
    'SessionEvent',
    'SessionManager',
    'SessionState',
    'SSETransport',
    'StdioTransport',
]
