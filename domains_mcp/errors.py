"""
Error taxonomy for the Domains MCP Server

Protocol-facing errors carry the JSON-RPC error code they are reported with.
Transport-level and startup errors are translated at their own boundaries.

License: Mozilla Public License 2.0
"""

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS

# MCP reserves -32002 for "resource not found"; unknown tools share it so that
# clients can tell a missing capability apart from bad input to a real one.
NOT_FOUND = -32002


class DomainsMCPError(Exception):
    """Base class for all server errors"""

    code = INTERNAL_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArguments(DomainsMCPError):
    """Tool call arguments failed validation"""

    code = INVALID_PARAMS


class UnknownTool(DomainsMCPError):
    """No catalog entry matches the requested tool name"""

    code = NOT_FOUND

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class UnknownResource(DomainsMCPError):
    """No catalog entry matches the requested resource URI"""

    code = NOT_FOUND

    def __init__(self, uri: str):
        super().__init__(f"Unknown resource: {uri}")
        self.uri = uri


class SessionNotFound(DomainsMCPError):
    """Session id is unknown or the session has already closed"""

    def __init__(self, session_id: str):
        super().__init__(f"Unknown session: {session_id}")
        self.session_id = session_id


class UpstreamUnavailable(DomainsMCPError):
    """Domain search API call failed (network, timeout, bad status or payload)"""


class StartupFailure(DomainsMCPError):
    """Static configuration or widget assets could not be loaded"""


class InvalidSessionTransition(DomainsMCPError):
    """Session lifecycle event is not valid in the current state"""
