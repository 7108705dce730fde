"""
Tool execution for the Domains MCP Server

License: Mozilla Public License 2.0
"""

from .executor import ToolArguments, ToolExecutor

__all__ = ['ToolArguments', 'ToolExecutor']
