"""
Domains MCP Server

Provides an MCP (Model Context Protocol) interface to domain search and
product recommendations, with widget templates for rendering the results.

License: Mozilla Public License 2.0
"""

__version__ = "0.1.0"

from .config import Config, WidgetConfig
from .server import DomainsMCPServer

__all__ = [
    'Config',
    'WidgetConfig',
    'DomainsMCPServer',
    '__version__',
]
