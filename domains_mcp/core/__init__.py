"""
Core components for the Domains MCP Server

License: Mozilla Public License 2.0
"""

from .client import DomainSearchClient
from .registry import CatalogEntry, WidgetRegistry
from .search import DomainSearchService

__all__ = ['DomainSearchClient', 'CatalogEntry', 'WidgetRegistry', 'DomainSearchService']
