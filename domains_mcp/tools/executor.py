"""
Tool Executor

Validates tool arguments, runs the backend action for the requested widget
and packages the result in the MCP tool-call envelope.

License: Mozilla Public License 2.0
"""

import json
import logging
from typing import Any, Dict, Optional

from mcp.types import CallToolResult, TextContent
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import InvalidArguments

logger = logging.getLogger(__name__)


class ToolArguments(BaseModel):
    """Arguments accepted by every tool (mirrors the published input schema)"""
    model_config = ConfigDict(extra="forbid")

    keywords: str = Field(min_length=1)
    domainName: Optional[str] = None
    businessType: Optional[str] = None
    targetAudience: Optional[str] = None
    budget: Optional[str] = None
    category: Optional[str] = None


class ToolExecutor:
    """
    Executes catalog tools against the search service and formats responses.
    """

    def __init__(self, registry, search_service, config):
        """
        Initialize tool executor.

        Args:
            registry: WidgetRegistry instance
            search_service: DomainSearchService instance
            config: Config instance
        """
        self.registry = registry
        self.search_service = search_service
        self.config = config

    async def execute_tool(self, name: str, arguments: Any) -> CallToolResult:
        """
        Execute a tool by name with given arguments.

        Args:
            name: Tool name (catalog entry id)
            arguments: Raw tool arguments from the client

        Returns:
            CallToolResult with a text summary, structured result and widget metadata

        Raises:
            InvalidArguments: If the arguments do not match the input schema
            UnknownTool: If no catalog entry has this name
        """
        if self.config.testing_mode:
            logger.info(f"[TESTING] Tool '{name}' called")
            logger.info(f"[TESTING] Input arguments: {json.dumps(arguments, indent=2, default=str)}")
        else:
            logger.debug(f"Executing tool '{name}' with arguments: {arguments}")

        args = self._validate(arguments)
        entry = self.registry.get_entry(name)

        if entry.role == "product_recommendation":
            result = self.search_service.recommend_products(args.category or "email")
            summary = (f"{entry.response_text} Found {result.total_results} recommended plans "
                       f"for {result.category} products")
        elif entry.role == "product_listing":
            result = self.search_service.list_products(args.category)
            summary = f"{entry.response_text} Found {result.total_results} products"
        else:
            if entry.role == "cheap_domain_search":
                result = await self.search_service.search_cheapest(args.keywords)
            else:
                result = await self.search_service.search(args.keywords)
            summary = f'{entry.response_text} Found {result.total_results} domains for "{args.keywords}"'

        payload = result.to_payload()

        if self.config.testing_mode:
            logger.info(f"[TESTING] Final response for '{name}': {json.dumps(payload)[:500]}...")

        return CallToolResult(
            content=[TextContent(type="text", text=summary)],
            structuredContent=payload,
            _meta=entry.meta(),
        )

    @staticmethod
    def _validate(arguments: Any) -> ToolArguments:
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidArguments("Tool arguments must be an object")

        try:
            return ToolArguments.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or 'arguments'}: {error['msg']}"
                for error in e.errors()
            )
            raise InvalidArguments(f"Invalid arguments: {problems}")
