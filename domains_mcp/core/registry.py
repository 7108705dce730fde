"""
Widget Registry

Static catalog of the tools and widget resources this server offers. Built
once at startup from the widget configuration; every widget HTML bundle is
loaded eagerly so that a half-built catalog is never served.

License: Mozilla Public License 2.0
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from mcp.types import (
    ReadResourceResult,
    Resource,
    ResourceTemplate,
    TextResourceContents,
    Tool,
    ToolAnnotations,
)

from ..errors import StartupFailure, UnknownResource, UnknownTool

logger = logging.getLogger(__name__)

WIDGET_MIME_TYPE = "text/html+skybridge"

DOMAIN_TOOL_DESCRIPTION = (
    "Search for domain names based on user's business idea or request. "
    "Pass the user's exact words in the 'keywords' parameter to preserve context."
)
PRODUCT_TOOL_DESCRIPTION = (
    "Find and recommend GoDaddy products and services based on user's business needs. "
    "Pass the user's exact words in the 'keywords' and 'category' parameter to preserve context."
)
GENERIC_TOOL_DESCRIPTION = (
    "Search for GoDaddy services based on user's business idea or request. "
    "Pass the user's exact words in the 'keywords' parameter to preserve context."
)

TOOL_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "keywords": {
            "type": "string",
            "description": "The user's original request or query (preserve the exact wording to analyze context)",
        },
        "domainName": {
            "type": "string",
            "description": "Specific domain to check, e.g., mybrand.com. Optional - if not provided, will search for available domains",
        },
        "businessType": {
            "type": "string",
            "description": "Type of business (e.g., 'restaurant', 'e-commerce', 'blog', 'portfolio')",
        },
        "targetAudience": {
            "type": "string",
            "description": "Target audience or market (e.g., 'local customers', 'global', 'B2B', 'B2C')",
        },
        "budget": {
            "type": "string",
            "description": "Budget range for domain (e.g., 'under $10', 'premium', 'any')",
        },
        "category": {
            "type": "string",
            "description": "Product category to recommend or show (e.g., 'email', 'website', 'ssl-security')",
        },
    },
    "required": ["keywords"],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class CatalogEntry:
    """One tool together with the widget template that renders its result"""
    id: str
    title: str
    template_uri: str
    invoking: str
    invoked: str
    html: str
    response_text: str
    role: str
    component: str = ""

    def meta(self) -> Dict[str, Any]:
        """UI-binding hints consumed by the client renderer"""
        return {
            "openai/outputTemplate": self.template_uri,
            "openai/toolInvocation/invoking": self.invoking,
            "openai/toolInvocation/invoked": self.invoked,
            "openai/widgetAccessible": True,
            "openai/resultCanProduceWidget": True,
        }


def load_widget_html(assets_dir: Path, component: str) -> str:
    """
    Read the built HTML bundle for a widget component.

    Prefers ``<component>.html``; otherwise takes the newest hashed build
    (``<component>-<hash>.html``, last in sort order).

    Raises:
        StartupFailure: If the assets directory or the bundle is missing
    """
    assets_dir = Path(assets_dir)
    if not assets_dir.is_dir():
        raise StartupFailure(
            f"Widget assets not found. Expected directory {assets_dir}. "
            "Build the widget bundles before starting the server."
        )

    direct_path = assets_dir / f"{component}.html"
    if direct_path.is_file():
        html = direct_path.read_text(encoding="utf-8")
    else:
        candidates = sorted(assets_dir.glob(f"{component}-*.html"))
        html = candidates[-1].read_text(encoding="utf-8") if candidates else ""

    if not html:
        raise StartupFailure(
            f"Widget HTML for '{component}' not found in {assets_dir}. "
            "Build the widget bundles to generate the assets."
        )
    return html


class WidgetRegistry:
    """
    Catalog lookups and MCP descriptors for tools and widget resources.
    """

    def __init__(self, entries: List[CatalogEntry]):
        self.entries: List[CatalogEntry] = list(entries)
        self._by_id: Dict[str, CatalogEntry] = {}
        self._by_uri: Dict[str, CatalogEntry] = {}

        for entry in self.entries:
            if entry.id in self._by_id:
                raise StartupFailure(f"Duplicate widget id: {entry.id}")
            self._by_id[entry.id] = entry
            # Entries may share a template; the last one registered answers reads.
            self._by_uri[entry.template_uri] = entry

        logger.info(f"Widget registry ready with {len(self.entries)} entries")

    @classmethod
    def from_config(cls, widget_configs: List[Any], assets_dir: Path) -> "WidgetRegistry":
        """
        Build the registry, loading every widget bundle from ``assets_dir``.

        Args:
            widget_configs: WidgetConfig objects from configuration
            assets_dir: Directory containing the built widget HTML

        Raises:
            StartupFailure: If any widget bundle cannot be loaded
        """
        html_cache: Dict[str, str] = {}
        entries = []

        for widget in widget_configs:
            if widget.component not in html_cache:
                html_cache[widget.component] = load_widget_html(assets_dir, widget.component)

            entries.append(CatalogEntry(
                id=widget.id,
                title=widget.title,
                template_uri=widget.template_uri,
                invoking=widget.invoking,
                invoked=widget.invoked,
                html=html_cache[widget.component],
                response_text=widget.response_text,
                role=widget.role,
                component=widget.component,
            ))
            logger.debug(f"Registered widget: {widget.id} -> {widget.template_uri}")

        return cls(entries)

    def get_entry(self, entry_id: str) -> CatalogEntry:
        """Catalog entry for a tool name"""
        entry = self._by_id.get(entry_id)
        if entry is None:
            raise UnknownTool(entry_id)
        return entry

    def read_resource(self, uri: str) -> str:
        """Widget HTML served at a template URI"""
        return self._entry_for_uri(uri).html

    def resource_contents(self, uri: str) -> ReadResourceResult:
        """Resource read result for a widget template"""
        entry = self._entry_for_uri(uri)
        return ReadResourceResult(contents=[
            TextResourceContents(
                uri=entry.template_uri,
                mimeType=WIDGET_MIME_TYPE,
                text=entry.html,
                _meta=entry.meta(),
            )
        ])

    def list_tools(self) -> List[Tool]:
        """MCP tool descriptors, one per catalog entry"""
        tools = []
        for entry in self.entries:
            tools.append(Tool(
                name=entry.id,
                title=entry.title,
                description=self._describe(entry.id),
                inputSchema=TOOL_INPUT_SCHEMA,
                annotations=ToolAnnotations(
                    destructiveHint=False,
                    openWorldHint=False,
                    readOnlyHint=True,
                ),
                _meta=entry.meta(),
            ))

        logger.debug(f"Generated {len(tools)} tools")
        return tools

    def list_resources(self) -> List[Resource]:
        """Widget templates as MCP resources"""
        return [
            Resource(
                uri=entry.template_uri,
                name=entry.title,
                description=f"{entry.title} widget markup",
                mimeType=WIDGET_MIME_TYPE,
                _meta=entry.meta(),
            )
            for entry in self.entries
        ]

    def list_resource_templates(self) -> List[ResourceTemplate]:
        """Widget templates as MCP resource templates"""
        return [
            ResourceTemplate(
                uriTemplate=entry.template_uri,
                name=entry.title,
                description=f"{entry.title} widget markup",
                mimeType=WIDGET_MIME_TYPE,
                _meta=entry.meta(),
            )
            for entry in self.entries
        ]

    def _entry_for_uri(self, uri: str) -> CatalogEntry:
        entry = self._by_uri.get(str(uri))
        if entry is None:
            raise UnknownResource(str(uri))
        return entry

    @staticmethod
    def _describe(entry_id: str) -> str:
        if "domain" in entry_id:
            return DOMAIN_TOOL_DESCRIPTION
        elif "product" in entry_id:
            return PRODUCT_TOOL_DESCRIPTION
        return GENERIC_TOOL_DESCRIPTION
