"""
Configuration management for the Domains MCP Server

Loads the widget catalog and product tables from YAML files and reads
runtime settings from environment variables.

License: Mozilla Public License 2.0
"""

import os
import yaml
import logging
from typing import Dict, List, Any, Optional
from pathlib import Path

from ..errors import StartupFailure

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8000
DEFAULT_SEARCH_URL = "https://entourage.prod.aws.godaddy.com/v1/search/spins"

WIDGET_ROLES = (
    "domain_search",
    "cheap_domain_search",
    "product_recommendation",
    "product_listing",
)


class WidgetConfig:
    """Configuration for a catalog entry (one tool plus its widget resource)"""

    def __init__(self, data: Dict[str, Any]):
        try:
            self.id = data['id']
            self.title = data['title']
            self.template_uri = data['template_uri']
            self.component = data['component']
            self.invoking = data['invoking']
            self.invoked = data['invoked']
            self.response_text = data['response_text']
        except KeyError as e:
            raise StartupFailure(f"Widget definition missing field {e}: {data}")

        self.role = data.get('role', 'domain_search')
        if self.role not in WIDGET_ROLES:
            raise StartupFailure(f"Widget '{self.id}' has unknown role: {self.role}")

    def __repr__(self):
        return f"WidgetConfig(id={self.id}, role={self.role})"


class Config:
    """Main configuration manager"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_dir: Path to configuration directory. If None, uses default location.

        Raises:
            StartupFailure: If a configuration file is missing or malformed
        """
        if config_dir is None:
            config_dir = Path(__file__).parent

        self.config_dir = Path(config_dir)
        self.widgets: List[WidgetConfig] = []
        self.products: Dict[str, List[Dict[str, Any]]] = {}
        self.testing_mode: bool = False

        self._load_widgets_config()
        self._load_products_config()

    def _read_yaml(self, filename: str) -> Dict[str, Any]:
        path = self.config_dir / filename

        if not path.exists():
            raise StartupFailure(f"Configuration file not found: {path}")

        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f"Failed to parse {path}: {e}")
            raise StartupFailure(f"Invalid YAML in {path}: {e}")

        if not isinstance(data, dict):
            raise StartupFailure(f"Expected a mapping at the top of {path}")
        return data

    def _load_widgets_config(self):
        """Load the widget catalog from widgets.yaml"""
        config = self._read_yaml("widgets.yaml")

        self.testing_mode = bool(config.get('testing', False))

        for widget_data in config.get('widgets', []):
            self.widgets.append(WidgetConfig(widget_data))

        logger.debug(f"Loaded {len(self.widgets)} widget configurations")
        if self.testing_mode:
            logger.info("Testing mode ENABLED - detailed tool execution logs will be shown")

    def _load_products_config(self):
        """Load the static product tables from products.yaml"""
        config = self._read_yaml("products.yaml")

        products = config.get('products') or {}
        if not isinstance(products, dict):
            raise StartupFailure("products.yaml: 'products' must map category to a list")

        self.products = products
        logger.debug(f"Loaded product tables for categories: {', '.join(products)}")

    def get_all_widgets(self) -> List[WidgetConfig]:
        """Get all widget configurations"""
        return self.widgets

    def get_port(self) -> int:
        """Get listen port from environment (default: 8000)"""
        return _env_int("PORT", DEFAULT_PORT)

    def get_host(self) -> str:
        """Get bind host from environment (default: 0.0.0.0)"""
        return os.getenv("HOST", "0.0.0.0")

    def get_search_url(self) -> str:
        """Get the domain search endpoint"""
        return os.getenv("DOMAINS_SEARCH_URL", DEFAULT_SEARCH_URL)

    def get_search_page_size(self) -> int:
        """Get the page size sent to the search API (default: 5)"""
        return _env_int("DOMAINS_SEARCH_PAGE_SIZE", 5)

    def get_request_timeout(self) -> float:
        """Get upstream request timeout in seconds (default: 5)"""
        timeout_env = os.getenv("DOMAINS_SEARCH_TIMEOUT")
        if timeout_env:
            try:
                return float(timeout_env)
            except ValueError:
                logger.warning(f"Ignoring non-numeric DOMAINS_SEARCH_TIMEOUT={timeout_env!r}")
        return 5.0

    def get_max_workers(self) -> int:
        """Get max workers from environment (default: 10)"""
        return _env_int("DOMAINS_MAX_WORKERS", 10)

    def get_keepalive_interval(self) -> int:
        """Get SSE keepalive ping interval in seconds (default: 15)"""
        return _env_int("DOMAINS_SSE_KEEPALIVE", 15)

    def get_assets_dir(self) -> Path:
        """Get the directory holding the built widget HTML bundles"""
        assets_env = os.getenv("DOMAINS_MCP_ASSETS_DIR")
        if assets_env:
            return Path(assets_env)
        return Path(__file__).resolve().parents[2] / "assets"

    def __repr__(self):
        return f"Config(widgets={len(self.widgets)}, categories={len(self.products)})"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-numeric {name}={value!r}, using {default}")
        return default
