import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from domains_mcp.config import Config
from domains_mcp.core.models import UpstreamSearchResponse
from domains_mcp.core.registry import WidgetRegistry
from domains_mcp.core.search import DomainSearchService
from domains_mcp.protocol import DomainsProtocolServer
from domains_mcp.tools import ToolExecutor

WIDGET_COMPONENTS = ["domains-list-fullscreen", "products-list", "products-recommend"]


def spins_payload(*priced_domains):
    """Upstream search payload for (fqdn, extension, current price, list price) tuples"""
    return {
        "RecommendedDomains": [
            {
                "Fqdn": fqdn,
                "Extension": extension,
                "IsPremiumTier": False,
                "IsUnpricedAftermarketDomain": False,
                "PriceDisplay": None,
                "ProductId": 101 + index,
            }
            for index, (fqdn, extension, _, _) in enumerate(priced_domains)
        ],
        "Products": [
            {
                "Tld": extension,
                "PriceInfo": {"CurrentPriceDisplay": current, "ListPriceDisplay": listed},
            }
            for _, extension, current, listed in priced_domains
        ],
    }


BAKERY_PAYLOAD = spins_payload(
    ("bakery.com", "com", "$30.00", "$40.00"),
    ("bakery.net", "net", "$10.00", "$15.00"),
    ("bakery.org", "org", "$20.00", "$25.00"),
)


@pytest.fixture
def assets_dir(tmp_path):
    """Directory of stand-in widget bundles"""
    directory = tmp_path / "assets"
    directory.mkdir()
    for component in WIDGET_COMPONENTS:
        (directory / f"{component}.html").write_text(
            f'<div id="{component}-root"></div><script type="module" src="{component}.js"></script>'
        )
    return directory


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def registry(config, assets_dir):
    return WidgetRegistry.from_config(config.get_all_widgets(), assets_dir)


@pytest.fixture
def bakery_payload():
    return BAKERY_PAYLOAD


@pytest.fixture
def search_client(bakery_payload):
    client = MagicMock()
    client.search_spins = AsyncMock(
        return_value=UpstreamSearchResponse.model_validate(bakery_payload)
    )
    return client


@pytest.fixture
def search_service(search_client, config):
    return DomainSearchService(search_client, config.products, rng=random.Random(7))


@pytest.fixture
def executor(registry, search_service, config):
    return ToolExecutor(registry, search_service, config)


@pytest.fixture
def protocol_server(registry, executor):
    return DomainsProtocolServer(registry, executor)


@pytest.fixture
def server_factory(registry, executor):
    return lambda: DomainsProtocolServer(registry, executor)
