import math
import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from domains_mcp.core.models import UpstreamSearchResponse
from domains_mcp.core.search import (
    DomainSearchService,
    domain_image,
    fallback_result,
    parse_price,
)
from domains_mcp.errors import UpstreamUnavailable

from conftest import spins_payload


def service_for(payload=None, error=None, rng=None, products=None):
    client = MagicMock()
    if error is not None:
        client.search_spins = AsyncMock(side_effect=error)
    else:
        client.search_spins = AsyncMock(return_value=UpstreamSearchResponse.model_validate(payload))
    return DomainSearchService(client, products or {"email": []}, rng=rng or random.Random(1))


@pytest.mark.asyncio
async def test_search_transforms_upstream_domains(search_service, search_client):
    result = await search_service.search("artisan bakery")

    search_client.search_spins.assert_awaited_once_with("artisan bakery")
    assert result.error is None
    assert result.total_results == 3
    assert [d.name for d in result.domains] == ["bakery.com", "bakery.net", "bakery.org"]

    first = result.domains[0]
    assert first.id == "1"
    assert first.price == "$30.00"
    assert first.original_price == "$40.00"
    assert first.tld == ".com"
    assert first.badge == "AVAILABLE"
    assert first.period == "for first year"
    assert first.description == "Perfect for artisan bakery businesses and services"
    assert first.available is True
    assert first.product_id == 101
    assert first.image.startswith("data:image/svg+xml,")


@pytest.mark.asyncio
async def test_search_without_matching_product_prices_at_zero():
    payload = spins_payload(("bakery.shop", "shop", "$3.00", "$9.00"))
    payload["Products"] = []

    result = await service_for(payload).search("bakery")

    assert result.domains[0].price == "$0.00"
    assert result.domains[0].original_price == "$0.00"


@pytest.mark.asyncio
async def test_unpriced_aftermarket_domain_is_premium():
    payload = spins_payload(("bread.com", "com", "$9.00", "$9.00"))
    payload["RecommendedDomains"][0]["IsUnpricedAftermarketDomain"] = True
    payload["RecommendedDomains"][0]["PriceDisplay"] = "$4,500.00"

    offer = (await service_for(payload).search("bread")).domains[0]

    assert offer.badge == "PREMIUM"
    assert offer.is_aftermarket is True
    assert offer.aftermarket_price == "$4,500.00"


@pytest.mark.asyncio
async def test_null_upstream_flags_keep_every_offer():
    payload = spins_payload(
        ("bakery.com", "com", "$30.00", "$40.00"),
        ("bakery.net", "net", "$10.00", "$15.00"),
        ("bakery.shop", "shop", "$5.00", "$9.00"),
    )
    payload["RecommendedDomains"][1]["IsUnpricedAftermarketDomain"] = None
    payload["RecommendedDomains"][2]["Extension"] = None

    result = await service_for(payload).search("bakery")

    assert result.error is None
    assert [d.name for d in result.domains] == ["bakery.com", "bakery.net", "bakery.shop"]
    assert result.domains[1].badge == "AVAILABLE"
    assert result.domains[1].is_aftermarket is False
    assert result.domains[1].price == "$10.00"
    assert result.domains[2].price == "$0.00"


@pytest.mark.asyncio
async def test_empty_upstream_result():
    result = await service_for({}).search("nothing here")

    assert result.domains == []
    assert result.total_results == 0
    assert result.error is None


@pytest.mark.asyncio
async def test_metrics_in_range_and_reproducible(bakery_payload):
    first = await service_for(bakery_payload, rng=random.Random(42)).search("bakery")
    second = await service_for(bakery_payload, rng=random.Random(42)).search("bakery")

    assert [d.metrics for d in first.domains] == [d.metrics for d in second.domains]
    for offer in first.domains:
        assert 3 <= offer.metrics.emotional <= 5
        assert 3 <= offer.metrics.memorable <= 5
        assert 2 <= offer.metrics.popular <= 4


@pytest.mark.asyncio
async def test_upstream_failure_returns_fallback():
    service = service_for(error=UpstreamUnavailable("Domain search API error: 503 Service Unavailable"))

    result = await service.search("My Cool Shop")

    assert result.total_results == 1
    assert result.error == "Domain search API error: 503 Service Unavailable"
    offer = result.domains[0]
    assert offer.name == "mycoolshop.com"
    assert offer.price == "$11.99"
    assert offer.original_price == "$21.99"
    assert offer.tld == ".com"
    assert (offer.metrics.emotional, offer.metrics.memorable, offer.metrics.popular) == (3, 4, 3)


@pytest.mark.asyncio
async def test_unexpected_error_returns_fallback_with_reason():
    result = await service_for(error=TimeoutError()).search("bakery")

    assert result.error == "TimeoutError"
    assert result.domains[0].name == "bakery.com"


@pytest.mark.asyncio
async def test_transform_failure_returns_fallback():
    client = MagicMock()
    client.search_spins = AsyncMock(return_value=None)
    service = DomainSearchService(client, {"email": []})

    result = await service.search("bakery")

    assert result.error
    assert result.total_results == 1


@pytest.mark.asyncio
async def test_search_cheapest_orders_by_price(search_service):
    result = await search_service.search_cheapest("bakery")

    assert [d.price for d in result.domains] == ["$10.00", "$20.00", "$30.00"]
    assert [d.name for d in result.domains] == ["bakery.net", "bakery.org", "bakery.com"]
    assert result.total_results == 3


@pytest.mark.asyncio
async def test_search_cheapest_sorts_unparseable_prices_last():
    payload = spins_payload(
        ("a.com", "com", "$5.00", "$5.00"),
        ("b.net", "net", "Call us", "$5.00"),
        ("c.org", "org", "$1.00", "$5.00"),
        ("d.io", "io", "N/A", "$5.00"),
    )

    result = await service_for(payload).search_cheapest("letters")

    assert [d.name for d in result.domains] == ["c.org", "a.com", "b.net", "d.io"]


@pytest.mark.asyncio
async def test_search_cheapest_keeps_fallback_error():
    result = await service_for(error=UpstreamUnavailable("down")).search_cheapest("bakery")

    assert result.error == "down"
    assert result.total_results == 1


def test_parse_price():
    assert parse_price("$11.99") == 11.99
    assert parse_price("€1,299.00") == 1299.0
    assert parse_price("") == math.inf
    assert parse_price("free") == math.inf
    assert parse_price("nan") == math.inf


def test_fallback_result_payload_shape():
    payload = fallback_result("coffee", "boom").to_payload()

    assert payload["searchKeywords"] == "coffee"
    assert payload["totalResults"] == 1
    assert payload["error"] == "boom"
    assert payload["domains"][0]["originalPrice"] == "$21.99"
    assert "isPremium" not in payload["domains"][0]


def test_domain_image_uses_tld_colour():
    image = domain_image("io")

    assert "%237c3aed" in image
    assert ".io%3C/text%3E" in image
    assert "%236b7280" in domain_image("xyz")


def test_recommend_products_by_category(search_service):
    for category in ("email", "website", "ssl-security"):
        result = search_service.recommend_products(category)
        assert result.category == category
        assert result.total_results == len(result.products) > 0
        assert all(p.category == category for p in result.products)


def test_recommend_products_unknown_category_uses_email(search_service):
    assert search_service.recommend_products("hosting") == search_service.recommend_products("email")


def test_list_products(search_service):
    everything = search_service.list_products()
    assert everything.category is None
    assert everything.total_results == 9

    website = search_service.list_products("website")
    assert website.category == "website"
    assert website.total_results == 3

    assert search_service.list_products("hosting").total_results == 9


def test_product_tables_require_email_category():
    with pytest.raises(ValueError, match="email"):
        DomainSearchService(MagicMock(), {"website": []})
