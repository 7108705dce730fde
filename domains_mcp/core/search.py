"""
Domain Search Service

Turns upstream domain suggestions into widget-ready search results and serves
the static product plan tables.

License: Mozilla Public License 2.0
"""

import logging
import math
import random
import re
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .models import (
    DomainMetrics,
    DomainOffer,
    ProductCatalogResult,
    ProductOffer,
    SearchResult,
    UpstreamSearchResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "email"
ZERO_PRICE = "$0.00"
OFFER_PERIOD = "for first year"

TLD_COLORS = {
    'com': '#1e40af',
    'net': '#059669',
    'org': '#dc2626',
    'io': '#7c3aed',
    'co': '#ea580c',
    'info': '#0891b2',
    'services': '#be185d',
    'life': '#16a34a',
    'online': '#9333ea',
}
DEFAULT_TLD_COLOR = '#6b7280'

_LEADING_SYMBOLS = re.compile(r"^[^\d+\-.]+")


def domain_image(tld: str) -> str:
    """Inline SVG card (data URI) showing the TLD on its brand colour"""
    color = TLD_COLORS.get(tld, DEFAULT_TLD_COLOR)
    return (
        "data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='280' height='140'%3E"
        f"%3Crect fill='{quote(color, safe='')}' width='280' height='140'/%3E"
        "%3Ctext x='50%25' y='50%25' dominant-baseline='middle' text-anchor='middle' "
        "font-family='system-ui, sans-serif' font-size='28' font-weight='600' fill='white'%3E"
        f".{tld}%3C/text%3E%3C/svg%3E"
    )


def parse_price(price: str) -> float:
    """
    Numeric value of a display price such as "$11.99".

    Unparseable prices map to +inf so that they sort after every priced offer.
    """
    cleaned = _LEADING_SYMBOLS.sub("", (price or "").strip()).replace(",", "")
    try:
        value = float(cleaned)
    except ValueError:
        return math.inf
    return math.inf if math.isnan(value) else value


def fallback_result(keywords: str, error: str) -> SearchResult:
    """Single synthetic .com offer used when the search API is unavailable"""
    slug = re.sub(r"\s+", "", keywords).lower()
    offer = DomainOffer(
        id="1",
        name=f"{slug}.com",
        price="$11.99",
        original_price="$21.99",
        period=OFFER_PERIOD,
        description=f"Perfect for {keywords} businesses and services",
        badge="AVAILABLE",
        tld=".com",
        available=True,
        image=domain_image("com"),
        metrics=DomainMetrics(emotional=3, memorable=4, popular=3),
    )
    return SearchResult(
        domains=[offer],
        search_keywords=keywords,
        total_results=1,
        error=error,
    )


class DomainSearchService:
    """
    Domain search and product recommendation actions behind the tools.

    ``search`` never raises: any upstream or transform failure is logged and
    answered with a degraded fallback result carrying the failure in ``error``.
    """

    def __init__(self, client, products: Dict[str, List[Dict[str, Any]]],
                 rng: Optional[random.Random] = None):
        """
        Initialize search service.

        Args:
            client: DomainSearchClient instance
            products: Product plan tables keyed by category (from products.yaml)
            rng: Random source for engagement metrics (default: OS-seeded)
        """
        self.client = client
        self.rng = rng or random.Random()
        self.products: Dict[str, List[ProductOffer]] = {
            category: [ProductOffer.model_validate(item) for item in items]
            for category, items in products.items()
        }

        if DEFAULT_CATEGORY not in self.products:
            raise ValueError(f"Product tables must include the '{DEFAULT_CATEGORY}' category")

    async def search(self, keywords: str) -> SearchResult:
        """
        Search domains for the given keywords.

        Args:
            keywords: User's request, passed upstream verbatim

        Returns:
            SearchResult, possibly the fallback with ``error`` set
        """
        try:
            response = await self.client.search_spins(keywords)
            logger.debug(f"[DomainSearch] API response received for '{keywords}'")
            result = self._transform(keywords, response)
        except Exception as e:
            logger.error(f"[DomainSearch] Error calling domain search API: {e}")
            return fallback_result(keywords, str(e) or type(e).__name__)

        logger.info(f"[DomainSearch] Transformed {result.total_results} domains for '{keywords}'")
        return result

    async def search_cheapest(self, keywords: str) -> SearchResult:
        """Search domains and order them by ascending price (stable for ties)"""
        result = await self.search(keywords)
        domains = sorted(result.domains, key=lambda offer: parse_price(offer.price))
        return result.model_copy(update={"domains": domains})

    def recommend_products(self, category: str = DEFAULT_CATEGORY) -> ProductCatalogResult:
        """
        Product plans for one category.

        Unknown categories are answered with the email plans.
        """
        logger.info(f"[ProductRecommend] Loading recommendations for category: '{category}'")

        if category not in self.products:
            logger.debug(f"[ProductRecommend] Unknown category '{category}', using '{DEFAULT_CATEGORY}'")
            category = DEFAULT_CATEGORY

        products = list(self.products[category])
        return ProductCatalogResult(
            products=products,
            category=category,
            total_results=len(products),
        )

    def list_products(self, category: Optional[str] = None) -> ProductCatalogResult:
        """All product plans, or only those of ``category`` when it is a known one"""
        if category in self.products:
            products = list(self.products[category])
        else:
            category = None
            products = [offer for items in self.products.values() for offer in items]

        return ProductCatalogResult(
            products=products,
            category=category,
            total_results=len(products),
        )

    def _transform(self, keywords: str, response: UpstreamSearchResponse) -> SearchResult:
        domains = []

        for index, domain in enumerate(response.recommended_domains or []):
            product = response.find_product(domain.extension)
            price_info = product.price_info if product else None

            domains.append(DomainOffer(
                id=str(index + 1),
                name=domain.fqdn,
                price=(price_info and price_info.current_price_display) or ZERO_PRICE,
                original_price=(price_info and price_info.list_price_display) or ZERO_PRICE,
                period=OFFER_PERIOD,
                description=f"Perfect for {keywords} businesses and services",
                badge="PREMIUM" if domain.is_unpriced_aftermarket_domain else "AVAILABLE",
                tld=f".{domain.extension}",
                available=True,
                image=domain_image(domain.extension),
                metrics=self._metrics(),
                is_premium=domain.is_premium_tier,
                is_aftermarket=domain.is_unpriced_aftermarket_domain,
                aftermarket_price=domain.price_display,
                product_id=domain.product_id,
            ))

        return SearchResult(
            domains=domains,
            search_keywords=keywords,
            total_results=len(domains),
        )

    def _metrics(self) -> DomainMetrics:
        # Presentation heuristics for the widget star ratings; not derived from any real signal.
        return DomainMetrics(
            emotional=self.rng.randint(3, 5),
            memorable=self.rng.randint(3, 5),
            popular=self.rng.randint(2, 4),
        )
