"""
Typed data model for search results and the upstream search payload

Upstream models mirror the PascalCase JSON returned by the domain search API;
every field is optional and unknown fields are ignored, so a partial payload
degrades to defaults instead of failing deep inside the transform.

Result models serialize with camelCase aliases, which is the shape the widgets
read from ``structuredContent``.

License: Mozilla Public License 2.0
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# --- Upstream payload ---------------------------------------------------------

class UpstreamModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class UpstreamPriceInfo(UpstreamModel):
    current_price_display: Optional[str] = Field(default=None, alias="CurrentPriceDisplay")
    list_price_display: Optional[str] = Field(default=None, alias="ListPriceDisplay")


class UpstreamProduct(UpstreamModel):
    tld: Optional[str] = Field(default=None, alias="Tld")
    price_info: Optional[UpstreamPriceInfo] = Field(default=None, alias="PriceInfo")


class UpstreamDomain(UpstreamModel):
    fqdn: str = Field(alias="Fqdn")
    extension: str = Field(default="", alias="Extension")
    is_premium_tier: Optional[bool] = Field(default=None, alias="IsPremiumTier")
    is_unpriced_aftermarket_domain: bool = Field(default=False, alias="IsUnpricedAftermarketDomain")
    price_display: Optional[str] = Field(default=None, alias="PriceDisplay")
    product_id: Optional[Union[int, str]] = Field(default=None, alias="ProductId")

    @field_validator("extension", "is_unpriced_aftermarket_domain", mode="before")
    @classmethod
    def _null_as_default(cls, value, info):
        # Upstream sends explicit nulls for flags it has not computed.
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class UpstreamSearchResponse(UpstreamModel):
    recommended_domains: Optional[List[UpstreamDomain]] = Field(default=None, alias="RecommendedDomains")
    products: Optional[List[UpstreamProduct]] = Field(default=None, alias="Products")

    def find_product(self, tld: str) -> Optional[UpstreamProduct]:
        """First pricing entry whose TLD matches the given extension"""
        for product in self.products or []:
            if product.tld == tld:
                return product
        return None


# --- Results ------------------------------------------------------------------

class ResultModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        """JSON-ready dict with camelCase keys and unset optionals dropped"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DomainMetrics(ResultModel):
    emotional: int
    memorable: int
    popular: int


class DomainOffer(ResultModel):
    id: str
    name: str
    price: str
    original_price: str
    period: str
    description: str
    badge: str
    tld: str
    available: bool
    image: str
    metrics: DomainMetrics
    is_premium: Optional[bool] = None
    is_aftermarket: Optional[bool] = None
    aftermarket_price: Optional[str] = None
    product_id: Optional[Union[int, str]] = None


class SearchResult(ResultModel):
    domains: List[DomainOffer]
    search_keywords: str
    total_results: int
    error: Optional[str] = None


class ProductOffer(ResultModel):
    id: str
    category: str
    name: str
    description: str
    price: str
    period: str
    original_price: str
    tags: List[str] = Field(default_factory=list)
    learn_more_url: str
    icon: str
    visual: str
    features: List[str] = Field(default_factory=list)
    storage: Optional[str] = None
    savings: Optional[str] = None
    badge: Optional[str] = None


class ProductCatalogResult(ResultModel):
    products: List[ProductOffer]
    category: Optional[str] = None
    total_results: int
