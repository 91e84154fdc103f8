"""HasData Zillow scraper connector.

Endpoint: /listing, queried twice per property: ``type=forSale`` for the
listing itself (rentZestimate, photos), then ``type=forRent`` in the same
city/zip for rental comps of similar size.
"""

from __future__ import annotations

import logging
import math
import os
from typing import Any

import httpx

from ..models import NormalizedProperty
from ..normalize import coerce_non_negative, extract_photos
from ..throttle import RateLimiter
from .base import HttpConnector, ListingLookup, ListingProvider, LookupFailure
from .rentcast import full_address

log = logging.getLogger(__name__)

# Search band around price and square footage
_BAND = 0.2


def _records(data: Any) -> list[dict[str, Any]]:
    """The API returns either one ``property`` or a ``properties`` list."""
    if not isinstance(data, dict):
        return []
    items = data.get("properties")
    if isinstance(items, list):
        return [i for i in items if isinstance(i, dict)]
    single = data.get("property")
    return [single] if isinstance(single, dict) else []


class ZillowListingConnector(HttpConnector, ListingProvider):
    """
    Connector for the HasData Zillow listing API.
    https://docs.hasdata.com/apis/zillow/listing
    """

    provider = "hasdata_zillow"
    api_key_env = "HASDATA_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.hasdata.com/scrape/zillow",
        timeout_s: float = 15.0,
        limiter: RateLimiter | None = None,
        min_interval_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key=api_key or os.environ.get(self.api_key_env, ""),
            base_url=base_url,
            timeout_s=timeout_s,
            limiter=limiter,
            min_interval_s=min_interval_s,
            transport=transport,
        )

    @property
    def source_name(self) -> str:
        return self.provider

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key, "Content-Type": "application/json"}

    async def fetch_listing(self, prop: NormalizedProperty) -> ListingLookup:
        """For-sale record, then for-rent comps. A comps failure is kept in ``errors``."""
        sale_params: dict[str, Any] = {"keyword": full_address(prop), "type": "forSale"}
        if prop.price > 0:
            sale_params["price[min]"] = math.floor(prop.price * (1 - _BAND))
            sale_params["price[max]"] = math.ceil(prop.price * (1 + _BAND))
        sale = self._parse(_records, await self._get_json("/listing", sale_params))
        listing = sale[0] if sale else {}

        errors: list[str] = []
        try:
            comps = await self._fetch_rental_comps(prop, listing)
        except LookupFailure as e:
            log.warning("rental comps unavailable: %s", e)
            errors.append(str(e))
            comps = []

        return ListingLookup(
            rent_zestimate=coerce_non_negative(listing.get("rentZestimate")) or None,
            photos=self._parse(extract_photos, listing),
            comparables=comps,
            errors=errors,
        )

    async def _fetch_rental_comps(
        self, prop: NormalizedProperty, listing: dict[str, Any]
    ) -> list[dict[str, Any]]:
        beds = coerce_non_negative(listing.get("beds")) or prop.beds or 2
        baths = coerce_non_negative(listing.get("baths")) or prop.baths or 1
        sqft = coerce_non_negative(listing.get("area")) or prop.sqft
        area = " ".join(p for p in (prop.state, prop.zip_code) if p)
        params: dict[str, Any] = {
            "keyword": ", ".join(p for p in (prop.city, area) if p),
            "type": "forRent",
            "beds": int(beds),
            "baths": int(baths),
        }
        if sqft:
            params["sqft[min]"] = math.floor(sqft * (1 - _BAND))
            params["sqft[max]"] = math.ceil(sqft * (1 + _BAND))
        comps = self._parse(_records, await self._get_json("/listing", params))
        return [c for c in comps if coerce_non_negative(c.get("price"))]
