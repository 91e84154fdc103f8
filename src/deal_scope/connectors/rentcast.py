"""RentCast API connector.

Endpoints: /avm/rent/long-term (rent estimate + comps), /properties (records).
Auth: ``X-Api-Key`` header from ``RENTCAST_API_KEY``.
"""

from __future__ import annotations

import os
from typing import Any

import httpx

from ..models import NormalizedProperty
from ..normalize import coerce_count, coerce_non_negative
from ..throttle import RateLimiter
from .base import (
    HttpConnector,
    PropertyRecordLookup,
    RecordProvider,
    RentLookup,
    RentProvider,
)


def full_address(prop: NormalizedProperty) -> str:
    """'123 Main St, Austin, TX 78701' from whatever parts are present."""
    state_zip = " ".join(p for p in (prop.state, prop.zip_code) if p)
    return ", ".join(p for p in (prop.address, prop.city, state_zip) if p)


def _year(item: dict[str, Any], year_key: Any) -> int | None:
    """Year from the entry or its key; None when neither is a plausible year."""
    count = coerce_count(item.get("year") or year_key)
    return count if count is not None and count >= 1800 else None


def _tax_history(record: dict[str, Any]) -> list[dict[str, Any]]:
    """Merge yearly assessments and tax bills, newest year first.

    Entries whose year does not parse (e.g. a ``"latest"`` key) are skipped.
    """
    by_year: dict[int, dict[str, Any]] = {}
    assessments = record.get("taxAssessments") or {}
    taxes = record.get("propertyTaxes") or {}
    for year_key, item in (assessments.items() if isinstance(assessments, dict) else []):
        year = _year(item, year_key) if isinstance(item, dict) else None
        if year is None:
            continue
        row = by_year.setdefault(year, {"year": year})
        row["assessedValue"] = coerce_non_negative(item.get("value"))
        row["land"] = coerce_non_negative(item.get("land"))
        row["improvements"] = coerce_non_negative(item.get("improvements"))
    for year_key, item in (taxes.items() if isinstance(taxes, dict) else []):
        year = _year(item, year_key) if isinstance(item, dict) else None
        if year is None:
            continue
        row = by_year.setdefault(year, {"year": year})
        row["taxAmount"] = coerce_non_negative(item.get("total"))
    return [by_year[y] for y in sorted(by_year, reverse=True)]


def parse_rent(data: Any) -> RentLookup:
    """``/avm/rent/long-term`` body -> RentLookup."""
    if not isinstance(data, dict):
        data = {}
    comps = data.get("comparables") or []
    return RentLookup(
        rent=coerce_non_negative(data.get("rent") or data.get("rentEstimate")) or None,
        range_low=coerce_non_negative(data.get("rentRangeLow")),
        range_high=coerce_non_negative(data.get("rentRangeHigh")),
        comparables=[c for c in comps if isinstance(c, dict)],
    )


def parse_property_record(data: Any) -> PropertyRecordLookup:
    """``/properties`` body (a list; the first record wins) -> PropertyRecordLookup."""
    record = data[0] if isinstance(data, list) and data else data
    if not isinstance(record, dict):
        return PropertyRecordLookup(unit_count=None)
    features = record.get("features") if isinstance(record.get("features"), dict) else {}
    return PropertyRecordLookup(
        unit_count=coerce_count(features.get("unitCount")),
        tax_history=_tax_history(record),
        features=dict(features),
    )


class RentCastConnector(HttpConnector, RentProvider, RecordProvider):
    """
    Connector for the RentCast API.
    https://developers.rentcast.io/reference
    """

    provider = "rentcast"
    api_key_env = "RENTCAST_API_KEY"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.rentcast.io/v1",
        timeout_s: float = 15.0,
        comp_count: int = 5,
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
        self.comp_count = comp_count

    @property
    def source_name(self) -> str:
        return self.provider

    def _headers(self) -> dict[str, str]:
        return {"X-Api-Key": self.api_key, "accept": "application/json"}

    async def fetch_rent(self, prop: NormalizedProperty) -> RentLookup:
        """Long-term rent AVM for the property."""
        params: dict[str, Any] = {
            "address": full_address(prop) or None,
            "propertyType": prop.property_type_raw or None,
            "bedrooms": prop.beds or None,
            "bathrooms": prop.baths or None,
            "squareFootage": prop.sqft or None,
            "compCount": self.comp_count,
        }
        data = await self._get_json("/avm/rent/long-term", params)
        return self._parse(parse_rent, data)

    async def fetch_property_record(self, prop: NormalizedProperty) -> PropertyRecordLookup:
        """Public-record data: unit count, tax history, features."""
        data = await self._get_json("/properties", {"address": full_address(prop) or None})
        return self._parse(parse_property_record, data)
