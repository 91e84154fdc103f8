"""Pytest fixtures."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from deal_scope.connectors.base import (
    ListingLookup,
    ListingProvider,
    PropertyRecordLookup,
    RecordProvider,
    RentLookup,
    RentProvider,
)
from deal_scope.models import EnrichedAnalysis, NormalizedProperty
from deal_scope.underwriting import UnderwritingEngine


class FakeRentProvider(RentProvider):
    """Returns a canned RentLookup, raises, or stalls."""

    source_name = "fake_rent"

    def __init__(self, result: RentLookup | None = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch_rent(self, prop: NormalizedProperty) -> RentLookup:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeListingProvider(ListingProvider):
    source_name = "fake_listings"

    def __init__(self, result: ListingLookup | None = None, error: Exception | None = None, delay: float = 0.0) -> None:
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = 0

    async def fetch_listing(self, prop: NormalizedProperty) -> ListingLookup:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


class FakeRecordProvider(RecordProvider):
    source_name = "fake_records"

    def __init__(self, result: PropertyRecordLookup | None = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls = 0

    async def fetch_property_record(self, prop: NormalizedProperty) -> PropertyRecordLookup:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


class FakeClock:
    """Manual clock with an async sleep that advances it."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def empty_config() -> dict[str, Any]:
    """No config file: every setting falls back to its code default."""
    return {}


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def raw_property() -> dict[str, Any]:
    """Single-family listing as a listing provider would return it."""
    return {
        "property_id": "sf-1",
        "address": "123 Main St",
        "city": "Austin",
        "state": "TX",
        "zip": "78701",
        "price": 300000,
        "beds": 3,
        "baths": 2,
        "sqft": 1500,
        "propertyType": "Single Family",
    }


@pytest.fixture
def raw_duplex() -> dict[str, Any]:
    return {
        "property_id": "dx-1",
        "address": "77 Elm Ave",
        "city": "Detroit",
        "state": "MI",
        "zip": "48201",
        "list_price": "$400,000",
        "bedrooms": 4,
        "bathrooms": 2,
        "livingArea": 2000,
        "homeType": "Duplex",
    }


def make_analysis(
    price: float,
    total_rent: float | None,
    address: str = "1 Test Rd",
    property_id: str = "",
) -> EnrichedAnalysis:
    """EnrichedAnalysis built straight from the engine (no lookups, no rent reconciliation)."""
    prop = NormalizedProperty(
        price=price,
        beds=3,
        baths=2,
        sqft=1500,
        unit_count=1,
        property_type_raw="Single Family",
        property_id=property_id,
        address=address,
        city="Austin",
        state="TX",
        zip_code="78701",
    )
    engine = UnderwritingEngine(config={})
    return EnrichedAnalysis(
        property=prop,
        rent=None,
        total_monthly_rent=total_rent,
        unit_count=1,
        is_multi_family=False,
        underwriting=engine.underwrite(price, total_rent),
    )
