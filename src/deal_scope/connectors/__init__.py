"""External data-source connectors."""

from .base import (
    ListingLookup,
    ListingProvider,
    LookupFailure,
    PropertyRecordLookup,
    RateLimitExceeded,
    RecordProvider,
    RentLookup,
    RentProvider,
)
from .rentcast import RentCastConnector
from .zillow_listings import ZillowListingConnector

__all__ = [
    "ListingLookup",
    "ListingProvider",
    "LookupFailure",
    "PropertyRecordLookup",
    "RateLimitExceeded",
    "RecordProvider",
    "RentLookup",
    "RentProvider",
    "RentCastConnector",
    "ZillowListingConnector",
]
