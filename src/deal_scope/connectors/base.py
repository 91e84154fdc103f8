"""Provider interfaces and the shared async HTTP plumbing."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, TypeVar

import httpx

from ..normalize import coerce_non_negative
from ..throttle import RateLimiter

if TYPE_CHECKING:
    from ..models import NormalizedProperty

log = logging.getLogger(__name__)

T = TypeVar("T")


class LookupFailure(Exception):
    """An external lookup failed (network error, non-2xx status, missing key)."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class RateLimitExceeded(LookupFailure):
    """Provider answered HTTP 429."""


def _comparable_rents(comparables: list[dict[str, Any]]) -> list[float]:
    rents: list[float] = []
    for comp in comparables:
        value = coerce_non_negative(comp.get("price") or comp.get("rent"))
        if value:
            rents.append(value)
    return rents


@dataclass
class RentLookup:
    """Rent AVM response: point estimate, range and the comps behind it."""

    rent: float | None
    range_low: float | None = None
    range_high: float | None = None
    comparables: list[dict[str, Any]] = field(default_factory=list)

    def comparable_rents(self) -> list[float]:
        return _comparable_rents(self.comparables)


@dataclass
class ListingLookup:
    """Listing provider response: the for-sale record plus for-rent comps."""

    rent_zestimate: float | None
    photos: list[str] = field(default_factory=list)
    comparables: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def comparable_rents(self) -> list[float]:
        return _comparable_rents(self.comparables)


@dataclass
class PropertyRecordLookup:
    """Feature-record response: unit count, tax history, structural features."""

    unit_count: int | None
    tax_history: list[dict[str, Any]] = field(default_factory=list)
    features: dict[str, Any] = field(default_factory=dict)


class RentProvider(ABC):
    """Source of the primary rent signal."""

    @abstractmethod
    async def fetch_rent(self, prop: NormalizedProperty) -> RentLookup:
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class ListingProvider(ABC):
    """Source of listing data and for-rent comparables."""

    @abstractmethod
    async def fetch_listing(self, prop: NormalizedProperty) -> ListingLookup:
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class RecordProvider(ABC):
    """Source of authoritative property records."""

    @abstractmethod
    async def fetch_property_record(self, prop: NormalizedProperty) -> PropertyRecordLookup:
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        ...


class HttpConnector:
    """
    Throttled GET-and-decode shared by the HTTP providers.
    Every failure surfaces as ``LookupFailure``; nothing is retried here.
    """

    provider = "http"
    api_key_env = ""

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_s: float = 15.0,
        limiter: RateLimiter | None = None,
        min_interval_s: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.limiter = limiter or RateLimiter(min_interval_s)
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {"accept": "application/json"}

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        if not self.api_key:
            raise LookupFailure(self.provider, f"{self.api_key_env} not set")

        await self.limiter.wait()
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = {k: v for k, v in params.items() if v is not None}
        log.debug("GET %s params=%s", url, sorted(query))
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self._transport) as client:
                resp = await client.get(url, headers=self._headers(), params=query)
        except httpx.HTTPError as e:
            raise LookupFailure(self.provider, f"{type(e).__name__}: {e!s}") from e

        if resp.status_code == 429:
            raise RateLimitExceeded(self.provider, "HTTP 429")
        if resp.status_code < 200 or resp.status_code >= 300:
            raise LookupFailure(self.provider, f"HTTP {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise LookupFailure(self.provider, "invalid JSON body") from e

    def _parse(self, parse: Callable[[Any], T], data: Any) -> T:
        """Apply ``parse`` to a decoded body; shape errors become ``LookupFailure``."""
        try:
            return parse(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.warning("%s returned an unexpected payload: %r", self.provider, e)
            raise LookupFailure(self.provider, "malformed payload") from e
