"""Property analysis orchestration.

One ``analyze`` call: normalize the raw record, consult the cache, run the
configured lookups concurrently (each under its own timeout), resolve the
unit count, reconcile rent, underwrite and assemble an ``EnrichedAnalysis``.
A failed or slow lookup only removes that source's signal.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable

from .cache import AnalysisCache
from .config import LookupSettings, get_lookup_settings, get_rent_estimation_params, load_config
from .connectors.base import (
    ListingLookup,
    ListingProvider,
    LookupFailure,
    RateLimitExceeded,
    RecordProvider,
    RentLookup,
    RentProvider,
)
from .connectors.rentcast import RentCastConnector
from .connectors.zillow_listings import ZillowListingConnector
from .events import EventKind, EventLog
from .models import EnrichedAnalysis, NormalizedProperty, RentEstimate, RentSignal, RentSource
from .normalize import address_cache_key, normalize_property
from .throttle import RateLimiter
from .underwriting.engine import UnderwritingEngine
from .underwriting.rent import comparables_signal, reconcile_rent
from .underwriting.units import is_multi_family, resolve_unit_count

log = logging.getLogger(__name__)


@dataclass
class DataSourceLookups:
    """The providers consulted for one analysis. Any of them may be absent."""

    rent: RentProvider | None = None
    listings: ListingProvider | None = None
    records: RecordProvider | None = None

    @classmethod
    def from_settings(cls, settings: LookupSettings) -> DataSourceLookups:
        """RentCast for rent and records, HasData Zillow for listings.

        One limiter per provider; RentCast's rent and record calls share one.
        """
        rentcast = RentCastConnector(
            base_url=settings.rentcast_base_url,
            timeout_s=settings.timeout_s,
            comp_count=settings.comp_count,
            limiter=RateLimiter(settings.min_interval_s),
        )
        zillow = ZillowListingConnector(
            base_url=settings.hasdata_base_url,
            timeout_s=settings.timeout_s,
            limiter=RateLimiter(settings.min_interval_s),
        )
        return cls(rent=rentcast, listings=zillow, records=rentcast)


def build_signals(rent: RentLookup | None, listing: ListingLookup | None) -> list[RentSignal]:
    """Primary signal from the rent AVM (else the listing's rentZestimate),
    comparables from for-rent listings (else the AVM's own comps)."""
    signals: list[RentSignal] = []
    if rent is not None and rent.rent:
        signals.append(RentSignal(value=rent.rent, source=RentSource.PRIMARY))
    elif listing is not None and listing.rent_zestimate:
        signals.append(RentSignal(value=listing.rent_zestimate, source=RentSource.PRIMARY))

    comps = comparables_signal(listing.comparable_rents()) if listing is not None else None
    if comps is None and rent is not None:
        comps = comparables_signal(rent.comparable_rents())
    if comps is not None:
        signals.append(comps)
    return signals


class PropertyAnalyzer:
    """
    Analysis orchestrator. One instance per process; it owns the cache and
    the event log and reuses a single underwriting engine.
    """

    def __init__(
        self,
        config: dict | None = None,
        cache: AnalysisCache | None = None,
        events: EventLog | None = None,
        engine: UnderwritingEngine | None = None,
    ) -> None:
        cfg = config if config is not None else load_config()
        self.settings = get_lookup_settings(cfg)
        self.rent_params = get_rent_estimation_params(cfg)
        self.cache = cache if cache is not None else AnalysisCache(ttl_s=self.settings.cache_ttl_s)
        self.events = events if events is not None else EventLog()
        self.engine = engine or UnderwritingEngine(config=cfg)

    async def analyze(
        self, raw: dict[str, Any] | None, lookups: DataSourceLookups | None = None
    ) -> EnrichedAnalysis:
        """Analyze one raw property record."""
        prop = normalize_property(raw)
        key = address_cache_key(prop)
        if key:
            cached = self.cache.get(key)
            if cached is not None:
                self.events.emit(EventKind.CACHE_HIT, key=key)
                return cached
            self.events.emit(EventKind.CACHE_MISS, key=key)

        found = await self._run_lookups(prop, lookups or DataSourceLookups())
        rent_lookup: RentLookup | None = found.get("rent")
        listing: ListingLookup | None = found.get("listings")
        record = found.get("records")

        unit_count = resolve_unit_count(prop, record.unit_count if record is not None else None)
        prop.unit_count = unit_count

        signals = build_signals(rent_lookup, listing)
        primary_has_range = rent_lookup is not None and bool(rent_lookup.rent)
        estimate = reconcile_rent(
            signals,
            price=prop.price,
            beds=prop.beds,
            baths=prop.baths,
            sqft=prop.sqft,
            unit_count=unit_count,
            params=self.rent_params,
            range_low=rent_lookup.range_low if primary_has_range else None,
            range_high=rent_lookup.range_high if primary_has_range else None,
        )
        self._emit_reconciled(key, signals, estimate)

        total_rent = estimate.per_unit_rent * unit_count if estimate is not None else None
        underwriting = self.engine.underwrite(
            prop.price, total_rent, hoa_monthly=prop.hoa_monthly, rehab_costs=prop.rehab_costs
        )

        photos = list(prop.photos)
        if listing is not None:
            photos += [p for p in listing.photos if p not in photos]

        analysis = EnrichedAnalysis(
            property=prop,
            rent=estimate,
            total_monthly_rent=total_rent,
            unit_count=unit_count,
            is_multi_family=is_multi_family(unit_count),
            underwriting=underwriting,
            photos=photos,
            tax_history=list(record.tax_history) if record is not None else [],
            features=dict(record.features) if record is not None else {},
            data_sources={name: result is not None for name, result in found.items()},
        )

        log.info(
            "analyzed address=%s units=%d score=%d badge=%s",
            prop.address or "-",
            unit_count,
            underwriting.score.score,
            underwriting.score.badge.value,
        )
        if key and any(result is not None for result in found.values()):
            self.cache.set(key, analysis)
        return analysis

    async def analyze_many(
        self, raws: Iterable[dict[str, Any]], lookups: DataSourceLookups | None = None
    ) -> list[EnrichedAnalysis]:
        """Analyze records one after another (lookups within each run concurrently)."""
        results: list[EnrichedAnalysis] = []
        for raw in raws:
            results.append(await self.analyze(raw, lookups))
        return results

    async def _run_lookups(
        self, prop: NormalizedProperty, lookups: DataSourceLookups
    ) -> dict[str, Any]:
        jobs: dict[str, tuple[str, Awaitable[Any]]] = {}
        if lookups.rent is not None:
            jobs["rent"] = (lookups.rent.source_name, lookups.rent.fetch_rent(prop))
        if lookups.listings is not None:
            jobs["listings"] = (lookups.listings.source_name, lookups.listings.fetch_listing(prop))
        if lookups.records is not None:
            jobs["records"] = (lookups.records.source_name, lookups.records.fetch_property_record(prop))
        if not jobs:
            return {}

        tasks = [
            asyncio.ensure_future(self._lookup(kind, provider, call))
            for kind, (provider, call) in jobs.items()
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # Unexpected error in one lookup: don't leave the others running
            for task in tasks:
                task.cancel()
            raise
        return dict(zip(jobs, results))

    async def _lookup(self, kind: str, provider: str, call: Awaitable[Any]) -> Any | None:
        """Await one provider call under the timeout; failures become None."""
        self.events.emit(EventKind.LOOKUP_ATTEMPTED, lookup=kind, provider=provider)
        try:
            result = await asyncio.wait_for(call, timeout=self.settings.timeout_s)
        except asyncio.TimeoutError:
            self.events.emit(
                EventKind.LOOKUP_FAILED, lookup=kind, provider=provider, reason="timeout"
            )
            return None
        except LookupFailure as e:
            self.events.emit(
                EventKind.LOOKUP_FAILED,
                lookup=kind,
                provider=provider,
                reason=e.reason,
                rate_limited=isinstance(e, RateLimitExceeded),
            )
            return None
        self.events.emit(EventKind.LOOKUP_SUCCEEDED, lookup=kind, provider=provider)
        return result

    def _emit_reconciled(
        self, key: str, signals: list[RentSignal], estimate: RentEstimate | None
    ) -> None:
        if estimate is None:
            self.events.emit(
                EventKind.RENT_RECONCILED, key=key, signals=len(signals), source=None, confidence=None
            )
            return
        self.events.emit(
            EventKind.RENT_RECONCILED,
            key=key,
            signals=len(signals),
            source=estimate.source.value,
            confidence=estimate.confidence.value,
            rent=estimate.per_unit_rent,
            disagreement=None if estimate.disagreement is None else round(estimate.disagreement, 4),
        )
