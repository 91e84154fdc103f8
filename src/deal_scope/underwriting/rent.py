"""Rent reconciliation across data sources.

Up to three signals feed one per-unit estimate:

1. ``primary``: a provider's point estimate (rent AVM).
2. ``comparables``: the median of nearby for-rent listings.
3. ``heuristic``: a feature-based estimate, used only when 1 and 2 are absent.

When primary and comparables both exist their relative disagreement decides
the confidence and the blend: under 10% keeps the primary value (high), under
20% blends 60/40 (medium), otherwise 50/50 (low). Rent is never derived as a
plain fraction of price; the price band only clamps the heuristic.
"""

from __future__ import annotations

import math
from typing import Iterable

from ..models import Confidence, RentEstimate, RentEstimationParams, RentSignal, RentSource


def round_half_up(x: float) -> int:
    """Round .5 away from zero for positive values (1999.5 -> 2000)."""
    return int(math.floor(x + 0.5))


def median_rent(values: Iterable[float | None]) -> float | None:
    """Median of the positive values; an even count averages the middle pair."""
    rents = sorted(float(v) for v in values if v is not None and v > 0)
    if not rents:
        return None
    mid = len(rents) // 2
    if len(rents) % 2 == 0:
        return float(round_half_up((rents[mid - 1] + rents[mid]) / 2))
    return rents[mid]


def comparables_signal(rents: Iterable[float | None]) -> RentSignal | None:
    """Build the comparables signal from listing rents, or None if there are none."""
    valid = [float(r) for r in rents if r is not None and r > 0]
    median = median_rent(valid)
    if median is None:
        return None
    return RentSignal(value=median, source=RentSource.COMPARABLES, sample_size=len(valid))


def clamp_to_price_band(
    rent: float, price: float, params: RentEstimationParams | None = None
) -> float:
    """Clamp a monthly rent to [min_price_ratio, max_price_ratio] x price, bounds rounded to whole dollars."""
    p = params or RentEstimationParams()
    if price <= 0:
        return rent
    low = round_half_up(price * p.min_price_ratio)
    high = round_half_up(price * p.max_price_ratio)
    return max(low, min(rent, high))


def estimate_rent_from_features(
    beds: float,
    baths: float,
    sqft: float | None,
    price: float,
    params: RentEstimationParams | None = None,
) -> float:
    """Feature-based monthly rent.

    Bedroom table (else ``beds * per_bed_fallback``), plus ``per_extra_bath``
    for each bath beyond the first, averaged with ``sqft * per_sqft`` when
    square footage is known, then clamped to the price band.
    """
    p = params or RentEstimationParams()
    if float(beds).is_integer() and int(beds) in p.rent_by_beds:
        estimate = p.rent_by_beds[int(beds)]
    else:
        estimate = beds * p.per_bed_fallback

    if baths:
        estimate += (baths - 1) * p.per_extra_bath

    if sqft:
        estimate = round_half_up((estimate + sqft * p.per_sqft) / 2)

    return clamp_to_price_band(float(round_half_up(estimate)), price, p)


def _first(signals: list[RentSignal], source: RentSource, min_sample: int = 1) -> RentSignal | None:
    for s in signals:
        if s.source is source and s.value > 0 and s.sample_size >= min_sample:
            return s
    return None


def reconcile_rent(
    signals: Iterable[RentSignal],
    *,
    price: float,
    beds: float = 0,
    baths: float = 0,
    sqft: float | None = None,
    unit_count: int = 1,
    params: RentEstimationParams | None = None,
    range_low: float | None = None,
    range_high: float | None = None,
) -> RentEstimate | None:
    """Merge rent signals into one per-unit ``RentEstimate``.

    ``range_low``/``range_high`` are the primary provider's band and are kept
    only when the primary signal contributes. Returns None when there is no
    price and no usable signal.
    """
    p = params or RentEstimationParams()
    signals = list(signals)
    primary = _first(signals, RentSource.PRIMARY)
    comps = _first(signals, RentSource.COMPARABLES)

    if primary and comps:
        disagreement = abs(primary.value - comps.value) / primary.value
        if disagreement < p.high_agreement:
            value, confidence, source = primary.value, Confidence.HIGH, RentSource.PRIMARY
        elif disagreement < p.medium_agreement:
            value = float(round_half_up(primary.value * 0.6 + comps.value * 0.4))
            confidence, source = Confidence.MEDIUM, RentSource.BLENDED
        else:
            value = float(round_half_up(primary.value * 0.5 + comps.value * 0.5))
            confidence, source = Confidence.LOW, RentSource.BLENDED
        return RentEstimate(
            per_unit_rent=value,
            confidence=confidence,
            source=source,
            range_low=range_low,
            range_high=range_high,
            sample_size=comps.sample_size,
            disagreement=disagreement,
        )

    if primary:
        return RentEstimate(
            per_unit_rent=primary.value,
            confidence=Confidence.MEDIUM,
            source=RentSource.PRIMARY,
            range_low=range_low,
            range_high=range_high,
            sample_size=primary.sample_size,
        )

    if comps:
        confidence = Confidence.MEDIUM if comps.sample_size >= p.min_comps_for_medium else Confidence.LOW
        return RentEstimate(
            per_unit_rent=comps.value,
            confidence=confidence,
            source=RentSource.COMPARABLES,
            sample_size=comps.sample_size,
        )

    units = max(1, int(unit_count))
    supplied = _first(signals, RentSource.HEURISTIC, min_sample=0)
    if supplied:
        value = clamp_to_price_band(supplied.value, price / units, p)
    elif price > 0:
        unit_beds = round_half_up(beds / units) if units > 1 else beds
        unit_sqft = sqft / units if sqft else None
        value = estimate_rent_from_features(unit_beds, baths / units, unit_sqft, price / units, p)
    else:
        return None

    return RentEstimate(per_unit_rent=value, confidence=Confidence.LOW, source=RentSource.HEURISTIC)
