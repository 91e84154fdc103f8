"""Unit-count resolution for multi-unit parcels.

Rent figures are per unit, so the analysis needs to know how many rentable
units a parcel holds before totalling rent.
"""

from __future__ import annotations

import re

from ..models import NormalizedProperty
from .rent import round_half_up

# Type keyword -> unit count (substring match in the lowercased type string)
_PLEX_UNITS: dict[str, int] = {
    "duplex": 2,
    "triplex": 3,
    "quadplex": 4,
    "fourplex": 4,
}

_MULTI_UNIT_PATTERN = re.compile(r"apartment|\bmulti")


def units_from_type(property_type: str) -> int | None:
    """Return the unit count implied by an explicit plex type, else None."""
    text = (property_type or "").lower()
    for keyword, units in _PLEX_UNITS.items():
        if keyword in text:
            return units
    return None


def is_multi_unit_type(property_type: str) -> bool:
    """True for general multi-unit categories ("apartment", "multi-family", ...)."""
    return bool(_MULTI_UNIT_PATTERN.search((property_type or "").lower()))


def resolve_unit_count(prop: NormalizedProperty, record_unit_count: int | None = None) -> int:
    """Resolve rentable units, always >= 1.

    Priority: feature-record count, then the listing's own count, then plex
    keywords in the type string, then a bedroom estimate for generic
    multi-unit types, then 1.
    """
    for explicit in (record_unit_count, prop.explicit_unit_count):
        if explicit is not None and explicit >= 1:
            return int(explicit)

    plex = units_from_type(prop.property_type_raw)
    if plex is not None:
        return plex

    if is_multi_unit_type(prop.property_type_raw):
        return max(2, round_half_up(prop.beds / 2))

    return 1


def is_multi_family(unit_count: int) -> bool:
    return unit_count > 1
