"""Normalize heterogeneous property records into ``NormalizedProperty``.

Providers name the same field differently (``list_price`` vs ``price``,
``livingArea`` vs ``sqft``, nested ``location.address.line``...). ``FIELD_MAP``
lists, per canonical field, the source paths tried in order; the first
non-empty value wins. Numeric fields go through ``coerce_non_negative`` so a
malformed value becomes ``None`` instead of an exception.
"""

from __future__ import annotations

import math
import re
from typing import Any

from .models import NormalizedProperty, address_key
from .underwriting.units import resolve_unit_count

# canonical field -> source paths, highest priority first
FIELD_MAP: dict[str, tuple[str, ...]] = {
    "property_id": ("property_id", "propertyId", "zpid", "id"),
    "address": (
        "location.address.line",
        "address.streetAddress",
        "addressLine1",
        "addressLine",
        "address",
        "streetAddress",
    ),
    "city": ("city", "location.address.city", "address.city"),
    "state": ("state", "stateCode", "state_code", "location.address.state_code", "address.state"),
    "zip_code": (
        "zip",
        "zipCode",
        "zipcode",
        "postal_code",
        "location.address.postal_code",
        "address.zipcode",
    ),
    "price": ("price", "list_price", "listPrice", "listing.price"),
    "beds": ("beds", "bedrooms", "description.beds", "bedroomsTotal"),
    "baths": ("baths", "bathrooms", "description.baths", "bathroomsTotal"),
    "sqft": ("sqft", "squareFootage", "livingArea", "area", "description.sqft"),
    "lot_size": ("lotSize", "lot_sqft", "description.lot_sqft", "lotAreaValue"),
    "property_type": ("propertyType", "property_type", "homeType", "description.type"),
    "unit_count": (
        "unitCount",
        "units",
        "numberOfUnits",
        "features.unitCount",
        "resoFacts.numberOfUnitsTotal",
    ),
    "hoa_monthly": ("hoaFee", "hoa_fee", "monthlyHoaFee", "resoFacts.hoaFee"),
    "rehab_costs": ("rehabCosts", "rehab_costs", "rehabBudget"),
}

_PHOTO_LIST_PATHS: tuple[str, ...] = ("photos", "responsivePhotos", "images")
_PHOTO_SINGLE_PATHS: tuple[str, ...] = ("primary_photo.href", "thumbnail", "image")


def get_nested(payload: dict[str, Any], path: str) -> Any:
    """Tiny dot-path getter: 'location.address.line'."""
    cur: Any = payload
    for part in path.split("."):
        if not isinstance(cur, dict):
            return None
        cur = cur.get(part)
        if cur is None:
            return None
    return cur


def get_first(payload: dict[str, Any], paths: tuple[str, ...], scalar: bool = True) -> Any:
    """Return the first non-empty value found at ``paths``.

    With ``scalar`` set, dict/list values are skipped so that ``address`` as
    a nested object does not shadow ``address.streetAddress``.
    """
    for path in paths:
        v = get_nested(payload, path)
        if v is None:
            continue
        if isinstance(v, str) and not v.strip():
            continue
        if scalar and isinstance(v, (dict, list)):
            continue
        return v
    return None


def coerce_non_negative(value: Any) -> float | None:
    """Coerce a loosely-typed value to a non-negative float, or ``None``.

    Accepts numbers and strings such as ``"$350,000"`` or ``" 1,850 "``.
    Booleans, NaN, infinities, negatives and unparseable input give ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        s = re.sub(r"[^\d.\-]", "", str(value).strip())
        if not s:
            return None
        try:
            number = float(s)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def coerce_count(value: Any) -> int | None:
    """Coerce to a whole count >= 1, or ``None``."""
    number = coerce_non_negative(value)
    if number is None or number < 1:
        return None
    return int(number)


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def extract_photos(raw: dict[str, Any]) -> list[str]:
    """Collect photo URLs from the shapes providers use."""
    urls: list[str] = []
    for path in _PHOTO_LIST_PATHS:
        items = get_nested(raw, path)
        if not isinstance(items, list):
            continue
        for item in items:
            if isinstance(item, str):
                url = item
            elif isinstance(item, dict):
                url = item.get("url") or item.get("href") or get_nested(item, "mixedSources.jpeg")
                if isinstance(url, list):
                    url = url[0].get("url") if url and isinstance(url[0], dict) else None
            else:
                url = None
            if url and url not in urls:
                urls.append(str(url))
    if not urls:
        single = get_first(raw, _PHOTO_SINGLE_PATHS)
        if single:
            urls.append(str(single))
    return urls


def normalize_property(raw: dict[str, Any] | None) -> NormalizedProperty:
    """Map a raw record onto ``NormalizedProperty``.

    Missing or invalid numbers become 0 (price, beds, baths), ``None`` (sqft,
    lot size) or 1 (unit count, after resolution).
    """
    raw = raw or {}
    sqft = coerce_non_negative(get_first(raw, FIELD_MAP["sqft"]))
    prop = NormalizedProperty(
        price=coerce_non_negative(get_first(raw, FIELD_MAP["price"])) or 0.0,
        beds=coerce_non_negative(get_first(raw, FIELD_MAP["beds"])) or 0.0,
        baths=coerce_non_negative(get_first(raw, FIELD_MAP["baths"])) or 0.0,
        sqft=sqft if sqft else None,
        unit_count=1,
        property_type_raw=_text(get_first(raw, FIELD_MAP["property_type"])),
        property_id=_text(get_first(raw, FIELD_MAP["property_id"])),
        address=_text(get_first(raw, FIELD_MAP["address"])),
        city=_text(get_first(raw, FIELD_MAP["city"])),
        state=_text(get_first(raw, FIELD_MAP["state"])),
        zip_code=_text(get_first(raw, FIELD_MAP["zip_code"])),
        lot_size=coerce_non_negative(get_first(raw, FIELD_MAP["lot_size"])),
        explicit_unit_count=coerce_count(get_first(raw, FIELD_MAP["unit_count"])),
        hoa_monthly=coerce_non_negative(get_first(raw, FIELD_MAP["hoa_monthly"])) or 0.0,
        rehab_costs=coerce_non_negative(get_first(raw, FIELD_MAP["rehab_costs"])) or 0.0,
        photos=extract_photos(raw),
    )
    prop.unit_count = resolve_unit_count(prop)
    return prop


def address_cache_key(prop: NormalizedProperty) -> str:
    """Cache key from address parts: lowercased, whitespace as underscores.

    Empty when the record carries no address at all.
    """
    return address_key(prop.address, prop.city, prop.state, prop.zip_code)
