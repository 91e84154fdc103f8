"""Tests for unit-count resolution."""

import pytest

from deal_scope.models import NormalizedProperty
from deal_scope.underwriting.units import is_multi_family, resolve_unit_count, units_from_type


def prop(property_type: str = "", beds: float = 3, explicit: int | None = None) -> NormalizedProperty:
    return NormalizedProperty(
        price=300000,
        beds=beds,
        baths=2,
        sqft=None,
        unit_count=1,
        property_type_raw=property_type,
        explicit_unit_count=explicit,
    )


class TestResolveUnitCount:
    def test_default_single_unit(self) -> None:
        assert resolve_unit_count(prop("Single Family")) == 1
        assert resolve_unit_count(prop("")) == 1

    @pytest.mark.parametrize(
        "property_type,expected",
        [("Duplex", 2), ("TRIPLEX", 3), ("quadplex", 4), ("Fourplex", 4), ("Legal duplex", 2)],
    )
    def test_plex_keywords(self, property_type: str, expected: int) -> None:
        assert resolve_unit_count(prop(property_type)) == expected

    def test_generic_multi_unit_uses_beds(self) -> None:
        assert resolve_unit_count(prop("Apartment", beds=6)) == 3
        assert resolve_unit_count(prop("Multi-Family", beds=5)) == 3

    def test_generic_multi_unit_at_least_two(self) -> None:
        assert resolve_unit_count(prop("multi_family", beds=1)) == 2
        assert resolve_unit_count(prop("Apartment", beds=0)) == 2

    def test_explicit_count_beats_type(self) -> None:
        assert resolve_unit_count(prop("Duplex", explicit=3)) == 3

    def test_record_count_beats_everything(self) -> None:
        assert resolve_unit_count(prop("Duplex", explicit=3), record_unit_count=6) == 6

    def test_invalid_counts_ignored(self) -> None:
        assert resolve_unit_count(prop("Triplex", explicit=0), record_unit_count=0) == 3

    def test_units_from_type_none_for_plain_types(self) -> None:
        assert units_from_type("Condo") is None


def test_is_multi_family() -> None:
    assert is_multi_family(2)
    assert not is_multi_family(1)
