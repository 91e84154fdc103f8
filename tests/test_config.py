"""Tests for config loading and the event log."""

import pytest

from deal_scope.config import (
    get_expense_assumptions,
    get_financing_assumptions,
    get_investment_targets,
    get_lookup_settings,
    get_rent_estimation_params,
    get_scoring_weights,
    load_config,
)
from deal_scope.events import EventKind, EventLog
from deal_scope.models import RentEstimationParams, ScoringWeights


def test_load_config(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("financing:\n  interest_rate: 0.065\nlookups:\n  cache_ttl_hours: 2\n")
    cfg = load_config(path)
    assert get_financing_assumptions(cfg).interest_rate == 0.065
    assert get_lookup_settings(cfg).cache_ttl_s == 7200


def test_load_empty_config(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert load_config(path) == {}


def test_missing_config_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_bundled_config_matches_defaults() -> None:
    cfg = load_config()
    assert get_rent_estimation_params(cfg) == RentEstimationParams()
    assert get_expense_assumptions(cfg).vacancy_rate == 0.05
    assert get_lookup_settings(cfg).comp_count == 5


def test_defaults_from_empty_config(empty_config) -> None:
    fin = get_financing_assumptions(empty_config)
    assert (fin.down_payment_rate, fin.interest_rate, fin.term_years, fin.closing_cost_rate) == (
        0.20, 0.07, 30, 0.03
    )
    assert get_lookup_settings(empty_config).timeout_s == 15.0
    assert get_lookup_settings(empty_config).cache_ttl_s == 86400


def test_rent_table_keys_coerced() -> None:
    params = get_rent_estimation_params({"rent_estimation": {"rent_by_beds": {"2": 1400}}})
    assert params.rent_by_beds == {2: 1400.0}


def test_target_overrides_on_preset() -> None:
    targets = get_investment_targets({"targets": {"preset": "Conservative", "min_dscr": 1.3}})
    assert targets.min_cap_rate == 8.0
    assert targets.min_dscr == 1.3


def test_unknown_preset_falls_back_to_moderate() -> None:
    assert get_investment_targets({"targets": {"preset": "yolo"}}).min_cash_on_cash == 8.0


def test_scoring_weights_follow_preset() -> None:
    assert get_scoring_weights({}) == ScoringWeights(0.25, 0.25, 0.30, 0.20)
    assert get_scoring_weights({"targets": {"preset": "aggressive"}}).cash_flow == 0.40
    weights = get_scoring_weights({"targets": {"preset": "conservative", "weights": {"dscr": 0.5}}})
    assert (weights.cap_rate, weights.dscr) == (0.30, 0.5)


class TestEventLog:
    def test_emit_and_filter(self) -> None:
        events = EventLog()
        events.emit(EventKind.CACHE_MISS, key="k")
        events.emit(EventKind.LOOKUP_FAILED, lookup="rent", reason="timeout")
        assert [e.kind for e in events.events] == [EventKind.CACHE_MISS, EventKind.LOOKUP_FAILED]
        assert events.of_kind(EventKind.LOOKUP_FAILED)[0].fields == {"lookup": "rent", "reason": "timeout"}

    def test_bounded(self) -> None:
        events = EventLog(max_events=2)
        for i in range(5):
            events.emit(EventKind.CACHE_HIT, key=str(i))
        assert [e.fields["key"] for e in events.events] == ["3", "4"]
        events.clear()
        assert events.events == []
