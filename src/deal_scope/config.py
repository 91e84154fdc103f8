"""Configuration loader."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import (
    ExpenseAssumptions,
    FinancingAssumptions,
    InvestmentTargets,
    RentEstimationParams,
    ScoringWeights,
)

# Target presets (min cap rate %, min CoC %, min monthly cash flow $, min DSCR)
TARGET_PRESETS: dict[str, InvestmentTargets] = {
    "conservative": InvestmentTargets(
        min_cap_rate=8.0, min_cash_on_cash=10.0, min_monthly_cash_flow=300.0, min_dscr=1.5
    ),
    "moderate": InvestmentTargets(
        min_cap_rate=6.0, min_cash_on_cash=8.0, min_monthly_cash_flow=200.0, min_dscr=1.25
    ),
    "aggressive": InvestmentTargets(
        min_cap_rate=4.0, min_cash_on_cash=6.0, min_monthly_cash_flow=100.0, min_dscr=1.0
    ),
}

# Profile score weights per preset (cap rate, CoC, cash flow, DSCR)
PRESET_WEIGHTS: dict[str, ScoringWeights] = {
    "conservative": ScoringWeights(cap_rate=0.30, cash_on_cash=0.30, cash_flow=0.25, dscr=0.15),
    "moderate": ScoringWeights(cap_rate=0.25, cash_on_cash=0.25, cash_flow=0.30, dscr=0.20),
    "aggressive": ScoringWeights(cap_rate=0.20, cash_on_cash=0.20, cash_flow=0.40, dscr=0.20),
}


@dataclass
class LookupSettings:
    """External data-source settings."""

    timeout_s: float = 15.0
    min_interval_s: float = 1.0
    cache_ttl_s: float = 24 * 60 * 60
    rentcast_base_url: str = "https://api.rentcast.io/v1"
    hasdata_base_url: str = "https://api.hasdata.com/scrape/zillow"
    comp_count: int = 5


def load_config(config_path: Path | str | None = None) -> dict[str, Any]:
    """Load config from YAML file."""
    path = Path(config_path) if config_path else Path(__file__).parent.parent.parent / "config.yaml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path) as f:
        return yaml.safe_load(f) or {}


def get_financing_assumptions(config: dict[str, Any]) -> FinancingAssumptions:
    """Extract financing assumptions from config."""
    fin = config.get("financing", {})
    return FinancingAssumptions(
        down_payment_rate=float(fin.get("down_payment_rate", 0.20)),
        interest_rate=float(fin.get("interest_rate", 0.07)),
        term_years=int(fin.get("term_years", 30)),
        closing_cost_rate=float(fin.get("closing_cost_rate", 0.03)),
    )


def get_expense_assumptions(config: dict[str, Any]) -> ExpenseAssumptions:
    """Extract operating expense assumptions from config."""
    ex = config.get("expenses", {})
    return ExpenseAssumptions(
        property_tax_rate_annual=float(ex.get("property_tax_rate_annual", 0.012)),
        insurance_rate_annual=float(ex.get("insurance_rate_annual", 0.005)),
        maintenance_rate_annual=float(ex.get("maintenance_rate_annual", 0.01)),
        vacancy_rate=float(ex.get("vacancy_rate", 0.05)),
        management_rate=float(ex.get("management_rate", 0.10)),
        hoa_monthly=float(ex.get("hoa_monthly", 0.0)),
    )


def get_rent_estimation_params(config: dict[str, Any]) -> RentEstimationParams:
    """Extract heuristic rent table and reconciliation thresholds from config."""
    re = config.get("rent_estimation", {})
    defaults = RentEstimationParams()
    table = re.get("rent_by_beds")
    if isinstance(table, dict) and table:
        rent_by_beds = {int(k): float(v) for k, v in table.items()}
    else:
        rent_by_beds = defaults.rent_by_beds
    return RentEstimationParams(
        rent_by_beds=rent_by_beds,
        per_bed_fallback=float(re.get("per_bed_fallback", defaults.per_bed_fallback)),
        per_extra_bath=float(re.get("per_extra_bath", defaults.per_extra_bath)),
        per_sqft=float(re.get("per_sqft", defaults.per_sqft)),
        min_price_ratio=float(re.get("min_price_ratio", defaults.min_price_ratio)),
        max_price_ratio=float(re.get("max_price_ratio", defaults.max_price_ratio)),
        high_agreement=float(re.get("high_agreement", defaults.high_agreement)),
        medium_agreement=float(re.get("medium_agreement", defaults.medium_agreement)),
        min_comps_for_medium=int(re.get("min_comps_for_medium", defaults.min_comps_for_medium)),
    )


def _preset_name(config: dict[str, Any]) -> str:
    return str(config.get("targets", {}).get("preset", "moderate")).strip().lower()


def get_investment_targets(config: dict[str, Any]) -> InvestmentTargets:
    """Extract investment targets: a named preset, then per-field overrides."""
    tg = config.get("targets", {})
    base = TARGET_PRESETS.get(_preset_name(config), TARGET_PRESETS["moderate"])
    return InvestmentTargets(
        min_cap_rate=float(tg.get("min_cap_rate", base.min_cap_rate)),
        min_cash_on_cash=float(tg.get("min_cash_on_cash", base.min_cash_on_cash)),
        min_monthly_cash_flow=float(tg.get("min_monthly_cash_flow", base.min_monthly_cash_flow)),
        min_dscr=float(tg.get("min_dscr", base.min_dscr)),
    )


def get_scoring_weights(config: dict[str, Any]) -> ScoringWeights:
    """Profile score weights: the preset's, then ``targets.weights`` overrides."""
    overrides = config.get("targets", {}).get("weights") or {}
    base = PRESET_WEIGHTS.get(_preset_name(config), PRESET_WEIGHTS["moderate"])
    return ScoringWeights(
        cap_rate=float(overrides.get("cap_rate", base.cap_rate)),
        cash_on_cash=float(overrides.get("cash_on_cash", base.cash_on_cash)),
        cash_flow=float(overrides.get("cash_flow", base.cash_flow)),
        dscr=float(overrides.get("dscr", base.dscr)),
    )


def get_lookup_settings(config: dict[str, Any]) -> LookupSettings:
    """Extract data-source timeouts, throttle interval and cache TTL."""
    lk = config.get("lookups", {})
    defaults = LookupSettings()
    ttl_hours = lk.get("cache_ttl_hours")
    return LookupSettings(
        timeout_s=float(lk.get("timeout_s", defaults.timeout_s)),
        min_interval_s=float(lk.get("min_interval_s", defaults.min_interval_s)),
        cache_ttl_s=float(ttl_hours) * 3600 if ttl_hours is not None else defaults.cache_ttl_s,
        rentcast_base_url=str(lk.get("rentcast_base_url", defaults.rentcast_base_url)),
        hasdata_base_url=str(lk.get("hasdata_base_url", defaults.hasdata_base_url)),
        comp_count=int(lk.get("comp_count", defaults.comp_count)),
    )
