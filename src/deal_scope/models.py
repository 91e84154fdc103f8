"""Data models for property analysis and underwriting results."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


def address_key(*parts: Any) -> str:
    """Address parts joined, lowercased, whitespace as underscores. Empty when all parts are."""
    texts = [str(p).strip() for p in parts if p]
    if not any(texts):
        return ""
    return re.sub(r"\s+", "_", "_".join(texts).lower())


class RentSource(str, Enum):
    PRIMARY = "primary"
    COMPARABLES = "comparables"
    HEURISTIC = "heuristic"
    BLENDED = "blended"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    UNKNOWN = "unknown"


class Badge(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    RISKY = "risky"
    AVOID = "avoid"
    INSUFFICIENT_DATA = "insufficient-data"


@dataclass
class NormalizedProperty:
    """Canonical property shape (source-agnostic)."""

    price: float
    beds: float
    baths: float
    sqft: float | None
    unit_count: int
    property_type_raw: str
    property_id: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    lot_size: float | None = None
    explicit_unit_count: int | None = None
    hoa_monthly: float = 0.0
    rehab_costs: float = 0.0
    photos: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "propertyId": self.property_id,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "price": self.price,
            "beds": self.beds,
            "baths": self.baths,
            "sqft": self.sqft,
            "lotSize": self.lot_size,
            "unitCount": self.unit_count,
            "propertyType": self.property_type_raw,
            "hoaMonthly": self.hoa_monthly,
            "rehabCosts": self.rehab_costs,
        }


@dataclass(frozen=True)
class RentSignal:
    """One candidate rent estimate from a single source."""

    value: float
    source: RentSource
    sample_size: int = 1


@dataclass(frozen=True)
class RentEstimate:
    """Reconciled per-unit rent with a confidence level."""

    per_unit_rent: float
    confidence: Confidence
    source: RentSource
    range_low: float | None = None
    range_high: float | None = None
    sample_size: int = 0
    disagreement: float | None = None

    def __post_init__(self) -> None:
        if self.confidence is not Confidence.UNKNOWN and self.per_unit_rent <= 0:
            raise ValueError(f"per_unit_rent must be positive, got {self.per_unit_rent}")


@dataclass
class FinancingAssumptions:
    """Loan assumptions (from config or overrides)."""

    down_payment_rate: float = 0.20
    interest_rate: float = 0.07
    term_years: int = 30
    closing_cost_rate: float = 0.03


@dataclass
class ExpenseAssumptions:
    """Operating expense assumptions (from config or overrides)."""

    property_tax_rate_annual: float = 0.012
    insurance_rate_annual: float = 0.005
    maintenance_rate_annual: float = 0.01
    vacancy_rate: float = 0.05
    management_rate: float = 0.10
    hoa_monthly: float = 0.0


@dataclass
class InvestmentTargets:
    """Pass/fail targets for a deal."""

    min_cap_rate: float = 6.0
    min_cash_on_cash: float = 8.0
    min_monthly_cash_flow: float = 200.0
    min_dscr: float = 1.25


@dataclass
class ScoringWeights:
    """Per-metric weights for the profile score."""

    cap_rate: float = 0.25
    cash_on_cash: float = 0.25
    cash_flow: float = 0.30
    dscr: float = 0.20


@dataclass
class RentEstimationParams:
    """Heuristic rent estimation and reconciliation parameters."""

    rent_by_beds: dict[int, float] = field(
        default_factory=lambda: {1: 1200.0, 2: 1500.0, 3: 1800.0, 4: 2200.0, 5: 2600.0}
    )
    per_bed_fallback: float = 600.0
    per_extra_bath: float = 125.0
    per_sqft: float = 1.35
    min_price_ratio: float = 0.005
    max_price_ratio: float = 0.009
    high_agreement: float = 0.10
    medium_agreement: float = 0.20
    min_comps_for_medium: int = 3


@dataclass
class ExpenseBreakdown:
    """Monthly expenses by category. Every value is non-negative."""

    mortgage: float = 0.0
    property_tax: float = 0.0
    insurance: float = 0.0
    maintenance: float = 0.0
    vacancy: float = 0.0
    management: float = 0.0
    hoa: float = 0.0

    def __post_init__(self) -> None:
        for name, value in self._items():
            if value < 0:
                raise ValueError(f"Expense '{name}' must be >= 0, got {value}")

    def _items(self) -> list[tuple[str, float]]:
        return [
            ("mortgage", self.mortgage),
            ("propertyTax", self.property_tax),
            ("insurance", self.insurance),
            ("maintenance", self.maintenance),
            ("vacancy", self.vacancy),
            ("management", self.management),
            ("hoa", self.hoa),
        ]

    def operating_total(self) -> float:
        """Monthly operating expenses (mortgage excluded)."""
        return (
            self.property_tax
            + self.insurance
            + self.maintenance
            + self.vacancy
            + self.management
            + self.hoa
        )

    def total(self) -> float:
        return self.operating_total() + self.mortgage

    def to_dict(self) -> dict[str, float]:
        return dict(self._items())


@dataclass
class FinancialMetrics:
    """Derived financial metrics. Percentages are in percent units."""

    cap_rate: float
    cash_on_cash_return: float
    dscr: float
    one_percent_rule: float
    monthly_cash_flow: float
    annual_cash_flow: float
    monthly_noi: float
    annual_noi: float
    total_investment: float
    down_payment: float
    closing_costs: float
    monthly_rent: float
    annual_rent: float
    monthly_expenses: float
    annual_expenses: float
    expense_breakdown: ExpenseBreakdown
    rehab_costs: float = 0.0
    grm: float = 0.0
    break_even_ratio: float = 0.0
    expense_ratio: float = 0.0

    @property
    def passes_fifty_percent_rule(self) -> bool:
        return self.expense_ratio <= 50.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "capRate": self.cap_rate,
            "cashOnCashReturn": self.cash_on_cash_return,
            "dscr": self.dscr,
            "onePercentRule": self.one_percent_rule,
            "monthlyCashFlow": self.monthly_cash_flow,
            "annualCashFlow": self.annual_cash_flow,
            "monthlyNOI": self.monthly_noi,
            "annualNOI": self.annual_noi,
            "totalInvestment": self.total_investment,
            "downPayment": self.down_payment,
            "closingCosts": self.closing_costs,
            "rehabCosts": self.rehab_costs,
            "monthlyRent": self.monthly_rent,
            "annualRent": self.annual_rent,
            "monthlyExpenses": self.monthly_expenses,
            "annualExpenses": self.annual_expenses,
            "expenseBreakdown": self.expense_breakdown.to_dict(),
            "grm": self.grm,
            "breakEvenRatio": self.break_even_ratio,
            "expenseRatio": self.expense_ratio,
            "passesFiftyPercentRule": self.passes_fifty_percent_rule,
        }


@dataclass(frozen=True)
class ScoreResult:
    score: int
    badge: Badge
    badge_description: str


@dataclass
class UnderwritingResult:
    """Output of the underwriting engine for one property."""

    expenses: ExpenseBreakdown | None
    metrics: FinancialMetrics | None
    score: ScoreResult
    passes_one_percent_rule: bool = False
    passes_fifty_percent_rule: bool = False
    meets_targets: bool = False
    profile_score: int = 0
    reason_flags: list[str] = field(default_factory=list)


@dataclass
class EnrichedAnalysis:
    """Full analysis handed to the presentation layer."""

    property: NormalizedProperty
    rent: RentEstimate | None
    total_monthly_rent: float | None
    unit_count: int
    is_multi_family: bool
    underwriting: UnderwritingResult
    photos: list[str] = field(default_factory=list)
    tax_history: list[dict[str, Any]] = field(default_factory=list)
    features: dict[str, Any] = field(default_factory=dict)
    data_sources: dict[str, bool] = field(default_factory=dict)
    analyzed_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def score(self) -> ScoreResult:
        return self.underwriting.score

    @property
    def metrics(self) -> FinancialMetrics | None:
        return self.underwriting.metrics

    @property
    def cash_flow(self) -> int | None:
        if self.metrics is None:
            return None
        return int(round(self.metrics.monthly_cash_flow))

    @property
    def roi(self) -> float | None:
        if self.metrics is None:
            return None
        return round(self.metrics.cash_on_cash_return, 1)

    def to_dict(self) -> dict[str, Any]:
        rent = self.rent
        return {
            "property": self.property.to_dict(),
            "rentEstimate": rent.per_unit_rent if rent else None,
            "totalMonthlyRent": self.total_monthly_rent,
            "rentConfidence": (rent.confidence if rent else Confidence.UNKNOWN).value,
            "rentSource": rent.source.value if rent else None,
            "rentRangeLow": rent.range_low if rent else None,
            "rentRangeHigh": rent.range_high if rent else None,
            "unitCount": self.unit_count,
            "isMultiFamily": self.is_multi_family,
            "investmentScore": self.score.score,
            "investmentBadge": self.score.badge.value,
            "badgeDescription": self.score.badge_description,
            "cashFlow": self.cash_flow,
            "roi": self.roi,
            "metrics": self.metrics.to_dict() if self.metrics else None,
            "passesOnePercentRule": self.underwriting.passes_one_percent_rule,
            "passesFiftyPercentRule": self.underwriting.passes_fifty_percent_rule,
            "profileScore": self.underwriting.profile_score,
            "meetsTargets": self.underwriting.meets_targets,
            "reasonFlags": list(self.underwriting.reason_flags),
            "photos": list(self.photos),
            "taxHistory": list(self.tax_history),
            "features": dict(self.features),
            "dataSources": dict(self.data_sources),
            "analyzedAt": self.analyzed_at.isoformat(),
        }


@dataclass
class FavoriteSnapshot:
    """Values captured when a user saves a property."""

    property_id: str
    address: str
    rent_estimate: float | None
    investment_badge: str
    quick_score: int
    estimated_cash_flow: int | None
    saved_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "propertyId": self.property_id,
            "address": self.address,
            "rentEstimate": self.rent_estimate,
            "investmentBadge": self.investment_badge,
            "quickScore": self.quick_score,
            "estimatedCashFlow": self.estimated_cash_flow,
            "savedAt": self.saved_at.isoformat(),
        }


def favorite_snapshot(analysis: EnrichedAnalysis | dict[str, Any]) -> FavoriteSnapshot:
    """Build the snapshot stored with a saved property.

    Accepts a live analysis or its ``to_dict()`` form (as read back from a
    saved run). Without a property id the key is derived from the address;
    a record with neither cannot be saved and raises ``ValueError``.
    """
    data = analysis.to_dict() if isinstance(analysis, EnrichedAnalysis) else analysis
    prop = data.get("property") or {}
    property_id = str(prop.get("propertyId") or "").strip() or address_key(
        prop.get("address"), prop.get("city"), prop.get("state"), prop.get("zipCode")
    )
    if not property_id:
        raise ValueError("property has no id or address to save it under")
    return FavoriteSnapshot(
        property_id=property_id,
        address=str(prop.get("address") or ""),
        rent_estimate=data.get("rentEstimate"),
        investment_badge=str(data.get("investmentBadge") or Badge.INSUFFICIENT_DATA.value),
        quick_score=int(data.get("investmentScore") or 0),
        estimated_cash_flow=data.get("cashFlow"),
    )
