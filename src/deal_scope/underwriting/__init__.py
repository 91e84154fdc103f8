"""Rent reconciliation, expense model, metrics and scoring."""

from .engine import UnderwritingEngine
from .expenses import build_expense_breakdown
from .metrics import calculate_metrics
from .mortgage import monthly_payment
from .rent import comparables_signal, estimate_rent_from_features, median_rent, reconcile_rent
from .scoring import BADGE_DESCRIPTIONS, badge_for_score, insufficient_data, profile_score, score_metrics
from .units import is_multi_family, resolve_unit_count

__all__ = [
    "UnderwritingEngine",
    "build_expense_breakdown",
    "calculate_metrics",
    "monthly_payment",
    "comparables_signal",
    "estimate_rent_from_features",
    "median_rent",
    "reconcile_rent",
    "BADGE_DESCRIPTIONS",
    "badge_for_score",
    "insufficient_data",
    "profile_score",
    "score_metrics",
    "is_multi_family",
    "resolve_unit_count",
]
