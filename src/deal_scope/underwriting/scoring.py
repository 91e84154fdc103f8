"""Weighted 0-100 investment score and badge."""

from __future__ import annotations

from ..models import Badge, FinancialMetrics, InvestmentTargets, ScoreResult, ScoringWeights
from .rent import round_half_up

# (lower bound, points), checked top-down; weights 35/25/20/20
CASH_ON_CASH_BANDS: list[tuple[float, int]] = [(12, 35), (8, 28), (5, 20), (2, 10), (0, 5)]
CAP_RATE_BANDS: list[tuple[float, int]] = [(8, 25), (6, 20), (4, 15), (2, 8)]
DSCR_BANDS: list[tuple[float, int]] = [(1.5, 20), (1.25, 16), (1.1, 12), (1.0, 6)]
CASH_FLOW_BANDS: list[tuple[float, int]] = [(500, 20), (300, 16), (150, 12), (50, 6), (0, 2)]

BADGE_THRESHOLDS: list[tuple[int, Badge]] = [
    (85, Badge.EXCELLENT),
    (70, Badge.GOOD),
    (50, Badge.FAIR),
    (30, Badge.RISKY),
]

BADGE_DESCRIPTIONS: dict[Badge, str] = {
    Badge.EXCELLENT: "Outstanding investment - Multiple strong metrics",
    Badge.GOOD: "Strong investment - Good returns expected",
    Badge.FAIR: "Average investment - Moderate returns",
    Badge.RISKY: "Below-average investment - Proceed with caution",
    Badge.AVOID: "Poor investment - High risk, low returns",
    Badge.INSUFFICIENT_DATA: "Insufficient data for analysis",
}


def band_points(value: float, bands: list[tuple[float, int]]) -> int:
    for lower, points in bands:
        if value >= lower:
            return points
    return 0


def badge_for_score(score: int) -> Badge:
    for lower, badge in BADGE_THRESHOLDS:
        if score >= lower:
            return badge
    return Badge.AVOID


def score_metrics(metrics: FinancialMetrics) -> ScoreResult:
    """Score each metric against its bands and sum."""
    score = (
        band_points(metrics.cash_on_cash_return, CASH_ON_CASH_BANDS)
        + band_points(metrics.cap_rate, CAP_RATE_BANDS)
        + band_points(metrics.dscr, DSCR_BANDS)
        + band_points(metrics.monthly_cash_flow, CASH_FLOW_BANDS)
    )
    score = min(100, max(0, score))
    badge = badge_for_score(score)
    return ScoreResult(score=score, badge=badge, badge_description=BADGE_DESCRIPTIONS[badge])


def insufficient_data() -> ScoreResult:
    """Result used whenever price or rent is missing."""
    badge = Badge.INSUFFICIENT_DATA
    return ScoreResult(score=0, badge=badge, badge_description=BADGE_DESCRIPTIONS[badge])


def _tier(value: float, strong: float, target: float, weak: float, miss: float) -> float:
    """25 at or above ``strong``, 15 at ``target``, 5 at ``weak``, else ``-miss``."""
    if value >= strong:
        return 25
    if value >= target:
        return 15
    if value >= weak:
        return 5
    return -miss


def profile_score(
    metrics: FinancialMetrics | None,
    targets: InvestmentTargets | None = None,
    weights: ScoringWeights | None = None,
) -> int:
    """0-100 fit against an investor profile's targets.

    Starts at 50; each metric adds or removes up to 25 weighted points
    depending on how far it clears (or misses) its target.
    """
    if metrics is None:
        return 0
    t = targets or InvestmentTargets()
    w = weights or ScoringWeights()

    score = 50.0
    score += w.cap_rate * _tier(
        metrics.cap_rate, t.min_cap_rate * 1.5, t.min_cap_rate, t.min_cap_rate * 0.75, 10
    )
    score += w.cash_on_cash * _tier(
        metrics.cash_on_cash_return,
        t.min_cash_on_cash * 1.5,
        t.min_cash_on_cash,
        t.min_cash_on_cash * 0.75,
        10,
    )
    score += w.cash_flow * _tier(
        metrics.monthly_cash_flow, t.min_monthly_cash_flow * 2, t.min_monthly_cash_flow, 0, 15
    )
    score += w.dscr * _tier(metrics.dscr, t.min_dscr * 1.5, t.min_dscr, 1.0, 15)
    # weights are decimal fractions; drop float noise before rounding .5 up
    return max(0, min(100, round_half_up(round(score, 6))))
