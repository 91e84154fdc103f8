"""Filtering and ranking of finished analyses."""

from __future__ import annotations

from typing import Any, Union

from .models import Badge, EnrichedAnalysis

# Live analyses or their to_dict() form (from a saved run)
AnalysisLike = Union[EnrichedAnalysis, dict[str, Any]]


def _view(a: AnalysisLike) -> tuple[str, int | None, float, int, float | None]:
    """(badge, cash flow, price, score, unrounded monthly cash flow)."""
    if isinstance(a, EnrichedAnalysis):
        monthly = a.metrics.monthly_cash_flow if a.metrics else None
        return a.score.badge.value, a.cash_flow, a.property.price, a.score.score, monthly
    metrics = a.get("metrics") or {}
    return (
        str(a.get("investmentBadge", "")),
        a.get("cashFlow"),
        float((a.get("property") or {}).get("price") or 0),
        int(a.get("investmentScore") or 0),
        metrics.get("monthlyCashFlow"),
    )


def filter_analyses(
    results: list[AnalysisLike],
    badges: list[str] | None = None,
    min_cash_flow: float | None = None,
    max_price: float | None = None,
) -> list[AnalysisLike]:
    """
    Keep analyses that match every given constraint.
    - Badge must be one of ``badges`` (e.g. "good"; unknown names raise ValueError)
    - Rounded monthly cash flow must be >= ``min_cash_flow``; unknown cash flow fails
    - Price must be <= ``max_price``
    """
    wanted = {Badge(b.strip().lower()).value for b in badges} if badges else None
    result = []
    for a in results:
        badge, cash_flow, price, _, _ = _view(a)
        if wanted is not None and badge not in wanted:
            continue
        if min_cash_flow is not None and (cash_flow is None or cash_flow < min_cash_flow):
            continue
        if max_price is not None and price > max_price:
            continue
        result.append(a)
    return result


def rank_analyses(results: list[AnalysisLike]) -> list[AnalysisLike]:
    """Best first: score, then monthly cash flow; unknown cash flow sorts last."""

    def key(a: AnalysisLike) -> tuple[int, float]:
        _, _, _, score, monthly = _view(a)
        return score, monthly if monthly is not None else float("-inf")

    return sorted(results, key=key, reverse=True)
