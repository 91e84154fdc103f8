"""Underwriting engine: expenses, metrics, score and target checks."""

from __future__ import annotations

from ..config import (
    get_expense_assumptions,
    get_financing_assumptions,
    get_investment_targets,
    get_scoring_weights,
    load_config,
)
from ..models import (
    ExpenseAssumptions,
    FinancialMetrics,
    FinancingAssumptions,
    InvestmentTargets,
    ScoringWeights,
    UnderwritingResult,
)
from .expenses import build_expense_breakdown
from .metrics import calculate_metrics
from .scoring import insufficient_data, profile_score, score_metrics

# GRM and break-even ratio (%) above these read as poor
MAX_GRM = 15.0
MAX_BREAK_EVEN_RATIO = 95.0


class UnderwritingEngine:
    """
    Turns a price and a total monthly rent into an UnderwritingResult.
    Missing price or rent yields an insufficient-data result, never an error.
    """

    def __init__(
        self,
        financing: FinancingAssumptions | None = None,
        expenses: ExpenseAssumptions | None = None,
        targets: InvestmentTargets | None = None,
        config: dict | None = None,
        weights: ScoringWeights | None = None,
    ) -> None:
        cfg = config if config is not None else load_config()
        self._config = cfg
        self.financing = financing or get_financing_assumptions(cfg)
        self.expenses = expenses or get_expense_assumptions(cfg)
        self.targets = targets or get_investment_targets(cfg)
        self.weights = weights or get_scoring_weights(cfg)

    def underwrite(
        self,
        price: float,
        total_monthly_rent: float | None,
        hoa_monthly: float | None = None,
        rehab_costs: float = 0.0,
    ) -> UnderwritingResult:
        """Run full underwriting for one property. ``rehab_costs`` count as cash invested."""
        if price <= 0 or total_monthly_rent is None or total_monthly_rent <= 0:
            missing = "price" if price <= 0 else "rent"
            return UnderwritingResult(
                expenses=None,
                metrics=None,
                score=insufficient_data(),
                reason_flags=[f"FAIL: missing {missing}"],
            )

        breakdown = build_expense_breakdown(
            price, total_monthly_rent, self.expenses, self.financing, hoa_monthly=hoa_monthly
        )
        metrics = calculate_metrics(
            price, total_monthly_rent, breakdown, self.financing, rehab_costs=rehab_costs
        )
        meets, flags = self._evaluate(metrics)

        return UnderwritingResult(
            expenses=breakdown,
            metrics=metrics,
            score=score_metrics(metrics),
            passes_one_percent_rule=metrics.one_percent_rule >= 1.0,
            passes_fifty_percent_rule=metrics.passes_fifty_percent_rule,
            meets_targets=meets,
            profile_score=profile_score(metrics, self.targets, self.weights),
            reason_flags=flags,
        )

    def _evaluate(self, metrics: FinancialMetrics) -> tuple[bool, list[str]]:
        """Check metrics against the investment targets and build reason flags."""
        t = self.targets
        flags: list[str] = []

        cash_flow = metrics.monthly_cash_flow
        if cash_flow >= t.min_monthly_cash_flow:
            flags.append(f"PASS: cashflow ${cash_flow:.0f}")
        else:
            flags.append(f"FAIL: cashflow ${cash_flow:.0f} < ${t.min_monthly_cash_flow:.0f}")

        if metrics.cap_rate >= t.min_cap_rate:
            flags.append(f"PASS: cap rate {metrics.cap_rate:.2f}%")
        else:
            flags.append(f"FAIL: cap rate {metrics.cap_rate:.2f}% < {t.min_cap_rate:.2f}%")

        coc = metrics.cash_on_cash_return
        if coc >= t.min_cash_on_cash:
            flags.append(f"PASS: CoC {coc:.2f}%")
        else:
            flags.append(f"FAIL: CoC {coc:.2f}% < {t.min_cash_on_cash:.2f}%")

        if metrics.dscr >= t.min_dscr:
            flags.append(f"PASS: DSCR {metrics.dscr:.2f}")
        else:
            flags.append(f"FAIL: DSCR {metrics.dscr:.2f} < {t.min_dscr:.2f}")

        if metrics.one_percent_rule >= 1.0:
            flags.append(f"PASS: 1% rule {metrics.one_percent_rule:.2f}%")
        else:
            flags.append(f"FAIL: 1% rule {metrics.one_percent_rule:.2f}%")

        if metrics.passes_fifty_percent_rule:
            flags.append(f"PASS: 50% rule {metrics.expense_ratio:.1f}%")
        else:
            flags.append(f"FAIL: 50% rule {metrics.expense_ratio:.1f}% > 50%")

        if metrics.grm <= MAX_GRM:
            flags.append(f"PASS: GRM {metrics.grm:.2f}")
        else:
            flags.append(f"FAIL: GRM {metrics.grm:.2f} > {MAX_GRM:.0f}")

        if metrics.break_even_ratio <= MAX_BREAK_EVEN_RATIO:
            flags.append(f"PASS: break-even {metrics.break_even_ratio:.1f}%")
        else:
            flags.append(f"FAIL: break-even {metrics.break_even_ratio:.1f}% > {MAX_BREAK_EVEN_RATIO:.0f}%")

        meets = (
            cash_flow >= t.min_monthly_cash_flow
            and metrics.cap_rate >= t.min_cap_rate
            and coc >= t.min_cash_on_cash
            and metrics.dscr >= t.min_dscr
        )
        return meets, flags
