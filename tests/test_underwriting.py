"""Tests for mortgage, expenses, metrics, scoring and the underwriting engine."""

import pytest

from deal_scope.config import PRESET_WEIGHTS, TARGET_PRESETS
from deal_scope.models import (
    Badge,
    ExpenseAssumptions,
    ExpenseBreakdown,
    FinancialMetrics,
    FinancingAssumptions,
    InvestmentTargets,
    ScoringWeights,
)
from deal_scope.underwriting import (
    UnderwritingEngine,
    badge_for_score,
    build_expense_breakdown,
    calculate_metrics,
    insufficient_data,
    monthly_payment,
    profile_score,
    score_metrics,
)


def metrics_with(
    coc: float = 0.0, cap: float = 0.0, dscr: float = 0.0, cash_flow: float = 0.0
) -> FinancialMetrics:
    """Metrics with only the four scored fields set."""
    return FinancialMetrics(
        cap_rate=cap,
        cash_on_cash_return=coc,
        dscr=dscr,
        one_percent_rule=0.0,
        monthly_cash_flow=cash_flow,
        annual_cash_flow=cash_flow * 12,
        monthly_noi=0.0,
        annual_noi=0.0,
        total_investment=0.0,
        down_payment=0.0,
        closing_costs=0.0,
        monthly_rent=0.0,
        annual_rent=0.0,
        monthly_expenses=0.0,
        annual_expenses=0.0,
        expense_breakdown=ExpenseBreakdown(),
    )


class TestMortgage:
    def test_standard_payment(self) -> None:
        assert monthly_payment(300000, 0.20, 0.07, 30) == pytest.approx(1596.73, abs=0.01)

    def test_zero_rate(self) -> None:
        assert monthly_payment(300000, 0.20, 0.0, 30) == pytest.approx(240000 / 360)

    def test_no_principal(self) -> None:
        assert monthly_payment(0, 0.20, 0.07, 30) == 0
        assert monthly_payment(300000, 1.0, 0.07, 30) == 0

    def test_higher_rate_costs_more(self) -> None:
        assert monthly_payment(300000, 0.2, 0.08, 30) > monthly_payment(300000, 0.2, 0.07, 30)


class TestExpenses:
    def test_default_breakdown(self) -> None:
        b = build_expense_breakdown(300000, 2000)
        assert b.property_tax == pytest.approx(300)
        assert b.insurance == pytest.approx(125)
        assert b.maintenance == pytest.approx(250)
        assert b.vacancy == pytest.approx(100)
        assert b.management == pytest.approx(200)
        assert b.hoa == 0
        assert b.mortgage == pytest.approx(1596.73, abs=0.01)
        assert b.operating_total() == pytest.approx(975)

    def test_listing_hoa_overrides_config(self) -> None:
        b = build_expense_breakdown(300000, 2000, ExpenseAssumptions(hoa_monthly=50), hoa_monthly=120)
        assert b.hoa == 120
        b = build_expense_breakdown(300000, 2000, ExpenseAssumptions(hoa_monthly=50))
        assert b.hoa == 50

    def test_all_categories_non_negative(self) -> None:
        b = build_expense_breakdown(250000, 1800)
        assert all(v >= 0 for v in b.to_dict().values())
        assert set(b.to_dict()) == {
            "mortgage", "propertyTax", "insurance", "maintenance", "vacancy", "management", "hoa"
        }

    def test_negative_expense_rejected(self) -> None:
        with pytest.raises(ValueError):
            ExpenseBreakdown(mortgage=-1)


class TestMetrics:
    def test_reference_property(self) -> None:
        b = build_expense_breakdown(300000, 2000)
        m = calculate_metrics(300000, 2000, b)
        assert m.annual_noi == pytest.approx(12300)
        assert m.cap_rate == pytest.approx(4.1)
        assert m.total_investment == pytest.approx(69000)
        assert m.down_payment == pytest.approx(60000)
        assert m.closing_costs == pytest.approx(9000)
        assert m.monthly_cash_flow == pytest.approx(2000 - 975 - b.mortgage)
        assert m.cash_on_cash_return == pytest.approx(m.annual_cash_flow / 69000 * 100)
        assert m.dscr == pytest.approx(12300 / (b.mortgage * 12))
        assert m.one_percent_rule == pytest.approx(2000 / 300000 * 100)

    def test_cash_flow_identity(self) -> None:
        b = build_expense_breakdown(420000, 3100)
        m = calculate_metrics(420000, 3100, b)
        assert m.monthly_cash_flow == pytest.approx(3100 - sum(b.to_dict().values()))
        assert m.annual_cash_flow == pytest.approx(m.monthly_cash_flow * 12)

    def test_scale_invariance(self) -> None:
        base = calculate_metrics(300000, 2000, build_expense_breakdown(300000, 2000))
        scaled = calculate_metrics(900000, 6000, build_expense_breakdown(900000, 6000))
        assert scaled.cap_rate == pytest.approx(base.cap_rate)
        assert scaled.cash_on_cash_return == pytest.approx(base.cash_on_cash_return)
        assert scaled.dscr == pytest.approx(base.dscr)
        assert scaled.one_percent_rule == pytest.approx(base.one_percent_rule)

    def test_no_debt_means_zero_dscr(self) -> None:
        fin = FinancingAssumptions(down_payment_rate=1.0)
        b = build_expense_breakdown(300000, 2000, financing=fin)
        m = calculate_metrics(300000, 2000, b, fin)
        assert m.dscr == 0

    def test_rent_ratios(self) -> None:
        b = build_expense_breakdown(300000, 2000)
        m = calculate_metrics(300000, 2000, b)
        assert m.grm == pytest.approx(12.5)
        assert m.expense_ratio == pytest.approx(48.75)
        assert m.passes_fifty_percent_rule
        assert m.break_even_ratio == pytest.approx((975 + b.mortgage) / 2000 * 100)

    def test_fifty_percent_rule_fails_on_heavy_expenses(self) -> None:
        b = build_expense_breakdown(300000, 2000, ExpenseAssumptions(hoa_monthly=100))
        m = calculate_metrics(300000, 2000, b)
        assert m.expense_ratio == pytest.approx(53.75)
        assert not m.passes_fifty_percent_rule

    def test_rehab_counts_as_cash_invested(self) -> None:
        b = build_expense_breakdown(300000, 2000)
        m = calculate_metrics(300000, 2000, b, rehab_costs=11000)
        assert m.total_investment == pytest.approx(80000)
        assert m.rehab_costs == 11000
        assert m.cash_on_cash_return == pytest.approx(m.annual_cash_flow / 80000 * 100)
        assert m.to_dict()["rehabCosts"] == 11000

    @pytest.mark.parametrize("price,rent", [(0, 2000), (-1, 2000), (300000, None), (300000, 0)])
    def test_missing_inputs_raise(self, price, rent) -> None:
        with pytest.raises(ValueError):
            calculate_metrics(price, rent, ExpenseBreakdown())


class TestScoring:
    def test_perfect_score(self) -> None:
        result = score_metrics(metrics_with(coc=15, cap=9, dscr=1.6, cash_flow=600))
        assert result.score == 100
        assert result.badge is Badge.EXCELLENT

    def test_band_lower_bounds_are_inclusive(self) -> None:
        result = score_metrics(metrics_with(coc=8, cap=6, dscr=1.25, cash_flow=300))
        assert result.score == 28 + 20 + 16 + 16

    def test_negative_everything_scores_zero(self) -> None:
        result = score_metrics(metrics_with(coc=-5, cap=-1, dscr=0.5, cash_flow=-100))
        assert result.score == 0
        assert result.badge is Badge.AVOID

    def test_zero_cash_flow_earns_floor_points(self) -> None:
        result = score_metrics(metrics_with(coc=0, cash_flow=0))
        assert result.score == 5 + 2

    def test_monotonic_in_cash_on_cash(self) -> None:
        scores = [
            score_metrics(metrics_with(coc=c, cap=5, dscr=1.1, cash_flow=100)).score
            for c in (-10, -1, 0, 1, 2, 4, 5, 7, 8, 11, 12, 30)
        ]
        assert scores == sorted(scores)

    @pytest.mark.parametrize(
        "score,badge",
        [
            (100, Badge.EXCELLENT),
            (85, Badge.EXCELLENT),
            (84, Badge.GOOD),
            (70, Badge.GOOD),
            (69, Badge.FAIR),
            (50, Badge.FAIR),
            (49, Badge.RISKY),
            (30, Badge.RISKY),
            (29, Badge.AVOID),
            (0, Badge.AVOID),
        ],
    )
    def test_badge_thresholds(self, score: int, badge: Badge) -> None:
        assert badge_for_score(score) is badge

    def test_insufficient_data(self) -> None:
        result = insufficient_data()
        assert result.score == 0
        assert result.badge is Badge.INSUFFICIENT_DATA
        assert result.badge_description == "Insufficient data for analysis"


class TestProfileScore:
    def test_strong_deal_moderate(self) -> None:
        b = build_expense_breakdown(100000, 1500)
        assert profile_score(calculate_metrics(100000, 1500, b)) == 75

    def test_weak_deal_rounds_half_up(self) -> None:
        # 50 - 2.5 - 2.5 - 4.5 - 3 = 37.5
        b = build_expense_breakdown(300000, 2000)
        assert profile_score(calculate_metrics(300000, 2000, b)) == 38

    def test_preset_changes_score(self) -> None:
        m = calculate_metrics(300000, 2000, build_expense_breakdown(300000, 2000))
        # cap rate 4.1% clears the aggressive 4% target
        assert profile_score(m, TARGET_PRESETS["aggressive"], PRESET_WEIGHTS["aggressive"]) == 42

    def test_clamped_to_range(self) -> None:
        huge = metrics_with(coc=100, cap=100, dscr=10, cash_flow=10000)
        assert profile_score(huge, weights=ScoringWeights(1, 1, 1, 1)) == 100
        awful = metrics_with(coc=-50, cap=-5, dscr=0, cash_flow=-900)
        assert profile_score(awful, weights=ScoringWeights(2, 2, 2, 2)) == 0

    def test_no_metrics(self) -> None:
        assert profile_score(None) == 0


class TestUnderwritingEngine:
    def test_reference_property_end_to_end(self, empty_config) -> None:
        engine = UnderwritingEngine(config=empty_config)
        result = engine.underwrite(300000, 2000)
        # CoC < 0 -> 0, cap 4.1% -> 15, DSCR 0.64 -> 0, cash flow < 0 -> 0
        assert result.score.score == 15
        assert result.score.badge is Badge.AVOID
        assert not result.meets_targets
        assert not result.passes_one_percent_rule

    def test_strong_deal(self, empty_config) -> None:
        engine = UnderwritingEngine(config=empty_config)
        result = engine.underwrite(100000, 1500)
        assert result.metrics.cap_rate == pytest.approx(12.6)
        assert result.score.score == 100
        assert result.score.badge is Badge.EXCELLENT
        assert result.meets_targets
        assert result.passes_one_percent_rule
        assert all(f.startswith("PASS") for f in result.reason_flags)

    def test_deterministic(self, empty_config) -> None:
        engine = UnderwritingEngine(config=empty_config)
        a = engine.underwrite(300000, 2000)
        b = engine.underwrite(300000, 2000)
        assert a.metrics.to_dict() == b.metrics.to_dict()
        assert a.score == b.score

    @pytest.mark.parametrize("price,rent", [(0, 2000), (300000, None), (300000, 0)])
    def test_missing_inputs_are_insufficient(self, empty_config, price, rent) -> None:
        result = UnderwritingEngine(config=empty_config).underwrite(price, rent)
        assert result.metrics is None
        assert result.expenses is None
        assert result.score.badge is Badge.INSUFFICIENT_DATA
        assert result.score.score == 0
        assert result.reason_flags[0].startswith("FAIL: missing")

    def test_reason_flags_cover_each_target(self, empty_config) -> None:
        result = UnderwritingEngine(config=empty_config).underwrite(300000, 2000)
        joined = " ".join(result.reason_flags)
        for label in ("cashflow", "cap rate", "CoC", "DSCR", "1% rule", "50% rule", "GRM", "break-even"):
            assert label in joined

    def test_calculator_flags_and_profile_score(self, empty_config) -> None:
        result = UnderwritingEngine(config=empty_config).underwrite(300000, 2000)
        assert result.passes_fifty_percent_rule
        assert result.profile_score == 38
        assert any(f.startswith("PASS: 50% rule") for f in result.reason_flags)
        assert "PASS: GRM 12.50" in result.reason_flags
        assert any(f.startswith("FAIL: break-even") for f in result.reason_flags)

    def test_aggressive_preset_profile_score(self) -> None:
        result = UnderwritingEngine(config={"targets": {"preset": "aggressive"}}).underwrite(300000, 2000)
        assert result.profile_score == 42

    def test_rehab_costs_reduce_cash_on_cash(self, empty_config) -> None:
        engine = UnderwritingEngine(config=empty_config)
        base = engine.underwrite(100000, 1500)
        rehab = engine.underwrite(100000, 1500, rehab_costs=20000)
        assert rehab.metrics.total_investment == pytest.approx(base.metrics.total_investment + 20000)
        assert rehab.metrics.cash_on_cash_return < base.metrics.cash_on_cash_return

    def test_targets_from_preset(self) -> None:
        engine = UnderwritingEngine(config={"targets": {"preset": "aggressive"}})
        assert engine.targets == InvestmentTargets(4.0, 6.0, 100.0, 1.0)

    def test_config_overrides_financing(self) -> None:
        engine = UnderwritingEngine(config={"financing": {"interest_rate": 0.0}})
        result = engine.underwrite(300000, 2000)
        assert result.expenses.mortgage == pytest.approx(240000 / 360)

    def test_listing_hoa_reaches_cash_flow(self, empty_config) -> None:
        engine = UnderwritingEngine(config=empty_config)
        base = engine.underwrite(300000, 2000)
        with_hoa = engine.underwrite(300000, 2000, hoa_monthly=150)
        assert with_hoa.expenses.hoa == 150
        assert with_hoa.metrics.monthly_cash_flow == pytest.approx(base.metrics.monthly_cash_flow - 150)
