"""Financial metrics from price, rent and an expense breakdown."""

from __future__ import annotations

from ..models import ExpenseBreakdown, FinancialMetrics, FinancingAssumptions


def calculate_metrics(
    price: float,
    total_monthly_rent: float | None,
    breakdown: ExpenseBreakdown,
    financing: FinancingAssumptions | None = None,
    rehab_costs: float = 0.0,
) -> FinancialMetrics:
    """Compute NOI, cap rate, cash-on-cash, DSCR, 1% rule and cash flow,
    plus GRM, break-even ratio and the 50% rule expense ratio.

    Percent metrics are in percent units (7.5 means 7.5%). Cash invested is
    down payment + closing costs + ``rehab_costs``. Raises ValueError when
    price is not positive or rent is missing; callers report insufficient
    data instead of calling this.
    """
    if price <= 0:
        raise ValueError(f"price must be positive, got {price}")
    if total_monthly_rent is None or total_monthly_rent <= 0:
        raise ValueError(f"total_monthly_rent must be positive, got {total_monthly_rent}")
    fin = financing or FinancingAssumptions()
    rehab = max(rehab_costs or 0.0, 0.0)

    monthly_operating = breakdown.operating_total()
    monthly_noi = total_monthly_rent - monthly_operating
    annual_noi = monthly_noi * 12

    down_payment = price * fin.down_payment_rate
    closing_costs = price * fin.closing_cost_rate
    total_investment = down_payment + closing_costs + rehab

    monthly_expenses = breakdown.total()
    monthly_cash_flow = total_monthly_rent - monthly_expenses
    annual_cash_flow = monthly_cash_flow * 12

    annual_debt_service = breakdown.mortgage * 12
    dscr = annual_noi / annual_debt_service if annual_debt_service > 0 else 0.0
    coc = annual_cash_flow / total_investment * 100 if total_investment > 0 else 0.0

    return FinancialMetrics(
        cap_rate=annual_noi / price * 100,
        cash_on_cash_return=coc,
        dscr=dscr,
        one_percent_rule=total_monthly_rent / price * 100,
        monthly_cash_flow=monthly_cash_flow,
        annual_cash_flow=annual_cash_flow,
        monthly_noi=monthly_noi,
        annual_noi=annual_noi,
        total_investment=total_investment,
        down_payment=down_payment,
        closing_costs=closing_costs,
        monthly_rent=total_monthly_rent,
        annual_rent=total_monthly_rent * 12,
        monthly_expenses=monthly_expenses,
        annual_expenses=monthly_expenses * 12,
        expense_breakdown=breakdown,
        rehab_costs=rehab,
        grm=price / (total_monthly_rent * 12),
        # operating expenses + debt service over gross rent
        break_even_ratio=monthly_expenses / total_monthly_rent * 100,
        expense_ratio=monthly_operating / total_monthly_rent * 100,
    )
