"""Monthly operating expenses plus debt service."""

from __future__ import annotations

from ..models import ExpenseAssumptions, ExpenseBreakdown, FinancingAssumptions
from .mortgage import monthly_payment


def build_expense_breakdown(
    price: float,
    total_monthly_rent: float,
    expenses: ExpenseAssumptions | None = None,
    financing: FinancingAssumptions | None = None,
    hoa_monthly: float | None = None,
) -> ExpenseBreakdown:
    """Break monthly costs into categories.

    Tax, insurance and maintenance are annual rates of price; vacancy and
    management are fractions of total monthly rent. ``hoa_monthly`` from the
    listing wins over the configured HOA when it is positive.
    """
    ex = expenses or ExpenseAssumptions()
    fin = financing or FinancingAssumptions()
    price = max(price, 0.0)
    rent = max(total_monthly_rent, 0.0)
    hoa = hoa_monthly if hoa_monthly and hoa_monthly > 0 else ex.hoa_monthly

    return ExpenseBreakdown(
        mortgage=monthly_payment(price, fin.down_payment_rate, fin.interest_rate, fin.term_years),
        property_tax=price * ex.property_tax_rate_annual / 12,
        insurance=price * ex.insurance_rate_annual / 12,
        maintenance=price * ex.maintenance_rate_annual / 12,
        vacancy=rent * ex.vacancy_rate,
        management=rent * ex.management_rate,
        hoa=max(hoa, 0.0),
    )
