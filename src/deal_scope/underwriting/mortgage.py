"""Fixed-rate mortgage amortization."""

from __future__ import annotations


def monthly_payment(
    price: float,
    down_payment_rate: float = 0.20,
    annual_interest_rate: float = 0.07,
    term_years: int = 30,
) -> float:
    """Principal + interest per month (taxes and insurance excluded).

    Zero interest pays the principal down evenly; a non-positive price or
    term gives 0.
    """
    principal = price * (1 - down_payment_rate)
    n = term_years * 12
    if price <= 0 or principal <= 0 or n <= 0:
        return 0.0
    r = annual_interest_rate / 12
    if r == 0:
        return principal / n
    growth = (1 + r) ** n
    return principal * r * growth / (growth - 1)
