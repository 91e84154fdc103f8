"""Rental property analysis: rent reconciliation, financial metrics and deal scoring."""

__version__ = "0.1.0"
