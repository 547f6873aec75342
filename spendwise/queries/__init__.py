"""Ledger query package."""

from spendwise.queries.ledger_queries import (
    loan_portfolio,
    spending_by_date,
    spent_in_month,
    spent_on_day,
    total_income,
)

__all__ = [
    "loan_portfolio",
    "spending_by_date",
    "spent_in_month",
    "spent_on_day",
    "total_income",
]
