"""Shared helpers: id generation and display formatting."""

from spendwise.utils.formatters import (
    format_currency,
    format_month_year,
    is_loan_expense,
    loan_expense_description,
    loan_income_description,
    month_key,
    to_cents,
)
from spendwise.utils.ids import generate_id

__all__ = [
    "format_currency",
    "format_month_year",
    "generate_id",
    "is_loan_expense",
    "loan_expense_description",
    "loan_income_description",
    "month_key",
    "to_cents",
]
