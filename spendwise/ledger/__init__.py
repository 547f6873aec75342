"""Add, update and remove for the four ledgers and the budget settings."""

from spendwise.ledger.entries import (
    add_daily_spending,
    add_fixed_expense,
    add_income,
    add_one_time,
    remove_daily_spending,
    remove_fixed_expense,
    remove_income,
    remove_one_time,
    update_daily_spending,
    update_fixed_expense,
    update_income,
    update_one_time,
    update_settings,
)

__all__ = [
    "add_daily_spending",
    "add_fixed_expense",
    "add_income",
    "add_one_time",
    "remove_daily_spending",
    "remove_fixed_expense",
    "remove_income",
    "remove_one_time",
    "update_daily_spending",
    "update_fixed_expense",
    "update_income",
    "update_one_time",
    "update_settings",
]
