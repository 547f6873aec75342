"""
Formatting utilities for consistent display of amounts and dates.

Currency is only ever a label appended to the number.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


LOAN_EXPENSE_PREFIX = "💸 Lent to "
LOAN_INCOME_PREFIX = "💰 "

_CENT = Decimal("0.01")


def month_key(day: date) -> str:
    """`YYYY-MM` for the month `day` falls in."""
    return f"{day.year:04d}-{day.month:02d}"


def to_cents(amount: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return amount.quantize(_CENT, rounding=ROUND_HALF_UP)


def format_currency(
    amount: Decimal,
    currency: Optional[str] = None,
    include_symbol: bool = True,
) -> str:
    """
    Format an amount with 2 decimals and thousands separators.

    >>> format_currency(Decimal("1234.5"), "THB")
    '1,234.50 THB'
    """
    formatted = f"{to_cents(Decimal(amount)):,.2f}"
    return f"{formatted} {currency}" if include_symbol and currency else formatted


def format_month_year(day: date) -> str:
    """Short month and year, e.g. 'Oct 2026'."""
    return day.strftime("%b %Y")


def loan_expense_description(friend_name: str) -> str:
    """Description tag for the spending entry that records a loan's principal."""
    return f"{LOAN_EXPENSE_PREFIX}{friend_name}"


def loan_income_description(friend_name: str, paid_on: date) -> str:
    """Description tag for the income entry that records a loan repayment."""
    return f"{LOAN_INCOME_PREFIX}{friend_name} paid back ({format_month_year(paid_on)})"


def is_loan_expense(description: str) -> bool:
    """Was this spending entry written by the loan lifecycle?"""
    return description.startswith(LOAN_EXPENSE_PREFIX)
