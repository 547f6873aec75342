"""
Loan interest calculator.

Pure functions: month counting, simple and compound accrual, and
return-date roll-forward. Interest rates are percent per month.
"""

import calendar
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from spendwise.models.ledger import InterestType


HUNDRED = Decimal("100")


class LoanTerms(BaseModel):
    """Everything needed to price a loan over a date range."""

    principal: Decimal = Field(..., ge=0)
    interest_rate: Decimal = Field(..., ge=0, description="Percent per month")
    interest_type: InterestType
    lent_date: date
    return_date: date


def months_between(start: date, end: date) -> int:
    """
    Calendar-month boundaries crossed from `start` to `end`.

    Day of month is ignored: lending on the 28th and getting paid back
    on the 2nd of the next month counts as one month. Never negative.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(0, months)


def accrue(
    principal: Decimal,
    rate_percent_per_month: Decimal,
    months: int,
    interest_type: InterestType,
) -> Decimal:
    """
    Principal plus interest after `months` months.

    simple:   P * (1 + r * m)
    compound: P * (1 + r) ** m
    with r = rate / 100. No rate or no elapsed months means no interest.
    """
    if rate_percent_per_month <= 0 or months <= 0:
        return principal

    rate = Decimal(rate_percent_per_month) / HUNDRED

    if interest_type == InterestType.SIMPLE:
        return principal * (1 + rate * months)
    return principal * (1 + rate) ** months


def expected_amount(terms: LoanTerms) -> Decimal:
    """Amount due back on `terms.return_date`."""
    months = months_between(terms.lent_date, terms.return_date)
    return accrue(terms.principal, terms.interest_rate, months, terms.interest_type)


def push_return_date(current: date, months_to_add: int = 1) -> date:
    """
    Move a date forward by whole calendar months.

    When the target month is shorter, the day is clamped to that month's
    last day: Jan 31 + 1 month is Feb 28 (Feb 29 in a leap year), never
    an overflow into March.
    """
    month_index = current.month - 1 + months_to_add
    year = current.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(current.day, last_day))


def interest_portion(principal: Decimal, expected: Decimal) -> Decimal:
    """Interest part of an expected amount."""
    return expected - principal
