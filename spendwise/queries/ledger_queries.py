"""
Ledger Queries

DESIGN DECISION: Queries are DETERMINISTIC reads over a LedgerState.
They never consult the clock themselves; the caller passes the month or
day it means. This keeps every figure on the dashboard reproducible
from a snapshot plus a date.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable

from spendwise.models.ledger import (
    DailySpendingEntry,
    IncomeEntry,
    Loan,
    LoanPortfolioSummary,
    LoanStatus,
)
from spendwise.utils.formatters import month_key


def total_income(incomes: Iterable[IncomeEntry]) -> Decimal:
    """Monthly income: every income entry counts every month."""
    return sum((entry.amount for entry in incomes), Decimal("0"))


def spent_in_month(daily_spending: Iterable[DailySpendingEntry], month: str) -> Decimal:
    """Total spending dated within `month` (YYYY-MM)."""
    return sum(
        (entry.amount for entry in daily_spending if month_key(entry.date) == month),
        Decimal("0"),
    )


def spent_on_day(daily_spending: Iterable[DailySpendingEntry], day: date) -> Decimal:
    """Total spending dated exactly `day`."""
    return sum(
        (entry.amount for entry in daily_spending if entry.date == day),
        Decimal("0"),
    )


def spending_by_date(
    daily_spending: Iterable[DailySpendingEntry],
    month: str,
) -> dict[date, list[DailySpendingEntry]]:
    """
    Entries of `month` grouped by date, newest date first.

    Within a date, entries keep their ledger order.
    """
    grouped: dict[date, list[DailySpendingEntry]] = defaultdict(list)
    for entry in daily_spending:
        if month_key(entry.date) == month:
            grouped[entry.date].append(entry)
    return {day: grouped[day] for day in sorted(grouped, reverse=True)}


def loan_portfolio(
    loans: Iterable[Loan],
    current_month: str,
    today: date,
) -> LoanPortfolioSummary:
    """
    Summarize loans for the loan list header.

    Totals only cover pending loans: paid and written-off ones are settled.
    A pending loan is past due when its return date is before `today`.
    """
    loans = list(loans)
    pending = [loan for loan in loans if loan.status == LoanStatus.PENDING]
    due_this_month = [
        loan for loan in pending
        if month_key(loan.expected_return_date) == current_month
    ]

    return LoanPortfolioSummary(
        pending_count=len(pending),
        paid_count=sum(1 for loan in loans if loan.status == LoanStatus.PAID),
        written_off_count=sum(1 for loan in loans if loan.status == LoanStatus.WRITTEN_OFF),
        total_lent=sum((loan.principal for loan in pending), Decimal("0")),
        total_expected=sum((loan.expected_amount for loan in pending), Decimal("0")),
        due_this_month_count=len(due_this_month),
        due_this_month_expected=sum(
            (loan.expected_amount for loan in due_this_month), Decimal("0")
        ),
        past_due_loan_ids=[
            loan.id for loan in pending if loan.expected_return_date < today
        ],
    )
