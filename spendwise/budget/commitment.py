"""
Commitment aggregation.

The monthly commitment is everything that must come out of this month's
income before any day-to-day spending: the savings goal, recurring fixed
expenses, and one-time expenses planned for this month.
"""

from decimal import Decimal
from typing import Iterable

from spendwise.models.ledger import (
    ExpenseFrequency,
    FixedExpense,
    OneTimePlanned,
    SavingsGoalType,
)


DAYS_PER_MONTH = Decimal("30")
DAYS_PER_YEAR = Decimal("365")
MONTHS_PER_YEAR = Decimal("12")


def monthly_savings(savings_goal: Decimal, savings_goal_type: SavingsGoalType) -> Decimal:
    """Savings goal as a monthly figure: daily x 30, monthly x 1, yearly / 12."""
    if savings_goal_type == SavingsGoalType.DAILY:
        return savings_goal * DAYS_PER_MONTH
    if savings_goal_type == SavingsGoalType.YEARLY:
        return savings_goal / MONTHS_PER_YEAR
    return savings_goal


def daily_savings(savings_goal: Decimal, savings_goal_type: SavingsGoalType) -> Decimal:
    """Savings goal as a daily figure: daily x 1, monthly / 30, yearly / 365."""
    if savings_goal_type == SavingsGoalType.DAILY:
        return savings_goal
    if savings_goal_type == SavingsGoalType.MONTHLY:
        return savings_goal / DAYS_PER_MONTH
    return savings_goal / DAYS_PER_YEAR


def monthly_fixed_total(fixed_expenses: Iterable[FixedExpense]) -> Decimal:
    """Sum of fixed expenses, yearly ones normalized to amount / 12."""
    total = Decimal("0")
    for expense in fixed_expenses:
        if expense.frequency == ExpenseFrequency.YEARLY:
            total += expense.amount / MONTHS_PER_YEAR
        else:
            total += expense.amount
    return total


def one_time_total(one_time_planned: Iterable[OneTimePlanned], target_month: str) -> Decimal:
    """Sum of one-time expenses whose month is exactly `target_month` (YYYY-MM)."""
    return sum(
        (item.amount for item in one_time_planned if item.month == target_month),
        Decimal("0"),
    )


def monthly_commitment(
    savings_goal: Decimal,
    savings_goal_type: SavingsGoalType,
    fixed_expenses: Iterable[FixedExpense],
    one_time_planned: Iterable[OneTimePlanned],
    target_month: str,
) -> Decimal:
    """
    Total monthly commitment for `target_month`.

    Depends only on its arguments; the caller decides which month is
    "this month".
    """
    return (
        monthly_savings(savings_goal, savings_goal_type)
        + monthly_fixed_total(fixed_expenses)
        + one_time_total(one_time_planned, target_month)
    )
