"""
Daily Usable Amount (DUA).

The DUA is what can be spent per remaining day of the month without
eating into the commitment:

    (income - commitment - spent_before_today) / days_remaining

spent_before_today leaves out anything already logged today, so the
figure is the budget as of the start of the day. Logging an expense
today changes tomorrow's DUA, not today's.

A negative DUA is a real answer (the month is already over budget) and
is never clamped.
"""

from decimal import Decimal

from spendwise.budget.calendar_utils import Clock, current_month, days_remaining_in_month, today
from spendwise.budget.commitment import daily_savings, monthly_commitment
from spendwise.models.ledger import BudgetSnapshot, LedgerState
from spendwise.queries.ledger_queries import spent_in_month, spent_on_day, total_income


def daily_usable_amount(
    income: Decimal,
    commitment: Decimal,
    spent_before_today: Decimal,
    days_remaining: int,
) -> Decimal:
    """Amount safely spendable per remaining day; 0 when no days remain."""
    if days_remaining <= 0:
        return Decimal("0")
    return (income - commitment - spent_before_today) / Decimal(days_remaining)


def is_at_risk(dua: Decimal) -> bool:
    return dua <= 0


def compute_budget_snapshot(state: LedgerState, clock: Clock) -> BudgetSnapshot:
    """Derive every dashboard figure for the clock's current day."""
    month = current_month(clock)
    day = today(clock)
    days_remaining = days_remaining_in_month(clock)
    settings = state.settings

    income = total_income(state.incomes)
    commitment = monthly_commitment(
        settings.savings_goal,
        settings.savings_goal_type,
        state.fixed_expenses,
        state.one_time_planned,
        month,
    )
    spent_this_month = spent_in_month(state.daily_spending, month)
    spent_today = spent_on_day(state.daily_spending, day)
    spent_before_today = spent_this_month - spent_today

    dua = daily_usable_amount(income, commitment, spent_before_today, days_remaining)

    if dua > 0:
        percentage = min(spent_today / dua * 100, Decimal("100"))
    else:
        percentage = Decimal("100")

    return BudgetSnapshot(
        current_month=month,
        today=day,
        days_remaining=days_remaining,
        monthly_income=income,
        commitment=commitment,
        spent_this_month=spent_this_month,
        spent_today=spent_today,
        spent_before_today=spent_before_today,
        base_daily_usable_amount=dua,
        available_budget=income - commitment - spent_this_month,
        daily_savings_amount=daily_savings(settings.savings_goal, settings.savings_goal_type),
        todays_remaining=max(dua - spent_today, Decimal("0")),
        percentage_spent_today=percentage,
    )
