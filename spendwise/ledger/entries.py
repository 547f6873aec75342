"""
Ledger entry management.

Add, update and remove for the four ledgers (incomes, fixed expenses,
one-time planned expenses, daily spending) plus the settings singleton.
Same contract as the loan lifecycle: pure functions returning a
TransitionResult, ValidationError for malformed input, applied=False for
an unknown id.

DESIGN DECISION: Entries written by the loan lifecycle (a loan's
principal expense, its repayment income) can only change through the
loan. Updating or removing them here is refused; remove the loan instead.
"""

from typing import Any, Optional

from spendwise.budget.calendar_utils import Clock, today
from spendwise.models.ledger import (
    BudgetSettings,
    DailySpendingEntry,
    FixedExpense,
    IncomeEntry,
    LedgerCollection,
    LedgerModel,
    LedgerState,
    OneTimePlanned,
    TransitionResult,
)
from spendwise.validation.validator import get_validator


def _linked_loan_reason(
    state: LedgerState,
    collection: LedgerCollection,
    entry_id: int,
) -> Optional[str]:
    """Why an entry may not be edited directly, or None if it may."""
    if collection == LedgerCollection.DAILY_SPENDING:
        loan = state.loan_for_expense(entry_id)
        if loan is not None:
            return f"daily spending {entry_id} records the principal of loan {loan.id}"
    elif collection == LedgerCollection.INCOMES:
        loan = state.loan_for_income(entry_id)
        if loan is not None:
            return f"income {entry_id} records the repayment of loan {loan.id}"
    return None


def _add(state: LedgerState, collection: LedgerCollection, entry: LedgerModel) -> TransitionResult:
    entries = getattr(state, collection.value)
    new_state = state.replace(**{collection.value: [*entries, entry]})
    return TransitionResult.ok(new_state, **{collection.value: entry.id})


def _update(
    state: LedgerState,
    collection: LedgerCollection,
    entry: LedgerModel,
    operation: str,
) -> TransitionResult:
    entries = getattr(state, collection.value)
    if not any(existing.id == entry.id for existing in entries):
        return TransitionResult.rejected(
            state, f"{operation}: {collection.value} entry {entry.id} not found"
        )

    linked = _linked_loan_reason(state, collection, entry.id)
    if linked:
        return TransitionResult.rejected(state, f"{operation}: {linked}")

    updated = [entry if existing.id == entry.id else existing for existing in entries]
    return TransitionResult.ok(state.replace(**{collection.value: updated}))


def _remove(
    state: LedgerState,
    collection: LedgerCollection,
    entry_id: int,
    operation: str,
) -> TransitionResult:
    get_validator().check_entry_id("id", entry_id).require(operation)

    entries = getattr(state, collection.value)
    if not any(existing.id == entry_id for existing in entries):
        return TransitionResult.rejected(
            state, f"{operation}: {collection.value} entry {entry_id} not found"
        )

    linked = _linked_loan_reason(state, collection, entry_id)
    if linked:
        return TransitionResult.rejected(state, f"{operation}: {linked}")

    remaining = [existing for existing in entries if existing.id != entry_id]
    return TransitionResult.ok(state.replace(**{collection.value: remaining}))


# =============================================================================
# INCOMES
# =============================================================================

def add_income(state: LedgerState, amount: Any, description: Any = "") -> TransitionResult:
    """Add a monthly income source."""
    values = get_validator().check_income(amount, description).require("add_income")
    entry = IncomeEntry(id=state.next_id(LedgerCollection.INCOMES), **values)
    return _add(state, LedgerCollection.INCOMES, entry)


def update_income(
    state: LedgerState,
    income_id: int,
    amount: Any,
    description: Any = "",
) -> TransitionResult:
    get_validator().check_entry_id("id", income_id).require("update_income")
    values = get_validator().check_income(amount, description).require("update_income")
    entry = IncomeEntry(id=income_id, **values)
    return _update(state, LedgerCollection.INCOMES, entry, "update_income")


def remove_income(state: LedgerState, income_id: int) -> TransitionResult:
    return _remove(state, LedgerCollection.INCOMES, income_id, "remove_income")


# =============================================================================
# FIXED EXPENSES
# =============================================================================

def add_fixed_expense(
    state: LedgerState,
    name: Any,
    amount: Any,
    frequency: Any = "monthly",
) -> TransitionResult:
    """Add a recurring obligation (rent, subscriptions, insurance...)."""
    values = get_validator().check_fixed_expense(name, amount, frequency).require(
        "add_fixed_expense"
    )
    entry = FixedExpense(id=state.next_id(LedgerCollection.FIXED_EXPENSES), **values)
    return _add(state, LedgerCollection.FIXED_EXPENSES, entry)


def update_fixed_expense(
    state: LedgerState,
    expense_id: int,
    name: Any,
    amount: Any,
    frequency: Any = "monthly",
) -> TransitionResult:
    get_validator().check_entry_id("id", expense_id).require("update_fixed_expense")
    values = get_validator().check_fixed_expense(name, amount, frequency).require(
        "update_fixed_expense"
    )
    entry = FixedExpense(id=expense_id, **values)
    return _update(state, LedgerCollection.FIXED_EXPENSES, entry, "update_fixed_expense")


def remove_fixed_expense(state: LedgerState, expense_id: int) -> TransitionResult:
    return _remove(state, LedgerCollection.FIXED_EXPENSES, expense_id, "remove_fixed_expense")


# =============================================================================
# ONE-TIME PLANNED EXPENSES
# =============================================================================

def add_one_time(state: LedgerState, name: Any, amount: Any, month: Any) -> TransitionResult:
    """Plan an expense for a single YYYY-MM month."""
    values = get_validator().check_one_time(name, amount, month).require("add_one_time")
    entry = OneTimePlanned(id=state.next_id(LedgerCollection.ONE_TIME_PLANNED), **values)
    return _add(state, LedgerCollection.ONE_TIME_PLANNED, entry)


def update_one_time(
    state: LedgerState,
    entry_id: int,
    name: Any,
    amount: Any,
    month: Any,
) -> TransitionResult:
    get_validator().check_entry_id("id", entry_id).require("update_one_time")
    values = get_validator().check_one_time(name, amount, month).require("update_one_time")
    entry = OneTimePlanned(id=entry_id, **values)
    return _update(state, LedgerCollection.ONE_TIME_PLANNED, entry, "update_one_time")


def remove_one_time(state: LedgerState, entry_id: int) -> TransitionResult:
    return _remove(state, LedgerCollection.ONE_TIME_PLANNED, entry_id, "remove_one_time")


# =============================================================================
# DAILY SPENDING
# =============================================================================

def add_daily_spending(
    state: LedgerState,
    clock: Clock,
    amount: Any,
    description: Any = "",
    spent_on: Any = None,
) -> TransitionResult:
    """Log money spent. Dated today unless `spent_on` is given."""
    if spent_on is None:
        spent_on = today(clock)
    values = get_validator().check_daily_spending(amount, description, spent_on).require(
        "add_daily_spending"
    )
    entry = DailySpendingEntry(id=state.next_id(LedgerCollection.DAILY_SPENDING), **values)
    return _add(state, LedgerCollection.DAILY_SPENDING, entry)


def update_daily_spending(
    state: LedgerState,
    entry_id: int,
    amount: Any,
    description: Any,
    spent_on: Any,
) -> TransitionResult:
    get_validator().check_entry_id("id", entry_id).require("update_daily_spending")
    values = get_validator().check_daily_spending(amount, description, spent_on).require(
        "update_daily_spending"
    )
    entry = DailySpendingEntry(id=entry_id, **values)
    return _update(state, LedgerCollection.DAILY_SPENDING, entry, "update_daily_spending")


def remove_daily_spending(state: LedgerState, entry_id: int) -> TransitionResult:
    return _remove(state, LedgerCollection.DAILY_SPENDING, entry_id, "remove_daily_spending")


# =============================================================================
# SETTINGS
# =============================================================================

def update_settings(
    state: LedgerState,
    savings_goal: Any,
    savings_goal_type: Any,
    currency: Any,
) -> TransitionResult:
    """Replace the budget settings. The currency label is never converted."""
    values = get_validator().check_settings(savings_goal, savings_goal_type, currency).require(
        "update_settings"
    )
    return TransitionResult.ok(state.replace(settings=BudgetSettings(**values)))
