"""
Loan Lifecycle Manager

Every operation is a pure transition: it takes a LedgerState and returns
a TransitionResult carrying the next LedgerState. Nothing here performs
I/O or keeps state of its own.

Lifecycle:

    create ──> PENDING ──push_month──> PENDING
                  │
                  ├──mark_paid──> PAID          (terminal)
                  └──write_off──> WRITTEN_OFF   (terminal)

    remove: from any state, cascades to the linked ledger entries

DESIGN DECISION: push_month, mark_paid and write_off are only legal on a
PENDING loan. On any other loan (or an unknown id) they return the input
state unchanged with applied=False and a reason. Callers that only offer
legal actions can ignore the flag; the service audits it.

DESIGN DECISION: A loan and the ledger entries it owns change in the same
transition. The new LedgerState is built in one step, so no reader ever
sees the principal expense without its loan or a paid loan without its
repayment income.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from spendwise.budget.calendar_utils import Clock, today
from spendwise.loans.calculator import LoanTerms, expected_amount, push_return_date
from spendwise.models.ledger import (
    DailySpendingEntry,
    IncomeEntry,
    LedgerCollection,
    LedgerState,
    Loan,
    LoanStatus,
    TransitionResult,
)
from spendwise.utils.formatters import loan_expense_description, loan_income_description
from spendwise.validation.validator import get_validator


def _not_pending(state: LedgerState, loan_id: int, operation: str) -> Optional[TransitionResult]:
    """A rejected result if `loan_id` is unknown or not pending, else None."""
    loan = state.find_loan(loan_id)
    if loan is None:
        return TransitionResult.rejected(state, f"{operation}: loan {loan_id} not found")
    if not loan.is_pending:
        return TransitionResult.rejected(
            state,
            f"{operation}: loan {loan_id} is {loan.status.value}, not pending",
        )
    return None


def _replace_loan(loans: list[Loan], updated: Loan) -> list[Loan]:
    return [updated if loan.id == updated.id else loan for loan in loans]


def loan_terms(loan: Loan, return_date: Optional[date] = None) -> LoanTerms:
    """Pricing terms of an existing loan, optionally to another return date."""
    return LoanTerms(
        principal=loan.principal,
        interest_rate=loan.interest_rate,
        interest_type=loan.interest_type,
        lent_date=loan.lent_date,
        return_date=return_date or loan.expected_return_date,
    )


def create_loan(
    state: LedgerState,
    clock: Clock,
    friend_name: Any,
    principal: Any,
    interest_rate: Any,
    interest_type: Any,
    expected_return_date: Any,
    notes: Any = None,
) -> TransitionResult:
    """
    Lend money to a friend.

    Writes the principal to daily spending (dated today, tagged as a
    loan) and a PENDING loan pointing at that entry, in one transition.
    The expected amount is priced from today to the expected return date.

    Raises:
        ValidationError: If any argument is malformed or negative
    """
    lent_on = today(clock)
    checked = get_validator().check_loan(
        friend_name=friend_name,
        principal=principal,
        interest_rate=interest_rate,
        interest_type=interest_type,
        expected_return_date=expected_return_date,
        notes=notes,
        lent_date=lent_on,
    )
    values = checked.require("create_loan")

    expense_id = state.next_id(LedgerCollection.DAILY_SPENDING)
    loan_id = state.next_id(LedgerCollection.LOANS)

    expense = DailySpendingEntry(
        id=expense_id,
        amount=values["principal"],
        description=loan_expense_description(values["friend_name"]),
        date=lent_on,
    )

    amount_due = expected_amount(LoanTerms(
        principal=values["principal"],
        interest_rate=values["interest_rate"],
        interest_type=values["interest_type"],
        lent_date=lent_on,
        return_date=values["expected_return_date"],
    ))

    loan = Loan(
        id=loan_id,
        friend_name=values["friend_name"],
        principal=values["principal"],
        interest_rate=values["interest_rate"],
        interest_type=values["interest_type"],
        lent_date=lent_on,
        expected_return_date=values["expected_return_date"],
        expected_amount=amount_due,
        status=LoanStatus.PENDING,
        notes=values["notes"],
        expense_id=expense_id,
        income_id=None,
    )

    new_state = state.replace(
        daily_spending=[*state.daily_spending, expense],
        loans=[*state.loans, loan],
    )
    return TransitionResult.ok(
        new_state,
        warnings=checked.warnings,
        daily_spending=expense_id,
        loans=loan_id,
    )


def push_month(state: LedgerState, loan_id: int) -> TransitionResult:
    """
    Extend a pending loan's return date by one calendar month.

    The expected amount is re-priced from the original lent date to the
    new return date, so N pushes give the same amount as pricing the
    final date range directly.
    """
    rejected = _not_pending(state, loan_id, "push_month")
    if rejected:
        return rejected

    loan = state.find_loan(loan_id)
    new_return_date = push_return_date(loan.expected_return_date)
    new_amount = expected_amount(loan_terms(loan, new_return_date))

    updated = loan.model_copy(update={
        "expected_return_date": new_return_date,
        "expected_amount": new_amount,
    })
    return TransitionResult.ok(state.replace(loans=_replace_loan(state.loans, updated)))


def mark_paid(
    state: LedgerState,
    clock: Clock,
    loan_id: int,
    actual_amount: Any = None,
) -> TransitionResult:
    """
    Record the repayment of a pending loan.

    The amount received defaults to the expected amount. It is written
    as an income entry, and the loan's expected amount is corrected to
    what was actually received.

    Raises:
        ValidationError: If actual_amount is given but negative or not a number
    """
    values = get_validator().check_repayment(actual_amount).require("mark_paid")

    rejected = _not_pending(state, loan_id, "mark_paid")
    if rejected:
        return rejected

    loan = state.find_loan(loan_id)
    paid_amount: Decimal = values["actual_amount"]
    if paid_amount is None:
        paid_amount = loan.expected_amount

    income_id = state.next_id(LedgerCollection.INCOMES)
    income = IncomeEntry(
        id=income_id,
        amount=paid_amount,
        description=loan_income_description(loan.friend_name, today(clock)),
    )

    # model_copy skips validation; re-validate so the lifecycle rules run
    updated = Loan.model_validate({
        **loan.model_dump(),
        "status": LoanStatus.PAID,
        "expected_amount": paid_amount,
        "income_id": income_id,
    })

    new_state = state.replace(
        incomes=[*state.incomes, income],
        loans=_replace_loan(state.loans, updated),
    )
    return TransitionResult.ok(new_state, incomes=income_id)


def write_off(state: LedgerState, loan_id: int) -> TransitionResult:
    """
    Give up on a pending loan.

    The principal stays in daily spending as a sunk cost and no income
    is created.
    """
    rejected = _not_pending(state, loan_id, "write_off")
    if rejected:
        return rejected

    loan = state.find_loan(loan_id)
    updated = loan.model_copy(update={"status": LoanStatus.WRITTEN_OFF})
    return TransitionResult.ok(state.replace(loans=_replace_loan(state.loans, updated)))


def remove_loan(state: LedgerState, loan_id: int) -> TransitionResult:
    """
    Delete a loan in any state, together with its ledger entries.

    The principal expense always goes; the repayment income goes when
    the loan has one. Linked entries that are already missing are
    skipped.
    """
    loan = state.find_loan(loan_id)
    if loan is None:
        return TransitionResult.rejected(state, f"remove_loan: loan {loan_id} not found")

    incomes = state.incomes
    if loan.income_id is not None:
        incomes = [entry for entry in incomes if entry.id != loan.income_id]

    new_state = state.replace(
        loans=[other for other in state.loans if other.id != loan_id],
        daily_spending=[entry for entry in state.daily_spending if entry.id != loan.expense_id],
        incomes=incomes,
    )
    return TransitionResult.ok(new_state)

