"""Loan pricing and lifecycle transitions."""

from spendwise.loans.calculator import (
    LoanTerms,
    accrue,
    expected_amount,
    interest_portion,
    months_between,
    push_return_date,
)
from spendwise.loans.manager import (
    create_loan,
    loan_terms,
    mark_paid,
    push_month,
    remove_loan,
    write_off,
)

__all__ = [
    # Calculator
    "LoanTerms",
    "accrue",
    "expected_amount",
    "interest_portion",
    "months_between",
    "push_return_date",
    # Lifecycle
    "create_loan",
    "loan_terms",
    "mark_paid",
    "push_month",
    "remove_loan",
    "write_off",
]
