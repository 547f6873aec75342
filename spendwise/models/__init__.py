"""
Data Models Package

This package contains all Pydantic models used in SpendWise.
All data flowing through the engine must conform to these schemas.
"""

from spendwise.models.ledger import (
    BudgetSettings,
    BudgetSnapshot,
    DailySpendingEntry,
    ExpenseFrequency,
    FixedExpense,
    IncomeEntry,
    InterestType,
    LedgerCollection,
    LedgerState,
    Loan,
    LoanPortfolioSummary,
    LoanStatus,
    OneTimePlanned,
    PreconditionFailedError,
    SavingsGoalType,
    TransitionResult,
    ValidationIssue,
    ValidationResult,
)
from spendwise.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BudgetSettings",
    "BudgetSnapshot",
    "DailySpendingEntry",
    "ExpenseFrequency",
    "FixedExpense",
    "IncomeEntry",
    "InterestType",
    "LedgerCollection",
    "LedgerState",
    "Loan",
    "LoanPortfolioSummary",
    "LoanStatus",
    "OneTimePlanned",
    "PreconditionFailedError",
    "SavingsGoalType",
    "TransitionResult",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
