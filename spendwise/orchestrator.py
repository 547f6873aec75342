"""
Main Orchestrator for SpendWise

This module ties the pure engine to its collaborators:
1. The state repository (load on startup, save after every change)
2. The clock (what "today" is)
3. The audit logger (what happened, and what was refused)

DESIGN DECISION: The service enforces the boundaries:
- Transitions are serialized: each one runs against the current snapshot
  inside one critical section, so a cascade is never interleaved with
  another change
- Nothing is persisted for a refused transition
- The in-memory snapshot only moves forward once the new one is saved
- Every step is audited

The engine functions stay pure; everything with side effects lives here.
"""

import threading
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from spendwise.audit import AuditLogger, configure_logging, create_correlation_id
from spendwise.budget import (
    Clock,
    SystemClock,
    WhatIfSimulator,
    compute_budget_snapshot,
    current_month,
    today,
)
from spendwise.config import Settings, get_settings
from spendwise.ledger import entries
from spendwise.loans import manager
from spendwise.models.audit import AuditEventType
from spendwise.models.ledger import (
    BudgetSettings,
    BudgetSnapshot,
    DailySpendingEntry,
    LedgerCollection,
    LedgerState,
    LoanPortfolioSummary,
    TransitionResult,
)
from spendwise.queries import ledger_queries
from spendwise.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    StateRepository,
    StorageError,
)
from spendwise.validation import ValidationError


logger = structlog.get_logger("spendwise.service")

# Called with (state before, result, correlation id) once a transition is saved
AppliedHook = Callable[[LedgerState, TransitionResult, UUID], None]


class SpendWiseService:
    """
    The budget and loan ledger for one user.

    Every mutating method returns the TransitionResult of the underlying
    engine function. Check `result.applied` (or call `result.unwrap()`)
    to tell a refused transition from an applied one.

    Raises from every mutating method:
        ValidationError: Input was malformed; nothing changed
        StorageWriteError: The new snapshot could not be saved; nothing changed
    """

    def __init__(
        self,
        repository: StateRepository,
        clock: Optional[Clock] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repository = repository
        self._clock = clock or SystemClock()
        self._audit_logger = audit_logger or AuditLogger()
        self._lock = threading.Lock()
        self.simulator = WhatIfSimulator()

        loaded = repository.load()
        self._state = loaded.state

        self._audit_logger.log_state_loaded(
            key=repository.key,
            found=loaded.found,
            counts=self._counts(loaded.state),
        )
        if loaded.migrations:
            self._audit_logger.log_state_migrated(key=repository.key, steps=loaded.migrations)

    @staticmethod
    def _counts(state: LedgerState) -> dict[str, int]:
        return {
            collection.value: len(getattr(state, collection.value))
            for collection in LedgerCollection
        }

    @property
    def state(self) -> LedgerState:
        """The current snapshot. Immutable; safe to hand out."""
        return self._state

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Transition plumbing
    # ------------------------------------------------------------------

    def _apply(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[int],
        transition: Callable[[LedgerState], TransitionResult],
        on_applied: Optional[AppliedHook] = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        """
        Run one transition against the current snapshot.

        FLOW:
        1. Compute the next state (pure)
        2. Refused -> audit, return the unchanged state
           (bad input and unexpected errors are audited and re-raised)
        3. Applied -> save, then swap the snapshot in
        4. Audit what changed
        """
        correlation_id = correlation_id or create_correlation_id()

        with self._lock:
            before = self._state

            try:
                result = transition(before)
            except ValidationError as e:
                self._audit_logger.log_validation_failed(
                    operation=operation,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in e.issues
                    ],
                    correlation_id=correlation_id,
                )
                raise
            except Exception as e:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": operation, "entity_type": entity_type},
                    correlation_id=correlation_id,
                )
                raise

            if not result.applied:
                self._audit_logger.log_precondition_failed(
                    operation=operation,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    reason=result.reason or "rejected",
                    correlation_id=correlation_id,
                )
                return result

            try:
                self._repository.save(result.state)
            except StorageError as e:
                self._audit_logger.log_save_failed(
                    key=self._repository.key,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
                raise

            self._state = result.state

        self._audit_logger.log_state_saved(key=self._repository.key, correlation_id=correlation_id)
        for warning in result.warnings:
            logger.warning(
                "transition_warning",
                operation=operation,
                warning=warning,
                correlation_id=str(correlation_id),
            )
        if on_applied:
            on_applied(before, result, correlation_id)
        return result

    def _entry_hook(
        self,
        event_type: AuditEventType,
        collection: LedgerCollection,
        entry_id: Optional[int] = None,
    ) -> AppliedHook:
        def hook(before: LedgerState, result: TransitionResult, correlation_id: UUID) -> None:
            self._audit_logger.log_entry_changed(
                event_type=event_type,
                collection=collection.value,
                entry_id=entry_id if entry_id is not None else result.created_ids[collection.value],
                correlation_id=correlation_id,
            )
        return hook

    # ------------------------------------------------------------------
    # Loans
    # ------------------------------------------------------------------

    def create_loan(
        self,
        friend_name: Any,
        principal: Any,
        interest_rate: Any = 0,
        interest_type: Any = "simple",
        expected_return_date: Any = None,
        notes: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        """Lend money: writes the principal expense and a pending loan together."""
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            loan = result.state.find_loan(result.created_ids["loans"])
            self._audit_logger.log_loan_created(
                loan_id=loan.id,
                friend_name=loan.friend_name,
                principal=str(loan.principal),
                expense_id=loan.expense_id,
                correlation_id=cid,
            )

        return self._apply(
            "create_loan",
            "loans",
            None,
            lambda state: manager.create_loan(
                state,
                self._clock,
                friend_name=friend_name,
                principal=principal,
                interest_rate=interest_rate,
                interest_type=interest_type,
                expected_return_date=expected_return_date,
                notes=notes,
            ),
            audit,
            correlation_id,
        )

    def push_loan_month(
        self,
        loan_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        """Extend a pending loan by one month and re-price it."""
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            loan = result.state.find_loan(loan_id)
            self._audit_logger.log_loan_extended(
                loan_id=loan_id,
                new_return_date=loan.expected_return_date.isoformat(),
                new_expected_amount=str(loan.expected_amount),
                correlation_id=cid,
            )

        return self._apply(
            "push_month",
            "loans",
            loan_id,
            lambda state: manager.push_month(state, loan_id),
            audit,
            correlation_id,
        )

    def mark_loan_paid(
        self,
        loan_id: int,
        actual_amount: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        """Record a repayment as income and close the loan."""
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            loan = result.state.find_loan(loan_id)
            self._audit_logger.log_loan_paid(
                loan_id=loan_id,
                paid_amount=str(loan.expected_amount),
                income_id=loan.income_id,
                correlation_id=cid,
            )

        return self._apply(
            "mark_paid",
            "loans",
            loan_id,
            lambda state: manager.mark_paid(state, self._clock, loan_id, actual_amount),
            audit,
            correlation_id,
        )

    def write_off_loan(
        self,
        loan_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            loan = result.state.find_loan(loan_id)
            self._audit_logger.log_loan_written_off(
                loan_id=loan_id,
                principal=str(loan.principal),
                correlation_id=cid,
            )

        return self._apply(
            "write_off",
            "loans",
            loan_id,
            lambda state: manager.write_off(state, loan_id),
            audit,
            correlation_id,
        )

    def remove_loan(
        self,
        loan_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> TransitionResult:
        """Delete a loan in any state along with its ledger entries."""
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            loan = before.find_loan(loan_id)
            self._audit_logger.log_loan_deleted(
                loan_id=loan_id,
                expense_id=loan.expense_id,
                income_id=loan.income_id,
                correlation_id=cid,
            )

        return self._apply(
            "remove_loan",
            "loans",
            loan_id,
            lambda state: manager.remove_loan(state, loan_id),
            audit,
            correlation_id,
        )

    # ------------------------------------------------------------------
    # Ledger entries
    # ------------------------------------------------------------------

    def add_income(self, amount: Any, description: Any = "") -> TransitionResult:
        return self._apply(
            "add_income",
            LedgerCollection.INCOMES.value,
            None,
            lambda state: entries.add_income(state, amount, description),
            self._entry_hook(AuditEventType.ENTRY_ADDED, LedgerCollection.INCOMES),
        )

    def update_income(self, income_id: int, amount: Any, description: Any = "") -> TransitionResult:
        return self._apply(
            "update_income",
            LedgerCollection.INCOMES.value,
            income_id,
            lambda state: entries.update_income(state, income_id, amount, description),
            self._entry_hook(AuditEventType.ENTRY_UPDATED, LedgerCollection.INCOMES, income_id),
        )

    def remove_income(self, income_id: int) -> TransitionResult:
        return self._apply(
            "remove_income",
            LedgerCollection.INCOMES.value,
            income_id,
            lambda state: entries.remove_income(state, income_id),
            self._entry_hook(AuditEventType.ENTRY_DELETED, LedgerCollection.INCOMES, income_id),
        )

    def add_fixed_expense(self, name: Any, amount: Any, frequency: Any = "monthly") -> TransitionResult:
        return self._apply(
            "add_fixed_expense",
            LedgerCollection.FIXED_EXPENSES.value,
            None,
            lambda state: entries.add_fixed_expense(state, name, amount, frequency),
            self._entry_hook(AuditEventType.ENTRY_ADDED, LedgerCollection.FIXED_EXPENSES),
        )

    def update_fixed_expense(
        self,
        expense_id: int,
        name: Any,
        amount: Any,
        frequency: Any = "monthly",
    ) -> TransitionResult:
        return self._apply(
            "update_fixed_expense",
            LedgerCollection.FIXED_EXPENSES.value,
            expense_id,
            lambda state: entries.update_fixed_expense(state, expense_id, name, amount, frequency),
            self._entry_hook(
                AuditEventType.ENTRY_UPDATED, LedgerCollection.FIXED_EXPENSES, expense_id
            ),
        )

    def remove_fixed_expense(self, expense_id: int) -> TransitionResult:
        return self._apply(
            "remove_fixed_expense",
            LedgerCollection.FIXED_EXPENSES.value,
            expense_id,
            lambda state: entries.remove_fixed_expense(state, expense_id),
            self._entry_hook(
                AuditEventType.ENTRY_DELETED, LedgerCollection.FIXED_EXPENSES, expense_id
            ),
        )

    def add_one_time(self, name: Any, amount: Any, month: Any) -> TransitionResult:
        return self._apply(
            "add_one_time",
            LedgerCollection.ONE_TIME_PLANNED.value,
            None,
            lambda state: entries.add_one_time(state, name, amount, month),
            self._entry_hook(AuditEventType.ENTRY_ADDED, LedgerCollection.ONE_TIME_PLANNED),
        )

    def update_one_time(self, entry_id: int, name: Any, amount: Any, month: Any) -> TransitionResult:
        return self._apply(
            "update_one_time",
            LedgerCollection.ONE_TIME_PLANNED.value,
            entry_id,
            lambda state: entries.update_one_time(state, entry_id, name, amount, month),
            self._entry_hook(
                AuditEventType.ENTRY_UPDATED, LedgerCollection.ONE_TIME_PLANNED, entry_id
            ),
        )

    def remove_one_time(self, entry_id: int) -> TransitionResult:
        return self._apply(
            "remove_one_time",
            LedgerCollection.ONE_TIME_PLANNED.value,
            entry_id,
            lambda state: entries.remove_one_time(state, entry_id),
            self._entry_hook(
                AuditEventType.ENTRY_DELETED, LedgerCollection.ONE_TIME_PLANNED, entry_id
            ),
        )

    def add_daily_spending(
        self,
        amount: Any,
        description: Any = "",
        spent_on: Any = None,
    ) -> TransitionResult:
        """Log spending, dated today unless `spent_on` is given."""
        return self._apply(
            "add_daily_spending",
            LedgerCollection.DAILY_SPENDING.value,
            None,
            lambda state: entries.add_daily_spending(
                state, self._clock, amount, description, spent_on
            ),
            self._entry_hook(AuditEventType.ENTRY_ADDED, LedgerCollection.DAILY_SPENDING),
        )

    def update_daily_spending(
        self,
        entry_id: int,
        amount: Any,
        description: Any,
        spent_on: Any,
    ) -> TransitionResult:
        return self._apply(
            "update_daily_spending",
            LedgerCollection.DAILY_SPENDING.value,
            entry_id,
            lambda state: entries.update_daily_spending(
                state, entry_id, amount, description, spent_on
            ),
            self._entry_hook(
                AuditEventType.ENTRY_UPDATED, LedgerCollection.DAILY_SPENDING, entry_id
            ),
        )

    def remove_daily_spending(self, entry_id: int) -> TransitionResult:
        return self._apply(
            "remove_daily_spending",
            LedgerCollection.DAILY_SPENDING.value,
            entry_id,
            lambda state: entries.remove_daily_spending(state, entry_id),
            self._entry_hook(
                AuditEventType.ENTRY_DELETED, LedgerCollection.DAILY_SPENDING, entry_id
            ),
        )

    def update_settings(
        self,
        savings_goal: Any,
        savings_goal_type: Any,
        currency: Any,
    ) -> TransitionResult:
        def audit(before: LedgerState, result: TransitionResult, cid: UUID) -> None:
            settings = result.state.settings
            self._audit_logger.log_settings_updated(
                savings_goal=str(settings.savings_goal),
                savings_goal_type=settings.savings_goal_type.value,
                currency=settings.currency,
                correlation_id=cid,
            )

        return self._apply(
            "update_settings",
            "settings",
            None,
            lambda state: entries.update_settings(state, savings_goal, savings_goal_type, currency),
            audit,
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def budget(self) -> BudgetSnapshot:
        """Today's budget figures for the current snapshot."""
        return compute_budget_snapshot(self._state, self._clock)

    def display_daily_usable_amount(self) -> Decimal:
        """The DUA to show, with the what-if overlay applied when active."""
        return self.simulator.project(self.budget())

    def loan_portfolio(self) -> LoanPortfolioSummary:
        return ledger_queries.loan_portfolio(
            self._state.loans,
            current_month(self._clock),
            today(self._clock),
        )

    def spending_by_date(self) -> dict[date, list[DailySpendingEntry]]:
        """This month's spending grouped by date, newest first."""
        return ledger_queries.spending_by_date(
            self._state.daily_spending,
            current_month(self._clock),
        )


def create_service(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    store: Optional[KeyValueStore] = None,
) -> SpendWiseService:
    """
    Factory function to wire a service from configuration.

    Args:
        settings: Configuration; read from the environment if None.
        clock: Clock to use; the system clock in the configured timezone if None.
        store: Key-value store to use; built from the storage settings if None.

    Returns:
        A SpendWiseService with the snapshot already loaded
    """
    settings = settings or get_settings()
    app = settings.app
    storage = settings.storage
    defaults = settings.defaults

    configure_logging(app.log_level)

    if store is None:
        if storage.backend == "memory":
            store = InMemoryKeyValueStore()
        else:
            store = JsonFileKeyValueStore(
                storage.data_dir,
                write_attempts=storage.write_attempts,
            )

    repository = StateRepository(
        store,
        key=storage.state_key,
        default_settings=BudgetSettings(
            savings_goal=defaults.savings_goal,
            savings_goal_type=defaults.savings_goal_type,
            currency=defaults.currency,
        ),
    )

    audit_logger = AuditLogger(InMemoryAuditStorage() if app.debug_mode else None)

    return SpendWiseService(
        repository,
        clock=clock or SystemClock(app.timezone),
        audit_logger=audit_logger,
    )
