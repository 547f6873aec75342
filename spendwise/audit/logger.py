"""
Audit Logger

DESIGN DECISION: Every transition the service applies or refuses is logged.
This provides:
1. Traceability of every loan and ledger change
2. Debugging capability
3. A distinct record of rejected transitions

The audit logger:
- Gracefully handles failures (an audit storage error never undoes or
  blocks a ledger transition)
- Supports correlation IDs to tie the events of one service call together
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from spendwise.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from spendwise.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog's JSON lines through stdlib logging at `level`."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("spendwise").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("spendwise.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        severity = event.severity.value
        if severity in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif severity == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif severity == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_loan_created(
        self,
        loan_id: int,
        friend_name: str,
        principal: str,
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.loan_created(
            loan_id=loan_id,
            friend_name=friend_name,
            principal=principal,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    def log_loan_extended(
        self,
        loan_id: int,
        new_return_date: str,
        new_expected_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.loan_extended(
            loan_id=loan_id,
            new_return_date=new_return_date,
            new_expected_amount=new_expected_amount,
            correlation_id=correlation_id,
        ))

    def log_loan_paid(
        self,
        loan_id: int,
        paid_amount: str,
        income_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.loan_paid(
            loan_id=loan_id,
            paid_amount=paid_amount,
            income_id=income_id,
            correlation_id=correlation_id,
        ))

    def log_loan_written_off(
        self,
        loan_id: int,
        principal: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.loan_written_off(
            loan_id=loan_id,
            principal=principal,
            correlation_id=correlation_id,
        ))

    def log_loan_deleted(
        self,
        loan_id: int,
        expense_id: int,
        income_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.loan_deleted(
            loan_id=loan_id,
            expense_id=expense_id,
            income_id=income_id,
            correlation_id=correlation_id,
        ))

    def log_entry_changed(
        self,
        event_type: AuditEventType,
        collection: str,
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.entry_changed(
            event_type=event_type,
            collection=collection,
            entry_id=entry_id,
            correlation_id=correlation_id,
        ))

    def log_settings_updated(
        self,
        savings_goal: str,
        savings_goal_type: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.settings_updated(
            savings_goal=savings_goal,
            savings_goal_type=savings_goal_type,
            currency=currency,
            correlation_id=correlation_id,
        ))

    def log_precondition_failed(
        self,
        operation: str,
        entity_type: str,
        entity_id: Optional[int],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a transition that was refused because the state does not allow it."""
        self.log(AuditEventBuilder.precondition_failed(
            operation=operation,
            entity_type=entity_type,
            entity_id=entity_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_state_loaded(
        self,
        key: str,
        found: bool,
        counts: dict[str, int],
    ) -> None:
        self.log(AuditEventBuilder.state_loaded(key=key, found=found, counts=counts))

    def log_state_migrated(self, key: str, steps: list[str]) -> None:
        self.log(AuditEventBuilder.state_migrated(key=key, steps=steps))

    def log_state_saved(
        self,
        key: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.state_saved(key=key, correlation_id=correlation_id))

    def log_save_failed(
        self,
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            key=key,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a service call and pass it through
    everything that call logs.
    """
    return uuid4()
