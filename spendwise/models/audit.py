"""
Audit Models for SpendWise

Every state transition the engine applies, and every one it refuses,
is recorded as an audit event. This provides:
1. A history of what happened to each loan and ledger entry
2. Debugging information when a number on the dashboard looks wrong
3. A distinct signal for rejected transitions, which callers may ignore

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loan lifecycle
    LOAN_CREATED = "loan_created"
    LOAN_EXTENDED = "loan_extended"
    LOAN_PAID = "loan_paid"
    LOAN_WRITTEN_OFF = "loan_written_off"
    LOAN_DELETED = "loan_deleted"

    # Ledger entries and settings
    ENTRY_ADDED = "entry_added"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    SETTINGS_UPDATED = "settings_updated"

    # Refused input or transitions
    PRECONDITION_FAILED = "precondition_failed"
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    STATE_LOADED = "state_loaded"
    STATE_MIGRATED = "state_migrated"
    STATE_SAVED = "state_saved"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Collection the entity lives in (e.g., 'loans', 'incomes')"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Id of the entity within its collection"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one service call)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.loan_created(loan_id, "Alice", "1000", 3, correlation_id)
        event = AuditEventBuilder.precondition_failed("mark_paid", "loans", 3, reason)
    """

    @staticmethod
    def loan_created(
        loan_id: int,
        friend_name: str,
        principal: str,
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_CREATED,
            entity_type="loans",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description=f"Lent {principal} to {friend_name}",
            details={
                "friend_name": friend_name,
                "principal": principal,
                "expense_id": expense_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_extended(
        loan_id: int,
        new_return_date: str,
        new_expected_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_EXTENDED,
            entity_type="loans",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description=f"Loan pushed to {new_return_date}",
            details={
                "expected_return_date": new_return_date,
                "expected_amount": new_expected_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_paid(
        loan_id: int,
        paid_amount: str,
        income_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_PAID,
            entity_type="loans",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description=f"Loan repaid: {paid_amount}",
            details={
                "paid_amount": paid_amount,
                "income_id": income_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_written_off(
        loan_id: int,
        principal: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_WRITTEN_OFF,
            severity=AuditSeverity.WARNING,
            entity_type="loans",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description=f"Loan written off, {principal} will not come back",
            details={
                "principal": principal,
            },
            is_user_action=True,
        )

    @staticmethod
    def loan_deleted(
        loan_id: int,
        expense_id: int,
        income_id: Optional[int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAN_DELETED,
            entity_type="loans",
            entity_id=loan_id,
            correlation_id=correlation_id,
            description="Loan deleted with its linked ledger entries",
            details={
                "expense_id": expense_id,
                "income_id": income_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def entry_changed(
        event_type: AuditEventType,
        collection: str,
        entry_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        verb = {
            AuditEventType.ENTRY_ADDED: "added to",
            AuditEventType.ENTRY_UPDATED: "updated in",
            AuditEventType.ENTRY_DELETED: "deleted from",
        }[event_type]
        return AuditEvent(
            event_type=event_type,
            entity_type=collection,
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry {entry_id} {verb} {collection}",
            is_user_action=True,
        )

    @staticmethod
    def settings_updated(
        savings_goal: str,
        savings_goal_type: str,
        currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description=f"Savings goal set to {savings_goal} {savings_goal_type}",
            details={
                "savings_goal": savings_goal,
                "savings_goal_type": savings_goal_type,
                "currency": currency,
            },
            is_user_action=True,
        )

    @staticmethod
    def precondition_failed(
        operation: str,
        entity_type: str,
        entity_id: Optional[int],
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRECONDITION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{operation} not applied: {reason}",
            details={
                "operation": operation,
                "reason": reason,
            },
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def state_loaded(
        key: str,
        found: bool,
        counts: dict[str, int],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            description=(
                f"Ledger loaded from '{key}'" if found
                else f"No ledger stored under '{key}', starting fresh"
            ),
            details={
                "key": key,
                "found": found,
                "counts": counts,
            },
        )

    @staticmethod
    def state_migrated(
        key: str,
        steps: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_MIGRATED,
            description=f"Applied {len(steps)} schema migrations",
            details={
                "key": key,
                "steps": steps,
            },
        )

    @staticmethod
    def state_saved(
        key: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_SAVED,
            severity=AuditSeverity.DEBUG,
            correlation_id=correlation_id,
            description=f"Ledger persisted under '{key}'",
            details={
                "key": key,
            },
        )

    @staticmethod
    def save_failed(
        key: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Could not persist ledger under '{key}'",
            error_message=error_message,
            details={
                "key": key,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
