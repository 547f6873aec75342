"""
Abstract Storage Interface

DESIGN DECISION: The engine persists one JSON snapshot of the whole
ledger under a fixed key. We define an abstract key-value interface
for that so that:
1. A local JSON file can back the app today
2. In-memory storage can be used for testing
3. Another durable store can be dropped in later
4. Business logic never touches storage details

The interface is intentionally tiny. The engine performs no I/O inside
its calculations; only the service reads at startup and writes after
each applied transition.
"""

from abc import ABC, abstractmethod
from typing import Optional

from spendwise.models.audit import AuditEvent


class KeyValueStore(ABC):
    """
    Abstract interface for a durable string key-value store.

    Values are opaque strings (JSON text in practice).
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under `key`.

        Returns:
            The stored value, or None if nothing is stored

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store `value` under `key`, replacing any previous value.

        The write must be all-or-nothing: a reader never sees a
        partially written value.

        Raises:
            StorageWriteError: If the value could not be stored
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Remove `key`.

        Returns:
            True if something was removed, False if the key was absent
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: int,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, oldest first.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageWriteError(StorageError):
    """A value could not be written to the store."""
    pass


class CorruptStateError(StorageError):
    """The stored snapshot is not valid JSON or does not fit the ledger schema."""
    pass
