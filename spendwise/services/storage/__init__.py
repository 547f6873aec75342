"""
Storage Services Package

Provides the key-value store interface, its in-memory and JSON file
implementations, snapshot migration, and the ledger repository.
"""

from spendwise.services.storage.interface import (
    AuditStorageInterface,
    CorruptStateError,
    KeyValueStore,
    StorageError,
    StorageWriteError,
)
from spendwise.services.storage.json_file import JsonFileKeyValueStore
from spendwise.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
)
from spendwise.services.storage.migration import migrate_state
from spendwise.services.storage.repository import (
    DEFAULT_STATE_KEY,
    LoadResult,
    StateRepository,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStore",
    # Exceptions
    "CorruptStateError",
    "StorageError",
    "StorageWriteError",
    # Implementations
    "InMemoryAuditStorage",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    # Snapshot handling
    "DEFAULT_STATE_KEY",
    "LoadResult",
    "StateRepository",
    "migrate_state",
]
