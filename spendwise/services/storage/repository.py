"""
Ledger snapshot repository.

Loads the single stored snapshot, migrates and validates it, and writes
the full snapshot back after every applied transition.
"""

import json
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from spendwise.models.ledger import BudgetSettings, LedgerState
from spendwise.services.storage.interface import CorruptStateError, KeyValueStore
from spendwise.services.storage.migration import migrate_state


DEFAULT_STATE_KEY = "spendwise-state"


class LoadResult(BaseModel):
    """What `StateRepository.load` found."""

    state: LedgerState
    found: bool = Field(..., description="Was anything stored under the key?")
    migrations: list[str] = Field(default_factory=list)


class StateRepository:
    """
    Reads and writes the ledger snapshot under one fixed key.

    If nothing is stored yet, `load` returns a fresh ledger with
    `default_settings` and empty collections.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = DEFAULT_STATE_KEY,
        default_settings: Optional[BudgetSettings] = None,
    ):
        self._store = store
        self._key = key
        self._default_settings = default_settings or BudgetSettings()

    @property
    def key(self) -> str:
        return self._key

    def initial_state(self) -> LedgerState:
        return LedgerState(settings=self._default_settings)

    def load(self) -> LoadResult:
        """
        Load, migrate and validate the stored snapshot.

        Raises:
            CorruptStateError: If the stored text is not a valid ledger
            StorageError: If the store cannot be read
        """
        raw_text = self._store.get(self._key)
        if raw_text is None:
            return LoadResult(state=self.initial_state(), found=False, migrations=[])

        try:
            raw = json.loads(raw_text)
        except json.JSONDecodeError as e:
            raise CorruptStateError(f"Stored ledger '{self._key}' is not valid JSON: {e}") from e

        if not isinstance(raw, dict):
            raise CorruptStateError(f"Stored ledger '{self._key}' is not a JSON object")

        default_settings = self._default_settings.model_dump(mode="json", by_alias=True)
        try:
            migrated, steps = migrate_state(raw, default_settings=default_settings)
            state = LedgerState.from_snapshot(migrated)
        except (PydanticValidationError, TypeError, AttributeError) as e:
            raise CorruptStateError(f"Stored ledger '{self._key}' does not fit the schema: {e}") from e

        return LoadResult(state=state, found=True, migrations=steps)

    def save(self, state: LedgerState) -> None:
        """
        Persist the full snapshot.

        Raises:
            StorageWriteError: If the store rejects the write
        """
        self._store.set(self._key, json.dumps(state.to_snapshot(), ensure_ascii=False))
