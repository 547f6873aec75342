"""Tests for key-value stores, schema migration and the state repository."""

import json
import pytest
from datetime import date
from decimal import Decimal

from spendwise.models.ledger import (
    BudgetSettings,
    DailySpendingEntry,
    IncomeEntry,
    LedgerState,
    LoanStatus,
    SavingsGoalType,
)
from spendwise.models.audit import AuditEventBuilder
from spendwise.services.storage import (
    CorruptStateError,
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    StateRepository,
    StorageError,
    StorageWriteError,
    migrate_state,
)


LEGACY_SNAPSHOT = {
    "settings": {"monthlyIncome": 30000, "savingsGoal": 5000, "currency": "THB"},
    "fixedExpenses": [{"id": 1, "name": "Rent", "amount": 8000, "frequency": "monthly"}],
    "oneTimePlanned": [],
    "dailySpending": [
        {"id": 1, "amount": 1000, "description": "💸 Lent to Somchai", "date": "2025-01-15"},
    ],
    "loans": [{
        "id": 1,
        "friendName": "Somchai",
        "principal": 1000,
        "interestRate": 5,
        "interestType": "simple",
        "lentDate": "2025-01-15",
        "expectedReturnDate": "2025-03-15",
        "expectedAmount": 1100,
        "status": "pending",
        "expenseId": 1,
        "incomeId": -1,
    }],
}


class TestMigration:
    """Tests for upgrading old snapshot shapes."""

    def test_legacy_monthly_income_becomes_entry(self):
        """Test a single monthlyIncome number becomes one income entry."""
        migrated, steps = migrate_state(LEGACY_SNAPSHOT)

        assert migrated["incomes"] == [
            {"id": 1, "amount": 30000, "description": "Primary Income"},
        ]
        assert "monthlyIncome" not in migrated["settings"]
        assert "incomes_from_monthly_income" in steps

    def test_defaults_goal_type_and_sentinel(self):
        """Test the goal period defaults to monthly and -1 becomes null."""
        migrated, steps = migrate_state(LEGACY_SNAPSHOT)

        assert migrated["settings"]["savingsGoalType"] == "monthly"
        assert migrated["loans"][0]["incomeId"] is None
        assert "default_savings_goal_type" in steps
        assert "income_sentinel_to_null" in steps

    def test_missing_collections_default_to_empty(self):
        """Test a snapshot with only settings gets every collection."""
        migrated, steps = migrate_state({"settings": {"savingsGoal": 0, "savingsGoalType": "daily"}})
        for key in ("incomes", "fixedExpenses", "oneTimePlanned", "dailySpending", "loans"):
            assert migrated[key] == []
        assert "default_loans" in steps

    def test_missing_settings_use_defaults(self):
        """Test absent settings are filled from the given defaults."""
        defaults = {"savingsGoal": "5000", "savingsGoalType": "monthly", "currency": "THB"}
        migrated, steps = migrate_state({}, default_settings=defaults)
        assert migrated["settings"] == defaults
        assert steps[0] == "default_settings"

    def test_migration_is_idempotent(self):
        """Test migrating migrated data reports nothing and changes nothing."""
        once, _ = migrate_state(LEGACY_SNAPSHOT)
        twice, steps = migrate_state(once)
        assert steps == []
        assert twice == once

    def test_input_is_not_modified(self):
        """Test the raw snapshot passed in is left alone."""
        before = json.dumps(LEGACY_SNAPSHOT, sort_keys=True)
        migrate_state(LEGACY_SNAPSHOT)
        assert json.dumps(LEGACY_SNAPSHOT, sort_keys=True) == before

    def test_stale_monthly_income_dropped(self):
        """Test monthlyIncome is dropped when an income list exists."""
        migrated, steps = migrate_state({
            "settings": {"monthlyIncome": 100, "savingsGoalType": "monthly"},
            "incomes": [{"id": 3, "amount": 50, "description": "Side job"}],
        })
        assert migrated["incomes"] == [{"id": 3, "amount": 50, "description": "Side job"}]
        assert "drop_monthly_income" in steps


class TestStateRepository:
    """Tests for loading and saving the ledger snapshot."""

    def test_load_empty_store(self):
        """Test nothing stored gives a fresh ledger with default settings."""
        defaults = BudgetSettings(savings_goal=Decimal("5000"))
        repository = StateRepository(InMemoryKeyValueStore(), default_settings=defaults)

        loaded = repository.load()
        assert loaded.found is False
        assert loaded.state == LedgerState(settings=defaults)
        assert loaded.migrations == []

    def test_save_then_load(self):
        """Test a saved ledger loads back unchanged."""
        store = InMemoryKeyValueStore()
        repository = StateRepository(store)
        state = LedgerState(
            incomes=[IncomeEntry(id=1, amount=Decimal("30000.50"), description="Salary")],
            daily_spending=[
                DailySpendingEntry(id=2, amount=Decimal("99.99"), description="ข้าวมันไก่",
                                   date=date(2026, 10, 2)),
            ],
        )
        repository.save(state)

        loaded = repository.load()
        assert loaded.found is True
        assert loaded.state == state
        assert "ข้าวมันไก่" in store.get("spendwise-state")

    def test_load_legacy_snapshot(self):
        """Test an old-format snapshot is migrated on load."""
        store = InMemoryKeyValueStore({"spendwise-state": json.dumps(LEGACY_SNAPSHOT)})
        loaded = StateRepository(store).load()

        assert loaded.state.incomes[0].amount == Decimal("30000")
        assert loaded.state.settings.savings_goal_type == SavingsGoalType.MONTHLY
        loan = loaded.state.loans[0]
        assert loan.status == LoanStatus.PENDING
        assert loan.income_id is None
        assert loaded.migrations

    def test_invalid_json_is_corrupt(self):
        """Test unparseable text raises CorruptStateError."""
        store = InMemoryKeyValueStore({"spendwise-state": "{not json"})
        with pytest.raises(CorruptStateError):
            StateRepository(store).load()

    def test_non_object_is_corrupt(self):
        """Test a JSON list is not a ledger."""
        store = InMemoryKeyValueStore({"spendwise-state": "[1, 2]"})
        with pytest.raises(CorruptStateError):
            StateRepository(store).load()

    def test_schema_violation_is_corrupt(self):
        """Test a negative stored amount raises CorruptStateError."""
        snapshot = {"incomes": [{"id": 1, "amount": -5, "description": ""}]}
        store = InMemoryKeyValueStore({"spendwise-state": json.dumps(snapshot)})
        with pytest.raises(CorruptStateError):
            StateRepository(store).load()

    def test_custom_key(self):
        """Test the snapshot key is configurable."""
        store = InMemoryKeyValueStore()
        repository = StateRepository(store, key="household")
        repository.save(LedgerState())
        assert store.get("household") is not None
        assert store.get("spendwise-state") is None


class TestJsonFileStore:
    """Tests for the JSON file key-value store."""

    def test_set_get_delete(self, tmp_path):
        """Test the basic key-value contract."""
        store = JsonFileKeyValueStore(tmp_path)
        assert store.get("ledger") is None

        store.set("ledger", '{"a": 1}')
        assert store.get("ledger") == '{"a": 1}'
        assert (tmp_path / "ledger.json").exists()

        assert store.delete("ledger") is True
        assert store.delete("ledger") is False
        assert store.get("ledger") is None

    def test_creates_data_dir(self, tmp_path):
        """Test a missing data directory is created on first write."""
        store = JsonFileKeyValueStore(tmp_path / "nested" / "dir")
        store.set("ledger", "{}")
        assert store.get("ledger") == "{}"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test writes replace the file and clean up after themselves."""
        store = JsonFileKeyValueStore(tmp_path)
        store.set("ledger", "1")
        store.set("ledger", "2")
        assert store.get("ledger") == "2"
        assert [path.name for path in tmp_path.iterdir()] == ["ledger.json"]

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", ".hidden"])
    def test_unsafe_keys_rejected(self, tmp_path, key):
        """Test keys cannot point outside the data directory."""
        store = JsonFileKeyValueStore(tmp_path)
        with pytest.raises(StorageError):
            store.set(key, "{}")

    def test_failed_write_raises_after_retries(self, tmp_path):
        """Test a write that keeps failing surfaces as StorageWriteError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        store = JsonFileKeyValueStore(blocker / "data", write_attempts=2, backoff_multiplier=0)

        with pytest.raises(StorageWriteError):
            store.set("ledger", "{}")

    def test_repository_on_file_store(self, tmp_path):
        """Test the repository works end to end on disk."""
        repository = StateRepository(JsonFileKeyValueStore(tmp_path))
        state = LedgerState(incomes=[IncomeEntry(id=1, amount=Decimal("10"))])
        repository.save(state)

        reloaded = StateRepository(JsonFileKeyValueStore(tmp_path)).load()
        assert reloaded.state == state


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit trail."""

    def test_recent_events_newest_first(self):
        """Test recent events come back newest first."""
        storage = InMemoryAuditStorage()
        first = AuditEventBuilder.loan_written_off(loan_id=1, principal="100")
        second = AuditEventBuilder.loan_deleted(loan_id=1, expense_id=1, income_id=None)
        storage.append_event(first)
        storage.append_event(second)

        assert storage.get_recent_events() == [second, first]
        assert storage.get_recent_events(limit=1) == [second]

    def test_events_by_entity(self):
        """Test filtering by collection and id."""
        storage = InMemoryAuditStorage()
        storage.append_event(AuditEventBuilder.loan_written_off(loan_id=1, principal="100"))
        storage.append_event(AuditEventBuilder.loan_written_off(loan_id=2, principal="100"))
        assert len(storage.get_events_by_entity("loans", 2)) == 1
