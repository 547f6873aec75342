"""Tests for the SpendWise service: persistence, serialization and auditing."""

import json
import pytest
from datetime import date
from decimal import Decimal

from spendwise.audit import AuditLogger
from spendwise.budget import FixedClock
from spendwise.config import get_settings
from spendwise.ledger import entries
from spendwise.models.audit import AuditEventType
from spendwise.models.ledger import LoanStatus
from spendwise.orchestrator import SpendWiseService, create_service
from spendwise.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    KeyValueStore,
    StateRepository,
    StorageWriteError,
)
from spendwise.utils import to_cents
from spendwise.validation import ValidationError


class FailingStore(KeyValueStore):
    """A store whose writes always fail."""

    def __init__(self):
        self._data = {}

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        raise StorageWriteError("disk full")

    def delete(self, key):
        return False


def event_types(audit_storage):
    return [event.event_type for event in reversed(audit_storage.get_recent_events())]


class TestServiceLoading:
    """Tests for startup."""

    def test_fresh_start(self, service, audit_storage):
        """Test an empty store starts an empty ledger and audits the load."""
        assert service.state.loans == []
        assert event_types(audit_storage) == [AuditEventType.STATE_LOADED]

    def test_legacy_data_is_migrated_and_audited(self, clock):
        """Test migrations on load are recorded."""
        legacy = {"settings": {"monthlyIncome": 25000, "savingsGoal": 1000}}
        store = InMemoryKeyValueStore({"spendwise-state": json.dumps(legacy)})
        audit_storage = InMemoryAuditStorage()

        service = SpendWiseService(
            StateRepository(store), clock=clock, audit_logger=AuditLogger(audit_storage)
        )

        assert service.state.incomes[0].amount == Decimal("25000")
        assert AuditEventType.STATE_MIGRATED in event_types(audit_storage)


class TestServiceTransitions:
    """Tests for applying transitions through the service."""

    def test_mutation_is_persisted(self, service, store):
        """Test every applied change writes the full snapshot."""
        service.add_income("30000", "Salary")

        saved = json.loads(store.get("spendwise-state"))
        assert saved["incomes"] == [{"id": 1, "amount": "30000", "description": "Salary"}]

    def test_state_survives_restart(self, service, store, clock):
        """Test a new service over the same store sees the same ledger."""
        service.add_income("30000", "Salary")
        service.create_loan("Somchai", "1000", "10", "simple", "2026-12-02")

        restarted = SpendWiseService(StateRepository(store), clock=clock)
        assert restarted.state == service.state

    def test_rejected_transition_not_persisted(self, service, store, audit_storage):
        """Test a refused transition writes nothing and is audited."""
        result = service.mark_loan_paid(99)

        assert result.applied is False
        assert store.get("spendwise-state") is None
        events = audit_storage.get_events_by_entity("loans", 99)
        assert [event.event_type for event in events] == [AuditEventType.PRECONDITION_FAILED]

    def test_validation_failure_audited_and_raised(self, service, audit_storage, store):
        """Test invalid input raises and leaves a validation_failed event."""
        with pytest.raises(ValidationError):
            service.add_daily_spending("-5", "Refund?")

        assert AuditEventType.VALIDATION_FAILED in event_types(audit_storage)
        assert store.get("spendwise-state") is None
        assert service.state.daily_spending == []

    def test_failed_save_keeps_previous_state(self, clock):
        """Test the in-memory ledger does not move when saving fails."""
        audit_storage = InMemoryAuditStorage()
        service = SpendWiseService(
            StateRepository(FailingStore()), clock=clock, audit_logger=AuditLogger(audit_storage)
        )

        with pytest.raises(StorageWriteError):
            service.add_income("100")

        assert service.state.incomes == []
        assert AuditEventType.SAVE_FAILED in event_types(audit_storage)

    def test_full_loan_lifecycle_audited(self, service, audit_storage):
        """Test each loan step leaves its own audit event."""
        service.create_loan("Somchai", "1000", "10", "simple", "2026-12-02")
        service.push_loan_month(1)
        service.mark_loan_paid(1)
        service.remove_loan(1)

        loan_events = [
            event.event_type for event in audit_storage.get_events_by_entity("loans", 1)
        ]
        assert loan_events == [
            AuditEventType.LOAN_CREATED,
            AuditEventType.LOAN_EXTENDED,
            AuditEventType.LOAN_PAID,
            AuditEventType.LOAN_DELETED,
        ]
        assert service.state.loans == []
        assert service.state.incomes == []
        assert service.state.daily_spending == []

    def test_write_off_through_service(self, service):
        """Test writing off keeps the principal spent."""
        service.create_loan("Somchai", "1000", "0", "simple", "2026-11-02")
        service.write_off_loan(1)

        assert service.state.find_loan(1).status == LoanStatus.WRITTEN_OFF
        assert service.budget().spent_this_month == Decimal("1000")

    def test_entry_events_carry_ids(self, service, audit_storage):
        """Test ledger entry changes are audited with their ids."""
        service.add_fixed_expense("Rent", "8000")
        service.update_fixed_expense(1, "Rent", "8500")
        service.remove_fixed_expense(1)

        events = audit_storage.get_events_by_entity("fixed_expenses", 1)
        assert [event.event_type for event in events] == [
            AuditEventType.ENTRY_ADDED,
            AuditEventType.ENTRY_UPDATED,
            AuditEventType.ENTRY_DELETED,
        ]

    def test_unexpected_error_audited_and_raised(self, service, audit_storage, store, monkeypatch):
        """Test a crash inside a transition is recorded as a system error."""
        def broken_add_income(state, amount, description):
            raise RuntimeError("ledger exploded")

        monkeypatch.setattr(entries, "add_income", broken_add_income)

        with pytest.raises(RuntimeError):
            service.add_income("100", "Salary")

        errors = [
            event for event in audit_storage.get_recent_events()
            if event.event_type == AuditEventType.SYSTEM_ERROR
        ]
        assert len(errors) == 1
        assert errors[0].error_message == "ledger exploded"
        assert errors[0].details["operation"] == "add_income"
        assert store.get("spendwise-state") is None
        assert service.state.incomes == []

    def test_settings_update(self, service, audit_storage):
        """Test settings changes are applied and audited."""
        service.update_settings("5000", "monthly", "THB")
        assert service.state.settings.savings_goal == Decimal("5000")
        assert AuditEventType.SETTINGS_UPDATED in event_types(audit_storage)


class TestServiceReadSide:
    """Tests for budget figures served by the service."""

    def test_budget_scenario(self, service):
        """Test 30000 income, 5000 saved, 30 days left gives 833.33 a day."""
        service.add_income("30000", "Salary")
        service.update_settings("5000", "monthly", "THB")

        assert to_cents(service.budget().base_daily_usable_amount) == Decimal("833.33")

    def test_simulator_overlay(self, service):
        """Test the displayed DUA follows the what-if overlay."""
        service.add_income("30000", "Salary")
        service.update_settings("5000", "monthly", "THB")

        service.simulator.toggle(True)
        service.simulator.simulate("3000")
        assert service.display_daily_usable_amount() == Decimal("22000") / 30
        assert service.budget().spent_this_month == Decimal("0")

        service.simulator.toggle(False)
        assert service.display_daily_usable_amount() == service.budget().base_daily_usable_amount

    def test_loan_portfolio(self, service, clock):
        """Test the loan summary counts and totals."""
        service.create_loan("Somchai", "1000", "10", "simple", "2026-12-02")
        service.create_loan("Nok", "500", "0", "simple", "2026-10-20")
        service.create_loan("Ploy", "200", "0", "simple", "2026-11-01")
        service.write_off_loan(3)

        clock.set(clock.now().replace(day=25))
        summary = service.loan_portfolio()

        assert summary.pending_count == 2
        assert summary.written_off_count == 1
        assert summary.total_lent == Decimal("1500")
        assert summary.total_expected == Decimal("1700")
        assert summary.expected_interest == Decimal("200")
        assert summary.due_this_month_count == 1
        assert summary.due_this_month_expected == Decimal("500")
        assert summary.past_due_loan_ids == [2]

    def test_spending_by_date(self, service, clock):
        """Test this month's spending grouped by day, newest first."""
        service.add_daily_spending("50", "Coffee", "2026-10-01")
        service.add_daily_spending("120", "Lunch")
        service.add_daily_spending("80", "Dinner")
        service.add_daily_spending("999", "Last month", "2026-09-30")

        grouped = service.spending_by_date()
        assert list(grouped) == [date(2026, 10, 2), date(2026, 10, 1)]
        assert [entry.description for entry in grouped[date(2026, 10, 2)]] == ["Lunch", "Dinner"]


class TestCreateService:
    """Tests for wiring a service from configuration."""

    @pytest.fixture(autouse=True)
    def clear_settings_cache(self):
        get_settings.cache_clear()
        yield
        get_settings.cache_clear()

    def test_memory_backend(self, monkeypatch):
        """Test the memory backend and configured budget defaults."""
        monkeypatch.setenv("SPENDWISE_STORAGE_BACKEND", "memory")
        monkeypatch.setenv("SPENDWISE_DEFAULTS_SAVINGS_GOAL", "7000")
        monkeypatch.setenv("SPENDWISE_DEFAULTS_CURRENCY", "EUR")

        service = create_service(clock=FixedClock.on(2026, 10, 2))
        assert service.state.settings.savings_goal == Decimal("7000")
        assert service.state.settings.currency == "EUR"

    def test_file_backend(self, monkeypatch, tmp_path):
        """Test the file backend writes under the configured data dir."""
        monkeypatch.setenv("SPENDWISE_STORAGE_BACKEND", "file")
        monkeypatch.setenv("SPENDWISE_STORAGE_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("SPENDWISE_STORAGE_STATE_KEY", "household")

        service = create_service(clock=FixedClock.on(2026, 10, 2))
        service.add_income("100", "Allowance")
        assert (tmp_path / "household.json").exists()

    def test_injected_store(self):
        """Test an explicitly passed store wins over configuration."""
        store = InMemoryKeyValueStore()
        service = create_service(clock=FixedClock.on(2026, 10, 2), store=store)
        service.add_income("100")
        assert store.get(get_settings().storage.state_key) is not None
