"""Shared fixtures: a pinned clock and ledgers to start from."""

import pytest
from datetime import date
from decimal import Decimal

from spendwise.audit import AuditLogger
from spendwise.budget import FixedClock
from spendwise.models.ledger import (
    BudgetSettings,
    IncomeEntry,
    LedgerState,
    SavingsGoalType,
)
from spendwise.orchestrator import SpendWiseService
from spendwise.services.storage import (
    InMemoryAuditStorage,
    InMemoryKeyValueStore,
    StateRepository,
)


@pytest.fixture
def clock():
    """Noon on 2 Oct 2026: 30 days left in the month, counting today."""
    return FixedClock.on(2026, 10, 2)


@pytest.fixture
def empty_state():
    return LedgerState()


@pytest.fixture
def funded_state():
    """30000 income, 5000 monthly savings goal, nothing else."""
    return LedgerState(
        settings=BudgetSettings(
            savings_goal=Decimal("5000"),
            savings_goal_type=SavingsGoalType.MONTHLY,
        ),
        incomes=[IncomeEntry(id=1, amount=Decimal("30000"), description="Salary")],
    )


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def service(store, clock, audit_storage):
    repository = StateRepository(store)
    return SpendWiseService(repository, clock=clock, audit_logger=AuditLogger(audit_storage))


@pytest.fixture
def lent_on():
    return date(2026, 10, 2)
