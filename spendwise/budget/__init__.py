"""
Budget calculation package.

Data flows one way: ledgers -> commitment -> daily usable amount ->
what-if simulator. Nothing in here writes to a ledger.
"""

from spendwise.budget.calendar_utils import (
    Clock,
    FixedClock,
    SystemClock,
    current_month,
    days_remaining_in_month,
    today,
    today_iso,
)
from spendwise.budget.commitment import (
    daily_savings,
    monthly_commitment,
    monthly_fixed_total,
    monthly_savings,
    one_time_total,
)
from spendwise.budget.daily_usable import (
    compute_budget_snapshot,
    daily_usable_amount,
    is_at_risk,
)
from spendwise.budget.simulator import WhatIfSimulator

__all__ = [
    # Calendar
    "Clock",
    "FixedClock",
    "SystemClock",
    "current_month",
    "days_remaining_in_month",
    "today",
    "today_iso",
    # Commitment
    "daily_savings",
    "monthly_commitment",
    "monthly_fixed_total",
    "monthly_savings",
    "one_time_total",
    # Daily usable amount
    "compute_budget_snapshot",
    "daily_usable_amount",
    "is_at_risk",
    # Simulator
    "WhatIfSimulator",
]
