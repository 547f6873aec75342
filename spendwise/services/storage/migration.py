"""
Schema Migration for Stored Snapshots

Older versions of the app stored a single `settings.monthlyIncome`
number instead of an income list, had no savings goal period, no loans,
and used -1 to mean "no repayment income yet". `migrate_state` upgrades
any of those shapes to the current one before the snapshot is validated.

IMPORTANT: Every step checks for the old shape before touching anything,
so running the migration on already-migrated data changes nothing and
reports no steps.
"""

import copy
from typing import Any, Optional


LEGACY_INCOME_DESCRIPTION = "Primary Income"

_COLLECTIONS = ("fixedExpenses", "oneTimePlanned", "dailySpending", "loans")


def migrate_state(
    raw: dict[str, Any],
    default_settings: Optional[dict[str, Any]] = None,
) -> tuple[dict[str, Any], list[str]]:
    """
    Upgrade a raw camelCase snapshot to the current schema.

    Args:
        raw: The snapshot as parsed from storage. Not modified.
        default_settings: Settings to use when the snapshot has none.

    Returns:
        (migrated_snapshot, names_of_applied_steps)
    """
    state = copy.deepcopy(raw)
    steps: list[str] = []

    settings = state.get("settings")
    if not isinstance(settings, dict) or not settings:
        settings = dict(default_settings or {})
        state["settings"] = settings
        steps.append("default_settings")

    legacy_income = settings.pop("monthlyIncome", None)
    if state.get("incomes") is None:
        if legacy_income is not None:
            state["incomes"] = [
                {"id": 1, "amount": legacy_income, "description": LEGACY_INCOME_DESCRIPTION}
            ]
            steps.append("incomes_from_monthly_income")
        else:
            state["incomes"] = []
            steps.append("default_incomes")
    elif legacy_income is not None:
        # Income list already exists; the old field is just stale
        steps.append("drop_monthly_income")

    if not settings.get("savingsGoalType"):
        settings["savingsGoalType"] = "monthly"
        steps.append("default_savings_goal_type")

    for collection in _COLLECTIONS:
        if state.get(collection) is None:
            state[collection] = []
            steps.append(f"default_{collection}")

    sentinel_fixed = False
    for loan in state["loans"]:
        income_id = loan.get("incomeId")
        if income_id is not None and income_id <= 0:
            loan["incomeId"] = None
            sentinel_fixed = True
    if sentinel_fixed:
        steps.append("income_sentinel_to_null")

    return state, steps
