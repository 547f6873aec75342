"""
What-if simulator.

Answers "what would my daily usable amount be if I spent X now?"
without writing anything to the ledger. The overlay lives only in
memory and is never persisted.
"""

from decimal import Decimal
from typing import Any, Optional

from spendwise.budget.daily_usable import daily_usable_amount
from spendwise.models.ledger import BudgetSnapshot
from spendwise.validation.validator import get_validator


class WhatIfSimulator:
    """
    Holds {active, hypothetical_amount}.

    While active with an amount set, `project` recomputes the DUA with
    the amount added to spent_before_today. Otherwise it passes the
    snapshot's own DUA through unchanged.
    """

    def __init__(self):
        self._active = False
        self._hypothetical_amount: Optional[Decimal] = None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def hypothetical_amount(self) -> Optional[Decimal]:
        return self._hypothetical_amount

    def toggle(self, active: bool) -> None:
        """Switch the overlay on or off. Switching off clears the amount."""
        self._active = active
        if not active:
            self._hypothetical_amount = None

    def simulate(self, amount: Any) -> None:
        """
        Set (or clear, with None) the hypothetical amount.

        Raises:
            ValidationError: If the amount is negative or not a number
        """
        values = get_validator().check_hypothetical(amount).require("simulate")
        self._hypothetical_amount = values["amount"]

    def project(self, snapshot: BudgetSnapshot) -> Decimal:
        """The DUA to display for `snapshot` under the current overlay."""
        if not self._active or self._hypothetical_amount is None:
            return snapshot.base_daily_usable_amount

        return daily_usable_amount(
            snapshot.monthly_income,
            snapshot.commitment,
            snapshot.spent_before_today + self._hypothetical_amount,
            snapshot.days_remaining,
        )
