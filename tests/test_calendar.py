"""Tests for calendar utilities and formatting."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from spendwise.budget import (
    FixedClock,
    SystemClock,
    current_month,
    days_remaining_in_month,
    today,
    today_iso,
)
from spendwise.utils import (
    format_currency,
    format_month_year,
    generate_id,
    is_loan_expense,
    loan_expense_description,
    loan_income_description,
    month_key,
)


class TestCalendar:
    """Tests for month and day derivation from a clock."""

    def test_current_month_is_zero_padded(self):
        """Test months are 1-indexed and zero-padded."""
        assert current_month(FixedClock.on(2026, 3, 9)) == "2026-03"

    def test_today(self):
        """Test today() is the clock's calendar date."""
        assert today(FixedClock.on(2026, 3, 9)).isoformat() == "2026-03-09"

    def test_today_iso_is_zero_padded(self):
        """Test the string form of today is YYYY-MM-DD."""
        assert today_iso(FixedClock.on(2026, 3, 9)) == "2026-03-09"

    def test_days_remaining_counts_today(self):
        """Test the first of a 31-day month has 31 days left."""
        assert days_remaining_in_month(FixedClock.on(2026, 10, 1)) == 31

    def test_days_remaining_on_last_day(self):
        """Test the last day of the month has exactly 1 day left."""
        assert days_remaining_in_month(FixedClock.on(2026, 10, 31)) == 1

    @pytest.mark.parametrize("year,expected", [(2024, 29), (2026, 28)])
    def test_days_remaining_in_february(self, year, expected):
        """Test leap years are respected."""
        assert days_remaining_in_month(FixedClock.on(year, 2, 1)) == expected

    def test_fixed_clock_can_move(self):
        """Test a FixedClock can be moved by hand."""
        clock = FixedClock.on(2026, 10, 2)
        clock.set(datetime(2026, 11, 5, 8, 30))
        assert current_month(clock) == "2026-11"

    def test_system_clock_uses_timezone(self):
        """Test the system clock reports aware times when a zone is given."""
        now = SystemClock("UTC").now()
        assert now.utcoffset() == timezone.utc.utcoffset(None)


class TestFormatters:
    """Tests for display formatting and loan description tags."""

    def test_format_currency(self):
        """Test 2 decimals, thousands separators and the label."""
        assert format_currency(Decimal("1234.5"), "THB") == "1,234.50 THB"

    def test_format_currency_without_label(self):
        """Test formatting without a currency label."""
        assert format_currency(Decimal("833.333"), "THB", include_symbol=False) == "833.33"

    def test_format_currency_rounds_half_up(self):
        """Test half cents round up."""
        assert format_currency(Decimal("0.005")) == "0.01"

    def test_format_month_year(self):
        """Test the short month-year label."""
        assert format_month_year(date(2026, 10, 19)) == "Oct 2026"

    def test_month_key(self):
        """Test the YYYY-MM key of a date."""
        assert month_key(date(2026, 1, 31)) == "2026-01"

    def test_loan_descriptions(self):
        """Test the tags written on loan ledger entries."""
        assert loan_expense_description("Somchai") == "💸 Lent to Somchai"
        assert loan_income_description("Somchai", date(2026, 12, 2)) == (
            "💰 Somchai paid back (Dec 2026)"
        )

    def test_is_loan_expense(self):
        """Test loan-sourced spending is recognized by its tag."""
        assert is_loan_expense("💸 Lent to Somchai") is True
        assert is_loan_expense("Lunch") is False


class TestIdGeneration:
    """Tests for the max + 1 id rule."""

    def test_empty(self):
        """Test the first id is 1."""
        assert generate_id([]) == 1

    def test_gaps_are_kept(self):
        """Test ids continue after the highest existing id."""
        class Item:
            def __init__(self, id):
                self.id = id

        assert generate_id([Item(1), Item(5), Item(3)]) == 6
