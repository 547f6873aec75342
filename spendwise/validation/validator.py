"""
Input Validation

DESIGN DECISION: The engine checks every caller-supplied value before it
touches a ledger. The presentation layer may already coerce bad input,
but the core does not rely on that: a negative amount or a malformed
date is REJECTED with a ValidationError naming the field, never
silently turned into 0.

Issues come in two severities:
- error: the operation is refused (ValidationError is raised)
- warning: the operation goes ahead, the warning travels with the result
  so the caller can show or log it

IMPORTANT: Validation NEVER silently fixes issues. The only
normalization applied is parsing (e.g. "12.50" -> Decimal("12.50")).
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from typing import Any, Type

from pydantic import BaseModel, Field

from spendwise.models.ledger import (
    ExpenseFrequency,
    InterestType,
    SavingsGoalType,
    ValidationIssue,
)


_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

MAX_NAME_LENGTH = 200
MAX_NOTES_LENGTH = 1000


class ValidationError(Exception):
    """
    Input rejected before any ledger was touched.

    `field` names the first offending field; `issues` holds every issue
    found, warnings included.
    """

    def __init__(self, operation: str, issues: list[ValidationIssue]):
        self.operation = operation
        self.issues = issues
        errors = [issue for issue in issues if issue.severity == "error"]
        self.field = errors[0].field if errors else None
        summary = "; ".join(f"{issue.field}: {issue.message}" for issue in errors)
        super().__init__(f"{operation} rejected: {summary}")


class CheckedInput(BaseModel):
    """Parsed values plus every issue found while parsing them."""

    values: dict[str, Any] = Field(default_factory=dict)
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]

    def require(self, operation: str) -> dict[str, Any]:
        """Return the parsed values, or raise if any error was found."""
        if self.has_errors:
            raise ValidationError(operation, self.issues)
        return self.values


class LedgerInputValidator:
    """
    Parses and checks the plain-data arguments of every ledger operation.

    Each `check_*` method returns a CheckedInput; nothing is raised until
    the caller asks for the values with `require()`.
    """

    # ------------------------------------------------------------------
    # Field-level checks
    # ------------------------------------------------------------------

    def _amount(
        self,
        field: str,
        value: Any,
        checked: CheckedInput,
    ) -> None:
        """Money or rate: a finite, non-negative decimal."""
        if value is None or isinstance(value, bool):
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="missing" if value is None else "invalid_type",
                message=f"{field} must be a number",
                severity="error",
            ))
            return

        try:
            amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
        except (InvalidOperation, ValueError):
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_format",
                message=f"{field} is not a number: {value!r}",
                severity="error",
                suggested_fix="Enter digits only, e.g. 1250.50",
            ))
            return

        if not amount.is_finite():
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be a finite number",
                severity="error",
            ))
            return

        if amount < 0:
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="negative",
                message=f"{field} cannot be negative",
                severity="error",
            ))
            return

        checked.values[field] = amount

    def _text(
        self,
        field: str,
        value: Any,
        checked: CheckedInput,
        required: bool = True,
        max_length: int = MAX_NAME_LENGTH,
    ) -> None:
        if value is None and not required:
            checked.values[field] = None
            return

        if not isinstance(value, str):
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_type",
                message=f"{field} must be text",
                severity="error",
            ))
            return

        text = value.strip()
        if required and not text:
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{field} is required",
                severity="error",
            ))
            return

        if len(text) > max_length:
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="too_long",
                message=f"{field} is longer than {max_length} characters",
                severity="error",
            ))
            return

        checked.values[field] = text

    def _date(
        self,
        field: str,
        value: Any,
        checked: CheckedInput,
    ) -> None:
        """A calendar date, or a YYYY-MM-DD string."""
        if isinstance(value, datetime):
            checked.values[field] = value.date()
            return
        if isinstance(value, date):
            checked.values[field] = value
            return

        if isinstance(value, str) and _DATE_PATTERN.match(value.strip()):
            try:
                checked.values[field] = date.fromisoformat(value.strip())
                return
            except ValueError:
                pass

        checked.issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=f"{field} must be a valid YYYY-MM-DD date, got {value!r}",
            severity="error",
        ))

    def _month(
        self,
        field: str,
        value: Any,
        checked: CheckedInput,
    ) -> None:
        if isinstance(value, str) and _MONTH_PATTERN.match(value.strip()):
            checked.values[field] = value.strip()
            return

        checked.issues.append(ValidationIssue(
            field=field,
            issue_type="invalid_format",
            message=f"{field} must be a YYYY-MM month, got {value!r}",
            severity="error",
        ))

    def _choice(
        self,
        field: str,
        value: Any,
        enum_cls: Type[Enum],
        checked: CheckedInput,
    ) -> None:
        try:
            checked.values[field] = enum_cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in enum_cls)
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_choice",
                message=f"{field} must be one of: {allowed}",
                severity="error",
            ))

    def _id(self, field: str, value: Any, checked: CheckedInput) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            checked.issues.append(ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{field} must be a positive integer id",
                severity="error",
            ))
            return
        checked.values[field] = value

    # ------------------------------------------------------------------
    # Operation-level checks
    # ------------------------------------------------------------------

    def check_loan(
        self,
        friend_name: Any,
        principal: Any,
        interest_rate: Any,
        interest_type: Any,
        expected_return_date: Any,
        notes: Any,
        lent_date: date,
    ) -> CheckedInput:
        """Arguments of creating a loan. `lent_date` comes from the clock."""
        checked = CheckedInput()
        self._text("friend_name", friend_name, checked)
        self._amount("principal", principal, checked)
        self._amount("interest_rate", interest_rate, checked)
        self._choice("interest_type", interest_type, InterestType, checked)
        self._date("expected_return_date", expected_return_date, checked)
        self._text("notes", notes, checked, required=False, max_length=MAX_NOTES_LENGTH)

        if checked.values.get("notes") == "":
            checked.values["notes"] = None

        return_date = checked.values.get("expected_return_date")
        if return_date is not None and return_date < lent_date:
            checked.issues.append(ValidationIssue(
                field="expected_return_date",
                issue_type="before_lent_date",
                message=(
                    f"Return date {return_date.isoformat()} is before the lent date "
                    f"{lent_date.isoformat()}; no interest will accrue"
                ),
                severity="warning",
                suggested_fix="Check the return date",
            ))

        return checked

    def check_repayment(self, actual_amount: Any) -> CheckedInput:
        """Optional actual amount received when a loan is marked paid."""
        checked = CheckedInput()
        if actual_amount is None:
            checked.values["actual_amount"] = None
        else:
            self._amount("actual_amount", actual_amount, checked)
        return checked

    def check_income(self, amount: Any, description: Any) -> CheckedInput:
        checked = CheckedInput()
        self._amount("amount", amount, checked)
        self._text("description", description, checked, required=False)
        if checked.values.get("description") is None:
            checked.values["description"] = ""
        return checked

    def check_fixed_expense(self, name: Any, amount: Any, frequency: Any) -> CheckedInput:
        checked = CheckedInput()
        self._text("name", name, checked)
        self._amount("amount", amount, checked)
        self._choice("frequency", frequency, ExpenseFrequency, checked)
        return checked

    def check_one_time(self, name: Any, amount: Any, month: Any) -> CheckedInput:
        checked = CheckedInput()
        self._text("name", name, checked)
        self._amount("amount", amount, checked)
        self._month("month", month, checked)
        return checked

    def check_daily_spending(
        self,
        amount: Any,
        description: Any,
        spent_on: Any,
    ) -> CheckedInput:
        checked = CheckedInput()
        self._amount("amount", amount, checked)
        self._text("description", description, checked, required=False)
        if checked.values.get("description") is None:
            checked.values["description"] = ""
        self._date("date", spent_on, checked)
        return checked

    def check_settings(
        self,
        savings_goal: Any,
        savings_goal_type: Any,
        currency: Any,
    ) -> CheckedInput:
        checked = CheckedInput()
        self._amount("savings_goal", savings_goal, checked)
        self._choice("savings_goal_type", savings_goal_type, SavingsGoalType, checked)
        self._text("currency", currency, checked, max_length=10)
        return checked

    def check_hypothetical(self, amount: Any) -> CheckedInput:
        """What-if amount: absent, or a non-negative decimal."""
        checked = CheckedInput()
        if amount is None:
            checked.values["amount"] = None
        else:
            self._amount("amount", amount, checked)
        return checked

    def check_entry_id(self, field: str, value: Any) -> CheckedInput:
        checked = CheckedInput()
        self._id(field, value, checked)
        return checked


@lru_cache()
def get_validator() -> LedgerInputValidator:
    """Shared stateless validator instance."""
    return LedgerInputValidator()
