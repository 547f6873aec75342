"""
Core Data Models for SpendWise

These models define the strict schemas for everything the engine reads
and writes: budget settings, the four ledgers, loans, and the results
handed back to callers.

DESIGN DECISION: Field names are snake_case in Python, but every model
serializes with camelCase aliases. The persisted snapshot therefore keeps
the exact shape earlier versions of the app wrote (`friendName`,
`expenseId`, `savingsGoalType`, ...) and old data loads unchanged.

DESIGN DECISION: All money is Decimal. Amounts carry no currency; the
currency in BudgetSettings is for display only and is never converted.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    computed_field,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from spendwise.utils.ids import generate_id


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class SavingsGoalType(str, Enum):
    """Period a savings goal is expressed in."""
    DAILY = "daily"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ExpenseFrequency(str, Enum):
    """How often a fixed expense recurs."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class InterestType(str, Enum):
    """How loan interest accrues per elapsed month."""
    SIMPLE = "simple"      # on the original principal only
    COMPOUND = "compound"  # on principal plus accrued interest


class LoanStatus(str, Enum):
    """
    Loan lifecycle state.

    PENDING is the only non-terminal state. PAID and WRITTEN_OFF are
    terminal; a loan can still be deleted from any state.
    """
    PENDING = "pending"
    PAID = "paid"
    WRITTEN_OFF = "written-off"


class LedgerCollection(str, Enum):
    """Names of the id-bearing collections inside a LedgerState."""
    INCOMES = "incomes"
    FIXED_EXPENSES = "fixed_expenses"
    ONE_TIME_PLANNED = "one_time_planned"
    DAILY_SPENDING = "daily_spending"
    LOANS = "loans"


class LedgerModel(BaseModel):
    """Base for every persisted model: camelCase on the wire."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


Money = Decimal


# =============================================================================
# SETTINGS & LEDGER ENTRIES
# =============================================================================

class BudgetSettings(LedgerModel):
    """The singleton budget settings. Mutated by the user, never deleted."""

    savings_goal: Money = Field(
        default=Decimal("0"),
        ge=0,
        description="Savings goal per savings_goal_type period"
    )
    savings_goal_type: SavingsGoalType = Field(
        default=SavingsGoalType.MONTHLY,
        description="Period the savings goal is expressed in"
    )
    currency: str = Field(
        default="THB",
        min_length=1,
        max_length=10,
        description="Currency label (display only)"
    )


class IncomeEntry(LedgerModel):
    """
    A monthly-recurring income source.

    There is no date: every income entry counts every month. Loan
    repayments are recorded as income entries too.
    """

    id: int = Field(..., ge=1)
    amount: Money = Field(..., ge=0)
    description: str = Field(default="", max_length=200)


class FixedExpense(LedgerModel):
    """A recurring obligation. Yearly ones count as amount / 12 per month."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    frequency: ExpenseFrequency = ExpenseFrequency.MONTHLY


class OneTimePlanned(LedgerModel):
    """A planned expense counted only in the month it targets."""

    id: int = Field(..., ge=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    month: str = Field(
        ...,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Target month as YYYY-MM"
    )


class DailySpendingEntry(LedgerModel):
    """
    Actual money out on a given day.

    Loan principals are recorded here as well, tagged by description.
    """

    id: int = Field(..., ge=1)
    amount: Money = Field(..., ge=0)
    description: str = Field(default="", max_length=200)
    date: date


# =============================================================================
# LOANS
# =============================================================================

class Loan(LedgerModel):
    """
    Money lent to a friend.

    A loan owns two ledger links:
    - expense_id: the DailySpendingEntry written for the principal when
      the loan was created. Valid until the loan itself is removed.
    - income_id: the IncomeEntry written when the loan was repaid.
      None until the loan is marked paid.

    interest_rate is a percentage per month (5 means 5% per month).
    """

    id: int = Field(..., ge=1)
    friend_name: str = Field(..., min_length=1, max_length=200)
    principal: Money = Field(..., ge=0)
    interest_rate: Decimal = Field(default=Decimal("0"), ge=0)
    interest_type: InterestType = InterestType.SIMPLE
    lent_date: date
    expected_return_date: date
    expected_amount: Money = Field(..., ge=0)
    status: LoanStatus = LoanStatus.PENDING
    notes: Optional[str] = Field(default=None, max_length=1000)
    expense_id: int = Field(..., ge=1)
    income_id: Optional[int] = None

    @field_validator('income_id', mode='before')
    @classmethod
    def drop_legacy_sentinel(cls, v):
        """Older snapshots used -1 for "no income yet"."""
        if v is not None and int(v) <= 0:
            return None
        return v

    @model_validator(mode='after')
    def validate_lifecycle(self) -> 'Loan':
        """Keep status, income link and expected amount consistent."""
        if self.status == LoanStatus.PENDING and self.income_id is not None:
            raise ValueError("A pending loan cannot have a repayment income entry")

        if self.status == LoanStatus.PAID and self.income_id is None:
            raise ValueError("A paid loan must link to its repayment income entry")

        # A paid loan records what was actually received, which may be less
        if self.status != LoanStatus.PAID and self.expected_amount < self.principal:
            raise ValueError("Expected amount cannot be less than the principal")

        return self

    @property
    def is_pending(self) -> bool:
        return self.status == LoanStatus.PENDING

    @property
    def interest(self) -> Money:
        """Interest portion of the expected amount."""
        return self.expected_amount - self.principal


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class LedgerState(LedgerModel):
    """
    The whole ledger: settings plus every collection.

    DESIGN DECISION: Loans, their synthetic expense entries and their
    repayment income entries all live inside this one aggregate. Every
    transition builds a complete new LedgerState from the previous one,
    so a cascade (e.g. removing a loan with both of its ledger entries)
    is a single swap rather than three collection edits kept in lockstep.
    """

    settings: BudgetSettings = Field(default_factory=BudgetSettings)
    incomes: list[IncomeEntry] = Field(default_factory=list)
    fixed_expenses: list[FixedExpense] = Field(default_factory=list)
    one_time_planned: list[OneTimePlanned] = Field(default_factory=list)
    daily_spending: list[DailySpendingEntry] = Field(default_factory=list)
    loans: list[Loan] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'LedgerState':
        """Every id must be unique within its own collection."""
        for collection in LedgerCollection:
            ids = [item.id for item in getattr(self, collection.value)]
            if len(ids) != len(set(ids)):
                raise ValueError(f"Duplicate ids in {collection.value}")
        return self

    def next_id(self, collection: LedgerCollection) -> int:
        """Id the next entry appended to `collection` will receive."""
        return generate_id(getattr(self, collection.value))

    def find_loan(self, loan_id: int) -> Optional[Loan]:
        return next((loan for loan in self.loans if loan.id == loan_id), None)

    def find_income(self, income_id: int) -> Optional[IncomeEntry]:
        return next((entry for entry in self.incomes if entry.id == income_id), None)

    def find_daily_spending(self, entry_id: int) -> Optional[DailySpendingEntry]:
        return next((entry for entry in self.daily_spending if entry.id == entry_id), None)

    def loan_for_expense(self, expense_id: int) -> Optional[Loan]:
        """The loan whose principal is recorded by this spending entry, if any."""
        return next((loan for loan in self.loans if loan.expense_id == expense_id), None)

    def loan_for_income(self, income_id: int) -> Optional[Loan]:
        """The loan whose repayment is recorded by this income entry, if any."""
        return next((loan for loan in self.loans if loan.income_id == income_id), None)

    def replace(self, **changes) -> 'LedgerState':
        """Return a re-validated copy with the given fields swapped in."""
        data = {field: getattr(self, field) for field in type(self).model_fields}
        data.update(changes)
        return type(self).model_validate(data)

    def to_snapshot(self) -> dict:
        """Serialize to the camelCase JSON-ready shape the store persists."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_snapshot(cls, data: dict) -> 'LedgerState':
        return cls.model_validate(data)


# =============================================================================
# TRANSITION RESULTS
# =============================================================================

class PreconditionFailedError(Exception):
    """A transition was requested against a state that does not allow it."""
    pass


class TransitionResult(BaseModel):
    """
    Outcome of one mutating operation.

    When `applied` is False, `state` is the unchanged input state and
    `reason` says why. Callers that already filter which actions they
    offer can ignore the flag; everyone else can check it or call
    `unwrap()`.
    """

    state: LedgerState
    applied: bool = True
    reason: Optional[str] = None
    created_ids: dict[str, int] = Field(
        default_factory=dict,
        description="Ids of entries created by this transition, by collection"
    )
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(
        cls,
        state: LedgerState,
        warnings: Optional[list[str]] = None,
        **created_ids: int,
    ) -> 'TransitionResult':
        return cls(
            state=state,
            applied=True,
            created_ids=created_ids,
            warnings=warnings or [],
        )

    @classmethod
    def rejected(cls, state: LedgerState, reason: str) -> 'TransitionResult':
        return cls(state=state, applied=False, reason=reason)

    def unwrap(self) -> LedgerState:
        """Return the new state, or raise if the transition was rejected."""
        if not self.applied:
            raise PreconditionFailedError(self.reason or "Transition rejected")
        return self.state


# =============================================================================
# READ MODELS
# =============================================================================

class BudgetSnapshot(BaseModel):
    """
    Everything the dashboard shows for the current day.

    base_daily_usable_amount is fixed at the start of the day: it ignores
    spending already logged today, so today's progress is measured
    against a stable target.
    """

    current_month: str
    today: date
    days_remaining: int = Field(ge=0)

    monthly_income: Money
    commitment: Money
    spent_this_month: Money
    spent_today: Money
    spent_before_today: Money

    base_daily_usable_amount: Decimal
    available_budget: Decimal = Field(
        ...,
        description="Income minus commitment minus everything spent this month"
    )
    daily_savings_amount: Decimal
    todays_remaining: Decimal = Field(ge=0)
    percentage_spent_today: Decimal = Field(ge=0, le=100)

    @computed_field
    @property
    def is_at_risk(self) -> bool:
        """A non-positive daily usable amount means the goal is at risk."""
        return self.base_daily_usable_amount <= 0


class LoanPortfolioSummary(BaseModel):
    """Totals across all loans, as shown above the loan list."""

    pending_count: int = Field(ge=0)
    paid_count: int = Field(ge=0)
    written_off_count: int = Field(ge=0)

    total_lent: Money = Field(..., description="Principal still out (pending loans)")
    total_expected: Money = Field(..., description="Expected back from pending loans")

    due_this_month_count: int = Field(ge=0)
    due_this_month_expected: Money
    past_due_loan_ids: list[int] = Field(default_factory=list)

    @property
    def expected_interest(self) -> Money:
        return self.total_expected - self.total_lent


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'negative', 'invalid_format')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """All issues found for one operation's input."""

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
