"""
Core Data Models for Budgeter

These models define the strict schemas for every record the engine
consumes or produces:
1. Transactions and budgets supplied by the store
2. Exclusions tying a transaction to a budget
3. Spend reports handed back to the caller
4. Validated input structs for each operation

Input structs forbid unknown fields; a request body with a typo is
rejected at the boundary instead of being half-applied.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money movement."""
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class TaxCategory(str, Enum):
    """
    Tax treatment of a deposit.

    Only deposits may carry W2 or FORM_1099.
    """
    W2 = "w2"
    FORM_1099 = "1099"
    NONE = "none"


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(BaseModel):
    """
    A single money movement owned by one user.

    Immutable once created; edits replace the record in the store.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    owner_id: str = Field(
        ...,
        min_length=1,
        description="Owner scope"
    )
    type: TransactionType
    amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
        description="Amount in currency units"
    )
    category: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Category id (unknown ids are accepted)"
    )
    description: str = Field(
        default="",
        max_length=500,
    )
    date: datetime = Field(
        ...,
        description="When the transaction happened"
    )

    @field_validator('date', mode='before')
    @classmethod
    def promote_plain_date(cls, v):
        """Accept a bare date as midnight of that day."""
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v

    @field_validator('date')
    @classmethod
    def normalize_to_utc(cls, v: datetime) -> datetime:
        """Store every timestamp in UTC; naive values are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    # "date" is shadowed by the field inside this class body
    @property
    def booked_on(self):
        """Calendar day of the transaction."""
        return self.date.date()

    def falls_within(self, start, end) -> bool:
        """True if the transaction's day lies in [start, end]."""
        return start <= self.booked_on <= end


# =============================================================================
# BUDGETS
# =============================================================================

class BudgetCategoryAllocation(BaseModel):
    """Amount planned for one category inside a budget."""
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    category_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
    )
    budgeted_amount: Decimal = Field(
        ...,
        ge=0,
        decimal_places=2,
    )


def _check_allocations(
    allocations: Optional[list[BudgetCategoryAllocation]],
) -> None:
    if not allocations:
        return
    seen = set()
    for allocation in allocations:
        if allocation.category_id in seen:
            raise ValueError(
                f"Category {allocation.category_id!r} is allocated more than once"
            )
        seen.add(allocation.category_id)


def _check_window(start: Optional[date], end: Optional[date]) -> None:
    if start and end and end < start:
        raise ValueError("End date cannot be before start date")


class Budget(BaseModel):
    """
    A spending plan over an inclusive date window.

    For one owner, no two primary budgets may have overlapping windows.
    That rule needs the store, so it is enforced by the period validator,
    not here.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_id: str = Field(..., min_length=1)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    start_date: date
    end_date: date
    primary: bool = False
    allocations: list[BudgetCategoryAllocation] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_budget(self) -> 'Budget':
        _check_window(self.start_date, self.end_date)
        _check_allocations(self.allocations)
        return self

    @property
    def category_ids(self) -> list[str]:
        return [a.category_id for a in self.allocations]

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class BudgetTransactionExclusion(BaseModel):
    """This transaction must not count toward this budget's spend."""
    model_config = ConfigDict(frozen=True)

    budget_id: UUID
    transaction_id: UUID


# =============================================================================
# SPEND REPORTS
# =============================================================================

class CategorySpend(BaseModel):
    """Budgeted vs spent for one category, rounded for reporting."""

    budgeted: Decimal
    spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budgeted - self.spent

    @property
    def over_budget(self) -> bool:
        return self.spent > self.budgeted


class BudgetSpendReport(BaseModel):
    """A budget together with its per-category spend."""

    id: UUID
    name: str
    start_date: date
    end_date: date
    primary: bool
    categories: dict[str, CategorySpend] = Field(default_factory=dict)

    @property
    def total_budgeted(self) -> Decimal:
        return sum((c.budgeted for c in self.categories.values()), Decimal("0"))

    @property
    def total_spent(self) -> Decimal:
        return sum((c.spent for c in self.categories.values()), Decimal("0"))


class CategoryTransaction(BaseModel):
    """A transaction counted by a budget category, with its exclusion flag."""

    id: UUID
    amount: Decimal
    description: str
    date: datetime
    excluded: bool


class ExclusionToggleResult(BaseModel):
    budget_id: UUID
    transaction_id: UUID
    excluded: bool


# =============================================================================
# INPUT STRUCTS - one per operation, unknown fields rejected
# =============================================================================

class BudgetCreateInput(BaseModel):
    """Body of a budget-create request."""
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=200)
    start_date: date
    end_date: date
    primary: bool = False
    allocations: list[BudgetCategoryAllocation] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_input(self) -> 'BudgetCreateInput':
        _check_window(self.start_date, self.end_date)
        _check_allocations(self.allocations)
        return self


class BudgetUpdateInput(BaseModel):
    """
    Body of a budget-update request.

    Omitted fields keep their stored value. A provided allocations list
    replaces the stored one entirely.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    primary: Optional[bool] = None
    allocations: Optional[list[BudgetCategoryAllocation]] = None

    @model_validator(mode='after')
    def validate_input(self) -> 'BudgetUpdateInput':
        _check_window(self.start_date, self.end_date)
        _check_allocations(self.allocations)
        return self

    @property
    def changes_window(self) -> bool:
        return self.start_date is not None or self.end_date is not None


class ExclusionToggleInput(BaseModel):
    """Body of an exclusion-toggle request."""
    model_config = ConfigDict(extra="forbid")

    budget_id: UUID
    transaction_id: UUID


# =============================================================================
# VALIDATION RESULTS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'primary_overlap', 'unknown_category')"
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
    details: dict = Field(
        default_factory=dict,
        description="Context such as the conflicting budget"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (types, required fields)
    Stage 2: Semantic validation (rules that need the store)
    """

    schema_valid: bool
    semantic_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.schema_valid and self.semantic_valid

    @property
    def errors(self) -> list[ValidationIssue]:
        return [i for i in self.issues if i.severity == "error"]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity == "warning"]
