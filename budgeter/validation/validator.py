"""
Two-Stage Validation Pipeline

Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking
- Required field presence
- Unknown fields rejected
- End date not before start date, amounts not negative

STAGE 2 - SEMANTIC VALIDATION:
- Primary budgets may not overlap another primary budget of the owner
- Allocations to category ids outside the catalog are flagged
- This needs the store, so it runs after stage 1 passes

Validation NEVER silently fixes issues. Stage 1 failures and stage 2
errors raise ValidationError; warnings are logged and returned.
"""

from typing import Any, Optional, TypeVar
from uuid import UUID

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from budgeter.budgets.periods import BudgetPeriodValidator
from budgeter.catalog import is_known
from budgeter.exceptions import ValidationError
from budgeter.models.finance import Budget, ValidationIssue, ValidationResult
from budgeter.services.storage import BudgetStorageInterface

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


def _issue_field(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "body"


def parse_input(model: type[ModelT], payload: Any) -> ModelT:
    """
    Stage 1: validate a request body against its input struct.

    Raises:
        ValidationError: With every schema issue under details["issues"]
    """
    if isinstance(payload, model):
        return payload

    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        issues = [
            ValidationIssue(
                field=_issue_field(err["loc"]),
                issue_type=err["type"],
                message=err["msg"],
                severity="error",
            )
            for err in e.errors()
        ]
        first = issues[0]
        raise ValidationError(
            f"Invalid {model.__name__}: {first.message}",
            field=first.field,
            constraint=first.issue_type,
            details={"issues": [i.model_dump() for i in issues]},
        ) from e


class BudgetValidator:
    """
    Semantic checks on a budget that already passed schema validation.

    Stage 1 is parse_input; this class is stage 2.
    """

    def __init__(self, storage: BudgetStorageInterface):
        self._periods = BudgetPeriodValidator(storage)

    async def _check_primary_overlap(
        self,
        candidate: Budget,
        exclude_budget_id: Optional[UUID],
    ) -> list[ValidationIssue]:
        if not candidate.primary:
            return []

        conflict = await self._periods.find_overlapping_primary(
            candidate.owner_id,
            candidate.start_date,
            candidate.end_date,
            exclude_budget_id,
        )
        if conflict is None:
            return []

        return [ValidationIssue(
            field="start_date",
            issue_type="primary_overlap",
            message="Another primary budget overlaps this period.",
            severity="error",
            details={
                "conflicting_budget_id": str(conflict.id),
                "conflicting_budget_name": conflict.name,
                "conflicting_start_date": conflict.start_date.isoformat(),
                "conflicting_end_date": conflict.end_date.isoformat(),
            },
        )]

    def _check_categories(self, candidate: Budget) -> list[ValidationIssue]:
        issues = []
        for category_id in candidate.category_ids:
            if not is_known(category_id):
                issues.append(ValidationIssue(
                    field="allocations",
                    issue_type="unknown_category",
                    message=f"Category {category_id!r} is not in the catalog",
                    severity="warning",
                    details={"category_id": category_id},
                ))
        if not candidate.allocations:
            issues.append(ValidationIssue(
                field="allocations",
                issue_type="empty",
                message="Budget has no category allocations",
                severity="info",
            ))
        return issues

    async def validate(
        self,
        candidate: Budget,
        exclude_budget_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Run the semantic stage.

        Args:
            candidate: Budget as it would be stored
            exclude_budget_id: Budget being edited, left out of overlap checks
        """
        issues = await self._check_primary_overlap(candidate, exclude_budget_id)
        issues.extend(self._check_categories(candidate))

        return ValidationResult(
            schema_valid=True,
            semantic_valid=not any(i.severity == "error" for i in issues),
            issues=issues,
        )

    async def ensure_valid(
        self,
        candidate: Budget,
        exclude_budget_id: Optional[UUID] = None,
    ) -> ValidationResult:
        """
        Run the semantic stage and raise on the first error.

        Raises:
            ValidationError: If any issue has severity "error"
        """
        result = await self.validate(candidate, exclude_budget_id)

        for warning in result.warnings:
            logger.warning(
                "budget_validation_warning",
                owner_id=candidate.owner_id,
                budget_id=str(candidate.id),
                warning=warning,
            )

        if result.is_valid:
            return result

        first = result.errors[0]
        raise ValidationError(
            first.message,
            field=first.field,
            constraint=first.issue_type,
            details={
                **first.details,
                "budget_id": str(exclude_budget_id) if exclude_budget_id else None,
                "issues": [i.model_dump() for i in result.errors],
            },
        )
