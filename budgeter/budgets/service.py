"""
Budget Service

The operations a dashboard calls for budgets:
1. Create / update / delete a budget (primary overlap enforced)
2. List budgets with per-category spend
3. Find the primary budget covering a given day
4. Drill into one category's transactions and toggle exclusions

Every request body goes through parse_input first (stage 1), every
candidate budget through BudgetValidator (stage 2). Every mutation is
audited.

Primary-overlap checks and the write that follows run under one lock, so
two concurrent requests cannot both create overlapping primary budgets.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

import structlog

from budgeter.audit import AuditLogger
from budgeter.budgets.exclusions import ExclusionLedger
from budgeter.budgets.spend import (
    CENT,
    build_spend_report,
    category_transactions,
    compute_budgets_spend,
)
from budgeter.exceptions import NotFoundError, ValidationError
from budgeter.models.finance import (
    Budget,
    BudgetCreateInput,
    BudgetSpendReport,
    BudgetUpdateInput,
    CategoryTransaction,
    ExclusionToggleInput,
    ExclusionToggleResult,
    TransactionType,
    utcnow,
)
from budgeter.services.storage import (
    BudgetStorageInterface,
    ExclusionStorageInterface,
    TransactionStorageInterface,
)
from budgeter.validation import BudgetValidator, parse_input

logger = structlog.get_logger()


class BudgetService:
    """Budget CRUD, spend views and exclusion toggling for one store."""

    def __init__(
        self,
        budgets: BudgetStorageInterface,
        transactions: TransactionStorageInterface,
        exclusions: ExclusionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[BudgetValidator] = None,
        quantum: Decimal = CENT,
    ):
        self._budgets = budgets
        self._transactions = transactions
        self._exclusions = exclusions
        self._audit = audit_logger or AuditLogger()
        self._validator = validator or BudgetValidator(budgets)
        self._ledger = ExclusionLedger(budgets, transactions, exclusions)
        self._quantum = quantum
        self._write_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _owned_budget(self, owner_id: str, budget_id: UUID) -> Budget:
        budget = await self._budgets.get_budget(budget_id)
        if budget is None or budget.owner_id != owner_id:
            raise NotFoundError(
                "Budget not found",
                entity="budget",
                entity_id=budget_id,
            )
        return budget

    async def _parse(
        self,
        model: type,
        payload: Any,
        owner_id: str,
        operation: str,
        correlation_id: Optional[UUID],
    ):
        try:
            return parse_input(model, payload)
        except ValidationError as e:
            await self._audit.log_validation_failed(
                operation=operation,
                error_message=e.message,
                details=e.details,
                owner_id=owner_id,
                correlation_id=correlation_id,
            )
            raise

    async def _validate_candidate(
        self,
        candidate: Budget,
        exclude_budget_id: Optional[UUID],
        correlation_id: Optional[UUID],
    ) -> None:
        try:
            await self._validator.ensure_valid(candidate, exclude_budget_id)
        except ValidationError as e:
            if e.constraint == "primary_overlap":
                await self._audit.log_primary_overlap_rejected(
                    owner_id=candidate.owner_id,
                    conflicting_budget_id=UUID(e.details["conflicting_budget_id"]),
                    budget_id=exclude_budget_id,
                    correlation_id=correlation_id,
                )
            raise

    async def _report(self, budget: Budget) -> BudgetSpendReport:
        transactions = await self._transactions.list_transactions(
            budget.owner_id,
            type=TransactionType.WITHDRAWAL,
            date_from=budget.start_date,
            date_to=budget.end_date,
        )
        exclusions = await self._exclusions.list_exclusions(budget.id)
        return build_spend_report(budget, transactions, exclusions, self._quantum)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def create_budget(
        self,
        owner_id: str,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Create a budget from a BudgetCreateInput body.

        Raises:
            ValidationError: Malformed body or overlapping primary budget
        """
        data = await self._parse(
            BudgetCreateInput, payload, owner_id, "create_budget", correlation_id
        )
        budget = Budget(owner_id=owner_id, **data.model_dump())

        async with self._write_lock:
            await self._validate_candidate(budget, None, correlation_id)
            await self._budgets.save_budget(budget)

        logger.info(
            "budget_created",
            owner_id=owner_id,
            budget_id=str(budget.id),
            primary=budget.primary,
        )
        await self._audit.log_budget_created(
            budget_id=budget.id,
            owner_id=owner_id,
            name=budget.name,
            primary=budget.primary,
            correlation_id=correlation_id,
        )
        return budget

    async def update_budget(
        self,
        owner_id: str,
        budget_id: UUID,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Apply a partial update.

        Omitted fields keep their stored value; a provided allocations list
        replaces the stored one. When the result is primary, its window is
        rechecked against the owner's other primary budgets.

        Raises:
            NotFoundError: Budget missing or owned by someone else
            ValidationError: Malformed body, inverted window or overlap
        """
        data = await self._parse(
            BudgetUpdateInput, payload, owner_id, "update_budget", correlation_id
        )
        changes = data.model_dump(exclude_none=True)

        async with self._write_lock:
            existing = await self._owned_budget(owner_id, budget_id)
            merged = {**existing.model_dump(), **changes, "updated_at": utcnow()}
            updated = await self._parse(
                Budget, merged, owner_id, "update_budget", correlation_id
            )
            await self._validate_candidate(updated, budget_id, correlation_id)
            await self._budgets.update_budget(updated)

        changed_fields = [
            name for name in changes
            if getattr(existing, name) != getattr(updated, name)
        ]
        logger.info(
            "budget_updated",
            owner_id=owner_id,
            budget_id=str(budget_id),
            changed_fields=changed_fields,
            window_changed=data.changes_window,
        )
        await self._audit.log_budget_updated(
            budget_id=budget_id,
            owner_id=owner_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        )
        return updated

    async def delete_budget(
        self,
        owner_id: str,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a budget with its allocations and exclusions."""
        async with self._write_lock:
            await self._owned_budget(owner_id, budget_id)
            await self._budgets.delete_budget(budget_id)

        logger.info("budget_deleted", owner_id=owner_id, budget_id=str(budget_id))
        await self._audit.log_budget_deleted(
            budget_id=budget_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )

    async def toggle_exclusion(
        self,
        owner_id: str,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> ExclusionToggleResult:
        """Exclude or re-include a transaction in one budget's spend."""
        data = await self._parse(
            ExclusionToggleInput, payload, owner_id, "toggle_exclusion", correlation_id
        )
        result = await self._ledger.toggle_exclusion(
            owner_id, data.budget_id, data.transaction_id
        )
        await self._audit.log_exclusion_toggled(
            budget_id=result.budget_id,
            transaction_id=result.transaction_id,
            owner_id=owner_id,
            excluded=result.excluded,
            correlation_id=correlation_id,
        )
        return result

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_budget(self, owner_id: str, budget_id: UUID) -> BudgetSpendReport:
        budget = await self._owned_budget(owner_id, budget_id)
        return await self._report(budget)

    async def list_budgets(self, owner_id: str) -> list[BudgetSpendReport]:
        """All of an owner's budgets with spend, newest created first."""
        budgets = await self._budgets.list_budgets(owner_id)
        if not budgets:
            return []

        transactions = await self._transactions.list_transactions(
            owner_id, type=TransactionType.WITHDRAWAL
        )
        exclusions = []
        for budget in budgets:
            exclusions.extend(await self._exclusions.list_exclusions(budget.id))

        return compute_budgets_spend(budgets, transactions, exclusions, self._quantum)

    async def get_current_primary(
        self,
        owner_id: str,
        today: Optional[date] = None,
    ) -> Optional[BudgetSpendReport]:
        """
        The primary budget whose window contains ``today``.

        If several match (possible only with legacy data), the most
        recently created wins. Returns None when no primary budget covers
        the day.
        """
        today = today or date.today()
        for budget in await self._budgets.list_budgets(owner_id, primary=True):
            if budget.contains(today):
                return await self._report(budget)
        return None

    async def category_transactions(
        self,
        owner_id: str,
        budget_id: UUID,
        category_id: str,
    ) -> list[CategoryTransaction]:
        """Withdrawals in one budget category, newest first, with exclusion flags."""
        budget = await self._owned_budget(owner_id, budget_id)
        transactions = await self._transactions.list_transactions(
            owner_id,
            type=TransactionType.WITHDRAWAL,
            category=category_id,
            date_from=budget.start_date,
            date_to=budget.end_date,
        )
        exclusions = await self._exclusions.list_exclusions(budget_id)
        return category_transactions(budget, category_id, transactions, exclusions)
