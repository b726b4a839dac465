"""
Exclusion Ledger

Per-budget opt-out of individual transactions. Excluding a transaction
from one budget never affects another budget's spend.

Toggle rules:
- budget must exist and belong to the owner
- transaction must exist, belong to the owner and fall inside the
  budget's window
- an existing exclusion is removed, a missing one is added
"""

from uuid import UUID

import structlog

from budgeter.exceptions import NotFoundError, ValidationError
from budgeter.models.finance import (
    Budget,
    BudgetTransactionExclusion,
    ExclusionToggleResult,
    Transaction,
)
from budgeter.services.storage import (
    BudgetStorageInterface,
    DuplicateError,
    ExclusionStorageInterface,
    TransactionStorageInterface,
)

logger = structlog.get_logger()


class ExclusionLedger:
    """Adds and removes (budget, transaction) exclusions."""

    def __init__(
        self,
        budgets: BudgetStorageInterface,
        transactions: TransactionStorageInterface,
        exclusions: ExclusionStorageInterface,
    ):
        self._budgets = budgets
        self._transactions = transactions
        self._exclusions = exclusions

    async def _owned_budget(self, owner_id: str, budget_id: UUID) -> Budget:
        budget = await self._budgets.get_budget(budget_id)
        # Another owner's budget is reported as missing
        if budget is None or budget.owner_id != owner_id:
            raise NotFoundError(
                "Budget not found",
                entity="budget",
                entity_id=budget_id,
            )
        return budget

    async def _eligible_transaction(
        self,
        owner_id: str,
        budget: Budget,
        transaction_id: UUID,
    ) -> Transaction:
        transaction = await self._transactions.get_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(
                "Transaction not found",
                entity="transaction",
                entity_id=transaction_id,
            )
        if transaction.owner_id != owner_id:
            raise ValidationError(
                "Transaction does not belong to this owner",
                field="transaction_id",
                constraint="owner_scope",
                details={"transaction_id": str(transaction_id)},
            )
        if not transaction.falls_within(budget.start_date, budget.end_date):
            raise ValidationError(
                "Transaction is outside the budget period",
                field="transaction_id",
                constraint="budget_window",
                details={
                    "transaction_id": str(transaction_id),
                    "budget_id": str(budget.id),
                    "transaction_date": transaction.booked_on.isoformat(),
                },
            )
        return transaction

    async def toggle_exclusion(
        self,
        owner_id: str,
        budget_id: UUID,
        transaction_id: UUID,
    ) -> ExclusionToggleResult:
        """
        Flip whether a transaction counts toward a budget.

        Returns:
            The new state; excluded=True means it no longer counts

        Raises:
            NotFoundError: Budget or transaction missing, or budget owned
                by someone else
            ValidationError: Transaction owned by someone else or outside
                the budget window
        """
        budget = await self._owned_budget(owner_id, budget_id)
        await self._eligible_transaction(owner_id, budget, transaction_id)

        if await self._exclusions.remove_exclusion(budget_id, transaction_id):
            excluded = False
        else:
            try:
                await self._exclusions.add_exclusion(
                    BudgetTransactionExclusion(
                        budget_id=budget_id,
                        transaction_id=transaction_id,
                    )
                )
                excluded = True
            except DuplicateError:
                # A concurrent toggle inserted it first; this one toggles back
                await self._exclusions.remove_exclusion(budget_id, transaction_id)
                excluded = False

        logger.info(
            "exclusion_toggled",
            owner_id=owner_id,
            budget_id=str(budget_id),
            transaction_id=str(transaction_id),
            excluded=excluded,
        )
        return ExclusionToggleResult(
            budget_id=budget_id,
            transaction_id=transaction_id,
            excluded=excluded,
        )
