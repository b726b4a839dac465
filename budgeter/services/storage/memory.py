"""
In-Memory Storage Implementation

Reference implementation of the storage interfaces. Used by tests and by
single-process deployments that load their data up front.

Writes are serialized with an asyncio.Lock. Budgets are handed out as deep
copies, so a caller mutating a returned budget never changes the store.
"""

import asyncio
from datetime import date
from typing import Optional
from uuid import UUID

from budgeter.exceptions import NotFoundError
from budgeter.models.audit import AuditEvent
from budgeter.models.finance import (
    Budget,
    BudgetTransactionExclusion,
    Transaction,
    TransactionType,
)
from budgeter.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    ExclusionStorageInterface,
    TransactionStorageInterface,
)


class InMemoryStorage(
    TransactionStorageInterface,
    BudgetStorageInterface,
    ExclusionStorageInterface,
):
    """Transactions, budgets and exclusions held in dicts."""

    def __init__(self):
        self._transactions: dict[UUID, Transaction] = {}
        self._budgets: dict[UUID, Budget] = {}
        # Insertion-ordered set of (budget_id, transaction_id)
        self._exclusions: dict[tuple[UUID, UUID], BudgetTransactionExclusion] = {}
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    async def save_transactions(self, transactions: list[Transaction]) -> int:
        async with self._lock:
            for transaction in transactions:
                if transaction.id in self._transactions:
                    raise DuplicateError(
                        f"Transaction {transaction.id} already exists",
                        details={"transaction_id": str(transaction.id)},
                    )
            for transaction in transactions:
                self._transactions[transaction.id] = transaction
            return len(transactions)

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def update_transaction(self, transaction: Transaction) -> bool:
        async with self._lock:
            if transaction.id not in self._transactions:
                raise NotFoundError(
                    "Transaction not found",
                    entity="transaction",
                    entity_id=transaction.id,
                )
            self._transactions[transaction.id] = transaction
            return True

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        async with self._lock:
            if self._transactions.pop(transaction_id, None) is None:
                return False
            for key in [k for k in self._exclusions if k[1] == transaction_id]:
                del self._exclusions[key]
            return True

    async def list_transactions(
        self,
        owner_id: str,
        type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        results = []
        for transaction in self._transactions.values():
            if transaction.owner_id != owner_id:
                continue
            if type and transaction.type != type:
                continue
            if category and transaction.category != category:
                continue
            if date_from and transaction.booked_on < date_from:
                continue
            if date_to and transaction.booked_on > date_to:
                continue
            results.append(transaction)

        results.sort(key=lambda t: t.date, reverse=True)
        return results

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def save_budget(self, budget: Budget) -> bool:
        async with self._lock:
            if budget.id in self._budgets:
                raise DuplicateError(
                    f"Budget {budget.id} already exists",
                    details={"budget_id": str(budget.id)},
                )
            self._budgets[budget.id] = budget.model_copy(deep=True)
            return True

    async def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        budget = self._budgets.get(budget_id)
        return budget.model_copy(deep=True) if budget else None

    async def update_budget(self, budget: Budget) -> bool:
        async with self._lock:
            if budget.id not in self._budgets:
                raise NotFoundError(
                    "Budget not found",
                    entity="budget",
                    entity_id=budget.id,
                )
            # Single assignment: allocations are swapped with the budget
            self._budgets[budget.id] = budget.model_copy(deep=True)
            return True

    async def delete_budget(self, budget_id: UUID) -> bool:
        async with self._lock:
            if self._budgets.pop(budget_id, None) is None:
                return False
            for key in [k for k in self._exclusions if k[0] == budget_id]:
                del self._exclusions[key]
            return True

    async def list_budgets(
        self,
        owner_id: str,
        primary: Optional[bool] = None,
        exclude_budget_id: Optional[UUID] = None,
    ) -> list[Budget]:
        results = [
            budget.model_copy(deep=True)
            for budget in self._budgets.values()
            if budget.owner_id == owner_id
            and (primary is None or budget.primary == primary)
            and budget.id != exclude_budget_id
        ]
        results.sort(key=lambda b: b.created_at, reverse=True)
        return results

    # -------------------------------------------------------------------------
    # Exclusions
    # -------------------------------------------------------------------------

    async def add_exclusion(self, exclusion: BudgetTransactionExclusion) -> bool:
        key = (exclusion.budget_id, exclusion.transaction_id)
        async with self._lock:
            if key in self._exclusions:
                raise DuplicateError(
                    "Exclusion already exists",
                    details={
                        "budget_id": str(exclusion.budget_id),
                        "transaction_id": str(exclusion.transaction_id),
                    },
                )
            self._exclusions[key] = exclusion
            return True

    async def remove_exclusion(self, budget_id: UUID, transaction_id: UUID) -> bool:
        async with self._lock:
            return self._exclusions.pop((budget_id, transaction_id), None) is not None

    async def exclusion_exists(self, budget_id: UUID, transaction_id: UUID) -> bool:
        return (budget_id, transaction_id) in self._exclusions

    async def list_exclusions(self, budget_id: UUID) -> list[BudgetTransactionExclusion]:
        return [e for (b, _), e in self._exclusions.items() if b == budget_id]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
