"""
Abstract Storage Interface

The engine never talks to a database directly. Storage is an injected
collaborator behind these interfaces, which lets us:
1. Run the engine against any ORM or document store
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally small - only the queries the engine needs.

Implementations must provide two guarantees:
- add_exclusion enforces uniqueness of (budget_id, transaction_id) by
  raising DuplicateError
- update_budget replaces the budget and its allocations as one unit, so a
  reader never sees a partial allocation set
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from budgeter.exceptions import BudgeterError
from budgeter.models.audit import AuditEvent
from budgeter.models.finance import (
    Budget,
    BudgetTransactionExclusion,
    Transaction,
    TransactionType,
)


class TransactionStorageInterface(ABC):
    """Transaction records, scoped by owner."""

    @abstractmethod
    async def save_transactions(self, transactions: list[Transaction]) -> int:
        """
        Save new transactions.

        Returns:
            Number of transactions saved

        Raises:
            DuplicateError: If a transaction id already exists
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by id, None if missing."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace a stored transaction with a new version.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction and every exclusion that references it.

        Returns:
            True if something was deleted
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        owner_id: str,
        type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[Transaction]:
        """
        List an owner's transactions with optional filters.

        Args:
            owner_id: Owner scope
            type: Filter by withdrawal/deposit
            category: Filter by exact category id
            date_from: Transactions on or after this day
            date_to: Transactions on or before this day

        Returns:
            Matching transactions, newest first
        """
        pass


class BudgetStorageInterface(ABC):
    """Budgets with their category allocations."""

    @abstractmethod
    async def save_budget(self, budget: Budget) -> bool:
        """
        Save a new budget together with its allocations.

        Raises:
            DuplicateError: If the budget id already exists
        """
        pass

    @abstractmethod
    async def get_budget(self, budget_id: UUID) -> Optional[Budget]:
        pass

    @abstractmethod
    async def update_budget(self, budget: Budget) -> bool:
        """
        Replace a budget and its allocations atomically.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID) -> bool:
        """Delete a budget, its allocations and its exclusions."""
        pass

    @abstractmethod
    async def list_budgets(
        self,
        owner_id: str,
        primary: Optional[bool] = None,
        exclude_budget_id: Optional[UUID] = None,
    ) -> list[Budget]:
        """
        List an owner's budgets.

        Args:
            owner_id: Owner scope
            primary: If set, only budgets with this primary flag
            exclude_budget_id: Budget to leave out (the one being edited)

        Returns:
            Budgets, most recently created first
        """
        pass


class ExclusionStorageInterface(ABC):
    """Per-budget transaction exclusions."""

    @abstractmethod
    async def add_exclusion(self, exclusion: BudgetTransactionExclusion) -> bool:
        """
        Record an exclusion.

        Raises:
            DuplicateError: If the (budget_id, transaction_id) pair exists
        """
        pass

    @abstractmethod
    async def remove_exclusion(self, budget_id: UUID, transaction_id: UUID) -> bool:
        """
        Remove an exclusion.

        Returns:
            True if a row was removed, False if none existed
        """
        pass

    @abstractmethod
    async def exclusion_exists(self, budget_id: UUID, transaction_id: UUID) -> bool:
        pass

    @abstractmethod
    async def list_exclusions(self, budget_id: UUID) -> list[BudgetTransactionExclusion]:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Related events in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Events for one entity in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(BudgeterError):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
