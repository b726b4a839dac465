"""
Storage Services Package

Provides abstract interfaces for data storage and an in-memory
implementation. Any ORM-backed store can be swapped in.
"""

from budgeter.exceptions import NotFoundError
from budgeter.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    ExclusionStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from budgeter.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "ExclusionStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryStorage",
]
