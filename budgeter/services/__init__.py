"""
Services package.

Only storage is re-exported here. Bank import lives in
budgeter.services.bank, which depends on budgeter.audit, which depends on
storage.
"""

from budgeter.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    ExclusionStorageInterface,
    InMemoryAuditStorage,
    InMemoryStorage,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "BudgetStorageInterface",
    "DuplicateError",
    "ExclusionStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryStorage",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
]
