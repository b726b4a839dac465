"""Bank import services package."""

from budgeter.services.bank.importer import (
    ImportResult,
    TransactionImporter,
    bank_transaction_id,
    is_probable_duplicate,
    to_transaction,
)
from budgeter.services.bank.migration import backfill_categories
from budgeter.services.bank.source import (
    BankConnectionError,
    BankDataSource,
    BankError,
    BankTransaction,
)

__all__ = [
    "BankConnectionError",
    "BankDataSource",
    "BankError",
    "BankTransaction",
    "ImportResult",
    "TransactionImporter",
    "backfill_categories",
    "bank_transaction_id",
    "is_probable_duplicate",
    "to_transaction",
]
