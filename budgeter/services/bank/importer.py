"""
Bank Transaction Importer

Pulls transactions from an injected BankDataSource and stores them:
1. Fetch, retrying transient connection failures with exponential backoff
2. Reject malformed records (no amount, no date) before storing anything
3. Map sign to type: positive = withdrawal, negative = deposit
4. Map the provider category code to a catalog id
5. Skip records that look like transactions the owner already has

Re-importing the same window is safe: bank records get a deterministic id
per (owner, provider transaction id), and near-identical transactions
already in the store are skipped.
"""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import NAMESPACE_URL, UUID, uuid5

import structlog
from pydantic import BaseModel, Field
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budgeter.audit import AuditLogger
from budgeter.catalog import category_from_bank
from budgeter.exceptions import ValidationError
from budgeter.models.finance import Transaction, TransactionType
from budgeter.services.bank.source import (
    BankConnectionError,
    BankDataSource,
    BankTransaction,
)
from budgeter.services.storage import StorageError, TransactionStorageInterface

logger = structlog.get_logger()

CENT = Decimal("0.01")
DUPLICATE_WINDOW = timedelta(days=1)
DUPLICATE_PREFIX_LENGTH = 8


class ImportResult(BaseModel):
    """Outcome of one import run."""

    fetched: int = Field(..., ge=0)
    imported: list[Transaction] = Field(default_factory=list)
    skipped_duplicates: int = Field(default=0, ge=0)

    @property
    def imported_count(self) -> int:
        return len(self.imported)


def bank_transaction_id(owner_id: str, provider_transaction_id: str) -> UUID:
    """Stable transaction id for a provider record."""
    return uuid5(NAMESPACE_URL, f"bank/{owner_id}/{provider_transaction_id}")


def to_transaction(owner_id: str, record: BankTransaction) -> Transaction:
    """
    Convert a provider record to a Transaction.

    Raises:
        ValidationError: If the record has no amount or no date
    """
    missing = [
        name for name, value in (("amount", record.amount), ("date", record.booked_on))
        if value is None
    ]
    if missing:
        raise ValidationError(
            f"Bank transaction {record.transaction_id} is missing {', '.join(missing)}",
            field=missing[0],
            constraint="required",
            details={"provider_transaction_id": record.transaction_id},
        )

    return Transaction(
        id=bank_transaction_id(owner_id, record.transaction_id),
        owner_id=owner_id,
        type=(
            TransactionType.WITHDRAWAL if record.amount > 0
            else TransactionType.DEPOSIT
        ),
        amount=abs(record.amount).quantize(CENT, rounding=ROUND_HALF_UP),
        category=category_from_bank(record.category),
        description=record.name,
        date=record.booked_on,
    )


def is_probable_duplicate(candidate: Transaction, existing: Transaction) -> bool:
    """
    Same id, or same type and amount within a day of each other with a
    description that starts the same way.

    A candidate without a description only matches by id; there is no
    prefix to compare.
    """
    if candidate.id == existing.id:
        return True
    if candidate.type != existing.type:
        return False
    if abs(candidate.booked_on - existing.booked_on) > DUPLICATE_WINDOW:
        return False
    if abs(candidate.amount - existing.amount) >= CENT:
        return False
    prefix = candidate.description.lower()[:DUPLICATE_PREFIX_LENGTH]
    if not prefix:
        return False
    return prefix in existing.description.lower()


class TransactionImporter:
    """
    Imports bank transactions for one owner at a time.

    Only BankConnectionError is retried. Malformed data is a
    ValidationError and fails the whole import without storing anything.
    """

    def __init__(
        self,
        source: BankDataSource,
        storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        max_attempts: int = 3,
        wait=None,
    ):
        self._source = source
        self._storage = storage
        self._audit = audit_logger or AuditLogger()
        self._max_attempts = max_attempts
        self._wait = wait or wait_exponential(multiplier=1, min=2, max=10)

    async def fetch(self, owner_id: str, start: date, end: date) -> list[BankTransaction]:
        """Fetch from the source, retrying connection failures."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(BankConnectionError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "bank_fetch_retry",
                        owner_id=owner_id,
                        attempt=attempt.retry_state.attempt_number,
                    )
                return await self._source.fetch_transactions(owner_id, start, end)

    async def import_transactions(
        self,
        owner_id: str,
        start: date,
        end: date,
        correlation_id: Optional[UUID] = None,
    ) -> ImportResult:
        """
        Fetch, convert and store an owner's transactions for [start, end].

        Raises:
            ValidationError: Inverted window or malformed bank record
            BankConnectionError: Provider still unreachable after retries
            StorageError: The store rejected the batch (audited, then re-raised)
        """
        if end < start:
            raise ValidationError(
                "End date cannot be before start date",
                field="end",
                constraint="date_order",
            )

        try:
            records = await self.fetch(owner_id, start, end)
        except BankConnectionError as e:
            await self._audit.log_external_service_error(
                service="bank",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        # Convert everything first so one bad record stores nothing
        candidates = [to_transaction(owner_id, record) for record in records]

        existing = await self._storage.list_transactions(
            owner_id,
            date_from=start - DUPLICATE_WINDOW,
            date_to=end + DUPLICATE_WINDOW,
        )

        new: list[Transaction] = []
        seen_ids: set[UUID] = set()
        skipped = 0
        for candidate in candidates:
            if candidate.id in seen_ids or any(
                is_probable_duplicate(candidate, e) for e in existing
            ):
                skipped += 1
                continue
            seen_ids.add(candidate.id)
            new.append(candidate)

        if new:
            try:
                await self._storage.save_transactions(new)
            except StorageError as e:
                await self._audit.log_error(
                    error_type=type(e).__name__,
                    error_message=e.message,
                    details=e.details,
                    correlation_id=correlation_id,
                )
                raise

        logger.info(
            "transactions_imported",
            owner_id=owner_id,
            fetched=len(records),
            imported=len(new),
            skipped_duplicates=skipped,
        )
        await self._audit.log_transactions_imported(
            owner_id=owner_id,
            count=len(new),
            correlation_id=correlation_id,
        )
        return ImportResult(
            fetched=len(records),
            imported=new,
            skipped_duplicates=skipped,
        )
