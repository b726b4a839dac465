"""
Category Backfill Migration

Older transactions carry free-text categories ("Dining & Restaurants",
"FOOD_AND_DRINK_COFFEE", "Other"). Spend matching is by exact category id,
so those rows silently never count toward a budget.

backfill_categories rewrites them to catalog ids, unknown values to
miscellaneous. It is explicit and idempotent: run it once per owner after
upgrading; a second run rewrites nothing.
"""

from typing import Optional
from uuid import UUID

import structlog

from budgeter.audit import AuditLogger
from budgeter.catalog import resolve_legacy_category
from budgeter.services.storage import TransactionStorageInterface

logger = structlog.get_logger()


async def backfill_categories(
    storage: TransactionStorageInterface,
    owner_id: str,
    audit_logger: Optional[AuditLogger] = None,
    correlation_id: Optional[UUID] = None,
) -> int:
    """
    Rewrite an owner's legacy categories to canonical ids.

    Returns:
        Number of transactions rewritten
    """
    rewritten = 0
    for transaction in await storage.list_transactions(owner_id):
        canonical = resolve_legacy_category(transaction.category)
        if canonical == transaction.category:
            continue
        await storage.update_transaction(
            transaction.model_copy(update={"category": canonical})
        )
        logger.debug(
            "category_backfilled",
            transaction_id=str(transaction.id),
            old_category=transaction.category,
            new_category=canonical,
        )
        rewritten += 1

    logger.info("categories_backfilled", owner_id=owner_id, rewritten=rewritten)
    if audit_logger is not None:
        await audit_logger.log_categories_backfilled(
            owner_id=owner_id,
            rewritten=rewritten,
            correlation_id=correlation_id,
        )
    return rewritten
