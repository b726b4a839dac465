"""
Budgeter Engine

Ties the components together and defines the entry points a web layer
calls:
1. Budgets (create / update / delete / list / current primary / exclusions)
2. Tax estimation from tagged deposits
3. Dashboard summaries
4. Bank import and the category backfill migration

The engine enforces the boundaries:
- Configuration (bracket table, rates) is validated once, at construction
- Every request body is validated before it reaches a component
- Every mutation and estimate is audited
"""

from typing import Any, Optional
from uuid import UUID

import structlog

from budgeter.audit import AuditLogger, configure_logging
from budgeter.budgets.service import BudgetService
from budgeter.config import Settings, get_settings
from budgeter.exceptions import ConfigurationError, ValidationError
from budgeter.models.tax import TaxEstimate, TaxEstimateInput, TaxRates
from budgeter.reports import SummaryService
from budgeter.services.bank import (
    BankDataSource,
    ImportResult,
    TransactionImporter,
    backfill_categories,
)
from budgeter.services.storage import AuditStorageInterface, InMemoryStorage
from budgeter.tax import TaxEstimator, load_tax_brackets
from budgeter.validation import parse_input

logger = structlog.get_logger()


class BudgeterEngine:
    """
    Entry point for one storage backend.

    ``storage`` must implement the transaction, budget and exclusion
    storage interfaces (InMemoryStorage does).
    """

    def __init__(
        self,
        storage,
        tax_estimator: TaxEstimator,
        audit_logger: AuditLogger,
        settings: Settings,
        bank_source: Optional[BankDataSource] = None,
    ):
        quantum = settings.app.report_quantum
        self._storage = storage
        self._audit = audit_logger
        self._tax = tax_estimator
        self._quantum = quantum

        self.budgets = BudgetService(
            budgets=storage,
            transactions=storage,
            exclusions=storage,
            audit_logger=audit_logger,
            quantum=quantum,
        )
        self.summaries = SummaryService(storage, quantum=quantum)
        self._importer = None
        self._bank_enabled = settings.bank.enabled
        if bank_source is not None:
            self._importer = TransactionImporter(
                source=bank_source,
                storage=storage,
                audit_logger=audit_logger,
                max_attempts=settings.bank.max_fetch_attempts,
            )

    @property
    def tax_estimator(self) -> TaxEstimator:
        return self._tax

    async def estimate_taxes(
        self,
        owner_id: str,
        payload: Any,
        correlation_id: Optional[UUID] = None,
    ) -> TaxEstimate:
        """
        Estimate taxes from a TaxEstimateInput body.

        Returns the estimate rounded half-up for reporting.

        Raises:
            ValidationError: If the body is invalid (audited)
        """
        try:
            data = parse_input(TaxEstimateInput, payload)
        except ValidationError as e:
            await self._audit.log_validation_failed(
                operation="estimate_taxes",
                error_message=e.message,
                details=e.details,
                owner_id=owner_id,
                correlation_id=correlation_id,
            )
            raise
        estimate = self._tax.estimate_input(data, owner_id).rounded(self._quantum)
        await self._audit.log_tax_estimated(
            owner_id=owner_id,
            total_income=str(estimate.total_income),
            total_tax_owed=str(estimate.total_tax_owed),
            correlation_id=correlation_id,
        )
        return estimate

    async def import_transactions(
        self,
        owner_id: str,
        start,
        end,
        correlation_id: Optional[UUID] = None,
    ) -> ImportResult:
        """
        Raises:
            ConfigurationError: If the engine was built without a bank
                                source, or BANK_ENABLED is off
        """
        if self._importer is None:
            raise ConfigurationError(
                "Bank import is not configured",
                setting="bank_source",
            )
        if not self._bank_enabled:
            raise ConfigurationError(
                "Bank import is disabled",
                setting="bank.enabled",
            )
        return await self._importer.import_transactions(
            owner_id, start, end, correlation_id
        )

    async def backfill_categories(
        self,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        return await backfill_categories(
            self._storage, owner_id, self._audit, correlation_id
        )


def create_engine(
    storage=None,
    audit_storage: Optional[AuditStorageInterface] = None,
    bank_source: Optional[BankDataSource] = None,
    settings: Optional[Settings] = None,
) -> BudgeterEngine:
    """
    Factory function to create a fully wired engine.

    Args:
        storage: Transaction/budget/exclusion store. Defaults to a fresh
                 InMemoryStorage.
        audit_storage: Where audit events persist. If None, audit events
                       are only logged locally.
        bank_source: Bank provider for imports. If None, imports raise
                     ConfigurationError.
        settings: Defaults to get_settings()

    Raises:
        ConfigurationError: If the bracket table or rates are unusable
    """
    settings = settings or get_settings()
    tax_settings = settings.tax
    app_settings = settings.app
    configure_logging(app_settings.effective_log_level)

    brackets = load_tax_brackets(tax_settings)
    rates = TaxRates.from_settings(tax_settings)

    engine = BudgeterEngine(
        storage=storage if storage is not None else InMemoryStorage(),
        tax_estimator=TaxEstimator(brackets, rates),
        audit_logger=AuditLogger(audit_storage),
        settings=settings,
        bank_source=bank_source,
    )
    logger.info(
        "engine_created",
        environment=app_settings.app_environment,
        tax_year=tax_settings.tax_year,
        bank_import=bank_source is not None and settings.bank.enabled,
        audit_storage=audit_storage is not None,
    )
    return engine
