"""
Audit Logger

Every budget, exclusion and import mutation is logged. This provides:
1. Complete traceability
2. Debugging capability
3. A history the owner can inspect

The audit logger:
- Always writes a structured local log line
- Persists to audit storage when one is injected
- Never lets an audit storage failure break the operation being audited
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from budgeter.models.audit import AuditEvent, AuditEventBuilder
from budgeter.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Set the minimum level for every budgeter logger.

    structlog filters through the stdlib logger level, so this is the one
    place a level is applied. A stream handler is attached once; the
    JSON renderer above already produces the full line.
    """
    package_logger = logging.getLogger("budgeter")
    package_logger.setLevel(level)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and owner visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("budgeter.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # The audited operation already happened; report, don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_budget_created(
        self,
        budget_id: UUID,
        owner_id: str,
        name: str,
        primary: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.budget_created(
            budget_id=budget_id,
            owner_id=owner_id,
            name=name,
            primary=primary,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_updated(
        self,
        budget_id: UUID,
        owner_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.budget_updated(
            budget_id=budget_id,
            owner_id=owner_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_budget_deleted(
        self,
        budget_id: UUID,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.budget_deleted(
            budget_id=budget_id,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_primary_overlap_rejected(
        self,
        owner_id: str,
        conflicting_budget_id: UUID,
        budget_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.primary_overlap_rejected(
            owner_id=owner_id,
            conflicting_budget_id=conflicting_budget_id,
            budget_id=budget_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_exclusion_toggled(
        self,
        budget_id: UUID,
        transaction_id: UUID,
        owner_id: str,
        excluded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.exclusion_toggled(
            budget_id=budget_id,
            transaction_id=transaction_id,
            owner_id=owner_id,
            excluded=excluded,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transactions_imported(
        self,
        owner_id: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transactions_imported(
            owner_id=owner_id,
            count=count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_categories_backfilled(
        self,
        owner_id: str,
        rewritten: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.categories_backfilled(
            owner_id=owner_id,
            rewritten=rewritten,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_tax_estimated(
        self,
        owner_id: Optional[str],
        total_income: str,
        total_tax_owed: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.tax_estimated(
            owner_id=owner_id,
            total_income=total_income,
            total_tax_owed=total_tax_owed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        operation: str,
        error_message: str,
        details: Optional[dict] = None,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.validation_failed(
            operation=operation,
            error_message=error_message,
            details=details,
            owner_id=owner_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new owner action (e.g., a bank import).
    Pass it through all subsequent operations.
    """
    return uuid4()
