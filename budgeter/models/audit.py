"""
Audit Models for Budgeter

Every mutation of budgets, exclusions or imported transactions is
recorded as an AuditEvent. This provides:
1. Traceability of who changed which budget and when
2. Debugging information when a spend figure looks wrong
3. Ability to reconstruct the exclusion history of a budget

Audit logs are append-only.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from budgeter.models.finance import utcnow


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Budgets
    BUDGET_CREATED = "budget_created"
    BUDGET_UPDATED = "budget_updated"
    BUDGET_DELETED = "budget_deleted"
    PRIMARY_OVERLAP_REJECTED = "primary_overlap_rejected"

    # Exclusions
    TRANSACTION_EXCLUDED = "transaction_excluded"
    TRANSACTION_INCLUDED = "transaction_included"

    # Ingestion
    TRANSACTIONS_IMPORTED = "transactions_imported"
    CATEGORIES_BACKFILLED = "categories_backfilled"

    # Tax
    TAX_ESTIMATED = "tax_estimated"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who and what is this about?
    owner_id: Optional[str] = Field(
        default=None,
        description="Owner whose data changed"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'budget', 'transaction')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one import run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner_id": self.owner_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.budget_created(budget_id, owner_id, name, primary)
        event = AuditEventBuilder.exclusion_toggled(budget_id, txn_id, owner_id, True)
    """

    @staticmethod
    def budget_created(
        budget_id: UUID,
        owner_id: str,
        name: str,
        primary: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget created: {name}",
            details={
                "name": name,
                "primary": primary,
            },
        )

    @staticmethod
    def budget_updated(
        budget_id: UUID,
        owner_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_UPDATED,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Budget updated: {', '.join(changed_fields) or 'no changes'}",
            details={
                "changed_fields": changed_fields,
            },
        )

    @staticmethod
    def budget_deleted(
        budget_id: UUID,
        owner_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BUDGET_DELETED,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description="Budget deleted",
        )

    @staticmethod
    def primary_overlap_rejected(
        owner_id: str,
        conflicting_budget_id: UUID,
        budget_id: Optional[UUID] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PRIMARY_OVERLAP_REJECTED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description="Primary budget rejected: overlaps another primary budget",
            details={
                "conflicting_budget_id": str(conflicting_budget_id),
            },
        )

    @staticmethod
    def exclusion_toggled(
        budget_id: UUID,
        transaction_id: UUID,
        owner_id: str,
        excluded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.TRANSACTION_EXCLUDED
            if excluded
            else AuditEventType.TRANSACTION_INCLUDED
        )
        verb = "excluded from" if excluded else "included in"
        return AuditEvent(
            event_type=event_type,
            owner_id=owner_id,
            entity_type="budget",
            entity_id=budget_id,
            correlation_id=correlation_id,
            description=f"Transaction {verb} budget spend",
            details={
                "transaction_id": str(transaction_id),
                "excluded": excluded,
            },
        )

    @staticmethod
    def transactions_imported(
        owner_id: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_IMPORTED,
            owner_id=owner_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Imported {count} transactions",
            details={
                "count": count,
            },
        )

    @staticmethod
    def categories_backfilled(
        owner_id: str,
        rewritten: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIES_BACKFILLED,
            owner_id=owner_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Backfilled categories on {rewritten} transactions",
            details={
                "rewritten": rewritten,
            },
        )

    @staticmethod
    def tax_estimated(
        owner_id: Optional[str],
        total_income: str,
        total_tax_owed: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_ESTIMATED,
            owner_id=owner_id,
            entity_type="tax_estimate",
            correlation_id=correlation_id,
            description=f"Tax estimated: {total_tax_owed} owed on {total_income}",
            details={
                "total_income": total_income,
                "total_tax_owed": total_tax_owed,
            },
        )

    @staticmethod
    def validation_failed(
        operation: str,
        error_message: str,
        details: Optional[dict] = None,
        owner_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            owner_id=owner_id,
            correlation_id=correlation_id,
            description=f"Validation failed: {operation}",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
