"""Custom exceptions for the Budgeter engine.

All exceptions inherit from BudgeterError so callers can catch every
engine error in one place. Each carries a ``details`` dict with enough
context (which budget, which transaction, which constraint) for the caller
to build a user-facing message.

Example:
    try:
        await service.create_budget(owner_id, payload)
    except ValidationError as e:
        return {"error": e.message, "details": e.details}, 400
    except NotFoundError as e:
        return {"error": e.message}, 404
"""

from typing import Any, Optional


class BudgeterError(Exception):
    """Base exception for all Budgeter errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BudgeterError):
    """Error raised when caller-supplied data breaks a rule.

    Covers malformed date ranges, negative budgeted amounts, overlapping
    primary budgets and exclusion toggles outside the budget's owner or
    date window.

    Example:
        >>> raise ValidationError(
        ...     "Another primary budget overlaps this period.",
        ...     field="start_date",
        ...     constraint="primary_overlap",
        ...     details={"conflicting_budget_id": "..."},
        ... )
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        constraint: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.field = field
        self.constraint = constraint

        if field:
            self.details["field"] = field
        if constraint:
            self.details["constraint"] = constraint


class ConfigurationError(BudgeterError):
    """Error raised when static configuration is unusable.

    Bracket tables with gaps, overlaps or out-of-range rates end up here.
    These are raised while loading configuration at startup, never while
    serving a request.
    """

    def __init__(
        self,
        message: str,
        *,
        setting: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.setting = setting

        if setting:
            self.details["setting"] = setting


class NotFoundError(BudgeterError):
    """A referenced budget or transaction does not exist for the owner."""

    def __init__(
        self,
        message: str,
        *,
        entity: Optional[str] = None,
        entity_id: Optional[Any] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.entity = entity
        self.entity_id = entity_id

        if entity:
            self.details["entity"] = entity
        if entity_id is not None:
            self.details["entity_id"] = str(entity_id)
