"""
Data Models Package

This package contains all Pydantic models used by the Budgeter engine.
All data flowing through the engine must conform to these schemas.
"""

from budgeter.models.finance import (
    Budget,
    BudgetCategoryAllocation,
    BudgetCreateInput,
    BudgetSpendReport,
    BudgetTransactionExclusion,
    BudgetUpdateInput,
    CategorySpend,
    CategoryTransaction,
    ExclusionToggleInput,
    ExclusionToggleResult,
    TaxCategory,
    Transaction,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)
from budgeter.models.tax import (
    PayrollWithholding,
    SelfEmploymentTax,
    TaxBracket,
    TaxEstimate,
    TaxEstimateInput,
    TaxRates,
)
from budgeter.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "Budget",
    "BudgetCategoryAllocation",
    "BudgetCreateInput",
    "BudgetSpendReport",
    "BudgetTransactionExclusion",
    "BudgetUpdateInput",
    "CategorySpend",
    "CategoryTransaction",
    "ExclusionToggleInput",
    "ExclusionToggleResult",
    "TaxCategory",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    # Tax models
    "PayrollWithholding",
    "SelfEmploymentTax",
    "TaxBracket",
    "TaxEstimate",
    "TaxEstimateInput",
    "TaxRates",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
