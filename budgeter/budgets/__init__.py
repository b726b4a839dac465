"""
Budget building blocks.

BudgetService lives in budgeter.budgets.service; it is not re-exported here
because it depends on budgeter.validation, which depends on this package.
"""

from budgeter.budgets.exclusions import ExclusionLedger
from budgeter.budgets.periods import BudgetPeriodValidator, periods_overlap
from budgeter.budgets.spend import (
    build_spend_report,
    category_transactions,
    compute_budgets_spend,
    compute_category_spend,
    excluded_ids_for,
    report_amount,
)

__all__ = [
    "BudgetPeriodValidator",
    "ExclusionLedger",
    "build_spend_report",
    "category_transactions",
    "compute_budgets_spend",
    "compute_category_spend",
    "excluded_ids_for",
    "periods_overlap",
    "report_amount",
]
