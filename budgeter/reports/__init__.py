"""Dashboard summaries package."""

from budgeter.reports.summaries import (
    MonthlyReport,
    SummaryService,
    monthly_totals,
    months_back,
    spending_by_category,
)

__all__ = [
    "MonthlyReport",
    "SummaryService",
    "monthly_totals",
    "months_back",
    "spending_by_category",
]
