"""
Budget Period Validator

For one owner, no two primary budgets may have overlapping windows.
Bounds are inclusive: a budget ending on the 31st and one starting on the
31st overlap by one day.

Only primary candidates are checked. There is no restriction between two
non-primary budgets, or between a primary and a non-primary one.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from budgeter.models.finance import Budget
from budgeter.services.storage import BudgetStorageInterface

logger = structlog.get_logger()


def periods_overlap(
    a_start: date,
    a_end: date,
    b_start: date,
    b_end: date,
) -> bool:
    """Inclusive-bound interval intersection test."""
    return a_start <= b_end and a_end >= b_start


class BudgetPeriodValidator:
    """Checks a candidate window against the owner's stored primary budgets."""

    def __init__(self, storage: BudgetStorageInterface):
        self._storage = storage

    async def find_overlapping_primary(
        self,
        owner_id: str,
        candidate_start: date,
        candidate_end: date,
        exclude_budget_id: Optional[UUID] = None,
    ) -> Optional[Budget]:
        """First stored primary budget whose window meets the candidate's."""
        existing = await self._storage.list_budgets(
            owner_id,
            primary=True,
            exclude_budget_id=exclude_budget_id,
        )
        for budget in existing:
            if periods_overlap(
                budget.start_date, budget.end_date, candidate_start, candidate_end
            ):
                logger.info(
                    "primary_overlap_detected",
                    owner_id=owner_id,
                    conflicting_budget_id=str(budget.id),
                    candidate_start=candidate_start.isoformat(),
                    candidate_end=candidate_end.isoformat(),
                )
                return budget
        return None

    async def has_overlapping_primary(
        self,
        owner_id: str,
        candidate_start: date,
        candidate_end: date,
        exclude_budget_id: Optional[UUID] = None,
    ) -> bool:
        """
        Does [candidate_start, candidate_end] intersect any primary budget?

        Args:
            owner_id: Owner scope
            candidate_start: Candidate window start (inclusive)
            candidate_end: Candidate window end (inclusive)
            exclude_budget_id: Budget being edited, left out of the check
        """
        conflict = await self.find_overlapping_primary(
            owner_id, candidate_start, candidate_end, exclude_budget_id
        )
        return conflict is not None
