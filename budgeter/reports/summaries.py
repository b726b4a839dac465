"""
Dashboard Summaries

Deterministic aggregations over stored transactions for the overview
dashboard:
1. Spending per category since the start of the month
2. Monthly income and spending over the last few months

Sums are exact; values are rounded half-up only in the returned result.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

import structlog
from pydantic import BaseModel, Field

from budgeter.budgets.spend import CENT, report_amount
from budgeter.catalog import DEFAULT_CATEGORY
from budgeter.models.finance import Transaction, TransactionType
from budgeter.services.storage import TransactionStorageInterface

logger = structlog.get_logger()

MONTHLY_REPORT_MONTHS = 8


class MonthlyReport(BaseModel):
    """Income and spending per YYYY-MM, oldest month first."""

    since: date
    income: dict[str, Decimal] = Field(default_factory=dict)
    spending: dict[str, Decimal] = Field(default_factory=dict)

    @property
    def net(self) -> dict[str, Decimal]:
        months = sorted(set(self.income) | set(self.spending))
        return {
            m: self.income.get(m, Decimal("0")) - self.spending.get(m, Decimal("0"))
            for m in months
        }


def month_start(day: date) -> date:
    return day.replace(day=1)


def months_back(day: date, months: int) -> date:
    """First day of the month ``months`` before ``day``'s month."""
    index = day.year * 12 + (day.month - 1) - months
    return date(index // 12, index % 12 + 1, 1)


def month_key(transaction: Transaction) -> str:
    return transaction.booked_on.strftime("%Y-%m")


def _owned_since(
    transactions: Iterable[Transaction],
    owner_id: str,
    since: date,
) -> list[Transaction]:
    return [
        t for t in transactions
        if t.owner_id == owner_id and t.booked_on >= since
    ]


def spending_by_category(
    transactions: Iterable[Transaction],
    owner_id: str,
    since: date,
    quantum: Decimal = CENT,
) -> dict[str, Decimal]:
    """Withdrawals on or after ``since`` summed per category, largest first."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for t in _owned_since(transactions, owner_id, since):
        if t.type != TransactionType.WITHDRAWAL:
            continue
        totals[t.category or DEFAULT_CATEGORY] += t.amount

    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return {category: report_amount(total, quantum) for category, total in ranked}


def monthly_totals(
    transactions: Iterable[Transaction],
    owner_id: str,
    since: date,
    quantum: Decimal = CENT,
) -> MonthlyReport:
    """Deposits and withdrawals on or after ``since`` summed per month."""
    income: dict[str, Decimal] = defaultdict(Decimal)
    spending: dict[str, Decimal] = defaultdict(Decimal)

    for t in _owned_since(transactions, owner_id, since):
        bucket = income if t.type == TransactionType.DEPOSIT else spending
        bucket[month_key(t)] += t.amount

    return MonthlyReport(
        since=since,
        income={m: report_amount(income[m], quantum) for m in sorted(income)},
        spending={m: report_amount(spending[m], quantum) for m in sorted(spending)},
    )


class SummaryService:
    """
    Runs dashboard summaries against transaction storage.

    Only returns aggregates of stored data; an owner with no transactions
    gets empty results, never estimates.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        quantum: Decimal = CENT,
    ):
        self._storage = storage
        self._quantum = quantum

    async def spending_by_category(
        self,
        owner_id: str,
        today: Optional[date] = None,
    ) -> dict[str, Decimal]:
        """Current month's spending per category."""
        since = month_start(today or date.today())
        transactions = await self._storage.list_transactions(
            owner_id, type=TransactionType.WITHDRAWAL, date_from=since
        )
        result = spending_by_category(transactions, owner_id, since, self._quantum)
        logger.info(
            "summary_spending_by_category",
            owner_id=owner_id,
            since=since.isoformat(),
            categories=len(result),
        )
        return result

    async def monthly_report(
        self,
        owner_id: str,
        today: Optional[date] = None,
        months: int = MONTHLY_REPORT_MONTHS,
    ) -> MonthlyReport:
        """Income and spending per month, starting ``months`` months back."""
        since = months_back(today or date.today(), months)
        transactions = await self._storage.list_transactions(owner_id, date_from=since)
        report = monthly_totals(transactions, owner_id, since, self._quantum)
        logger.info(
            "summary_monthly_report",
            owner_id=owner_id,
            since=since.isoformat(),
            months=len(set(report.income) | set(report.spending)),
        )
        return report
