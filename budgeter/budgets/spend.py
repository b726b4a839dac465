"""
Spend Aggregator

Computes budgeted vs spent per category for a budget.

A transaction counts toward a budget category when it:
- belongs to the budget's owner
- is a withdrawal
- carries exactly that category id
- falls on a day inside [start_date, end_date]
- is not excluded for *this* budget

Sums are accumulated at full precision and rounded half-up only when the
CategorySpend is built. Exclusions are always matched on the
(budget_id, transaction_id) pair, so a batch over many budgets never
leaks one budget's exclusions into another.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence
from uuid import UUID

from budgeter.models.finance import (
    Budget,
    BudgetSpendReport,
    BudgetTransactionExclusion,
    CategorySpend,
    CategoryTransaction,
    Transaction,
    TransactionType,
)

CENT = Decimal("0.01")


def report_amount(value: Decimal, quantum: Decimal = CENT) -> Decimal:
    """Round half-up for external reporting."""
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def excluded_ids_for(
    budget_id: UUID,
    exclusions: Iterable[BudgetTransactionExclusion],
) -> set[UUID]:
    """Transaction ids excluded from one budget."""
    return {e.transaction_id for e in exclusions if e.budget_id == budget_id}


def _matches_window(budget: Budget, transaction: Transaction) -> bool:
    return (
        transaction.owner_id == budget.owner_id
        and transaction.type == TransactionType.WITHDRAWAL
        and transaction.falls_within(budget.start_date, budget.end_date)
    )


def compute_category_spend(
    budget: Budget,
    transactions: Iterable[Transaction],
    exclusions: Iterable[BudgetTransactionExclusion],
    quantum: Decimal = CENT,
) -> dict[str, CategorySpend]:
    """
    Budgeted and spent amounts keyed by category id.

    Every allocation appears in the result, with spent=0 when nothing
    matched. Transactions in categories the budget doesn't allocate are
    ignored.
    """
    excluded = excluded_ids_for(budget.id, exclusions)
    totals: dict[str, Decimal] = {
        allocation.category_id: Decimal("0") for allocation in budget.allocations
    }

    for transaction in transactions:
        if transaction.category not in totals:
            continue
        if transaction.id in excluded:
            continue
        if not _matches_window(budget, transaction):
            continue
        totals[transaction.category] += transaction.amount

    return {
        allocation.category_id: CategorySpend(
            budgeted=report_amount(allocation.budgeted_amount, quantum),
            spent=report_amount(totals[allocation.category_id], quantum),
        )
        for allocation in budget.allocations
    }


def build_spend_report(
    budget: Budget,
    transactions: Iterable[Transaction],
    exclusions: Iterable[BudgetTransactionExclusion],
    quantum: Decimal = CENT,
) -> BudgetSpendReport:
    return BudgetSpendReport(
        id=budget.id,
        name=budget.name,
        start_date=budget.start_date,
        end_date=budget.end_date,
        primary=budget.primary,
        categories=compute_category_spend(budget, transactions, exclusions, quantum),
    )


def compute_budgets_spend(
    budgets: Sequence[Budget],
    transactions: Sequence[Transaction],
    exclusions: Sequence[BudgetTransactionExclusion],
    quantum: Decimal = CENT,
) -> list[BudgetSpendReport]:
    """Spend reports for a batch of budgets, in the order given."""
    return [
        build_spend_report(budget, transactions, exclusions, quantum)
        for budget in budgets
    ]


def category_transactions(
    budget: Budget,
    category_id: str,
    transactions: Iterable[Transaction],
    exclusions: Iterable[BudgetTransactionExclusion],
) -> list[CategoryTransaction]:
    """
    Withdrawals a budget category would count, newest first.

    Excluded transactions are listed too, flagged ``excluded=True``, so the
    owner can toggle them back.
    """
    excluded = excluded_ids_for(budget.id, exclusions)
    matching = [
        t for t in transactions
        if t.category == category_id and _matches_window(budget, t)
    ]
    matching.sort(key=lambda t: t.date, reverse=True)

    return [
        CategoryTransaction(
            id=t.id,
            amount=t.amount,
            description=t.description,
            date=t.date,
            excluded=t.id in excluded,
        )
        for t in matching
    ]
