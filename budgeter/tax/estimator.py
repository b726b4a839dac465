"""
Tax Summary Composer

Combines payroll gross-up, self-employment tax and the progressive
calculator into one TaxEstimate.

estimate_taxes is a pure function of its inputs: the same transactions,
categorization, brackets and rates always give the same estimate.
"""

from decimal import Decimal
from typing import Mapping, Optional, Sequence, Union
from uuid import UUID

import structlog

from budgeter.models.finance import TaxCategory, Transaction, TransactionType
from budgeter.models.tax import TaxBracket, TaxEstimate, TaxEstimateInput, TaxRates
from budgeter.tax.calculator import effective_rate, income_tax, marginal_rate
from budgeter.tax.categorization import TaxCategorization
from budgeter.tax.withholding import gross_up_payroll, self_employment_tax

logger = structlog.get_logger()

Categorization = Union[TaxCategorization, Mapping[UUID, TaxCategory]]


def _tag_of(categorization: Categorization, transaction_id: UUID) -> TaxCategory:
    if isinstance(categorization, TaxCategorization):
        return categorization.get(transaction_id)
    return TaxCategory(categorization.get(transaction_id, TaxCategory.NONE))


def _sum_abs(transactions: list[Transaction]) -> Decimal:
    return sum((abs(t.amount) for t in transactions), Decimal("0"))


def estimate_taxes(
    transactions: Sequence[Transaction],
    categorization: Categorization,
    brackets: Sequence[TaxBracket],
    rates: TaxRates,
) -> TaxEstimate:
    """
    Estimate annual tax from tagged deposits.

    Steps:
    1. Keep deposits tagged w2 or 1099; tagged withdrawals are skipped
    2. Gross up W-2 net deposits; compute SE tax on 1099 deposits
    3. total_income = W-2 gross + 1099 income
    4. income_tax from the bracket table
    5. total_tax_owed = income_tax + 2 * self_employment_tax
    """
    w2_deposits: list[Transaction] = []
    deposits_1099: list[Transaction] = []

    for transaction in transactions:
        tag = _tag_of(categorization, transaction.id)
        if tag == TaxCategory.NONE:
            continue
        if transaction.type != TransactionType.DEPOSIT:
            logger.warning(
                "tagged_withdrawal_ignored",
                transaction_id=str(transaction.id),
                tag=tag.value,
            )
            continue
        if tag == TaxCategory.W2:
            w2_deposits.append(transaction)
        else:
            deposits_1099.append(transaction)

    payroll = gross_up_payroll(_sum_abs(w2_deposits), rates)
    self_employment = self_employment_tax(_sum_abs(deposits_1099), rates)

    total_income = payroll.gross_income + self_employment.income_1099
    tax_on_income = income_tax(total_income, brackets)

    return TaxEstimate(
        w2_income=payroll.net_income,
        w2_gross_income=payroll.gross_income,
        w2_social_security_withheld=payroll.social_security_withheld,
        w2_medicare_withheld=payroll.medicare_withheld,
        w2_total_withheld=payroll.total_withheld,
        income_1099=self_employment.income_1099,
        total_income=total_income,
        income_tax=tax_on_income,
        social_security_tax=self_employment.social_security_tax,
        medicare_tax=self_employment.medicare_tax,
        self_employment_tax=self_employment.self_employment_tax,
        total_tax_owed=tax_on_income + self_employment.self_employment_tax * 2,
    )


class TaxEstimator:
    """
    Estimator bound to a validated bracket table and rates.

    Build it once at startup (see budgeter.engine) and reuse it for
    every request.
    """

    def __init__(self, brackets: Sequence[TaxBracket], rates: TaxRates):
        self._brackets = tuple(brackets)
        self._rates = rates

    @property
    def brackets(self) -> tuple[TaxBracket, ...]:
        return self._brackets

    @property
    def rates(self) -> TaxRates:
        return self._rates

    def estimate(
        self,
        transactions: Sequence[Transaction],
        categorization: Categorization,
        owner_id: Optional[str] = None,
    ) -> TaxEstimate:
        estimate = estimate_taxes(
            transactions, categorization, self._brackets, self._rates
        )
        logger.info(
            "tax_estimated",
            owner_id=owner_id,
            transactions=len(transactions),
            total_income=str(estimate.total_income),
            total_tax_owed=str(estimate.total_tax_owed),
            marginal_rate=str(marginal_rate(estimate.total_income, self._brackets)),
            effective_rate=str(effective_rate(estimate.total_income, self._brackets)),
        )
        return estimate

    def estimate_input(
        self,
        data: TaxEstimateInput,
        owner_id: Optional[str] = None,
    ) -> TaxEstimate:
        """Estimate from a validated request body."""
        return self.estimate(data.transactions, data.categorization, owner_id)
