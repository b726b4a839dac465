"""Progressive income tax by marginal banding."""

from decimal import Decimal
from typing import Sequence

from budgeter.exceptions import ValidationError
from budgeter.models.tax import TaxBracket


def taxable_in_bracket(income: Decimal, bracket: TaxBracket) -> Decimal:
    """Portion of ``income`` that falls inside ``bracket``."""
    if income <= bracket.low:
        return Decimal("0")
    upper = income if bracket.high is None else min(income, bracket.high)
    return upper - bracket.low


def income_tax(total_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """
    Tax owed on ``total_income`` under a validated bracket table.

    Each band taxes only the slice of income between its own bounds, so
    no amount is taxed twice. Bands are walked in ascending order and the
    walk stops at the first band starting at or above the income.

    Raises:
        ValidationError: If total_income is negative
    """
    if total_income < 0:
        raise ValidationError(
            "Taxable income cannot be negative",
            field="total_income",
            constraint="non_negative",
            details={"total_income": str(total_income)},
        )

    tax = Decimal("0")
    for bracket in brackets:
        if total_income <= bracket.low:
            break
        tax += taxable_in_bracket(total_income, bracket) * bracket.rate
    return tax


def marginal_rate(total_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    """Rate applied to the last unit of ``total_income``."""
    rate = brackets[0].rate if brackets else Decimal("0")
    for bracket in brackets:
        if total_income < bracket.low:
            break
        rate = bracket.rate
    return rate


def effective_rate(total_income: Decimal, brackets: Sequence[TaxBracket]) -> Decimal:
    if total_income <= 0:
        return Decimal("0")
    return income_tax(total_income, brackets) / total_income
