"""
Payroll Gross-Up and Self-Employment Tax

KNOWN SIMPLIFICATION (payroll gross-up):
W-2 deposits are treated as gross pay minus Social Security and Medicare
only. The reconstruction assumes
- no federal or state income tax was withheld
- one flat combined FICA rate
- no Social Security wage base cap
Real withholding depends on brackets, W-4 elections and the wage base, so
gross_up_payroll is an estimate. Tests pin this behaviour; a more exact
model needs new tests and a new documented contract.
"""

from decimal import Decimal

from budgeter.exceptions import ValidationError
from budgeter.models.tax import PayrollWithholding, SelfEmploymentTax, TaxRates


def gross_up_payroll(w2_net_income: Decimal, rates: TaxRates) -> PayrollWithholding:
    """
    Reconstruct gross W-2 pay from net deposits.

    gross = net / (1 - social_security_rate - medicare_rate)
    """
    if w2_net_income < 0:
        raise ValidationError(
            "W-2 net income cannot be negative",
            field="w2_net_income",
            constraint="non_negative",
        )

    gross = w2_net_income / (Decimal("1") - rates.combined_payroll_rate)
    social_security = gross * rates.social_security_rate
    medicare = gross * rates.medicare_rate

    return PayrollWithholding(
        net_income=w2_net_income,
        gross_income=gross,
        social_security_withheld=social_security,
        medicare_withheld=medicare,
        total_withheld=social_security + medicare,
    )


def net_from_gross(gross_income: Decimal, rates: TaxRates) -> Decimal:
    """Inverse of the gross-up: pay left after flat FICA withholding."""
    return gross_income * (Decimal("1") - rates.combined_payroll_rate)


def self_employment_tax(income_1099: Decimal, rates: TaxRates) -> SelfEmploymentTax:
    """
    One half of the self-employment tax on 1099 income.

    Only ``self_employment_factor`` of the income is subject to the tax.
    The returned figure covers the employee half; the summary doubles it
    to include the employer half.
    """
    if income_1099 < 0:
        raise ValidationError(
            "1099 income cannot be negative",
            field="income_1099",
            constraint="non_negative",
        )

    se_income = income_1099 * rates.self_employment_factor
    social_security = se_income * rates.social_security_rate
    medicare = se_income * rates.medicare_rate

    return SelfEmploymentTax(
        income_1099=income_1099,
        se_income=se_income,
        social_security_tax=social_security,
        medicare_tax=medicare,
        self_employment_tax=social_security + medicare,
    )
