"""Tax estimation package."""

from budgeter.tax.brackets import (
    build_bracket_table,
    load_tax_brackets,
    validate_brackets,
)
from budgeter.tax.calculator import effective_rate, income_tax, marginal_rate
from budgeter.tax.categorization import TaxCategorization
from budgeter.tax.estimator import TaxEstimator, estimate_taxes
from budgeter.tax.withholding import (
    gross_up_payroll,
    net_from_gross,
    self_employment_tax,
)

__all__ = [
    "TaxCategorization",
    "TaxEstimator",
    "build_bracket_table",
    "effective_rate",
    "estimate_taxes",
    "gross_up_payroll",
    "income_tax",
    "load_tax_brackets",
    "marginal_rate",
    "net_from_gross",
    "self_employment_tax",
    "validate_brackets",
]
