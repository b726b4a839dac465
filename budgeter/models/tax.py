"""
Tax Models for Budgeter

Bracket rows, rate constants and the computed estimate. Nothing here is
persisted; a TaxEstimate is rebuilt from its inputs on every request.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from budgeter.models.finance import TaxCategory, Transaction


CENT = Decimal("0.01")


class TaxBracket(BaseModel):
    """
    One marginal band of a progressive table.

    Income in [low, high) is taxed at rate. high=None is the open-ended
    top band. Table-level rules (no gaps, no overlaps, rates in [0, 1])
    are checked by budgeter.tax.brackets.validate_brackets.
    """
    model_config = ConfigDict(frozen=True)

    low: Decimal
    high: Optional[Decimal] = None
    rate: Decimal

    @property
    def is_open_ended(self) -> bool:
        return self.high is None


class TaxRates(BaseModel):
    """Flat payroll and self-employment rates."""
    model_config = ConfigDict(frozen=True)

    social_security_rate: Decimal = Field(default=Decimal("0.062"), ge=0, le=1)
    medicare_rate: Decimal = Field(default=Decimal("0.0145"), ge=0, le=1)
    self_employment_factor: Decimal = Field(default=Decimal("0.9235"), gt=0, le=1)

    @property
    def combined_payroll_rate(self) -> Decimal:
        return self.social_security_rate + self.medicare_rate

    @classmethod
    def from_settings(cls, settings) -> 'TaxRates':
        """Build from a TaxSettings instance."""
        return cls(
            social_security_rate=settings.social_security_rate,
            medicare_rate=settings.medicare_rate,
            self_employment_factor=settings.self_employment_factor,
        )


class PayrollWithholding(BaseModel):
    """W-2 gross pay reconstructed from net deposits."""

    net_income: Decimal
    gross_income: Decimal
    social_security_withheld: Decimal
    medicare_withheld: Decimal
    total_withheld: Decimal


class SelfEmploymentTax(BaseModel):
    """One half of the self-employment tax owed on 1099 income."""

    income_1099: Decimal
    se_income: Decimal
    social_security_tax: Decimal
    medicare_tax: Decimal
    self_employment_tax: Decimal


class TaxEstimate(BaseModel):
    """
    Annual tax estimate.

    Values keep full precision; call rounded() at the reporting boundary.
    """

    w2_income: Decimal = Field(description="Net W-2 deposits")
    w2_gross_income: Decimal
    w2_social_security_withheld: Decimal
    w2_medicare_withheld: Decimal
    w2_total_withheld: Decimal
    income_1099: Decimal
    total_income: Decimal
    income_tax: Decimal
    social_security_tax: Decimal
    medicare_tax: Decimal
    self_employment_tax: Decimal
    total_tax_owed: Decimal

    def rounded(self, quantum: Decimal = CENT) -> 'TaxEstimate':
        """Copy with every amount rounded half-up to ``quantum``."""
        return TaxEstimate(**{
            name: value.quantize(quantum, rounding=ROUND_HALF_UP)
            for name, value in self
        })


class TaxEstimateInput(BaseModel):
    """Body of a tax-estimate request."""
    model_config = ConfigDict(extra="forbid")

    transactions: list[Transaction] = Field(default_factory=list)
    categorization: dict[UUID, TaxCategory] = Field(default_factory=dict)
