"""
Tests for tax brackets, the progressive calculator, payroll gross-up and
self-employment tax.
"""

from decimal import Decimal

import pytest

from budgeter.config import TaxSettings
from budgeter.exceptions import ConfigurationError, ValidationError
from budgeter.models import TaxBracket, TaxRates
from budgeter.tax import (
    build_bracket_table,
    effective_rate,
    gross_up_payroll,
    income_tax,
    load_tax_brackets,
    marginal_rate,
    net_from_gross,
    self_employment_tax,
    validate_brackets,
)

D = Decimal


class TestBracketTable:
    """Tests for loading and validating bracket tables."""

    def test_2025_table(self, brackets):
        """Test the built-in table: deduction band then seven rates."""
        assert brackets[0] == TaxBracket(low=D("0"), high=D("15000"), rate=D("0"))
        assert brackets[1].low == D("15000")
        assert brackets[1].high == D("26925")
        assert [b.rate for b in brackets[1:]] == [
            D("0.10"), D("0.12"), D("0.22"), D("0.24"), D("0.32"), D("0.35"), D("0.37"),
        ]
        assert brackets[-1].is_open_ended
        assert brackets[-1].low == D("641350")

    def test_table_is_contiguous(self, brackets):
        """Test that each band starts where the previous ends."""
        for lower, upper in zip(brackets, brackets[1:]):
            assert lower.high == upper.low

    def test_unknown_tax_year(self):
        """Test that only years with thresholds can be loaded."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_tax_brackets(TaxSettings(tax_year=2024))
        assert exc_info.value.setting == "tax_year"

    def test_zero_deduction_table(self):
        """Test building without a deduction band."""
        table = build_bracket_table(D("0"))
        assert table[0].low == 0
        assert table[0].rate == D("0.10")

    def test_accepts_dict_rows(self):
        """Test validating rows given as plain dicts."""
        table = validate_brackets([
            {"low": "0", "high": "100", "rate": "0.1"},
            {"low": "100", "high": None, "rate": "0.2"},
        ])
        assert len(table) == 2

    @pytest.mark.parametrize("rows, fragment", [
        ([], "empty"),
        ([{"low": "10", "high": None, "rate": "0.1"}], "start at 0"),
        (
            [{"low": "0", "high": "100", "rate": "0.1"},
             {"low": "150", "high": None, "rate": "0.2"}],
            "Gap",
        ),
        (
            [{"low": "0", "high": "100", "rate": "0.1"},
             {"low": "50", "high": None, "rate": "0.2"}],
            "overlap",
        ),
        (
            [{"low": "0", "high": None, "rate": "0.1"},
             {"low": "100", "high": None, "rate": "0.2"}],
            "Only the last",
        ),
        ([{"low": "0", "high": "100", "rate": "0.1"}], "must be open-ended"),
        ([{"low": "0", "high": None, "rate": "1.5"}], "outside [0, 1]"),
        ([{"low": "0", "high": None, "rate": "-0.1"}], "outside [0, 1]"),
        (
            [{"low": "0", "high": "0", "rate": "0.1"},
             {"low": "0", "high": None, "rate": "0.2"}],
            "empty",
        ),
        ([{"low": "zero", "high": None, "rate": "0.1"}], "Malformed"),
    ])
    def test_invalid_tables(self, rows, fragment):
        """Test every malformed table is a configuration error."""
        with pytest.raises(ConfigurationError, match=fragment.replace("[", r"\[")):
            validate_brackets(rows)


class TestIncomeTax:
    """Tests for the progressive calculator."""

    def test_zero_income(self, brackets):
        """Test that no income means no tax."""
        assert income_tax(D("0"), brackets) == 0

    def test_within_deduction(self, brackets):
        """Test income under the standard deduction."""
        assert income_tax(D("15000"), brackets) == 0

    def test_two_bands(self, brackets):
        """Test 50000: 10% of 11925 plus 12% of 23075."""
        assert income_tax(D("50000"), brackets) == D("3961.50")

    def test_top_band(self, brackets):
        """Test income in the open-ended band."""
        expected = (
            D("11925") * D("0.10")
            + D("36550") * D("0.12")
            + D("54875") * D("0.22")
            + D("93950") * D("0.24")
            + D("53225") * D("0.32")
            + D("375825") * D("0.35")
            + D("358650") * D("0.37")
        )
        assert income_tax(D("1000000"), brackets) == expected

    def test_single_open_band(self):
        """Test tax(x) = x * rate for a one-band table."""
        table = validate_brackets([{"low": "0", "high": None, "rate": "0.2"}])
        for amount in ("0", "1", "123.45", "99999"):
            assert income_tax(D(amount), table) == D(amount) * D("0.2")

    def test_monotonic(self, brackets):
        """Test that more income never means less tax."""
        incomes = [D(n) for n in range(0, 800001, 2500)]
        taxes = [income_tax(i, brackets) for i in incomes]
        assert all(a <= b for a, b in zip(taxes, taxes[1:]))

    def test_never_exceeds_income(self, brackets):
        """Test the tax is always below the income itself."""
        for n in (1, 20000, 300000, 5000000):
            assert income_tax(D(n), brackets) < D(n)

    def test_negative_income_rejected(self, brackets):
        """Test negative income is a validation error."""
        with pytest.raises(ValidationError):
            income_tax(D("-1"), brackets)

    def test_marginal_and_effective_rates(self, brackets):
        """Test marginal and effective rate at 50000."""
        assert marginal_rate(D("50000"), brackets) == D("0.12")
        assert marginal_rate(D("10"), brackets) == D("0")
        assert effective_rate(D("50000"), brackets) == D("3961.50") / D("50000")
        assert effective_rate(D("0"), brackets) == 0


class TestPayrollGrossUp:
    """
    Tests for the W-2 gross-up.

    The gross-up assumes only flat FICA was withheld (no income tax
    withholding, no wage base cap); these tests pin that behaviour.
    """

    def test_net_1000(self, rates):
        """Test net 1000 grosses up to about 1082.84 with about 82.84 withheld."""
        result = gross_up_payroll(D("1000"), rates)

        assert abs(result.gross_income - D("1082.837") ) < D("0.001")
        assert abs(result.total_withheld - D("82.837")) < D("0.001")
        assert result.social_security_withheld == result.gross_income * D("0.062")
        assert result.medicare_withheld == result.gross_income * D("0.0145")

    def test_withheld_is_gross_minus_net(self, rates):
        """Test gross = net + withheld."""
        result = gross_up_payroll(D("2500"), rates)
        assert abs(result.gross_income - result.net_income - result.total_withheld) < D("1e-20")

    def test_round_trip(self, rates):
        """Test that net -> gross -> net returns the original net."""
        for net in ("0", "1", "1000", "46175", "123456.78"):
            gross = gross_up_payroll(D(net), rates).gross_income
            assert abs(net_from_gross(gross, rates) - D(net)) < D("1e-20")

    def test_exact_gross(self, rates):
        """Test a net that grosses up to a round number."""
        assert gross_up_payroll(D("46175"), rates).gross_income == D("50000")

    def test_zero(self, rates):
        """Test zero net income."""
        result = gross_up_payroll(D("0"), rates)
        assert result.gross_income == 0
        assert result.total_withheld == 0

    def test_negative_rejected(self, rates):
        """Test negative net income."""
        with pytest.raises(ValidationError):
            gross_up_payroll(D("-1"), rates)


class TestSelfEmploymentTax:
    """Tests for the 1099 self-employment tax."""

    def test_1099_of_1000(self, rates):
        """Test 1000 of 1099 income: 923.5 subject, 70.64775 tax."""
        result = self_employment_tax(D("1000"), rates)

        assert result.se_income == D("923.5")
        assert result.social_security_tax == D("57.257")
        assert result.medicare_tax == D("13.39075")
        assert result.self_employment_tax == D("70.64775")

    def test_zero(self, rates):
        """Test zero 1099 income."""
        assert self_employment_tax(D("0"), rates).self_employment_tax == 0

    def test_custom_rates(self):
        """Test rates come from the TaxRates passed in."""
        rates = TaxRates(
            social_security_rate=D("0.1"),
            medicare_rate=D("0"),
            self_employment_factor=D("1"),
        )
        assert self_employment_tax(D("200"), rates).self_employment_tax == D("20.0")

    def test_negative_rejected(self, rates):
        """Test negative 1099 income."""
        with pytest.raises(ValidationError):
            self_employment_tax(D("-5"), rates)
