"""Tests for the tax summary composer and the categorization map."""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from budgeter.exceptions import ValidationError
from budgeter.models import TaxCategory, TaxEstimateInput, TransactionType
from budgeter.tax import TaxCategorization, TaxEstimator, estimate_taxes

D = Decimal


@pytest.fixture
def deposit(make_transaction):
    def _make(amount, day=date(2025, 3, 1)):
        return make_transaction(
            amount, day, category="income", type=TransactionType.DEPOSIT
        )
    return _make


class TestEstimateTaxes:
    """Tests for estimate_taxes."""

    def test_single_w2_deposit(self, deposit, brackets, rates):
        """Test one W-2 deposit of net 1000."""
        txn = deposit(1000)
        estimate = estimate_taxes([txn], {txn.id: TaxCategory.W2}, brackets, rates)

        assert estimate.w2_income == D("1000")
        assert abs(estimate.w2_gross_income - D("1082.83")) < D("0.01")
        assert abs(estimate.w2_total_withheld - D("82.83")) < D("0.01")
        assert estimate.income_1099 == 0
        assert estimate.self_employment_tax == 0
        # Below the standard deduction
        assert estimate.income_tax == 0
        assert estimate.total_tax_owed == 0

    def test_single_1099_deposit(self, deposit, brackets, rates):
        """Test one 1099 deposit of 1000: SE tax is doubled in the total."""
        txn = deposit(1000)
        estimate = estimate_taxes([txn], {txn.id: TaxCategory.FORM_1099}, brackets, rates)

        assert estimate.income_1099 == D("1000")
        assert estimate.self_employment_tax == D("70.64775")
        assert estimate.total_income == D("1000")
        assert estimate.total_tax_owed == D("141.2955")

    def test_mixed_income(self, deposit, brackets, rates):
        """Test W-2 plus 1099 income crossing two bands."""
        salary = deposit(46175)
        contract = deposit(10000)
        categorization = {salary.id: TaxCategory.W2, contract.id: TaxCategory.FORM_1099}

        estimate = estimate_taxes([salary, contract], categorization, brackets, rates)

        assert estimate.w2_gross_income == D("50000")
        assert estimate.w2_total_withheld == D("3825")
        assert estimate.total_income == D("60000")
        assert estimate.income_tax == D("5161.50")
        assert estimate.self_employment_tax == D("706.4775")
        assert estimate.total_tax_owed == D("5161.50") + D("706.4775") * 2

    def test_multiple_deposits_summed(self, deposit, brackets, rates):
        """Test that tagged deposits of one kind are summed."""
        txns = [deposit(400), deposit(600)]
        categorization = {t.id: TaxCategory.FORM_1099 for t in txns}

        estimate = estimate_taxes(txns, categorization, brackets, rates)

        assert estimate.income_1099 == D("1000")

    def test_untagged_deposits_ignored(self, deposit, brackets, rates):
        """Test that deposits tagged none (or not at all) don't count."""
        tagged, untagged, explicit_none = deposit(100), deposit(200), deposit(300)
        categorization = {
            tagged.id: TaxCategory.W2,
            explicit_none.id: TaxCategory.NONE,
        }

        estimate = estimate_taxes(
            [tagged, untagged, explicit_none], categorization, brackets, rates
        )

        assert estimate.w2_income == D("100")
        assert estimate.income_1099 == 0

    def test_no_transactions(self, brackets, rates):
        """Test the all-zero estimate."""
        estimate = estimate_taxes([], {}, brackets, rates)
        assert all(value == 0 for _, value in estimate)

    def test_tagged_withdrawal_ignored(self, deposit, make_transaction, brackets, rates):
        """Test that only deposits count, whatever the withdrawals are tagged."""
        income = deposit(1000)
        refund = make_transaction(50, date(2025, 1, 5))
        categorization = {
            income.id: TaxCategory.FORM_1099,
            refund.id: TaxCategory.FORM_1099,
        }

        estimate = estimate_taxes([income, refund], categorization, brackets, rates)

        assert estimate.income_1099 == D("1000")
        assert estimate.w2_income == 0

    def test_is_pure(self, deposit, brackets, rates):
        """Test identical inputs give identical estimates."""
        txn = deposit(1234.56)
        categorization = {txn.id: TaxCategory.FORM_1099}
        first = estimate_taxes([txn], categorization, brackets, rates)
        second = estimate_taxes([txn], categorization, brackets, rates)
        assert first == second


class TestTaxEstimator:
    """Tests for the configured estimator."""

    def test_estimate_with_categorization_map(self, deposit, brackets, rates):
        """Test passing a TaxCategorization instead of a dict."""
        txn = deposit(1000)
        categorization = TaxCategorization()
        categorization.assign(txn.id, "1099")

        estimate = TaxEstimator(brackets, rates).estimate([txn], categorization)

        assert estimate.self_employment_tax == D("70.64775")

    def test_estimate_input(self, deposit, brackets, rates):
        """Test estimating from a validated request body."""
        txn = deposit(1000)
        data = TaxEstimateInput.model_validate({
            "transactions": [txn.model_dump(mode="json")],
            "categorization": {str(txn.id): "1099"},
        })

        estimate = TaxEstimator(brackets, rates).estimate_input(data, owner_id="owner-1")

        assert estimate.rounded().self_employment_tax == D("70.65")
        assert estimate.rounded().total_tax_owed == D("141.30")


class TestTaxCategorization:
    """Tests for the transaction -> tax tag map."""

    def test_defaults_to_none(self):
        """Test that untagged ids read as none."""
        assert TaxCategorization().get(uuid4()) == TaxCategory.NONE

    def test_assign_none_deletes(self):
        """Test that tagging none removes the entry."""
        txn_id = uuid4()
        categorization = TaxCategorization()
        categorization.assign(txn_id, TaxCategory.W2)
        assert txn_id in categorization

        categorization.assign(txn_id, TaxCategory.NONE)

        assert txn_id not in categorization
        assert len(categorization) == 0

    def test_assign_rejects_withdrawal(self, make_transaction):
        """Test that withdrawals can't be tagged when the record is given."""
        txn = make_transaction(10, date(2025, 1, 1))
        with pytest.raises(ValidationError):
            TaxCategorization().assign(txn.id, "w2", transaction=txn)

    def test_assign_many_and_clear(self):
        """Test bulk tagging and clearing."""
        ids = [uuid4(), uuid4()]
        categorization = TaxCategorization()
        categorization.assign_many(ids, "1099")
        assert len(categorization) == 2

        categorization.clear()
        assert len(categorization) == 0

    def test_json_export_import(self):
        """Test that an exported map imports back to the same tags."""
        w2_id, contract_id = uuid4(), uuid4()
        categorization = TaxCategorization({w2_id: "w2", contract_id: "1099"})

        exported = categorization.to_json()
        restored = TaxCategorization.from_json(exported)

        assert json.loads(exported) == {str(w2_id): "w2", str(contract_id): "1099"}
        assert restored.as_dict() == categorization.as_dict()

    def test_import_drops_none_tags(self):
        """Test that none entries in an import are not stored."""
        txn_id = uuid4()
        restored = TaxCategorization.from_json(json.dumps({str(txn_id): "none"}))
        assert len(restored) == 0

    @pytest.mark.parametrize("payload", [
        "not json",
        json.dumps({"not-a-uuid": "w2"}),
        json.dumps({str(uuid4()): "salary"}),
    ])
    def test_invalid_import(self, payload):
        """Test that invalid payloads are validation errors."""
        with pytest.raises(ValidationError):
            TaxCategorization.from_json(payload)
