"""
Shared fixtures for Budgeter tests.

Everything runs against InMemoryStorage; no network, no database.
Async services are driven with asyncio.run inside the tests.
"""

from datetime import date
from decimal import Decimal

import pytest

from budgeter.audit import AuditLogger
from budgeter.budgets.service import BudgetService
from budgeter.config import TaxSettings
from budgeter.models import (
    Budget,
    BudgetCategoryAllocation,
    TaxRates,
    Transaction,
    TransactionType,
)
from budgeter.services.storage import InMemoryAuditStorage, InMemoryStorage
from budgeter.tax import load_tax_brackets

OWNER = "owner-1"
OTHER_OWNER = "owner-2"


@pytest.fixture
def owner_id():
    return OWNER


@pytest.fixture
def other_owner_id():
    return OTHER_OWNER


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def service(storage, audit_logger):
    return BudgetService(
        budgets=storage,
        transactions=storage,
        exclusions=storage,
        audit_logger=audit_logger,
    )


@pytest.fixture
def tax_settings():
    return TaxSettings()


@pytest.fixture
def brackets(tax_settings):
    return load_tax_brackets(tax_settings)


@pytest.fixture
def rates():
    return TaxRates()


@pytest.fixture
def make_transaction():
    """Factory for transactions; defaults to a groceries withdrawal."""
    def _make(
        amount,
        day,
        category="groceries",
        type=TransactionType.WITHDRAWAL,
        owner_id=OWNER,
        description="",
    ) -> Transaction:
        return Transaction(
            owner_id=owner_id,
            type=type,
            amount=Decimal(str(amount)),
            category=category,
            description=description,
            date=day,
        )
    return _make


@pytest.fixture
def make_budget():
    """Factory for budgets; allocations given as {category_id: amount}."""
    def _make(
        start=date(2024, 1, 1),
        end=date(2024, 1, 31),
        allocations=None,
        primary=False,
        owner_id=OWNER,
        name="January",
    ) -> Budget:
        allocations = {"groceries": 500} if allocations is None else allocations
        return Budget(
            owner_id=owner_id,
            name=name,
            start_date=start,
            end_date=end,
            primary=primary,
            allocations=[
                BudgetCategoryAllocation(
                    category_id=category_id,
                    budgeted_amount=Decimal(str(amount)),
                )
                for category_id, amount in allocations.items()
            ],
        )
    return _make
