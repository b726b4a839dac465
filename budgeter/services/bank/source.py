"""
Bank Data Source Interface

The engine never creates a bank API client itself. A BankDataSource is
injected into the importer, so tests run against an in-memory fake and
deployments wrap whatever provider SDK they use.

Records follow the provider's sign convention: positive amounts are money
leaving the account (withdrawals), negative amounts are money coming in.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from budgeter.exceptions import BudgeterError


class BankTransaction(BaseModel):
    """
    A transaction as reported by the bank provider.

    Amount and date are optional here because providers do send incomplete
    records; the importer rejects those before anything is stored.
    """
    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    transaction_id: str = Field(
        ...,
        min_length=1,
        description="Provider's transaction id"
    )
    account_id: Optional[str] = None
    amount: Optional[Decimal] = Field(
        default=None,
        description="Signed amount; positive = outflow"
    )
    booked_on: Optional[date] = Field(
        default=None,
        alias="date",
        description="Day the transaction posted"
    )
    name: str = Field(
        default="",
        description="Provider description of the transaction"
    )
    category: Optional[str] = Field(
        default=None,
        description="Provider category code, e.g. FOOD_AND_DRINK_COFFEE"
    )


class BankError(BudgeterError):
    """Base exception for bank data errors."""
    pass


class BankConnectionError(BankError):
    """The provider could not be reached. Safe to retry."""
    pass


class BankDataSource(ABC):
    """Fetches an owner's transactions from a bank provider."""

    @abstractmethod
    async def fetch_transactions(
        self,
        owner_id: str,
        start: date,
        end: date,
    ) -> list[BankTransaction]:
        """
        Transactions booked between start and end, inclusive.

        Raises:
            BankConnectionError: If the provider is unreachable
        """
        pass
