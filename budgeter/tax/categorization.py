"""
Tax Categorization Map

Maps transaction ids to a TaxCategory. The map belongs to the caller
(the dashboard keeps it per user); the engine only reads it. Untagged
transactions are "none", and tagging a transaction "none" removes its
entry, so exported maps only ever contain w2 and 1099 tags.
"""

import json
from typing import Optional, Union
from uuid import UUID

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from budgeter.exceptions import ValidationError
from budgeter.models.finance import TaxCategory, Transaction, TransactionType

_MAPPING = TypeAdapter(dict[UUID, TaxCategory])


class TaxCategorization:
    """Mutable transaction-id to TaxCategory map."""

    def __init__(self, mapping: Optional[dict] = None):
        self._tags: dict[UUID, TaxCategory] = {}
        for transaction_id, category in _MAPPING.validate_python(mapping or {}).items():
            self.assign(transaction_id, category)

    def __len__(self) -> int:
        return len(self._tags)

    def __contains__(self, transaction_id: UUID) -> bool:
        return transaction_id in self._tags

    def get(self, transaction_id: UUID) -> TaxCategory:
        return self._tags.get(transaction_id, TaxCategory.NONE)

    def assign(
        self,
        transaction_id: UUID,
        category: Union[TaxCategory, str],
        transaction: Optional[Transaction] = None,
    ) -> None:
        """
        Tag a transaction. Tagging "none" removes the tag.

        When the transaction record is passed, only deposits may be
        tagged w2 or 1099.
        """
        category = TaxCategory(category)
        if category == TaxCategory.NONE:
            self._tags.pop(transaction_id, None)
            return

        if transaction is not None and transaction.type != TransactionType.DEPOSIT:
            raise ValidationError(
                f"Only deposits can be tagged {category.value}",
                field="categorization",
                constraint="deposit_only",
                details={"transaction_id": str(transaction_id)},
            )
        self._tags[transaction_id] = category

    def assign_many(
        self,
        transaction_ids: list[UUID],
        category: Union[TaxCategory, str],
    ) -> None:
        for transaction_id in transaction_ids:
            self.assign(transaction_id, category)

    def clear(self) -> None:
        self._tags.clear()

    def as_dict(self) -> dict[UUID, TaxCategory]:
        return dict(self._tags)

    def to_json(self) -> str:
        """Export as a JSON object of {transaction_id: tag}."""
        return json.dumps(
            {str(k): v.value for k, v in self._tags.items()},
            indent=2,
        )

    @classmethod
    def from_json(cls, payload: str) -> 'TaxCategorization':
        """
        Import a map exported by to_json.

        Raises:
            ValidationError: If the payload is not a valid map
        """
        try:
            return cls(json.loads(payload))
        except (json.JSONDecodeError, PydanticValidationError) as e:
            raise ValidationError(
                "Invalid tax categorization payload",
                field="categorization",
                constraint="json_map",
                details={"reason": str(e)},
            ) from e
