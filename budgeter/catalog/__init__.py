"""Category catalog package."""

from budgeter.catalog.categories import (
    CATEGORIES,
    DEFAULT_CATEGORY,
    category_from_bank,
    category_ids,
    classify,
    is_known,
    label_of,
    resolve_legacy_category,
)

__all__ = [
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "category_from_bank",
    "category_ids",
    "classify",
    "is_known",
    "label_of",
    "resolve_legacy_category",
]
