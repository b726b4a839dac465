"""
Category Catalog

Fixed, ordered list of spending categories. The order is the display
order, so it never changes at runtime.

Unknown category ids are accepted everywhere; where a default is needed
they classify as "miscellaneous".
"""

from fnmatch import fnmatchcase
from typing import Optional

DEFAULT_CATEGORY = "miscellaneous"

CATEGORIES: tuple[tuple[str, str], ...] = (
    ("gas", "Gas"),
    ("groceries", "Groceries"),
    ("dining", "Dining & Restaurants"),
    ("entertainment", "Entertainment"),
    ("shopping", "Shopping"),
    ("travel", "Travel"),
    ("transportation", "Transportation"),
    ("utilities", "Utilities"),
    ("health_fitness", "Health & Fitness"),
    ("education", "Education"),
    ("personal_care", "Personal Care"),
    ("home_garden", "Home & Garden"),
    ("automotive", "Automotive"),
    ("insurance", "Insurance"),
    ("charity_donations", "Charity & Donations"),
    ("miscellaneous", "Miscellaneous"),
    ("income", "Income"),
)

_LABELS = dict(CATEGORIES)

# Bank provider category codes, most specific first. First match wins.
BANK_CATEGORY_PATTERNS: tuple[tuple[str, str], ...] = (
    ("INCOME*", "income"),
    ("GENERAL_MERCHANDISE*", "shopping"),
    ("ENTERTAINMENT*", "entertainment"),
    ("LOAN_PAYMENT_CAR*", "automotive"),
    ("LOAN_PAYMENT_CREDIT*", "miscellaneous"),
    ("BANK_FEES*", "miscellaneous"),
    ("FOOD_AND_DRINK_GROCERIES", "groceries"),
    ("FOOD_AND_DRINK*", "dining"),
    ("TRANSPORTATION_GAS", "gas"),
    ("TRANSPORTATION*", "transportation"),
    ("TRAVEL*", "travel"),
    ("RENT_AND_UTILITIES_RENT", "home_garden"),
    ("RENT_AND_UTILITIES*", "utilities"),
    ("HOME_IMPROVEMENT*", "home_garden"),
    ("MEDICAL*", "health_fitness"),
    ("PERSONAL_CARE_GYMS_AND_FITNESS_CENTERS", "health_fitness"),
    ("PERSONAL_CARE*", "personal_care"),
    ("GENERAL_SERVICES_EDUCATION", "education"),
    ("GENERAL_SERVICES_INSURANCE", "insurance"),
    ("GENERAL_SERVICES*", "miscellaneous"),
    ("GOVERNMENT_AND_NON_PROFIT_DONATIONS", "charity_donations"),
    ("GOVERNMENT_AND_NON_PROFIT*", "miscellaneous"),
)


def _squash(value: str) -> str:
    """Lowercase and keep only letters and digits."""
    return "".join(c for c in value.lower() if c.isalnum())


# Free-text spellings seen in legacy data, keyed by their squashed form
_LEGACY_ALIASES = {
    **{_squash(label): category_id for category_id, label in CATEGORIES},
    **{_squash(category_id): category_id for category_id, _ in CATEGORIES},
    "diningandrestaurants": "dining",
    "restaurants": "dining",
    "food": "dining",
    "healthandfitness": "health_fitness",
    "homeandgarden": "home_garden",
    "charityanddonations": "charity_donations",
    "misc": "miscellaneous",
    "other": "miscellaneous",
}


def category_ids() -> list[str]:
    """All known category ids in display order."""
    return [category_id for category_id, _ in CATEGORIES]


def is_known(category_id: str) -> bool:
    return category_id in _LABELS


def label_of(category_id: str) -> str:
    """Display label, or the raw id when the category is unknown."""
    return _LABELS.get(category_id, category_id)


def classify(category_id: Optional[str]) -> str:
    """Known ids pass through; anything else becomes miscellaneous."""
    if category_id and is_known(category_id):
        return category_id
    return DEFAULT_CATEGORY


def category_from_bank(bank_category: Optional[str]) -> str:
    """
    Map a bank provider category code (e.g. FOOD_AND_DRINK_COFFEE)
    to a catalog id.
    """
    if bank_category:
        code = bank_category.strip().upper()
        for pattern, category_id in BANK_CATEGORY_PATTERNS:
            if fnmatchcase(code, pattern):
                return category_id
    return DEFAULT_CATEGORY


def resolve_legacy_category(value: Optional[str]) -> str:
    """
    Resolve a stored category string to a canonical id.

    Canonical ids are returned unchanged. Labels and common free-text
    spellings ("Dining & Restaurants", "health and fitness") resolve to
    their id; bank codes go through category_from_bank; everything else
    is miscellaneous.
    """
    if not value:
        return DEFAULT_CATEGORY
    if is_known(value):
        return value

    alias = _LEGACY_ALIASES.get(_squash(value))
    if alias:
        return alias

    if value.strip().isupper():
        return category_from_bank(value)

    return DEFAULT_CATEGORY
