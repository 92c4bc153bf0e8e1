"""Fixed spending-category taxonomy.

The taxonomy is flat and ordered. Its order is significant: it is the order in
which categories are documented in the analysis prompt and the deterministic
tie-break used when two categories have the same total.
"""

from __future__ import annotations

from typing import NamedTuple


class SpendingCategory(NamedTuple):
    name: str
    description: str


OTHER = "Other"

SPENDING_CATEGORIES: tuple[SpendingCategory, ...] = (
    SpendingCategory("Food & Dining", "restaurants, cafes, takeaway, groceries, supermarkets"),
    SpendingCategory("Entertainment", "streaming, games, movies, events, hobbies"),
    SpendingCategory("Shopping", "retail, online shopping, Amazon, clothing"),
    SpendingCategory(
        "Transportation", "fuel, parking, public transport, Uber/taxis, car expenses"
    ),
    SpendingCategory("Bills & Utilities", "phone, internet, electricity, water, council tax"),
    SpendingCategory("Health & Fitness", "gym, pharmacy, medical, wellness"),
    SpendingCategory("Software & Tech", "apps, subscriptions, software, domains"),
    SpendingCategory("Insurance", "car, home, life, health insurance"),
    SpendingCategory("Travel", "flights, hotels, holidays"),
    SpendingCategory("Personal Care", "beauty, grooming, self-care"),
    SpendingCategory("Education", "courses, books, training"),
    SpendingCategory(
        "Transfers & Payments", "bank transfers, credit card payments (if clearly visible)"
    ),
    SpendingCategory(OTHER, "anything that doesn't fit above"),
)

CATEGORY_NAMES: tuple[str, ...] = tuple(c.name for c in SPENDING_CATEGORIES)

_ORDER: dict[str, int] = {name: pos for pos, name in enumerate(CATEGORY_NAMES)}
_BY_FOLDED: dict[str, str] = {name.casefold(): name for name in CATEGORY_NAMES}


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


def canonical_category(label: object) -> str:
    """Map a model-provided label onto the taxonomy.

    Matching is case-insensitive and whitespace-tolerant. Anything that is not
    a string or does not name a taxonomy entry maps to ``Other``.
    """

    if not isinstance(label, str):
        return OTHER
    return _BY_FOLDED.get(normalize_name(label).casefold(), OTHER)


def category_order(name: str) -> int:
    """Return the taxonomy position of ``name`` (unknown names sort last)."""

    return _ORDER.get(name, len(_ORDER))


__all__ = [
    "CATEGORY_NAMES",
    "OTHER",
    "SPENDING_CATEGORIES",
    "SpendingCategory",
    "canonical_category",
    "category_order",
    "normalize_name",
]
