"""Domain records for ``just_save``.

All records are immutable pydantic models. Python attributes are snake_case;
``model_dump(by_alias=True)`` produces the camelCase keys consumed by the
presentation layer (``categorySpending``, ``totalSpent``).

Amounts are locale-agnostic numbers. Currency symbols and formatting belong to
whatever renders the results.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class SourceKind(StrEnum):
    CSV = "csv"
    PDF = "pdf"


class TransactionType(StrEnum):
    DEBIT = "debit"
    CREDIT = "credit"


class Frequency(StrEnum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"
    UNKNOWN = "unknown"


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class Transaction(_Record):
    """One financial movement.

    ``date`` is an opaque display string exactly as the statement showed it;
    it is never parsed or sorted. ``amount`` is a magnitude: the direction is
    carried by ``type``. Construction fails for non-positive, non-finite or
    non-numeric amounts, so a stored transaction always has ``amount > 0``.
    """

    date: str
    description: str
    amount: float
    type: TransactionType

    @field_validator("date", "description", mode="before")
    @classmethod
    def _non_empty_text(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError("must be a string")
        s = v.strip()
        if not s:
            raise ValueError("must be non-empty")
        return s

    @field_validator("amount", mode="before")
    @classmethod
    def _positive_number(cls, v: Any) -> float:
        # Booleans are ints; numeric strings are not numbers here.
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("amount must be a number")
        fv = float(v)
        if not math.isfinite(fv) or fv <= 0:
            raise ValueError("amount must be a finite number greater than zero")
        return fv

    @property
    def is_debit(self) -> bool:
        return self.type is TransactionType.DEBIT


class Subscription(_Record):
    """A detected recurring charge resolved against the debit list."""

    name: str
    amount: float
    frequency: Frequency = Frequency.MONTHLY
    confidence: Confidence = Confidence.MEDIUM
    transactions: tuple[Transaction, ...]


class CategorySpending(_Record):
    """Aggregate for one taxonomy category.

    ``percentage`` is kept unrounded; round only when displaying.
    """

    category: str
    total: float
    percentage: float
    count: int
    transactions: tuple[Transaction, ...]


class Insights(_Record):
    overview: str
    insight: str
    recommendation: str


DEFAULT_INSIGHTS = Insights(overview="Analysis complete.", insight="", recommendation="")


class Analysis(_Record):
    """The pipeline's output contract, built once per request."""

    subscriptions: tuple[Subscription, ...] = ()
    category_spending: tuple[CategorySpending, ...] = ()
    total_spent: float = 0.0
    insights: Insights = DEFAULT_INSIGHTS

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready, camelCase representation."""

        return self.model_dump(mode="json", by_alias=True)


__all__ = [
    "DEFAULT_INSIGHTS",
    "Analysis",
    "CategorySpending",
    "Confidence",
    "Frequency",
    "Insights",
    "SourceKind",
    "Subscription",
    "Transaction",
    "TransactionType",
]
