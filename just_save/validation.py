"""Type guards for decoded model output.

Two families of helpers live here:

- Transaction validation: filter candidate records into :class:`Transaction`
  instances. Invalid records are dropped silently; only an empty result is an
  error (``NoTransactionsFound``).
- Analysis payload parsing: tolerant pydantic views of the engine's
  ``subscriptions`` / ``categories`` / ``insights`` objects. Shape problems in
  individual entries drop that entry rather than failing the request.

The same filter-don't-fail posture applies to index references: anything
that does not resolve to an existing transaction is ignored.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import MalformedInsights, no_transactions_error
from .logging_setup import get_logger
from .models import Insights, Transaction

_logger = get_logger("just_save.validation")

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _candidates(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        nested = payload.get("transactions")
        if isinstance(nested, list):
            return nested
        return [payload]
    return []


def filter_transactions(payload: Any) -> tuple[list[Transaction], int]:
    """Return ``(valid, dropped)`` for a decoded JSON value.

    ``payload`` may be an array of records, an object holding a
    ``transactions`` array, or a single record object. A record is valid when
    ``date`` and ``description`` are non-empty strings, ``amount`` is a finite
    number strictly greater than zero and ``type`` is exactly ``"debit"`` or
    ``"credit"``.
    """

    valid: list[Transaction] = []
    dropped = 0
    for item in _candidates(payload):
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            valid.append(Transaction.model_validate(item))
        except ValidationError:
            dropped += 1
    return valid, dropped


def validate_transactions(payload: Any, *, source_kind: str | None = None) -> list[Transaction]:
    """Return the valid transactions in ``payload``.

    Raises ``NoTransactionsFound`` when no record survives validation.
    """

    valid, dropped = filter_transactions(payload)
    if dropped:
        _logger.info(
            "validate_transactions:dropped_invalid dropped=%d kept=%d", dropped, len(valid)
        )
    if not valid:
        raise no_transactions_error(source_kind, dropped=dropped)
    return valid


# ---------------------------------------------------------------------------
# Index references (1-based, as enumerated in the analysis prompt)
# ---------------------------------------------------------------------------


def resolve_position(size: int, index: Any) -> int | None:
    """Return the 0-based position for a 1-based ``index`` into ``size`` items.

    Booleans, non-integral numbers, numeric strings and out-of-range values
    resolve to ``None``.
    """

    if isinstance(index, bool):
        return None
    if isinstance(index, float):
        if not math.isfinite(index) or not index.is_integer():
            return None
        index = int(index)
    if not isinstance(index, int):
        return None
    if 1 <= index <= size:
        return index - 1
    return None


def resolve_index(items: Sequence[T], index: Any) -> T | None:
    """Map a 1-based ``index`` onto ``items`` (``1`` is the first element)."""

    pos = resolve_position(len(items), index)
    return None if pos is None else items[pos]


def _as_list(v: Any) -> list[Any]:
    return v if isinstance(v, list) else []


# ---------------------------------------------------------------------------
# Analysis payload (raw engine output before resolution)
# ---------------------------------------------------------------------------


class RawSubscription(BaseModel):
    """One subscription exactly as the engine described it."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str | None = None
    amount: float | None = None
    frequency: str | None = None
    confidence: str | None = None
    indices: list[Any] = Field(default_factory=list, alias="transactionIndices")

    @field_validator("name", "frequency", "confidence", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str | None:
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None

    @field_validator("amount", mode="before")
    @classmethod
    def _optional_amount(cls, v: Any) -> float | None:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return None
        fv = float(v)
        return fv if math.isfinite(fv) and fv > 0 else None

    @field_validator("indices", mode="before")
    @classmethod
    def _indices(cls, v: Any) -> list[Any]:
        return _as_list(v)


class RawCategory(BaseModel):
    """One category assignment exactly as the engine described it."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    category: Any = None
    indices: list[Any] = Field(default_factory=list, alias="transactionIndices")

    @field_validator("indices", mode="before")
    @classmethod
    def _indices(cls, v: Any) -> list[Any]:
        return _as_list(v)


class RawInsights(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    overview: str
    insight: str = ""
    recommendation: str = ""

    @field_validator("insight", "recommendation", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""


def parse_raw_subscriptions(value: Any) -> list[RawSubscription]:
    """Parse the ``subscriptions`` member; non-object entries are skipped."""

    out: list[RawSubscription] = []
    for entry in _as_list(value):
        if not isinstance(entry, dict):
            continue
        try:
            out.append(RawSubscription.model_validate(entry))
        except ValidationError:
            continue
    return out


def parse_raw_categories(value: Any) -> list[RawCategory]:
    """Parse the ``categories`` member; non-object entries are skipped."""

    out: list[RawCategory] = []
    for entry in _as_list(value):
        if not isinstance(entry, dict):
            continue
        try:
            out.append(RawCategory.model_validate(entry))
        except ValidationError:
            continue
    return out


def parse_insights(value: Any) -> Insights:
    """Validate the ``insights`` member.

    Raises ``MalformedInsights`` when the value is missing, not an object, or
    lacks a usable ``overview``; callers substitute defaults.
    """

    if not isinstance(value, dict):
        raise MalformedInsights(f"insights is {type(value).__name__}, expected object")
    try:
        raw = RawInsights.model_validate(value)
    except ValidationError as e:
        raise MalformedInsights(f"insights failed validation: {e.error_count()} error(s)") from e
    if not raw.overview:
        raise MalformedInsights("insights.overview is empty")
    return Insights(overview=raw.overview, insight=raw.insight, recommendation=raw.recommendation)


__all__ = [
    "RawCategory",
    "RawInsights",
    "RawSubscription",
    "filter_transactions",
    "parse_insights",
    "parse_raw_categories",
    "parse_raw_subscriptions",
    "resolve_index",
    "resolve_position",
    "validate_transactions",
]
