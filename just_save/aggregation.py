"""Deterministic numeric aggregates over validated transactions.

Pure functions; the same inputs always produce the same outputs. Sums are
accumulated as :class:`decimal.Decimal` built from each float's shortest
repr, so two-decimal statement amounts add up exactly; results are exposed
as ``float``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .categories import OTHER, canonical_category, category_order
from .logging_setup import get_logger
from .models import CategorySpending, Confidence, Frequency, Subscription, Transaction
from .validation import RawCategory, RawSubscription, resolve_position

_logger = get_logger("just_save.aggregation")

_FREQUENCY_ALIASES: dict[str, Frequency] = {
    "yearly": Frequency.ANNUAL,
    "annually": Frequency.ANNUAL,
}


def _dec(value: float) -> Decimal:
    return Decimal(repr(value))


def _sum(amounts: Iterable[float]) -> Decimal:
    return sum((_dec(a) for a in amounts), Decimal(0))


def debit_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if t.is_debit]


def total_spent(transactions: Iterable[Transaction]) -> float:
    """Sum of debit amounts; credits never contribute."""

    return float(_sum(t.amount for t in transactions if t.is_debit))


def _percentage(total: Decimal, spent: Decimal) -> float:
    if spent <= 0:
        return 0.0
    return float(total / spent * 100)


def categorize(
    debits: Sequence[Transaction],
    assignments: Iterable[RawCategory],
    total_spent: float | None = None,
) -> list[CategorySpending]:
    """Bucket every debit into exactly one taxonomy category.

    The first assignment that claims a debit wins; later claims are ignored.
    Labels outside the taxonomy map to ``Other``, as do debits the engine never
    assigned. Categories with a zero total are omitted. The result is sorted
    by total descending, ties broken by taxonomy order.
    """

    owner: dict[int, str] = {}
    for entry in assignments:
        label = canonical_category(entry.category)
        for raw_index in entry.indices:
            pos = resolve_position(len(debits), raw_index)
            if pos is None or pos in owner:
                continue
            owner[pos] = label

    unassigned = 0
    buckets: dict[str, list[Transaction]] = {}
    for pos, tx in enumerate(debits):
        label = owner.get(pos)
        if label is None:
            unassigned += 1
            label = OTHER
        buckets.setdefault(label, []).append(tx)
    if unassigned:
        _logger.info("categorize:unassigned_to_other count=%d", unassigned)

    spent = _sum(t.amount for t in debits) if total_spent is None else _dec(total_spent)
    out: list[CategorySpending] = []
    for label, txs in buckets.items():
        total = _sum(t.amount for t in txs)
        if total <= 0:
            continue
        out.append(
            CategorySpending(
                category=label,
                total=float(total),
                percentage=_percentage(total, spent),
                count=len(txs),
                transactions=tuple(txs),
            )
        )
    out.sort(key=lambda c: (-c.total, category_order(c.category)))
    return out


def _frequency(value: str | None) -> Frequency:
    if value is None:
        return Frequency.MONTHLY
    key = value.lower()
    if key in _FREQUENCY_ALIASES:
        return _FREQUENCY_ALIASES[key]
    try:
        return Frequency(key)
    except ValueError:
        return Frequency.UNKNOWN


def _confidence(value: str | None) -> Confidence:
    try:
        return Confidence((value or "").lower())
    except ValueError:
        return Confidence.MEDIUM


def resolve_subscriptions(
    raw_subscriptions: Iterable[RawSubscription], debits: Sequence[Transaction]
) -> list[Subscription]:
    """Resolve engine-described subscriptions against the debit list.

    Indices are 1-based positions in ``debits``; unresolvable ones are dropped
    and repeats count once. A subscription left without transactions is
    dropped entirely.
    """

    out: list[Subscription] = []
    dropped = 0
    for raw in raw_subscriptions:
        positions: list[int] = []
        for raw_index in raw.indices:
            pos = resolve_position(len(debits), raw_index)
            if pos is not None and pos not in positions:
                positions.append(pos)
        if not positions:
            dropped += 1
            continue
        txs = tuple(debits[p] for p in positions)
        if raw.amount is not None:
            amount = raw.amount
        else:
            amount = float(_sum(t.amount for t in txs) / len(txs))
        out.append(
            Subscription(
                name=raw.name or txs[0].description,
                amount=amount,
                frequency=_frequency(raw.frequency),
                confidence=_confidence(raw.confidence),
                transactions=txs,
            )
        )
    if dropped:
        _logger.info("resolve_subscriptions:dropped_unresolved count=%d", dropped)
    return out


__all__ = ["categorize", "debit_transactions", "resolve_subscriptions", "total_spent"]
