"""Subscription audit summary.

After reviewing detected subscriptions a user marks each one ``cancel``,
``investigate`` or ``keep``. :func:`build_audit_report` turns those decisions
into counts and projected savings. Rendering the report is left to callers.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Iterable
from decimal import Decimal
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from .models import Frequency, Subscription


class SubscriptionDecision(StrEnum):
    CANCEL = "cancel"
    INVESTIGATE = "investigate"
    KEEP = "keep"


_PERIODS_PER_YEAR: dict[Frequency, int] = {
    Frequency.WEEKLY: 52,
    Frequency.MONTHLY: 12,
    Frequency.QUARTERLY: 4,
    Frequency.ANNUAL: 1,
    Frequency.UNKNOWN: 12,
}


class _AuditRecord(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class AuditedSubscription(_AuditRecord):
    subscription: Subscription
    decision: SubscriptionDecision
    notes: str | None = None


class AuditReport(_AuditRecord):
    generated_on: _dt.date
    total_subscriptions: int
    cancelled_count: int
    investigate_count: int
    keep_count: int
    yearly_savings: float
    monthly_savings: float
    subscriptions: tuple[AuditedSubscription, ...]


def _yearly(subscription: Subscription) -> Decimal:
    return Decimal(repr(subscription.amount)) * _PERIODS_PER_YEAR[subscription.frequency]


def yearly_amount(subscription: Subscription) -> float:
    """Annualized cost; ``unknown`` frequency is treated as monthly."""

    return float(_yearly(subscription))


def build_audit_report(
    decisions: Iterable[AuditedSubscription], *, generated_on: _dt.date | None = None
) -> AuditReport:
    """Summarize audit decisions; savings count cancelled subscriptions only."""

    items = tuple(decisions)
    counts = {d: 0 for d in SubscriptionDecision}
    yearly = Decimal(0)
    for item in items:
        counts[item.decision] += 1
        if item.decision is SubscriptionDecision.CANCEL:
            yearly += _yearly(item.subscription)
    return AuditReport(
        generated_on=generated_on or _dt.date.today(),
        total_subscriptions=len(items),
        cancelled_count=counts[SubscriptionDecision.CANCEL],
        investigate_count=counts[SubscriptionDecision.INVESTIGATE],
        keep_count=counts[SubscriptionDecision.KEEP],
        yearly_savings=float(yearly),
        monthly_savings=float(yearly / 12),
        subscriptions=items,
    )


__all__ = [
    "AuditReport",
    "AuditedSubscription",
    "SubscriptionDecision",
    "build_audit_report",
    "yearly_amount",
]
