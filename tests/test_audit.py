from __future__ import annotations

import datetime as dt

import pytest

from just_save.audit import (
    AuditedSubscription,
    SubscriptionDecision,
    build_audit_report,
    yearly_amount,
)
from just_save.models import Frequency, Subscription


def _sub(name: str, amount: float, frequency: Frequency) -> Subscription:
    return Subscription(name=name, amount=amount, frequency=frequency, transactions=())


@pytest.mark.parametrize(
    "frequency,expected",
    [
        (Frequency.MONTHLY, 120.0),
        (Frequency.ANNUAL, 10.0),
        (Frequency.QUARTERLY, 40.0),
        (Frequency.WEEKLY, 520.0),
        (Frequency.UNKNOWN, 120.0),
    ],
)
def test_yearly_amount(frequency: Frequency, expected: float) -> None:
    assert yearly_amount(_sub("x", 10.0, frequency)) == expected


def test_report_counts_and_savings_from_cancelled_only() -> None:
    decisions = [
        AuditedSubscription(
            subscription=_sub("Netflix", 15.99, Frequency.MONTHLY),
            decision=SubscriptionDecision.CANCEL,
        ),
        AuditedSubscription(
            subscription=_sub("Coffee club", 3.5, Frequency.WEEKLY),
            decision=SubscriptionDecision.CANCEL,
            notes="barely used",
        ),
        AuditedSubscription(
            subscription=_sub("Domain", 12.0, Frequency.ANNUAL),
            decision=SubscriptionDecision.KEEP,
        ),
        AuditedSubscription(
            subscription=_sub("Gym", 40.0, Frequency.MONTHLY),
            decision=SubscriptionDecision.INVESTIGATE,
        ),
    ]

    report = build_audit_report(decisions, generated_on=dt.date(2024, 3, 1))

    assert report.total_subscriptions == 4
    assert report.cancelled_count == 2
    assert report.investigate_count == 1
    assert report.keep_count == 1
    # 15.99 * 12 + 3.5 * 52
    assert report.yearly_savings == pytest.approx(373.88)
    assert report.monthly_savings == pytest.approx(373.88 / 12)
    assert report.generated_on == dt.date(2024, 3, 1)
    assert report.subscriptions[1].notes == "barely used"


def test_empty_report() -> None:
    report = build_audit_report([])
    assert report.total_subscriptions == 0
    assert report.yearly_savings == 0.0
    assert report.monthly_savings == 0.0
    assert report.generated_on == dt.date.today()


def test_decisions_parse_from_strings() -> None:
    item = AuditedSubscription.model_validate(
        {"subscription": _sub("x", 1.0, Frequency.MONTHLY), "decision": "investigate"}
    )
    assert item.decision is SubscriptionDecision.INVESTIGATE
