from __future__ import annotations

import asyncio
import json

import pytest

from just_save.api import StatementPipeline
from just_save.errors import EmptyInput, NoJsonFound
from just_save.models import DEFAULT_INSIGHTS, Analysis, Frequency, Transaction
from just_save.stages import Stage
from tests.helpers.reasoning_stub import ReasoningStub


def _tx(description: str, amount: float, date: str, type_: str = "debit") -> Transaction:
    return Transaction(date=date, description=description, amount=amount, type=type_)


NETFLIX = [
    _tx("NETFLIX.COM", 15.99, "2024-01-01"),
    _tx("NETFLIX.COM", 15.99, "2024-02-01"),
]

NETFLIX_REPLY = {
    "subscriptions": [
        {
            "name": "Netflix",
            "amount": 15.99,
            "frequency": "monthly",
            "confidence": "high",
            "transactionIndices": [1, 2],
        }
    ],
    "categories": [{"category": "Entertainment", "transactionIndices": [1, 2]}],
    "insights": {
        "overview": "Your spending is all streaming.",
        "insight": "Netflix charged you twice.",
        "recommendation": "Check whether you still watch it.",
    },
}


def _analyze(stub: ReasoningStub, transactions, **kw) -> Analysis:
    return asyncio.run(StatementPipeline(stub).analyze(transactions, **kw))


def test_recurring_charge_becomes_a_subscription() -> None:
    stub = ReasoningStub(json.dumps(NETFLIX_REPLY))

    analysis = _analyze(stub, NETFLIX)

    [sub] = analysis.subscriptions
    assert sub.name == "Netflix"
    assert sub.amount == 15.99
    assert sub.frequency is Frequency.MONTHLY
    assert sub.transactions == tuple(NETFLIX)

    [cat] = analysis.category_spending
    assert cat.category == "Entertainment"
    assert cat.total == 31.98
    assert cat.percentage == pytest.approx(100.0)
    assert cat.count == 2
    assert analysis.total_spent == 31.98
    assert analysis.insights.insight == "Netflix charged you twice."

    [call] = stub.calls
    assert call["max_tokens"] == 8192
    assert "TOTAL SPENT: 31.98" in call["prompt"]


def test_truncated_insights_fall_back_to_defaults() -> None:
    reply = json.dumps(NETFLIX_REPLY)
    cut = reply[: reply.index('"insights"')] + '"insights": {"overview": "Your spending is all str'

    analysis = _analyze(ReasoningStub(cut), NETFLIX)

    assert len(analysis.subscriptions) == 1
    assert analysis.category_spending[0].category == "Entertainment"
    assert analysis.insights == DEFAULT_INSIGHTS
    assert analysis.insights.overview == "Analysis complete."


def test_wrongly_shaped_insights_fall_back_to_defaults() -> None:
    reply = dict(NETFLIX_REPLY, insights="Spend less.")
    analysis = _analyze(ReasoningStub(json.dumps(reply)), NETFLIX)
    assert analysis.insights == DEFAULT_INSIGHTS
    assert len(analysis.subscriptions) == 1


def test_reply_cut_inside_subscriptions_raises_no_json_found() -> None:
    reply = json.dumps(NETFLIX_REPLY)
    cut = reply[: reply.index('"transactionIndices"')]

    with pytest.raises(NoJsonFound) as ei:
        _analyze(ReasoningStub(cut), NETFLIX)
    assert ei.value.raw_response == cut


def test_categories_survive_a_reply_cut_inside_subscriptions() -> None:
    reordered = {
        "categories": NETFLIX_REPLY["categories"],
        "subscriptions": NETFLIX_REPLY["subscriptions"],
    }
    reply = json.dumps(reordered)
    cut = reply[: reply.index('"frequency"')]

    analysis = _analyze(ReasoningStub(cut), NETFLIX)

    assert analysis.subscriptions == ()
    [cat] = analysis.category_spending
    assert cat.category == "Entertainment"
    assert cat.count == 2
    assert analysis.total_spent == 31.98
    assert analysis.insights == DEFAULT_INSIGHTS


def test_prose_reply_raises_no_json_found() -> None:
    with pytest.raises(NoJsonFound) as ei:
        _analyze(ReasoningStub("Looks like a normal month to me!"), NETFLIX)
    assert ei.value.user_message == "Failed to analyze transactions. Please try again."
    assert ei.value.raw_response == "Looks like a normal month to me!"


def test_empty_transactions_fail_without_a_call() -> None:
    stub = ReasoningStub()
    with pytest.raises(EmptyInput) as ei:
        _analyze(stub, [])
    assert ei.value.user_message == "No transactions provided."
    assert stub.calls == []


def test_credits_only_yield_zero_analysis_without_a_call() -> None:
    stub = ReasoningStub()
    analysis = _analyze(stub, [_tx("SALARY", 2500.0, "2024-01-31", "credit")])
    assert analysis.total_spent == 0.0
    assert analysis.category_spending == ()
    assert analysis.subscriptions == ()
    assert analysis.insights == DEFAULT_INSIGHTS
    assert stub.calls == []


def test_indices_refer_to_debits_only() -> None:
    txs = [
        _tx("SALARY", 2500.0, "2024-01-01", "credit"),
        _tx("GYM", 30.0, "2024-01-02"),
        _tx("DELIVEROO", 20.0, "2024-01-03"),
    ]
    reply = {
        "subscriptions": [],
        "categories": [
            {"category": "Health & Fitness", "transactionIndices": [1]},
            {"category": "Food & Dining", "transactionIndices": [2]},
        ],
        "insights": {"overview": "ok"},
    }
    stub = ReasoningStub(json.dumps(reply))

    analysis = _analyze(stub, txs)

    prompt = stub.calls[0]["prompt"]
    assert "1. 2024-01-02 | GYM | 30.00" in prompt
    assert "SALARY" not in prompt
    by_name = {c.category: c for c in analysis.category_spending}
    assert by_name["Health & Fitness"].transactions == (txs[1],)
    assert by_name["Food & Dining"].transactions == (txs[2],)
    assert analysis.total_spent == 50.0


def test_total_spent_ignores_model_claims() -> None:
    reply = dict(NETFLIX_REPLY, totalSpent=9999, categories=[])
    analysis = _analyze(ReasoningStub(json.dumps(reply)), NETFLIX)
    assert analysis.total_spent == 31.98
    # Nothing assigned: everything falls back to Other.
    assert [c.category for c in analysis.category_spending] == ["Other"]


def test_payload_uses_camel_case_keys() -> None:
    payload = _analyze(ReasoningStub(json.dumps(NETFLIX_REPLY)), NETFLIX).to_payload()
    assert set(payload) == {"subscriptions", "categorySpending", "totalSpent", "insights"}
    assert payload["categorySpending"][0]["transactions"][0]["description"] == "NETFLIX.COM"


def test_analyze_reports_aggregating_stage() -> None:
    stages: list[Stage] = []
    _analyze(ReasoningStub(json.dumps(NETFLIX_REPLY)), NETFLIX, on_stage=stages.append)
    assert stages == [Stage.AGGREGATING, Stage.COMPLETE]


def test_explain_uses_small_budget_and_trims() -> None:
    stub = ReasoningStub(json.dumps(NETFLIX_REPLY), "  You mostly spend on streaming.  \n")

    async def go():
        pipeline = StatementPipeline(stub)
        analysis = await pipeline.analyze(NETFLIX)
        return await pipeline.explain(analysis)

    assert asyncio.run(go()) == "You mostly spend on streaming."
    assert stub.calls[1]["max_tokens"] == 1024
    assert "Subscriptions Found (1):" in stub.calls[1]["prompt"]


def test_run_extracts_then_analyzes_under_one_tracker() -> None:
    extracted = [t.model_dump(mode="json") for t in NETFLIX]
    stub = ReasoningStub(json.dumps(extracted), json.dumps(NETFLIX_REPLY))
    stages: list[Stage] = []

    analysis = asyncio.run(
        StatementPipeline(stub).run("Date,Desc,Amount\n...", "csv", on_stage=stages.append)
    )

    assert analysis.total_spent == 31.98
    assert len(stub.calls) == 2
    assert stages == [
        Stage.NORMALIZING,
        Stage.EXTRACTING,
        Stage.VALIDATING,
        Stage.AGGREGATING,
        Stage.COMPLETE,
    ]
