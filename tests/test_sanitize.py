from __future__ import annotations

import json

import pytest

from just_save.errors import NoJsonFound
from just_save.sanitize import (
    decode_json,
    extract_json_text,
    salvage_object_members,
    strip_fences,
)

ARRAY_PAYLOAD = (
    '[{"date": "2024-01-01", "description": "NETFLIX.COM", "amount": 15.99, "type": "debit"}]'
)
OBJECT_PAYLOAD = '{"subscriptions": [], "categories": [], "insights": {"overview": "ok"}}'


@pytest.mark.parametrize(
    "wrap",
    [
        lambda p: p,
        lambda p: f"```json\n{p}\n```",
        lambda p: f"```\n{p}\n```",
        lambda p: f"```JSON  \r\n{p}\r\n```",
        lambda p: f"Sure! Here is the data:\n```json\n{p}\n```\nLet me know if you need more.",
        lambda p: f"Here you go: {p} Hope that helps.",
        lambda p: f"```json\n{p}",  # unterminated fence (truncated reply)
        lambda p: f"\n\n   {p}   \n",
    ],
)
@pytest.mark.parametrize("payload,expect", [(ARRAY_PAYLOAD, "array"), (OBJECT_PAYLOAD, "object")])
def test_decode_json_tolerates_fences_and_prose(wrap, payload: str, expect: str) -> None:
    assert decode_json(wrap(payload), expect) == json.loads(payload)


def test_strip_fences_returns_trimmed_text_without_fence() -> None:
    assert strip_fences("  [1, 2]\n") == "[1, 2]"
    assert strip_fences("```json\n[1]\n```") == "[1]"


def test_extract_json_text_uses_greedy_match_when_not_leading() -> None:
    text = "The list is [1, 2] and also [3]."
    assert extract_json_text(text, "array") == "[1, 2] and also [3]"
    # The decoder stops at the end of the first complete value.
    assert decode_json(text, "array") == [1, 2]


def test_no_json_raises_and_keeps_raw_response() -> None:
    prose = "I could not find any transactions in this statement."
    with pytest.raises(NoJsonFound) as ei:
        decode_json(prose, "array")
    assert ei.value.raw_response == prose
    assert ei.value.retryable is True


def test_wrong_top_level_type_is_rejected() -> None:
    with pytest.raises(NoJsonFound):
        decode_json("[1, 2, 3]", "object")
    with pytest.raises(NoJsonFound):
        decode_json('"just a string"', "array")


def test_undecodable_json_raises() -> None:
    with pytest.raises(NoJsonFound):
        decode_json('[{"date": "2024-01-01", "amount": 1', "array")


def test_empty_response_raises() -> None:
    with pytest.raises(NoJsonFound):
        decode_json("", "object")


def test_invalid_expect_is_a_programming_error() -> None:
    with pytest.raises(ValueError):
        extract_json_text("[]", "list")  # type: ignore[arg-type]


def test_salvage_recovers_complete_members_of_truncated_object() -> None:
    text = (
        '```json\n{"subscriptions": [{"name": "Netflix", "transactionIndices": [1]}], '
        '"categories": [{"category": "Entertainment", "transactionIndices": [1]}], '
        '"insights": {"overview": "You spend a lot on'
    )
    out = salvage_object_members(text, ("subscriptions", "categories", "insights"))
    assert out["subscriptions"] == [{"name": "Netflix", "transactionIndices": [1]}]
    assert out["categories"] == [{"category": "Entertainment", "transactionIndices": [1]}]
    assert "insights" not in out


def test_salvage_returns_empty_mapping_for_prose() -> None:
    assert salvage_object_members("nothing here", ("subscriptions",)) == {}
