"""Compose the final :class:`Analysis` from transactions and engine output."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from . import aggregation
from .errors import MalformedInsights, NoJsonFound
from .logging_setup import get_logger
from .models import DEFAULT_INSIGHTS, Analysis, Insights, Transaction
from .sanitize import decode_json, salvage_object_members
from .validation import parse_insights, parse_raw_categories, parse_raw_subscriptions

_logger = get_logger("just_save.assembly")

ANALYSIS_KEYS: tuple[str, ...] = ("subscriptions", "categories", "insights")


def parse_analysis_response(raw_text: str) -> dict[str, Any]:
    """Decode the analysis object, salvaging members from a broken reply.

    A reply cut off inside ``insights`` still yields usable ``subscriptions``
    and ``categories``. Raises ``NoJsonFound`` when neither of those two can
    be recovered.
    """

    try:
        return decode_json(raw_text, "object")
    except NoJsonFound as e:
        salvaged = salvage_object_members(raw_text, ANALYSIS_KEYS)
        if "subscriptions" not in salvaged and "categories" not in salvaged:
            raise
        _logger.warning(
            "parse_analysis_response:partial recovered=%s reason=%s",
            ",".join(sorted(salvaged)),
            e.message,
        )
        return salvaged


def _insights(payload: dict[str, Any]) -> Insights:
    try:
        return parse_insights(payload.get("insights"))
    except MalformedInsights as e:
        _logger.warning("assemble_analysis:insights_default reason=%s", e.message)
        return DEFAULT_INSIGHTS


def assemble_analysis(transactions: Sequence[Transaction], payload: dict[str, Any]) -> Analysis:
    """Build the analysis for ``transactions`` from a decoded engine payload.

    ``total_spent`` always comes from ``transactions``; the payload only
    contributes index references and insight text.
    """

    debits = aggregation.debit_transactions(transactions)
    spent = aggregation.total_spent(debits)
    return Analysis(
        subscriptions=tuple(
            aggregation.resolve_subscriptions(
                parse_raw_subscriptions(payload.get("subscriptions")), debits
            )
        ),
        category_spending=tuple(
            aggregation.categorize(debits, parse_raw_categories(payload.get("categories")), spent)
        ),
        total_spent=spent,
        insights=_insights(payload),
    )


__all__ = ["ANALYSIS_KEYS", "assemble_analysis", "parse_analysis_response"]
