"""Prompt builders for the reasoning engine.

Every builder is a pure function of its inputs: no file or network I/O, no
clock, no randomness. Amounts are rendered with exactly two decimals and no
currency symbol.

The analysis prompt enumerates debits starting at 1. The engine answers with
those numbers in ``transactionIndices``; :func:`just_save.validation.resolve_index`
is the matching inverse.
"""

from __future__ import annotations

from collections.abc import Sequence

from .categories import SPENDING_CATEGORIES
from .models import Analysis, Transaction


def build_csv_extraction_prompt(csv_text: str) -> str:
    return f"""You are a bank statement parser. Extract ALL transactions from this CSV bank statement.

IMPORTANT: Banks use many different CSV formats. You must intelligently identify:
- Which column contains the date (could be "Date", "Transaction Date", "Posted Date", "Value Date", etc.)
- Which column contains the description (could be "Description", "Memo", "Merchant", "Payee", "Details", "Narrative", etc.)
- Which column contains the amount (could be "Amount", "Debit", "Credit", "Withdrawal", "Deposit", separate debit/credit columns, etc.)
- Whether amounts are positive/negative, or if there are separate debit/credit columns

Return ONLY a valid JSON array with this exact structure:
[{{"date": "the date as shown", "description": "merchant/payee name cleaned up", "amount": number, "type": "debit" or "credit"}}]

RULES:
1. Extract EVERY transaction row - do not skip any
2. Amount should be a positive number
3. Type is "debit" for money spent/withdrawn/payments out, "credit" for money received/deposits/refunds
4. Clean up descriptions - remove excessive whitespace, reference numbers at the end, but keep the merchant name clear
5. Skip header rows, summary rows, balance rows - only actual transactions
6. If there are separate "Debit" and "Credit" columns, use whichever has a value
7. Handle different date formats gracefully
8. If a row doesn't look like a transaction (no amount, summary line, etc.), skip it

CSV Content:
{csv_text}"""


def build_pdf_extraction_prompt(pdf_text: str) -> str:
    return f"""Extract ALL transactions from this bank or credit card statement as a JSON array.

RESPOND WITH ONLY A JSON ARRAY - NO OTHER TEXT.

Format: [{{"date": "the date as shown", "description": "merchant name", "amount": number, "type": "debit" or "credit"}}]

Rules:
- Descriptions and amounts may be laid out in separate columns; match each transaction description to its amount BY POSITION (1st transaction = 1st amount)
- Amount must be a positive number
- Type is "debit" for purchases, "credit" for refunds and payments received (often marked CR)
- SKIP summary lines such as totals, balances and interest summaries
- When the statement shows amounts in more than one currency, use the statement's billing currency

Statement:
{pdf_text}

RESPOND WITH ONLY THE JSON ARRAY, NOTHING ELSE:"""


def format_transaction_list(debits: Sequence[Transaction]) -> str:
    """Render debits as 1-indexed lines: ``"<n>. <date> | <description> | <amount>"``."""

    return "\n".join(
        f"{n}. {t.date} | {t.description} | {t.amount:.2f}" for n, t in enumerate(debits, start=1)
    )


def _categories_doc() -> str:
    return "\n".join(f'- "{c.name}" - {c.description}' for c in SPENDING_CATEGORIES)


def build_analysis_prompt(debits: Sequence[Transaction], total_spent: float) -> str:
    """Prompt asking for subscriptions, category assignments and insights.

    ``debits`` must be exactly the list later used to resolve the returned
    ``transactionIndices``.
    """

    return f"""You are a personal finance analyst. Analyze these bank transactions and provide a comprehensive breakdown.

TRANSACTIONS (all debits/spending):
{format_transaction_list(debits)}

TOTAL SPENT: {total_spent:.2f}

Analyze and return a JSON object with this EXACT structure:

{{
  "subscriptions": [
    {{
      "name": "Clean service name (e.g., 'Netflix', 'Spotify', 'Gym Membership')",
      "amount": average amount per period as number,
      "frequency": "weekly" | "monthly" | "quarterly" | "annual" | "unknown",
      "confidence": "high" | "medium" | "low",
      "transactionIndices": [array of transaction numbers from the list above]
    }}
  ],
  "categories": [
    {{
      "category": "Category Name",
      "transactionIndices": [array of transaction numbers]
    }}
  ],
  "insights": {{
    "overview": "1-2 sentence summary of spending patterns",
    "insight": "1 notable observation about their spending (subscriptions, habits, etc.)",
    "recommendation": "1 specific, actionable tip to save money"
  }}
}}

SUBSCRIPTION DETECTION RULES:
- Look for recurring charges (same merchant, similar amounts appearing multiple times)
- Common subscriptions: streaming (Netflix, Spotify, Disney+, YouTube), software (Adobe, Microsoft), fitness (gyms, apps), utilities, insurance, phone plans
- Detect frequency by analyzing dates between similar transactions
- "high" confidence = exact same amount, clear pattern; "medium" = similar amounts; "low" = might be subscription
- Include the transaction indices that belong to each subscription

CATEGORY RULES - Use these categories:
{_categories_doc()}

IMPORTANT:
- Transaction numbers start at 1 and refer to the list above
- Every transaction should be assigned to exactly ONE category
- A transaction can be both in a subscription AND in a category
- Be conversational and friendly in insights, no finance jargon
- Return ONLY valid JSON, no markdown formatting"""


def build_explanation_prompt(analysis: Analysis) -> str:
    """Prompt for a short advisory narrative about an assembled analysis."""

    subs = "\n".join(
        f"- {s.name}: {s.amount:.2f}/{s.frequency}" for s in analysis.subscriptions
    )
    cats = "\n".join(
        f"- {c.category}: {c.total:.2f} ({c.percentage:.1f}%)" for c in analysis.category_spending
    )
    return f"""You are a personal finance advisor. Analyze this spending data and provide clear, actionable insights in 3-4 short paragraphs.

Total Spent: {analysis.total_spent:.2f}

Subscriptions Found ({len(analysis.subscriptions)}):
{subs or "None detected"}

Spending by Category:
{cats or "None"}

Please provide:
1. A summary of their spending patterns (1-2 sentences)
2. Notable insights about subscriptions or categories (1-2 sentences)
3. One specific, actionable recommendation to save money (1-2 sentences)

Keep it conversational, friendly, and avoid finance jargon. Focus on what's interesting or surprising about their spending."""


__all__ = [
    "build_analysis_prompt",
    "build_csv_extraction_prompt",
    "build_explanation_prompt",
    "build_pdf_extraction_prompt",
    "format_transaction_list",
]
